"""Battalion: a multi-repository dependency and identity manager."""

__version__ = "0.3.0"
