"""Error types raised by battalion core operations.

Every failure surfaced to a caller is a subclass of BatlError. The CLI error
boundary renders the message and exits non-zero; nothing in the core retries.
"""


class BatlError(Exception):
    """Base class for all battalion failures."""


class InvalidName(BatlError, ValueError):
    """Identifier fails the name grammar or its version fails to parse.

    Also a ValueError so pydantic field validators report it as a
    validation error instead of crashing.
    """


class ConfigInvalid(BatlError):
    """No schema generation accepts the persisted document."""


class NotFound(BatlError):
    """Resource, dependency, link or archive absent at every searched location."""


class AlreadyExists(BatlError):
    """Create or link target is already present."""


class MissingDependency(BatlError):
    """Operation references a dependency that is not declared."""


class MissingLink(BatlError):
    """Operation references a link that is not recorded."""


class ActionImpossible(BatlError):
    """Action blocked by the current state of the repository."""

    def __init__(self, action: str, condition: str) -> None:
        super().__init__(f"{action} cannot be performed while {condition}")
        self.action = action
        self.condition = condition


class CyclicDependency(BatlError):
    """Transitive dependency walk re-entered a repository still being visited."""

    def __init__(self, chain: list[str]) -> None:
        super().__init__("Cyclic dependency detected: " + " -> ".join(chain))
        self.chain = chain


class StructureMalformed(BatlError):
    """On-disk battalion structure does not follow the expected layout."""

    def __init__(self, specifics: str) -> None:
        super().__init__(f"The internal battalion folder structure is malformed: {specifics}")


class NetworkFailure(BatlError):
    """Registry transport error or non-success status."""


class IoFailure(BatlError):
    """Underlying filesystem error."""


class NotSetup(BatlError):
    """No battalion root could be discovered."""

    def __init__(self) -> None:
        super().__init__("Battalion has not been set up, run `batl setup` to fix")


class AlreadySetup(BatlError):
    """A battalion root already exists."""


class ScriptNotFound(BatlError):
    """Requested script is not declared by the repository."""

    def __init__(self, script: str) -> None:
        super().__init__(f"A script named {script} does not exist in the repository")
        self.script = script


class ScriptFailed(BatlError):
    """Script exited with a non-zero status."""

    def __init__(self, script: str, exit_code: int) -> None:
        super().__init__(f"Script {script} failed with exit code {exit_code}")
        self.script = script
        self.exit_code = exit_code
