"""Types for brew validation runs."""

from dataclasses import dataclass
from enum import Enum


class ValidationKind(str, Enum):
    INSTALL = "install"
    TEST = "test"
    AUDIT = "audit"
    LIVECHECK = "livecheck"


@dataclass
class ValidationResult:
    """Outcome of one brew command.

    ``message`` is the diagnostic text shown to the operator verbatim:
    stdout (or the launch error) followed by stderr on failure, and
    stdout on a successful livecheck.
    """

    kind: ValidationKind
    command: list[str]
    exit_code: int
    duration_seconds: float
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ValidationFailure(Exception):
    """Raised when brew reports a non-ok result.

    Carries the result so the CLI can print its diagnostic text.
    """

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(
            f"brew {result.kind.value} failed with exit code {result.exit_code}"
        )

    @property
    def diagnostic(self) -> str:
        return self.result.message
