"""brew install / test / audit / livecheck runner.

Each validation runs as a subprocess with timeout enforcement and full
stdout/stderr capture. Commands are passed as argument lists, never
through a shell, since the target is an operator-supplied path.

Raises no exceptions itself; callers decide what a failure means
(see ``require_success``).
"""

import logging
import subprocess
import time

from brewpr.validator.types import ValidationFailure, ValidationKind, ValidationResult

logger = logging.getLogger(__name__)

# Default timeout per command (seconds)
DEFAULT_TIMEOUT = 1800

COMMANDS: dict[ValidationKind, list[str]] = {
    ValidationKind.INSTALL: ["brew", "install", "--build-from-source", "--formula"],
    ValidationKind.TEST: ["brew", "test"],
    ValidationKind.AUDIT: ["brew", "audit", "--strict", "--online", "--formula"],
    ValidationKind.LIVECHECK: ["brew", "livecheck", "--formula"],
}

# brew audit prints the tap each problem was found in on its own line.
# A problem reported against homebrew/core means the local checkout of the
# tap (which audit compares against) is out of date.
STALE_CORE_TAP = "homebrew/core"
STALE_CORE_HINT = (
    "It looks like your homebrew-core is outdated. It's a git repo that needs "
    "to be updated. You can find the location of the repo with "
    "`brew --repo homebrew/core`"
)


def build_command(kind: ValidationKind, target: str) -> list[str]:
    return [*COMMANDS[kind], target]


def run_validation(
    kind: ValidationKind,
    target: str,
    timeout: int = DEFAULT_TIMEOUT,
) -> ValidationResult:
    """Run one brew validation against *target* (formula path or name)."""
    kind = ValidationKind(kind)
    command = build_command(kind, target)
    logger.info("Running brew %s: %s", kind.value, " ".join(command))
    start = time.monotonic()

    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        duration = time.monotonic() - start
        result = ValidationResult(
            kind=kind,
            command=command,
            exit_code=-1,
            duration_seconds=duration,
            message=_join(
                _as_text(exc.stdout) or f"Timed out after {timeout} seconds",
                _as_text(exc.stderr),
            ),
        )
    except OSError as exc:
        duration = time.monotonic() - start
        result = ValidationResult(
            kind=kind,
            command=command,
            exit_code=-2,
            duration_seconds=duration,
            message=str(exc),
        )
    else:
        duration = time.monotonic() - start
        result = ValidationResult(
            kind=kind,
            command=command,
            exit_code=completed.returncode,
            duration_seconds=duration,
        )
        if completed.returncode == 0:
            if kind is ValidationKind.LIVECHECK:
                result.message = completed.stdout
        else:
            result.message = _failure_message(kind, completed.stdout, completed.stderr)

    status = "OK" if result.ok else "FAILED"
    logger.info(
        "brew %s %s (exit=%d, %.1fs)",
        kind.value, status, result.exit_code, result.duration_seconds,
    )
    return result


def require_success(result: ValidationResult) -> ValidationResult:
    """Return *result* unchanged, or raise ValidationFailure if it is not ok."""
    if not result.ok:
        raise ValidationFailure(result)
    return result


def _failure_message(kind: ValidationKind, stdout: str, stderr: str) -> str:
    message = [stdout or f"brew {kind.value} exited with an error", stderr]
    if kind is ValidationKind.AUDIT and _reports_stale_core_tap(stdout):
        message.append(STALE_CORE_HINT)
    return _join(*message)


def _reports_stale_core_tap(stdout: str) -> bool:
    # Tap headers are the lines that start with a letter; problems are indented.
    taps = [line for line in (stdout or "").split("\n") if line[:1].isalpha()]
    return STALE_CORE_TAP in taps


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _join(*parts: str) -> str:
    return "\n".join(parts)
