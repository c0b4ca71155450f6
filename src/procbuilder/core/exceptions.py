"""Exception hierarchy with error codes for procbuilder.

Every failure of a builder reaches the caller as one of these types. Nothing
is retried or swallowed on the way.
"""

from dataclasses import dataclass, field
from typing import Any

from procbuilder.core.command import ExitStatus, ProcessOutput

# Standard error codes
E_CWD = "E_CWD"
E_SPAWN = "E_SPAWN"
E_EXIT_STATUS = "E_EXIT_STATUS"
E_VALIDATION = "E_VALIDATION"


@dataclass
class ProcBuilderException(Exception):  # noqa: N818
    """Base exception for all procbuilder-specific errors.

    Provides structured error handling with error codes and metadata for
    consistent error reporting.
    """

    message: str
    error_code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Return human-readable error message."""
        return self.message

    def __post_init__(self) -> None:
        """Initialize the exception with the message."""
        super().__init__(self.message)


@dataclass
class ConstructionError(ProcBuilderException):
    """Error when a builder cannot be created.

    Raised when the current working directory cannot be determined.
    """

    cause: OSError | None = None

    def __post_init__(self) -> None:
        """Initialize with the underlying OS error."""
        if not self.error_code:
            self.error_code = E_CWD
        if self.cause is not None:
            self.metadata["cause"] = str(self.cause)
        super().__post_init__()


@dataclass
class ProcessError(ProcBuilderException):
    """Error from running a child process.

    Attributes:
        exit: Exit status, if the process ran
        output: Captured output, if capture was requested and the process ran
        cause: Underlying OS error, if the process could not be started
    """

    exit: ExitStatus | None = None
    output: ProcessOutput | None = None
    cause: OSError | None = None

    def __post_init__(self) -> None:
        """Initialize with process-specific metadata."""
        if self.exit is not None:
            self.metadata["exit_status"] = str(self.exit)
            self.metadata["returncode"] = self.exit.returncode
        if self.cause is not None:
            self.metadata["cause"] = str(self.cause)
        super().__post_init__()

    @property
    def description(self) -> str:
        """Message plus exit status and any non-blank captured output."""
        status = str(self.exit) if self.exit is not None else "never executed"
        desc = f"{self.message} ({status})"
        if self.output is not None:
            for name, text in (
                ("stdout", self.output.stdout_text),
                ("stderr", self.output.stderr_text),
            ):
                if text.strip():
                    desc += f"\n--- {name}\n{text}"
        return desc

    def __str__(self) -> str:
        return self.description


@dataclass
class SpawnError(ProcessError):
    """The OS refused to start the process (missing executable, permissions...)."""

    def __post_init__(self) -> None:
        if not self.error_code:
            self.error_code = E_SPAWN
        super().__post_init__()


@dataclass
class NonZeroExitError(ProcessError):
    """The process ran but exited with a failure status or was killed."""

    def __post_init__(self) -> None:
        if not self.error_code:
            self.error_code = E_EXIT_STATUS
        super().__post_init__()


@dataclass
class ConfigurationError(ProcBuilderException):
    """Error in procbuilder configuration.

    Raised for invalid config values or configuration file problems.
    """

    key: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        """Initialize with configuration-specific metadata."""
        if not self.error_code:
            self.error_code = E_VALIDATION
        if self.key:
            self.metadata["config_key"] = self.key
        if self.reason:
            self.metadata["reason"] = self.reason
        super().__post_init__()


def process_error(
    message: str,
    cause: OSError | None = None,
    status: ExitStatus | None = None,
    output: ProcessOutput | None = None,
) -> ProcessError:
    """Build the ProcessError subclass matching what went wrong.

    Args:
        message: Human-readable message including the rendered command
        cause: OS error raised while spawning
        status: Exit status of a process that ran
        output: Captured output of a process that ran

    Returns:
        SpawnError when there is no exit status, NonZeroExitError otherwise

    Raises:
        ValueError: If output is given without a status; a process that
            never ran has no output
    """
    if status is None and output is not None:
        raise ValueError("process_error() got captured output without an exit status")
    if status is None:
        return SpawnError(message, cause=cause)
    return NonZeroExitError(message, exit=status, output=output, cause=cause)


def format_error_for_user(exception: ProcBuilderException) -> str:
    """Format exception for user-friendly display.

    Args:
        exception: The procbuilder exception to format

    Returns:
        Human-readable error message
    """
    if isinstance(exception, SpawnError):
        if exception.cause is not None:
            return f"{exception.message}: {exception.cause.strerror or exception.cause}"
        return exception.message

    if isinstance(exception, ProcessError):
        return exception.description

    if isinstance(exception, ConstructionError):
        return f"Could not create process builder: {exception.message}"

    if isinstance(exception, ConfigurationError):
        if exception.key:
            return f"Configuration error '{exception.key}': {exception.message}"
        return f"Configuration error: {exception.message}"

    return str(exception.message)


def format_error_for_log(exception: ProcBuilderException) -> dict[str, Any]:
    """Format exception for structured logging.

    Args:
        exception: The procbuilder exception to format

    Returns:
        Dictionary with structured error information for logs
    """
    log_data: dict[str, Any] = {
        "error_type": type(exception).__name__,
        "message": exception.message,
        "error_code": exception.error_code,
    }

    if exception.metadata:
        log_data["metadata"] = exception.metadata

    if isinstance(exception, ProcessError):
        if exception.exit is not None:
            log_data["exit_status"] = str(exception.exit)
        if exception.cause is not None:
            log_data["errno"] = exception.cause.errno
        if exception.output is not None:
            log_data["stdout_bytes"] = len(exception.output.stdout)
            log_data["stderr_bytes"] = len(exception.output.stderr)

    elif isinstance(exception, ConfigurationError):
        if exception.key:
            log_data["config_key"] = exception.key
        if exception.reason:
            log_data["reason"] = exception.reason

    return log_data
