"""Core modules for procbuilder.

This package contains the process builder, command descriptors, exceptions,
logging and configuration.
"""

from .command import Command, ExitStatus, ProcessOutput, to_string_lossy
from .exceptions import (
    # Error codes
    E_CWD,
    E_EXIT_STATUS,
    E_SPAWN,
    E_VALIDATION,
    ConfigurationError,
    ConstructionError,
    NonZeroExitError,
    ProcBuilderException,
    ProcessError,
    SpawnError,
    format_error_for_log,
    format_error_for_user,
    process_error,
)
from .process_builder import ProcessBuilder, process

__all__ = [
    # Error codes
    "E_CWD",
    "E_EXIT_STATUS",
    "E_SPAWN",
    "E_VALIDATION",
    # Exception classes
    "ConfigurationError",
    "ConstructionError",
    "NonZeroExitError",
    "ProcBuilderException",
    "ProcessError",
    "SpawnError",
    # Builder and commands
    "Command",
    "ExitStatus",
    "ProcessBuilder",
    "ProcessOutput",
    "process",
    # Utilities
    "format_error_for_log",
    "format_error_for_user",
    "process_error",
    "to_string_lossy",
]
