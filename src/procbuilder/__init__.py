"""
procbuilder

Build external child processes with an overridable environment, run them with
inherited or captured output, and get structured errors when they fail.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from procbuilder.core.command import Command, ExitStatus, ProcessOutput
from procbuilder.core.config import BuilderConfig, load_config
from procbuilder.core.exceptions import (
    ConfigurationError,
    ConstructionError,
    NonZeroExitError,
    ProcBuilderException,
    ProcessError,
    SpawnError,
)
from procbuilder.core.factory import create_builder
from procbuilder.core.process_builder import ProcessBuilder, process

__all__ = [
    # Version
    "__version__",
    # Builder
    "ProcessBuilder",
    "process",
    "create_builder",
    # Commands and results
    "Command",
    "ExitStatus",
    "ProcessOutput",
    # Configuration
    "BuilderConfig",
    "load_config",
    # Exceptions
    "ProcBuilderException",
    "ConstructionError",
    "ProcessError",
    "SpawnError",
    "NonZeroExitError",
    "ConfigurationError",
]
