"""Factory for creating configured ProcessBuilder instances.

Central entry point used by the CLI and by callers that want profile and
project configuration applied to new builders.
"""

from pathlib import Path

from procbuilder.core.config import BuilderConfig, load_config
from procbuilder.core.logger import ProcBuilderLogger
from procbuilder.core.process_builder import PathArg, ProcessBuilder, process


def create_logger(config: BuilderConfig, log_dir: str | None = None) -> ProcBuilderLogger:
    """Create a logger at the configured level."""
    return ProcBuilderLogger(log_dir=log_dir, level=config.log_level)


def create_builder(
    program: PathArg,
    config: BuilderConfig | None = None,
    logger: ProcBuilderLogger | None = None,
    profile_name: str = "default",
    project_root: Path | None = None,
) -> ProcessBuilder:
    """Create a builder with configured defaults applied.

    Args:
        program: Executable name or path
        config: Configuration to apply (loaded from profile/project/env if None)
        logger: Logger to attach to the builder (optional)
        profile_name: User profile to load when config is None
        project_root: Project root to search when config is None

    Returns:
        ProcessBuilder with config cwd and env overrides applied

    Raises:
        ConfigurationError: If configuration cannot be loaded
        ConstructionError: If the current working directory cannot be determined
    """
    if config is None:
        config = load_config(profile_name, project_root)

    builder = process(program, logger=logger)

    if config.cwd is not None:
        builder.cwd(config.cwd)

    for key, value in config.env.items():
        if value is None:
            builder.env_remove(key)
        else:
            builder.env(key, value)

    return builder
