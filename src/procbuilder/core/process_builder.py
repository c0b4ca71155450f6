"""Builder for external child processes.

A ProcessBuilder holds the program, arguments, working directory and a sparse
map of environment overrides. Configuration is mutated through chainable
methods and only turned into a spawnable Command by build_command(), so one
builder can be executed any number of times.

Example:
    builder = process("git").args(["status", "--short"]).env_remove("GIT_DIR")
    output = builder.exec_with_output()
"""

import contextlib
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from procbuilder.core.command import Command, OsString, ProcessOutput, to_string_lossy
from procbuilder.core.exceptions import ConstructionError, ProcessError, process_error
from procbuilder.core.logger import ProcBuilderLogger, RunRecord

PathArg = str | bytes | os.PathLike


class ProcessBuilder:
    """Mutable configuration for one prospective child process.

    Environment overrides are three-valued: a value forces the variable, None
    forces its removal, and a missing key inherits the caller's environment
    at the time of lookup or execution.
    """

    def __init__(
        self,
        program: PathArg,
        cwd: PathArg,
        logger: ProcBuilderLogger | None = None,
    ) -> None:
        self._program: OsString = os.fspath(program)
        self._args: list[OsString] = []
        self._env: dict[str, OsString | None] = {}
        self._cwd: OsString = os.fspath(cwd)
        self._logger = logger

    def arg(self, value: PathArg) -> "ProcessBuilder":
        self._args.append(os.fspath(value))
        return self

    def args(self, values: Iterable[PathArg]) -> "ProcessBuilder":
        """Append each value in order, same as calling arg() repeatedly."""
        if isinstance(values, str | bytes):
            raise TypeError("args() expects an iterable of arguments, not a single string")
        self._args.extend(os.fspath(value) for value in values)
        return self

    def cwd(self, path: PathArg) -> "ProcessBuilder":
        self._cwd = os.fspath(path)
        return self

    def env(self, key: str, value: PathArg) -> "ProcessBuilder":
        self._env[key] = os.fspath(value)
        return self

    def env_remove(self, key: str) -> "ProcessBuilder":
        """Remove `key` from the child's environment even if the caller has it set."""
        self._env[key] = None
        return self

    def get_program(self) -> OsString:
        return self._program

    def get_args(self) -> list[OsString]:
        return list(self._args)

    def get_cwd(self) -> Path:
        return Path(os.fsdecode(self._cwd))

    def get_env(self, key: str) -> OsString | None:
        """Effective value of `key` for the child.

        Overrides win (a forced removal yields None); anything else is read
        from os.environ now, without caching.
        """
        if key in self._env:
            return self._env[key]
        return os.environ.get(key)

    def get_envs(self) -> dict[str, OsString | None]:
        """The override map only, not the resolved environment."""
        return dict(self._env)

    def copy(self) -> "ProcessBuilder":
        clone = ProcessBuilder(self._program, self._cwd, logger=self._logger)
        clone._args = list(self._args)
        clone._env = dict(self._env)
        return clone

    def build_command(self) -> Command:
        """Materialize the current configuration into an inert Command."""
        return Command(
            program=self._program,
            args=list(self._args),
            cwd=self._cwd,
            env=dict(self._env),
        )

    def exec(self) -> None:
        """Run the process with inherited stdio and wait for it.

        Raises:
            SpawnError: If the process could not be started
            NonZeroExitError: If it exited unsuccessfully or was killed
        """
        self._execute(capture=False)

    def exec_with_output(self) -> ProcessOutput:
        """Run the process capturing stdout/stderr and wait for it.

        Returns:
            ProcessOutput with the status and captured bytes

        Raises:
            SpawnError: If the process could not be started
            NonZeroExitError: If it exited unsuccessfully; the error carries
                the captured output
        """
        return self._execute(capture=True)

    def _execute(self, capture: bool) -> ProcessOutput:
        command = self.build_command()

        with self._run_log(capture) as run:
            try:
                output = command.run(capture=capture)
            except OSError as e:
                err = process_error(f"Could not execute process {self}", cause=e)
                self._report(err)
                raise err from e

            run.status = output.status
            if not output.status.success():
                err = process_error(
                    f"Process didn't exit successfully: {self}",
                    status=output.status,
                    output=output if capture else None,
                )
                self._report(err)
                raise err

        return output

    def _run_log(self, capture: bool) -> contextlib.AbstractContextManager[RunRecord]:
        if self._logger is None:
            return contextlib.nullcontext(RunRecord(command=str(self), capture=capture))
        return self._logger.process_run(str(self), capture=capture)

    def _report(self, err: ProcessError) -> None:
        if self._logger is not None:
            self._logger.process_failed(err)

    def _display_parts(self) -> Iterator[str]:
        yield to_string_lossy(self._program)
        for arg in self._args:
            yield to_string_lossy(arg)

    def __str__(self) -> str:
        return "`" + " ".join(self._display_parts()) + "`"

    def __repr__(self) -> str:
        return (
            f"ProcessBuilder(program={self._program!r}, args={self._args!r}, "
            f"cwd={self._cwd!r}, env={self._env!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProcessBuilder):
            return NotImplemented
        return (
            self._program == other._program
            and self._args == other._args
            and self._env == other._env
            and self._cwd == other._cwd
        )

    __hash__ = None  # type: ignore[assignment]


def process(program: PathArg, logger: ProcBuilderLogger | None = None) -> ProcessBuilder:
    """Create a builder for `program` rooted at the current working directory.

    Raises:
        ConstructionError: If the current working directory cannot be determined
    """
    try:
        cwd = os.getcwd()
    except OSError as e:
        raise ConstructionError(
            f"Could not determine current working directory: {e}", cause=e
        ) from e
    return ProcessBuilder(program, cwd, logger=logger)
