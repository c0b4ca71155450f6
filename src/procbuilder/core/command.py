"""Materialized command descriptors and process results.

A Command is the inert snapshot of a ProcessBuilder's configuration. Nothing
happens until run() is called, so the same descriptor (or two descriptors
built from the same builder) can be executed repeatedly.
"""

import errno
import os
import subprocess
from dataclasses import dataclass, field

OsString = str | bytes


def to_string_lossy(value: OsString) -> str:
    """Render an OS-native string as text, replacing anything undecodable.

    Never raises: invalid UTF-8 bytes and stray surrogates become U+FFFD.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    try:
        raw = value.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        raw = value.encode("utf-8", errors="surrogatepass")
    return raw.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ExitStatus:
    """Exit status of a finished child process.

    Attributes:
        returncode: Raw return code as reported by subprocess (negative
            values are signal numbers on POSIX)
    """

    returncode: int

    @property
    def code(self) -> int | None:
        """Exit code, or None if the process was terminated by a signal."""
        if self.returncode < 0 and os.name == "posix":
            return None
        return self.returncode

    @property
    def signal(self) -> int | None:
        """Terminating signal number, if any."""
        if self.returncode < 0 and os.name == "posix":
            return -self.returncode
        return None

    def success(self) -> bool:
        return self.returncode == 0

    def __str__(self) -> str:
        if self.signal is not None:
            return f"signal: {self.signal}"
        return f"exit code: {self.code}"


@dataclass
class ProcessOutput:
    """Result of a finished process.

    Attributes:
        status: Exit status of the process
        stdout: Captured standard output (empty unless captured)
        stderr: Captured standard error (empty unless captured)
    """

    status: ExitStatus
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


@dataclass
class Command:
    """Spawnable command descriptor.

    Attributes:
        program: Executable name or path
        args: Positional arguments, in order
        cwd: Working directory for the child
        env: Environment overrides; None values force removal
    """

    program: OsString
    args: list[OsString] = field(default_factory=list)
    cwd: OsString = "."
    env: dict[str, OsString | None] = field(default_factory=dict)

    @property
    def argv(self) -> list[OsString]:
        return [self.program, *self.args]

    def environ(self) -> dict[str, OsString]:
        """Resolve the child's environment against the current os.environ.

        Keys without an override are inherited as they are right now, not as
        they were when the descriptor was built.
        """
        resolved: dict[str, OsString] = dict(os.environ)
        for key, value in self.env.items():
            if value is None:
                resolved.pop(key, None)
            else:
                resolved[key] = value
        return resolved

    def run(self, capture: bool) -> ProcessOutput:
        """Spawn the command and block until it exits.

        Args:
            capture: Pipe stdout/stderr into memory instead of inheriting
                the caller's streams

        Returns:
            ProcessOutput with the exit status (and captured output)

        Raises:
            OSError: If the process could not be started
        """
        stream = subprocess.PIPE if capture else None
        try:
            completed = subprocess.run(
                self.argv,
                cwd=self.cwd,
                env=self.environ(),
                stdout=stream,
                stderr=stream,
                shell=False,
                check=False,
            )
        except ValueError as e:
            # subprocess rejects NUL bytes and '=' in names before spawning
            raise OSError(errno.EINVAL, f"Invalid command: {e}") from e

        return ProcessOutput(
            status=ExitStatus(completed.returncode),
            stdout=completed.stdout or b"",
            stderr=completed.stderr or b"",
        )
