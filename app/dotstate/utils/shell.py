"""Shell execution utilities.

Provides subprocess execution with captured output, and a streaming
variant that forwards output lines while a long-running command
(such as a package install) is still running.
"""

import queue
import shutil
import subprocess
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import IO


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


@dataclass(frozen=True, slots=True)
class OutputLine:
    """One line of output from a streamed command.

    Attributes:
        text: Line content without the trailing newline.
        stream: "stdout" or "stderr".
    """

    text: str
    stream: str


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Execute a shell command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.
        env: Full environment for the command. If None, inherits the current one.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
        cwd=cwd,
        env=env,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None


class StreamingCommand:
    """A running child process whose output is read line by line.

    One reader thread per stream forwards lines into a single queue; the
    consumer iterates lines() on the calling thread until both streams
    reach EOF, then calls wait() for the exit code. Cancellation is not
    supported.
    """

    _EOF = object()

    def __init__(self, args: list[str], *, cwd: str | None = None) -> None:
        """Start the command.

        Raises:
            FileNotFoundError: If the executable is not found.
            OSError: If the process cannot be started.
        """
        self._process = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            bufsize=1,
            cwd=cwd,
        )
        self._queue: queue.Queue[object] = queue.Queue()
        self._readers = [
            threading.Thread(
                target=self._pump, args=(self._process.stdout, "stdout"), daemon=True
            ),
            threading.Thread(
                target=self._pump, args=(self._process.stderr, "stderr"), daemon=True
            ),
        ]
        for reader in self._readers:
            reader.start()

    def _pump(self, pipe: IO[str] | None, stream: str) -> None:
        if pipe is not None:
            with pipe:
                for line in pipe:
                    self._queue.put(OutputLine(text=line.rstrip("\n"), stream=stream))
        self._queue.put(self._EOF)

    def lines(self) -> Iterator[OutputLine]:
        """Yield output lines from both streams until the child closes them."""
        remaining = len(self._readers)
        while remaining:
            item = self._queue.get()
            if item is self._EOF:
                remaining -= 1
                continue
            assert isinstance(item, OutputLine)
            yield item

    def wait(self) -> int:
        """Wait for the child to exit and return its exit code."""
        for reader in self._readers:
            reader.join()
        return self._process.wait()
