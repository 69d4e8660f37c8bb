# Copyright 2025 John Brosnihan
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Compiler toolchain abstraction layer.

Provides an abstract base class for toolchain implementations, a subprocess
implementation that invokes the configured compiler, a stub implementation
for local development, and a factory that selects between them.
"""

import asyncio
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from compile_runner.config import settings
from compile_runner.logging import get_logger

logger = get_logger(__name__)


class CompilationError(Exception):
    """
    Raised when the toolchain rejects the source.

    Attributes:
        diagnostic: Raw diagnostic text exactly as the toolchain printed it
    """

    def __init__(self, diagnostic: str):
        self.diagnostic = diagnostic
        super().__init__(diagnostic)


class ToolchainUnavailableError(CompilationError):
    """Raised when the toolchain binary cannot be started."""

    pass


class CompilationTimeoutError(CompilationError):
    """Raised when a compiler run exceeds the configured timeout."""

    pass


class Toolchain(ABC):
    """
    Abstract base class for compiler toolchains.

    A toolchain compiles the file at `input_path` and writes the artifact to
    `output_path`. It knows nothing about sanitization or rendering.
    """

    @abstractmethod
    async def compile(self, input_path: Path, output_path: Path) -> None:
        """
        Compile the input file into the output file.

        Args:
            input_path: File containing the source to compile
            output_path: Location the compiled artifact must be written to

        Raises:
            CompilationError: If the toolchain reports a failure
        """
        pass


class SubprocessToolchain(Toolchain):
    """
    Toolchain that runs an external compiler binary.

    Invokes `<command> <flags...> --output=<output_path> <input_path>` and
    waits for the process to exit with stdout and stderr captured.
    """

    def __init__(
        self,
        command: str | None = None,
        flags: list[str] | None = None,
        timeout_seconds: float | None = None,
    ):
        """
        Initialize the subprocess toolchain.

        Args:
            command: Compiler binary. Defaults to settings.toolchain_command.
            flags: Fixed flags. Defaults to settings.toolchain_flags_list.
            timeout_seconds: Optional run limit. Defaults to settings.compile_timeout_seconds.
        """
        self.command = command or settings.toolchain_command
        self.flags = flags if flags is not None else settings.toolchain_flags_list
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.compile_timeout_seconds
        )

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        """Return the argv used to compile input_path into output_path."""
        return [self.command, *self.flags, f"--output={output_path}", str(input_path)]

    async def compile(self, input_path: Path, output_path: Path) -> None:
        """
        Run the compiler and wait for it to finish.

        Raises:
            ToolchainUnavailableError: If the binary is missing or not executable
            CompilationTimeoutError: If the run exceeds the configured timeout
            CompilationError: If the compiler exits with a non-zero status
        """
        argv = self.build_command(input_path, output_path)
        logger.debug("toolchain_invoked", argv=argv)

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            logger.error(
                "toolchain_unavailable",
                command=self.command,
                error=str(e),
            )
            raise ToolchainUnavailableError("Compiler toolchain is not available") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            await self._terminate(process)
            logger.warning(
                "toolchain_timed_out",
                command=self.command,
                timeout_seconds=self.timeout_seconds,
            )
            raise CompilationTimeoutError(
                f"Compilation timed out after {self.timeout_seconds} seconds"
            ) from None
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        if process.returncode != 0:
            diagnostic = combine_output(stdout, stderr)
            logger.info(
                "toolchain_failed",
                returncode=process.returncode,
                diagnostic_length=len(diagnostic),
            )
            raise CompilationError(diagnostic)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            process.kill()
            await process.wait()


class StubToolchain(Toolchain):
    """
    Stub toolchain for local development and testing.

    Copies the source verbatim to the output location instead of invoking a
    compiler. Useful for exercising the service without installing one.
    """

    async def compile(self, input_path: Path, output_path: Path) -> None:
        logger.info("stub_toolchain_compile", input_path=str(input_path))
        try:
            await asyncio.to_thread(shutil.copyfile, input_path, output_path)
        except OSError as e:
            raise CompilationError(f"Stub toolchain could not copy source: {e}") from e


def combine_output(stdout: bytes, stderr: bytes) -> str:
    """
    Combine captured process output into a single diagnostic string.

    Stderr comes first since that is where compilers report errors. Empty
    streams are skipped so a lone stream is returned unchanged.
    """
    parts = [
        stream.decode("utf-8", errors="replace")
        for stream in (stderr, stdout)
        if stream
    ]
    return "\n".join(parts)


def create_toolchain(stub_mode: bool | None = None) -> Toolchain:
    """
    Factory function to create a toolchain based on configuration.

    Args:
        stub_mode: Whether to use the stub toolchain. If None, uses settings.toolchain_stub_mode

    Returns:
        Configured toolchain instance
    """
    stub_mode = stub_mode if stub_mode is not None else settings.toolchain_stub_mode

    if stub_mode:
        logger.info("Creating StubToolchain (stub mode enabled)")
        return StubToolchain()

    logger.info("Creating SubprocessToolchain", command=settings.toolchain_command)
    return SubprocessToolchain()
