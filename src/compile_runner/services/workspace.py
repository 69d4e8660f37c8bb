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
Temporary workspace management.

Allocates the per-request input and output files handed to the compiler
toolchain and removes them once the request is finished.
"""

import asyncio
import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from compile_runner.config import settings
from compile_runner.logging import get_logger

logger = get_logger(__name__)


class AllocationError(Exception):
    """Raised when a temporary workspace cannot be created."""

    pass


@dataclass(frozen=True)
class Workspace:
    """
    Pair of temporary files owned by a single compile request.

    Attributes:
        input_path: File holding the submitted source
        output_path: Unique location the toolchain writes the compiled artifact to
    """

    input_path: Path
    output_path: Path

    async def discard(self) -> None:
        """Remove both files. Files that are already gone are ignored."""
        await asyncio.to_thread(self._discard_sync)

    def _discard_sync(self) -> None:
        for path in (self.input_path, self.output_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(
                    "workspace_file_not_removed",
                    path=str(path),
                    error=str(e),
                )
        logger.debug(
            "workspace_discarded",
            input_path=str(self.input_path),
            output_path=str(self.output_path),
        )


class WorkspaceManager:
    """
    Creates collision-free workspaces in the configured temp directory.

    Allocation is safe to run concurrently: every file is created with
    `tempfile.mkstemp`, which opens it exclusively under a random name.
    """

    def __init__(
        self,
        directory: str | None = None,
        prefix: str | None = None,
        output_suffix: str | None = None,
    ):
        """
        Initialize the workspace manager.

        Args:
            directory: Directory for temp files. Defaults to settings.workspace_dir,
                       then to the system temp directory.
            prefix: Filename prefix. Defaults to settings.workspace_prefix.
            output_suffix: Suffix of the compiled artifact file.
                           Defaults to settings.toolchain_output_suffix.
        """
        self.directory = directory if directory is not None else settings.workspace_dir
        self.prefix = prefix if prefix is not None else settings.workspace_prefix
        self.output_suffix = (
            output_suffix if output_suffix is not None else settings.toolchain_output_suffix
        )

    async def allocate(self, source: str) -> Workspace:
        """
        Create a fresh workspace with the source staged in its input file.

        The files are created in a worker thread that keeps running if the
        caller is cancelled, so cancellation waits for it and removes
        whatever it created before propagating.

        Args:
            source: Source text to write to the input file

        Returns:
            Workspace whose paths are unique to this call

        Raises:
            AllocationError: If the filesystem refuses to create or write the files
        """
        pending = asyncio.ensure_future(asyncio.to_thread(self._allocate_sync, source))
        try:
            workspace = await asyncio.shield(pending)
        except asyncio.CancelledError:
            await self._discard_abandoned(pending)
            raise
        except OSError as e:
            logger.error(
                "workspace_allocation_failed",
                directory=self.directory,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise AllocationError("Failed to allocate compile workspace") from e

        logger.debug(
            "workspace_allocated",
            input_path=str(workspace.input_path),
            output_path=str(workspace.output_path),
        )
        return workspace

    async def _discard_abandoned(self, pending: "asyncio.Future[Workspace]") -> None:
        try:
            workspace = await pending
        except OSError as e:
            # _allocate_sync already removed its partial input file.
            logger.debug("workspace_allocation_abandoned", error=str(e))
            return
        logger.info(
            "workspace_allocation_cancelled",
            input_path=str(workspace.input_path),
        )
        await workspace.discard()

    def _allocate_sync(self, source: str) -> Workspace:
        input_fd, input_name = tempfile.mkstemp(prefix=self.prefix, dir=self.directory)
        input_path = Path(input_name)
        try:
            with os.fdopen(input_fd, "w", encoding="utf-8") as handle:
                handle.write(source)

            # Reserve the output name so no concurrent request can claim it.
            output_fd, output_name = tempfile.mkstemp(
                prefix=self.prefix, suffix=self.output_suffix, dir=self.directory
            )
            os.close(output_fd)
        except BaseException:
            input_path.unlink(missing_ok=True)
            raise

        return Workspace(input_path=input_path, output_path=Path(output_name))

    @asynccontextmanager
    async def workspace(self, source: str) -> AsyncIterator[Workspace]:
        """
        Allocate a workspace and discard it when the block exits.

        Args:
            source: Source text to stage

        Yields:
            The allocated Workspace

        Raises:
            AllocationError: If the workspace cannot be created
        """
        workspace = await self.allocate(source)
        try:
            yield workspace
        finally:
            await workspace.discard()
