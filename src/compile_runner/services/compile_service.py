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
Compile request handling.

Drives a single compile request through its lifecycle:

    received -> workspace allocated -> compiling -> succeeded | failed

The workspace is staged before the serialization gate is taken, the
compiler runs and its artifact is read back while the gate is held, and the
workspace is removed on every exit path. Every outcome is returned as a
CompileResult; nothing is raised to the caller.
"""

import asyncio
import time
from pathlib import Path

from compile_runner.logging import compile_context, get_logger
from compile_runner.models.compile import (
    CompileFailure,
    CompileRequest,
    CompileResult,
    CompileSuccess,
)
from compile_runner.services.gate import SerializationGate, get_gate
from compile_runner.services.renderer import render
from compile_runner.services.sanitizer import sanitize
from compile_runner.services.toolchain import CompilationError, Toolchain, create_toolchain
from compile_runner.services.workspace import AllocationError, Workspace, WorkspaceManager

logger = get_logger(__name__)

ARTIFACT_READ_ERROR_MESSAGE = "Failed to read compiled output"
INTERNAL_ERROR_MESSAGE = "An internal error occurred while compiling"


class ArtifactReadError(Exception):
    """Raised when a successful compile leaves no readable artifact behind."""

    pass


class CompileService:
    """
    Composition root for compile requests.

    Collaborators default to the configured toolchain, a settings-driven
    workspace manager, and the process-wide serialization gate. Tests pass
    their own.
    """

    def __init__(
        self,
        toolchain: Toolchain | None = None,
        workspace_manager: WorkspaceManager | None = None,
        gate: SerializationGate | None = None,
        render_entrypoint: str | None = None,
    ):
        self.toolchain = toolchain or create_toolchain()
        self.workspace_manager = workspace_manager or WorkspaceManager()
        self._gate = gate
        self.render_entrypoint = render_entrypoint

    @property
    def gate(self) -> SerializationGate:
        """Gate guarding the toolchain; the process-wide one unless injected."""
        return self._gate if self._gate is not None else get_gate()

    async def handle(self, request: CompileRequest) -> CompileResult:
        """
        Compile the request's source and build the caller-facing result.

        Args:
            request: Validated compile request

        Returns:
            CompileSuccess with the rendered document, or CompileFailure
            with a sanitized message. The id always matches the request.
        """
        with compile_context(request.id):
            started = time.monotonic()
            logger.info("compile_request_received", source_length=len(request.source))

            try:
                workspace = await self.workspace_manager.allocate(request.source)
            except AllocationError as e:
                logger.warning("compile_failed", stage="allocate", error=str(e))
                return CompileFailure(id=request.id, error=str(e))
            except Exception:
                logger.error("compile_failed_unexpected", stage="allocate", exc_info=True)
                return CompileFailure(id=request.id, error=INTERNAL_ERROR_MESSAGE)

            try:
                result = await self._compile(request, workspace)
            except Exception:
                logger.error("compile_failed_unexpected", stage="compile", exc_info=True)
                result = CompileFailure(id=request.id, error=INTERNAL_ERROR_MESSAGE)
            finally:
                await workspace.discard()

            logger.info(
                "compile_request_complete",
                outcome="succeeded" if isinstance(result, CompileSuccess) else "failed",
                duration_seconds=round(time.monotonic() - started, 4),
            )
            return result

    async def _compile(self, request: CompileRequest, workspace: Workspace) -> CompileResult:
        try:
            async with self.gate.exclusive():
                await self.toolchain.compile(workspace.input_path, workspace.output_path)
                artifact = await read_artifact(workspace.output_path)
        except CompilationError as e:
            message = sanitize(e.diagnostic, str(workspace.input_path))
            if not message.strip():
                # Toolchain died without saying why.
                message = ARTIFACT_READ_ERROR_MESSAGE
            logger.info("compile_failed", stage="compile", error_type=type(e).__name__)
            return CompileFailure(id=request.id, error=message)
        except ArtifactReadError as e:
            logger.warning("compile_failed", stage="read_artifact", error=str(e))
            return CompileFailure(id=request.id, error=ARTIFACT_READ_ERROR_MESSAGE)

        logger.info("compile_succeeded", artifact_length=len(artifact))
        return CompileSuccess(
            id=request.id,
            output=render(artifact, entrypoint=self.render_entrypoint),
        )


async def read_artifact(output_path: Path) -> str:
    """
    Read the compiled artifact back from the workspace.

    Args:
        output_path: Location the toolchain was told to write to

    Returns:
        Artifact text

    Raises:
        ArtifactReadError: If the file is missing, unreadable, or empty
    """
    try:
        artifact = await asyncio.to_thread(output_path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactReadError(f"Could not read {output_path}: {e}") from e

    if not artifact:
        raise ArtifactReadError(f"Compiled output at {output_path} is empty")
    return artifact


# Global service instance (initialized on first use)
_compile_service: CompileService | None = None


def get_compile_service() -> CompileService:
    """Get or create the CompileService used by the HTTP routes."""
    global _compile_service
    if _compile_service is None:
        _compile_service = CompileService()
    return _compile_service


def reset_compile_service() -> None:
    """Drop the cached CompileService so the next call rebuilds it from settings."""
    global _compile_service
    _compile_service = None
