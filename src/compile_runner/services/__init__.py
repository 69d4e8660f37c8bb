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
Services package for compile-runner.

Provides the compile request handler and the workspace, toolchain, gate,
sanitizer, and renderer components it composes.
"""

from compile_runner.services.compile_service import (
    ArtifactReadError,
    CompileService,
    get_compile_service,
    reset_compile_service,
)
from compile_runner.services.gate import SerializationGate, get_gate, reset_gate
from compile_runner.services.renderer import BASELINE_STYLESHEET, render
from compile_runner.services.sanitizer import sanitize
from compile_runner.services.toolchain import (
    CompilationError,
    CompilationTimeoutError,
    StubToolchain,
    SubprocessToolchain,
    Toolchain,
    ToolchainUnavailableError,
    create_toolchain,
)
from compile_runner.services.workspace import AllocationError, Workspace, WorkspaceManager

__all__ = [
    "CompileService",
    "ArtifactReadError",
    "get_compile_service",
    "reset_compile_service",
    "SerializationGate",
    "get_gate",
    "reset_gate",
    "BASELINE_STYLESHEET",
    "render",
    "sanitize",
    "Toolchain",
    "SubprocessToolchain",
    "StubToolchain",
    "CompilationError",
    "CompilationTimeoutError",
    "ToolchainUnavailableError",
    "create_toolchain",
    "Workspace",
    "WorkspaceManager",
    "AllocationError",
]
