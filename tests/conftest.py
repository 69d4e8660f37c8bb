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
Pytest configuration and fixtures.

Provides a fake toolchain that records how many compiles overlap, a
CompileService wired to it, and an HTTP test client that uses that service.

**Note on async components:**
The service layer is async. Coroutine tests are marked with
`@pytest.mark.asyncio` and run on a fresh event loop provided by
pytest-asyncio; async fixtures use `@pytest_asyncio.fixture`. The
process-wide serialization gate is recreated for every test because an
asyncio.Lock belongs to the event loop that first waited on it.
"""

import asyncio
import sys
import textwrap
import threading
import time
from pathlib import Path
from unittest.mock import patch

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from compile_runner.app.main import create_app
from compile_runner.services.compile_service import CompileService, reset_compile_service
from compile_runner.services.gate import reset_gate
from compile_runner.services.toolchain import CompilationError, Toolchain
from compile_runner.services.workspace import Workspace, WorkspaceManager

# Markers understood by FakeToolchain and the fake compiler script
SYNTAX_ERROR_MARKER = "SYNTAX_ERROR"
SILENT_CRASH_MARKER = "SILENT_CRASH"
NO_OUTPUT_MARKER = "NO_OUTPUT"
EXPLODE_MARKER = "EXPLODE"


class FakeToolchain(Toolchain):
    """
    In-process toolchain double.

    Compiles any source to `artifact` unless the source contains one of the
    marker strings above. Tracks how many compiles run at the same time.
    """

    def __init__(self, artifact: str = "console.log(1)", delay: float = 0.01):
        self.artifact = artifact
        self.delay = delay
        self.running = 0
        self.max_running = 0
        self.calls: list[tuple[Path, Path]] = []

    async def compile(self, input_path: Path, output_path: Path) -> None:
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        self.calls.append((input_path, output_path))
        try:
            await asyncio.sleep(self.delay)
            source = input_path.read_text(encoding="utf-8")
            if SYNTAX_ERROR_MARKER in source:
                raise CompilationError(f"Error at {input_path}: unexpected token")
            if SILENT_CRASH_MARKER in source:
                raise CompilationError("")
            if EXPLODE_MARKER in source:
                raise RuntimeError(f"toolchain exploded while reading {input_path}")
            if NO_OUTPUT_MARKER in source:
                return
            output_path.write_text(self.artifact, encoding="utf-8")
        finally:
            self.running -= 1


FAKE_COMPILER_SCRIPT = textwrap.dedent(
    """
    import os
    import sys
    import time

    output = next(a.split("=", 1)[1] for a in sys.argv[1:] if a.startswith("--output="))
    source_path = sys.argv[-1]
    state_dir = os.environ["FAKE_COMPILER_STATE"]

    marker = os.path.join(state_dir, "running-%d" % os.getpid())
    if any(name.startswith("running-") for name in os.listdir(state_dir)):
        open(os.path.join(state_dir, "overlap-%d" % os.getpid()), "w").close()
    open(marker, "w").close()
    try:
        time.sleep(float(os.environ.get("FAKE_COMPILER_DELAY", "0.05")))
        with open(source_path, encoding="utf-8") as handle:
            source = handle.read()
        if "SYNTAX_ERROR" in source:
            sys.stderr.write("Error at %s: unexpected token" % source_path)
            sys.exit(1)
        if "SILENT_CRASH" in source:
            sys.exit(3)
        if "HANG" in source:
            time.sleep(30)
        with open(output, "w", encoding="utf-8") as handle:
            handle.write("console.log(1)")
    finally:
        os.remove(marker)
    """
)


@pytest.fixture(autouse=True)
def fresh_gate():
    """Give every test its own serialization gate and compile service."""
    reset_compile_service()
    gate = reset_gate()
    yield gate
    reset_compile_service()
    reset_gate()


@pytest_asyncio.fixture
async def idle_gate(fresh_gate):
    """Yield the fresh gate and check that the test left it released."""
    yield fresh_gate
    assert not fresh_gate.busy
    assert fresh_gate.active == 0


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    """Directory that holds every temp file created during the test."""
    directory = tmp_path / "workspaces"
    directory.mkdir()
    return directory


@pytest_asyncio.fixture
async def allocated_workspace(workspace_dir: Path):
    """Allocate a workspace holding `main = 1` and discard it after the test."""
    workspace = await WorkspaceManager(directory=str(workspace_dir)).allocate("main = 1")
    yield workspace
    await workspace.discard()


@pytest.fixture
def stall_allocation():
    """
    Return a function that makes a WorkspaceManager pause before creating files.

    The returned event is set once the worker thread has started, so a test
    can cancel the caller while allocation is still in flight.
    """

    def install(manager: WorkspaceManager, delay: float = 0.2) -> threading.Event:
        started = threading.Event()
        allocate = manager._allocate_sync

        def allocate_slowly(source: str) -> Workspace:
            started.set()
            time.sleep(delay)
            return allocate(source)

        manager._allocate_sync = allocate_slowly
        return started

    return install


@pytest.fixture
def fake_toolchain() -> FakeToolchain:
    """Provide a FakeToolchain producing `console.log(1)`."""
    return FakeToolchain()


@pytest.fixture
def compile_service(fake_toolchain: FakeToolchain, workspace_dir: Path) -> CompileService:
    """CompileService using the fake toolchain and an isolated workspace directory."""
    return CompileService(
        toolchain=fake_toolchain,
        workspace_manager=WorkspaceManager(directory=str(workspace_dir)),
    )


@pytest.fixture
def fake_compiler(tmp_path: Path, monkeypatch) -> list[str]:
    """
    Install a fake compiler script and return the argv prefix that runs it.

    The script records overlapping runs as `overlap-*` files in the
    directory returned by `fake_compiler_state`.
    """
    script = tmp_path / "fake_compiler.py"
    script.write_text(FAKE_COMPILER_SCRIPT, encoding="utf-8")
    state_dir = tmp_path / "compiler-state"
    state_dir.mkdir()
    monkeypatch.setenv("FAKE_COMPILER_STATE", str(state_dir))
    return [sys.executable, str(script)]


@pytest.fixture
def fake_compiler_state(tmp_path: Path, fake_compiler: list[str]) -> Path:
    """State directory written by the fake compiler script."""
    return tmp_path / "compiler-state"


@pytest.fixture
def test_client(compile_service: CompileService) -> TestClient:
    """
    Create a test client whose compile route uses the fake toolchain.

    Returns:
        TestClient instance for making test requests
    """
    with patch(
        "compile_runner.app.routes.compile.get_compile_service",
        return_value=compile_service,
    ):
        app = create_app()
        yield TestClient(app)


@pytest.fixture
def test_client_with_error_routes(compile_service: CompileService) -> TestClient:
    """
    Create a test client with additional routes that raise.

    Returns:
        TestClient instance with error test endpoints
    """
    with patch(
        "compile_runner.app.routes.compile.get_compile_service",
        return_value=compile_service,
    ):
        app = create_app()

        @app.get("/test-error")
        async def test_error_endpoint():
            raise ValueError("Test exception at /tmp/compile-secret")

        @app.get("/test-error-request-id")
        async def test_error_request_id():
            raise Exception("Test error for request_id reuse")

        yield TestClient(app)
