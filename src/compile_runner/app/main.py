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
FastAPI application for the compile runner.

`create_app()` wires the request-id and error middleware, optional CORS, and
the health and compile routers. Startup reports whether the configured
toolchain and workspace directory are usable, since a bad setup only shows
up later as failed compiles.
"""

import os
import shutil
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from compile_runner.app.routes import compile, health
from compile_runner.config import settings
from compile_runner.logging import get_logger
from compile_runner.middleware.error_handler import ErrorHandlingMiddleware
from compile_runner.middleware.request_id import RequestIdMiddleware

logger = get_logger(__name__)


def check_toolchain_setup() -> dict[str, str]:
    """
    Extend the settings report with whether the compiler binary resolves.

    Returns:
        The `validate_toolchain_config()` dict plus a `binary` key:
        'found', 'not_found', or 'skipped' in stub mode
    """
    report = settings.validate_toolchain_config()
    if settings.toolchain_stub_mode:
        report["binary"] = "skipped"
    else:
        report["binary"] = "found" if shutil.which(settings.toolchain_command) else "not_found"
    return report


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log the service and toolchain configuration on startup."""
    report = check_toolchain_setup()
    logger.info(
        "service_starting",
        version=settings.app_version,
        environment=settings.app_env,
        port=settings.port,
        toolchain_command=settings.toolchain_command,
        toolchain_flags=settings.toolchain_flags_list,
        **{f"toolchain_{key}": value for key, value in report.items()},
    )
    if report["binary"] == "not_found":
        logger.warning(
            "toolchain_binary_not_found",
            toolchain_command=settings.toolchain_command,
        )
    if report["workspace_dir"] in ("missing", "not_a_directory"):
        logger.warning(
            "workspace_dir_unusable",
            workspace_dir=settings.workspace_dir,
            status=report["workspace_dir"],
        )
    yield
    logger.info("service_stopping")


def add_cors(app: FastAPI, origins: list[str]) -> None:
    """Allow the given origins; credentials only when no wildcard is present."""
    logger.info("Configuring CORS", origins=origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Compile Runner Service",
        description="Single-flight compilation service returning runnable HTML documents",
        version=settings.app_version,
        lifespan=lifespan,
    )

    # Starlette wraps in reverse order: RequestIdMiddleware runs first and
    # sets request.state.request_id before ErrorHandlingMiddleware sees it.
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    if settings.cors_origins_list:
        add_cors(app, settings.cors_origins_list)

    app.include_router(health.router, tags=["health"])
    app.include_router(compile.router, tags=["compile"])

    @app.get("/version", tags=["info"])
    async def version_info() -> dict[str, str]:
        """Return the service version, git SHA (GIT_SHA or the version), and environment."""
        return {
            "version": settings.app_version,
            "git_sha": os.getenv("GIT_SHA", settings.app_version),
            "environment": settings.app_env,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "compile_runner.app.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
