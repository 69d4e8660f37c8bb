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
Health check endpoints.

Provides a readiness and liveness check, plus a toolchain status endpoint
that is only enabled in development.
"""

from fastapi import APIRouter, HTTPException, status

from compile_runner.config import settings
from compile_runner.logging import get_logger
from compile_runner.services.gate import get_gate

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Dictionary with status "ok"
    """
    logger.debug("Health check requested")
    return {"status": "ok"}


@router.get("/debug/toolchain")
async def debug_toolchain_status() -> dict[str, str | int | bool]:
    """
    Report toolchain configuration and gate activity.

    Only available in development environments, since it describes the
    server's compiler setup.

    Raises:
        HTTPException: 403 if not in development environment
    """
    if not settings.is_development:
        logger.warning(
            "Debug toolchain endpoint accessed in non-development environment",
            app_env=settings.app_env,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Debug endpoints are only enabled in development environment",
        )

    gate = get_gate()
    report: dict[str, str | int | bool] = dict(settings.validate_toolchain_config())
    report["gate_busy"] = gate.busy
    report["gate_acquisitions"] = gate.acquisitions
    return report
