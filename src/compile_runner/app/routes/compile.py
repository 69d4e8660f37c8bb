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
Compile API endpoint.

Accepts a source snippet and returns either a rendered document or a
sanitized compiler error.
"""

import json
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import ValidationError

from compile_runner.config import settings
from compile_runner.logging import get_logger
from compile_runner.models.compile import (
    CompileFailure,
    CompileRequest,
    CompileResult,
    CompileSuccess,
)
from compile_runner.services.compile_service import get_compile_service

router = APIRouter()
logger = get_logger(__name__)


def _serializable_validation_errors(error: ValidationError) -> list[dict[str, Any]]:
    """Reduce pydantic validation errors to JSON-safe dictionaries."""
    serializable_errors = []
    for item in error.errors():
        serializable_error: dict[str, Any] = {
            "loc": item.get("loc", []),
            "msg": item.get("msg", ""),
            "type": item.get("type", ""),
        }
        if "ctx" in item:
            try:
                json.dumps(item["ctx"])
                serializable_error["ctx"] = item["ctx"]
            except (TypeError, ValueError):
                pass
        serializable_errors.append(serializable_error)
    return serializable_errors


async def parse_compile_request(request: Request) -> CompileRequest:
    """
    Validate an incoming compile request body.

    Args:
        request: FastAPI request object

    Returns:
        Validated CompileRequest

    Raises:
        HTTPException: 413 if the body is too large, 422 if it is malformed
    """
    content_length = request.headers.get("content-length")
    if content_length:
        try:
            body_size = int(content_length)
        except ValueError:
            body_size = 0
        if body_size > settings.max_request_body_size_bytes:
            logger.warning(
                "Request body size exceeds limit",
                body_size=body_size,
                max_size=settings.max_request_body_size_bytes,
            )
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=(
                    "Request body exceeds maximum size limit of "
                    f"{settings.max_request_body_size_bytes} bytes"
                ),
            )

    body_bytes = await request.body()
    if len(body_bytes) > settings.max_request_body_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=(
                "Request body exceeds maximum size limit of "
                f"{settings.max_request_body_size_bytes} bytes"
            ),
        )

    try:
        body = json.loads(body_bytes)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid JSON: {str(e)}",
        ) from None

    try:
        return CompileRequest.model_validate(body)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=_serializable_validation_errors(e),
        ) from None


@router.post(
    "/compile",
    response_model=CompileSuccess | CompileFailure,
    responses={
        200: {
            "description": "Compilation finished; exactly one of output or error is present",
            "content": {
                "application/json": {
                    "examples": {
                        "success": {
                            "value": {"id": "snippet-1", "output": "<!DOCTYPE HTML>..."}
                        },
                        "failure": {
                            "value": {"id": "snippet-1", "error": "Error at : unexpected token"}
                        },
                    }
                }
            },
        },
        413: {"description": "Request body too large"},
        422: {"description": "Validation error"},
    },
)
async def compile_source(request: Request) -> CompileResult:
    """
    Compile a source snippet.

    Compiler failures are part of the normal response, not HTTP errors:
    the caller always receives `{id, output}` or `{id, error}`.

    Args:
        request: FastAPI request object

    Returns:
        CompileSuccess or CompileFailure echoing the request id

    Raises:
        HTTPException: 413 or 422 when the request itself is invalid
    """
    compile_request = await parse_compile_request(request)

    service = get_compile_service()
    return await service.handle(compile_request)
