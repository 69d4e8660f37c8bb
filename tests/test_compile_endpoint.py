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
Tests for the compile API endpoint.

Validates request validation, result shape, and error handling for /compile.
"""

import json
import uuid
from unittest.mock import patch

from fastapi.testclient import TestClient


def test_compile_success_returns_id_and_output(test_client: TestClient) -> None:
    """Test that a valid snippet returns {id, output} with HTTP 200."""
    response = test_client.post("/compile", json={"id": "lesson-3", "source": "main = 1"})

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"id", "output"}
    assert data["id"] == "lesson-3"
    assert "console.log(1)" in data["output"]
    assert "Elm.Main.fullscreen();" in data["output"]
    assert data["output"].lstrip().startswith("<!DOCTYPE HTML>")


def test_compile_failure_returns_id_and_error(test_client: TestClient, fake_toolchain) -> None:
    """Test that a compile error returns {id, error} with HTTP 200."""
    response = test_client.post("/compile", json={"id": "lesson-4", "source": "SYNTAX_ERROR"})

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"id", "error"}
    assert data["id"] == "lesson-4"
    assert data["error"] == "Error at : unexpected token"
    input_path, output_path = fake_toolchain.calls[0]
    assert str(input_path) not in response.text
    assert str(output_path) not in response.text


def test_compile_unexpected_error_is_generic(test_client: TestClient) -> None:
    """Test that an unexpected toolchain exception returns a generic error body."""
    response = test_client.post("/compile", json={"id": "x", "source": "EXPLODE"})

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "x"
    assert "exploded" not in data["error"]


def test_compile_failure_then_success(test_client: TestClient) -> None:
    """Test that a failing request does not break the next one."""
    first = test_client.post("/compile", json={"id": "1", "source": "SYNTAX_ERROR"})
    second = test_client.post("/compile", json={"id": "2", "source": "main = 1"})

    assert "error" in first.json()
    assert second.json()["id"] == "2"
    assert "output" in second.json()


def test_compile_accepts_empty_source(test_client: TestClient) -> None:
    """Test that an empty source is passed through to the toolchain."""
    response = test_client.post("/compile", json={"id": "empty", "source": ""})

    assert response.status_code == 200
    assert response.json()["id"] == "empty"


def test_compile_missing_fields_rejected(test_client: TestClient) -> None:
    """Test that missing id or source returns 422."""
    for body in ({"source": "main = 1"}, {"id": "x"}, {}):
        response = test_client.post("/compile", json=body)
        assert response.status_code == 422


def test_compile_wrong_types_rejected(test_client: TestClient) -> None:
    """Test that non-string fields are rejected."""
    response = test_client.post("/compile", json={"id": 5, "source": ["main"]})

    assert response.status_code == 422
    detail = response.json()["detail"]
    locs = {tuple(item["loc"]) for item in detail}
    assert ("id",) in locs
    assert ("source",) in locs


def test_compile_invalid_json_rejected(test_client: TestClient) -> None:
    """Test that a non-JSON body returns 422."""
    response = test_client.post(
        "/compile",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 422
    assert "Invalid JSON" in response.json()["detail"]


def test_compile_body_too_large(test_client: TestClient) -> None:
    """Test that bodies over the configured limit return 413."""
    with patch("compile_runner.config.settings.max_request_body_size_bytes", 64):
        response = test_client.post(
            "/compile", json={"id": "big", "source": "x" * 200}
        )

    assert response.status_code == 413


def test_compile_response_has_request_id_header(test_client: TestClient) -> None:
    """Test that the correlation header is returned on compile responses."""
    request_id = str(uuid.uuid4())

    response = test_client.post(
        "/compile",
        json={"id": "x", "source": "main = 1"},
        headers={"X-Request-Id": request_id},
    )

    assert response.headers["X-Request-Id"] == request_id


def test_compile_id_not_confused_with_request_id(test_client: TestClient) -> None:
    """Test that the body id is echoed even when it looks like a header value."""
    response = test_client.post(
        "/compile",
        json={"id": "not-a-uuid", "source": "main = 1"},
        headers={"X-Request-Id": str(uuid.uuid4())},
    )

    assert response.json()["id"] == "not-a-uuid"


def test_compile_route_in_openapi(test_client: TestClient) -> None:
    """Test that /compile is documented in the OpenAPI schema."""
    schema = test_client.get("/openapi.json").json()

    assert "/compile" in schema["paths"]
    assert "post" in schema["paths"]["/compile"]
    json.dumps(schema)


def test_compile_route_leaves_lifecycle_logging_to_service(test_client: TestClient) -> None:
    """Test that a valid request is logged by the service only, not again by the route."""
    with patch("compile_runner.app.routes.compile.logger") as route_logger:
        response = test_client.post("/compile", json={"id": "a", "source": "main = 1"})

    assert response.status_code == 200
    assert route_logger.method_calls == []
