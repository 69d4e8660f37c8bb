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
Compile API request and result models.

Defines the external API contract for the compile endpoint.
"""

from typing import TypeAlias

from pydantic import BaseModel, ConfigDict, Field


class CompileRequest(BaseModel):
    """
    Request model for the compile API endpoint.

    The id is caller-defined and opaque: it is echoed back unchanged and
    never interpreted. The source is passed to the toolchain as-is.

    Attributes:
        id: Caller-supplied correlation identifier
        source: Full text of the program to compile
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        description="Caller-supplied identifier echoed back in the result",
    )
    source: str = Field(
        ...,
        description="Source code to compile",
    )


class CompileSuccess(BaseModel):
    """
    Result of a compilation that produced a runnable artifact.

    Attributes:
        id: Identifier echoed from the request
        output: Self-contained HTML document embedding the compiled program
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Identifier echoed from the request")
    output: str = Field(..., description="Rendered HTML document")


class CompileFailure(BaseModel):
    """
    Result of a compilation that did not produce an artifact.

    Attributes:
        id: Identifier echoed from the request
        error: Toolchain diagnostic with internal paths removed, or a generic message
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Identifier echoed from the request")
    error: str = Field(..., description="Sanitized error message")


CompileResult: TypeAlias = CompileSuccess | CompileFailure
