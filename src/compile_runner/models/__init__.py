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
Models package for compile-runner service.

Exports compile API contract models and content export models.
"""

import uuid

from compile_runner.models.compile import (
    CompileFailure,
    CompileRequest,
    CompileResult,
    CompileSuccess,
)
from compile_runner.models.content import LessonConfig, TopicDocument

__all__ = [
    "CompileRequest",
    "CompileResult",
    "CompileSuccess",
    "CompileFailure",
    "LessonConfig",
    "TopicDocument",
    "generate_request_id",
]


def generate_request_id() -> str:
    """
    Generate a unique request ID using UUID4.

    Returns:
        String representation of a UUID4
    """
    return str(uuid.uuid4())
