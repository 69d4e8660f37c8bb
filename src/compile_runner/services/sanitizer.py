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
Error message sanitization.

Removes the temporary input path from toolchain diagnostics before they are
returned to a caller.
"""


def sanitize(raw_message: str, input_path: str) -> str:
    """
    Remove every literal occurrence of input_path from raw_message.

    This is plain substring removal, so characters with special meaning in
    patterns are matched as-is. The output path is intentionally left alone.

    Args:
        raw_message: Diagnostic text captured from the toolchain
        input_path: Temporary input file path to redact

    Returns:
        The message with the path removed
    """
    if not input_path:
        return raw_message
    return raw_message.replace(input_path, "")
