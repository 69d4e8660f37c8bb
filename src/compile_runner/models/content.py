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
Content export models.

Describes the lesson manifest read by the offline export command and the
per-topic documents it writes.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LessonConfig(BaseModel):
    """
    One entry of the lessons manifest.

    Attributes:
        title: Display title of the lesson topic
        location: Directory holding the item documents, also the output file name
        items: Ordered item slugs, each resolving to `<location>/<slug>.md`
    """

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., description="Lesson title")
    location: str = Field(..., description="Content subdirectory and output name", min_length=1)
    items: list[str] = Field(default_factory=list, description="Ordered item slugs")

    @field_validator("location")
    @classmethod
    def validate_location(cls, v: str) -> str:
        """Reject locations that would escape the content or output directory."""
        if v.strip() in ("", ".", "..") or "/" in v or "\\" in v:
            raise ValueError(f"Invalid lesson location '{v}'")
        return v


class TopicDocument(BaseModel):
    """
    Document written for one lesson topic.

    Items keep whatever front matter keys their source declared, plus a
    `content` key holding the body text.
    """

    title: str
    items: list[dict[str, Any]] = Field(default_factory=list)
