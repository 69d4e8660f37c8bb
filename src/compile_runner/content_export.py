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
Offline content export.

Turns the lesson content tree into the static JSON documents served next to
the client. This runs as a build step and is never called by the compile
service.

Layout read from CONTENT_DIR:

    _data/lessons.yaml         list of {title, location, items}
    <location>/<item>.md       front matter + markdown body per lesson item
    *.md                       standalone info pages

Layout written to API_DIR:

    lessons/<location>         JSON {title, items: [{...front matter, content}]}
    info/<page>                markdown body of each info page

Examples:

    compile-runner-export content/                       # writes to ../client/public/api

    compile-runner-export content/ --api-dir build/api   # explicit output directory
"""

import json
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from pydantic import ValidationError

from compile_runner.logging import get_logger
from compile_runner.models.content import LessonConfig, TopicDocument

logger = get_logger(__name__)

FRONT_MATTER_DELIMITER = "---"
LESSONS_MANIFEST = Path("_data") / "lessons.yaml"


class ContentExportError(Exception):
    """Raised when the content tree cannot be exported."""

    pass


def split_front_matter(text: str) -> tuple[str | None, str]:
    """
    Split a document into its front matter block and body.

    The body is everything after the second delimiter with the remaining
    delimiters dropped, then stripped. A document with fewer than two
    delimiters has no front matter and is returned whole.

    Args:
        text: Raw document text

    Returns:
        Tuple of (front matter text or None, body)
    """
    pieces = text.split(FRONT_MATTER_DELIMITER)
    if len(pieces) < 3:
        return None, text.strip()
    return pieces[1], "".join(pieces[2:]).strip()


def without_front_matter(text: str) -> str:
    """Return the document body with the leading front matter block removed."""
    return split_front_matter(text)[1]


def load_lessons_manifest(content_dir: Path) -> list[LessonConfig]:
    """
    Read and validate the lessons manifest.

    Raises:
        ContentExportError: If the manifest is missing or malformed
    """
    manifest_path = content_dir / LESSONS_MANIFEST
    try:
        raw = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ContentExportError(f"Cannot read lessons manifest {manifest_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ContentExportError(f"Invalid YAML in {manifest_path}: {e}") from e

    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ContentExportError(
            f"Lessons manifest {manifest_path} must be a list, got {type(raw).__name__}"
        )

    try:
        return [LessonConfig.model_validate(entry) for entry in raw]
    except ValidationError as e:
        raise ContentExportError(f"Invalid lesson entry in {manifest_path}: {e}") from e


def load_lesson_item(path: Path) -> dict[str, Any]:
    """
    Load one lesson item: its front matter keys plus a `content` body.

    Raises:
        ContentExportError: If the file is missing or its front matter is invalid
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ContentExportError(f"Cannot read lesson item {path}: {e}") from e

    front_matter, body = split_front_matter(text)
    data: dict[str, Any] = {}
    if front_matter is not None:
        try:
            parsed = yaml.safe_load(front_matter)
        except yaml.YAMLError as e:
            raise ContentExportError(f"Invalid front matter in {path}: {e}") from e
        if isinstance(parsed, dict):
            data.update(parsed)
        elif parsed is not None:
            raise ContentExportError(f"Front matter in {path} must be a mapping")

    data["content"] = body
    return data


def export_lessons(content_dir: Path, api_dir: Path) -> list[Path]:
    """
    Write one JSON document per lesson topic.

    Returns:
        Paths of the written documents, in manifest order
    """
    lessons_dir = api_dir / "lessons"
    lessons_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for lesson in load_lessons_manifest(content_dir):
        document = TopicDocument(
            title=lesson.title,
            items=[
                load_lesson_item(content_dir / lesson.location / f"{item}.md")
                for item in lesson.items
            ],
        )
        target = lessons_dir / lesson.location
        target.write_text(
            json.dumps(
                document.model_dump(),
                ensure_ascii=False,
                separators=(",", ":"),
                default=str,
            ),
            encoding="utf-8",
        )
        logger.info("lesson_exported", location=lesson.location, items=len(lesson.items))
        written.append(target)
    return written


def export_info_pages(content_dir: Path, api_dir: Path) -> list[Path]:
    """
    Write the body of every top-level markdown page.

    Returns:
        Paths of the written pages, sorted by name
    """
    info_dir = api_dir / "info"
    info_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for page in sorted(content_dir.glob("*.md")):
        target = info_dir / page.stem
        target.write_text(without_front_matter(page.read_text(encoding="utf-8")), encoding="utf-8")
        logger.info("info_page_exported", page=page.stem)
        written.append(target)
    return written


def export_content(content_dir: Path, api_dir: Path) -> dict[str, list[Path]]:
    """
    Export lessons and info pages from content_dir into api_dir.

    Raises:
        ContentExportError: If the content tree is incomplete or malformed
    """
    if not content_dir.is_dir():
        raise ContentExportError(f"Content directory {content_dir} does not exist")

    return {
        "lessons": export_lessons(content_dir, api_dir),
        "info": export_info_pages(content_dir, api_dir),
    }


def default_api_dir(content_dir: Path) -> Path:
    """API directory used when none is given: a sibling client's public/api."""
    return content_dir.resolve().parent / "client" / "public" / "api"


app = typer.Typer(
    help="Export lesson content as static JSON documents for the client",
    add_completion=False,
)


@app.command()
def export(
    content_dir: Annotated[
        Path,
        typer.Argument(help="Content directory containing _data/lessons.yaml"),
    ],
    api_dir: Annotated[
        Path | None,
        typer.Option(
            "--api-dir",
            "-o",
            help="Output directory (default: <content parent>/client/public/api)",
        ),
    ] = None,
):
    """
    Export lessons and info pages.
    """
    target = api_dir if api_dir is not None else default_api_dir(content_dir)
    try:
        written = export_content(content_dir, target)
    except ContentExportError as e:
        typer.secho(f"Export failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from None

    typer.echo(
        f"Exported {len(written['lessons'])} lessons and "
        f"{len(written['info'])} info pages to {target}"
    )


if __name__ == "__main__":
    app()
