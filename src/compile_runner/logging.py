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
Structured logging for the compile runner.

Every line carries the HTTP request id (bound by RequestIdMiddleware) and,
while a compile is being handled, the caller's compile id, so the workspace,
gate, and toolchain events of one compile can be grouped without each
component passing the id around. Compiler output and staged source can be
arbitrarily large; such fields are cut down before rendering.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from compile_runner.config import settings

# Cloud Logging severities keyed by structlog level name
SEVERITY_BY_LEVEL = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}

# Fields that may hold compiler output or user source
BULKY_FIELDS = ("diagnostic", "source", "stdout", "stderr", "argv")
MAX_FIELD_LENGTH = 2000


def add_severity_field(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add a Cloud Logging `severity` matching the entry's level, DEFAULT if unknown."""
    level = str(event_dict.get("level", "")).lower()
    event_dict["severity"] = SEVERITY_BY_LEVEL.get(level, "DEFAULT")
    return event_dict


def truncate_bulky_fields(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Cut compiler output and source fields down to MAX_FIELD_LENGTH characters.

    Lists (such as argv) are rendered to a single string first. The original
    length is kept in `<field>_truncated_from`.
    """
    for field in BULKY_FIELDS:
        value = event_dict.get(field)
        if value is None:
            continue
        text = " ".join(map(str, value)) if isinstance(value, (list, tuple)) else str(value)
        if len(text) > MAX_FIELD_LENGTH:
            event_dict[field] = text[:MAX_FIELD_LENGTH] + "..."
            event_dict[f"{field}_truncated_from"] = len(text)
    return event_dict


def build_processors(json_output: bool) -> list[Processor]:
    """
    Assemble the processor chain.

    Args:
        json_output: Render JSON lines with severity instead of console output

    Returns:
        Processors in the order structlog applies them
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        truncate_bulky_fields,
    ]
    if json_output:
        processors += [add_severity_field, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configure stdlib logging and structlog.

    Args:
        level: Log level name. Defaults to LOG_LEVEL.
        json_output: JSON or console output. Defaults to LOG_JSON.
    """
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    structlog.configure(
        processors=build_processors(settings.log_json if json_output is None else json_output),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def compile_context(compile_id: str) -> Iterator[None]:
    """
    Bind the caller's compile id to every log line emitted inside the block.

    The binding is undone on exit, so the request id bound by the middleware
    stays and the next compile on the same task starts clean.
    """
    with structlog.contextvars.bound_contextvars(compile_id=compile_id):
        yield


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


configure_logging()
