"""Jinja environment and the shared generated-file header."""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..config import Config

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@lru_cache(maxsize=None)
def get_environment(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["js_string"] = js_string
    return env


def js_string(value: str) -> str:
    """Quote ``value`` as a single-quoted JavaScript string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def render_header(config: Config, file_type: str, *, now: Optional[datetime] = None) -> str:
    """Render the comment block that opens every generated file."""
    timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    template = get_environment().get_template("header.j2")
    return template.render(
        timestamp=timestamp,
        file_type=file_type,
        input_dir=_describe_dir(config.input_dir),
        output_dir=_describe_dir(config.output_dir),
        extensions=", ".join(config.extensions),
        localization="enabled" if config.localized else "disabled",
    )


def documentation_lines(documentation: Optional[str]) -> List[str]:
    if not documentation:
        return []
    return [line.strip() for line in documentation.splitlines() if line.strip()]


def _describe_dir(path: Optional[Path]) -> str:
    return str(path) if path is not None else "default"


__all__ = ["TEMPLATES_DIR", "documentation_lines", "get_environment", "js_string", "render_header"]
