"""TypeScript string enum rendering."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .templates import documentation_lines, get_environment, render_header
from ..config import Config
from ..models import EnumIR

FILE_TYPE = "Enum"


def render_enum(enum: EnumIR, config: Config, *, now: Optional[datetime] = None) -> str:
    """Render ``enum`` as ``export enum`` keyed on display names where present."""
    body = get_environment().get_template("enum.ts.j2").render(
        name=enum.name,
        values=enum.values,
        documentation_lines=documentation_lines(enum.documentation),
    )
    return render_header(config, FILE_TYPE, now=now) + body


__all__ = ["render_enum"]
