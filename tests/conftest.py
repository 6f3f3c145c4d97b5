from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from tests._fixtures.source_builder import SourceTreeBuilder


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTreeBuilder:
    """Provide a C# source tree rooted at the pytest tmp_path."""
    return SourceTreeBuilder(tmp_path)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 2, 3, 4, 5)
