"""Tests for the incremental generation engine."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from cs2ts.config import Config
from cs2ts.engine import Artifact, IncrementalEngine, content_hash
from tests._fixtures.source_builder import SourceTreeBuilder

COLOR_ENUM = 'public enum Color { Red, [Display(Name="Bright Green")] Green, Blue }\n'
CREATE_USER = "public record CreateUser(string Name, int? Age, List<string> Tags);\n"


def _engine(fixed_now: datetime, **kwargs) -> IncrementalEngine:
    return IncrementalEngine(Config(), clock=lambda: fixed_now, **kwargs)


def test_content_hash_is_stable_64_bit() -> None:
    first = content_hash(b"public enum A { X }")
    assert first == content_hash(b"public enum A { X }")
    assert first != content_hash(b"public enum A { Y }")
    assert 0 <= first < 2**64


def test_should_process_records_hash_only_on_change(tmp_path: Path, fixed_now: datetime) -> None:
    source = tmp_path / "Color.cs"
    source.write_text(COLOR_ENUM, encoding="utf-8")
    engine = _engine(fixed_now)

    assert engine.should_process(source) is True
    assert engine.should_process(source) is False

    source.write_text(COLOR_ENUM.replace("Blue", "Navy"), encoding="utf-8")
    assert engine.should_process(source) is True


def test_should_process_unreadable_file_returns_false(tmp_path: Path, fixed_now: datetime) -> None:
    engine = _engine(fixed_now)
    missing = tmp_path / "Missing.cs"

    assert engine.should_process(missing) is False
    assert engine.outputs_for(missing) == []


def test_process_directory_mirrors_tree(source_tree: SourceTreeBuilder, fixed_now: datetime) -> None:
    source_tree.write({"Enums/Color.cs": COLOR_ENUM, "Dtos/CreateUser.cs": CREATE_USER})
    engine = _engine(fixed_now)

    engine.process_path(source_tree.input_root, source_tree.output_root, input_root=source_tree.input_root)

    color = source_tree.output("Enums/Color.ts")
    schema = source_tree.output("Dtos/CreateUser.schema.ts")
    assert color.is_file()
    assert schema.is_file()
    assert "  Green = 'Bright Green',\n" in color.read_text(encoding="utf-8")
    assert "export const CreateUserSchema = z.object({" in schema.read_text(encoding="utf-8")
    assert engine.stats.files_processed == 2
    assert engine.stats.enums_generated == 1
    assert engine.stats.schemas_generated == 1
    assert engine.outputs_for(source_tree.source("Enums/Color.cs")) == [color]


def test_second_run_skips_unchanged_file(source_tree: SourceTreeBuilder, fixed_now: datetime) -> None:
    source_tree.write({"Color.cs": COLOR_ENUM})
    engine = _engine(fixed_now)
    output = source_tree.output("Color.ts")

    engine.process_path(source_tree.input_root, source_tree.output_root)
    first_bytes = output.read_bytes()
    first = engine.stats.snapshot()
    engine.process_path(source_tree.input_root, source_tree.output_root)
    second = engine.stats.since(first)

    assert (first.files_processed, first.files_skipped) == (1, 0)
    assert (second.files_processed, second.files_skipped) == (0, 1)
    assert output.read_bytes() == first_bytes


def test_rebuild_removes_outputs_no_longer_emitted(
    source_tree: SourceTreeBuilder, fixed_now: datetime
) -> None:
    source_tree.write(
        {"Shared.cs": "public enum Size { Small, Large }\npublic enum Shape { Circle, Square }\n"}
    )
    engine = _engine(fixed_now)
    source = source_tree.source("Shared.cs")

    written = engine.process_file(source, source_tree.input_root, source_tree.output_root)
    assert [path.name for path in written] == ["Size.ts", "Shape.ts"]

    source_tree.write({"Shared.cs": "public enum Size { Small, Medium, Large }\n"})
    written = engine.process_file(source, source_tree.input_root, source_tree.output_root)

    assert [path.name for path in written] == ["Shared.ts"]
    assert not source_tree.output("Size.ts").exists()
    assert not source_tree.output("Shape.ts").exists()
    assert engine.outputs_for(source) == [source_tree.output("Shared.ts")]


def test_file_without_declarations_drops_previous_outputs(
    source_tree: SourceTreeBuilder, fixed_now: datetime
) -> None:
    source_tree.write({"Color.cs": COLOR_ENUM})
    engine = _engine(fixed_now)
    source = source_tree.source("Color.cs")
    engine.process_file(source, source_tree.input_root, source_tree.output_root)

    source_tree.write({"Color.cs": "// nothing left here\n"})
    written = engine.process_file(source, source_tree.input_root, source_tree.output_root)

    assert written == []
    assert not source_tree.output("Color.ts").exists()
    assert engine.stats.files_processed == 2


def test_artifacts_are_gated(source_tree: SourceTreeBuilder, fixed_now: datetime) -> None:
    source_tree.write({"Mixed.cs": "public enum Role { Admin }\npublic record CreateAccount(Role Role);\n"})

    enums_only = _engine(fixed_now, artifacts=[Artifact.ENUMS])
    enums_only.process_path(source_tree.input_root, source_tree.output_root)
    assert source_tree.output("Mixed.ts").is_file()
    assert not source_tree.output("Mixed.schema.ts").exists()
    assert enums_only.stats.schemas_generated == 0

    schemas_only = _engine(fixed_now, artifacts=[Artifact.SCHEMAS])
    schemas_only.process_path(source_tree.input_root, source_tree.output_root)
    assert source_tree.output("Mixed.schema.ts").is_file()
    assert schemas_only.stats.enums_generated == 0


def test_directory_walk_applies_extension_and_ignore_filters(
    source_tree: SourceTreeBuilder, fixed_now: datetime
) -> None:
    source_tree.write(
        {
            "Color.cs": COLOR_ENUM,
            "notes.txt": COLOR_ENUM,
            "obj/Generated.cs": "public enum Junk { A }\n",
        }
    )
    engine = IncrementalEngine(Config(ignore=["*/obj/*"]), clock=lambda: fixed_now)

    engine.process_path(source_tree.input_root, source_tree.output_root)

    assert source_tree.output("Color.ts").is_file()
    assert not source_tree.output("notes.ts").exists()
    assert not source_tree.output("obj/Generated.ts").exists()
    assert engine.stats.files_processed == 1


def test_forget_removes_outputs_and_state(source_tree: SourceTreeBuilder, fixed_now: datetime) -> None:
    source_tree.write({"Color.cs": COLOR_ENUM})
    engine = _engine(fixed_now)
    source = source_tree.source("Color.cs")
    engine.process_file(source, source_tree.input_root, source_tree.output_root)

    removed = engine.forget(source)

    assert removed == [source_tree.output("Color.ts")]
    assert not source_tree.output("Color.ts").exists()
    assert engine.outputs_for(source) == []
    # Forgotten inputs are processed again rather than skipped.
    engine.process_file(source, source_tree.input_root, source_tree.output_root)
    assert source_tree.output("Color.ts").is_file()


def test_output_dir_falls_back_to_input_path_outside_root(tmp_path: Path) -> None:
    output_dir = IncrementalEngine.output_dir_for(
        tmp_path / "elsewhere" / "Color.cs", tmp_path / "src", tmp_path / "out"
    )
    assert output_dir == (tmp_path / "elsewhere")

    nested = IncrementalEngine.output_dir_for(
        tmp_path / "src" / "a" / "b" / "Color.cs", tmp_path / "src", tmp_path / "out"
    )
    assert nested == tmp_path / "out" / "a" / "b"


def test_written_outputs_use_fixed_clock(source_tree: SourceTreeBuilder, fixed_now: datetime) -> None:
    source_tree.write({"Color.cs": COLOR_ENUM})
    engine = _engine(fixed_now)

    engine.process_path(source_tree.input_root, source_tree.output_root)

    text = source_tree.output("Color.ts").read_text(encoding="utf-8")
    assert text.startswith("/**\n * Generated with UniTrackCodeGen at 2024-01-02 03:04:05\n")


def test_failed_write_is_retried_on_next_run(
    source_tree: SourceTreeBuilder, fixed_now: datetime
) -> None:
    source_tree.write({"Size.cs": "public enum Size { Small, Large }\n"})
    engine = _engine(fixed_now)
    source = source_tree.source("Size.cs")
    blocker = source_tree.output("Size.ts")
    blocker.mkdir(parents=True)

    with pytest.raises(OSError):
        engine.process_file(source, source_tree.input_root, source_tree.output_root)

    blocker.rmdir()
    written = engine.process_file(source, source_tree.input_root, source_tree.output_root)

    assert written == [blocker]
    assert blocker.is_file()
    assert engine.stats.files_skipped == 0
    assert engine.stats.files_processed == 2


def test_output_owned_by_another_input_is_not_overwritten(
    source_tree: SourceTreeBuilder, fixed_now: datetime
) -> None:
    source_tree.write(
        {
            "A.cs": "public enum Color { Red }\npublic enum Size { Small }\n",
            "Color.cs": "public enum Color { Blue }\n",
        }
    )
    engine = _engine(fixed_now)

    engine.process_path(source_tree.input_root, source_tree.output_root)

    color = source_tree.output("Color.ts")
    assert "  Red = 'Red',\n" in color.read_text(encoding="utf-8")
    assert engine.owner_of(color) == source_tree.source("A.cs").resolve()
    assert engine.outputs_for(source_tree.source("Color.cs")) == []
    assert engine.stats.enums_generated == 2

    # Rebuilding the owner still cleans up its own outputs.
    source_tree.write({"A.cs": "public enum Size { Small, Large }\n"})
    engine.process_file(source_tree.source("A.cs"), source_tree.input_root, source_tree.output_root)
    assert not color.exists()
    assert engine.owner_of(color) is None
