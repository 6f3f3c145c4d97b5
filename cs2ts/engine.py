"""Incremental generation engine: hashing, output tracking and tree walks."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .config import Config
from .csharp import parse_source
from .logging import get_logger
from .models import DtoIR, EnumIR, ParseResult, ProcessingStats
from .rendering import render_enum, render_schema

ENUM_SUFFIX = ".ts"
SCHEMA_SUFFIX = ".schema.ts"


class Artifact(str, Enum):
    """Kinds of files the engine can emit."""

    ENUMS = "enums"
    SCHEMAS = "schemas"


ALL_ARTIFACTS: FrozenSet[Artifact] = frozenset(Artifact)


@dataclass
class TrackedInput:
    """Everything the engine remembers about one input file."""

    content_hash: Optional[int] = None
    outputs: List[Path] = field(default_factory=list)


def content_hash(data: bytes) -> int:
    """Return a 64-bit hash of ``data``."""
    digest = hashlib.blake2b(data, digest_size=8).digest()
    return int.from_bytes(digest, "big")


class IncrementalEngine:
    """Turns C# inputs into TypeScript outputs, skipping unchanged files.

    State is keyed by canonical (resolved) input path and lives as long as
    the engine instance; watch mode keeps a single engine for the session.
    """

    def __init__(
        self,
        config: Config,
        *,
        artifacts: Iterable[Artifact] = ALL_ARTIFACTS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.artifacts = frozenset(artifacts)
        self.stats = ProcessingStats()
        self._clock = clock or datetime.now
        self._entries: Dict[Path, TrackedInput] = {}
        # output path -> canonical input that wrote it
        self._owners: Dict[Path, Path] = {}
        self.logger = get_logger("engine")

    # ------------------------------------------------------------------
    # Incremental state

    def should_process(self, path: Path) -> bool:
        """Return True when ``path`` changed since it was last seen.

        The new hash is recorded on True. Unreadable files return False and
        leave the state untouched.
        """
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            self.logger.debug("Cannot read %s: %s", path, exc)
            return False

        digest = content_hash(data)
        entry = self._entries.setdefault(_canonical(path), TrackedInput())
        if entry.content_hash == digest:
            return False
        entry.content_hash = digest
        return True

    def register_output(self, input_path: Path, output_path: Path) -> None:
        key = _canonical(input_path)
        entry = self._entries.setdefault(key, TrackedInput())
        entry.outputs.append(Path(output_path))
        self._owners[_canonical(output_path)] = key

    def owner_of(self, output_path: Path) -> Optional[Path]:
        """Return the input that last wrote ``output_path``, if any."""
        return self._owners.get(_canonical(output_path))

    def invalidate(self, input_path: Path) -> None:
        """Forget the recorded hash so the next run processes ``input_path``."""
        entry = self._entries.get(_canonical(input_path))
        if entry is not None:
            entry.content_hash = None

    def outputs_for(self, input_path: Path) -> List[Path]:
        entry = self._entries.get(_canonical(input_path))
        return list(entry.outputs) if entry else []

    def cleanup_outputs(self, input_path: Path) -> List[Path]:
        """Delete every output previously written for ``input_path``.

        Deletion is best effort: failures are logged and the path is
        forgotten either way.
        """
        entry = self._entries.get(_canonical(input_path))
        if entry is None:
            return []
        removed: List[Path] = []
        for output in entry.outputs:
            self._owners.pop(_canonical(output), None)
            if not output.exists():
                continue
            try:
                output.unlink()
            except OSError as exc:
                self.logger.warning("Could not remove stale output %s: %s", output, exc)
                continue
            self.logger.info("Removed stale output %s", output)
            removed.append(output)
        entry.outputs.clear()
        return removed

    def forget(self, input_path: Path) -> List[Path]:
        """Drop ``input_path`` after it was deleted, removing its outputs."""
        removed = self.cleanup_outputs(input_path)
        self._entries.pop(_canonical(input_path), None)
        return removed

    # ------------------------------------------------------------------
    # Processing

    def process_file(
        self,
        input_path: Path,
        input_root: Path,
        output_root: Path,
        config: Config | None = None,
    ) -> List[Path]:
        """Regenerate the outputs for one input file.

        Returns the paths written (empty when the file was skipped or
        declares nothing). ``OSError`` from reads and writes propagates and
        leaves the file marked as changed, so the next run retries it.
        Outputs already owned by another input are left alone.
        """
        config = config or self.config
        input_path = Path(input_path)
        if not self.should_process(input_path):
            self.logger.debug("Skipping unchanged %s", input_path)
            self.stats.files_skipped += 1
            return []

        self.stats.files_processed += 1
        try:
            return self._regenerate(input_path, input_root, output_root, config)
        except OSError:
            self.invalidate(input_path)
            raise

    def _regenerate(
        self, input_path: Path, input_root: Path, output_root: Path, config: Config
    ) -> List[Path]:
        self.cleanup_outputs(input_path)

        text = input_path.read_text(encoding="utf-8-sig", errors="replace")
        result = parse_source(text)
        if result.is_empty():
            self.logger.debug("No enums or records found in %s", input_path)
            return []

        output_dir = self.output_dir_for(input_path, input_root, output_root)
        written: List[Path] = []
        for artifact, output_path, content in self._render(input_path, output_dir, result, config):
            owner = self.owner_of(output_path)
            if owner is not None and owner != _canonical(input_path):
                self.logger.warning(
                    "Not overwriting %s from %s: it was generated from %s",
                    output_path,
                    input_path,
                    owner,
                )
                continue
            output_dir.mkdir(parents=True, exist_ok=True)
            output_path.write_text(content, encoding="utf-8", newline="\n")
            self.register_output(input_path, output_path)
            self.logger.info("Generated %s", output_path)
            if artifact is Artifact.ENUMS:
                self.stats.enums_generated += 1
            else:
                self.stats.schemas_generated += 1
            written.append(output_path)
        return written

    def process_directory(
        self,
        directory: Path,
        input_root: Path,
        output_root: Path,
        config: Config | None = None,
    ) -> None:
        """Walk ``directory`` pre-order and process every selected source file."""
        config = config or self.config
        for entry in sorted(Path(directory).iterdir(), key=lambda item: item.name):
            if entry.is_dir():
                self.process_directory(entry, input_root, output_root, config)
            elif entry.is_file() and _is_selected(entry, config):
                self.process_file(entry, input_root, output_root, config)

    def process_path(
        self,
        path: Path,
        output_root: Path,
        input_root: Path | None = None,
        config: Config | None = None,
    ) -> None:
        """Process a directory tree or a single file.

        ``input_root`` defaults to the configured input directory, then to
        ``path`` itself for directories or its parent for files.
        """
        config = config or self.config
        path = Path(path)
        if input_root is None:
            if config.input_dir is not None:
                input_root = config.input_dir
            else:
                input_root = path if path.is_dir() else path.parent
        if path.is_dir():
            self.process_directory(path, input_root, output_root, config)
        elif _is_selected(path, config):
            self.process_file(path, input_root, output_root, config)

    # ------------------------------------------------------------------
    # Output layout

    @staticmethod
    def output_dir_for(input_path: Path, input_root: Path, output_root: Path) -> Path:
        """Mirror ``input_path``'s directory under ``output_root``."""
        input_path = Path(input_path)
        try:
            relative = input_path.relative_to(input_root)
        except ValueError:
            relative = _try_resolved_relative(input_path, Path(input_root))
        return (Path(output_root) / relative).parent

    def _render(
        self, input_path: Path, output_dir: Path, result: ParseResult, config: Config
    ) -> Iterable[Tuple[Artifact, Path, str]]:
        now = self._clock()
        if Artifact.ENUMS in self.artifacts:
            for enum, filename in _output_names(input_path, result.enums, ENUM_SUFFIX):
                yield Artifact.ENUMS, output_dir / filename, render_enum(enum, config, now=now)
        if Artifact.SCHEMAS in self.artifacts:
            for dto, filename in _output_names(input_path, result.dtos, SCHEMA_SUFFIX):
                yield Artifact.SCHEMAS, output_dir / filename, render_schema(dto, config, now=now)


def _output_names(
    input_path: Path, declarations: Sequence[EnumIR] | Sequence[DtoIR], suffix: str
) -> List[Tuple[EnumIR | DtoIR, str]]:
    # One declaration keeps the source file name; several get one file each.
    if len(declarations) == 1:
        return [(declarations[0], input_path.stem + suffix)]
    return [(declaration, declaration.name + suffix) for declaration in declarations]


def _is_selected(path: Path, config: Config) -> bool:
    return config.is_valid_extension(path) and not config.should_ignore(path)


def _try_resolved_relative(input_path: Path, input_root: Path) -> Path:
    try:
        return input_path.resolve().relative_to(input_root.resolve())
    except (OSError, ValueError):
        return input_path


def _canonical(path: Path) -> Path:
    try:
        return Path(path).resolve()
    except OSError:
        return Path(path).absolute()


__all__ = [
    "ALL_ARTIFACTS",
    "Artifact",
    "ENUM_SUFFIX",
    "IncrementalEngine",
    "SCHEMA_SUFFIX",
    "TrackedInput",
    "content_hash",
]
