"""Configuration loading for cs2ts (cs2ts.toml)."""

from __future__ import annotations

import dataclasses
import tomllib
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

CONFIG_FILENAME = "cs2ts.toml"
DEFAULT_EXTENSIONS = ("cs",)
DEFAULT_I18N_LIBRARY = "vue-i18n"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


class MissingDirectoryError(ConfigError):
    """Raised when an input or output directory is required but not configured."""


@dataclass
class ImportConfig:
    """Extra import statement prepended to every generated schema."""

    name: str
    path: str


@dataclass
class Config:
    """Represents the settings defined in cs2ts.toml."""

    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    ignore: List[str] = field(default_factory=list)
    input_dir: Optional[Path] = None
    output_dir: Optional[Path] = None
    localized: bool = False
    i18n_library: str = DEFAULT_I18N_LIBRARY
    additional_imports: List[ImportConfig] = field(default_factory=list)
    source: Optional[Path] = None

    def is_valid_extension(self, path: Path | str) -> bool:
        suffix = Path(path).suffix
        if not suffix:
            return False
        ext = suffix[1:]
        return any(candidate.lstrip(".") == ext for candidate in self.extensions)

    def should_ignore(self, path: Path | str) -> bool:
        target = str(path)
        return any(fnmatchcase(target, pattern) for pattern in self.ignore)

    def with_overrides(
        self,
        *,
        input_dir: Optional[Path] = None,
        output_dir: Optional[Path] = None,
        localized: bool = False,
    ) -> "Config":
        """Return the effective config for one command invocation."""
        return dataclasses.replace(
            self,
            extensions=list(self.extensions),
            ignore=list(self.ignore),
            input_dir=input_dir if input_dir is not None else self.input_dir,
            output_dir=output_dir if output_dir is not None else self.output_dir,
            localized=localized or self.localized,
            additional_imports=list(self.additional_imports),
        )

    def require_directories(self) -> tuple[Path, Path]:
        if self.input_dir is None:
            raise MissingDirectoryError(
                "Input directory is required (pass --input or set input_dir in cs2ts.toml)"
            )
        if self.output_dir is None:
            raise MissingDirectoryError(
                "Output directory is required (pass --output or set output_dir in cs2ts.toml)"
            )
        return self.input_dir, self.output_dir


def find_config(start: Path | None = None) -> Optional[Path]:
    """Walk up from ``start`` (default: CWD) looking for cs2ts.toml."""
    current = (start or Path.cwd()).expanduser().resolve()
    if current.is_file():
        current = current.parent
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from disk.

    With no explicit path the nearest ``cs2ts.toml`` above the working
    directory is used. A missing file yields the defaults.
    """
    if config_path is None:
        config_file = find_config()
    else:
        config_file = _resolve_config_path(config_path)

    if config_file is None or not config_file.exists():
        return Config()

    data = _read_config(config_file)
    root = config_file.parent.resolve()

    extensions = _as_str_list(data.get("extensions"))
    i18n_library = _as_str(data.get("i18n_library"))

    return Config(
        extensions=extensions or list(DEFAULT_EXTENSIONS),
        ignore=_as_str_list(data.get("ignore")),
        input_dir=_as_path(data.get("input_dir"), root),
        output_dir=_as_path(data.get("output_dir"), root),
        localized=_as_bool(data.get("localized")) or False,
        i18n_library=i18n_library or DEFAULT_I18N_LIBRARY,
        additional_imports=_as_imports(data.get("additional_imports")),
        source=config_file,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


def _as_path(value: Any, root: Path) -> Optional[Path]:
    raw = _as_str(value)
    if not raw:
        return None
    path = Path(raw).expanduser()
    return path if path.is_absolute() else root / path


def _as_imports(value: Any) -> List[ImportConfig]:
    if not isinstance(value, list):
        return []
    imports: List[ImportConfig] = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        name = _as_str(entry.get("name"))
        path = _as_str(entry.get("path"))
        if name and path:
            imports.append(ImportConfig(name=name, path=path))
    return imports


__all__ = [
    "CONFIG_FILENAME",
    "Config",
    "ConfigError",
    "ImportConfig",
    "MissingDirectoryError",
    "find_config",
    "load_config",
]
