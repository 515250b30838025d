"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from codehygiene.core.log import logger

CONFIG_FILENAME = "codehygiene.yaml"
DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"


def cli_includes(argv: list[str] | None = None) -> list[str]:
    """Collect `--include FILE` pairs from the command line."""
    argv = sys.argv[1:] if argv is None else argv
    includes = []
    i = 0
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        elif argv[i].startswith("--include="):
            includes.append(argv[i].split("=", 1)[1])
        i += 1
    return includes


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source layering several files.

    Deep-merged in increasing priority:
        package defaults < user config < project config < --include files

    Any file may carry an `include:` key naming further files,
    resolved relative to the including file; included values are
    overridden by the file that includes them.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file=None,
        argv: list[str] | None = None,
        project_dir: Path | None = None,
    ):
        """
        Args:
            settings_cls: The settings class being initialized
            yaml_file: Override for the project config file
            argv: Command line to scan for --include (default
                sys.argv)
            project_dir: Directory holding the project config
                (default: current directory)
        """
        self.project_file = (
            Path(yaml_file) if yaml_file
            else (project_dir or Path.cwd()) / CONFIG_FILENAME
        )
        self.includes = cli_includes(argv)
        super().__init__(settings_cls, self.includes or None)

    def _read_files(self, files, deep_merge: bool = True):  # noqa: ARG002
        """Load and merge every configuration layer that exists.

        Layers are always deep-merged, whatever pydantic-settings
        passes for deep_merge.
        """
        candidates = [
            DEFAULTS_FILE,
            Path(user_config_dir("codehygiene", appauthor=False))
            / CONFIG_FILENAME,
            self.project_file,
        ]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            candidates.extend(Path(f).expanduser() for f in files)

        result = {}
        for file_path in candidates:
            if file_path.is_file():
                logger.debug("Loading configuration", file=str(file_path))
                data = self._load_file_recursive(file_path, set())
                result = self._deep_merge(result, data)
            else:
                logger.spew("Configuration file not found (skipping)",
                            file=str(file_path))

        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load a file and resolve its include: directives.

        Raises:
            ValueError: On a circular include or a non-mapping
                document
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{filepath}: top level must be a mapping")

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        merged = {}
        for inc in includes:
            inc_path = self._resolve_path(inc, filepath)
            merged = self._deep_merge(
                merged, self._load_file_recursive(inc_path, visited.copy())
            )
        return self._deep_merge(merged, data)

    @staticmethod
    def _resolve_path(include_path: str, relative_to: Path) -> Path:
        path = Path(include_path).expanduser()
        if path.is_absolute():
            return path
        return (relative_to.parent / path).resolve()

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge override into base; override wins."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
