"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import cast


class ConfigError(Exception):
    """Error in kahnsort configuration."""


@dataclass(slots=True, frozen=True)
class KahnsortConfig:
    """Configuration loaded from pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    graph: Path | None = None
    output: Path | None = None
    flip_edges: bool = False
    exclude: tuple[str, ...] = ()
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_path(section: dict[str, object], key: str, project_root: Path) -> Path | None:
    if key not in section:
        return None
    value = section[key]
    if not isinstance(value, str):
        msg = f"Invalid [tool.kahnsort].{key}: expected string path"
        raise ConfigError(msg)
    path = Path(value)
    if not path.is_absolute():
        path = project_root / path
    return path


def load_config(pyproject_path: Path) -> KahnsortConfig:
    """Load and validate [tool.kahnsort] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed KahnsortConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    tool_section = data.get("tool", {})
    section = cast("dict[str, object]", tool_section.get("kahnsort", {}))

    if not section:
        return KahnsortConfig(project_root=project_root)

    flip_edges = section.get("flip-edges", False)
    if not isinstance(flip_edges, bool):
        msg = "Invalid [tool.kahnsort].flip-edges: expected boolean"
        raise ConfigError(msg)

    exclude = section.get("exclude", [])
    if not isinstance(exclude, list) or not all(isinstance(name, str) for name in exclude):
        msg = "Invalid [tool.kahnsort].exclude: expected list of node names"
        raise ConfigError(msg)

    return KahnsortConfig(
        graph=_parse_path(section, "graph", project_root),
        output=_parse_path(section, "output", project_root),
        flip_edges=flip_edges,
        exclude=tuple(cast("list[str]", exclude)),
        project_root=project_root,
    )


def get_config() -> KahnsortConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        KahnsortConfig (may be empty if no pyproject.toml or no [tool.kahnsort] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return KahnsortConfig()
    return load_config(pyproject_path)
