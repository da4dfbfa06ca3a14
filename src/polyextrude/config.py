"""Build configuration with YAML file and environment variable override.

Settings are looked up in this order:

1. An explicit path passed to :func:`load_config`
2. The file named by the ``POLYEXTRUDE_CONFIG`` environment variable
3. The user config file (``~/.config/polyextrude/config.yaml``, or
   ``%APPDATA%\\polyextrude\\config.yaml`` on Windows)
4. Built-in defaults

Example::

    # config.yaml
    is_3d: true
    use_bottom_in_3d: false
    weld_epsilon: 1.0e-7
"""

from __future__ import annotations

import dataclasses
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

__all__ = [
    "POLYEXTRUDE_CONFIG",
    "PrismConfig",
    "DEFAULT_CONFIG",
    "load_config",
    "config_from_mapping",
    "user_config_path",
]

# Environment variable naming a config file
POLYEXTRUDE_CONFIG = "POLYEXTRUDE_CONFIG"


@dataclass(frozen=True)
class PrismConfig:
    """Settings shared by every prism build.

    ``is_3d`` selects extrusion (bottom, top and surround wall) over a
    flat polygon.  ``use_bottom_in_3d`` keeps the downward facing bottom
    face in the 3D output.  The top plane is built at ``top_elevation``
    and the requested height then scales the vertical axis about
    ``bottom_elevation``, so with the defaults the top ends up at
    ``height``.
    """

    is_3d: bool = True
    use_bottom_in_3d: bool = True
    bottom_elevation: float = 0.0
    top_elevation: float = 1.0
    weld_epsilon: float = 1e-9
    area_epsilon: float = 1e-12
    validate: bool = True
    combine: bool = False
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if self.weld_epsilon <= 0:
            raise ValueError(f"weld_epsilon must be positive, got {self.weld_epsilon}")
        if self.area_epsilon < 0:
            raise ValueError(f"area_epsilon must be non-negative, got {self.area_epsilon}")
        if self.top_elevation <= self.bottom_elevation:
            raise ValueError("top_elevation must be above bottom_elevation")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    def replace(self, **changes: Any) -> "PrismConfig":
        return dataclasses.replace(self, **changes)


DEFAULT_CONFIG = PrismConfig()


def user_config_path() -> Path:
    """Return the location of the per-user config file."""
    if sys.platform == "win32":
        config_base = Path(os.environ.get("APPDATA", "~")).expanduser()
    else:
        config_base = Path.home() / ".config"
    return config_base / "polyextrude" / "config.yaml"


def config_from_mapping(data: Dict[str, Any], source: str = "<mapping>") -> PrismConfig:
    """Build a :class:`PrismConfig` from a plain mapping, rejecting unknown keys."""

    if not isinstance(data, dict):
        raise ValueError(f"Invalid config format in {source}: expected mapping at root")
    known = {f.name for f in dataclasses.fields(PrismConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {source}: {unknown}")
    return PrismConfig(**data)


def load_config(path: Optional[Union[str, Path]] = None) -> PrismConfig:
    """Load configuration, falling back to defaults when no file is found.

    Raises:
        FileNotFoundError: If ``path`` (or ``$POLYEXTRUDE_CONFIG``) names
                           a file that does not exist
        ValueError: If the file is not a mapping or has unknown keys
    """

    if path is None:
        env_path = os.environ.get(POLYEXTRUDE_CONFIG, "").strip()
        if env_path:
            path = env_path

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = user_config_path()
        if not config_path.is_file():
            return DEFAULT_CONFIG

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        data = {}

    logger.debug("loaded config from %s", config_path)
    return config_from_mapping(data, str(config_path))
