"""Bundled sample polygons.

The samples live in ``data/samples.yaml`` next to this module: a
triangle, a square, a concave cross, the cross with a square hole and
the outline of the island of Gotland in geographic coordinates.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from polyextrude.geom import Ring, as_ring
from polyextrude.prism import PrismRequest

__all__ = [
    "list_samples",
    "load_sample",
    "sample_request",
    "rings_from_mapping",
    "clear_cache",
]

_BUNDLED_SAMPLES = Path(__file__).parent / "data" / "samples.yaml"


def clear_cache() -> None:
    """Forget previously loaded sample data."""
    _load_samples.cache_clear()


@lru_cache(maxsize=None)
def _load_samples() -> Dict[str, Any]:
    with open(_BUNDLED_SAMPLES, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or "samples" not in data:
        raise ValueError(f"Invalid sample file {_BUNDLED_SAMPLES}: missing 'samples' section")
    schema_version = str(data.get("schema_version", "1.0"))
    if not schema_version.startswith("1."):
        raise ValueError(
            f"Unsupported schema version '{schema_version}' in {_BUNDLED_SAMPLES}. "
            f"Expected version 1.x"
        )
    return data["samples"]


def list_samples() -> List[str]:
    """Names of the bundled samples, sorted."""
    return sorted(_load_samples())


def rings_from_mapping(entry: Dict[str, Any], source: str = "<mapping>"
                       ) -> Tuple[Ring, Tuple[Ring, ...]]:
    """Extract ``(ring, holes)`` from a mapping with ``ring`` and optional ``holes`` keys."""

    if not isinstance(entry, dict) or "ring" not in entry:
        raise ValueError(f"{source}: expected a mapping with a 'ring' key")
    ring = as_ring(entry["ring"])
    holes = tuple(as_ring(h) for h in entry.get("holes") or ())
    return ring, holes


def load_sample(name: str) -> Tuple[Ring, Tuple[Ring, ...]]:
    """Return the ``(ring, holes)`` of a bundled sample.

    Raises:
        KeyError: If there is no sample called ``name``
    """

    samples = _load_samples()
    if name not in samples:
        raise KeyError(f"Unknown sample '{name}'. Available: {sorted(samples)}")
    return rings_from_mapping(samples[name], f"sample '{name}'")


def sample_request(name: str, **overrides: Any) -> PrismRequest:
    """Build a :class:`PrismRequest` for a sample; keyword arguments
    override request fields (``height``, ``is_3d``, ``color`` ...)."""

    ring, holes = load_sample(name)
    fields: Dict[str, Any] = {"name": name, "ring": ring, "holes": holes}
    fields.update(overrides)
    return PrismRequest(**fields)
