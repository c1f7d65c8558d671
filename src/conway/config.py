import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from conway.runtime.exceptions import InvalidInputError

ENV_PREFIX = "CONWAY_"


@dataclass(frozen=True)
class EngineConfig:
    """Limits and defaults shared by the service, the boundary checks and the CLI."""

    max_grid_width: int = 200
    max_grid_height: int = 200
    # Highest generation a caller may request
    max_generation: int = 100_000
    # Ceiling for final-state searches
    max_iterations: int = 10_000
    # Ceiling for the cycle search behind state-at-generation queries
    jump_iteration_ceiling: int = 100_000
    cache_capacity: int = 16
    max_history: int = 2048
    default_rules: str = "conway"
    default_density: float = 0.25

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type is int and (value is None or value < 1):
                raise InvalidInputError(
                    f"Configuration value '{f.name}' must be a positive integer, got {value!r}"
                )
        if not 0.0 <= self.default_density <= 1.0:
            raise InvalidInputError(
                f"Configuration value 'default_density' must be between 0 and 1, "
                f"got {self.default_density!r}"
            )


def _coerce(name: str, target_type: Any, raw: Any) -> Any:
    try:
        if target_type is int:
            if isinstance(raw, bool):
                raise ValueError(raw)
            if isinstance(raw, str):
                raw = raw.replace("_", "")
            return int(raw)
        if target_type is float:
            return float(raw)
        return str(raw)
    except (TypeError, ValueError):
        raise InvalidInputError(
            f"Configuration value '{name}' has an invalid value: {raw!r}"
        )


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInputError(
            f"Configuration file '{path}' must contain a mapping at the top level."
        )
    return data


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> EngineConfig:
    """
    Builds an EngineConfig from defaults, an optional YAML file and environment
    variables, in that order of precedence (environment wins).

    Environment variables are named after the fields, e.g. CONWAY_MAX_GENERATION.
    """
    environ = os.environ if environ is None else environ
    types = {f.name: f.type for f in fields(EngineConfig)}
    values: Dict[str, Any] = {}

    if path is not None:
        for key, raw in _read_yaml(Path(path)).items():
            if key not in types:
                raise InvalidInputError(
                    f"Unknown configuration key '{key}' in '{path}'. "
                    f"Known keys: {', '.join(types)}"
                )
            values[key] = _coerce(key, types[key], raw)

    for name, target_type in types.items():
        env_key = f"{ENV_PREFIX}{name.upper()}"
        if env_key in environ:
            values[name] = _coerce(name, target_type, environ[env_key])

    return replace(EngineConfig(), **values)
