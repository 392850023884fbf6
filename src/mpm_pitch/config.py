"""
Analysis parameters and where they come from.

Resolution order for MpmConfig.load():
    1. Keyword overrides
    2. MPM_PITCH_THRESHOLD / MPM_PITCH_MAX_LAG environment variables
    3. Config file (./mpm_pitch.toml, then ~/.mpm_pitch/config.toml)
    4. Defaults (threshold 0.9, max_lag = W - 1)

Config files may put the keys at the top level or in an [mpm] table:

    [mpm]
    threshold = 0.93
    max_lag = 2048
"""

import math
import os
import warnings
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib
except ImportError:  # Python < 3.11
    import tomli as tomllib

from .exceptions import InvalidInputError


DEFAULT_THRESHOLD = 0.9

_ENV_VARS = {
    "threshold": "MPM_PITCH_THRESHOLD",
    "max_lag": "MPM_PITCH_MAX_LAG",
}


def check_threshold(threshold: Any) -> float:
    """Validate a threshold fraction k, which must lie in [0, 1)."""
    try:
        value = float(threshold)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Threshold must be a number, got {threshold!r}")
    if not math.isfinite(value) or not 0.0 <= value < 1.0:
        raise InvalidInputError(f"Threshold must be in [0, 1), got {threshold!r}")
    return value


def check_max_lag(max_lag: Any) -> Optional[int]:
    """Validate a maximum lag (None, or an integer >= 2)."""
    if max_lag is None:
        return None
    if isinstance(max_lag, bool):
        raise InvalidInputError(f"max_lag must be an integer, got {max_lag!r}")
    try:
        value = int(max_lag)
    except (TypeError, ValueError):
        raise InvalidInputError(f"max_lag must be an integer, got {max_lag!r}")
    if value != max_lag and not isinstance(max_lag, str):
        raise InvalidInputError(f"max_lag must be an integer, got {max_lag!r}")
    if value < 2:
        raise InvalidInputError(f"max_lag must be at least 2, got {value}")
    return value


_CHECKS = {
    "threshold": check_threshold,
    "max_lag": check_max_lag,
}


@dataclass(frozen=True)
class MpmConfig:
    """
    Parameters of the McLeod pitch method.

    Attributes:
        threshold: Fraction k of the highest key maximum a candidate must
            exceed to be chosen as the period (0 <= k < 1)
        max_lag: Largest lag analyzed, in samples (None = window length - 1).
            Lowers the cost for long windows; the lowest detectable pitch
            becomes sample_rate / max_lag.
    """
    threshold: float = DEFAULT_THRESHOLD
    max_lag: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "threshold", check_threshold(self.threshold))
        object.__setattr__(self, "max_lag", check_max_lag(self.max_lag))

    @classmethod
    def load(cls, **overrides) -> "MpmConfig":
        """
        Build a config from overrides, environment, config file and defaults.

        Args:
            **overrides: Field values that take precedence over everything.
                max_lag=None restores the whole-window default even when
                a config file or the environment sets one.

        Returns:
            MpmConfig

        Raises:
            InvalidInputError: On an unknown override, or an invalid override
                or environment value
        """
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise InvalidInputError(
                f"Unknown config option(s): {sorted(unknown)}. "
                f"Available: {sorted(known)}"
            )

        values = _read_config_file()
        values.update(_read_environment())
        values.update(overrides)

        return replace(cls(), **values)


def _read_environment() -> Dict[str, Any]:
    """Read validated settings from the environment."""
    values = {}
    for name, var in _ENV_VARS.items():
        raw = os.environ.get(var)
        if raw is None or raw.strip() == "":
            continue
        try:
            values[name] = _CHECKS[name](raw.strip())
        except InvalidInputError as e:
            raise InvalidInputError(f"{var}: {e}") from e
    return values


def _read_config_file() -> Dict[str, Any]:
    """Read settings from the first config file found."""
    # Try local config first
    local_config = Path("mpm_pitch.toml")
    if local_config.exists():
        return _parse_toml_config(local_config)

    # Try user config
    user_config = Path.home() / ".mpm_pitch" / "config.toml"
    if user_config.exists():
        return _parse_toml_config(user_config)

    return {}


def _parse_toml_config(path: Path) -> Dict[str, Any]:
    """
    Parse settings from a TOML config file.

    Unreadable files and invalid values are reported with a warning and
    fall back to the defaults.
    """
    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        warnings.warn(f"Ignoring config file {path}: {e}", stacklevel=3)
        return {}

    section = config.get("mpm", config)
    if not isinstance(section, dict):
        warnings.warn(f"Ignoring config file {path}: [mpm] is not a table",
                      stacklevel=3)
        return {}

    values = {}
    for name, check in _CHECKS.items():
        if name not in section:
            continue
        try:
            values[name] = check(section[name])
        except InvalidInputError as e:
            warnings.warn(f"Ignoring {name} in {path}: {e}", stacklevel=3)

    return values
