"""
Run-time defaults of the estimators.

A single `StatisticsConfig` instance is shared by the package; estimators
look values up in it only when their caller passes ``None``. The tuned
constants of the mode estimator are not configurable and live in
:mod:`skystats.utils.constants`.
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, List, Optional
from pathlib import Path
import logging

from ..base.exceptions import ConfigurationError
from ...utils.constants import CLIP, MODE

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("standard", "detailed", "json")
ENV_PREFIX = "SKYSTATS_"

_global_config: Optional["StatisticsConfig"] = None


def _optional_int(text: str) -> Optional[int]:
    return int(text) if text else None


def _optional_path(text: str) -> Optional[Path]:
    return Path(text) if text else None


# How an environment string becomes a field value.
_ENV_CONVERTERS: Dict[str, Callable[[str], Any]] = {
    'mirror_dist': float,
    'clip_multiplier': float,
    'clip_param': float,
    'clip_max_converge': int,
    'num_threads': _optional_int,
    'log_level': str,
    'log_file': _optional_path,
    'log_format': str,
}


@dataclass
class StatisticsConfig:
    """Fallback parameters of the estimators.

    Attributes
    ----------
    mirror_dist : float
        Half width, in multiples of the error, of the region compared
        around a mode candidate.
    clip_multiplier, clip_param : float
        Sigma-clip multiplier and termination parameter (a tolerance
        below 1, a fixed number of rounds otherwise).
    clip_max_converge : int
        Round cap of tolerance-terminated clipping.
    num_threads : int
        Worker count of partitioned operations; ``None`` means one per CPU.
    log_level, log_file, log_format
        Consumed by :func:`~skystats.core.processing.managers.setup_logging`.
    """

    mirror_dist: float = MODE.MIRROR_DIST
    clip_multiplier: float = CLIP.MULTIPLIER
    clip_param: float = CLIP.PARAM
    clip_max_converge: int = CLIP.MAX_CONVERGE
    num_threads: Optional[int] = None
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    log_format: str = "standard"

    def __post_init__(self):
        self._normalize()
        self.validate()

    def _normalize(self) -> None:
        if self.log_file is not None:
            self.log_file = Path(self.log_file)
        if self.num_threads is None:
            self.num_threads = os.cpu_count() or 1

    def _problems(self) -> List[str]:
        problems = [f"{name} must be positive"
                    for name in ('mirror_dist', 'clip_multiplier', 'clip_param',
                                 'clip_max_converge', 'num_threads')
                    if not getattr(self, name) > 0]
        if self.clip_param >= 1 and float(self.clip_param) != int(self.clip_param):
            problems.append("clip_param must be a whole number of rounds when it is 1 or more")
        if str(self.log_level).upper() not in LOG_LEVELS:
            problems.append(f"log_level {self.log_level!r} is not one of {', '.join(LOG_LEVELS)}")
        if self.log_format not in LOG_FORMATS:
            problems.append(f"log_format {self.log_format!r} is not one of "
                            f"{', '.join(LOG_FORMATS)}")
        return problems

    def validate(self) -> None:
        """Check every field, reporting all problems at once.

        Raises
        ------
        ConfigurationError
        """
        problems = self._problems()
        if problems:
            raise ConfigurationError("Invalid statistics configuration: " + "; ".join(problems))

    def to_dict(self) -> Dict[str, Any]:
        """Plain mapping of the fields, with paths as strings."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = str(value) if isinstance(value, Path) else value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatisticsConfig":
        """Build a configuration from a mapping such as `to_dict` returns.

        Raises
        ------
        ConfigurationError
            If ``data`` has keys that are not configuration fields, or a
            value fails validation.
        """
        unknown = sorted(set(data) - {f.name for f in fields(cls)})
        if unknown:
            raise ConfigurationError(f"Not configuration parameters: {', '.join(unknown)}",
                                     parameter=unknown[0])
        return cls(**data)

    def update(self, **kwargs) -> None:
        """Change fields in place and validate the result.

        Raises
        ------
        ConfigurationError
            If a keyword is not a field or the new values are invalid.
        """
        known = {f.name for f in fields(self)}
        for key in kwargs:
            if key not in known:
                raise ConfigurationError(f"Not a configuration parameter: {key}",
                                         parameter=key)
        for key, value in kwargs.items():
            setattr(self, key, value)
        self._normalize()
        self.validate()

    def clip_max_rounds(self, param: float) -> int:
        """Round cap of a clip with termination parameter ``param``."""
        return int(param) if param >= 1.0 else self.clip_max_converge


def get_config() -> StatisticsConfig:
    """The shared configuration, created with defaults on first use."""
    global _global_config
    if _global_config is None:
        _global_config = StatisticsConfig()
    return _global_config


def set_config(config: StatisticsConfig) -> None:
    """Replace the shared configuration.

    Raises
    ------
    TypeError
        If ``config`` is not a `StatisticsConfig`.
    ConfigurationError
        If it does not validate.
    """
    global _global_config
    if not isinstance(config, StatisticsConfig):
        raise TypeError(f"expected a StatisticsConfig, got {type(config).__name__}")
    config.validate()
    _global_config = config


def reset_config() -> None:
    """Go back to the default configuration."""
    global _global_config
    _global_config = StatisticsConfig()


def update_config(**kwargs) -> None:
    """Change fields of the shared configuration in place."""
    get_config().update(**kwargs)


def load_config_from_env() -> StatisticsConfig:
    """Defaults overridden by ``SKYSTATS_<FIELD>`` environment variables.

    For instance ``SKYSTATS_CLIP_PARAM=0.05`` sets ``clip_param``. An
    empty ``SKYSTATS_NUM_THREADS`` or ``SKYSTATS_LOG_FILE`` resets the
    field to its default.

    Raises
    ------
    ConfigurationError
        If a variable cannot be converted or the result does not validate.
    """
    config = StatisticsConfig()
    overrides = {}
    for name, convert in _ENV_CONVERTERS.items():
        variable = ENV_PREFIX + name.upper()
        text = os.environ.get(variable)
        if text is None:
            continue
        try:
            overrides[name] = convert(text)
        except ValueError as e:
            raise ConfigurationError(f"Cannot use {variable}={text!r}",
                                     parameter=name, cause=e) from e
    if overrides:
        config.update(**overrides)
        logger.info("Configuration overridden from the environment: %s",
                    ", ".join(sorted(overrides)))
    return config
