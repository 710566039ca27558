"""Dashboard configuration.

Every tunable the core consults lives on a single frozen ``DashboardConfig``.
Values can be overridden from a JSON or TOML file. The file may be the
daemon's own config: keys the dashboard does not use are ignored, while
out-of-range values for dashboard keys are rejected.
"""

from __future__ import annotations

import json
import logging
import tomllib
from dataclasses import dataclass
from dataclasses import fields
from dataclasses import replace
from pathlib import Path
from typing import Any

from av1watch.constants import DEFAULT_EXPECTED_PROBE_SECONDS
from av1watch.constants import DEFAULT_EXPECTED_TRANSCODE_SECONDS
from av1watch.constants import DEFAULT_EXPECTED_VERIFY_SECONDS
from av1watch.constants import DEFAULT_FPS_SMOOTHING
from av1watch.constants import DEFAULT_JOB_STATE_DIR
from av1watch.constants import DEFAULT_MISSED_TICK_THRESHOLD
from av1watch.constants import DEFAULT_PENDING_SAVINGS_RATIO
from av1watch.constants import DEFAULT_REFRESH_INTERVAL
from av1watch.constants import MAX_REFRESH_INTERVAL
from av1watch.constants import MIN_REFRESH_INTERVAL
from av1watch.constants import MIN_TREND_SAMPLES
from av1watch.constants import TREND_WINDOW_SIZE
from av1watch.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


#: Fields that slice or count and so must hold integers
INTEGER_FIELDS: tuple[str, ...] = ("missed_tick_threshold", "trend_window", "min_trend_samples")


@dataclass(frozen=True)
class DashboardConfig:
    """
    Configuration for the dashboard core.

    Attributes:
        job_state_dir: Directory holding the daemon's per-job JSON files.
        refresh_interval: Seconds between feed refreshes.
        missed_tick_threshold: Refresh intervals without data before the
            display is marked stale.
        fps_smoothing: Weight of the newest sample in the smoothed frame rate.
        pending_savings_ratio: Output/original ratio assumed for pending jobs
            until at least one job has succeeded.
        expected_probe_seconds: Expected duration of the probing stage.
        expected_transcode_seconds: Expected duration of the transcoding stage.
        expected_verify_seconds: Expected duration of the verifying stage.
        probe_band: Percent range covered by the probing stage.
        transcode_band: Percent range covered by the transcoding stage.
        verify_band: Percent range covered by the verifying stage.
        trend_window: Number of recent completions used for trends.
        min_trend_samples: Minimum completions before trends are shown.
    """

    job_state_dir: Path = Path(DEFAULT_JOB_STATE_DIR)
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    missed_tick_threshold: int = DEFAULT_MISSED_TICK_THRESHOLD
    fps_smoothing: float = DEFAULT_FPS_SMOOTHING
    pending_savings_ratio: float = DEFAULT_PENDING_SAVINGS_RATIO
    expected_probe_seconds: float = DEFAULT_EXPECTED_PROBE_SECONDS
    expected_transcode_seconds: float = DEFAULT_EXPECTED_TRANSCODE_SECONDS
    expected_verify_seconds: float = DEFAULT_EXPECTED_VERIFY_SECONDS
    probe_band: tuple[float, float] = (0.0, 10.0)
    transcode_band: tuple[float, float] = (10.0, 90.0)
    verify_band: tuple[float, float] = (90.0, 100.0)
    trend_window: int = TREND_WINDOW_SIZE
    min_trend_samples: int = MIN_TREND_SAMPLES

    def __post_init__(self) -> None:
        self.validate()

    @property
    def stale_after(self) -> float:
        """Seconds without a feed refresh before the display is stale."""
        return self.refresh_interval * self.missed_tick_threshold

    def validate(self) -> None:
        """Check every value, raising ConfigurationError on the first problem."""
        if not MIN_REFRESH_INTERVAL <= self.refresh_interval <= MAX_REFRESH_INTERVAL:
            raise ConfigurationError(
                "refresh_interval",
                f"refresh_interval must be between {MIN_REFRESH_INTERVAL} and "
                f"{MAX_REFRESH_INTERVAL} seconds, got {self.refresh_interval}",
            )
        for name in INTEGER_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(name, f"{name} must be an integer, got {value!r}")
        if self.missed_tick_threshold < 1:
            raise ConfigurationError("missed_tick_threshold", "missed_tick_threshold must be >= 1")
        if not 0.0 < self.fps_smoothing <= 1.0:
            raise ConfigurationError("fps_smoothing", "fps_smoothing must be in (0, 1]")
        if not 0.0 < self.pending_savings_ratio <= 1.0:
            raise ConfigurationError(
                "pending_savings_ratio", "pending_savings_ratio must be in (0, 1]"
            )
        for name in (
            "expected_probe_seconds",
            "expected_transcode_seconds",
            "expected_verify_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ConfigurationError(name, f"{name} must be positive")
        previous_high = 0.0
        for name in ("probe_band", "transcode_band", "verify_band"):
            low, high = getattr(self, name)
            if not previous_high <= low <= high <= 100.0:
                raise ConfigurationError(
                    name, f"{name} must be an ordered range within 0-100 after the previous stage"
                )
            previous_high = high
        if self.trend_window < 1:
            raise ConfigurationError("trend_window", "trend_window must be >= 1")
        if self.min_trend_samples < 1:
            raise ConfigurationError("min_trend_samples", "min_trend_samples must be >= 1")


DEFAULT_CONFIG = DashboardConfig()


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw file value to the field's Python type."""
    if name == "job_state_dir":
        return Path(value)
    if name in INTEGER_FIELDS and isinstance(value, float):
        if not value.is_integer():
            raise ConfigurationError(name, f"{name} must be an integer, got {value!r}")
        return int(value)
    if name.endswith("_band"):
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise ConfigurationError(name, f"{name} must be a two-element list")
        return (float(value[0]), float(value[1]))
    return value


def config_from_dict(
    data: dict[str, Any], base: DashboardConfig = DEFAULT_CONFIG
) -> DashboardConfig:
    """
    Build a configuration from a mapping of overrides.

    Args:
        data: Field names mapped to raw values.
        base: Configuration supplying values for keys not present.

    Returns:
        A validated configuration.

    Raises:
        ConfigurationError: If a value is invalid.
    """
    known = {f.name for f in fields(DashboardConfig)}
    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.debug("Ignoring configuration key %r", key)
            continue
        try:
            overrides[key] = _coerce(key, value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(key, f"Invalid value for '{key}': {e}") from e
    try:
        return replace(base, **overrides)
    except TypeError as e:
        raise ConfigurationError("config", f"Invalid configuration: {e}") from e


def load_config(path: Path | None) -> DashboardConfig:
    """
    Load configuration from a file, or return defaults.

    Files ending in ``.toml`` are parsed as TOML, anything else as JSON.
    A missing file or ``None`` yields the default configuration.

    Args:
        path: Path to the configuration file.

    Returns:
        The loaded configuration.

    Raises:
        ConfigurationError: If the file cannot be read or parsed, or holds
            invalid values.
    """
    if path is None or not path.exists():
        if path is not None:
            logger.debug("Config file %s not found, using defaults", path)
        return DEFAULT_CONFIG

    try:
        content = path.read_text()
    except OSError as e:
        raise ConfigurationError("config", f"Failed to read config file {path}: {e}") from e

    try:
        if path.suffix == ".toml":
            data = tomllib.loads(content)
        else:
            data = json.loads(content)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError("config", f"Failed to parse config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("config", f"Config file {path} must contain a table/object")

    return config_from_dict(data)
