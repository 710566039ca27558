"""Centralized constants for av1watch.

This module consolidates configuration defaults and magic numbers
used across multiple modules to ensure consistency and make tuning easier.
"""

# =============================================================================
# Refresh Rate Configuration
# =============================================================================

#: Minimum refresh interval in seconds (fastest)
MIN_REFRESH_INTERVAL: float = 0.5

#: Maximum refresh interval in seconds (slowest)
MAX_REFRESH_INTERVAL: float = 60.0

#: Default refresh interval in seconds
DEFAULT_REFRESH_INTERVAL: float = 1.0

#: Number of refresh intervals without a feed update before the display is stale
DEFAULT_MISSED_TICK_THRESHOLD: int = 3

# =============================================================================
# Progress Estimation
# =============================================================================

#: Exponential smoothing factor for frame rate (1.0 = no smoothing)
DEFAULT_FPS_SMOOTHING: float = 0.3

#: Expected seconds spent in each stage, used when the encoder reports no total
DEFAULT_EXPECTED_PROBE_SECONDS: float = 30.0
DEFAULT_EXPECTED_TRANSCODE_SECONDS: float = 3600.0
DEFAULT_EXPECTED_VERIFY_SECONDS: float = 120.0

# =============================================================================
# Statistics
# =============================================================================

#: Assumed output/original ratio for pending jobs when no job has succeeded yet.
#: Matches the daemon's default acceptance threshold (90% of original).
DEFAULT_PENDING_SAVINGS_RATIO: float = 0.90

#: Number of most recent completions kept in trend series
TREND_WINDOW_SIZE: int = 20

#: Minimum number of samples before a trend is shown
MIN_TREND_SAMPLES: int = 2

# =============================================================================
# Job State Directory
# =============================================================================

#: Default directory where the daemon writes one JSON file per job
DEFAULT_JOB_STATE_DIR: str = "/var/lib/av1d/jobs"

#: Maximum size in bytes for a job file before skipping (1 MB)
MAX_JOB_FILE_SIZE: int = 1 * 1024 * 1024

# =============================================================================
# Display
# =============================================================================

#: Placeholder shown for missing metadata
PLACEHOLDER: str = "-"

#: Maximum characters shown for a file name before truncation
MAX_NAME_LENGTH: int = 50
