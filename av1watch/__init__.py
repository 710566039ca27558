"""av1watch: A terminal dashboard for monitoring AV1 transcoding jobs."""

from importlib.metadata import version

from av1watch.config import DEFAULT_CONFIG
from av1watch.config import DashboardConfig
from av1watch.config import load_config
from av1watch.dashboard import TranscodeDashboard
from av1watch.feed import JobFeed
from av1watch.feed import JobStateDirFeed
from av1watch.feed import SafeFeed
from av1watch.filtering import JobFilter
from av1watch.filtering import SortMode
from av1watch.filtering import filter_jobs
from av1watch.filtering import sort_jobs
from av1watch.layout import resolve_layout
from av1watch.models import Job
from av1watch.models import JobProgress
from av1watch.models import JobSnapshot
from av1watch.models import JobStatus
from av1watch.models import format_duration
from av1watch.render_model import RenderModel
from av1watch.statistics import StatisticsEngine
from av1watch.tui import DashboardRenderer
from av1watch.ui_state import UiState
from av1watch.ui_state import apply_event

__version__ = version("av1watch")

__all__ = [
    "DEFAULT_CONFIG",
    "DashboardConfig",
    "DashboardRenderer",
    "Job",
    "JobFeed",
    "JobFilter",
    "JobProgress",
    "JobSnapshot",
    "JobStateDirFeed",
    "JobStatus",
    "RenderModel",
    "SafeFeed",
    "SortMode",
    "StatisticsEngine",
    "TranscodeDashboard",
    "UiState",
    "apply_event",
    "filter_jobs",
    "format_duration",
    "load_config",
    "resolve_layout",
    "sort_jobs",
]
