"""Milestone and release reports."""

from greport.engines.reports.burndown import (
    BurndownCalculator,
    BurndownReport,
    BurnupReport,
    DataPoint,
    ScopePoint,
)
from greport.engines.reports.progress import MilestoneProgress, milestone_progress
from greport.engines.reports.release_notes import (
    DEFAULT_MAPPINGS,
    SECTION_ORDER,
    ReleaseItem,
    ReleaseNotes,
    ReleaseNotesGenerator,
    ReleaseSection,
    ReleaseStats,
    to_markdown,
)

__all__ = [
    "BurndownCalculator",
    "BurndownReport",
    "BurnupReport",
    "DEFAULT_MAPPINGS",
    "DataPoint",
    "MilestoneProgress",
    "ReleaseItem",
    "ReleaseNotes",
    "ReleaseNotesGenerator",
    "ReleaseSection",
    "ReleaseStats",
    "SECTION_ORDER",
    "ScopePoint",
    "milestone_progress",
    "to_markdown",
]
