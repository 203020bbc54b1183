"""Release notes: closed issues grouped into sections by label."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from greport.domain import Issue, Label, PullRequest
from greport.domain.issue import utcnow

OTHER = "Other"

# Checked in insertion order; the first key contained in a label name wins.
DEFAULT_MAPPINGS: dict[str, str] = {
    "bug": "Bug Fixes",
    "feature": "New Features",
    "enhancement": "Enhancements",
    "documentation": "Documentation",
    "docs": "Documentation",
    "breaking": "Breaking Changes",
    "security": "Security",
    "performance": "Performance",
    "perf": "Performance",
    "deprecation": "Deprecations",
    "deprecated": "Deprecations",
}

SECTION_ORDER: tuple[str, ...] = (
    "Breaking Changes",
    "Security",
    "New Features",
    "Enhancements",
    "Bug Fixes",
    "Performance",
    "Documentation",
    "Deprecations",
    OTHER,
)


@dataclass
class ReleaseItem:
    number: int
    title: str
    author: str
    labels: list[str] = field(default_factory=list)


@dataclass
class ReleaseSection:
    title: str
    items: list[ReleaseItem] = field(default_factory=list)


@dataclass
class ReleaseStats:
    issues_closed: int
    prs_merged: int
    contributors_count: int


@dataclass
class ReleaseNotes:
    version: str
    date: str
    summary: str
    sections: list[ReleaseSection]
    contributors: list[str]
    stats: ReleaseStats


class ReleaseNotesGenerator:
    def __init__(self, mappings: Mapping[str, str] | None = None) -> None:
        source = DEFAULT_MAPPINGS if mappings is None else mappings
        self._mappings = {key.lower(): section for key, section in source.items()}

    def categorize(self, labels: Iterable[Label]) -> str:
        for label in labels:
            name = label.name.lower()
            for key, section in self._mappings.items():
                if key in name:
                    return section
        return OTHER

    def generate(
        self,
        version: str,
        issues: Iterable[Issue],
        pulls: Iterable[PullRequest],
        now: datetime | None = None,
    ) -> ReleaseNotes:
        now = now or utcnow()
        issues = list(issues)
        pulls = list(pulls)

        grouped: dict[str, list[ReleaseItem]] = {}
        for issue in issues:
            grouped.setdefault(self.categorize(issue.labels), []).append(
                ReleaseItem(
                    number=issue.number,
                    title=issue.title,
                    author=issue.author.login,
                    labels=[label.name for label in issue.labels],
                )
            )

        # custom mappings may name sections outside the fixed order; they go before Other
        order = [s for s in SECTION_ORDER if s != OTHER]
        order += sorted(s for s in grouped if s not in SECTION_ORDER)
        order.append(OTHER)
        sections = [ReleaseSection(title=s, items=grouped[s]) for s in order if grouped.get(s)]

        contributors = sorted(
            {i.author.login for i in issues} | {pr.author.login for pr in pulls}
        )

        return ReleaseNotes(
            version=version,
            date=now.strftime("%Y-%m-%d"),
            summary=(
                f"This release includes {len(issues)} issues closed "
                f"and {len(pulls)} pull requests merged."
            ),
            sections=sections,
            contributors=contributors,
            stats=ReleaseStats(
                issues_closed=len(issues),
                prs_merged=len(pulls),
                contributors_count=len(contributors),
            ),
        )


def to_markdown(notes: ReleaseNotes) -> str:
    lines = [f"# {notes.version} ({notes.date})", "", notes.summary, ""]
    for section in notes.sections:
        lines.append(f"## {section.title}")
        lines.append("")
        lines.extend(f"- {item.title} (#{item.number}) @{item.author}" for item in section.items)
        lines.append("")
    if notes.contributors:
        lines.append("## Contributors")
        lines.append("")
        lines.extend(f"- @{login}" for login in notes.contributors)
        lines.append("")
    return "\n".join(lines)
