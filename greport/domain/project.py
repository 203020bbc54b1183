"""Organization project boards (GitHub Projects V2).

Item content and field values arrive as GraphQL unions. Each variant is a
separate dataclass whose ``type`` field names the variant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class Project:
    node_id: str
    number: int
    owner: str
    title: str
    url: str
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    closed: bool = False
    total_items: int = 0


# ── item content ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class IssueContent:
    number: int
    title: str
    state: str
    url: str
    repository: str
    assignees: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    type: str = field(default="issue", init=False)


@dataclass(frozen=True)
class PullRequestContent:
    number: int
    title: str
    state: str
    url: str
    repository: str
    merged: bool = False
    author: str = "unknown"
    type: str = field(default="pull_request", init=False)


@dataclass(frozen=True)
class DraftIssueContent:
    title: str
    body: str | None = None
    assignees: tuple[str, ...] = ()
    type: str = field(default="draft_issue", init=False)


ItemContent = Union[IssueContent, PullRequestContent, DraftIssueContent]


# ── field values ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TextValue:
    field_name: str
    value: str
    type: str = field(default="text", init=False)


@dataclass(frozen=True)
class NumberValue:
    field_name: str
    value: float
    type: str = field(default="number", init=False)


@dataclass(frozen=True)
class DateValue:
    field_name: str
    value: str
    type: str = field(default="date", init=False)


@dataclass(frozen=True)
class SingleSelectValue:
    field_name: str
    name: str
    option_id: str
    type: str = field(default="single_select", init=False)


@dataclass(frozen=True)
class IterationValue:
    field_name: str
    title: str
    start_date: str
    duration: int
    iteration_id: str
    type: str = field(default="iteration", init=False)


FieldValue = Union[TextValue, NumberValue, DateValue, SingleSelectValue, IterationValue]


@dataclass(frozen=True)
class ProjectItem:
    node_id: str
    content: ItemContent
    created_at: datetime
    updated_at: datetime
    field_values: tuple[FieldValue, ...] = ()
