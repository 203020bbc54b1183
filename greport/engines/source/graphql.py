"""GitHub Projects V2 over GraphQL — queries and payload conversion.

Item ``content`` and ``fieldValues`` are GraphQL unions. The response does
not carry ``__typename``, so the variant is decided by which fields are
populated, and each variant is converted explicitly.
"""

from __future__ import annotations

from typing import Any

from greport.domain.project import (
    DateValue,
    DraftIssueContent,
    FieldValue,
    IssueContent,
    ItemContent,
    IterationValue,
    NumberValue,
    Project,
    ProjectItem,
    PullRequestContent,
    SingleSelectValue,
    TextValue,
)
from greport.engines.source.errors import (
    SourceApiError,
    SourceError,
    SourceNotFoundError,
    SourceUnauthorizedError,
)
from greport.engines.source.payloads import parse_datetime

PAGE_SIZE = 50

LIST_ORG_PROJECTS = """
query($org: String!, $first: Int!, $after: String) {
  organization(login: $org) {
    projectsV2(first: $first, after: $after, orderBy: {field: UPDATED_AT, direction: DESC}) {
      nodes {
        id
        number
        title
        shortDescription
        url
        closed
        createdAt
        updatedAt
        items { totalCount }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

_FIELD_NAME = "field { ... on ProjectV2FieldCommon { name } }"

LIST_PROJECT_ITEMS = f"""
query($nodeId: ID!, $first: Int!, $after: String) {{
  node(id: $nodeId) {{
    ... on ProjectV2 {{
      items(first: $first, after: $after) {{
        nodes {{
          id
          createdAt
          updatedAt
          content {{
            ... on Issue {{
              number title state url
              repository {{ nameWithOwner }}
              assignees(first: 10) {{ nodes {{ login }} }}
              labels(first: 10) {{ nodes {{ name color }} }}
            }}
            ... on PullRequest {{
              number title state url merged
              repository {{ nameWithOwner }}
              author {{ login }}
            }}
            ... on DraftIssue {{
              title body
              assignees(first: 10) {{ nodes {{ login }} }}
            }}
          }}
          fieldValues(first: 20) {{
            nodes {{
              ... on ProjectV2ItemFieldTextValue {{ text {_FIELD_NAME} }}
              ... on ProjectV2ItemFieldNumberValue {{ number {_FIELD_NAME} }}
              ... on ProjectV2ItemFieldDateValue {{ date {_FIELD_NAME} }}
              ... on ProjectV2ItemFieldSingleSelectValue {{ name optionId {_FIELD_NAME} }}
              ... on ProjectV2ItemFieldIterationValue {{
                title startDate duration iterationId {_FIELD_NAME}
              }}
            }}
          }}
        }}
        pageInfo {{ hasNextPage endCursor }}
      }}
    }}
  }}
}}
"""


def graphql_url(base_url: str | None) -> str:
    """Derive the GraphQL endpoint from an optional REST base URL.

      None                      -> https://api.github.com/graphql
      https://ghe.co/api/v3     -> https://ghe.co/api/graphql
      https://ghe.co/api        -> https://ghe.co/api/graphql
      https://ghe.co            -> https://ghe.co/api/graphql
    """
    if not base_url:
        return "https://api.github.com/graphql"
    trimmed = base_url.rstrip("/")
    if trimmed == "https://api.github.com":
        return "https://api.github.com/graphql"
    for suffix in ("/api/v3", "/api"):
        if trimmed.endswith(suffix):
            trimmed = trimmed[: -len(suffix)]
            break
    return f"{trimmed}/api/graphql"


def classify_graphql_errors(errors: list[dict[str, Any]]) -> SourceError:
    """Map a GraphQL ``errors`` array to the closest SourceError."""
    for err in errors:
        msg = str(err.get("message", ""))
        lowered = msg.lower()
        if (
            "resource not accessible by personal access token" in lowered
            or "read:project" in lowered
            or "insufficient scopes" in lowered
        ):
            return SourceUnauthorizedError(f"token lacks project scope: {msg}")
        if "could not resolve to" in lowered:
            return SourceNotFoundError(msg)
    messages = "; ".join(str(err.get("message", "")) for err in errors)
    return SourceApiError(f"graphql error: {messages}")


def _logins(conn: dict[str, Any] | None) -> tuple[str, ...]:
    if not conn:
        return ()
    return tuple(n["login"] for n in conn.get("nodes") or () if n and n.get("login"))


def convert_project(node: dict[str, Any], org: str) -> Project:
    return Project(
        node_id=node["id"],
        number=node["number"],
        owner=org,
        title=node["title"],
        description=node.get("shortDescription"),
        url=node.get("url") or "",
        closed=bool(node.get("closed")),
        total_items=(node.get("items") or {}).get("totalCount", 0),
        created_at=parse_datetime(node["createdAt"]),
        updated_at=parse_datetime(node["updatedAt"]),
    )


def convert_content(node: dict[str, Any] | None) -> ItemContent | None:
    """Issue and PR both carry a repository; only a PR carries ``merged``."""
    if not node:
        return None
    repo = node.get("repository")
    if repo:
        if "merged" in node and node["merged"] is not None:
            return PullRequestContent(
                number=node.get("number") or 0,
                title=node.get("title") or "",
                state=node.get("state") or "",
                url=node.get("url") or "",
                repository=repo["nameWithOwner"],
                merged=bool(node["merged"]),
                author=(node.get("author") or {}).get("login") or "unknown",
            )
        labels = node.get("labels") or {}
        return IssueContent(
            number=node.get("number") or 0,
            title=node.get("title") or "",
            state=node.get("state") or "",
            url=node.get("url") or "",
            repository=repo["nameWithOwner"],
            assignees=_logins(node.get("assignees")),
            labels=tuple(n["name"] for n in labels.get("nodes") or () if n),
        )
    if node.get("title") is not None:
        return DraftIssueContent(
            title=node["title"],
            body=node.get("body"),
            assignees=_logins(node.get("assignees")),
        )
    # redacted or inaccessible content
    return None


def convert_field_value(node: dict[str, Any] | None) -> FieldValue | None:
    """Iteration is checked before single-select, which is checked before scalars."""
    if not node:
        return None
    field_name = (node.get("field") or {}).get("name")
    if not field_name:
        return None
    if node.get("iterationId") is not None:
        return IterationValue(
            field_name=field_name,
            title=node.get("title") or "",
            start_date=node.get("startDate") or "",
            duration=node.get("duration") or 0,
            iteration_id=node["iterationId"],
        )
    if node.get("optionId") is not None:
        return SingleSelectValue(
            field_name=field_name, name=node.get("name") or "", option_id=node["optionId"]
        )
    if node.get("text") is not None:
        return TextValue(field_name=field_name, value=node["text"])
    if node.get("number") is not None:
        return NumberValue(field_name=field_name, value=float(node["number"]))
    if node.get("date") is not None:
        return DateValue(field_name=field_name, value=node["date"])
    return None


def convert_item(node: dict[str, Any]) -> ProjectItem | None:
    content = convert_content(node.get("content"))
    if content is None:
        return None
    values = [
        convert_field_value(v) for v in (node.get("fieldValues") or {}).get("nodes") or ()
    ]
    return ProjectItem(
        node_id=node["id"],
        content=content,
        field_values=tuple(v for v in values if v is not None),
        created_at=parse_datetime(node["createdAt"]),
        updated_at=parse_datetime(node["updatedAt"]),
    )
