"""GitHub repository identifiers."""

from __future__ import annotations

from dataclasses import dataclass


class InvalidRepoFormatError(ValueError):
    """Raised when a repository identifier is not ``owner/name``."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"invalid repository format: {value!r} (expected 'owner/repo')")


@dataclass(frozen=True)
class RepoId:
    owner: str
    name: str

    @classmethod
    def parse(cls, value: str) -> RepoId:
        """Parse ``owner/name`` or a GitHub URL into a RepoId.

        Raises InvalidRepoFormatError if neither form matches.
        """
        extracted = _extract_owner_repo(value)
        if extracted is None:
            raise InvalidRepoFormatError(value)
        owner, name = extracted
        return cls(owner, name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


def _extract_owner_repo(value: str) -> tuple[str, str] | None:
    """Extract (owner, repo) from a repository reference.

    Handles:
      - owner/repo
      - https://github.com/owner/repo
      - https://github.com/owner/repo.git
      - git@github.com:owner/repo.git
    """
    value = value.strip().rstrip("/")
    if value.endswith(".git"):
        value = value[:-4]

    # SSH format: git@github.com:owner/repo
    if value.startswith("git@"):
        colon_idx = value.find(":")
        if colon_idx == -1:
            return None
        value = value[colon_idx + 1 :]
    elif "://" in value:
        value = value.split("://", 1)[1]
        # drop the host
        if "/" not in value:
            return None
        value = value.split("/", 1)[1]

    parts = value.split("/")
    if len(parts) == 2 and all(p.strip() for p in parts) and " " not in value:
        return parts[0], parts[1]
    return None
