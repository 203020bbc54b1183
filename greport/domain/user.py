"""Users and labels."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    id: int
    login: str
    avatar_url: str = ""
    html_url: str = ""

    @classmethod
    def from_login_id(cls, login: str, user_id: int) -> User:
        """Rebuild a user from the two columns the store keeps."""
        return cls(
            id=user_id,
            login=login,
            avatar_url=f"https://avatars.githubusercontent.com/u/{user_id}",
            html_url=f"https://github.com/{login}",
        )

    @classmethod
    def unknown(cls) -> User:
        """Placeholder for deleted ("ghost") accounts."""
        return cls(id=0, login="unknown")


@dataclass(frozen=True)
class Label:
    id: int
    name: str
    color: str = ""
    description: str | None = None
