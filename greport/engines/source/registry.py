"""Per-organization client resolution."""

from __future__ import annotations

import structlog

from greport.core.config import Config, ConfigError, org_token_env_var
from greport.engines.source.base import SourceClient
from greport.engines.source.github_client import GitHubClient
from greport.engines.source.limiter import RequestLimiter

log = structlog.get_logger("greport.engine")


class OrgNotConfiguredError(ConfigError):
    """No client is configured for an organization and there is no default."""

    def __init__(self, org: str) -> None:
        self.org = org
        super().__init__(
            f"no GitHub client configured for organization {org!r}; "
            f"add it to [[organizations]] or set {org_token_env_var(org)} or GITHUB_TOKEN"
        )


class ClientRegistry:
    """Maps organization names (case-insensitive) to source clients.

    Clients built by ``from_config`` that share a token also share one
    RequestLimiter.
    """

    def __init__(
        self,
        default: SourceClient | None = None,
        orgs: dict[str, SourceClient] | None = None,
    ) -> None:
        self._default = default
        self._orgs: dict[str, SourceClient] = {}
        for name, client in (orgs or {}).items():
            self.register(name, client)

    @classmethod
    def from_config(cls, config: Config, *, min_interval: float = 0.0) -> ClientRegistry:
        limiters: dict[str | None, RequestLimiter] = {}

        def _build(token: str | None, base_url: str | None) -> GitHubClient:
            limiter = limiters.setdefault(token, RequestLimiter(min_interval))
            return GitHubClient(token, base_url=base_url, limiter=limiter)

        default = None
        if config.github.token:
            default = _build(config.github.token, config.github.base_url)

        orgs: dict[str, SourceClient] = {}
        for org in config.organizations:
            token = org.token or config.github.token
            if not token:
                log.warning("registry.org_without_token", org=org.name)
                continue
            orgs[org.name] = _build(token, org.base_url or config.github.base_url)
        return cls(default, orgs)

    def register(self, org: str, client: SourceClient) -> None:
        self._orgs[org.lower()] = client

    @property
    def organizations(self) -> list[str]:
        return sorted(self._orgs)

    def client_for_owner(self, owner: str) -> SourceClient:
        """Return the organization's client, else the default client.

        Raises OrgNotConfiguredError when neither exists.
        """
        client = self._orgs.get(owner.lower(), self._default)
        if client is None:
            raise OrgNotConfiguredError(owner)
        return client

    async def close(self) -> None:
        seen: set[int] = set()
        clients = list(self._orgs.values())
        if self._default is not None:
            clients.append(self._default)
        for client in clients:
            if id(client) in seen:
                continue
            seen.add(id(client))
            await client.close()
