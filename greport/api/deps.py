"""Dependency injection — session, client registry and service singletons."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from greport.core.config import Config
from greport.core.database import create_engine, create_session_factory
from greport.dao.issue_dao import IssueDAO
from greport.dao.milestone_dao import MilestoneDAO
from greport.dao.project_dao import ProjectDAO
from greport.dao.pull_request_dao import PullRequestDAO
from greport.dao.release_dao import ReleaseDAO
from greport.dao.repository_dao import RepositoryDAO
from greport.dao.sync_status_dao import SyncStatusDAO
from greport.engines.metrics import SlaConfig
from greport.engines.source.registry import ClientRegistry
from greport.engines.sync.runner import SyncRunner
from greport.services.cache_service import CacheService
from greport.services.report_service import ReportService

# ---------------------------------------------------------------------------
# DAO singletons
# ---------------------------------------------------------------------------
_repository_dao = RepositoryDAO()
_milestone_dao = MilestoneDAO()
_issue_dao = IssueDAO()
_pull_request_dao = PullRequestDAO()
_release_dao = ReleaseDAO()
_sync_status_dao = SyncStatusDAO()
_project_dao = ProjectDAO()

# ---------------------------------------------------------------------------
# Service / runner singletons
# ---------------------------------------------------------------------------
_cache_service = CacheService(
    _repository_dao,
    _milestone_dao,
    _issue_dao,
    _pull_request_dao,
    _release_dao,
    _sync_status_dao,
)
_sync_runner = SyncRunner(
    _repository_dao,
    _milestone_dao,
    _issue_dao,
    _pull_request_dao,
    _release_dao,
    _sync_status_dao,
    _project_dao,
)

# ---------------------------------------------------------------------------
# Runtime state (initialised by app lifespan)
# ---------------------------------------------------------------------------
_config: Config = Config()
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_registry: ClientRegistry | None = None
_report_service: ReportService | None = None


def init_session_factory(database_url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory. Called once at startup."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_engine(database_url or _config.database.url)
    _session_factory = create_session_factory(_engine)
    return _session_factory


def get_engine() -> AsyncEngine | None:
    return _engine


async def dispose_engine() -> None:
    """Dispose the async engine, closing all pooled connections."""
    global _engine  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def set_config(config: Config) -> None:
    global _config, _report_service  # noqa: PLW0603
    _config = config
    _report_service = None


def set_session_factory(factory: async_sessionmaker[AsyncSession]) -> None:
    """Override session factory (for testing)."""
    global _session_factory  # noqa: PLW0603
    _session_factory = factory


def set_registry(registry: ClientRegistry | None) -> None:
    global _registry, _report_service  # noqa: PLW0603
    _registry = registry
    _report_service = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a per-request session with automatic commit/rollback."""
    if _session_factory is None:
        raise RuntimeError("call init_session_factory() before handling requests")
    async with _session_factory() as session:
        async with session.begin():
            yield session


# ---------------------------------------------------------------------------
# Getters (for Depends())
# ---------------------------------------------------------------------------


def get_config() -> Config:
    return _config


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("call init_session_factory() before handling requests")
    return _session_factory


def get_registry() -> ClientRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = ClientRegistry.from_config(_config)
    return _registry


def get_cache_service() -> CacheService:
    return _cache_service


def get_sync_runner() -> SyncRunner:
    return _sync_runner


def get_report_service() -> ReportService:
    global _report_service  # noqa: PLW0603
    if _report_service is None:
        _report_service = ReportService(
            _cache_service,
            get_registry(),
            sla_config=SlaConfig.from_settings(_config.sla),
            defaults=_config.defaults,
        )
    return _report_service


def tracked_extra_repos() -> list[str]:
    """Repositories named by configured organizations."""
    return [repo for org in _config.organizations for repo in org.repos]
