"""CLI entry point: greport.

Subcommands:
    greport sync OWNER/REPO                        # Sync one repository into the store
    greport sync-all                               # Sync every tracked repository
    greport serve                                  # Run the HTTP API
    greport notes OWNER/REPO --version V [--milestone M]   # Print release notes as Markdown
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import click
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from greport.core.config import Config, ConfigError, load_config
from greport.core.database import create_all, create_engine, create_session_factory
from greport.core.github import InvalidRepoFormatError, RepoId
from greport.core.logging import setup_logging
from greport.engines.metrics import SlaConfig
from greport.engines.reports import to_markdown
from greport.engines.source.errors import SourceError
from greport.engines.source.registry import ClientRegistry
from greport.engines.sync.runner import SyncRunner
from greport.services import ServiceError

log = structlog.get_logger("greport.cli")


def _build_runner() -> SyncRunner:
    from greport.api import deps

    return deps.get_sync_runner()


@asynccontextmanager
async def _runtime(
    config: Config,
) -> AsyncIterator[tuple[async_sessionmaker[AsyncSession], ClientRegistry]]:
    """Engine, tables and client registry for one command; torn down afterwards."""
    engine = create_engine(config.database.url)
    registry = ClientRegistry.from_config(config)
    try:
        await create_all(engine)
        yield create_session_factory(engine), registry
    finally:
        await registry.close()
        await engine.dispose()


def _parse_repo(value: str) -> RepoId:
    try:
        return RepoId.parse(value)
    except InvalidRepoFormatError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config.toml")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """greport: GitHub repository reporting."""
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    setup_logging("DEBUG" if verbose else config.logging.level, config.logging.format)
    ctx.obj = config


@main.command("sync")
@click.argument("repository")
@click.pass_obj
def sync(config: Config, repository: str) -> None:
    """Sync one repository (OWNER/REPO) into the store."""
    ref = _parse_repo(repository)

    async def _run():
        async with _runtime(config) as (factory, registry):
            client = registry.client_for_owner(ref.owner)
            return await _build_runner().sync_repository(factory, client, ref.owner, ref.name)

    try:
        result = asyncio.run(_run())
    except (SourceError, ConfigError) as exc:
        click.echo(f"Error: sync of {ref} failed: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Synced {result.repository}:")
    click.echo(f"  Milestones: {result.milestones_synced}")
    click.echo(f"  Issues: {result.issues_synced}")
    click.echo(f"  Pull requests: {result.pulls_synced}")
    click.echo(f"  Releases: {result.releases_synced}")


@main.command("sync-all")
@click.pass_obj
def sync_all(config: Config) -> None:
    """Sync every tracked repository, then each organization's projects."""
    extra = [repo for org in config.organizations for repo in org.repos]

    async def _run():
        async with _runtime(config) as (factory, registry):
            return await _build_runner().sync_batch(factory, registry, extra)

    batch = asyncio.run(_run())
    for outcome in batch.results:
        marker = "+" if outcome.success else "!"
        detail = "" if outcome.success else f" - {outcome.error}"
        click.echo(f"  [{marker}] {outcome.repository}{detail}")
    for project in batch.projects:
        click.echo(
            f"  [p] {project.organization}: {project.projects_synced} projects, "
            f"{project.items_synced} items"
        )
    for org, error in batch.project_errors.items():
        click.echo(f"  [!] {org} projects - {error}")
    click.echo(f"\n{batch.successful}/{batch.total_repos} repositories synced")
    if batch.failed:
        sys.exit(1)


@main.command("serve")
@click.option("--host", default=None, help="Bind host (default from config)")
@click.option("--port", default=None, type=int, help="Bind port (default from config)")
@click.pass_obj
def serve(config: Config, host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    import uvicorn

    from greport.api import create_app

    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


@main.command("notes")
@click.argument("repository")
@click.option("--version", "version", required=True, help="Release version heading")
@click.option("--milestone", default=None, help="Milestone title or number")
@click.pass_obj
def notes(config: Config, repository: str, version: str, milestone: str | None) -> None:
    """Print release notes for REPOSITORY as Markdown."""
    from greport.api import deps
    from greport.services.report_service import ReportService

    ref = _parse_repo(repository)

    async def _run():
        async with _runtime(config) as (factory, registry):
            svc = ReportService(
                deps.get_cache_service(),
                registry,
                sla_config=SlaConfig.from_settings(config.sla),
                defaults=config.defaults,
            )
            async with factory() as session:
                return await svc.release_notes(
                    session, ref.owner, ref.name, version=version, milestone=milestone
                )

    try:
        release_notes = asyncio.run(_run())
    except (ServiceError, SourceError, ConfigError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(to_markdown(release_notes))
