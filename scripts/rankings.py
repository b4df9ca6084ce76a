#!/usr/bin/env python3
"""Ranking recalculation and inspection commands."""

from __future__ import annotations

import sys
from concurrent.futures import wait
from pathlib import Path
from typing import Annotated

import typer
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import create_db_engine, create_session_factory, ensure_schema
from domain.errors import ConfigurationNotFoundError
from domain.media import Domain
from domain.pipeline import recalculate_all as run_recalculate_all
from domain.pipeline import recalculate_configuration
from domain.scheduler import RecalculationScheduler
from models import RankedItem, RankingConfiguration
from repositories.rankings import RankingRepository
from settings import AppSettings, configure_logging, load_settings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Recalculate and inspect weighted list rankings.",
)

DbUrlOption = Annotated[
    str | None,
    typer.Option(
        "--db-url",
        help="Database URL. Defaults to [database].url from the settings file.",
    ),
]
SettingsOption = Annotated[
    Path | None,
    typer.Option(
        "--settings",
        help="Settings TOML file. Defaults to configs/settings.toml.",
    ),
]


def _bootstrap(settings_path: Path | None, db_url: str | None) -> tuple[AppSettings, sessionmaker[Session]]:
    try:
        settings = load_settings(settings_path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--settings") from exc

    configure_logging(settings.log_level)
    engine = create_db_engine(db_url or settings.database_url)
    return settings, create_session_factory(engine)


@app.command()
def recalculate(
    configuration_id: Annotated[
        int,
        typer.Argument(help="RankingConfiguration id to recalculate."),
    ],
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Compute weights and ranks without writing them."),
    ] = False,
    db_url: DbUrlOption = None,
    settings_path: SettingsOption = None,
) -> None:
    """Recalculate list weights and item ranks for one configuration."""
    settings, session_factory = _bootstrap(settings_path, db_url)
    repository = RankingRepository(lock_namespace=settings.lock_namespace)

    try:
        summary = recalculate_configuration(
            session_factory=session_factory,
            configuration_id=configuration_id,
            repository=repository,
            dry_run=dry_run,
            echo=typer.echo,
        )
    except ConfigurationNotFoundError as exc:
        raise typer.BadParameter(str(exc), param_hint="configuration_id") from exc

    for error in summary.errors:
        typer.echo(f"skipped {error}")


@app.command("recalculate-all")
def recalculate_all(
    domain: Annotated[
        Domain,
        typer.Argument(help="Domain whose non-archived configurations are recalculated."),
    ],
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Compute weights and ranks without writing them."),
    ] = False,
    background: Annotated[
        bool,
        typer.Option(
            "--background",
            help="Run configurations concurrently on the scheduler's worker pool.",
        ),
    ] = False,
    db_url: DbUrlOption = None,
    settings_path: SettingsOption = None,
) -> None:
    """Recalculate every non-archived configuration of a domain."""
    settings, session_factory = _bootstrap(settings_path, db_url)
    repository = RankingRepository(lock_namespace=settings.lock_namespace)

    if background:
        if dry_run:
            raise typer.BadParameter("--dry-run cannot be combined with --background")
        with RecalculationScheduler(
            session_factory,
            max_workers=settings.max_workers,
            repository=repository,
        ) as scheduler:
            futures = scheduler.enqueue_all(domain)
            wait(futures.values())

        failed = 0
        for configuration_id, future in sorted(futures.items()):
            error = future.exception()
            if error is not None:
                failed += 1
                typer.echo(f"failed configuration_id={configuration_id} error={error}")
                continue
            summary = future.result()
            typer.echo(
                f"completed configuration_id={summary.configuration_id} "
                f"ranked_items={summary.ranked_items} errors={len(summary.errors)}"
            )
        if failed:
            raise typer.Exit(code=1)
        return

    result = run_recalculate_all(
        session_factory=session_factory,
        domain=domain,
        repository=repository,
        dry_run=dry_run,
        echo=typer.echo,
    )
    typer.echo(
        f"domain={result.domain} "
        f"recalculated={len(result.summaries)} "
        f"failed={len(result.failures)}"
    )
    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def show(
    configuration_id: Annotated[
        int,
        typer.Argument(help="RankingConfiguration id to display."),
    ],
    limit: Annotated[
        int,
        typer.Option("--limit", help="Number of ranked items to print."),
    ] = 25,
    db_url: DbUrlOption = None,
    settings_path: SettingsOption = None,
) -> None:
    """Print the top ranked items of one configuration."""
    if limit <= 0:
        raise typer.BadParameter("--limit must be greater than 0")

    _, session_factory = _bootstrap(settings_path, db_url)
    with session_factory() as session:
        configuration = session.get(RankingConfiguration, configuration_id)
        if configuration is None:
            raise typer.BadParameter(
                f"RankingConfiguration id={configuration_id} not found",
                param_hint="configuration_id",
            )

        rows = session.scalars(
            select(RankedItem)
            .where(RankedItem.ranking_configuration_id == configuration_id)
            .order_by(RankedItem.rank, RankedItem.item_id)
            .limit(limit)
        ).all()

        typer.echo(
            f"configuration={configuration.name} "
            f"domain={configuration.domain.value} "
            f"items_shown={len(rows)}"
        )
        for row in rows:
            typer.echo(
                f"{row.rank:4d}. {row.item_type.value}:{row.item_id:<10d} "
                f"score={row.score:10.2f}"
            )


@app.command("init-db")
def init_db(
    db_url: DbUrlOption = None,
    settings_path: SettingsOption = None,
) -> None:
    """Create every ranking table that does not exist yet."""
    settings = load_settings(settings_path)
    configure_logging(settings.log_level)
    engine = create_db_engine(db_url or settings.database_url)
    ensure_schema(engine)
    typer.echo(f"schema ready url={engine.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    app()
