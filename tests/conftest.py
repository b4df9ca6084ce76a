"""Shared fixtures: a throwaway SQLite database and row factories."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db import create_db_engine, create_session_factory, ensure_schema
from domain.media import Domain, MediaType
from domain.rankings.common import DynamicType
from models import List, ListItem, ListStatus, Penalty, RankedList, RankingConfiguration
from repositories.configurations import ConfigurationRegistry
from repositories.penalties import add_list_to_configuration, apply_penalty, create_penalty


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_db_engine(f"sqlite+pysqlite:///{tmp_path / 'rankings.db'}")
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    with session_factory() as session:
        yield session


class RowFactory:
    """Builds valid rows through the same write path the application uses."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.registry = ConfigurationRegistry(session)

    def configuration(self, **attrs: Any) -> RankingConfiguration:
        values: dict[str, Any] = {"name": "Default", "domain": Domain.MUSIC_ALBUMS}
        values.update(attrs)
        return self.registry.create(values)

    def list_(
        self,
        item_ids: Sequence[int] = (),
        *,
        domain: Domain = Domain.MUSIC_ALBUMS,
        status: ListStatus = ListStatus.APPROVED,
        **signals: Any,
    ) -> List:
        list_ = List(name=signals.pop("name", "Greatest Of All Time"), domain=domain, status=status, **signals)
        list_.list_items = [
            ListItem(
                position=position,
                listable_type=domain.item_type,
                listable_id=item_id,
                verified=True,
            )
            for position, item_id in enumerate(item_ids, start=1)
        ]
        self.session.add(list_)
        self.session.flush()
        return list_

    def penalty(
        self,
        name: str = "Penalty",
        *,
        media_type: MediaType = MediaType.CROSS_MEDIA,
        dynamic_type: DynamicType | None = None,
    ) -> Penalty:
        return create_penalty(
            self.session,
            {
                "name": name,
                "media_type": media_type,
                "dynamic_type": dynamic_type,
                "global_": True,
            },
        )

    def ranked_list(self, configuration: RankingConfiguration, list_: List) -> RankedList:
        return add_list_to_configuration(self.session, configuration, list_)

    def application(self, configuration: RankingConfiguration, penalty: Penalty, value: int):
        return apply_penalty(self.session, configuration, penalty, value)


@pytest.fixture
def factory(session: Session) -> RowFactory:
    return RowFactory(session)
