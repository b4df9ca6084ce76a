"""ranking_configurations table model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from domain.media import Domain
from models.base import Base, enum_column
from models.mixins import TimestampMixin

if TYPE_CHECKING:
    from models.penalty import PenaltyApplication
    from models.ranked import RankedItem, RankedList


class RankingConfiguration(TimestampMixin, Base):
    """One tunable aggregation run definition for a domain."""

    __tablename__ = "ranking_configurations"
    __table_args__ = (
        CheckConstraint("algorithm_version > 0", name="ck_ranking_configurations_algorithm_version"),
        CheckConstraint(
            "exponent > 0 AND exponent <= 10",
            name="ck_ranking_configurations_exponent",
        ),
        CheckConstraint(
            "bonus_pool_percentage >= 0 AND bonus_pool_percentage <= 100",
            name="ck_ranking_configurations_bonus_pool_percentage",
        ),
        Index("idx_ranking_configurations_domain_primary", "domain", "primary"),
        Index(
            "uq_ranking_configurations_domain_primary",
            "domain",
            unique=True,
            postgresql_where=text('"primary"'),
            sqlite_where=text('"primary" = 1'),
        ),
        Index("idx_ranking_configurations_domain_global", "domain", "global"),
        Index("idx_ranking_configurations_domain_user", "domain", "user_id"),
        Index("idx_ranking_configurations_inherited_from", "inherited_from_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    domain: Mapped[Domain] = mapped_column(enum_column(Domain, "ranking_domain"), nullable=False)
    algorithm_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    exponent: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False, default=3.0)
    bonus_pool_percentage: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False),
        nullable=False,
        default=3.0,
    )
    min_list_weight: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_list_dates_penalty_age: Mapped[int | None] = mapped_column(Integer, nullable=True, default=50)
    max_list_dates_penalty_percentage: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        default=80,
    )
    apply_list_dates_penalty: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    inherit_penalties: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    global_: Mapped[bool] = mapped_column("global", Boolean, nullable=False, default=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    list_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    inherited_from_id: Mapped[int | None] = mapped_column(
        ForeignKey("ranking_configurations.id", ondelete="SET NULL"),
        nullable=True,
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    inherited_from: Mapped[RankingConfiguration | None] = relationship(
        remote_side="RankingConfiguration.id",
        back_populates="inherited_configurations",
    )
    inherited_configurations: Mapped[list[RankingConfiguration]] = relationship(
        back_populates="inherited_from",
    )
    ranked_lists: Mapped[list[RankedList]] = relationship(
        back_populates="ranking_configuration",
        cascade="all, delete-orphan",
        order_by="RankedList.id",
    )
    ranked_items: Mapped[list[RankedItem]] = relationship(
        back_populates="ranking_configuration",
        cascade="all, delete-orphan",
        order_by="RankedItem.rank",
    )
    penalty_applications: Mapped[list[PenaltyApplication]] = relationship(
        back_populates="ranking_configuration",
        cascade="all, delete-orphan",
        order_by="PenaltyApplication.id",
    )

    @property
    def published(self) -> bool:
        return self.published_at is not None

    @property
    def inherited(self) -> bool:
        return self.inherited_from_id is not None
