"""penalties, list_penalties and penalty_applications table models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from domain.media import MediaType
from domain.rankings.common import DynamicType, PenaltyRef
from models.base import Base, enum_column
from models.mixins import TimestampMixin

if TYPE_CHECKING:
    from models.list import List
    from models.ranking_configuration import RankingConfiguration


class Penalty(TimestampMixin, Base):
    """A named reason a list's weight should be reduced."""

    __tablename__ = "penalties"
    __table_args__ = (
        Index("idx_penalties_media_type", "media_type"),
        Index("idx_penalties_global", "global"),
        Index("idx_penalties_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    media_type: Mapped[MediaType] = mapped_column(
        enum_column(MediaType, "penalty_media_type"),
        nullable=False,
        default=MediaType.CROSS_MEDIA,
    )
    dynamic_type: Mapped[DynamicType | None] = mapped_column(
        enum_column(DynamicType, "penalty_dynamic_type"),
        nullable=True,
    )
    global_: Mapped[bool] = mapped_column("global", Boolean, nullable=False, default=False)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    list_penalties: Mapped[list[ListPenalty]] = relationship(
        back_populates="penalty",
        cascade="all, delete-orphan",
    )
    penalty_applications: Mapped[list[PenaltyApplication]] = relationship(
        back_populates="penalty",
        cascade="all, delete-orphan",
    )

    @property
    def dynamic(self) -> bool:
        return self.dynamic_type is not None

    def to_ref(self) -> PenaltyRef:
        return PenaltyRef(
            penalty_id=self.id,
            name=self.name,
            media_type=self.media_type,
            dynamic_type=self.dynamic_type,
        )


class ListPenalty(TimestampMixin, Base):
    """Attaches one static penalty to one list."""

    __tablename__ = "list_penalties"
    __table_args__ = (
        UniqueConstraint("list_id", "penalty_id", name="uq_list_penalties_list_penalty"),
        Index("idx_list_penalties_penalty", "penalty_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    list_id: Mapped[int] = mapped_column(ForeignKey("lists.id", ondelete="CASCADE"), nullable=False)
    penalty_id: Mapped[int] = mapped_column(
        ForeignKey("penalties.id", ondelete="CASCADE"),
        nullable=False,
    )

    list: Mapped[List] = relationship(back_populates="list_penalties")
    penalty: Mapped[Penalty] = relationship(back_populates="list_penalties")


class PenaltyApplication(TimestampMixin, Base):
    """Percentage deduction one penalty causes under one configuration."""

    __tablename__ = "penalty_applications"
    __table_args__ = (
        UniqueConstraint(
            "penalty_id",
            "ranking_configuration_id",
            name="uq_penalty_applications_penalty_config",
        ),
        CheckConstraint("value >= 0 AND value <= 100", name="ck_penalty_applications_value"),
        Index("idx_penalty_applications_config", "ranking_configuration_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    penalty_id: Mapped[int] = mapped_column(
        ForeignKey("penalties.id", ondelete="CASCADE"),
        nullable=False,
    )
    ranking_configuration_id: Mapped[int] = mapped_column(
        ForeignKey("ranking_configurations.id", ondelete="CASCADE"),
        nullable=False,
    )
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    penalty: Mapped[Penalty] = relationship(back_populates="penalty_applications")
    ranking_configuration: Mapped[RankingConfiguration] = relationship(
        back_populates="penalty_applications",
    )
