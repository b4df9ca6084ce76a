"""ranked_lists and ranked_items table models (materialized ranking output)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from domain.media import ItemType
from models.base import Base, JSONType, enum_column
from models.mixins import TimestampMixin

if TYPE_CHECKING:
    from models.list import List
    from models.ranking_configuration import RankingConfiguration


class RankedList(TimestampMixin, Base):
    """Computed weight of one list within one configuration."""

    __tablename__ = "ranked_lists"
    __table_args__ = (
        UniqueConstraint(
            "ranking_configuration_id",
            "list_id",
            name="uq_ranked_lists_config_list",
        ),
        Index("idx_ranked_lists_list", "list_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ranking_configuration_id: Mapped[int] = mapped_column(
        ForeignKey("ranking_configurations.id", ondelete="CASCADE"),
        nullable=False,
    )
    list_id: Mapped[int] = mapped_column(ForeignKey("lists.id", ondelete="CASCADE"), nullable=False)
    weight: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    calculated_weight_details: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    ranking_configuration: Mapped[RankingConfiguration] = relationship(back_populates="ranked_lists")
    list: Mapped[List] = relationship(back_populates="ranked_lists")


class RankedItem(TimestampMixin, Base):
    """Computed final rank and score of one item within one configuration."""

    __tablename__ = "ranked_items"
    __table_args__ = (
        UniqueConstraint(
            "item_id",
            "item_type",
            "ranking_configuration_id",
            name="uq_ranked_items_item_config",
        ),
        CheckConstraint("rank IS NULL OR rank > 0", name="ck_ranked_items_rank"),
        Index("idx_ranked_items_config_rank", "ranking_configuration_id", "rank"),
        Index("idx_ranked_items_config_score", "ranking_configuration_id", "score"),
        Index("idx_ranked_items_item", "item_type", "item_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ranking_configuration_id: Mapped[int] = mapped_column(
        ForeignKey("ranking_configurations.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_type: Mapped[ItemType] = mapped_column(enum_column(ItemType, "ranked_item_type"), nullable=False)
    item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)

    ranking_configuration: Mapped[RankingConfiguration] = relationship(back_populates="ranked_items")
