"""lists and list_items table models (populated by the list import workflow)."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from domain.media import Domain, ItemType
from models.base import Base, enum_column
from models.mixins import TimestampMixin

if TYPE_CHECKING:
    from models.penalty import ListPenalty
    from models.ranked import RankedList


class ListStatus(str, Enum):
    UNAPPROVED = "unapproved"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"


PARTICIPATING_STATUSES: frozenset[ListStatus] = frozenset({ListStatus.APPROVED, ListStatus.ACTIVE})


class List(TimestampMixin, Base):
    """A curated, externally sourced ranking of items in one domain."""

    __tablename__ = "lists"
    __table_args__ = (
        CheckConstraint(
            "num_years_covered IS NULL OR num_years_covered > 0",
            name="ck_lists_num_years_covered",
        ),
        Index("idx_lists_domain_status", "domain", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    domain: Mapped[Domain] = mapped_column(enum_column(Domain, "list_domain"), nullable=False)
    status: Mapped[ListStatus] = mapped_column(
        enum_column(ListStatus, "list_status"),
        nullable=False,
        default=ListStatus.UNAPPROVED,
    )
    number_of_voters: Mapped[int | None] = mapped_column(Integer, nullable=True)
    high_quality_source: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    voter_count_estimated: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    voter_count_unknown: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    voter_names_unknown: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    category_specific: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    location_specific: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    yearly_award: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    year_published: Mapped[int | None] = mapped_column(Integer, nullable=True)
    estimated_quality: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    num_years_covered: Mapped[int | None] = mapped_column(Integer, nullable=True)

    list_items: Mapped[list[ListItem]] = relationship(
        back_populates="list",
        cascade="all, delete-orphan",
        order_by="ListItem.position",
    )
    list_penalties: Mapped[list[ListPenalty]] = relationship(
        back_populates="list",
        cascade="all, delete-orphan",
        order_by="ListPenalty.id",
    )
    ranked_lists: Mapped[list[RankedList]] = relationship(
        back_populates="list",
        cascade="all, delete-orphan",
    )

    @property
    def participating(self) -> bool:
        return self.status in PARTICIPATING_STATUSES


class ListItem(Base):
    """Ordered membership of one domain item in a list."""

    __tablename__ = "list_items"
    __table_args__ = (
        UniqueConstraint(
            "list_id",
            "listable_type",
            "listable_id",
            name="uq_list_items_list_listable",
        ),
        CheckConstraint("position > 0", name="ck_list_items_position"),
        Index("idx_list_items_list_position", "list_id", "position"),
        Index("idx_list_items_listable", "listable_type", "listable_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    list_id: Mapped[int] = mapped_column(ForeignKey("lists.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    listable_type: Mapped[ItemType | None] = mapped_column(
        enum_column(ItemType, "listable_type"),
        nullable=True,
    )
    listable_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    list: Mapped[List] = relationship(back_populates="list_items")
