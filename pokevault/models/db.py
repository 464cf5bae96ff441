"""
SQLAlchemy ORM models for persistent storage.

Models mirror the dataclass models but add database persistence.
"""

from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class SetDB(Base):
    """An expansion set in the catalog."""

    __tablename__ = "sets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    series: Mapped[str] = mapped_column(String(255), default="")
    total_cards: Mapped[int] = mapped_column(Integer, default=0)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    cards: Mapped[list["CardDB"]] = relationship(
        back_populates="card_set", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<SetDB(id={self.id}, name={self.name})>"


class CardDB(Base):
    """
    A catalog card with its Cardmarket prices.

    Price columns are nullable: many cards have no market data.
    """

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    set_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("sets.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255), index=True)
    number: Mapped[str] = mapped_column(String(32))
    rarity: Mapped[str] = mapped_column(String(64), default="")
    types: Mapped[list[Any]] = mapped_column(JSON, default=list)

    # Cardmarket pricing (EUR)
    cardmarket_avg_sell_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    cardmarket_low_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    cardmarket_trend_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    cardmarket_reverse_holo_sell: Mapped[float | None] = mapped_column(Float, nullable=True)
    cardmarket_reverse_holo_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    cardmarket_reverse_holo_trend: Mapped[float | None] = mapped_column(Float, nullable=True)

    card_set: Mapped["SetDB"] = relationship(back_populates="cards")

    def __repr__(self) -> str:
        return f"<CardDB(id={self.id}, name={self.name})>"


class CollectionEntryDB(Base):
    """
    One owned (card, variant, condition) combination for a user.

    Quantity is always positive; a row reaching zero is deleted.
    """

    __tablename__ = "user_collections"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "card_id", "variant", "condition", name="uq_user_card_variant_condition"
        ),
        Index("ix_user_collections_user_card", "user_id", "card_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    card_id: Mapped[str] = mapped_column(String(64), index=True)
    variant: Mapped[str] = mapped_column(String(32), default="normal")
    condition: Mapped[str] = mapped_column(String(32), default="near_mint")
    quantity: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<CollectionEntryDB(card={self.card_id}, variant={self.variant}, "
            f"qty={self.quantity})>"
        )
