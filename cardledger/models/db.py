"""
SQLAlchemy ORM models for persistent storage.

Column names follow the store's schema, not the Card contract
(``set_name`` for ``set``, ``price`` for ``estimatedValue``); the mapping
lives in ``cardledger.db.operations``.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardValueDB(Base):
    """
    One logical collection entry.

    ``(name, set_name, condition)`` is unique: uploads merge into an existing
    row by incrementing ``quantity`` instead of inserting a duplicate.
    """

    __tablename__ = "card_values"
    __table_args__ = (
        UniqueConstraint("name", "set_name", "condition", name="uq_card_identity"),
    )
    # Load server-side created_at on insert; async sessions cannot lazy-load it later
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    set_name: Mapped[str] = mapped_column(String(255))
    condition: Mapped[str] = mapped_column(String(8))
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    date_added: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return (
            f"<CardValueDB(name={self.name}, set={self.set_name}, "
            f"condition={self.condition}, qty={self.quantity})>"
        )
