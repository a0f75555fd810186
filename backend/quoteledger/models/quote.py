"""Quote and quote item models (the live, editable state)."""

from sqlalchemy import Column, Index, Integer, String, Text, Float, Numeric, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base

# Item attributes that make up the versioned content of a line.
# Storage bookkeeping (id, quote_id, position) is not part of it.
ITEM_FIELDS = (
    "category",
    "category_name",
    "room",
    "job",
    "quantity",
    "unit_price",
    "total",
    "material_price",
    "labor_price",
    "template_id",
    "template_name",
)


def item_to_dict(item) -> dict:
    """Project a QuoteItem, or a plain item dict, onto ITEM_FIELDS."""
    if isinstance(item, dict):
        return {name: item.get(name) for name in ITEM_FIELDS}
    return {name: getattr(item, name) for name in ITEM_FIELDS}


class Quote(Base):
    """Live quote. Represents version ``current_version``."""

    __tablename__ = "quotes"
    __table_args__ = (
        Index("ix_quotes_owner_id", "owner_id"),
        Index("ix_quotes_owner_status", "owner_id", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(100), nullable=False)

    # Versioned header fields (copied into every snapshot)
    name = Column(String(255), nullable=False)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    config = Column(JSON, nullable=False, default=dict)  # VAT rate, display mode, ...

    # Version of the live state; has no snapshot until the next mutation.
    current_version = Column(Integer, nullable=False, default=1)

    # Workflow bookkeeping, not versioned
    status = Column(String(20), nullable=False, default="draft")
    daily_earnings = Column(Numeric(12, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "QuoteItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteItem.position",
    )
    versions = relationship(
        "QuoteVersion",
        back_populates="quote",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class QuoteItem(Base):
    """One line of a quote."""

    __tablename__ = "quote_items"
    __table_args__ = (
        Index("ix_quote_items_quote_id", "quote_id", "position"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    category = Column(String(100), nullable=True)
    category_name = Column(String(255), nullable=True)
    room = Column(String(255), nullable=True)
    job = Column(String(500), nullable=False, default="")

    quantity = Column(Float, nullable=False, default=0)
    unit_price = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False, default=0)  # authoritative, never recomputed
    material_price = Column(Float, nullable=True)
    labor_price = Column(Float, nullable=True)

    template_id = Column(String(100), nullable=True)
    template_name = Column(String(255), nullable=True)

    quote = relationship("Quote", back_populates="items")
