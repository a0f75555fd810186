"""Version snapshot model."""

from sqlalchemy import Column, Index, Integer, String, Text, Numeric, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class QuoteVersion(Base):
    """Immutable capture of a quote's header and items.

    Items live in the same row as the header so a snapshot is written
    (and becomes visible) in one statement.
    """

    __tablename__ = "quote_versions"
    __table_args__ = (
        UniqueConstraint("quote_id", "version_num", name="uq_quote_versions_quote_version"),
        Index("ix_quote_versions_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False)
    version_num = Column(Integer, nullable=False)

    name = Column(String(255), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)
    config = Column(JSON, nullable=False, default=dict)
    items = Column(JSON, nullable=False, default=list)  # list of plain item dicts

    change_summary = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    quote = relationship("Quote", back_populates="versions")
