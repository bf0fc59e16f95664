"""Columns shared by every stored entity."""

from sqlalchemy import Column, DateTime, Integer

from natours.core.clock import utcnow


class DocumentMixin:
    """Adds the identity, creation time and version marker columns."""

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    # Internal version marker, bumped on every update and hidden from default reads.
    version = Column(Integer, default=0, nullable=False)
