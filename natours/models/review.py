"""Review model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from natours.database import Base
from natours.models.base import DocumentMixin


class Review(DocumentMixin, Base):
    """A user's rating of a tour."""
    __tablename__ = "reviews"

    review = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    tour = relationship("Tour", back_populates="reviews")
    user = relationship("User")
