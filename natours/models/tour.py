"""Tour model definitions."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from natours.database import Base
from natours.models.base import DocumentMixin

DIFFICULTIES = ("easy", "medium", "difficult")

tour_guides = Table(
    "tour_guides",
    Base.metadata,
    Column("tour_id", Integer, ForeignKey("tours.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Tour(DocumentMixin, Base):
    """Represents a bookable tour."""
    __tablename__ = "tours"

    name = Column(String(40), unique=True, nullable=False)
    slug = Column(String, index=True)
    duration = Column(Integer, nullable=False)
    max_group_size = Column(Integer, nullable=False)
    difficulty = Column(String, nullable=False)
    ratings_quantity = Column(Integer, nullable=False, default=0)
    ratings_average = Column(Float, nullable=False, default=4.5)
    price = Column(Float, nullable=False, index=True)
    price_discount = Column(Float, nullable=True)
    summary = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    image_cover = Column(String, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    secret_tour = Column(Boolean, nullable=False, default=False)
    start_location = Column(JSON, nullable=True)
    locations = Column(JSON, nullable=False, default=list)

    start_dates = relationship(
        "TourStartDate",
        order_by="TourStartDate.starts_at",
        cascade="all, delete-orphan",
        back_populates="tour",
    )
    guides = relationship("User", secondary=tour_guides, order_by="User.id")
    reviews = relationship("Review", back_populates="tour", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def duration_weeks(self) -> float | None:
        if self.duration is None:
            return None
        return self.duration / 7


class TourStartDate(Base):
    """One scheduled start of a tour."""
    __tablename__ = "tour_start_dates"

    id = Column(Integer, primary_key=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    starts_at = Column(DateTime(timezone=True), nullable=False)

    tour = relationship("Tour", back_populates="start_dates")
