from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator, model_validator

from natours.models.tour import DIFFICULTIES
from natours.schemas.base import CamelModel

NAME_MIN_LENGTH = 10
NAME_MAX_LENGTH = 40


class GeoPoint(CamelModel):
    type: Literal["Point"] = "Point"
    coordinates: list[float] = Field(default_factory=list)
    address: str | None = None
    description: str | None = None
    day: int | None = None


def check_name(value: str | None) -> str | None:
    if value is None:
        return value
    if len(value) < NAME_MIN_LENGTH:
        raise ValueError(f"A tour name must have more or equal than {NAME_MIN_LENGTH} characters")
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"A tour name must have less or equal than {NAME_MAX_LENGTH} characters")
    return value


def check_difficulty(value: str | None) -> str | None:
    if value is not None and value not in DIFFICULTIES:
        raise ValueError("Difficulty is either: easy, medium, difficult")
    return value


class TourUpdate(CamelModel):
    name: str | None = None
    duration: int | None = Field(default=None, gt=0)
    max_group_size: int | None = Field(default=None, gt=0)
    difficulty: str | None = None
    ratings_average: float | None = Field(default=None, ge=1, le=5)
    ratings_quantity: int | None = Field(default=None, ge=0)
    price: float | None = Field(default=None, ge=0)
    price_discount: float | None = Field(default=None, ge=0)
    summary: str | None = None
    description: str | None = None
    image_cover: str | None = None
    images: list[str] | None = None
    start_dates: list[datetime] | None = None
    secret_tour: bool | None = None
    start_location: GeoPoint | None = None
    locations: list[GeoPoint] | None = None
    guides: list[int] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return check_name(value)

    @field_validator("difficulty")
    @classmethod
    def validate_difficulty(cls, value: str | None) -> str | None:
        return check_difficulty(value)

    @model_validator(mode="after")
    def discount_below_price(self):
        if self.price is not None and self.price_discount is not None and self.price_discount >= self.price:
            raise ValueError(f"Discount price ({self.price_discount}) should be below regular price")
        return self


class TourCreate(TourUpdate):
    name: str
    duration: int = Field(gt=0)
    max_group_size: int = Field(gt=0)
    difficulty: str
    price: float = Field(ge=0)
    summary: str
    image_cover: str
