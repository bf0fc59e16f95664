from pydantic import Field, field_validator

from natours.schemas.base import CamelModel


class ReviewUpdate(CamelModel):
    review: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)

    @field_validator("review")
    @classmethod
    def review_not_empty(cls, value: str | None) -> str | None:
        if value is not None and not value:
            raise ValueError("Review can not be empty!")
        return value


class ReviewCreate(ReviewUpdate):
    review: str
    tour: int | None = None
