from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from natours.auth.dependencies import get_current_user, restrict_to
from natours.core.exceptions import NotFoundError, ValidationError
from natours.database import get_db
from natours.models.review import Review
from natours.models.user import Role, User
from natours.repositories.reviews import reviews
from natours.repositories.tours import tours
from natours.routes import handler_factory
from natours.schemas.review import ReviewCreate, ReviewUpdate

router = APIRouter(tags=["reviews"], dependencies=[Depends(get_current_user)])


def list_reviews_for(db: Session, request: Request, tour_id: int | None = None) -> dict:
    criteria = [Review.tour_id == tour_id] if tour_id is not None else []
    return handler_factory.get_all(db, reviews, handler_factory.query_params(request), *criteria)


def create_review_for(db: Session, data: ReviewCreate, current_user: User, tour_id: int | None = None) -> dict:
    target_tour_id = tour_id if tour_id is not None else data.tour
    if target_tour_id is None:
        raise ValidationError("Review must belong to a tour.")
    if tours.get(db, target_tour_id) is None:
        raise NotFoundError("No tour found with that ID")

    fields = data.model_dump(exclude_unset=True, exclude_none=True)
    fields.update({"tour": target_tour_id, "user": current_user.id})
    return handler_factory.create_one(db, reviews, fields)


@router.get("")
def get_all_reviews(request: Request, db: Session = Depends(get_db)):
    return list_reviews_for(db, request)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_review(
    data: ReviewCreate,
    current_user: User = Depends(restrict_to(Role.USER)),
    db: Session = Depends(get_db),
):
    return create_review_for(db, data, current_user)


@router.get("/{review_id}")
def get_review(review_id: int, db: Session = Depends(get_db)):
    return handler_factory.get_one(db, reviews, review_id)


@router.patch("/{review_id}", dependencies=[Depends(restrict_to(Role.USER, Role.ADMIN))])
def update_review(review_id: int, data: ReviewUpdate, db: Session = Depends(get_db)):
    return handler_factory.update_one(db, reviews, review_id, data)


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(restrict_to(Role.USER, Role.ADMIN))],
)
def delete_review(review_id: int, db: Session = Depends(get_db)):
    handler_factory.delete_one(db, reviews, review_id)
