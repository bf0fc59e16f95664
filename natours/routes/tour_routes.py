from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.orm import Session

from natours.auth.dependencies import get_current_user, restrict_to
from natours.database import get_db
from natours.models.user import Role, User
from natours.repositories.reviews import reviews
from natours.repositories.tours import monthly_plan, tour_stats, tours
from natours.routes import handler_factory, review_routes
from natours.schemas.review import ReviewCreate
from natours.schemas.tour import TourCreate, TourUpdate

router = APIRouter(tags=["tours"])

TOP_TOURS_ALIAS = {
    "limit": "5",
    "sort": "-ratingsAverage,price",
    "fields": "name,price,ratingsAverage,summary,difficulty",
}

tour_managers = restrict_to(Role.ADMIN, Role.LEAD_GUIDE)


@router.get("/top-5-cheap")
def get_top_tours(request: Request, db: Session = Depends(get_db)):
    return handler_factory.get_all(db, tours, handler_factory.query_params(request, TOP_TOURS_ALIAS))


@router.get("/tour-stats")
def get_tour_stats(db: Session = Depends(get_db)):
    return {"status": "success", "data": {"stats": tour_stats(db)}}


@router.get(
    "/monthly-plan/{year}",
    dependencies=[Depends(restrict_to(Role.ADMIN, Role.LEAD_GUIDE, Role.GUIDE))],
)
def get_monthly_plan(year: int = Path(ge=1, le=9998), db: Session = Depends(get_db)):
    return {"status": "success", "data": {"plan": monthly_plan(db, year)}}


@router.get("")
def get_all_tours(request: Request, db: Session = Depends(get_db)):
    return handler_factory.get_all(db, tours, handler_factory.query_params(request))


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(tour_managers)])
def create_tour(data: TourCreate, db: Session = Depends(get_db)):
    return handler_factory.create_one(db, tours, data)


@router.get("/{tour_id}")
def get_tour(tour_id: int, db: Session = Depends(get_db)):
    return handler_factory.get_one(db, tours, tour_id, populate=[("reviews", reviews)])


@router.patch("/{tour_id}", dependencies=[Depends(tour_managers)])
def update_tour(tour_id: int, data: TourUpdate, db: Session = Depends(get_db)):
    return handler_factory.update_one(db, tours, tour_id, data)


@router.delete("/{tour_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(tour_managers)])
def delete_tour(tour_id: int, db: Session = Depends(get_db)):
    handler_factory.delete_one(db, tours, tour_id)


@router.get("/{tour_id}/reviews", dependencies=[Depends(get_current_user)])
def get_tour_reviews(tour_id: int, request: Request, db: Session = Depends(get_db)):
    return review_routes.list_reviews_for(db, request, tour_id)


@router.post("/{tour_id}/reviews", status_code=status.HTTP_201_CREATED)
def create_tour_review(
    tour_id: int,
    data: ReviewCreate,
    current_user: User = Depends(restrict_to(Role.USER)),
    db: Session = Depends(get_db),
):
    return review_routes.create_review_for(db, data, current_user, tour_id)
