from sqlalchemy import func

from natours.models.review import Review
from natours.models.tour import Tour
from natours.repositories.base import Repository

DEFAULT_RATINGS_AVERAGE = 4.5

reviews = Repository(Review, aliases={"tour": "tour_id", "user": "user_id"})


@reviews.prepare
def map_references(db, fields: dict) -> dict:
    for name in ("tour", "user"):
        if name in fields:
            fields[f"{name}_id"] = fields.pop(name)
    return fields


def calc_average_ratings(db, tour_id: int) -> None:
    """Recompute a tour's rating count and average from its reviews."""
    quantity, average = (
        db.query(func.count(Review.id), func.avg(Review.rating))
        .filter(Review.tour_id == tour_id)
        .one()
    )
    tour = db.get(Tour, tour_id)
    if tour is None:
        return
    tour.ratings_quantity = quantity
    tour.ratings_average = round(float(average), 1) if quantity and average is not None else DEFAULT_RATINGS_AVERAGE
    db.flush()


@reviews.post_save
def update_tour_ratings_after_save(db, review: Review) -> None:
    calc_average_ratings(db, review.tour_id)


@reviews.post_delete
def update_tour_ratings_after_delete(db, review: Review) -> None:
    calc_average_ratings(db, review.tour_id)


@reviews.serializer
def embed_author(review: Review, document: dict, projection) -> None:
    if projection.allows("user") and review.user is not None:
        document["user"] = {"id": review.user.id, "name": review.user.name, "photo": review.user.photo}
