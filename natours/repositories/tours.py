import re
import unicodedata
from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy import extract, func

from natours.core.exceptions import ValidationError
from natours.models.tour import Tour, TourStartDate
from natours.models.user import User
from natours.repositories.base import Repository, is_modified

tours = Repository(Tour)

GUIDE_FIELDS = ("id", "name", "email", "photo", "role")


def slugify(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")


@tours.query_filter
def exclude_secret_tours(model):
    return model.secret_tour.isnot(True)


@tours.prepare
def resolve_relations(db, fields: dict) -> dict:
    if "guides" in fields:
        guide_ids = list(dict.fromkeys(fields["guides"] or []))
        guides = db.query(User).filter(User.id.in_(guide_ids)).all() if guide_ids else []
        if len(guides) != len(guide_ids):
            raise ValidationError("Invalid guides: every guide must be an existing user.")
        fields["guides"] = sorted(guides, key=lambda guide: guide_ids.index(guide.id))
    if "start_dates" in fields:
        fields["start_dates"] = [TourStartDate(starts_at=value) for value in fields["start_dates"] or []]
    return fields


@tours.pre_save
def set_slug(db, tour: Tour) -> None:
    if tour.name and (tour.slug is None or is_modified(tour, "name")):
        tour.slug = slugify(tour.name)


@tours.serializer
def add_tour_virtuals(tour: Tour, document: dict, projection) -> None:
    if projection.allows("duration"):
        document["durationWeeks"] = tour.duration_weeks
    if projection.allows("start_dates"):
        document["startDates"] = [start.starts_at for start in tour.start_dates]
    if projection.allows("guides"):
        document["guides"] = [
            {key: getattr(guide, key) for key in GUIDE_FIELDS} for guide in tour.guides
        ]


def tour_stats(db, min_rating: float = 4.5) -> list[dict]:
    difficulty = func.upper(Tour.difficulty)
    rows = (
        tours.query(db)
        .with_entities(
            difficulty.label("difficulty"),
            func.count(Tour.id).label("num_tours"),
            func.sum(Tour.ratings_quantity).label("num_ratings"),
            func.avg(Tour.ratings_average).label("avg_rating"),
            func.avg(Tour.price).label("avg_price"),
            func.min(Tour.price).label("min_price"),
            func.max(Tour.price).label("max_price"),
        )
        .filter(Tour.ratings_average >= min_rating)
        .group_by(difficulty)
        .order_by(func.avg(Tour.price).asc())
        .all()
    )
    return [
        {
            "difficulty": row.difficulty,
            "numTours": row.num_tours,
            "numRatings": row.num_ratings or 0,
            "avgRating": float(row.avg_rating),
            "avgPrice": float(row.avg_price),
            "minPrice": row.min_price,
            "maxPrice": row.max_price,
        }
        for row in rows
    ]


def monthly_plan(db, year: int, max_months: int = 12) -> list[dict]:
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    rows = (
        tours.query(db)
        .join(Tour.start_dates)
        .with_entities(extract("month", TourStartDate.starts_at).label("month"), Tour.name)
        .filter(TourStartDate.starts_at >= start, TourStartDate.starts_at < end)
        .order_by(TourStartDate.starts_at.asc())
        .all()
    )

    grouped: dict[int, list[str]] = defaultdict(list)
    for row in rows:
        grouped[int(row.month)].append(row.name)

    plan = [
        {"month": month, "numTourStarts": len(names), "tours": names}
        for month, names in grouped.items()
    ]
    plan.sort(key=lambda item: (-item["numTourStarts"], item["month"]))
    return plan[:max_months]
