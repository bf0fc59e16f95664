from datetime import timedelta

from natours.auth.passwords import hash_password
from natours.core.clock import utcnow
from natours.models.review import Review
from natours.models.user import User
from natours.repositories.base import Repository, is_modified, is_new
from natours.repositories.reviews import calc_average_ratings

HIDDEN_FIELDS = ("password", "password_reset_token", "password_reset_expires_in", "active")

users = Repository(User, hidden=HIDDEN_FIELDS)


@users.query_filter
def exclude_inactive(model):
    return model.active.isnot(False)


@users.pre_save
def hash_modified_password(db, user: User) -> None:
    if not is_modified(user, "password"):
        return
    user.password = hash_password(user.password)


@users.pre_save
def stamp_password_change(db, user: User) -> None:
    if is_new(user) or not is_modified(user, "password"):
        return
    # One second in the past so a token issued right after the change stays valid.
    user.password_changed_at = utcnow() - timedelta(seconds=1)


@users.pre_delete
def remove_reviews(db, user: User) -> None:
    tour_ids = [
        tour_id
        for (tour_id,) in db.query(Review.tour_id).filter(Review.user_id == user.id).distinct()
    ]
    db.query(Review).filter(Review.user_id == user.id).delete(synchronize_session=False)
    db.flush()
    for tour_id in tour_ids:
        calc_average_ratings(db, tour_id)


def find_by_email(db, email: str) -> User | None:
    return users.query(db).filter(User.email == email.strip().lower()).first()
