from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from natours.auth import service
from natours.core import config
from natours.database import get_db
from natours.models.user import Role, User

security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is not None:
        token = credentials.credentials
    else:
        token = request.cookies.get(config.JWT_COOKIE_NAME)
    return service.authenticate(db, token)


def restrict_to(*roles: Role | str):
    allowed = tuple(roles)

    def check_role(current_user: User = Depends(get_current_user)) -> User:
        return service.require_role(current_user, allowed)

    return check_role
