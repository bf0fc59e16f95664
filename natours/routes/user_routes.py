from datetime import timedelta

from fastapi import APIRouter, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from natours.auth import service
from natours.auth.dependencies import get_current_user, restrict_to
from natours.core import config
from natours.core.exceptions import AppError
from natours.database import get_db
from natours.models.user import Role, User
from natours.repositories.users import users
from natours.routes import handler_factory
from natours.schemas.user import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdateMeRequest,
    UpdatePasswordRequest,
    UserUpdate,
)
from natours.services.mailer import Mailer, get_mailer

router = APIRouter(tags=["users"])

admin_only = restrict_to(Role.ADMIN)


def send_token(user: User, token: str, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"status": "success", "token": token, "data": {"user": users.serialize(user)}}),
    )
    max_age = int(timedelta(days=config.JWT_COOKIE_EXPIRES_DAYS).total_seconds())
    response.set_cookie(
        config.JWT_COOKIE_NAME,
        token,
        max_age=max_age,
        httponly=True,
        secure=config.JWT_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    user, token = service.signup(db, data)
    return send_token(user, token, status.HTTP_201_CREATED)


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user, token = service.login(db, data.email, data.password)
    return send_token(user, token)


@router.post("/forgotPassword")
async def forgot_password(
    data: ForgotPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    reset_url = f"{str(request.base_url).rstrip('/')}/api/v1/users/resetPassword/"
    await service.forgot_password(db, data.email, reset_url, mailer)
    return {"status": "success", "message": "Token sent to email!"}


@router.patch("/resetPassword/{token}")
def reset_password(token: str, data: ResetPasswordRequest, db: Session = Depends(get_db)):
    user, new_token = service.reset_password(db, token, data.password)
    return send_token(user, new_token)


@router.patch("/updateMyPassword")
def update_my_password(
    data: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    token = service.update_password(db, current_user, data.password_current, data.password)
    return send_token(current_user, token)


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return {"status": "success", "data": {"data": users.serialize(current_user)}}


@router.patch("/updateMe")
def update_me(
    data: UpdateMeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = users.update(db, current_user, data)
    return {"status": "success", "data": {"user": users.serialize(user)}}


@router.delete("/deleteMe", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    users.update(db, current_user, {"active": False})


@router.get("", dependencies=[Depends(admin_only)])
def get_all_users(request: Request, db: Session = Depends(get_db)):
    return handler_factory.get_all(db, users, handler_factory.query_params(request))


@router.post("", dependencies=[Depends(admin_only)])
def create_user():
    raise AppError("This route is not defined! Please use /signup instead", status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{user_id}", dependencies=[Depends(admin_only)])
def get_user(user_id: int, db: Session = Depends(get_db)):
    return handler_factory.get_one(db, users, user_id)


@router.patch("/{user_id}", dependencies=[Depends(admin_only)])
def update_user(user_id: int, data: UserUpdate, db: Session = Depends(get_db)):
    return handler_factory.update_one(db, users, user_id, data)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(admin_only)])
def delete_user(user_id: int, db: Session = Depends(get_db)):
    handler_factory.delete_one(db, users, user_id)
