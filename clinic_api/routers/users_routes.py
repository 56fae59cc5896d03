# clinic_api/routers/users_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from clinic_api.db import get_session
from clinic_api.models import User
from clinic_api.schemas import UserCreate, UserPublic, UserRole
from clinic_api.auth import get_current_user, hash_password
from clinic_api.repository import save

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Self-registration always creates a regular user; admins are provisioned in the store
    db_user = User(
        name=user.name,
        email=user.email,
        password_hash=hash_password(user.password),
        role=UserRole.user.value,
    )

    return save(session, db_user)  # fills db_user.id
