"""User registration routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.schemas.user import UserCreateRequest, UserResponse
from app.db.deps import get_db
from app.services.user_service import DuplicateUsernameError, create_user, get_user

router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED, tags=["users"])
def register_user(payload: UserCreateRequest, db: Session = Depends(get_db)) -> UserResponse:
    try:
        user = create_user(db, username=payload.username.strip(), email=payload.email)
    except DuplicateUsernameError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}", response_model=UserResponse, tags=["users"])
def read_user(user_id: int, db: Session = Depends(get_db)) -> UserResponse:
    user = get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)
