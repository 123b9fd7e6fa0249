"""Account endpoints; the issued token identifies the actor on every group call."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import get_current_user
from app.core.errors import ConflictError
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.schemas.user import UserPublic
from app.services.sql_stores import SqlUserDirectory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account; a taken email is a CONFLICT like any other duplicate."""
    directory = SqlUserDirectory(db)
    if directory.find_by_email(payload.email) is not None:
        raise ConflictError("Email already registered")

    try:
        hashed = hash_password(payload.password)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    # a concurrent registration of the same email surfaces here as ConflictError
    user = directory.create(payload.email, hashed)
    db.commit()
    logger.info("user registered", extra={"user_id": user.id})
    return TokenResponse(access_token=create_access_token(str(user.id)))


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = SqlUserDirectory(db).find_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.hashed_password):
        logger.info("login failed")
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return TokenResponse(access_token=create_access_token(str(user.id)))


@router.get("/me", response_model=UserPublic)
def me(user: User = Depends(get_current_user)):
    return user
