from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import crud, models, schemas, security
from .config import settings
from .database import get_db
from .sessions import SessionStore, UserContext, get_session_store
from .token import REFRESH, create_access_token, create_refresh_token, decode_session_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

COOKIE_NAME = "access_token"


def authenticate_user(db: Session, email: str, password: str) -> models.User | None:
    """
    Authenticates a user by email and password.

    Returns the user object if authentication is successful, otherwise None.
    """
    user = crud.get_user_by_email(db, email)
    if not user or not security.verify_password(password, user.hashed_password):
        return None
    return user


def get_token_from_cookie_or_header(request: Request) -> str | None:
    """Extract token from either Authorization header or access_token cookie"""
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]

    cookie_token = request.cookies.get(COOKIE_NAME)
    if cookie_token and cookie_token.startswith("Bearer "):
        return cookie_token[7:]

    return None


def _session_user(request: Request, store: SessionStore) -> UserContext | None:
    token = get_token_from_cookie_or_header(request)
    if not token:
        return None
    session_id = decode_session_id(token)
    if not session_id:
        return None
    return store.get(session_id)


def get_current_user(
    request: Request, store: SessionStore = Depends(get_session_store)
) -> UserContext:
    # Resolved from the session store alone; no database round trip.
    user = _session_user(request, store)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def _token_pair(response: Response, user: UserContext, session_id: str) -> dict:
    token = create_access_token(user.id, session_id)
    # Browsers only ever send the cookie, so it lives as long as the session
    cookie_token = create_access_token(user.id, session_id, minutes=settings.SESSION_TTL_MINUTES)
    response.set_cookie(
        key=COOKIE_NAME,
        value=f"Bearer {cookie_token}",
        httponly=True,
        samesite="lax",
        max_age=settings.SESSION_TTL_MINUTES * 60,
    )
    return {
        "token": token,
        "refreshToken": create_refresh_token(user.id, session_id),
        "user": schemas.UserOut.model_validate(user),
    }


def _start_session(response: Response, store: SessionStore, user: models.User) -> dict:
    ctx = UserContext.from_user(user)
    return _token_pair(response, ctx, store.create(ctx))


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password are required")
    user = authenticate_user(db, payload.email, payload.password)
    if not user:
        logger.warning("Failed login for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    logger.info("User %s logged in", user.email)
    return _start_session(response, store, user)


@router.post("/register", response_model=schemas.AuthResponse)
def register(
    payload: schemas.RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    if not payload.email or not payload.password or not payload.name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Email, password and name are required"
        )
    if crud.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    try:
        user = crud.create_user(db, payload.email, payload.password, payload.name)
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    logger.info("Registered user %s (%s)", user.email, user.role)
    return _start_session(response, store, user)


@router.get("/me", response_model=schemas.UserOut)
def me(current_user: UserContext = Depends(get_current_user)):
    return current_user


@router.get("/check", response_model=schemas.AuthCheck)
def check(request: Request, store: SessionStore = Depends(get_session_store)):
    user = _session_user(request, store)
    return {"authenticated": user is not None, "user": user}


@router.post("/refresh", response_model=schemas.AuthResponse)
def refresh(
    payload: schemas.RefreshRequest,
    response: Response,
    store: SessionStore = Depends(get_session_store),
):
    session_id = decode_session_id(payload.refreshToken, REFRESH) if payload.refreshToken else None
    user = store.get(session_id) if session_id else None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    return _token_pair(response, user, session_id)


@router.post("/logout", response_model=schemas.Message)
def logout(request: Request, response: Response, store: SessionStore = Depends(get_session_store)):
    token = get_token_from_cookie_or_header(request)
    # An expired token still names the session to close
    session_id = decode_session_id(token, verify_exp=False) if token else None
    if session_id:
        store.destroy(session_id)
    response.delete_cookie(key=COOKIE_NAME)
    return {"message": "Logged out successfully"}
