"""Authentication routes and endpoints."""
import logging

from fastapi import APIRouter, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from study_scheduler.api.deps import CurrentUserDep, DBSessionDep
from study_scheduler.core.config import get_settings
from study_scheduler.schemas.auth import (
    LoginRequest,
    LogoutRequest,
    ProfileUpdate,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserRead,
)
from study_scheduler.services import auth_service as svc

logger = logging.getLogger(__name__)

settings = get_settings()

# Rate limiting
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(f"{settings.RATE_LIMIT_REQUESTS}/minute")
async def register(register_request: RegisterRequest, request: Request, db: DBSessionDep):
    """Email registration endpoint."""
    return await svc.register(db, register_request)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(f"{settings.RATE_LIMIT_REQUESTS}/minute")
async def login(login_request: LoginRequest, request: Request, db: DBSessionDep):
    """Email login endpoint."""
    return await svc.authenticate(db, login_request.email, login_request.password)


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit(f"{settings.RATE_LIMIT_REQUESTS * 2}/minute")
async def refresh_token(refresh_request: RefreshTokenRequest, request: Request, db: DBSessionDep):
    return await svc.refresh(db, refresh_request.refresh_token)


@router.post("/logout")
async def logout(logout_request: LogoutRequest, db: DBSessionDep, current_user: CurrentUserDep):
    revoked = await svc.logout(db, current_user, logout_request.refresh_token)
    return {"message": "Logged out successfully", "revoked_tokens": revoked}


@router.get("/me", response_model=UserRead)
async def get_me(current_user: CurrentUserDep):
    return current_user


@router.put("/me", response_model=UserRead)
async def update_me(data: ProfileUpdate, db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.update_profile(db, current_user, data)
