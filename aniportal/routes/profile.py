"""
Auth and profile routes for the Aniportal FastAPI application

Sessions are issued by the auth backend; clients send the access token back
as ``Authorization: Bearer <token>``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.concurrency import run_in_threadpool

from aniportal.auth import SupabaseClient
from aniportal.config import get_auth_backend
from aniportal.errors import AuthError, BackendError, EmailNotConfirmedError, ProfileNotFoundError
from aniportal.models import (
    AuthSession,
    AuthUser,
    ConfirmationRequest,
    Credentials,
    ProfileUpdate,
    UserProfile,
)

router = APIRouter(prefix="/api")

bearer_scheme = HTTPBearer(auto_error=False)


def _backend_failure(e: BackendError, action: str) -> HTTPException:
    if isinstance(e, EmailNotConfirmedError):
        # the client offers to resend the confirmation mail
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, AuthError):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, ProfileNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=502, detail=f"Failed to {action}: {str(e)}")


def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Bearer token of the current request, 401 when absent"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_access_token),
    backend: SupabaseClient = Depends(get_auth_backend),
) -> AuthUser:
    """Resolve the bearer token to a user through the auth backend"""
    try:
        return await run_in_threadpool(backend.get_user, token)
    except BackendError as e:
        raise _backend_failure(e, "verify session")


@router.post("/auth/signup", response_model=AuthUser, status_code=201, tags=["Auth"])
async def sign_up(body: Credentials, backend: SupabaseClient = Depends(get_auth_backend)):
    """Register with email and password; a confirmation mail follows"""
    try:
        return await run_in_threadpool(backend.sign_up, body.email, body.password, body.redirect_to)
    except BackendError as e:
        raise _backend_failure(e, "sign up")


@router.post("/auth/login", response_model=AuthSession, tags=["Auth"])
async def sign_in(body: Credentials, backend: SupabaseClient = Depends(get_auth_backend)):
    """Exchange email and password for a session"""
    try:
        return await run_in_threadpool(backend.sign_in, body.email, body.password)
    except BackendError as e:
        raise _backend_failure(e, "sign in")


@router.post("/auth/resend", status_code=202, tags=["Auth"])
async def resend_confirmation(body: ConfirmationRequest, backend: SupabaseClient = Depends(get_auth_backend)):
    """Send the signup confirmation mail again"""
    try:
        await run_in_threadpool(backend.resend_confirmation, body.email, body.redirect_to)
    except BackendError as e:
        raise _backend_failure(e, "resend confirmation")
    return {"email": body.email, "sent": True}


@router.post("/auth/logout", status_code=204, tags=["Auth"])
async def sign_out(
    token: str = Depends(get_access_token),
    backend: SupabaseClient = Depends(get_auth_backend),
):
    """Revoke the current session"""
    try:
        await run_in_threadpool(backend.sign_out, token)
    except BackendError as e:
        raise _backend_failure(e, "sign out")


@router.get("/profile", response_model=UserProfile, tags=["Profile"])
async def read_profile(
    user: AuthUser = Depends(get_current_user),
    token: str = Depends(get_access_token),
    backend: SupabaseClient = Depends(get_auth_backend),
):
    """Profile of the signed-in user"""
    try:
        return await run_in_threadpool(backend.get_profile, token, user.id)
    except BackendError as e:
        raise _backend_failure(e, "load profile")


@router.patch("/profile", response_model=UserProfile, tags=["Profile"])
async def update_profile(
    body: ProfileUpdate,
    user: AuthUser = Depends(get_current_user),
    token: str = Depends(get_access_token),
    backend: SupabaseClient = Depends(get_auth_backend),
):
    """Change the username of the signed-in user"""
    try:
        return await run_in_threadpool(backend.update_profile, token, user.id, body.username.strip())
    except BackendError as e:
        raise _backend_failure(e, "update profile")
