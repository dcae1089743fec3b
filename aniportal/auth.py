"""
Client for the managed auth/database backend (Supabase)

Talks to the GoTrue auth endpoints for email/password sessions and to the
PostgREST ``profiles`` table for the user dashboard. The backend owns all
data; this module only issues the calls.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from aniportal.errors import AuthError, BackendError, EmailNotConfirmedError, ProfileNotFoundError
from aniportal.models import AuthSession, AuthUser, UserProfile
from aniportal.utils import build_http_session

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "username,avatar_url,updated_at"


class SupabaseClient:
    """Email/password auth and profile rows over the Supabase REST API"""

    def __init__(self, url: str, anon_key: str, timeout: float = 10.0, retries: int = 2,
                 session: Optional[requests.Session] = None):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self._session = session or build_http_session(retries)

    @property
    def configured(self) -> bool:
        return bool(self.url and self.anon_key)

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token or self.anon_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, token: Optional[str] = None,
                 headers: Optional[Dict[str, str]] = None, **kwargs) -> requests.Response:
        if not self.configured:
            raise BackendError("Auth backend is not configured (SUPABASE_URL / SUPABASE_ANON_KEY)")

        all_headers = self._headers(token)
        all_headers.update(headers or {})
        url = f"{self.url}{path}"
        try:
            response = self._session.request(method, url, headers=all_headers,
                                             timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendError(f"{method} {path} failed: {e}") from e

        # GoTrue reports bad credentials as 400/422
        rejected = response.status_code in (400, 422) and path.startswith("/auth/")
        if rejected and _is_unconfirmed(response):
            raise EmailNotConfirmedError(_error_message(response), status_code=response.status_code)
        if rejected or response.status_code in (401, 403):
            raise AuthError(_error_message(response), status_code=response.status_code)
        if response.status_code >= 400:
            raise BackendError(_error_message(response), status_code=response.status_code)
        return response

    # ---------- auth ----------

    def sign_up(self, email: str, password: str, redirect_to: Optional[str] = None) -> AuthUser:
        """Register a user; the backend mails a confirmation link"""
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = self._request("POST", "/auth/v1/signup", params=params,
                                 json={"email": email, "password": password})
        body = response.json()
        # Without email confirmation the backend answers with a session instead of a user.
        user = body.get("user") or body
        logger.info("Signed up user %s", user.get("id"))
        return _user(user)

    def sign_in(self, email: str, password: str) -> AuthSession:
        response = self._request("POST", "/auth/v1/token", params={"grant_type": "password"},
                                 json={"email": email, "password": password})
        body = response.json()
        user = body.get("user") or {}
        if not body.get("access_token") or not user.get("id"):
            raise AuthError("Auth backend returned no session")
        return AuthSession(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            token_type=body.get("token_type", "bearer"),
            expires_in=body.get("expires_in"),
            user_id=user["id"],
            email=user.get("email"),
        )

    def resend_confirmation(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Send the signup confirmation mail again"""
        body = {"type": "signup", "email": email}
        if redirect_to:
            body["options"] = {"email_redirect_to": redirect_to}
        self._request("POST", "/auth/v1/resend", json=body)
        logger.info("Resent signup confirmation")

    def sign_out(self, token: str) -> None:
        self._request("POST", "/auth/v1/logout", token=token)

    def get_user(self, token: str) -> AuthUser:
        """Resolve an access token to its user, raising AuthError if invalid"""
        response = self._request("GET", "/auth/v1/user", token=token)
        return _user(response.json())

    # ---------- profiles ----------

    def get_profile(self, token: str, user_id: str) -> UserProfile:
        response = self._request(
            "GET", "/rest/v1/profiles", token=token,
            params={"id": f"eq.{user_id}", "select": PROFILE_COLUMNS},
        )
        return _single_profile(response.json(), user_id)

    def update_profile(self, token: str, user_id: str, username: str) -> UserProfile:
        """Set the username and stamp ``updated_at``, returning the new row"""
        response = self._request(
            "PATCH", "/rest/v1/profiles", token=token,
            params={"id": f"eq.{user_id}", "select": PROFILE_COLUMNS},
            headers={"Prefer": "return=representation"},
            json={"username": username, "updated_at": datetime.now(timezone.utc).isoformat()},
        )
        profile = _single_profile(response.json(), user_id)
        logger.info("Updated profile for user %s", user_id)
        return profile


def _user(body: Dict[str, Any]) -> AuthUser:
    if not isinstance(body, dict) or not body.get("id"):
        raise BackendError("Auth backend returned no user")
    return AuthUser(
        id=body["id"],
        email=body.get("email"),
        email_confirmed=bool(body.get("email_confirmed_at") or body.get("confirmed_at")),
    )


def _single_profile(rows: Any, user_id: str) -> UserProfile:
    if not isinstance(rows, list):
        raise BackendError("Profile query returned an unexpected body")
    if not rows:
        raise ProfileNotFoundError(f"No profile for user {user_id}", status_code=404)
    return UserProfile(**rows[0])


def _is_unconfirmed(response: requests.Response) -> bool:
    try:
        body = response.json()
    except ValueError:
        return False
    if not isinstance(body, dict):
        return False
    if body.get("error_code") == "email_not_confirmed":
        return True
    # older GoTrue releases only carry the message
    return _error_message(response).strip().lower() == "email not confirmed"


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for field in ("error_description", "msg", "message", "error"):
            if body.get(field):
                return str(body[field])
    return f"HTTP {response.status_code}"
