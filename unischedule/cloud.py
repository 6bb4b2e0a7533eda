"""
Cloud sync (hosted Supabase backend over its REST API).

Thin request/response wrapper, one HTTP call per operation:
- auth: sign up / sign in with e-mail + PIN, sign out, token refresh
- profiles: fetch-or-create my row, list all rows (master only, enforced by the backend)
- schedules: load / save the WHOLE schedule document for a user
- reset-pin: server-side function, master only

There is no merge, no delta and no version check: save_schedule() replaces the
stored document, so the last writer wins. No retries either; errors surface
as CloudError with the backend's message.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests

from unischedule.config import CloudConfig
from unischedule.errors import AuthError, CloudError, CloudNotConfiguredError, ValidationError
from unischedule.model import Profile

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "user_id,username,is_master,created_at"
RESERVED_USERNAMES = ("admin", "root")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PIN_RE = re.compile(r"^\d{4,12}$")


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def normalize_email(text: str) -> str:
    return (text or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def is_valid_pin(pin: str) -> bool:
    return bool(_PIN_RE.match(pin or ""))


def validate_credentials(identity: str, pin: str, signup: bool = False) -> tuple[str, str]:
    """
    Check identity + PIN before any request is sent. Returns (email, pin).
    """
    email = normalize_email(identity)
    pin = (pin or "").strip()
    if not email:
        raise ValidationError("Enter your e-mail.")
    if signup and email.split("@", 1)[0] in RESERVED_USERNAMES:
        raise ValidationError("This username is reserved.")
    if not is_valid_email(email):
        raise ValidationError("Invalid e-mail.")
    if not is_valid_pin(pin):
        raise ValidationError("PIN: 4–12 digits.")
    return email, pin


# ---------------------------------------------------------------------------
# Data shapes
# ---------------------------------------------------------------------------


@dataclass
class CloudSession:
    access_token: str
    refresh_token: str
    user_id: str
    email: str = ""
    expires_at: float = 0.0

    def expired(self, leeway: float = 30.0) -> bool:
        return bool(self.expires_at) and time.time() + leeway >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "user_id": self.user_id,
            "email": self.email,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["CloudSession"]:
        if not isinstance(raw, dict):
            return None
        token = raw.get("access_token")
        user_id = raw.get("user_id")
        if not isinstance(token, str) or not token or not isinstance(user_id, str) or not user_id:
            return None
        expires_at = raw.get("expires_at")
        return cls(
            access_token=token,
            refresh_token=str(raw.get("refresh_token") or ""),
            user_id=user_id,
            email=str(raw.get("email") or ""),
            expires_at=float(expires_at) if isinstance(expires_at, (int, float)) else 0.0,
        )


@dataclass
class CloudDocument:
    data: dict[str, Any]
    updated_at: Optional[str]


@dataclass
class ResetPinResult:
    ok: bool
    message: Optional[str] = None


def _session_from_auth(body: dict[str, Any], email: str) -> Optional[CloudSession]:
    token = body.get("access_token")
    user = body.get("user") or {}
    if not token or not isinstance(user, dict) or not user.get("id"):
        return None
    expires_at = body.get("expires_at")
    if not isinstance(expires_at, (int, float)):
        expires_at = time.time() + float(body.get("expires_in") or 3600)
    return CloudSession(
        access_token=token,
        refresh_token=str(body.get("refresh_token") or ""),
        user_id=str(user["id"]),
        email=str(user.get("email") or email),
        expires_at=float(expires_at),
    )


def _profile_from_row(row: Any) -> Optional[Profile]:
    if not isinstance(row, dict) or not row.get("user_id"):
        return None
    return Profile(
        user_id=str(row["user_id"]),
        username=str(row.get("username") or ""),
        is_master=bool(row.get("is_master")),
        created_at=row.get("created_at"),
    )


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    text = (resp.text or "").strip()
    return text[:200] if text else f"HTTP {resp.status_code}"


def _utc_now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class CloudClient:
    def __init__(self, config: Optional[CloudConfig], http: Optional[requests.Session] = None) -> None:
        self.config = config
        self.http = http if http is not None else requests.Session()
        self.session: Optional[CloudSession] = None

    @property
    def enabled(self) -> bool:
        return self.config is not None

    def _require_config(self) -> CloudConfig:
        if self.config is None:
            raise CloudNotConfiguredError("Cloud not configured (set SUPABASE_URL and SUPABASE_ANON_KEY).")
        return self.config

    def _require_session(self) -> CloudSession:
        if self.session is None:
            raise AuthError("Not signed in to the cloud.")
        if self.session.expired() and self.session.refresh_token:
            self.refresh()
        return self.session

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
        token: Optional[str] = None,
        auth_endpoint: bool = False,
    ) -> requests.Response:
        config = self._require_config()
        all_headers = {
            "apikey": config.anon_key,
            "Authorization": f"Bearer {token or config.anon_key}",
            "Content-Type": "application/json",
        }
        if headers:
            all_headers.update(headers)

        url = f"{config.url}{path}"
        logger.debug("%s %s", method, url)
        try:
            resp = self.http.request(
                method, url, params=params, json=json, headers=all_headers, timeout=config.timeout
            )
        except requests.RequestException as e:
            raise CloudError(f"Network error: {e}") from e

        if not resp.ok:
            message = _error_message(resp)
            logger.info("%s %s failed: %s %s", method, path, resp.status_code, message)
            if auth_endpoint or resp.status_code == 401:
                raise AuthError(message)
            raise CloudError(message)
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise CloudError("Unexpected response from the cloud backend.") from e

    # -- auth ---------------------------------------------------------------

    def sign_up(self, identity: str, pin: str) -> CloudSession:
        """
        Create an account. When the backend returns no session (e-mail
        confirmation enabled), a sign-in is attempted right away.
        """
        email, pin = validate_credentials(identity, pin, signup=True)
        resp = self._request(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": pin, "data": {"email": email}},
            auth_endpoint=True,
        )
        session = _session_from_auth(self._json(resp) or {}, email)
        if session is None:
            return self.sign_in(email, pin)
        self.session = session
        self._ensure_profile_best_effort()
        return session

    def sign_in(self, identity: str, pin: str) -> CloudSession:
        email, pin = validate_credentials(identity, pin)
        resp = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": pin},
            auth_endpoint=True,
        )
        session = _session_from_auth(self._json(resp) or {}, email)
        if session is None:
            raise AuthError("Sign-in returned no session.")
        self.session = session
        self._ensure_profile_best_effort()
        return session

    def _ensure_profile_best_effort(self) -> None:
        try:
            self.ensure_profile()
        except CloudError as e:
            logger.warning("Could not create the profile row: %s", e)

    def refresh(self) -> CloudSession:
        current = self.session
        if current is None or not current.refresh_token:
            raise AuthError("Session expired, sign in again.")
        resp = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": current.refresh_token},
            auth_endpoint=True,
        )
        session = _session_from_auth(self._json(resp) or {}, current.email)
        if session is None:
            raise AuthError("Session expired, sign in again.")
        self.session = session
        return session

    def sign_out(self) -> None:
        """
        End the session. The local session is dropped even if the backend
        call fails.
        """
        session, self.session = self.session, None
        if session is None or self.config is None:
            return
        try:
            self._request("POST", "/auth/v1/logout", token=session.access_token)
        except CloudError as e:
            logger.warning("Sign-out request failed (%s); local session cleared anyway", e)

    # -- profiles -----------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[Profile]:
        session = self._require_session()
        resp = self._request(
            "GET",
            "/rest/v1/profiles",
            params={"select": PROFILE_COLUMNS, "user_id": f"eq.{user_id}"},
            token=session.access_token,
        )
        rows = self._json(resp) or []
        return _profile_from_row(rows[0]) if isinstance(rows, list) and rows else None

    def ensure_profile(self) -> Optional[Profile]:
        """
        Fetch my profile row, creating it (non-master) when missing.
        """
        session = self._require_session()
        profile = self.get_profile(session.user_id)
        if profile is not None:
            return profile

        row = {
            "user_id": session.user_id,
            "username": session.email,
            "is_master": False,
            "created_at": _utc_now_iso(),
        }
        resp = self._request(
            "POST",
            "/rest/v1/profiles",
            params={"on_conflict": "user_id"},
            json=row,
            headers={"Prefer": "resolution=ignore-duplicates,return=representation"},
            token=session.access_token,
        )
        rows = self._json(resp)
        if isinstance(rows, list) and rows:
            return _profile_from_row(rows[0])
        return _profile_from_row(row)

    def list_profiles(self) -> list[Profile]:
        session = self._require_session()
        resp = self._request(
            "GET",
            "/rest/v1/profiles",
            params={"select": PROFILE_COLUMNS, "order": "created_at.asc"},
            token=session.access_token,
        )
        rows = self._json(resp) or []
        return [p for p in (_profile_from_row(r) for r in rows) if p is not None]

    # -- schedules ----------------------------------------------------------

    def load_schedule(self, user_id: str) -> Optional[CloudDocument]:
        session = self._require_session()
        resp = self._request(
            "GET",
            "/rest/v1/schedules",
            params={"select": "data,updated_at", "user_id": f"eq.{user_id}"},
            token=session.access_token,
        )
        rows = self._json(resp) or []
        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            return None
        data = rows[0].get("data")
        return CloudDocument(data=data if isinstance(data, dict) else {}, updated_at=rows[0].get("updated_at"))

    def save_schedule(self, user_id: str, payload: dict[str, Any]) -> str:
        """
        Replace the stored schedule document. Returns the server's updated_at.
        """
        session = self._require_session()
        resp = self._request(
            "POST",
            "/rest/v1/schedules",
            params={"on_conflict": "user_id", "select": "updated_at"},
            json={"user_id": user_id, "data": payload, "updated_at": _utc_now_iso()},
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
            token=session.access_token,
        )
        rows = self._json(resp)
        if isinstance(rows, list) and rows and isinstance(rows[0], dict) and rows[0].get("updated_at"):
            return str(rows[0]["updated_at"])
        raise CloudError("Save returned no timestamp.")

    # -- master -------------------------------------------------------------

    def reset_pin(self, username: str, new_pin: str) -> ResetPinResult:
        """
        Ask the server-side reset-pin function to set another user's PIN.

        The function checks that the caller is a master; this client never
        holds the rights to change passwords itself.
        """
        if not is_valid_pin(new_pin):
            raise ValidationError("PIN must be 4–12 digits.")
        session = self._require_session()
        config = self._require_config()
        url = f"{config.url}/functions/v1/reset-pin"
        headers = {
            "apikey": config.anon_key,
            "Authorization": f"Bearer {session.access_token}",
            "Content-Type": "application/json",
        }
        try:
            resp = self.http.request(
                "POST",
                url,
                json={"username": username.strip(), "newPin": new_pin},
                headers=headers,
                timeout=config.timeout,
            )
        except requests.RequestException as e:
            raise CloudError(f"Network error: {e}") from e

        # the function answers {ok, message} on its own 4xx errors too
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and "ok" in body:
            message = body.get("message")
            return ResetPinResult(ok=bool(body["ok"]), message=message if isinstance(message, str) else None)
        if not resp.ok:
            raise CloudError(_error_message(resp))
        return ResetPinResult(ok=True)
