"""Identity lookups and email one-time-passcode sign-in against Supabase auth.

``current_identity`` is the lenient lookup used by every ownership-scoped
operation: any failure is logged and treated as "signed out".
``resolve_identity`` is the strict variant for callers (the migration job)
that must tell "nobody signed in" apart from "the identity check broke".
"""

from __future__ import annotations

import logging
import threading
from hashlib import sha256
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from cachetools import TTLCache

from ..config import (
    IDENTITY_CACHE_SIZE,
    IDENTITY_CACHE_TTL_SECONDS,
    REQUEST_TIMEOUT,
    SUPABASE_ANON_KEY,
    SUPABASE_REDIRECT_URL,
    SUPABASE_URL,
    supabase_configured,
)
from ..errors import ConfigurationError, IdentityProviderError
from ..models import Identity
from ..utils import mask_token
from .response_handling import extract_error
from .session import get_default_session

LOGGER = logging.getLogger(__name__)


def _token_key(access_token: str) -> str:
    return sha256(access_token.encode("utf-8")).hexdigest()


def _identity_from_user(user: Any, access_token: str | None) -> Identity | None:
    if not isinstance(user, dict) or not user.get("id"):
        return None
    return Identity(
        user_id=str(user["id"]),
        email=user.get("email"),
        access_token=access_token,
    )


class SupabaseAuth:
    """Thin client for the GoTrue endpoints under ``/auth/v1``."""

    def __init__(
        self,
        url: str = SUPABASE_URL,
        api_key: str = SUPABASE_ANON_KEY,
        *,
        session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT,
        redirect_url: str = SUPABASE_REDIRECT_URL,
        cache_ttl: int = IDENTITY_CACHE_TTL_SECONDS,
    ) -> None:
        self.url = (url or "").rstrip("/")
        self.api_key = api_key
        self._session = session or get_default_session()
        self._timeout = timeout
        self._redirect_url = redirect_url
        self._cache: Optional[TTLCache[str, Identity]] = (
            TTLCache(maxsize=IDENTITY_CACHE_SIZE, ttl=cache_ttl)
            if cache_ttl > 0
            else None
        )
        self._cache_lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return supabase_configured(self.url, self.api_key)

    def _require_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError(
                "Supabase not configured. Please set up your environment variables."
            )

    def _headers(self, access_token: str | None = None) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
        }

    def _post(
        self,
        path: str,
        context: str,
        *,
        json_body: Any = None,
        params: Optional[Dict[str, str]] = None,
        access_token: str | None = None,
    ) -> requests.Response:
        try:
            response = self._session.post(
                f"{self.url}/auth/v1/{path}",
                headers=self._headers(access_token),
                json=json_body,
                params=params,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            LOGGER.error("%s transport error: %s", context, exc)
            raise IdentityProviderError(f"{context} transport failure") from exc
        if response.status_code >= 400:
            detail = extract_error(response)
            LOGGER.error(
                "%s failed status=%s%s",
                context,
                response.status_code,
                f" detail={detail}" if detail else "",
            )
            raise IdentityProviderError(
                f"{context} failed with status {response.status_code}"
            )
        return response

    # ------------------------------------------------------------------
    # Identity lookups
    # ------------------------------------------------------------------
    def resolve_identity(self, access_token: str | None) -> Identity | None:
        """Return the signed-in identity, or None when there is none.

        Raises:
            IdentityProviderError: transport failures, server errors or an
                unreadable response from the auth endpoint.
        """

        if not access_token:
            return None
        if not self.configured:
            LOGGER.warning("Supabase not configured - skipping authentication check")
            return None
        key = _token_key(access_token)
        if self._cache is not None:
            with self._cache_lock:
                cached = self._cache.get(key)
            if cached is not None:
                return cached

        try:
            response = self._session.get(
                f"{self.url}/auth/v1/user",
                headers=self._headers(access_token),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            LOGGER.error("Identity lookup transport error: %s", exc)
            raise IdentityProviderError("Identity lookup transport failure") from exc

        status = response.status_code
        if status in (401, 403):
            LOGGER.info(
                "Access token %s rejected (status %s)", mask_token(access_token), status
            )
            return None
        if status >= 400:
            detail = extract_error(response)
            LOGGER.error(
                "Identity lookup failed status=%s%s",
                status,
                f" detail={detail}" if detail else "",
            )
            raise IdentityProviderError(f"Identity lookup failed with status {status}")
        try:
            user = response.json()
        except ValueError as exc:
            LOGGER.error("Invalid JSON in identity response: %s", exc)
            raise IdentityProviderError("Invalid JSON in identity response") from exc

        identity = _identity_from_user(user, access_token)
        if identity is not None and self._cache is not None:
            with self._cache_lock:
                self._cache[key] = identity
        return identity

    def current_identity(self, access_token: str | None) -> Identity | None:
        """Lenient lookup: any provider failure counts as "no identity"."""

        try:
            return self.resolve_identity(access_token)
        except IdentityProviderError as exc:
            LOGGER.error("Error getting current user: %s", exc)
            return None

    # ------------------------------------------------------------------
    # Sign-in flows
    # ------------------------------------------------------------------
    def request_email_otp(self, email: str) -> None:
        """Send a one-time passcode / magic link to ``email``."""

        self._require_configured()
        if not email or not email.strip():
            raise IdentityProviderError("Email address is required")
        self._post(
            "otp",
            "Sending OTP",
            json_body={"email": email.strip(), "create_user": True},
            params={"redirect_to": self._redirect_url},
        )
        LOGGER.info("OTP requested for %s", email.strip())

    def google_sign_in_url(self) -> str:
        """URL that starts the Google OAuth redirect flow via Supabase."""

        self._require_configured()
        query = urlencode({"provider": "google", "redirect_to": self._redirect_url})
        return f"{self.url}/auth/v1/authorize?{query}"

    def verify_email_otp(self, email: str, token: str) -> Identity:
        """Exchange an emailed passcode for a signed-in identity."""

        self._require_configured()
        response = self._post(
            "verify",
            "Verifying OTP",
            json_body={"type": "email", "email": email.strip(), "token": token},
        )
        try:
            data = response.json()
        except ValueError as exc:
            raise IdentityProviderError("Invalid JSON in OTP verification") from exc
        if not isinstance(data, dict):
            raise IdentityProviderError("Unexpected OTP verification payload")
        identity = _identity_from_user(data.get("user"), data.get("access_token"))
        if identity is None or not identity.access_token:
            raise IdentityProviderError("OTP verification returned no session")
        LOGGER.info(
            "Signed in user=%s access_token=%s",
            identity.user_id,
            mask_token(identity.access_token),
        )
        if self._cache is not None:
            with self._cache_lock:
                self._cache[_token_key(identity.access_token)] = identity
        return identity

    def sign_out(self, access_token: str | None) -> None:
        if not access_token:
            return
        if not self.configured:
            LOGGER.warning("Supabase not configured - skipping sign out")
            return
        if self._cache is not None:
            with self._cache_lock:
                self._cache.pop(_token_key(access_token), None)
        self._post("logout", "Signing out", access_token=access_token)


__all__ = ["SupabaseAuth"]
