"""
Send rain alerts to an FCM topic via the FCM HTTP v1 API.
Requires FCM_PROJECT_ID and a service-account JSON via FCM_CREDENTIALS_PATH or FCM_CREDENTIALS_BASE64.
If not configured, send() no-ops (log and return False).

Auth: a service-account JWT (RS256) is exchanged for an OAuth access token, cached until
shortly before it expires.
"""
import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Protocol

import httpx
import jwt

from rainwatch.config import settings
from rainwatch.core.constants import PUSH_COLLAPSE_KEY, PUSH_TTL_SECONDS

logger = logging.getLogger(__name__)

FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

_TOKEN_LIFETIME_SECONDS = 60 * 60
_TOKEN_REFRESH_MARGIN_SECONDS = 5 * 60


class Notifier(Protocol):
    """Push delivery. Best-effort: implementations log failures and return False instead of raising."""

    def send(
        self,
        title: str,
        body: str,
        image_url: str,
        topic: str,
        platform_hints: dict[str, Any] | None = None,
    ) -> bool:
        ...


def _load_service_account() -> dict[str, Any] | None:
    """Load service-account JSON from FCM_CREDENTIALS_BASE64 or FCM_CREDENTIALS_PATH. Return None if not set."""
    base64_content = os.getenv("FCM_CREDENTIALS_BASE64")
    if base64_content:
        import base64
        try:
            return json.loads(base64.b64decode(base64_content).decode("utf-8"))
        except Exception as e:
            logger.warning("FCM_CREDENTIALS_BASE64 decode failed: %s", e)
            return None
    path = os.getenv("FCM_CREDENTIALS_PATH")
    if path and Path(path).exists():
        try:
            return json.loads(Path(path).read_text(encoding="utf-8"))
        except Exception as e:
            logger.warning("FCM_CREDENTIALS_PATH read failed: %s", e)
            return None
    return None


def build_message(
    title: str,
    body: str,
    image_url: str,
    topic: str,
    *,
    now: float | None = None,
    ttl_seconds: int = PUSH_TTL_SECONDS,
    collapse_key: str = PUSH_COLLAPSE_KEY,
) -> dict[str, Any]:
    """FCM v1 message: topic notification with radar image, collapsing and expiring on every platform."""
    now = time.time() if now is None else now
    return {
        "message": {
            "topic": topic,
            "notification": {"title": title, "body": body, "image": image_url},
            "apns": {
                "payload": {"aps": {"mutable-content": 1}},
                "headers": {
                    "apns-expiration": str(round(now + ttl_seconds)),
                    "apns-collapse-id": collapse_key,
                },
            },
            "android": {"ttl": f"{ttl_seconds * 60}s"},
            "webpush": {"headers": {"TTL": str(ttl_seconds)}},
        }
    }


class FcmNotifier:
    """Topic push over FCM HTTP v1. send() never raises; returns True when FCM accepted the message."""

    def __init__(
        self,
        project_id: str | None = None,
        service_account: dict[str, Any] | None = None,
        *,
        http: httpx.Client | None = None,
    ) -> None:
        self._project_id = (project_id if project_id is not None else settings.fcm_project_id).strip()
        self._service_account = service_account
        self._http = http
        self._token: tuple[str, float] | None = None
        self._lock = threading.Lock()

    def _credentials(self) -> dict[str, Any] | None:
        if self._service_account is None:
            self._service_account = _load_service_account()
        return self._service_account

    def is_configured(self) -> bool:
        return bool(self._project_id and self._credentials())

    def _client(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(timeout=settings.http_timeout_seconds)
        return self._http

    def _access_token(self) -> str | None:
        """Build the service-account JWT, exchange it, cache the access token. None on failure."""
        creds = self._credentials()
        if not creds:
            return None
        now = time.time()
        with self._lock:
            if self._token and self._token[1] > now:
                return self._token[0]
            try:
                assertion = jwt.encode(
                    {
                        "iss": creds["client_email"],
                        "scope": FCM_SCOPE,
                        "aud": creds.get("token_uri") or GOOGLE_TOKEN_URL,
                        "iat": int(now),
                        "exp": int(now) + _TOKEN_LIFETIME_SECONDS,
                    },
                    creds["private_key"],
                    algorithm="RS256",
                    headers={"kid": creds.get("private_key_id", "")},
                )
                resp = self._client().post(
                    creds.get("token_uri") or GOOGLE_TOKEN_URL,
                    data={"grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer", "assertion": assertion},
                )
                resp.raise_for_status()
                data = resp.json()
            except Exception as e:
                logger.warning("FCM access token request failed: %s", e, exc_info=True)
                return None
            token = data.get("access_token")
            if not token:
                logger.warning("FCM token response had no access_token")
                return None
            expires_in = int(data.get("expires_in") or _TOKEN_LIFETIME_SECONDS)
            self._token = (token, now + expires_in - _TOKEN_REFRESH_MARGIN_SECONDS)
            return token

    def send(
        self,
        title: str,
        body: str,
        image_url: str,
        topic: str,
        platform_hints: dict[str, Any] | None = None,
    ) -> bool:
        if not self._project_id:
            logger.debug("FCM_PROJECT_ID not set; skipping push")
            return False
        token = self._access_token()
        if not token:
            logger.debug("FCM not configured (credentials); skipping push")
            return False
        message = build_message(title, body, image_url, topic, **(platform_hints or {}))
        url = FCM_SEND_URL.format(project_id=self._project_id)
        try:
            resp = self._client().post(url, json=message, headers={"authorization": f"Bearer {token}"})
        except Exception as e:
            logger.warning("FCM request failed: %s", e, exc_info=True)
            return False
        if resp.status_code == 200:
            logger.info("SENT NOTIFICATION %s", resp.text[:200])
            return True
        logger.warning("FCM returned %s for topic %s: %s", resp.status_code, topic, resp.text[:500])
        return False
