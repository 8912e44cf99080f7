"""Session gate backed by an external identity provider (FastAPI dependency)."""

import logging
from typing import List, Optional

import httpx
from fastapi import Request

from sharelink.config import Settings
from sharelink.errors import SessionRejected

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sAccessToken"
VERIFY_PATH = "/recipe/session/verify"


class SessionGate:
    """Asks the identity provider whether a request carries a live session."""

    def __init__(
        self,
        connection_uri: str = "",
        api_key: str = "",
        required: bool = False,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if required and not connection_uri:
            raise ValueError("session_connection_uri is required when sessions are enforced.")
        self.connection_uri = connection_uri.rstrip("/")
        self.api_key = api_key
        self.required = required
        self._timeout = timeout
        self._transport = transport

    @staticmethod
    def cors_headers() -> List[str]:
        """Request headers the session layer needs browsers to be allowed to send."""
        return ["authorization", "rid", "fdi-version", "anti-csrf", "st-auth-mode"]

    @staticmethod
    def access_token(request: Request) -> Optional[str]:
        auth = request.headers.get("authorization", "")
        scheme, _, token = auth.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
        return request.cookies.get(ACCESS_TOKEN_COOKIE) or None

    async def verify(self, token: str) -> bool:
        headers = {"api-key": self.api_key} if self.api_key else {}
        body = {
            "accessToken": token,
            "enableAntiCsrf": False,
            "doAntiCsrfCheck": False,
            "checkDatabase": False,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.connection_uri}{VERIFY_PATH}", json=body, headers=headers
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Session verification failed: %s", exc)
            return False
        return isinstance(payload, dict) and payload.get("status") == "OK"

    async def check(self, request: Request) -> None:
        """Raise SessionRejected unless the request may proceed."""
        if not self.required:
            return
        token = self.access_token(request)
        if not token:
            raise SessionRejected("No access token presented.")
        if not await self.verify(token):
            raise SessionRejected("Access token rejected by identity provider.")


def init_session_gate(settings: Settings) -> SessionGate:
    """Build the session gate once at process startup from *settings*."""
    gate = SessionGate(
        connection_uri=settings.session_connection_uri,
        api_key=settings.session_api_key,
        required=settings.session_required,
    )
    logger.info("Session gate initialised (required=%s)", gate.required)
    return gate


async def require_session(request: Request) -> None:
    """Dependency that passes or rejects a request before it reaches the extractor."""
    gate: Optional[SessionGate] = getattr(request.app.state, "session_gate", None)
    if gate is not None:
        await gate.check(request)
