"""Session cookie middleware.

Reads the session id from the configured cookie, or assigns a new one, and
exposes it as ``request.state.session_id``. A newly assigned id is written
back with a Set-Cookie header on the response.
"""

from __future__ import annotations

import uuid
from http.cookies import SimpleCookie
from typing import Optional

DEFAULT_COOKIE_NAME = "forms_session"


def _read_cookie(headers, name: str) -> Optional[str]:  # type: ignore[no-untyped-def]
    for key, value in headers:
        if key.lower() == b"cookie":
            cookie = SimpleCookie()
            cookie.load(value.decode("latin-1"))
            if name in cookie and cookie[name].value:
                return cookie[name].value
    return None


class SessionMiddleware:
    def __init__(self, app, cookie_name: str = DEFAULT_COOKIE_NAME, max_age: Optional[int] = None) -> None:  # type: ignore[no-untyped-def]
        self.app = app
        self.cookie_name = cookie_name
        self.max_age = max_age

    def _set_cookie_header(self, session_id: str) -> bytes:
        parts = [f"{self.cookie_name}={session_id}", "Path=/", "HttpOnly", "SameSite=Lax"]
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        return "; ".join(parts).encode("latin-1")

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        session_id = _read_cookie(scope.get("headers") or [], self.cookie_name)
        is_new = session_id is None
        if is_new:
            session_id = str(uuid.uuid4())
        scope.setdefault("state", {})["session_id"] = session_id

        async def send_wrapper(message):  # type: ignore[no-untyped-def]
            if is_new and message.get("type") == "http.response.start":
                headers = list(message.get("headers") or [])
                headers.append((b"set-cookie", self._set_cookie_header(session_id)))
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_wrapper)


__all__ = ["DEFAULT_COOKIE_NAME", "SessionMiddleware"]
