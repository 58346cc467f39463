"""JSON over HTTP for page ``onLoad`` events."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


async def post_json(url: str, payload: Any, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0) -> Any:
    """POST ``payload`` as JSON and return the decoded response body."""
    if client is not None:
        response = await client.post(url, json=payload)
    else:
        async with httpx.AsyncClient(timeout=timeout) as owned:
            response = await owned.post(url, json=payload)
    response.raise_for_status()
    logger.info("http_event_posted url=%s status=%s", url, response.status_code)
    return response.json()


__all__ = ["post_json"]
