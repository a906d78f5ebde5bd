"""HTTP client for the upstream product/price REST API.

Each call issues exactly one GET against ``{base_url}{path}``. The body is
read as text and parsed as JSON; text that is not JSON is wrapped as
``{"raw": text}`` so the caller can decide what to do with it.
"""

import json
import logging
from typing import Any

import httpx

from catalog_bridge.errors import UpstreamError

logger = logging.getLogger(__name__)


def parse_body(text: str) -> Any:
    """Parse a response body, falling back to ``{"raw": text}``."""
    try:
        return json.loads(text)
    except ValueError:
        return {"raw": text}


class UpstreamClient:
    """Async client for the upstream REST API.

    Owns an ``httpx.AsyncClient`` unless one is supplied. A transport can be
    injected for tests (``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize upstream client.

        Args:
            base_url: Base URL of the upstream API (no trailing slash needed)
            timeout_s: Timeout in seconds applied to every request
            transport: Optional httpx transport override
            client: Optional pre-built client (caller keeps ownership)
        """
        if not base_url:
            msg = "base_url must be non-empty"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_s,
            transport=transport,
            follow_redirects=True,
        )

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def fetch_json(self, path: str) -> Any:
        """GET ``path`` and return the parsed body.

        Args:
            path: Path appended to the base URL, already percent-encoded

        Returns:
            Parsed JSON body, or ``{"raw": text}`` when the body is not JSON

        Raises:
            UpstreamError: On non-2xx status, timeout or connection failure
        """
        url = self.url_for(path)
        logger.debug("Upstream GET %s", url)

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            logger.warning("Upstream GET %s timed out after %ss", url, self.timeout_s)
            msg = f"Upstream request timed out after {self.timeout_s:g}s"
            raise UpstreamError(msg, details={"timeout_s": self.timeout_s}) from e
        except httpx.RequestError as e:
            logger.warning("Upstream GET %s failed: %s", url, e)
            msg = f"Upstream request failed: {e!s}" if str(e) else "Upstream request failed"
            raise UpstreamError(msg) from e

        data = parse_body(response.text)

        if not response.is_success:
            logger.warning("Upstream GET %s returned HTTP %s", url, response.status_code)
            raise UpstreamError(
                f"HTTP {response.status_code}",
                status=response.status_code,
                details=data,
            )

        return data

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "UpstreamClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
