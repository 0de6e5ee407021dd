"""httpx adapter implementing the resource provider port."""

from __future__ import annotations

from http import HTTPStatus
from typing import Mapping, Optional

import httpx

from bt_study_engine.core.config import config
from bt_study_engine.core.exceptions import ProviderRequestError
from bt_study_engine.core.logging import get_logger
from bt_study_engine.core.ports import ProviderResponse, ResourceProviderPort

logger = get_logger(__name__)

ACCEPT_HEADER = "text/markdown, application/json, text/plain"


class TranslationHelpsAdapter(ResourceProviderPort):
    """Issue GET requests against ``{base_url}/api/<endpoint>``.

    A single pooled ``httpx.AsyncClient`` is shared across calls; pass
    ``transport`` to swap in an ``httpx.MockTransport`` under test.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or config.MCP_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout if timeout is not None else config.PROVIDER_TIMEOUT_SECONDS,
            headers={"Accept": ACCEPT_HEADER, "User-Agent": config.PROVIDER_USER_AGENT},
            transport=transport,
        )

    async def fetch(self, endpoint: str, params: Mapping[str, str]) -> ProviderResponse | None:
        path = f"/api/{endpoint.lstrip('/')}"
        logger.debug("[provider-http] GET %s params=%s", path, dict(params))
        try:
            response = await self._client.get(path, params=dict(params))
        except httpx.TimeoutException as exc:
            raise ProviderRequestError(f"{endpoint} timed out") from exc
        except httpx.HTTPError as exc:
            raise ProviderRequestError(f"{endpoint} request failed: {exc}") from exc

        if response.status_code >= HTTPStatus.MULTIPLE_CHOICES or response.status_code < HTTPStatus.OK:
            logger.info(
                "[provider-http] %s returned %s for %s",
                endpoint,
                response.status_code,
                dict(params),
            )
            return None
        return ProviderResponse(
            status_code=response.status_code,
            content_type=response.headers.get("content-type", ""),
            text=response.text,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["TranslationHelpsAdapter", "ACCEPT_HEADER"]
