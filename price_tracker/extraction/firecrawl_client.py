# price_tracker/extraction/firecrawl_client.py

"""Client for the Firecrawl structured-extraction API."""

import json
import logging
from typing import Any, Protocol

from curl_cffi import requests as curl_requests

from price_tracker.config.settings import Settings
from price_tracker.models.product_record import (
    PRODUCT_SCHEMA,
    ExtractionResult,
    parse_product_record,
)

logger = logging.getLogger("price_tracker.extraction")


class Extractor(Protocol):
    """Anything that turns a URL into a product record."""

    def scrape(
        self, url: str, schema: dict[str, Any] = PRODUCT_SCHEMA,
    ) -> ExtractionResult: ...


class FirecrawlClient:
    """Single-shot Firecrawl scrape requests with schema extraction.

    Every failure mode (transport, HTTP status, API error, schema
    mismatch) is reported as a failed :class:`ExtractionResult`.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout: int | None = None,
    ) -> None:
        self.settings = Settings()
        self.api_key = (
            api_key if api_key is not None
            else self.settings.FIRECRAWL_API_KEY
        )
        self.api_url = api_url or self.settings.FIRECRAWL_API_URL
        self._request_timeout = timeout or self.settings.REQUEST_TIMEOUT
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _post(
        self, payload: dict[str, Any],
    ) -> tuple[curl_requests.Response | None, str | None]:
        """POST once; return the response or a transport error string."""
        try:
            resp = self.session.post(
                self.api_url,
                headers=self._headers(),
                json=payload,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            logger.warning(
                "Extraction request error for %s: %s",
                payload.get("url"),
                exc,
                exc_info=True,
            )
            return None, f"request error: {exc}"
        return resp, None

    @staticmethod
    def _error_from_body(resp: curl_requests.Response) -> str:
        try:
            body = resp.json()
        except (json.JSONDecodeError, ValueError):
            return f"HTTP {resp.status_code}"
        if isinstance(body, dict) and body.get("error"):
            return f"HTTP {resp.status_code}: {body['error']}"
        return f"HTTP {resp.status_code}"

    def scrape(
        self, url: str, schema: dict[str, Any] = PRODUCT_SCHEMA,
    ) -> ExtractionResult:
        """Extract a product record from *url*."""
        if not self.api_key:
            return ExtractionResult.failed(
                "FIRECRAWL_API_KEY is not configured"
            )

        payload: dict[str, Any] = {
            "url": url,
            "formats": ["extract"],
            "extract": {"schema": schema},
        }
        logger.debug("Requesting extraction for %s", url)
        resp, error = self._post(payload)
        if resp is None:
            return ExtractionResult.failed(error or "request failed")

        if resp.status_code != 200:
            reason = self._error_from_body(resp)
            logger.warning("Extraction for %s failed: %s", url, reason)
            return ExtractionResult.failed(reason)

        try:
            body = resp.json()
        except (json.JSONDecodeError, ValueError):
            return ExtractionResult.failed("response is not valid JSON")

        if not isinstance(body, dict):
            return ExtractionResult.failed("unexpected response shape")
        if not body.get("success"):
            return ExtractionResult.failed(
                str(body.get("error") or "extraction unsuccessful")
            )

        data = body.get("data")
        extracted = data.get("extract") if isinstance(data, dict) else None
        if extracted is None:
            return ExtractionResult.failed("response has no extract data")

        result = parse_product_record(extracted)
        if not result.success:
            logger.warning(
                "Extraction for %s did not match schema: %s",
                url,
                result.error,
            )
        return result
