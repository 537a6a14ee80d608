"""HTTP client for the announcements backend."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from .config import DashboardConfig
from .engine.models import Announcement, ContactInfo, ScrapeStatus, StatsSnapshot
from .engine.store import coerce_announcements
from .errors import ApiError


class ApiClient:
    """Thin wrapper over :class:`httpx.Client` speaking the dashboard JSON API.

    Every transport or HTTP status failure is re-raised as :class:`ApiError`;
    nothing is retried.
    """

    def __init__(
        self,
        config: DashboardConfig,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("agro_dashboard.client")
        self._client = httpx.Client(
            base_url=config.api_url,
            timeout=config.request_timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def fetch_announcements(self) -> list[Announcement]:
        payload = self._request("GET", "/api/announcements")
        return coerce_announcements(payload, logger=self.logger)

    def fetch_stats(self) -> StatsSnapshot:
        payload = self._request("GET", "/api/stats")
        if not isinstance(payload, dict):
            raise ApiError("Stats payload is not an object", url="/api/stats")
        return StatsSnapshot.model_validate(payload)

    def scrape_status(self) -> ScrapeStatus:
        payload = self._request("GET", "/api/scrape/status")
        if not isinstance(payload, dict):
            raise ApiError("Scrape status payload is not an object", url="/api/scrape/status")
        return ScrapeStatus.model_validate(payload)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def set_checked(self, announcement_id: int, checked: bool) -> None:
        self._request(
            "PUT",
            f"/api/announcements/{announcement_id}/check",
            json={"checked": 1 if checked else 0},
        )

    def update_contact(self, announcement_id: int, contact: ContactInfo) -> None:
        self._request(
            "PUT",
            f"/api/announcements/{announcement_id}/contact",
            json=contact.model_dump(),
        )

    def start_scrape(self) -> None:
        self._request("POST", "/api/scrape")

    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = self._client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self.logger.warning(
                "api_status_error",
                method=method,
                path=path,
                status_code=exc.response.status_code,
            )
            raise ApiError(
                f"{method} {path} returned {exc.response.status_code}",
                url=str(exc.request.url),
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            self.logger.warning("api_transport_error", method=method, path=path, error=str(exc))
            raise ApiError(f"{method} {path} failed: {exc}", url=path) from exc
        self.logger.debug("api_request", method=method, path=path, status_code=response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            if method == "GET":
                raise ApiError(f"{method} {path} returned invalid JSON", url=path) from exc
            return None


__all__ = ["ApiClient"]
