"""Shared fixtures: isolated project home, record builders and a fake backend."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from agro_dashboard.client import ApiClient
from agro_dashboard.config import ConfigLocator, ConfigRepository, DashboardConfig
from agro_dashboard.engine import Announcement


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("AGRO_DASHBOARD_HOME", str(tmp_path))
    monkeypatch.delenv("AGRO_DASHBOARD_API_URL", raising=False)
    monkeypatch.delenv("AGRO_DASHBOARD_ENV", raising=False)
    return tmp_path


def _announcement_payload(**overrides: Any) -> dict[str, Any]:
    base: dict[str, Any] = {
        "id": 1,
        "member_id": "M-001",
        "company_name": "Acme",
        "announcement_title": "Vente de dattes",
        "description": "Dattes Deglet Nour en gros",
        "products": "Dattes",
        "location": "alger",
        "announcement_type": "Offre",
        "announcement_date": "2024-01-05",
        "announcement_url": "https://www.espaceagro.com/annonce/1",
        "scraped_date": "2024-01-06 08:00:00",
        "checked": 0,
        "created_at": "2024-01-06 08:00:00",
    }
    base.update(overrides)
    return base


@pytest.fixture
def announcement_payload() -> Callable[..., dict[str, Any]]:
    return _announcement_payload


@pytest.fixture
def make_announcement() -> Callable[..., Announcement]:
    def _builder(**overrides: Any) -> Announcement:
        return Announcement.model_validate(_announcement_payload(**overrides))

    return _builder


@pytest.fixture
def sample_records(make_announcement) -> list[Announcement]:
    return [
        make_announcement(
            id=1,
            company_name="Acme",
            products="Fruits, Bio",
            location="alger",
            announcement_type="Offre",
            announcement_date="2024-01-05",
            checked=1,
        ),
        make_announcement(
            id=2,
            company_name="Sahel Agro",
            announcement_title="Recherche pommes de terre",
            description="Achat régulier",
            products="Pommes de terre, légumes",
            location="oran",
            announcement_type="Demande",
            announcement_date="2024-01-20",
            checked=0,
        ),
        make_announcement(
            id=3,
            company_name="Blida Fresh",
            announcement_title="Oranges Thomson",
            description='Calibre "extra"',
            products="Fruits",
            location="blida",
            announcement_type="Offre",
            announcement_date="2024-02-01",
            checked=0,
        ),
    ]


class FakeBackend:
    """In-memory stand-in for the dashboard API, served via httpx.MockTransport."""

    def __init__(self) -> None:
        self.announcements: Any = []
        self.stats: Any = {"total": 0, "checked": 0, "unchecked": 0, "today": 0}
        self.status_sequence: list[dict[str, Any]] = []
        # path -> HTTP status, or 0 for a connection error
        self.failures: dict[str, int] = {}
        self.requests: list[tuple[str, str, Any]] = []

    def load(self, records: Iterable[Announcement]) -> None:
        self.announcements = [record.model_dump() for record in records]

    def requests_to(self, method: str, path: str) -> list[Any]:
        return [body for m, p, body in self.requests if m == method and p == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))
        if path in self.failures:
            code = self.failures[path]
            if code == 0:
                raise httpx.ConnectError("backend unreachable", request=request)
            return httpx.Response(code, json={"error": "boom"})
        if request.method == "GET" and path == "/api/announcements":
            return httpx.Response(200, json=self.announcements)
        if request.method == "GET" and path == "/api/stats":
            return httpx.Response(200, json=self.stats)
        if request.method == "GET" and path == "/api/scrape/status":
            if len(self.status_sequence) > 1:
                status = self.status_sequence.pop(0)
            elif self.status_sequence:
                status = self.status_sequence[0]
            else:
                status = {"running": False, "message": "Idle"}
            return httpx.Response(200, json=status)
        if request.method == "POST" and path == "/api/scrape":
            return httpx.Response(200, json={"message": "Scraping started"})
        if request.method == "PUT" and path.startswith("/api/announcements/"):
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api_client(backend: FakeBackend) -> Iterable[ApiClient]:
    client = ApiClient(DashboardConfig(), transport=httpx.MockTransport(backend.handle))
    yield client
    client.close()


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> ConfigRepository:
    return ConfigRepository(ConfigLocator(project_root=tmp_path))
