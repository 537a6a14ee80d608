from __future__ import annotations

import pytest

from agro_dashboard.engine import ContactInfo
from agro_dashboard.errors import ApiError


def test_fetch_announcements_and_stats(api_client, backend, sample_records) -> None:
    backend.load(sample_records)
    backend.stats = {
        "total": 3,
        "checked": 1,
        "unchecked": 2,
        "today": 1,
        "topLocations": [{"location": "alger", "count": 2}],
    }
    assert api_client.fetch_announcements() == sample_records
    stats = api_client.fetch_stats()
    assert (stats.total, stats.checked, stats.unchecked, stats.today) == (3, 1, 2, 1)
    assert stats.top_locations[0].location == "alger"


def test_non_list_announcements_payload_is_empty(api_client, backend) -> None:
    backend.announcements = {"error": "database locked"}
    assert api_client.fetch_announcements() == []


def test_write_requests_send_expected_bodies(api_client, backend) -> None:
    api_client.set_checked(5, True)
    api_client.set_checked(5, False)
    api_client.update_contact(5, ContactInfo(prenom="Nadia", tel="0555"))
    api_client.start_scrape()
    assert backend.requests_to("PUT", "/api/announcements/5/check") == [{"checked": 1}, {"checked": 0}]
    contact_body = backend.requests_to("PUT", "/api/announcements/5/contact")[0]
    assert set(contact_body) == {"prenom", "adresse", "cod_postal", "ville", "mail", "tel", "web_site", "ok"}
    assert contact_body["prenom"] == "Nadia" and contact_body["adresse"] == ""
    assert backend.requests_to("POST", "/api/scrape") == [None]


def test_scrape_status(api_client, backend) -> None:
    backend.status_sequence = [{"running": True, "message": "page 3"}]
    status = api_client.scrape_status()
    assert status.running is True
    assert status.message == "page 3"


def test_http_error_status_is_wrapped(api_client, backend) -> None:
    backend.failures["/api/stats"] = 500
    with pytest.raises(ApiError) as excinfo:
        api_client.fetch_stats()
    assert excinfo.value.status_code == 500


def test_transport_error_is_wrapped(api_client, backend) -> None:
    backend.failures["/api/scrape"] = 0
    with pytest.raises(ApiError) as excinfo:
        api_client.start_scrape()
    assert excinfo.value.status_code is None
    assert excinfo.value.__cause__ is not None
