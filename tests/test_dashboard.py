from __future__ import annotations

from datetime import datetime

import pytest

from agro_dashboard.dashboard import Dashboard
from agro_dashboard.engine import FilterCriteria, StatusFilter
from agro_dashboard.errors import ApiError, DashboardError, ExportError


@pytest.fixture
def dashboard(api_client, backend, sample_records) -> Dashboard:
    backend.load(sample_records)
    backend.stats = {"total": 3, "checked": 1, "unchecked": 2, "today": 0}
    board = Dashboard(api_client)
    board.refresh()
    return board


def test_refresh_loads_records_and_stats(dashboard, sample_records) -> None:
    assert dashboard.records == sample_records
    assert dashboard.stats.total == 3


def test_failed_fetch_empties_store(dashboard, backend) -> None:
    backend.failures["/api/announcements"] = 0
    assert dashboard.refresh_announcements() is True
    assert dashboard.records == []


def test_failed_stats_keep_previous_snapshot(dashboard, backend) -> None:
    backend.failures["/api/stats"] = 503
    assert dashboard.refresh_stats().total == 3


def test_superseded_refresh_is_discarded(dashboard, backend, sample_records) -> None:
    store = dashboard.store
    original_begin = store.begin_refresh

    def begin_then_race() -> int:
        ticket = original_begin()
        # another refresh starts before this response arrives
        original_begin()
        return ticket

    store.begin_refresh = begin_then_race
    backend.announcements = []
    assert dashboard.refresh_announcements() is False
    assert dashboard.records == sample_records


def test_filtered_view_and_summary(dashboard) -> None:
    dashboard.criteria = FilterCriteria(status=StatusFilter.UNCHECKED)
    assert [record.id for record in dashboard.filtered_view()] == [2, 3]
    assert dashboard.summary_line() == "Showing 2 of 3 announcements (Filtered)"
    dashboard.criteria.clear()
    assert dashboard.summary_line() == "Showing 3 of 3 announcements"
    assert dashboard.facets().types == ["Offre", "Demande"]


def test_set_checked_patches_record_and_refreshes_stats(dashboard, backend) -> None:
    backend.stats = {"total": 3, "checked": 2, "unchecked": 1, "today": 0}
    record = dashboard.toggle_check(2)
    assert record.checked == 1
    assert dashboard.store.get(2).checked == 1
    assert dashboard.stats.checked == 2
    assert backend.requests_to("PUT", "/api/announcements/2/check") == [{"checked": 1}]


def test_failed_check_rolls_back(dashboard, backend) -> None:
    backend.failures["/api/announcements/1/check"] = 500
    with pytest.raises(ApiError):
        dashboard.set_checked(1, False)
    assert dashboard.store.get(1).checked == 1


def test_unknown_announcement(dashboard) -> None:
    with pytest.raises(DashboardError):
        dashboard.toggle_check(404)


def test_save_contact_merges_fields(dashboard, backend) -> None:
    dashboard.save_contact(3, prenom="Yacine", mail="y@example.dz")
    record = dashboard.save_contact(3, tel="0550")
    assert (record.prenom, record.mail, record.tel) == ("Yacine", "y@example.dz", "0550")
    body = backend.requests_to("PUT", "/api/announcements/3/contact")[-1]
    assert body["prenom"] == "Yacine" and body["tel"] == "0550" and body["ville"] == ""


def test_failed_contact_save_rolls_back(dashboard, backend) -> None:
    backend.failures["/api/announcements/3/contact"] = 0
    with pytest.raises(ApiError):
        dashboard.save_contact(3, prenom="Yacine")
    assert dashboard.store.get(3).prenom is None


def test_export_respects_filters(dashboard, tmp_path) -> None:
    dashboard.criteria = FilterCriteria(location="oran")
    result = dashboard.export(tmp_path / "exports", "espaceagro-announcements", now=datetime(2024, 2, 2))
    assert result.count == 1
    assert result.path.name == "espaceagro-announcements-2024-02-02.csv"
    lines = result.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[1].startswith('2,"Sahel Agro"')


def test_export_failure_raises_export_error(dashboard, tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(ExportError):
        dashboard.export(blocker, "espaceagro-announcements")
