from __future__ import annotations

from datetime import date

import pytest

from agro_dashboard.engine import Announcement, ContactInfo, FilterCriteria, StatsSnapshot, StatusFilter


def test_announcement_coerces_nulls_and_numbers(announcement_payload) -> None:
    record = Announcement.model_validate(
        announcement_payload(member_id=42, description=None, checked="1", mail=None, unknown="x")
    )
    assert record.member_id == "42"
    assert record.description == ""
    assert record.checked == 1 and record.is_checked
    assert record.mail is None
    assert record.contact().mail == ""


def test_contact_merge_keeps_unspecified_fields() -> None:
    contact = ContactInfo(prenom="Amine", ville="Oran")
    merged = contact.merged(ville="Alger", tel=None)
    assert merged.prenom == "Amine"
    assert merged.ville == "Alger"
    assert merged.tel == ""
    with pytest.raises(ValueError):
        contact.merged(fax="123")


def test_stats_accepts_camel_case_lists() -> None:
    stats = StatsSnapshot.model_validate(
        {"total": 3, "checked": 1, "unchecked": 2, "today": 0, "topProducts": None}
    )
    assert stats.top_products == []
    assert stats.top_locations == []


def test_criteria_defaults_and_active_filters() -> None:
    criteria = FilterCriteria()
    assert criteria.active_filters() == []
    criteria.search = "dattes"
    criteria.status = "checked"
    assert criteria.status is StatusFilter.CHECKED
    assert criteria.active_filters() == [("Search", "“dattes”"), ("Status", "checked")]
    criteria.clear()
    assert criteria == FilterCriteria()


def test_quick_filter_shortcuts() -> None:
    criteria = FilterCriteria()
    criteria.toggle_status(StatusFilter.UNCHECKED)
    assert criteria.status is StatusFilter.UNCHECKED
    criteria.toggle_status(StatusFilter.UNCHECKED)
    assert criteria.status is StatusFilter.ALL

    criteria.date_to = "2024-12-31"
    criteria.only_today(date(2024, 5, 10))
    assert (criteria.date_from, criteria.date_to) == ("2024-05-10", "")

    criteria.last_seven_days(date(2024, 5, 10))
    assert (criteria.date_from, criteria.date_to) == ("2024-05-03", "2024-05-10")
