"""Tests for threatintel/services/query.py — shared filter and count helpers."""

import pytest

from threatintel.db.tables import IocRow, utcnow
from threatintel.models.common import IocType, Severity
from threatintel.services.query import count, count_by, enum_filter, enum_keys, text_filter


class TestEnumFilter:
    @pytest.mark.parametrize("value", [None, "all"])
    def test_unset_values(self, value):
        assert enum_filter(Severity, value) is None

    def test_accepts_value_or_member(self):
        assert enum_filter(Severity, "high") is Severity.HIGH
        assert enum_filter(Severity, Severity.LOW) is Severity.LOW

    def test_rejects_unknown_value(self):
        with pytest.raises(ValueError):
            enum_filter(Severity, "HIGH")


class TestTextFilter:
    @pytest.mark.parametrize("value", [None, "", "all"])
    def test_unset_values(self, value):
        assert text_filter(value) is None

    def test_passes_through(self):
        assert text_filter("firewall") == "firewall"


def test_enum_keys_in_declaration_order():
    assert enum_keys(Severity) == ["low", "medium", "high", "critical"]


def test_count_and_count_by(db):
    now = utcnow()
    for value, severity in [("a", "high"), ("b", "high"), ("c", "low")]:
        db.add(IocRow(
            type="domain", value=value, severity=severity, source="feed", tags=[],
            is_active=True, confidence=50, created_by="alice",
            first_seen=now, last_seen=now, mitre_techniques=[],
        ))
    db.commit()

    assert count(db, IocRow) == 3
    assert count(db, IocRow, IocRow.severity == "high") == 2
    assert count_by(db, IocRow.severity) == {"high": 2, "low": 1}
    assert count_by(db, IocRow.type, keys=enum_keys(IocType))["ip"] == 0
