"""Tests for settings, logging, time and id helpers"""

import json
import logging
from datetime import date, datetime, timezone

import pytest

from leaveflow.config.settings import Settings, get_settings
from leaveflow.domain.enums import LeaveStatus
from leaveflow.utils import format_iso, parse_iso, setup_logging
from leaveflow.utils.idgen import generate_correlation_id, generate_leave_request_id
from leaveflow.utils.logger import JsonFormatter, set_correlation_id
from leaveflow.utils.time import inclusive_days, to_utc_midnight


class TestSettings:

    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.min_rejection_reason_length == 10
        assert s.medical_documentation_threshold_days == 3
        assert not s.is_production
        assert "debug" not in Settings.model_fields

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "Production")
        monkeypatch.setenv("MIN_REJECTION_REASON_LENGTH", "20")

        s = Settings(_env_file=None)

        assert s.is_production
        assert s.min_rejection_reason_length == 20

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestJsonFormatter:

    def _record(self, **extra):
        record = logging.LogRecord("leaveflow.test", logging.INFO, __file__, 1, "Applied approve", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_whitelisted_extras_and_enum_values(self):
        line = JsonFormatter().format(
            self._record(request_id="LVR-1", status=LeaveStatus.APPROVED, unrelated="dropped")
        )
        payload = json.loads(line)

        assert payload["message"] == "Applied approve"
        assert payload["request_id"] == "LVR-1"
        assert payload["status"] == "approved"
        assert "unrelated" not in payload

    def test_correlation_id_from_context(self):
        set_correlation_id("COR-abc")
        try:
            payload = json.loads(JsonFormatter().format(self._record()))
        finally:
            set_correlation_id(None)
        assert payload["correlation_id"] == "COR-abc"


def test_setup_logging_installs_json_console_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


class TestTime:

    def test_format_iso_uses_z_suffix(self):
        assert format_iso(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)) == "2026-03-02T09:00:00Z"

    def test_parse_iso_assumes_utc(self):
        assert parse_iso("2026-03-02T09:00:00") == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("start,end,days", [
        (date(2026, 3, 9), date(2026, 3, 9), 1),
        (date(2026, 2, 27), date(2026, 3, 2), 4),
    ])
    def test_inclusive_days(self, start, end, days):
        assert inclusive_days(start, end) == days

    def test_to_utc_midnight(self):
        assert to_utc_midnight(date(2026, 3, 9)) == datetime(2026, 3, 9, tzinfo=timezone.utc)


def test_ids_are_prefixed_and_unique():
    ids = {generate_leave_request_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(i.startswith("LVR-") for i in ids)
    assert generate_correlation_id().startswith("COR-")
