"""Tests for scripts/validate_definitions.py"""

import sys
from datetime import date

import pytest

from leaveflow.engine import build_default_registry
from scripts import validate_definitions


@pytest.fixture
def logging_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(validate_definitions, "setup_logging", lambda: calls.append(True))
    return calls


def test_dry_run_approves_every_leave_type(capsys):
    failures = validate_definitions.dry_run(build_default_registry())

    assert failures == []
    assert "sick: approved" in capsys.readouterr().out


def test_dry_run_accepts_a_fixed_start_date(capsys):
    assert validate_definitions.dry_run(build_default_registry(), date(2026, 3, 9)) == []


def test_main_exits_zero(monkeypatch, capsys, logging_calls):
    monkeypatch.setattr(sys, "argv", ["validate_definitions.py", "--dry-run"])

    assert validate_definitions.main() == 0
    out = capsys.readouterr().out
    assert "All workflow definitions are valid" in out
    assert "Validation run at " in out
    assert logging_calls == [True]


def test_main_parses_start_date(monkeypatch, capsys, logging_calls):
    seen = []
    real_dry_run = validate_definitions.dry_run

    def recording_dry_run(registry, start=None):
        seen.append(start)
        return real_dry_run(registry, start)

    monkeypatch.setattr(validate_definitions, "dry_run", recording_dry_run)
    monkeypatch.setattr(sys, "argv", ["validate_definitions.py", "--dry-run", "--start-date", "2026-03-09"])

    assert validate_definitions.main() == 0
    assert seen == [date(2026, 3, 9)]


def test_main_rejects_malformed_start_date(monkeypatch, capsys, logging_calls):
    monkeypatch.setattr(sys, "argv", ["validate_definitions.py", "--dry-run", "--start-date", "next week"])

    assert validate_definitions.main() == 2
    assert "Invalid --start-date" in capsys.readouterr().out
