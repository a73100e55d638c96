"""Smoke tests for the Typer CLI against the bundled sample fixture."""

from __future__ import annotations

from typer.testing import CliRunner

from lms_progress.cli import app

runner = CliRunner()
WIDE = {"COLUMNS": "200"}


def test_items_lists_resolved_statuses(sample_fixture):
    result = runner.invoke(app, ["items", "stu-1001", "--fixture", str(sample_fixture)], env=WIDE)

    assert result.exit_code == 0, result.output
    assert "MA101" in result.output
    assert "graded" in result.output
    assert "locked" in result.output


def test_items_filter_by_kind(sample_fixture):
    result = runner.invoke(
        app, ["items", "stu-1001", "--fixture", str(sample_fixture), "--kind", "examination"], env=WIDE
    )

    assert result.exit_code == 0, result.output
    assert "PH101" in result.output
    assert "Optics" not in result.output


def test_items_rejects_unknown_status(sample_fixture):
    result = runner.invoke(
        app, ["items", "stu-1001", "--fixture", str(sample_fixture), "--status", "submited"], env=WIDE
    )

    assert result.exit_code == 2


def test_summary_prints_counts(sample_fixture):
    result = runner.invoke(app, ["summary", "stu-1002", "--fixture", str(sample_fixture)], env=WIDE)

    assert result.exit_code == 0, result.output
    assert "Average completion: 35%" in result.output
    assert "pending 1" in result.output


def test_hierarchy_with_department_filter(sample_fixture):
    result = runner.invoke(
        app, ["hierarchy", "--fixture", str(sample_fixture), "--department", "dep-ece"], env=WIDE
    )

    assert result.exit_code == 0, result.output
    assert "Electronics" in result.output
    assert "Computer" not in result.output


def test_rankings_lowest(sample_fixture):
    result = runner.invoke(
        app, ["rankings", "--fixture", str(sample_fixture), "--order", "lowest"], env=WIDE
    )

    assert result.exit_code == 0, result.output
    assert "Computer" in result.output


def test_rankings_rejects_unknown_order(sample_fixture):
    result = runner.invoke(
        app, ["rankings", "--fixture", str(sample_fixture), "--order", "middle"], env=WIDE
    )

    assert result.exit_code != 0


def test_unreadable_fixture_exits_with_error(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")

    result = runner.invoke(app, ["summary", "stu-1001", "--fixture", str(broken)], env=WIDE)

    assert result.exit_code == 2
