import json

import pytest
from typer.testing import CliRunner

from lumiplan.cli import app
from lumiplan.schema.models import ProjectState, dump_project, load_project_file

runner = CliRunner()


@pytest.fixture
def roads_file(tmp_path, star_roads):
    path = tmp_path / "roads.json"
    path.write_text(json.dumps(dump_project(ProjectState(roads=tuple(star_roads)))), encoding="utf-8")
    return path


@pytest.fixture
def planned_file(tmp_path, roads_file):
    out = tmp_path / "planned.json"
    result = runner.invoke(app, ["plan", "--project", str(roads_file), "--out", str(out)])
    assert result.exit_code == 0, result.output
    return out


def test_plan_writes_project(planned_file):
    state = load_project_file(planned_file)
    assert len(state.lights) == 10
    assert len(state.panels) == 1


def test_plan_with_config(tmp_path, roads_file):
    config = tmp_path / "planner.json"
    config.write_text(json.dumps({"spacing_m": 50}), encoding="utf-8")
    out = tmp_path / "wide.json"
    result = runner.invoke(
        app, ["plan", "--project", str(roads_file), "--out", str(out), "--config", str(config), "--panels", "2"]
    )
    assert result.exit_code == 0, result.output
    state = load_project_file(out)
    assert state.spacing_m == 50
    assert len(state.panels) == 2


def test_validate_exit_codes(tmp_path, planned_file):
    report = tmp_path / "report.json"
    ok = runner.invoke(app, ["validate", "--project", str(planned_file), "--report", str(report)])
    assert ok.exit_code == 0
    assert json.loads(report.read_text(encoding="utf-8")) == []

    doc = json.loads(planned_file.read_text(encoding="utf-8"))
    doc["calculation"]["voltage_v"] = 0
    broken = tmp_path / "broken.json"
    broken.write_text(json.dumps(doc), encoding="utf-8")
    bad = runner.invoke(app, ["validate", "--project", str(broken)])
    assert bad.exit_code == 1
    assert "CALC_INVALID_VOLTAGE" in bad.output


def test_schema_errors_exit_nonzero(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"version": 1, "lights": [{"id": "x"}]}), encoding="utf-8")
    result = runner.invoke(app, ["validate", "--project", str(path)])
    assert result.exit_code == 1
    assert "Schema validation failed" in result.output


def test_analyze_prints_tables(tmp_path, planned_file):
    out = tmp_path / "tables"
    result = runner.invoke(app, ["analyze", "--project", str(planned_file), "--out", str(out)])
    assert result.exit_code == 0, result.output
    assert "Voltage drop" in result.output
    assert (out / "panel_summary.csv").exists()
    assert (out / "voltage_drop.csv").exists()


def test_replan_and_move_panel(tmp_path, at, planned_file):
    replanned = tmp_path / "replanned.json"
    result = runner.invoke(app, ["replan", "--project", str(planned_file), "--out", str(replanned)])
    assert result.exit_code == 0, result.output
    assert load_project_file(replanned) == load_project_file(planned_file)

    target = at(100)
    moved = runner.invoke(
        app,
        ["move-panel", "--project", str(planned_file), "--panel-id", "1", "--lat", str(target.lat), "--lng", str(target.lng)],
    )
    assert moved.exit_code == 0, moved.output
    assert load_project_file(planned_file).panel(1).position.lat == pytest.approx(target.lat)

    missing = runner.invoke(
        app, ["move-panel", "--project", str(planned_file), "--panel-id", "9", "--lat", "0", "--lng", "0"]
    )
    assert missing.exit_code == 1


def test_log_level_option(planned_file):
    result = runner.invoke(app, ["--log-level", "DEBUG", "validate", "--project", str(planned_file)])
    assert result.exit_code == 0


def test_repeated_invocations_in_one_process(planned_file):
    first = runner.invoke(app, ["validate", "--help"])
    second = runner.invoke(app, ["--log-level", "INFO", "validate", "--project", str(planned_file)])
    third = runner.invoke(app, ["--log-level", "debug", "validate", "--project", str(planned_file)])
    assert (first.exit_code, second.exit_code, third.exit_code) == (0, 0, 0)
    assert second.exception is None


def test_unknown_log_level_is_a_usage_error(planned_file):
    result = runner.invoke(app, ["--log-level", "LOUD", "validate", "--project", str(planned_file)])
    assert result.exit_code == 2


def test_bad_config_file_exits_cleanly(tmp_path, roads_file):
    config = tmp_path / "broken.json"
    config.write_text("{not json", encoding="utf-8")
    result = runner.invoke(
        app, ["plan", "--project", str(roads_file), "--out", str(tmp_path / "o.json"), "--config", str(config)]
    )
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
