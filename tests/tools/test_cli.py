import json

import pytest
from typer.testing import CliRunner

from conway.tools.cli import DisplayFrequency, app


@pytest.fixture
def runner(monkeypatch):
    for name in ("CONWAY_MAX_GENERATION", "CONWAY_MAX_ITERATIONS", "CONWAY_DEFAULT_RULES"):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


def test_display_frequency():
    frequency = DisplayFrequency()

    shown = [g for g in range(1, 31) if frequency.should_display(g)]

    assert shown == [1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 15, 20, 25, 30]


def test_patterns_lists_library(runner):
    result = runner.invoke(app, ["patterns"])

    assert result.exit_code == 0
    assert "gospergun" in result.output
    assert "glider" in result.output


def test_rules_lists_presets(runner):
    result = runner.invoke(app, ["rules"])

    assert result.exit_code == 0
    assert "B3/S23" in result.output
    assert "B36/S23" in result.output


def test_pattern_stops_on_cycle(runner):
    result = runner.invoke(app, ["pattern", "blinker", "--generations", "20"])

    assert result.exit_code == 0
    assert "Running pattern: Blinker" in result.output
    assert "Generation 2:" in result.output
    assert "Generation 3:" not in result.output
    assert "cyclical (period 2)" in result.output


def test_pattern_still_life_stabilizes(runner):
    result = runner.invoke(app, ["pattern", "block"])

    assert result.exit_code == 0
    assert "stabilized at generation 1" in result.output


def test_unknown_pattern_fails(runner):
    result = runner.invoke(app, ["pattern", "nope"])

    assert result.exit_code == 1
    assert "Unknown pattern 'nope'" in result.output


def test_run_empty_board_goes_extinct(runner):
    result = runner.invoke(app, ["run", "6", "4", "10", "--pattern", "empty"])

    assert result.exit_code == 0
    assert "extinction" in result.output


def test_run_completes_requested_generations(runner):
    result = runner.invoke(app, ["run", "12", "12", "3", "--pattern", "glider"])

    assert result.exit_code == 0
    assert "Generation 3:" in result.output
    assert "Simulation completed after 3 generations." in result.output


def test_run_random_board_with_seed_is_reproducible(runner):
    args = ["run", "8", "8", "4", "--seed", "11", "--density", "0.4"]

    first = runner.invoke(app, args)
    second = runner.invoke(app, args)

    assert first.exit_code == 0
    assert first.output == second.output


def test_run_rejects_non_positive_dimensions(runner):
    result = runner.invoke(app, ["run", "0", "5", "5"])

    assert result.exit_code == 1
    assert "Width and height must be positive" in result.output


def test_jump_json_output(runner):
    result = runner.invoke(
        app, ["--log-level", "ERROR", "jump", "blinker", "-g", "1000", "--json"]
    )

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["generation"] == 1000
    assert data["status"] == "converged"
    assert data["convergence"] == {"type": "cyclical", "period": 2}
    assert data["population_count"] == 3


def test_jump_from_file(runner, tmp_path):
    grid_file = tmp_path / "grid.txt"
    grid_file.write_text(".....\n..*..\n..*..\n..*..\n.....\n")

    result = runner.invoke(app, ["jump", "--file", str(grid_file), "-g", "7"])

    assert result.exit_code == 0
    assert "Generation 7:" in result.output
    assert ".***." in result.output


def test_jump_reports_iteration_ceiling(runner):
    result = runner.invoke(
        app, ["jump", "glider", "-g", "500", "--max-iterations", "5"]
    )

    assert result.exit_code == 2
    assert "Iteration ceiling of 5" in result.output


def test_jump_requires_a_grid(runner):
    result = runner.invoke(app, ["jump", "-g", "5"])

    assert result.exit_code == 1
    assert "Provide a pattern name or --file" in result.output


def test_jump_rejects_negative_generation(runner):
    result = runner.invoke(app, ["jump", "blinker", "--generation=-1"])

    assert result.exit_code == 1
    assert "Generation -1 is not allowed" in result.output


def test_final_reports_convergence(runner):
    result = runner.invoke(app, ["final", "blinker"])

    assert result.exit_code == 0
    assert "Final state reached at generation 2: Cyclical (period 2)." in result.output


def test_final_iteration_limit(runner):
    result = runner.invoke(app, ["final", "glider", "--max-iterations", "3"])

    assert result.exit_code == 2
    assert "Generation 3:" in result.output


def test_config_file_limits_generations(runner, tmp_path):
    config_file = tmp_path / "conway.yaml"
    config_file.write_text("max_generation: 10\n")

    result = runner.invoke(
        app, ["--config", str(config_file), "jump", "blinker", "-g", "50"]
    )

    assert result.exit_code == 1
    assert "Loaded configuration" in result.output
    assert "between 0 and 10" in result.output


def test_invalid_config_file(runner, tmp_path):
    config_file = tmp_path / "conway.yaml"
    config_file.write_text("nonsense: 1\n")

    result = runner.invoke(app, ["--config", str(config_file), "patterns"])

    assert result.exit_code == 1
    assert "Unknown configuration key 'nonsense'" in result.output


def test_json_log_format(runner):
    result = runner.invoke(
        app, ["--log-format", "json", "run", "5", "5", "2", "--pattern", "empty"]
    )

    assert result.exit_code == 0
    records = [
        json.loads(line) for line in result.output.splitlines() if line.startswith("{")
    ]
    assert [r["event_id"] for r in records] == ["cli.run.header", "cli.game.extinct"]


def test_debug_level_shows_engine_events(runner):
    result = runner.invoke(app, ["--log-level", "DEBUG", "jump", "blinker", "-g", "9"])

    assert result.exit_code == 0
    assert "cycle with period 2 detected at generation 2" in result.output
    assert "computing generation 9" in result.output


def test_unknown_log_format(runner):
    result = runner.invoke(app, ["--log-format", "xml", "patterns"])

    assert result.exit_code == 1
    assert "Unknown log format 'xml'" in result.output


def test_dead_board_under_b0_cycles_instead_of_dying(runner):
    result = runner.invoke(
        app, ["run", "4", "4", "10", "--pattern", "empty", "--rules", "B0/S"]
    )

    assert result.exit_code == 0
    assert "Generation 1:" in result.output
    assert "Population: 16" in result.output
    assert "cyclical (period 2)" in result.output
    assert "extinction" not in result.output


def test_run_rejects_pattern_larger_than_board(runner):
    result = runner.invoke(app, ["run", "10", "10", "5", "--pattern", "gospergun"])

    assert result.exit_code == 1
    assert "does not fit a 10x10 board" in result.output
