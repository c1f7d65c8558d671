import asyncio
import functools
import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import numpy as np
import typer
from rich.console import Console
from rich.table import Table

from conway.adapters.state.in_memory import InMemoryBoardStore
from conway.common.messaging import bus
from conway.common.renderers import create_renderer
from conway.config import EngineConfig, load_config
from conway.runtime.bus import MessageBus
from conway.runtime.convergence import ConvergenceDetector
from conway.runtime.exceptions import ConwayError, InvalidInputError
from conway.runtime.fingerprint import fingerprint
from conway.runtime.history import StateHistory
from conway.runtime.service import GameService
from conway.runtime.step import StepEngine
from conway.runtime.subscribers import HumanReadableLogSubscriber
from conway.spec.convergence import ConvergenceKind
from conway.spec.grid import (
    Grid,
    empty_grid,
    from_string,
    population,
    random_grid,
    to_string,
)
from conway.spec.patterns import PATTERNS, get_pattern, place
from conway.spec.rules import RULE_PRESETS, RuleSet, get_rule
from conway.spec.state import GameState, JumpStatus
from conway.validation import validate_generation, validate_grid

app = typer.Typer(
    help="Conway's Game of Life engine with cycle-aware jumps to far generations."
)
console = Console(highlight=False)


@dataclass(frozen=True)
class DisplayFrequency:
    """Which generations a long simulation prints."""

    initial_generations: int = 10
    subsequent_interval: int = 5

    def should_display(self, generation: int) -> bool:
        return (
            generation <= self.initial_generations
            or generation % self.subsequent_interval == 0
        )


def _handles_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConwayError as e:
            bus.error("cli.error", error=str(e))
            raise typer.Exit(code=1)

    return wrapper


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Minimum level for console logging (DEBUG, INFO, WARNING, ERROR).",
    ),
    log_format: str = typer.Option(
        "human", "--log-format", help="Format for logging ('human', 'rich' or 'json')."
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="YAML file with engine limits and defaults."
    ),
):
    try:
        bus.set_renderer(create_renderer(log_format, bus.store, min_level=log_level))
    except ConwayError as e:
        bus.set_renderer(create_renderer("human", bus.store))
        bus.error("cli.error", error=str(e))
        raise typer.Exit(code=1)

    try:
        ctx.obj = load_config(config_path)
    except (ConwayError, OSError) as e:
        bus.error("cli.error", error=str(e))
        raise typer.Exit(code=1)
    if config_path is not None:
        bus.info("cli.config.loaded", path=str(config_path))


def _config(ctx: typer.Context) -> EngineConfig:
    return ctx.obj if isinstance(ctx.obj, EngineConfig) else EngineConfig()


def _print_grid(generation: int, grid: Grid) -> None:
    console.print(f"Generation {generation}:")
    console.print(to_string(grid), markup=False)
    console.print(f"Population: {population(grid)}")
    console.print()


def _resolve_rules(name: Optional[str], config: EngineConfig) -> RuleSet:
    return get_rule(name or config.default_rules)


def _initial_grid(
    pattern: str,
    width: int,
    height: int,
    density: float,
    seed: Optional[int],
) -> Grid:
    key = pattern.lower()
    if key == "empty":
        return empty_grid(width, height)
    if key == "random":
        return random_grid(width, height, density, np.random.default_rng(seed))
    try:
        cells = get_pattern(pattern).cells
    except InvalidInputError:
        bus.warning("cli.pattern.unknown_fallback", pattern=pattern)
        return random_grid(width, height, density, np.random.default_rng(seed))

    rows, cols = cells.shape
    if rows <= height and cols <= width:
        return place(cells, width, height, (height - rows) // 2, (width - cols) // 2)
    raise InvalidInputError(
        f"Pattern '{pattern}' is {cols}x{rows} and does not fit a {width}x{height} board."
    )


def _load_cells(name: Optional[str], file: Optional[Path]) -> Grid:
    if file is not None:
        try:
            text = file.read_text(encoding="utf-8")
        except OSError as e:
            raise InvalidInputError(f"Cannot read grid file '{file}': {e}")
        return from_string(text)
    if name is None:
        raise InvalidInputError("Provide a pattern name or --file.")
    return get_pattern(name).cells


def _play(
    grid: Grid,
    rules: RuleSet,
    generations: int,
    frequency: DisplayFrequency,
) -> None:
    """Steps and prints `grid`, stopping early on extinction or a repeated state."""
    engine = StepEngine(rules)
    detector = ConvergenceDetector()
    history = StateHistory()
    history.record(fingerprint(grid), 0)

    _print_grid(0, grid)
    current = grid
    for generation in range(1, generations + 1):
        next_grid, _ = engine.step(current)
        digest = fingerprint(next_grid)
        convergence = detector.check(next_grid, history, generation, digest)
        if (
            convergence.kind is ConvergenceKind.EXTINCT
            and not rules.extinction_is_final
        ):
            convergence = detector.check_cycle(digest, history, generation)
        history.record(digest, generation)
        current = next_grid

        if frequency.should_display(generation) or convergence.is_converged:
            _print_grid(generation, current)

        if convergence.kind is ConvergenceKind.EXTINCT:
            bus.info("cli.game.extinct", generation=generation)
            return
        if convergence.is_still_life:
            bus.info("cli.game.stabilized", generation=generation)
            return
        if convergence.kind is ConvergenceKind.CYCLICAL:
            bus.info(
                "cli.game.cyclical", generation=generation, period=convergence.period
            )
            return

    bus.info("cli.game.completed", generations=generations)


def _new_service(config: EngineConfig) -> GameService:
    event_bus = MessageBus()
    HumanReadableLogSubscriber(event_bus)
    return GameService(InMemoryBoardStore(), config=config, bus=event_bus)


def _emit_state(state: GameState, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(state.to_dict()))
    else:
        _print_grid(state.generation, state.cells)


@app.command()
@_handles_errors
def run(
    ctx: typer.Context,
    width: int = typer.Argument(..., help="Board width in cells."),
    height: int = typer.Argument(..., help="Board height in cells."),
    generations: int = typer.Argument(..., help="Number of generations to simulate."),
    pattern: str = typer.Option(
        "random", "--pattern", "-p", help="'random', 'empty' or a pattern name."
    ),
    rules: Optional[str] = typer.Option(
        None, "--rules", "-r", help="Rule preset or B/S notation, e.g. B36/S23."
    ),
    density: Optional[float] = typer.Option(
        None, "--density", help="Alive probability for random boards."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for random boards."),
):
    """
    Run a simulation with the given dimensions, stopping early on extinction
    or a cycle.
    """
    config = _config(ctx)
    if width <= 0 or height <= 0:
        raise InvalidInputError("Width and height must be positive.")
    generations = validate_generation(generations, config)
    rule_set = _resolve_rules(rules, config)
    if density is None:
        density = config.default_density

    grid = validate_grid(_initial_grid(pattern, width, height, density, seed), config)
    bus.info(
        "cli.run.header",
        width=width,
        height=height,
        generations=generations,
        pattern=pattern,
        rules=str(rule_set),
    )
    _play(grid, rule_set, generations, DisplayFrequency())


@app.command()
@_handles_errors
def pattern(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of a predefined pattern."),
    generations: int = typer.Option(50, "--generations", "-g"),
    rules: Optional[str] = typer.Option(None, "--rules", "-r"),
):
    """
    Run a predefined pattern.
    """
    config = _config(ctx)
    selected = get_pattern(name)
    generations = validate_generation(generations, config)
    bus.info(
        "cli.pattern.header",
        name=selected.display_name,
        description=selected.description,
    )
    _play(selected.cells, _resolve_rules(rules, config), generations, DisplayFrequency())


@app.command()
@_handles_errors
def jump(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Name of a predefined pattern."),
    generation: int = typer.Option(..., "--generation", "-g", help="Target generation."),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="Text grid using '*' for alive and '.' for dead."
    ),
    rules: Optional[str] = typer.Option(None, "--rules", "-r"),
    max_iterations: Optional[int] = typer.Option(
        None, "--max-iterations", help="Generations to search for a cycle before giving up."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
):
    """
    Compute a far-future generation, fast-forwarding through detected cycles.
    """
    config = _config(ctx)
    if max_iterations is not None:
        if max_iterations < 1:
            raise InvalidInputError("--max-iterations must be positive.")
        config = replace(config, jump_iteration_ceiling=max_iterations)
    grid = validate_grid(_load_cells(name, file), config)
    rule_set = _resolve_rules(rules, config)
    target = validate_generation(generation, config)

    async def _query() -> GameState:
        service = _new_service(config)
        board_id = await service.create_board(grid, rule_set)
        return await service.get_state_at_generation(board_id, target)

    state = asyncio.run(_query())
    _emit_state(state, as_json)

    if state.status is JumpStatus.CONVERGED:
        bus.info(
            "cli.jump.converged",
            generation=state.generation,
            convergence=state.convergence.display_name.lower(),
            converged_at=state.converged_at,
        )
    elif state.status is JumpStatus.LIMIT_REACHED:
        bus.warning(
            "cli.jump.limit_reached",
            max_iterations=config.jump_iteration_ceiling,
            generation=state.generation,
        )
        raise typer.Exit(code=2)
    elif state.status is JumpStatus.CANCELLED:
        bus.warning("cli.jump.cancelled", generation=state.generation)
        raise typer.Exit(code=130)
    else:
        bus.info("cli.jump.reached", generation=state.generation)


@app.command()
@_handles_errors
def final(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Name of a predefined pattern."),
    file: Optional[Path] = typer.Option(None, "--file", "-f"),
    rules: Optional[str] = typer.Option(None, "--rules", "-r"),
    max_iterations: Optional[int] = typer.Option(None, "--max-iterations"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
):
    """
    Simulate until extinction or a cycle and print the final state.
    """
    config = _config(ctx)
    grid = validate_grid(_load_cells(name, file), config)
    rule_set = _resolve_rules(rules, config)

    async def _query() -> GameState:
        service = _new_service(config)
        board_id = await service.create_board(grid, rule_set)
        return await service.get_final_state(board_id, max_iterations=max_iterations)

    state = asyncio.run(_query())
    _emit_state(state, as_json)

    if state.status is JumpStatus.CONVERGED:
        bus.info(
            "cli.final.converged",
            generation=state.generation,
            convergence=state.convergence.display_name,
        )
    else:
        bus.warning(
            "cli.jump.limit_reached",
            max_iterations=min(max_iterations or config.max_iterations, config.max_iterations),
            generation=state.generation,
        )
        raise typer.Exit(code=2)


@app.command("patterns")
def list_patterns():
    """
    List the predefined patterns.
    """
    table = Table(title="Patterns")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Size")
    table.add_column("Description")
    for p in PATTERNS.values():
        rows, cols = p.cells.shape
        table.add_row(p.name, p.category.value, f"{cols}x{rows}", p.description)
    console.print(table)


@app.command("rules")
def list_rules():
    """
    List the rule presets.
    """
    table = Table(title="Rules")
    table.add_column("Name", style="cyan")
    table.add_column("Rule")
    table.add_column("Notation")
    for key, rule_set in RULE_PRESETS.items():
        table.add_row(key, rule_set.name or "", rule_set.notation)
    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
