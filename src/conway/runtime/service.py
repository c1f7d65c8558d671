import asyncio
import time
from typing import Any, Callable, Optional
from uuid import uuid4

from conway.adapters.cache.lru import BoundedResultCache, CacheKey
from conway.config import EngineConfig
from conway.spec.convergence import ConvergenceKind
from conway.spec.grid import GridLike, population
from conway.spec.rules import RuleSet, get_rule
from conway.spec.state import Board, GameState, JumpResult, JumpStatus
from conway.validation import validate_generation, validate_grid
from .bus import MessageBus
from .convergence import ConvergenceDetector
from .events import (
    BoardCreated,
    CacheHit,
    ConvergenceDetected,
    GenerationStepped,
    QueryFinished,
    QueryStarted,
)
from .exceptions import BoardNotFoundError, InvalidInputError
from .fingerprint import fingerprint
from .history import StateHistory
from .jumper import CancellationToken, GenerationJumper
from .protocols import BoardStore, ResultCache
from .step import StepEngine


class GameService:
    """
    Board-level operations on top of the evolution engine.

    Boards are loaded from and saved to a BoardStore. Far-future queries run
    the GenerationJumper in a worker thread, memoized by a bounded cache keyed
    on (board id, generation). Every query publishes runtime events on `bus`.
    """

    def __init__(
        self,
        store: BoardStore,
        config: Optional[EngineConfig] = None,
        cache: Optional[ResultCache] = None,
        bus: Optional[MessageBus] = None,
        detector: Optional[ConvergenceDetector] = None,
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.cache = cache or BoundedResultCache(self.config.cache_capacity)
        self.bus = bus or MessageBus()
        self.detector = detector or ConvergenceDetector()

    async def create_board(
        self, cells: GridLike, rules: Optional[RuleSet] = None
    ) -> str:
        grid = validate_grid(cells, self.config)
        rules = rules or get_rule(self.config.default_rules)
        board = Board(
            id=uuid4().hex,
            initial_cells=grid,
            cells=grid,
            generation=0,
            rules=rules,
            state_history=[fingerprint(grid)],
        )
        await self.store.save(board)
        self.bus.publish(
            BoardCreated(
                board_id=board.id,
                width=board.width,
                height=board.height,
                rules=rules.notation,
            )
        )
        return board.id

    async def get_current_state(self, board_id: str) -> GameState:
        board = await self._load(board_id)
        return self._game_state(board, board.generation, board.cells)

    async def get_next_state(self, board_id: str) -> GameState:
        board = await self._load(board_id)
        engine = StepEngine(board.rules)

        next_cells, changed = engine.step(board.cells)
        generation = board.generation + 1
        digest = fingerprint(next_cells)

        # state_history holds consecutive states ending at the current generation
        history = StateHistory.from_fingerprints(
            board.state_history,
            start_generation=board.generation - len(board.state_history) + 1,
            keep_latest=True,
        )
        convergence = self.detector.check(next_cells, history, generation, digest)
        if (
            convergence.kind is ConvergenceKind.EXTINCT
            and not board.rules.extinction_is_final
        ):
            convergence = self.detector.check_cycle(digest, history, generation)

        board.cells = next_cells
        board.generation = generation
        board.state_history.append(digest)
        if len(board.state_history) > self.config.max_history:
            del board.state_history[: -self.config.max_history]
        await self.store.save(board)

        self.bus.publish(
            GenerationStepped(
                board_id=board.id,
                generation=generation,
                population=population(next_cells),
                changed=changed,
            )
        )

        converged = convergence.is_converged
        if converged:
            self.bus.publish(
                ConvergenceDetected(
                    board_id=board.id,
                    kind="step",
                    converged_at=generation,
                    convergence=convergence.kind.value,
                    period=convergence.period,
                )
            )

        return GameState(
            board_id=board.id,
            generation=generation,
            cells=next_cells,
            is_stable=(not changed) or convergence.is_still_life,
            population_count=population(next_cells),
            converged_at=generation if converged else None,
            convergence=convergence if converged else None,
            status=JumpStatus.CONVERGED if converged else JumpStatus.REACHED,
        )

    async def get_state_at_generation(
        self,
        board_id: str,
        generation: Any,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GameState:
        """
        Computes the board's state `generation` steps after its initial cells.
        Does not modify the stored board.
        """
        generation = validate_generation(generation, self.config)
        board = await self._load(board_id)
        query_id = str(uuid4())
        start_time = time.time()

        self.bus.publish(
            QueryStarted(
                query_id=query_id,
                board_id=board_id,
                kind="state_at",
                target_generation=generation,
            )
        )

        key = CacheKey(board_id, generation)
        cached = self.cache.get(key)
        if cached is not None:
            self.bus.publish(
                CacheHit(query_id=query_id, board_id=board_id, generation=generation)
            )
            self._publish_finished(
                query_id, board_id, "state_at", JumpStatus.REACHED, generation, 0, start_time
            )
            return self._game_state(board, generation, cached)

        jumper = GenerationJumper(
            board.rules, max_iterations=self.config.jump_iteration_ceiling
        )
        result = await self._run_in_thread(
            jumper.state_at, board.initial_cells, generation, cancel_token=cancel_token
        )

        # Partial answers must not be served later as if they were complete.
        if result.is_complete:
            self.cache.put(key, result.grid)

        self._publish_result(query_id, board_id, "state_at", result, start_time)
        return self._game_state(board, result.generation, result.grid, result)

    async def jump_to_generation(
        self,
        board_id: str,
        generation: Any,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GameState:
        """
        Like get_state_at_generation, but the answer becomes the board's current
        state. Targets above the configured maximum are clamped to it.
        """
        if (
            isinstance(generation, int)
            and not isinstance(generation, bool)
            and generation > self.config.max_generation
        ):
            generation = self.config.max_generation

        state = await self.get_state_at_generation(
            board_id, generation, cancel_token=cancel_token
        )
        if state.status is JumpStatus.CANCELLED:
            return state

        board = await self._load(board_id)
        board.cells = state.cells
        board.generation = state.generation
        # History restarts at the landing point; earlier states are not consecutive.
        board.state_history = [fingerprint(state.cells)]
        await self.store.save(board)
        return state

    async def get_final_state(
        self,
        board_id: str,
        max_iterations: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GameState:
        """
        Simulates from the board's current state until extinction or a cycle.
        Running out of iterations is reported through the state's status.
        """
        if max_iterations is None:
            ceiling = self.config.max_iterations
        elif (
            isinstance(max_iterations, bool)
            or not isinstance(max_iterations, int)
            or max_iterations < 1
        ):
            raise InvalidInputError(
                f"max_iterations must be a positive integer, got {max_iterations!r}"
            )
        else:
            ceiling = min(max_iterations, self.config.max_iterations)

        board = await self._load(board_id)
        query_id = str(uuid4())
        start_time = time.time()
        self.bus.publish(
            QueryStarted(
                query_id=query_id,
                board_id=board_id,
                kind="final",
                max_iterations=ceiling,
            )
        )

        jumper = GenerationJumper(board.rules, max_iterations=ceiling)
        result = await self._run_in_thread(
            jumper.final_state, board.cells, ceiling, cancel_token=cancel_token
        )

        # final_state counts from the board's current generation
        offset = board.generation
        result = JumpResult(
            grid=result.grid,
            generation=result.generation + offset,
            status=result.status,
            converged_at=(
                result.converged_at + offset if result.converged_at is not None else None
            ),
            convergence=result.convergence,
            iterations=result.iterations,
        )
        self._publish_result(query_id, board_id, "final", result, start_time)
        return self._game_state(board, result.generation, result.grid, result)

    async def reset_board(self, board_id: str) -> GameState:
        board = await self._load(board_id)
        board.cells = board.initial_cells
        board.generation = 0
        board.state_history = [fingerprint(board.initial_cells)]
        await self.store.save(board)
        return self._game_state(board, 0, board.cells)

    async def delete_board(self, board_id: str) -> None:
        if not await self.store.delete(board_id):
            raise BoardNotFoundError(board_id)
        self.cache.discard_board(board_id)

    async def _load(self, board_id: str) -> Board:
        board = await self.store.load(board_id)
        if board is None:
            raise BoardNotFoundError(board_id)
        return board

    async def _run_in_thread(
        self,
        func: Callable[..., JumpResult],
        *args: Any,
        cancel_token: Optional[CancellationToken] = None,
    ) -> JumpResult:
        token = cancel_token or CancellationToken()
        try:
            return await asyncio.to_thread(func, *args, cancel_token=token)
        except asyncio.CancelledError:
            # The worker thread cannot be interrupted; ask it to stop at the next generation.
            token.cancel()
            raise

    def _game_state(
        self,
        board: Board,
        generation: int,
        cells,
        result: Optional[JumpResult] = None,
    ) -> GameState:
        _, changed = StepEngine(board.rules).step(cells)
        return GameState(
            board_id=board.id,
            generation=generation,
            cells=cells,
            is_stable=not changed,
            population_count=population(cells),
            converged_at=result.converged_at if result else None,
            convergence=result.convergence if result else None,
            status=result.status if result else JumpStatus.REACHED,
        )

    def _publish_result(
        self,
        query_id: str,
        board_id: str,
        kind: str,
        result: JumpResult,
        start_time: float,
    ) -> None:
        if result.convergence is not None:
            self.bus.publish(
                ConvergenceDetected(
                    query_id=query_id,
                    board_id=board_id,
                    kind=kind,
                    converged_at=result.converged_at,
                    convergence=result.convergence.kind.value,
                    period=result.convergence.period,
                )
            )
        self._publish_finished(
            query_id,
            board_id,
            kind,
            result.status,
            result.generation,
            result.iterations,
            start_time,
        )

    def _publish_finished(
        self,
        query_id: str,
        board_id: str,
        kind: str,
        status: JumpStatus,
        generation: int,
        iterations: int,
        start_time: float,
    ) -> None:
        self.bus.publish(
            QueryFinished(
                query_id=query_id,
                board_id=board_id,
                kind=kind,
                status=status.value,
                generation=generation,
                iterations=iterations,
                duration=time.time() - start_time,
            )
        )
