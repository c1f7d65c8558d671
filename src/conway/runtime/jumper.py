import threading
from typing import Optional

from conway.spec.convergence import ConvergenceKind, ConvergenceType
from conway.spec.grid import Grid, is_extinct
from conway.spec.rules import CONWAY, RuleSet
from conway.spec.state import JumpResult, JumpStatus
from .convergence import ConvergenceDetector
from .fingerprint import fingerprint
from .history import StateHistory
from .step import StepEngine

DEFAULT_MAX_ITERATIONS = 100_000


class CancellationToken:
    """A flag checked once per generation by long-running computations."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class GenerationJumper:
    """
    Answers "what does generation N look like?" without stepping N times when
    the evolution has gone extinct or entered a cycle.

    Once a state repeats with period p at generation g, every later generation
    t is equal to generation g + (t - g) mod p, so at most p - 1 further steps
    are needed regardless of how far away the target is.
    """

    def __init__(
        self,
        rules: RuleSet = CONWAY,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        detector: Optional[ConvergenceDetector] = None,
    ):
        if max_iterations < 0:
            raise ValueError("max_iterations must not be negative")
        self.rules = rules
        self.max_iterations = max_iterations
        self.engine = StepEngine(rules)
        self.detector = detector or ConvergenceDetector()

    def state_at(
        self,
        grid: Grid,
        target_generation: int,
        cancel_token: Optional[CancellationToken] = None,
    ) -> JumpResult:
        if target_generation <= 0:
            return JumpResult(grid=grid, generation=0, status=JumpStatus.REACHED)

        history = StateHistory()
        history.record(fingerprint(grid), 0)

        state = grid
        iterations = 0
        ceiling = min(target_generation, self.max_iterations)

        for generation in range(1, ceiling + 1):
            if cancel_token is not None and cancel_token.cancelled:
                return JumpResult(
                    state, generation - 1, JumpStatus.CANCELLED, iterations=iterations
                )

            next_state, changed = self.engine.step(state)
            iterations += 1

            if not changed:
                # Fixed point: every later generation looks exactly like this one.
                convergence = (
                    ConvergenceType.extinct()
                    if is_extinct(state)
                    else ConvergenceType.cyclical(1)
                )
                return JumpResult(
                    state,
                    target_generation,
                    JumpStatus.CONVERGED,
                    converged_at=generation,
                    convergence=convergence,
                    iterations=iterations,
                )

            digest = fingerprint(next_state)
            verdict = self.detector.check(next_state, history, generation, digest)

            if verdict.kind is ConvergenceKind.EXTINCT:
                if self.rules.extinction_is_final:
                    return JumpResult(
                        next_state,
                        target_generation,
                        JumpStatus.CONVERGED,
                        converged_at=generation,
                        convergence=verdict,
                        iterations=iterations,
                    )
                verdict = self.detector.check_cycle(digest, history, generation)

            if verdict.kind is ConvergenceKind.CYCLICAL:
                skip = (target_generation - generation) % verdict.period
                state = next_state
                for _ in range(skip):
                    if cancel_token is not None and cancel_token.cancelled:
                        # The fast-forward position is not a meaningful generation
                        # to report, so fall back to where the cycle was found.
                        return JumpResult(
                            next_state,
                            generation,
                            JumpStatus.CANCELLED,
                            iterations=iterations,
                        )
                    state, _ = self.engine.step(state)
                    iterations += 1
                return JumpResult(
                    state,
                    target_generation,
                    JumpStatus.CONVERGED,
                    converged_at=generation,
                    convergence=verdict,
                    iterations=iterations,
                )

            history.record(digest, generation)
            state = next_state

        if ceiling < target_generation:
            return JumpResult(
                state, ceiling, JumpStatus.LIMIT_REACHED, iterations=iterations
            )
        return JumpResult(
            state, target_generation, JumpStatus.REACHED, iterations=iterations
        )

    def final_state(
        self,
        grid: Grid,
        max_iterations: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> JumpResult:
        """
        Simulates until extinction or a repeated state, returning the state at
        which convergence was detected, or LIMIT_REACHED after `max_iterations`
        generations.
        """
        ceiling = self.max_iterations if max_iterations is None else max_iterations
        history = StateHistory()

        digest = fingerprint(grid)
        if self.rules.extinction_is_final and is_extinct(grid):
            return JumpResult(
                grid,
                0,
                JumpStatus.CONVERGED,
                converged_at=0,
                convergence=ConvergenceType.extinct(),
            )
        history.record(digest, 0)

        state = grid
        iterations = 0
        for generation in range(1, ceiling + 1):
            if cancel_token is not None and cancel_token.cancelled:
                return JumpResult(
                    state, generation - 1, JumpStatus.CANCELLED, iterations=iterations
                )

            next_state, changed = self.engine.step(state)
            iterations += 1

            if changed:
                digest = fingerprint(next_state)
                verdict = self.detector.check(next_state, history, generation, digest)
                if (
                    verdict.kind is ConvergenceKind.EXTINCT
                    and not self.rules.extinction_is_final
                ):
                    verdict = self.detector.check_cycle(digest, history, generation)
            else:
                verdict = (
                    ConvergenceType.extinct()
                    if is_extinct(state)
                    else ConvergenceType.cyclical(1)
                )

            if verdict.is_converged:
                return JumpResult(
                    next_state,
                    generation,
                    JumpStatus.CONVERGED,
                    converged_at=generation,
                    convergence=verdict,
                    iterations=iterations,
                )

            history.record(digest, generation)
            state = next_state

        return JumpResult(
            state, ceiling, JumpStatus.LIMIT_REACHED, iterations=iterations
        )
