from conway.common.messaging import bus
from .bus import MessageBus
from .events import (
    BoardCreated,
    GenerationStepped,
    QueryStarted,
    CacheHit,
    ConvergenceDetected,
    QueryFinished,
)


class HumanReadableLogSubscriber:
    """
    Listens to runtime events and translates them into semantic messages
    on the messaging bus. It acts as a bridge between the event domain
    and the user-facing message domain.
    """

    def __init__(self, event_bus: MessageBus):
        event_bus.subscribe(BoardCreated, self.on_board_created)
        event_bus.subscribe(GenerationStepped, self.on_generation_stepped)
        event_bus.subscribe(QueryStarted, self.on_query_started)
        event_bus.subscribe(CacheHit, self.on_cache_hit)
        event_bus.subscribe(ConvergenceDetected, self.on_convergence_detected)
        event_bus.subscribe(QueryFinished, self.on_query_finished)

    def on_board_created(self, event: BoardCreated):
        bus.info(
            "board.created",
            board_id=event.board_id,
            width=event.width,
            height=event.height,
            rules=event.rules,
        )

    def on_generation_stepped(self, event: GenerationStepped):
        if event.changed:
            bus.debug(
                "board.stepped",
                board_id=event.board_id,
                generation=event.generation,
                population=event.population,
            )
        else:
            bus.info(
                "board.unchanged",
                board_id=event.board_id,
                generation=event.generation,
            )

    def on_query_started(self, event: QueryStarted):
        if event.kind == "final":
            bus.debug(
                "query.started_final",
                board_id=event.board_id,
                max_iterations=event.max_iterations,
            )
        else:
            bus.debug(
                "query.started",
                kind=event.kind,
                board_id=event.board_id,
                target=event.target_generation,
            )

    def on_cache_hit(self, event: CacheHit):
        bus.debug(
            "query.cache_hit", board_id=event.board_id, generation=event.generation
        )

    def on_convergence_detected(self, event: ConvergenceDetected):
        if event.convergence == "extinct":
            bus.info(
                "query.converged_extinct",
                kind=event.kind,
                board_id=event.board_id,
                converged_at=event.converged_at,
            )
        else:
            bus.info(
                "query.converged_cycle",
                kind=event.kind,
                board_id=event.board_id,
                converged_at=event.converged_at,
                period=event.period,
            )

    def on_query_finished(self, event: QueryFinished):
        data = dict(
            kind=event.kind,
            board_id=event.board_id,
            generation=event.generation,
            iterations=event.iterations,
        )
        if event.status == "limit_reached":
            bus.warning("query.limit_reached", **data)
        elif event.status == "cancelled":
            bus.warning("query.cancelled", **data)
        else:
            bus.info("query.finished", duration=event.duration, **data)
