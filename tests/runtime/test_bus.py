from conway.runtime.events import BoardCreated, BoardEvent, CacheHit, Event


def test_subscribers_receive_matching_events(bus_and_spy):
    bus, spy = bus_and_spy
    created = []
    bus.subscribe(BoardCreated, created.append)

    bus.publish(BoardCreated(board_id="b1", width=3, height=3))
    bus.publish(CacheHit(board_id="b1", generation=4))

    assert [e.board_id for e in created] == ["b1"]
    assert len(spy.events) == 2


def test_base_class_subscribers_receive_subclass_events(bus_and_spy):
    bus, _ = bus_and_spy
    received = []
    bus.subscribe(BoardEvent, received.append)

    bus.publish(CacheHit(board_id="b1", generation=4))

    assert len(received) == 1


def test_events_carry_identity():
    a = CacheHit(board_id="b1", generation=1)
    b = CacheHit(board_id="b1", generation=1)

    assert isinstance(a, Event)
    assert a.event_id != b.event_id
    assert a.timestamp > 0
    assert a.query_id is None
