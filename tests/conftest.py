import pytest

from conway.common.messaging import bus as message_bus
from conway.runtime.bus import MessageBus
from conway.spec.grid import from_string
from conway.testing import SpySubscriber


@pytest.fixture(autouse=True)
def reset_message_renderer():
    # A renderer left over from a CliRunner invocation may point at a closed stream.
    message_bus.set_renderer(None)
    yield
    message_bus.set_renderer(None)


@pytest.fixture
def bus_and_spy():
    """Provides a MessageBus instance and an attached SpySubscriber."""
    bus = MessageBus()
    spy = SpySubscriber(bus)
    return bus, spy


@pytest.fixture
def blinker():
    return from_string(
        """
        .....
        ..*..
        ..*..
        ..*..
        .....
        """
    )


@pytest.fixture
def glider():
    return from_string(
        """
        .*........
        ..*.......
        ***.......
        ..........
        ..........
        ..........
        ..........
        ..........
        ..........
        ..........
        """
    )


@pytest.fixture
def block():
    return from_string(
        """
        ....
        .**.
        .**.
        ....
        """
    )
