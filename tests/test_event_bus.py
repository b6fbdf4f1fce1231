from workspace_tabs.services.event_bus import EventBus, TabEvent


def test_subscribe_publish_basic():
    bus = EventBus()
    received = []

    def handler(evt):
        received.append((evt.name, evt.payload))

    bus.subscribe(TabEvent.ACTIVE_TAB_CHANGED, handler)
    bus.publish(TabEvent.ACTIVE_TAB_CHANGED, "tab-1")
    assert received == [(TabEvent.ACTIVE_TAB_CHANGED.value, "tab-1")]


def test_enum_and_string_names_are_interchangeable():
    bus = EventBus()
    received = []
    bus.subscribe("tabs.state_changed", lambda e: received.append(e.payload))
    bus.publish(TabEvent.STATE_CHANGED, 1)
    assert received == [1]
    assert bus.subscriber_count(TabEvent.STATE_CHANGED) == 1


def test_once_subscription():
    bus = EventBus()
    count = 0

    def incr(_):
        nonlocal count
        count += 1

    bus.subscribe(TabEvent.TABS_CLOSED, incr, once=True)
    bus.publish(TabEvent.TABS_CLOSED)
    bus.publish(TabEvent.TABS_CLOSED)
    assert count == 1  # second publish ignored
    assert bus.subscriber_count(TabEvent.TABS_CLOSED) == 0


def test_error_isolation():
    bus = EventBus()
    order = []

    def bad(_):
        order.append("bad")
        raise RuntimeError("boom")

    def good(_):
        order.append("good")

    bus.subscribe("custom", bad)
    bus.subscribe("custom", good)
    bus.publish("custom", 123)
    # Both handlers executed despite error
    assert order == ["bad", "good"]
    assert len(bus.errors) == 1


def test_unsubscribe_and_cancel():
    bus = EventBus()
    seen = []
    sub = bus.subscribe("x", lambda e: seen.append("a"))
    other = bus.subscribe("x", lambda e: seen.append("b"))
    other.cancel()
    bus.publish("x")
    bus.unsubscribe(sub)
    bus.publish("x")
    assert seen == ["a"]
    assert sub.active is False


def test_handler_may_publish_nested_event():
    bus = EventBus()
    seen = []
    bus.subscribe("outer", lambda e: bus.publish("inner", e.payload + 1))
    bus.subscribe("inner", lambda e: seen.append(e.payload))
    bus.publish("outer", 1)
    assert seen == [2]


def test_clear_drops_subscriptions_and_errors():
    bus = EventBus()

    def boom(_evt):
        raise RuntimeError("x")

    bus.subscribe(TabEvent.STATE_CHANGED, boom)
    bus.publish(TabEvent.STATE_CHANGED)
    assert len(bus.errors) == 1
    bus.clear()
    assert bus.errors == []
    assert bus.subscriber_count(TabEvent.STATE_CHANGED) == 0
