from datetime import datetime

from cobros.events import (
    CHARGE_ADDED, CHARGE_DELETED, PERSISTENCE_WARNING, USER_ADDED,
    Event, EventBus, toast_handler
)


def test_event_creation():
    event = Event(
        name=CHARGE_ADDED,
        ts=datetime.now().isoformat(),
        payload={"charge_id": "c1", "mode": "remote"}
    )
    assert event.name == CHARGE_ADDED
    assert event.payload["charge_id"] == "c1"


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    collected = []

    def handler(event: Event, payload: dict) -> dict:
        collected.append(payload)
        return {"processed": True}

    bus.subscribe(CHARGE_ADDED, handler)
    results = bus.publish(CHARGE_ADDED, {"charge_id": "c1"})

    assert results == [{"processed": True}]
    assert collected == [{"charge_id": "c1"}]


def test_multiple_subscribers_same_event():
    bus = EventBus()
    bus.subscribe(USER_ADDED, lambda e, p: {"handler": 1})
    bus.subscribe(USER_ADDED, lambda e, p: {"handler": 2})

    results = bus.publish(USER_ADDED, {})

    assert [r["handler"] for r in results] == [1, 2]


def test_publish_without_subscribers():
    bus = EventBus()
    assert bus.publish(CHARGE_DELETED, {"charge_id": "c1"}) == []


def test_unsubscribe():
    bus = EventBus()
    called = []

    def handler(event: Event, payload: dict) -> dict:
        called.append(event.name)
        return {}

    bus.subscribe(CHARGE_ADDED, handler)
    bus.unsubscribe(CHARGE_ADDED, handler)
    bus.unsubscribe(CHARGE_ADDED, handler)
    bus.publish(CHARGE_ADDED, {})

    assert called == []


def test_toast_handler_success_messages():
    bus = EventBus()
    bus.subscribe(CHARGE_ADDED, toast_handler)

    remote = bus.publish(CHARGE_ADDED, {"mode": "remote"})[0]
    local = bus.publish(CHARGE_ADDED, {"mode": "local"})[0]

    assert remote == {"level": "success", "message": "Cobro registrado exitosamente"}
    assert local["message"] == "Cobro registrado exitosamente (modo offline)"


def test_toast_handler_persistence_warning():
    bus = EventBus()
    bus.subscribe(PERSISTENCE_WARNING, toast_handler)

    toast = bus.publish(PERSISTENCE_WARNING, {"operation": "add charge", "message": "offline"})[0]

    assert toast["level"] == "warning"
    assert toast["message"] == "Guardado solo en local: offline"
