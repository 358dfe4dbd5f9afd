from typing import Callable, Dict, List, NamedTuple
from datetime import datetime

__all__ = [
    'Event', 'EventBus',
    'USER_ADDED', 'USER_DELETED', 'CHARGE_ADDED', 'CHARGE_UPDATED', 'CHARGE_DELETED',
    'PERSISTENCE_WARNING', 'toast_handler',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []

        event = Event(
            name=name,
            ts=datetime.now().isoformat(),
            payload=payload
        )

        results = []
        for handler in list(self._subscribers[name]):
            results.append(handler(event, payload))
        return results

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


USER_ADDED = "USER_ADDED"
USER_DELETED = "USER_DELETED"
CHARGE_ADDED = "CHARGE_ADDED"
CHARGE_UPDATED = "CHARGE_UPDATED"
CHARGE_DELETED = "CHARGE_DELETED"
PERSISTENCE_WARNING = "PERSISTENCE_WARNING"

_TOAST_TEXT = {
    USER_ADDED: ("success", "Usuario creado exitosamente"),
    USER_DELETED: ("success", "Usuario eliminado exitosamente"),
    CHARGE_ADDED: ("success", "Cobro registrado exitosamente"),
    CHARGE_UPDATED: ("success", "Cobro actualizado exitosamente"),
    CHARGE_DELETED: ("success", "Cobro eliminado exitosamente"),
}


def toast_handler(event: Event, payload: dict) -> dict:
    """Map a store event to a notification the UI can show."""
    if event.name == PERSISTENCE_WARNING:
        return {
            "level": "warning",
            "message": f"Guardado solo en local: {payload.get('message', '')}",
        }
    level, message = _TOAST_TEXT.get(event.name, ("info", event.name))
    if payload.get("mode") == "local":
        message += " (modo offline)"
    return {"level": level, "message": message}
