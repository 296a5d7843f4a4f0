from typing import Callable, List, Any


Listener = Callable[..., Any]


class Observable:
    """
    Minimal subscribe/notify base for the session stores.
    Consumers own their re-read cadence: a notification only says "changed".
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def clear_listeners(self) -> None:
        self._listeners.clear()

    def notify(self, *args: Any) -> None:
        # copy: listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(*args)
