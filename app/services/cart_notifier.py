import logging
from typing import Callable

from app.services.storage import KeyValueStorage, StorageEvent

logger = logging.getLogger(__name__)

CartHandler = Callable[[], None]


class CartNotifier:
    """
    Broadcast signal fired whenever the cart changes.

    Two sources feed the same stream:
      - publish() from the CartStore after a same-context mutation
      - storage events for the cart key written by another context
        (wired with bridge())

    Handlers take no arguments; they re-read the store themselves.
    Delivery is synchronous and in registration order.
    """

    def __init__(self):
        self._subscriptions: list[tuple[object, CartHandler]] = []

    def subscribe(self, handler: CartHandler) -> Callable[[], None]:
        """
        Register a handler. Returns the matching unsubscribe function.
        """
        token = object()
        self._subscriptions.append((token, handler))

        def unsubscribe() -> None:
            self._subscriptions = [
                sub for sub in self._subscriptions if sub[0] is not token
            ]

        return unsubscribe

    def publish(self) -> None:
        for _, handler in list(self._subscriptions):
            try:
                handler()
            except Exception:
                logger.exception("Cart change handler %r failed", handler)

    def bridge(self, storage: KeyValueStorage, key: str) -> Callable[[], None]:
        """
        Republish changes to `key` made through other contexts of the area.

        Returns a function that detaches the bridge.
        """

        def on_storage(event: StorageEvent) -> None:
            if event.key == key:
                self.publish()

        return storage.add_listener(on_storage)

    def __len__(self) -> int:
        return len(self._subscriptions)
