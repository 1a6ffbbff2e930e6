"""
Tests for CartNotifier and the storage event bridge.

Two contexts on the same area stand in for two browser tabs: a mutation
in one reaches the other through the storage event, and the writer's own
subscribers through publish(). Each side sees exactly one signal.
"""
from app.services.cart_notifier import CartNotifier
from app.services.cart_store import CartStore
from app.services.storage import DatabaseStorage, MemoryStorage, StorageEventHub

CART_KEY = "ayurvedicCart"


def open_tab(storage):
    notifier = CartNotifier()
    notifier.bridge(storage, CART_KEY)
    return CartStore(storage, notifier)


class TestPublishSubscribe:
    def test_handlers_called_in_registration_order(self, notifier):
        calls = []
        notifier.subscribe(lambda: calls.append("first"))
        notifier.subscribe(lambda: calls.append("second"))
        notifier.subscribe(lambda: calls.append("third"))

        notifier.publish()

        assert calls == ["first", "second", "third"]

    def test_unsubscribe_stops_delivery(self, notifier):
        calls = []
        unsubscribe = notifier.subscribe(lambda: calls.append(1))
        notifier.publish()
        unsubscribe()
        notifier.publish()

        assert calls == [1]
        assert len(notifier) == 0

    def test_unsubscribe_removes_only_that_registration(self, notifier):
        calls = []

        def handler():
            calls.append(1)

        first = notifier.subscribe(handler)
        notifier.subscribe(handler)
        first()
        notifier.publish()

        assert calls == [1]

    def test_failing_handler_does_not_block_others(self, notifier):
        calls = []

        def broken():
            raise RuntimeError("boom")

        notifier.subscribe(broken)
        notifier.subscribe(lambda: calls.append("after"))

        notifier.publish()

        assert calls == ["after"]


class TestCrossContextBridge:
    def test_mutation_in_one_tab_notifies_the_other_once(self):
        tab_a = open_tab(MemoryStorage(area="cust-1"))
        tab_b = open_tab(tab_a.storage.open_context())

        calls_a, calls_b = [], []
        tab_a.notifier.subscribe(lambda: calls_a.append(tab_a.count()))
        tab_b.notifier.subscribe(lambda: calls_b.append(tab_b.count()))

        tab_a.add("A", 2)

        assert calls_a == [2]
        assert calls_b == [2]

    def test_clear_reaches_other_tab(self):
        tab_a = open_tab(MemoryStorage(area="cust-1"))
        tab_b = open_tab(tab_a.storage.open_context())
        tab_a.add("A", 2)

        calls_b = []
        tab_b.notifier.subscribe(lambda: calls_b.append(tab_b.count()))
        tab_a.clear()

        assert calls_b == [0]

    def test_other_keys_are_ignored(self):
        tab_a = open_tab(MemoryStorage(area="cust-1"))
        storage_b = tab_a.storage.open_context()
        tab_b = open_tab(storage_b)

        calls_b = []
        tab_b.notifier.subscribe(lambda: calls_b.append(1))
        tab_a.storage.set_item("token", "abc")

        assert calls_b == []

    def test_detached_bridge_stops_forwarding(self):
        storage_a = MemoryStorage(area="cust-1")
        storage_b = storage_a.open_context()
        tab_a = open_tab(storage_a)

        notifier_b = CartNotifier()
        detach = notifier_b.bridge(storage_b, CART_KEY)
        calls_b = []
        notifier_b.subscribe(lambda: calls_b.append(1))

        detach()
        tab_a.add("A", 1)

        assert calls_b == []

    def test_database_contexts_share_events(self, engine):
        hub = StorageEventHub()
        tab_a = open_tab(DatabaseStorage(engine, area="cust-1", hub=hub))
        tab_b = open_tab(DatabaseStorage(engine, area="cust-1", hub=hub))
        other_customer = open_tab(DatabaseStorage(engine, area="cust-2", hub=hub))

        calls_b, calls_other = [], []
        tab_b.notifier.subscribe(lambda: calls_b.append(tab_b.count()))
        other_customer.notifier.subscribe(lambda: calls_other.append(1))

        tab_a.add("A", 3)

        assert calls_b == [3]
        assert calls_other == []
