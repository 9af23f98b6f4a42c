import unittest
from unittest.mock import Mock, call

from tvstream.integrations.tv_ws import TradingViewClient
from tvstream.schemas.quote import Quote
from tvstream.services.notification_registry import NotificationRegistry


class TestOnUpdate(unittest.TestCase):
    def test_subscriptions_fire_in_order_until_they_ask_to_stop(self):
        client = TradingViewClient()
        order = []
        stop_after_first = Mock(side_effect=lambda quote: order.append("A") or True)
        keep_listening = Mock(side_effect=lambda quote: order.append("B") or False)

        client.on_update("AAPL", stop_after_first)
        client.on_update("AAPL", keep_listening)

        for price in (123.45, 124.56, 125.67):
            client.update("AAPL", Quote(symbol="AAPL", last_price=price))

        self.assertEqual(stop_after_first.call_args_list, [call(Quote(symbol="AAPL", last_price=123.45))])
        self.assertEqual(
            keep_listening.call_args_list,
            [
                call(Quote(symbol="AAPL", last_price=123.45)),
                call(Quote(symbol="AAPL", last_price=124.56)),
                call(Quote(symbol="AAPL", last_price=125.67)),
            ],
        )
        self.assertEqual(order, ["A", "B", "B", "B"])
        self.assertEqual(client.notifications.pending("AAPL"), 1)

    def test_on_update_starts_watching_the_symbol(self):
        client = TradingViewClient()

        client.on_update("IBM", lambda quote: False)

        self.assertTrue(client.watch_registry.contains("IBM"))

    def test_updates_for_other_symbols_do_not_fire(self):
        client = TradingViewClient()
        callback = Mock(return_value=False)
        client.on_update("AAPL", callback)

        client.update("MSFT", Quote(symbol="MSFT"))

        callback.assert_not_called()


class TestNotificationRegistry(unittest.TestCase):
    def test_survivors_keep_relative_order_across_symbols(self):
        registry = NotificationRegistry()
        calls = []
        first = registry.add("AAPL", lambda q: calls.append("a1") or True)
        other = registry.add("MSFT", lambda q: calls.append("m1") or False)
        second = registry.add("AAPL", lambda q: calls.append("a2") or False)

        invoked = registry.notify("AAPL", Quote())

        self.assertEqual(invoked, 2)
        self.assertEqual(calls, ["a1", "a2"])
        self.assertEqual(registry._subscriptions, [other, second])
        self.assertNotIn(first, registry._subscriptions)

    def test_one_shot_subscription_is_removed_after_first_call(self):
        registry = NotificationRegistry()
        callback = Mock(return_value=None)
        registry.add("AAPL", callback, one_shot=True)

        registry.notify("AAPL", Quote(last_price=1.0))
        registry.notify("AAPL", Quote(last_price=2.0))

        callback.assert_called_once_with(Quote(last_price=1.0))
        self.assertEqual(registry.pending(), 0)

    def test_subscription_added_from_callback_waits_for_next_update(self):
        registry = NotificationRegistry()
        late = Mock(return_value=False)

        def register_late(quote):
            registry.add("AAPL", late)
            return True

        registry.add("AAPL", register_late)

        registry.notify("AAPL", Quote(last_price=1.0))
        late.assert_not_called()

        registry.notify("AAPL", Quote(last_price=2.0))
        late.assert_called_once_with(Quote(last_price=2.0))

    def test_failing_callback_is_kept_and_does_not_block_others(self):
        registry = NotificationRegistry()
        failing = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock(return_value=False)
        registry.add("AAPL", failing)
        registry.add("AAPL", healthy)

        registry.notify("AAPL", Quote())
        registry.notify("AAPL", Quote())

        self.assertEqual(failing.call_count, 2)
        self.assertEqual(healthy.call_count, 2)
        self.assertEqual(registry.pending("AAPL"), 2)

    def test_failing_one_shot_subscription_is_still_removed(self):
        registry = NotificationRegistry()
        failing = Mock(side_effect=RuntimeError("boom"))
        registry.add("AAPL", failing, one_shot=True)

        registry.notify("AAPL", Quote(last_price=1.0))
        registry.notify("AAPL", Quote(last_price=2.0))

        failing.assert_called_once_with(Quote(last_price=1.0))
        self.assertEqual(registry.pending(), 0)


if __name__ == "__main__":
    unittest.main()
