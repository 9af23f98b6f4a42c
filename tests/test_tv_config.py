import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from tvstream.config.settings import Settings


class TestTvSettings(unittest.TestCase):
    def test_defaults_without_env(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.TV_WS_URL, "wss://data.tradingview.com/socket.io/websocket")
        self.assertEqual(settings.TV_WS_ORIGIN, "https://data.tradingview.com/")
        self.assertEqual(settings.TV_WS_SYMBOLS, [])
        self.assertFalse(settings.TV_WS_VERIFY_TLS)
        self.assertEqual(settings.TV_DATA_QUALITY, "low")
        self.assertEqual(settings.TV_AUTH_TOKEN, "unauthorized_user_token")

    def test_ws_symbols_parses_comma_separated_values(self):
        with patch.dict(os.environ, {"TV_WS_SYMBOLS": " AAPL, NASDAQ:MSFT , ,IBM "}, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.TV_WS_SYMBOLS, ["AAPL", "NASDAQ:MSFT", "IBM"])

    def test_env_overrides_connection_values(self):
        env = {
            "TV_WS_URL": "wss://example.test/socket",
            "TV_WS_VERIFY_TLS": "true",
            "TV_DATA_QUALITY": "high",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.TV_WS_URL, "wss://example.test/socket")
        self.assertTrue(settings.TV_WS_VERIFY_TLS)
        self.assertEqual(settings.TV_DATA_QUALITY, "high")

    def test_invalid_tls_flag_fails_validation(self):
        with patch.dict(os.environ, {"TV_WS_VERIFY_TLS": "sometimes"}, clear=True):
            with self.assertRaises(ValidationError):
                Settings.from_env()


if __name__ == "__main__":
    unittest.main()
