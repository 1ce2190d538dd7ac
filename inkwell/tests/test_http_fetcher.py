import unittest
from unittest.mock import MagicMock, patch

import requests

from inkwell.errors import FetchError
from inkwell.infra.http import DEFAULT_USER_AGENT, HttpFetcher


def _response(status_code=200, text="<html></html>", encoding="utf-8"):
    response = MagicMock()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.text = text
    response.encoding = encoding
    response.apparent_encoding = "utf-8"
    return response


class HttpFetcherTests(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.session.headers = {}
        self.fetcher = HttpFetcher(min_delay=0, max_retries=3, session=self.session)

    def test_sets_default_headers(self):
        self.assertEqual(self.session.headers["User-Agent"], DEFAULT_USER_AGENT)
        self.assertIn("text/html", self.session.headers["Accept"])

    def test_returns_successful_response(self):
        self.session.get.return_value = _response(text="hello")
        self.assertEqual(self.fetcher.fetch_text("https://example.com/a"), "hello")
        self.session.get.assert_called_once_with("https://example.com/a", timeout=20)

    @patch("inkwell.infra.http.time.sleep")
    def test_retries_server_errors(self, mock_sleep):
        self.session.get.side_effect = [_response(503), _response(200, text="ok")]
        self.assertEqual(self.fetcher.fetch("https://example.com/a").text, "ok")
        self.assertEqual(self.session.get.call_count, 2)
        mock_sleep.assert_called()

    @patch("inkwell.infra.http.time.sleep")
    def test_client_errors_are_not_retried(self, _mock_sleep):
        self.session.get.return_value = _response(404)
        with self.assertRaises(FetchError) as ctx:
            self.fetcher.fetch("https://example.com/missing")
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.url, "https://example.com/missing")
        self.assertEqual(self.session.get.call_count, 1)

    @patch("inkwell.infra.http.time.sleep")
    def test_rate_limit_is_retried(self, _mock_sleep):
        self.session.get.side_effect = [_response(429), _response(429), _response(429)]
        with self.assertRaises(FetchError) as ctx:
            self.fetcher.fetch("https://example.com/busy")
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(self.session.get.call_count, 3)

    @patch("inkwell.infra.http.time.sleep")
    def test_network_errors_exhaust_retries(self, _mock_sleep):
        self.session.get.side_effect = requests.ConnectionError("connection refused")
        with self.assertRaises(FetchError) as ctx:
            self.fetcher.fetch("https://example.com/down?api_key=abc123")
        self.assertIsNone(ctx.exception.status_code)
        self.assertEqual(self.session.get.call_count, 3)
        self.assertNotIn("abc123", str(ctx.exception))
        self.assertIn("connection refused", str(ctx.exception))

    def test_latin1_default_is_redetected(self):
        response = _response(text="café", encoding="ISO-8859-1")
        self.session.get.return_value = response
        self.fetcher.fetch_text("https://example.com/a")
        self.assertEqual(response.encoding, "utf-8")

    def test_close_closes_session(self):
        self.fetcher.close()
        self.session.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
