"""Tests for public IP and country discovery."""

import unittest
from unittest.mock import MagicMock, patch

from tuicnode.errors import Severity
from tuicnode.network import (
    IP_PLACEHOLDER,
    UNKNOWN_COUNTRY,
    discover_ip,
    lookup_country,
    resolve,
)


def _fetcher(ip_body="203.0.113.5\n", geo_body="US\n"):
    def fetch(url, timeout):
        if "ipify" in url:
            if isinstance(ip_body, Exception):
                raise ip_body
            return ip_body
        if isinstance(geo_body, Exception):
            raise geo_body
        return geo_body
    return MagicMock(side_effect=fetch)


class TestDiscoverIP(unittest.TestCase):
    def test_valid_ip(self):
        ip, issue = discover_ip(_fetcher())
        self.assertEqual(ip, "203.0.113.5")
        self.assertIsNone(issue)

    def test_malformed_answers_rejected(self):
        for body in ["1.2.3", "1.2.3.4.5", "<html>oops</html>", "", "1234.1.1.1", "a.b.c.d", "1.2.3.4 5.6.7.8"]:
            with self.subTest(body=body):
                ip, issue = discover_ip(_fetcher(ip_body=body))
                self.assertEqual(ip, IP_PLACEHOLDER)
                self.assertEqual(issue.severity, Severity.DEGRADED)

    def test_no_range_validation(self):
        ip, _ = discover_ip(_fetcher(ip_body="999.999.999.999"))
        self.assertEqual(ip, "999.999.999.999")

    def test_failure_substitutes_placeholder(self):
        ip, issue = discover_ip(_fetcher(ip_body=OSError("unreachable")))
        self.assertEqual(ip, IP_PLACEHOLDER)
        self.assertIn("unreachable", issue.message)

    def test_timeout_passed(self):
        fetch = _fetcher()
        discover_ip(fetch)
        self.assertEqual(fetch.call_args[0][1], 5.0)


class TestLookupCountry(unittest.TestCase):
    def test_country_code(self):
        fetch = _fetcher()
        code, issue = lookup_country("203.0.113.5", fetch)
        self.assertEqual(code, "US")
        self.assertIsNone(issue)
        url, timeout = fetch.call_args[0]
        self.assertEqual(url, "http://ip-api.com/line/203.0.113.5?fields=countryCode")
        self.assertEqual(timeout, 5.0)

    def test_failure_yields_unknown(self):
        code, issue = lookup_country("203.0.113.5", _fetcher(geo_body=TimeoutError("slow")))
        self.assertEqual(code, UNKNOWN_COUNTRY)
        self.assertEqual(code, "XX")
        self.assertIsNotNone(issue)

    def test_empty_response_yields_unknown(self):
        code, _ = lookup_country("203.0.113.5", _fetcher(geo_body=""))
        self.assertEqual(code, "XX")

    def test_placeholder_ip_skips_lookup(self):
        fetch = _fetcher()
        code, _ = lookup_country(IP_PLACEHOLDER, fetch)
        self.assertEqual(code, "XX")
        fetch.assert_not_called()


class TestResolve(unittest.TestCase):
    def test_success(self):
        info = resolve(_fetcher())
        self.assertEqual((info.ip, info.country, info.issues), ("203.0.113.5", "US", ()))

    def test_geo_failure_does_not_raise(self):
        info = resolve(_fetcher(geo_body=RuntimeError("GET failed (HTTP 503)")))
        self.assertEqual(info.ip, "203.0.113.5")
        self.assertEqual(info.country, "XX")
        self.assertEqual([i.stage for i in info.issues], ["network.country"])

    def test_total_failure_degrades(self):
        info = resolve(_fetcher(ip_body=OSError("down"), geo_body=OSError("down")))
        self.assertEqual(info.ip, IP_PLACEHOLDER)
        self.assertEqual(info.country, "XX")
        self.assertEqual(len(info.issues), 2)

    @patch("tuicnode.network.get_text")
    def test_default_fetch_uses_transport(self, mock_get):
        mock_get.side_effect = ["198.51.100.7", "DE"]
        info = resolve()
        self.assertEqual((info.ip, info.country), ("198.51.100.7", "DE"))
        self.assertEqual(mock_get.call_count, 2)
        self.assertEqual(mock_get.call_args_list[0].kwargs["timeout"], 5.0)


if __name__ == "__main__":
    unittest.main()
