"""
Link filtering and allowlist scope
"""

import unittest

from crawler.errors import DomainRejected
from crawler.policy import DomainPolicy

BASE = "https://group.bnpparibas/en/"


class TestDomainPolicy(unittest.TestCase):
    def setUp(self):
        self.policy = DomainPolicy(["bnpparibas.com", "group.bnpparibas"])

    def test_exact_host_and_subdomains_are_allowed(self):
        self.assertTrue(self.policy.is_allowed("https://bnpparibas.com/"))
        self.assertTrue(self.policy.is_allowed("https://www.bnpparibas.com/about"))
        self.assertTrue(self.policy.is_allowed("http://group.bnpparibas/en"))

    def test_lookalike_hosts_are_rejected(self):
        self.assertFalse(self.policy.is_allowed("https://notbnpparibas.com/"))
        self.assertFalse(self.policy.is_allowed("https://bnpparibas.com.evil.test/"))
        self.assertFalse(self.policy.is_allowed("ftp://bnpparibas.com/"))

    def test_check_raises_before_any_network_call(self):
        with self.assertRaises(DomainRejected) as cm:
            self.policy.check("https://example.org/page")
        self.assertEqual(cm.exception.reason, "out_of_scope")

        with self.assertRaises(DomainRejected) as cm:
            self.policy.check("mailto:someone@bnpparibas.com")
        self.assertEqual(cm.exception.reason, "non_http")

    def test_check_returns_normalized_url(self):
        self.assertEqual(self.policy.check("HTTPS://WWW.BNPParibas.com#top"), "https://www.bnpparibas.com/")

    def test_normalize_keeps_query_and_drops_fragment(self):
        self.assertEqual(
            DomainPolicy.normalize("https://Group.BNPParibas/en/news?page=2#latest"),
            "https://group.bnpparibas/en/news?page=2",
        )

    def test_skipped_schemes(self):
        cases = {
            "#section": "fragment",
            "javascript:void(0)": "javascript",
            "mailto:contact@bnpparibas.com": "mailto",
            "tel:+33100000000": "tel",
        }
        for link, reason in cases.items():
            self.assertEqual(self.policy.resolve(link, BASE), (None, reason), link)

    def test_tracking_links_are_skipped(self):
        self.assertEqual(self.policy.resolve("/en/news?utm_source=x", BASE), (None, "tracking"))
        self.assertEqual(self.policy.resolve("/track/click", BASE), (None, "tracking"))

    def test_assets_are_skipped(self):
        for link in ("/report.pdf", "/img/logo.PNG", "/static/app.js", "/fonts/a.woff2", "/style.css"):
            self.assertEqual(self.policy.resolve(link, BASE), (None, "asset"), link)

    def test_relative_links_resolve_against_base(self):
        url, reason = self.policy.resolve("careers", BASE)
        self.assertEqual(reason, "allowed")
        self.assertEqual(url, "https://group.bnpparibas/en/careers")

    def test_cross_domain_link_is_out_of_scope(self):
        self.assertEqual(self.policy.resolve("https://example.org/", BASE), (None, "out_of_scope"))

    def test_stats_count_each_decision_once(self):
        self.policy.resolve("/a", BASE)
        self.policy.resolve("/b.pdf", BASE)
        self.policy.resolve("https://example.org/", BASE)
        stats = self.policy.get_stats()
        self.assertEqual(stats["allowed"], 1)
        self.assertEqual(stats["asset"], 1)
        self.assertEqual(stats["out_of_scope"], 1)

        self.policy.reset_stats()
        self.assertEqual(sum(self.policy.get_stats().values()), 0)


if __name__ == "__main__":
    unittest.main()
