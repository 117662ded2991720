"""
Verification Scenarios for the BFS crawl frontier
"""

import unittest
from unittest.mock import MagicMock

from fakes import FakeFetcher, html_page, make_db, make_page
from crawler.errors import DomainRejected, FetchFailed
from crawler.models import CrawlStatus, OutcomeStatus
from crawler.parser import SoupExtractor
from crawler.policy import DomainPolicy
from crawler.storage.page_store import SQLitePageStore
from frontier.orchestrator import Frontier
from frontier.queue import CrawlQueue

SEED = "https://example-allowed.test/"


def url(path):
    return f"https://example-allowed.test{path}"


class TestFrontierCrawl(unittest.TestCase):
    def setUp(self):
        self.db = make_db()
        self.store = SQLitePageStore(self.db)
        self.policy = DomainPolicy(["example-allowed.test"])

    def tearDown(self):
        self.db.close()

    def _frontier(self, pages, max_pages=100):
        self.fetcher = FakeFetcher(pages)
        return Frontier(self.store, self.fetcher, SoupExtractor(), self.policy, max_pages=max_pages)

    def test_seed_with_three_internal_links_and_one_external(self):
        """Scenario: one root, three same-domain children, the cross-domain link is never fetched."""
        frontier = self._frontier({
            SEED: html_page("Home", ["/a", "/b", url("/c"), "https://other.test/x"]),
            url("/a"): html_page("A", ["/", "/b"]),
            url("/b"): html_page("B"),
            url("/c"): html_page("C"),
        })

        result = frontier.crawl(SEED, max_depth=1)

        self.assertEqual(self.fetcher.calls, [SEED, url("/a"), url("/b"), url("/c")])
        # The seed is stored too, so the three links plus the seed
        self.assertEqual(result.pages_discovered, 4)
        self.assertEqual(result.pages_updated, 0)
        self.assertEqual(result.pages_skipped, 0)

        self.assertEqual(len(result.tree), 1)
        root = result.tree[0]
        self.assertEqual(root.url, SEED)
        self.assertEqual(root.title, "Home")
        self.assertEqual([c.url for c in root.children], [url("/a"), url("/b"), url("/c")])
        self.assertTrue(all(c.depth == 1 for c in root.children))

        self.assertEqual(self.policy.get_stats()["out_of_scope"], 1)
        stored = {p.url: p for p in self.store.list_pages()}
        self.assertEqual(len(stored), 4)
        self.assertEqual(stored[url("/a")].parent_url, SEED)
        self.assertEqual(stored[url("/a")].crawl_status, CrawlStatus.FETCHED)

    def test_out_of_scope_seed_rejected_before_fetch(self):
        frontier = self._frontier({})
        with self.assertRaises(DomainRejected):
            frontier.crawl("https://other.test/", max_depth=1)
        self.assertEqual(self.fetcher.calls, [])

    def test_negative_depth_is_invalid(self):
        frontier = self._frontier({})
        with self.assertRaises(ValueError):
            frontier.crawl(SEED, max_depth=-1)

    def test_known_page_is_not_refetched_or_overwritten(self):
        existing = make_page(SEED, html="<html><title>Old</title></html>", title="Old")
        self.store.upsert(existing)
        frontier = self._frontier({SEED: html_page("New")})

        result = frontier.crawl(SEED, max_depth=1)

        self.assertEqual(self.fetcher.calls, [])
        self.assertEqual(result.pages_discovered, 0)
        self.assertEqual(result.pages_updated, 0)
        self.assertEqual(result.pages_skipped, 1)
        self.assertEqual(result.outcomes[0].reason, "already_stored")
        self.assertEqual(self.store.get_by_url(SEED).title, "Old")

    def test_http_error_persists_error_row_and_non_html_persists_nothing(self):
        frontier = self._frontier({
            SEED: html_page("Home", ["/missing", "/feed"]),
            url("/feed"): FetchFailed(url("/feed"), "non_html", status_code=200),
        })

        result = frontier.crawl(SEED, max_depth=1)

        self.assertEqual(result.pages_discovered, 1)
        self.assertEqual(result.pages_skipped, 2)
        missing = self.store.get_by_url(url("/missing"))
        self.assertIsNotNone(missing)
        self.assertEqual(missing.crawl_status, CrawlStatus.ERROR)
        self.assertIsNone(self.store.get_by_url(url("/feed")))

        by_url = {o.item: o for o in result.outcomes}
        self.assertEqual(by_url[url("/missing")].status, OutcomeStatus.FAILED)
        self.assertEqual(by_url[url("/missing")].reason, "http_error")
        self.assertEqual(by_url[url("/feed")].status, OutcomeStatus.SKIPPED)
        self.assertEqual(by_url[url("/feed")].reason, "non_html")
        self.assertEqual(root_children(result), [])

    def test_depth_zero_fetches_only_the_seed(self):
        frontier = self._frontier({SEED: html_page("Home", ["/a", "/b"])})
        result = frontier.crawl(SEED, max_depth=0)
        self.assertEqual(self.fetcher.calls, [SEED])
        self.assertEqual(result.pages_discovered, 1)

    def test_cycles_are_visited_once(self):
        frontier = self._frontier({
            SEED: html_page("Home", ["/a"]),
            url("/a"): html_page("A", ["/", "/b"]),
            url("/b"): html_page("B", ["/a", "/"]),
        })
        result = frontier.crawl(SEED, max_depth=5)
        self.assertEqual(sorted(self.fetcher.calls), sorted([SEED, url("/a"), url("/b")]))
        self.assertEqual(result.pages_discovered, 3)
        self.assertEqual(result.tree[0].children[0].children[0].url, url("/b"))

    def test_safety_cap_bounds_discovery(self):
        links = [f"/p{i}" for i in range(10)]
        pages = {SEED: html_page("Home", links)}
        pages.update({url(l): html_page(l) for l in links})
        frontier = self._frontier(pages, max_pages=3)

        result = frontier.crawl(SEED, max_depth=1)

        self.assertEqual(result.pages_discovered, 3)
        self.assertEqual(len(self.fetcher.calls), 3)

    def test_row_written_by_a_concurrent_run_counts_as_updated(self):
        """Scenario: the URL is absent at the existence check but the upsert hits an existing row."""
        store = MagicMock()
        store.get_by_url.return_value = None
        store.upsert.side_effect = lambda page: (page, False)
        fetcher = FakeFetcher({SEED: html_page("Home")})
        frontier = Frontier(store, fetcher, SoupExtractor(), self.policy)

        result = frontier.crawl(SEED, max_depth=0)

        self.assertEqual(result.pages_updated, 1)
        self.assertEqual(result.pages_discovered, 0)
        self.assertEqual(result.outcomes[0].status, OutcomeStatus.SUCCESS)
        self.assertEqual([node.url for node in result.tree], [SEED])
        stored = store.upsert.call_args[0][0]
        self.assertEqual(stored.crawl_status, CrawlStatus.FETCHED)


def root_children(result):
    return [c.url for c in result.tree[0].children]


class TestCrawlQueue(unittest.TestCase):
    def test_refuses_duplicates_and_excess_depth(self):
        queue = CrawlQueue(max_depth=1)
        self.assertTrue(queue.enqueue(SEED, 0))
        self.assertFalse(queue.enqueue(SEED, 0))
        self.assertFalse(queue.enqueue(url("/deep"), 2))

        entry = queue.dequeue()
        queue.mark_visited(entry.url)
        self.assertFalse(queue.enqueue(SEED, 1))
        self.assertTrue(queue.is_empty())
        self.assertIsNone(queue.dequeue())


if __name__ == "__main__":
    unittest.main()
