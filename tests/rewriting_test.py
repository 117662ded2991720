"""
Verification Scenarios for rewrites, indexability scores and page creation
"""

import unittest
from unittest.mock import MagicMock

from fakes import FakeFetcher, make_db, make_page
from crawler.errors import FetchFailed, NotFound, ParseFailed
from crawler.parser import SoupExtractor
from crawler.policy import DomainPolicy
from crawler.storage.page_store import SQLitePageStore
from engine.models import RewriteDraft, IndexabilityReport, PageDraft, ScoreCard
from evaluation.aggregate import InsightReader
from evaluation.models import Persona
from evaluation.storage import SQLitePersonaStore, SQLiteResultStore
from rewriting.creator import PageCreator
from rewriting.indexability import IndexabilityScorer
from rewriting.models import PageBrief
from rewriting.rewriter import RewriteGenerator
from rewriting.storage import SQLiteRewriteStore, SQLiteIndexabilityStore, SQLiteGeneratedPageStore

DRAFT = RewriteDraft(html="<h1>New</h1>", outline="1. New", summary="Short", rationale="Clearer")


def report(value, issues=()):
    return IndexabilityReport(value, value, value, value, list(issues), [])


class RewritingTestCase(unittest.TestCase):
    def setUp(self):
        self.db = make_db()
        self.pages = SQLitePageStore(self.db)
        self.personas = SQLitePersonaStore(self.db)
        self.results = SQLiteResultStore(self.db)
        self.policy = DomainPolicy(["example-allowed.test"])
        self.engine = MagicMock()
        self.page, _ = self.pages.upsert(make_page("https://example-allowed.test/loans", html="<p>" + "L" * 3000 + "</p>"))
        self.persona = self.personas.save(Persona(id="persona-1", name="Leo", description="Young saver"))

    def tearDown(self):
        self.db.close()


class TestRewriteGenerator(RewritingTestCase):
    def setUp(self):
        super().setUp()
        self.rewrites = SQLiteRewriteStore(self.db)
        self.generator = RewriteGenerator(
            self.pages, self.personas, self.rewrites, InsightReader(self.results), self.engine, self.policy
        )
        self.engine.rewrite.return_value = DRAFT

    def test_general_rewrite_is_stored_with_original_html(self):
        rewrite = self.generator.rewrite(self.page.id, recommendations=["Add FAQ", "Add stats"])

        html, context, query = self.engine.rewrite.call_args[0]
        self.assertEqual(html, self.page.html_content)
        self.assertEqual(context["mode"], "general")
        self.assertIsNone(context["persona"])
        self.assertIsNone(context["aggregatedInsights"])
        self.assertEqual(query, self.page.html_content[:2000] + "\nAdd FAQ, Add stats")

        self.assertEqual(rewrite.rewritten_html, "<h1>New</h1>")
        self.assertEqual(rewrite.original_html, self.page.html_content)
        self.assertEqual(rewrite.to_dict()["rationale"], "Clearer")

    def test_persona_rewrite_uses_stored_insights(self):
        score = ScoreCard(0.2, 0.4, 0.6, 0.8, 0.5, ["Explain fees"])
        self.results.insert(self.page.id, "q1", "a", score, persona_id=self.persona.id)
        self.results.insert(self.page.id, "q2", "a", score, persona_id=self.persona.id)

        rewrite = self.generator.rewrite(self.page.id, persona_id=self.persona.id, weak_points=["Jargon"])

        _, context, query = self.engine.rewrite.call_args[0]
        self.assertEqual(context["mode"], "persona")
        self.assertEqual(context["persona"]["name"], "Leo")
        self.assertEqual(context["weak_points"], ["Jargon"])
        insights = context["aggregatedInsights"]
        self.assertEqual(insights["totalTests"], 2)
        self.assertAlmostEqual(insights["avgScores"]["visibility"], 0.6)
        self.assertEqual(insights["allRecommendations"], ["Explain fees"])
        self.assertIn("Persona: Leo - Young saver", query)
        self.assertEqual(rewrite.persona_id, self.persona.id)

    def test_history_is_additive(self):
        self.generator.rewrite(self.page.id)
        self.generator.rewrite(self.page.id)
        self.assertEqual(len(self.rewrites.list_for_page(self.page.id)), 2)

    def test_missing_page_or_persona(self):
        with self.assertRaises(NotFound):
            self.generator.rewrite("missing")
        with self.assertRaises(NotFound):
            self.generator.rewrite(self.page.id, persona_id="nobody")
        self.engine.rewrite.assert_not_called()

    def test_parse_failure_stores_nothing(self):
        self.engine.rewrite.side_effect = ParseFailed("no html section")
        with self.assertRaises(ParseFailed):
            self.generator.rewrite(self.page.id)
        self.assertEqual(self.rewrites.list_for_page(self.page.id), [])


class TestIndexabilityScorer(RewritingTestCase):
    def setUp(self):
        super().setUp()
        self.scores = SQLiteIndexabilityStore(self.db)
        self.scorer = IndexabilityScorer(self.pages, self.scores, self.engine, self.policy)

    def test_score_stores_a_row(self):
        self.engine.indexability.return_value = report(0.4, issues=["No H1"])
        stored = self.scorer.score(self.page.id)
        self.assertEqual(stored.html_indexability_score, 0.4)
        self.assertEqual(stored.issues, ["No H1"])
        self.assertEqual(self.scorer.latest(self.page.id), stored)

    def test_latest_uses_timestamp_not_insertion_order(self):
        newer = self.scores.insert(self.page.id, report(0.9), created_at="2026-02-01T00:00:00.000000+00:00")
        self.scores.insert(self.page.id, report(0.1), created_at="2026-01-01T00:00:00.000000+00:00")
        other, _ = self.pages.upsert(make_page("https://example-allowed.test/other"))
        other_score = self.scores.insert(other.id, report(0.5))

        self.assertEqual(self.scorer.latest(self.page.id).id, newer.id)
        latest = {s.page_id: s.id for s in self.scorer.latest_per_page()}
        self.assertEqual(latest, {self.page.id: newer.id, other.id: other_score.id})

    def test_missing_page(self):
        with self.assertRaises(NotFound):
            self.scorer.score("missing")
        self.assertIsNone(self.scorer.latest("missing"))


class TestPageCreator(RewritingTestCase):
    def setUp(self):
        super().setUp()
        self.generated = SQLiteGeneratedPageStore(self.db)
        self.engine.create_page.return_value = PageDraft(
            html="<h1>Savings</h1>", outline="1. Savings", rationale="Direct answer first",
            persona_rationale="Plain words for Leo", notes="n",
        )

    def _creator(self, pages, max_urls=5):
        self.fetcher = FakeFetcher(pages)
        return PageCreator(
            self.personas, self.generated, self.engine, self.fetcher, SoupExtractor(), self.policy,
            max_inspiration_urls=max_urls, timeout=10,
        )

    def test_inspiration_outlines_and_persisted_page(self):
        good = "https://example-allowed.test/inspire"
        creator = self._creator({
            good: "<h1>Main</h1><h2>One</h2><h3>Detail</h3>",
            "https://example-allowed.test/down": FetchFailed("https://example-allowed.test/down", "timeout"),
        })
        brief = PageBrief(
            title="Savings accounts",
            inspiration_urls=[good, "https://example-allowed.test/down", "https://other.test/x"],
        )

        page = creator.create(brief, persona_id=self.persona.id)

        self.assertEqual(self.fetcher.calls, [good, "https://example-allowed.test/down"])
        self.assertEqual(self.fetcher.timeouts, [10, 10])
        payload, query = self.engine.create_page.call_args[0]
        self.assertEqual(payload["inspiration"], [{"url": good, "h1": "Main", "h2s": ["One"], "h3s": ["Detail"]}])
        self.assertEqual(payload["persona"]["name"], "Leo")
        self.assertEqual(payload["pageTitle"], "Savings accounts")
        self.assertIn("Savings accounts", query)

        stored = self.generated.get(page.id)
        self.assertEqual(stored.html_content, "<h1>Savings</h1>")
        self.assertEqual(stored.persona_id, self.persona.id)
        self.assertEqual(stored.metadata["title"], "Savings accounts")
        self.assertEqual(stored.metadata["notes"], "n")

    def test_inspiration_urls_are_capped(self):
        urls = [f"https://example-allowed.test/p{i}" for i in range(8)]
        creator = self._creator({u: "<h1>x</h1>" for u in urls}, max_urls=5)
        creator.create(PageBrief(inspiration_urls=urls))
        self.assertEqual(self.fetcher.calls, urls[:5])

    def test_unknown_persona(self):
        with self.assertRaises(NotFound):
            self._creator({}).create(PageBrief(), persona_id="nobody")


if __name__ == "__main__":
    unittest.main()
