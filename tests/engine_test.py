import json
import unittest
from unittest.mock import MagicMock

from crawler.errors import ParseFailed
from engine.geo_engine import GeoEngine
from engine.parsing import clamp_score, extract_section, parse_json_array, strip_code_fence, first_list
from engine.style_guide import GEO_STYLE_GUIDE, PLAYBOOK_CONTEXT_HEADER
from evaluation.models import Persona

PERSONA = Persona(id="p1", name="Claire", description="Retired investor", goal="Preserve capital",
                  risk_profile="Low", needs="Income")


class TestParsing(unittest.TestCase):
    def test_strip_code_fence(self):
        self.assertEqual(strip_code_fence('```json\n{"a": 1}\n```'), '{"a": 1}')
        self.assertEqual(strip_code_fence('  {"a": 1} '), '{"a": 1}')

    def test_parse_json_array(self):
        self.assertEqual(parse_json_array('["q1?", "q2?"]'), ["q1?", "q2?"])
        self.assertEqual(parse_json_array('{"questions": ["q1?"]}'), ["q1?"])
        with self.assertRaises(ParseFailed):
            parse_json_array("Here are some questions: q1, q2")
        with self.assertRaises(ParseFailed):
            parse_json_array('{"answer": "no list"}')

    def test_clamp_score(self):
        self.assertEqual(clamp_score(1.7, "x"), 1.0)
        self.assertEqual(clamp_score(-0.2, "x"), 0.0)
        self.assertEqual(clamp_score("0.4", "x"), 0.4)
        self.assertEqual(clamp_score(None, "x"), 0.0)
        with self.assertRaises(ParseFailed):
            clamp_score("high", "x")
        with self.assertRaises(ParseFailed):
            clamp_score(True, "x")

    def test_first_list_falls_back_across_keys(self):
        self.assertEqual(first_list({"strengths": ["clear"]}, "persona_strengths", "strengths"), ["clear"])
        self.assertEqual(first_list({}, "persona_strengths", "strengths"), [])

    def test_extract_section(self):
        text = "===A===\n one \n===END_A===\n===B===\ntwo\n===C===\nthree"
        self.assertEqual(extract_section(text, "A"), "one")
        self.assertEqual(extract_section(text, "B"), "two")
        self.assertEqual(extract_section(text, "C"), "three")
        self.assertIsNone(extract_section(text, "D"))


class TestGeoEngine(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.index = MagicMock()
        self.index.context_for.return_value = "CHUNK ONE\n\nCHUNK TWO"
        self.engine = GeoEngine(self.client, self.index)

    def test_messages_carry_style_guide_and_playbook_context(self):
        self.client.complete.return_value = "  An answer.  "

        answer = self.engine.answer("<html>page</html>", "What is offered?", PERSONA)

        self.assertEqual(answer, "An answer.")
        self.index.context_for.assert_called_once_with("What is offered?")
        messages = self.client.complete.call_args[0][0]
        self.assertEqual(messages[0], {"role": "system", "content": GEO_STYLE_GUIDE})
        self.assertEqual(messages[1]["content"], PLAYBOOK_CONTEXT_HEADER + "CHUNK ONE\n\nCHUNK TWO")
        self.assertIn("What is offered?", messages[2]["content"])
        self.assertIn("Persona: Claire", messages[2]["content"])

    def test_score_clamps_and_keeps_global_as_judged(self):
        self.client.complete_json.return_value = {
            "relevance_score": 0.2,
            "comprehension_score": 1.4,
            "visibility_score": 0.6,
            "recommendation_score": 0.4,
            "global_geo_score": 0.9,
            "recommendations": ["Add a summary box", ""],
        }
        card = self.engine.score("<html/>", "answer", "question?")
        self.assertEqual(card.comprehension, 1.0)
        self.assertEqual(card.global_score, 0.9)
        self.assertEqual(card.recommendations, ["Add a summary box"])

    def test_score_without_question_retrieves_with_page_html(self):
        self.client.complete_json.return_value = {}
        html = "x" * 5000
        card = self.engine.score(html, "answer")
        self.index.context_for.assert_called_once_with("x" * 2000)
        self.assertEqual(card.global_score, 0.0)

    def test_generate_questions_capped(self):
        self.client.complete.return_value = json.dumps(["q1?", "q2?", "", 3, "q3?", "q4?"])
        self.assertEqual(self.engine.generate_questions("<html/>", PERSONA, 3), ["q1?", "q2?", "q3?"])

    def test_generate_questions_empty_is_parse_failure(self):
        self.client.complete.return_value = "[]"
        with self.assertRaises(ParseFailed):
            self.engine.generate_questions("<html/>", PERSONA, 3)

    def test_persona_gap_analysis_accepts_short_keys(self):
        self.client.complete_json.return_value = {"strengths": ["s"], "persona_weaknesses": ["w"]}
        gaps = self.engine.persona_gap_analysis("<html/>", PERSONA, ["q"], [], {"relevance": 0.0})
        self.assertEqual(gaps.strengths, ["s"])
        self.assertEqual(gaps.weaknesses, ["w"])
        self.assertEqual(gaps.opportunities, [])

    def test_rewrite_sections(self):
        self.client.complete.return_value = (
            "===NEW_PAGE_HTML===\n<h1>New</h1>\n===END_NEW_PAGE_HTML===\n"
            "===NEW_PAGE_OUTLINE===\n1. New\n===END_NEW_PAGE_OUTLINE===\n"
            "===SUMMARY===\nShort.\n===END_SUMMARY===\n"
            "===GEO_RATIONALE===\nClearer.\n===END_GEO_RATIONALE===\n"
            "===PERSONA_RATIONALE===\n\n===END_PERSONA_RATIONALE==="
        )
        draft = self.engine.rewrite("<html/>", {"recommendations": ["Add FAQ"]}, retrieval_query="q")
        self.assertEqual(draft.html, "<h1>New</h1>")
        self.assertEqual(draft.outline, "1. New")
        self.assertEqual(draft.summary, "Short.")
        self.assertEqual(draft.rationale, "Clearer.")
        self.assertIsNone(draft.persona_rationale)
        self.assertIn("Add FAQ", self.client.complete.call_args[0][0][2]["content"])
        self.index.context_for.assert_called_once_with("q")

    def test_rewrite_without_html_section_fails(self):
        self.client.complete.return_value = "I cannot rewrite this page."
        with self.assertRaises(ParseFailed):
            self.engine.rewrite("<html/>", {})

    def test_indexability(self):
        self.client.complete_json.return_value = {
            "html_indexability_score": 0.5,
            "structure_clarity_score": 0.6,
            "entity_clarity_score": 0.7,
            "content_scannability_score": 0.8,
            "issues": ["No H1"],
            "suggestions": ["Add an H1"],
        }
        report = self.engine.indexability("<html/>")
        self.assertEqual(report.content_scannability, 0.8)
        self.assertEqual(report.issues, ["No H1"])

    def test_create_page_requires_html(self):
        self.client.complete_json.return_value = {"new_page_outline": "1."}
        with self.assertRaises(ParseFailed):
            self.engine.create_page({"pageTitle": "T"}, "T")


if __name__ == "__main__":
    unittest.main()
