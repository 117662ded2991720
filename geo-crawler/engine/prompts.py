"""
User-prompt builders for each GEO engine task.
Output schemas are kept as plain strings so the literal braces survive.
"""

import json
from typing import Any, Dict, List, Optional

SCORE_SCHEMA = """{
  "relevance_score": float (0-1),
  "comprehension_score": float (0-1),
  "visibility_score": float (0-1),
  "recommendation_score": float (0-1),
  "global_geo_score": float (0-1),
  "recommendations": [string]
}"""

PERSONA_GAP_SCHEMA = """{
  "persona_strengths": [string],
  "persona_weaknesses": [string],
  "persona_opportunities": [string],
  "persona_recommendations": [string]
}"""

PAGE_GAP_SCHEMA = """{
  "gaps": [string],
  "recommendations": [string],
  "improvement_opportunities": [string]
}"""

INDEXABILITY_SCHEMA = """{
  "html_indexability_score": float (0-1),
  "structure_clarity_score": float (0-1),
  "entity_clarity_score": float (0-1),
  "content_scannability_score": float (0-1),
  "issues": [string],
  "suggestions": [string]
}"""

CREATE_SCHEMA = """{
  "new_page_html": string,
  "new_page_outline": string,
  "geo_rationale": string,
  "persona_rationale": string or null,
  "notes": string
}"""

REWRITE_FORMAT = """Return your answer in the following PLAIN TEXT format using the exact section markers below:

===NEW_PAGE_HTML===
<full rewritten HTML here>
===END_NEW_PAGE_HTML===

===NEW_PAGE_OUTLINE===
<hierarchical outline as plain text>
===END_NEW_PAGE_OUTLINE===

===SUMMARY===
<two or three sentence summary of the rewritten page>
===END_SUMMARY===

===GEO_RATIONALE===
<explanation of improvements as plain text>
===END_GEO_RATIONALE===

===PERSONA_RATIONALE===
<persona-specific explanation as plain text, or leave empty if not applicable>
===END_PERSONA_RATIONALE==="""


def _persona_block(persona_context: Optional[str]) -> str:
    return f"PERSONA CONTEXT:\n{persona_context}\n\n" if persona_context else ""


def answer_prompt(question: str, page_html: str, persona_context: Optional[str] = None) -> str:
    return (
        f"QUERY:\n{question}\n\n"
        f"{_persona_block(persona_context)}"
        f"PAGE CONTENT:\n{page_html}\n\n"
        "TASK:\n"
        "Answer this query using the GEO style.\n"
        "Return the best possible answer, structured according to the playbook."
    )


def questions_instruction(num_questions: int) -> str:
    return (
        f"Generate exactly {num_questions} realistic, specific questions that this persona would ask "
        "about this page. Return ONLY a JSON array of question strings, nothing else. "
        'Example format: ["Question 1?", "Question 2?"]'
    )


def questions_prompt(page_html: str, persona_context: str, num_questions: int) -> str:
    return (
        f"{_persona_block(persona_context)}"
        f"PAGE CONTENT:\n{page_html}\n\n"
        f"TASK:\n{questions_instruction(num_questions)}"
    )


def score_prompt(page_html: str, answer: str, question: Optional[str] = None,
                 persona_context: Optional[str] = None) -> str:
    question_block = f"QUESTION:\n{question}\n\n" if question else ""
    return (
        f"PAGE CONTENT:\n{page_html}\n\n"
        f"{_persona_block(persona_context)}"
        f"{question_block}"
        f"LLM ANSWER:\n{answer}\n\n"
        "TASK:\n"
        "Score the answer using the GEO framework.\n"
        f"Return ONLY this JSON:\n{SCORE_SCHEMA}"
    )


def persona_gap_prompt(page_html: str, persona_context: str, questions: List[str],
                       results: List[Dict[str, Any]], averages: Dict[str, float]) -> str:
    evidence = json.dumps({
        "questions": questions,
        "results": results,
        "avgScores": averages,
    }, indent=2)
    return (
        f"PAGE CONTENT:\n{page_html}\n\n"
        f"{_persona_block(persona_context)}"
        f"TEST RESULTS:\n{evidence}\n\n"
        "TASK:\n"
        "Using the questions, answers and scores above, analyse how well this page serves the persona.\n"
        "List what the page does well, where it falls short, the opportunities it misses, "
        "and concrete recommendations.\n"
        f"Return ONLY this JSON:\n{PERSONA_GAP_SCHEMA}"
    )


def page_gap_prompt(page_html: str) -> str:
    return (
        f"PAGE CONTENT:\n{page_html}\n\n"
        "TASK:\n"
        "Compare this page with the GEO playbook.\n"
        "Identify missing sections, weak structure, unclear entities, weak comparisons, unclear stats.\n"
        f"Return JSON:\n{PAGE_GAP_SCHEMA}"
    )


def rewrite_prompt(page_html: str, context: Dict[str, Any]) -> str:
    sections = [f"PAGE CONTENT:\n{page_html}\n"]
    if context:
        sections.append(f"CONTEXT:\n{json.dumps(context, indent=2)}\n")

    task = ["TASK:", "Rewrite this page to be optimized for LLMs according to the GEO framework and playbook."]
    recommendations = context.get("recommendations") or []
    if recommendations:
        task.append("Address these specific recommendations:\n" + "\n".join(recommendations) + "\n")
    persona = context.get("persona")
    if persona:
        task.append(
            "Tailor the content for this persona:\n"
            f"Name: {persona.get('name', '')}\n"
            f"Description: {persona.get('description', '')}\n"
            f"Goal: {persona.get('goal', '')}\n"
            f"Needs: {persona.get('needs', '')}\n"
            f"Risk Profile: {persona.get('risk_profile', '')}\n"
        )
    task.append(REWRITE_FORMAT)
    sections.append("\n".join(task))
    return "\n".join(sections)


def indexability_prompt(page_html: str) -> str:
    return (
        f"PAGE HTML:\n{page_html}\n\n"
        "TASK:\n"
        "Evaluate how indexable and LLM-friendly this HTML structure is.\n"
        "Focus on:\n"
        "- heading hierarchy (H1/H2/H3),\n"
        "- clarity of sections,\n"
        "- presence of definitions,\n"
        "- explicit entities (products, services, client types),\n"
        "- use of bullets/lists,\n"
        "- presence of summary/recap blocks,\n"
        "- length of paragraphs.\n\n"
        f"Return ONLY valid JSON:\n{INDEXABILITY_SCHEMA}"
    )


def create_prompt(brief: Dict[str, Any]) -> str:
    return (
        f"PAGE BRIEF:\n{json.dumps(brief, indent=2)}\n\n"
        "TASK:\n"
        "Create a new web page from scratch that satisfies this brief and is optimized for LLMs "
        "according to the GEO framework and playbook.\n"
        "Use the inspiration outlines only for structure; do not copy their wording.\n"
        "If a persona is given, tailor the page to it and explain how in persona_rationale.\n"
        f"Return ONLY this JSON:\n{CREATE_SCHEMA}"
    )
