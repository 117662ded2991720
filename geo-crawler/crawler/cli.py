"""
FILE DESCRIPTION: Command-line entry point. Wires every component from one GeoConfig
and prints each operation's response contract as JSON.
KEY FUNCTIONS/CLASSES: Services, build_services, build_parser, main
"""

import argparse
import json
import sys
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from crawler.config import GeoConfig
from crawler.core import logger, attach_log_file
from crawler.errors import GeoError, ConfigurationError
from crawler.fetcher import PageFetcher
from crawler.pages import PageService
from crawler.parser import SoupExtractor
from crawler.policy import DomainPolicy
from crawler.refresh import RefreshScheduler
from crawler.storage.db import Database
from crawler.storage.page_store import SQLitePageStore
from engine.client import CompletionClient
from engine.geo_engine import GeoEngine
from evaluation.aggregate import InsightReader
from evaluation.models import Persona
from evaluation.pipeline import EvaluationPipeline
from evaluation.storage import SQLitePersonaStore, SQLiteResultStore
from frontier.orchestrator import Frontier
from playbook.embedder import EmbeddingClient
from playbook.index import KnowledgeIndex
from playbook.store import SQLiteChunkStore
from rewriting.creator import PageCreator
from rewriting.indexability import IndexabilityScorer
from rewriting.models import PageBrief
from rewriting.rewriter import RewriteGenerator
from rewriting.storage import SQLiteRewriteStore, SQLiteIndexabilityStore, SQLiteGeneratedPageStore

# Commands that call the completion or embedding service
NEEDS_CREDENTIALS = {
    "ingest", "evaluate", "evaluate-persona", "gap-analysis", "rewrite", "indexability", "create-page",
}


@dataclass
class Services:
    db: Database
    pages: SQLitePageStore
    personas: SQLitePersonaStore
    results: SQLiteResultStore
    frontier: Frontier
    refresher: RefreshScheduler
    page_service: PageService
    index: KnowledgeIndex
    pipeline: EvaluationPipeline
    rewriter: RewriteGenerator
    indexability: IndexabilityScorer
    creator: PageCreator


def build_services(config: GeoConfig, db: Optional[Database] = None) -> Services:
    """FLOW: Opens the database -> builds stores -> builds clients -> wires the stage components."""
    db = db or Database(config.database_path)
    db.initialize()

    pages = SQLitePageStore(db)
    personas = SQLitePersonaStore(db)
    results = SQLiteResultStore(db)

    policy = DomainPolicy(config.allowed_domains)
    fetcher = PageFetcher(config.user_agent, timeout=config.request_timeout)
    extractor = SoupExtractor()

    embedder = EmbeddingClient(config.api_key or "", config.api_base_url, config.embedding_model)
    index = KnowledgeIndex(
        SQLiteChunkStore(db), embedder,
        chunk_size=config.chunk_size, threshold=config.match_threshold, top_k=config.match_count,
    )
    completion = CompletionClient(
        config.api_key or "", config.api_base_url, config.completion_model, config.max_completion_tokens
    )
    engine = GeoEngine(completion, index)

    return Services(
        db=db,
        pages=pages,
        personas=personas,
        results=results,
        frontier=Frontier(pages, fetcher, extractor, policy, max_pages=config.max_pages),
        refresher=RefreshScheduler(
            pages, fetcher, extractor, staleness_hours=config.staleness_hours, timeout=config.request_timeout
        ),
        page_service=PageService(pages, fetcher, extractor, policy),
        index=index,
        pipeline=EvaluationPipeline(
            pages, personas, results, engine, policy, default_num_questions=config.default_num_questions
        ),
        rewriter=RewriteGenerator(pages, personas, SQLiteRewriteStore(db), InsightReader(results), engine, policy),
        indexability=IndexabilityScorer(pages, SQLiteIndexabilityStore(db), engine, policy),
        creator=PageCreator(
            personas, SQLiteGeneratedPageStore(db), engine, fetcher, extractor, policy,
            max_inspiration_urls=config.max_inspiration_urls, timeout=config.request_timeout,
        ),
    )


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    with open(source, "r", encoding="utf-8") as f:
        return f.read()


def run_command(args: argparse.Namespace, services: Services, config: GeoConfig) -> Any:
    command = args.command

    if command == "init-db":
        return {"database": services.db.path, "initialized": True}

    if command == "crawl":
        depth = config.default_max_depth if args.max_depth is None else args.max_depth
        return services.frontier.crawl(args.start_url, depth).to_dict()

    if command == "refresh":
        return services.refresher.refresh().to_dict()

    if command == "fetch-page":
        return services.page_service.fetch_page(args.url).to_dict()

    if command == "ingest":
        return services.index.ingest(_read_text(args.file), args.section).to_dict()

    if command == "evaluate":
        return services.pipeline.evaluate(args.page_id, args.prompt_type, args.prompt).to_dict()

    if command == "evaluate-persona":
        return services.pipeline.evaluate_persona(args.persona_id, args.page_id, args.num_questions).to_dict()

    if command == "gap-analysis":
        return services.pipeline.gap_analysis(args.page_id).to_dict()

    if command == "rewrite":
        rewrite = services.rewriter.rewrite(
            args.page_id,
            persona_id=args.persona_id,
            recommendations=args.recommendation,
            weak_points=args.weak_point,
            opportunities=args.opportunity,
        )
        return rewrite.to_dict(include_original=args.include_original)

    if command == "indexability":
        if args.latest:
            latest = services.indexability.latest(args.page_id)
            return latest.to_dict() if latest else None
        return services.indexability.score(args.page_id).to_dict()

    if command == "create-page":
        brief = PageBrief(
            title=args.title or PageBrief.title,
            goal=args.goal or PageBrief.goal,
            target_audience=args.audience or PageBrief.target_audience,
            tone=args.tone or PageBrief.tone,
            required_sections=args.sections or "",
            key_messages=args.key_messages or "",
            faqs=args.faqs or "",
            additional_context=args.context or "",
            inspiration_urls=args.inspiration_url or [],
        )
        return services.creator.create(brief, persona_id=args.persona_id).to_dict()

    if command == "add-persona":
        persona = services.personas.save(Persona(
            id=args.id or "",
            name=args.name,
            description=args.description or "",
            goal=args.goal or "",
            risk_profile=args.risk_profile or "",
            needs=args.needs or "",
            typical_questions=args.question or [],
        ))
        return persona.to_dict()

    if command == "report":
        return {
            "latestEvaluations": [r.to_dict() for r in services.results.latest_per_page()],
            "latestIndexability": [s.to_dict() for s in services.indexability.latest_per_page()],
        }

    raise ValueError(f"Unknown command: {command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="geo-crawler", description="GEO crawl and evaluation core")
    parser.add_argument("--db", help="SQLite database path (overrides GEO_DATABASE_PATH)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create missing tables")

    p = sub.add_parser("crawl", help="Breadth-first crawl from a seed URL")
    p.add_argument("start_url")
    p.add_argument("--max-depth", type=int, default=None)

    sub.add_parser("refresh", help="Re-fetch stale pages")

    p = sub.add_parser("fetch-page", help="Fetch and store a single page")
    p.add_argument("url")

    p = sub.add_parser("ingest", help="Chunk, embed and store playbook text")
    p.add_argument("file", help="Text file to ingest, or - for stdin")
    p.add_argument("--section", default="general")

    p = sub.add_parser("evaluate", help="General evaluation with one prompt")
    p.add_argument("page_id")
    p.add_argument("--prompt", required=True)
    p.add_argument("--prompt-type", default=None)

    p = sub.add_parser("evaluate-persona", help="Persona evaluation with generated questions")
    p.add_argument("persona_id")
    p.add_argument("page_id")
    p.add_argument("--num-questions", type=int, default=None)

    p = sub.add_parser("gap-analysis", help="Compare a page with the playbook")
    p.add_argument("page_id")

    p = sub.add_parser("rewrite", help="Generate and store a GEO rewrite of a page")
    p.add_argument("page_id")
    p.add_argument("--persona-id", default=None)
    p.add_argument("--recommendation", action="append", default=[])
    p.add_argument("--weak-point", action="append", default=[])
    p.add_argument("--opportunity", action="append", default=[])
    p.add_argument("--include-original", action="store_true")

    p = sub.add_parser("indexability", help="Score (or read the latest score of) a page's indexability")
    p.add_argument("page_id")
    p.add_argument("--latest", action="store_true", help="Read the latest stored score without scoring")

    p = sub.add_parser("create-page", help="Create a new GEO page from a brief")
    p.add_argument("--title")
    p.add_argument("--goal")
    p.add_argument("--audience")
    p.add_argument("--tone")
    p.add_argument("--sections")
    p.add_argument("--key-messages")
    p.add_argument("--faqs")
    p.add_argument("--context")
    p.add_argument("--inspiration-url", action="append", default=[])
    p.add_argument("--persona-id", default=None)

    p = sub.add_parser("add-persona", help="Create or update a persona")
    p.add_argument("--id", default=None)
    p.add_argument("--name", required=True)
    p.add_argument("--description")
    p.add_argument("--goal")
    p.add_argument("--risk-profile")
    p.add_argument("--needs")
    p.add_argument("--question", action="append", default=[])

    sub.add_parser("report", help="Latest evaluation and indexability score per page")
    return parser


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = GeoConfig.from_env()
    if args.db:
        config = replace(config, database_path=args.db)
    if args.log_file:
        config = replace(config, log_file=args.log_file)
    if config.log_file:
        attach_log_file(config.log_file)

    if args.command in NEEDS_CREDENTIALS:
        try:
            config.require_credentials()
        except ConfigurationError as e:
            logger.error(f"[STARTUP] {e}")
            sys.exit(1)

    services = build_services(config)
    try:
        payload = run_command(args, services, config)
    except GeoError as e:
        logger.error(f"[{args.command}] {e}")
        _print_json(_error_body(e))
        return 2
    except ValueError as e:
        logger.error(f"[{args.command}] invalid input: {e}")
        _print_json({"error": str(e), "type": "ValueError"})
        return 2
    finally:
        services.db.close()

    _print_json(payload)
    return 0


def _error_body(error: GeoError) -> Dict[str, Any]:
    body = {"error": str(error), "type": type(error).__name__}
    for attr in ("reason", "status_code", "kind", "identifier", "service"):
        value = getattr(error, attr, None)
        if value is not None:
            body[attr] = value
    return body


if __name__ == "__main__":
    sys.exit(main())
