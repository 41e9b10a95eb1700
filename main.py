"""Job Discovery Engine CLI entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv


def setup_logging(log_level: str = "INFO") -> None:
    """Configure logging to stderr and a dated log file."""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    run_date = datetime.now().strftime("%Y-%m-%d")
    log_file = log_dir / f"search_{run_date}.log"

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            # stdout carries the JSON payload
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def main() -> None:
    """Main CLI entrypoint for the Job Discovery Engine."""
    parser = argparse.ArgumentParser(
        description="Job Discovery Engine: search, filter and annotate job listings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py "football coach mumbai"              # Keyword + location search
  python main.py coach --job-type "Full Time" -n 15   # Job-type filter, 15 results
  python main.py analyst --skills "Python,SQL"        # Annotate resume skill matches
  python main.py --preview-skills "Python,Tableau"    # Per-skill previews
        """,
    )
    parser.add_argument("search", nargs="?", default=None, help="Free-text search query")
    parser.add_argument("--location", default=None, help="Explicit location filter")
    parser.add_argument("--job-type", default=None, help="Job type filter (e.g. 'Internship')")
    parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=None,
        help="Results to return (5-30; 3-10 for previews). Default: 10, previews 3",
    )
    parser.add_argument("--page", type=int, default=1, help="Upstream page to start from. Default: 1")
    parser.add_argument("--skills", default=None, help="Comma-separated resume skills for relevance")
    parser.add_argument("--keywords", default=None, help="Comma-separated general keywords for relevance")
    parser.add_argument("--conversation-id", default=None, help="Conversation ID echoed in metadata")
    parser.add_argument("--deadline", type=float, default=None, help="Abort the search after N seconds")
    parser.add_argument(
        "--gazetteer",
        default=os.getenv("GAZETTEER_PATH", "gazetteer.yaml"),
        help="Path to gazetteer YAML. Default: gazetteer.yaml",
    )
    parser.add_argument(
        "--telemetry-db",
        default=None,
        help="Record interesting searches (fallback, sparse results) to this SQLite file",
    )
    parser.add_argument(
        "--preview-skills",
        default=None,
        help="Comma-separated skills; run one small search per skill instead",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override (DEBUG, INFO, WARNING, ERROR)",
    )

    args = parser.parse_args()

    # Load environment variables
    load_dotenv()

    log_level = args.log_level or os.getenv("LOG_LEVEL", "INFO")
    setup_logging(log_level)
    logger = logging.getLogger("job_discovery")

    from job_discovery.engine import SearchEngine
    from job_discovery.models.search import SearchRequest, TelemetryContext
    from job_discovery.models.settings import load_gazetteer, load_settings

    try:
        engine = SearchEngine(settings=load_settings(), gazetteer=load_gazetteer(args.gazetteer))
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    if args.preview_skills:
        from job_discovery.skill_preview import preview_skills

        try:
            previews = preview_skills(
                _split_list(args.preview_skills),
                limit=args.limit or 3,
                location=args.location,
                job_type=args.job_type,
                engine=engine,
            )
        except ValueError as e:
            logger.error("%s", e)
            sys.exit(2)
        payload = {
            "success": True,
            "results": [p.model_dump(by_alias=True, exclude_none=True) for p in previews],
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    request = SearchRequest(
        search=args.search,
        location=args.location,
        job_type=args.job_type,
        limit=args.limit or 10,
        page=args.page,
        skill_keywords=_split_list(args.skills),
        general_keywords=_split_list(args.keywords),
        telemetry=TelemetryContext(
            request_id=str(uuid.uuid4()),
            conversation_id=args.conversation_id,
            requested_at=datetime.now(timezone.utc).isoformat(),
        ),
    )

    response = engine.search(request, deadline=args.deadline)
    logger.info(
        "Search complete: success=%s, count=%d, total=%d",
        response.success, response.count, response.total,
    )

    if args.telemetry_db:
        from job_discovery.storage.telemetry import TelemetryRepository

        repo = TelemetryRepository(args.telemetry_db)
        repo.record(response.meta)
        repo.close()

    print(json.dumps(response.to_payload(), indent=2, ensure_ascii=False))
    if not response.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
