"""
Run lead discovery from CLI.
"""

from __future__ import annotations

import argparse
import json

from db.session import SessionLocal
from leadgen.domain.lead_query import LeadQuery
from leadgen.logging_utils import configure_logging
from leadgen.services.lead_discovery_service import LeadDiscoveryService


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Discover, crawl and rank leads for a product profile.")
    parser.add_argument("--keyword", dest="keywords", action="append", default=[], help="Product keyword (repeatable).")
    parser.add_argument("--geo", dest="geos", action="append", default=[], help="Geography token (repeatable).")
    parser.add_argument("--intent", dest="intents", action="append", default=[], help="Intent hint (repeatable).")
    parser.add_argument(
        "--usage-signal",
        dest="usage_signals",
        action="append",
        default=[],
        help="Industry overlay: ecom, ads, foodbev, beauty, coldchain, industrial.",
    )
    parser.add_argument("--platform", dest="platforms", action="append", default=[], help="Platform restriction.")
    parser.add_argument("--exclude-brand", dest="exclude_brands", action="append", default=[])
    parser.add_argument("--max-team-size", dest="max_team_size", type=int, default=None)
    parser.add_argument("--budget", dest="budget", type=int, default=None, help="Maximum search results.")
    parser.add_argument(
        "--persist",
        action="store_true",
        help="Record seen domains in the database and skip recently-seen ones.",
    )
    parser.add_argument("--no-channels", action="store_true", help="Skip outreach channel recommendation.")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    configure_logging(args.log_level)

    query = LeadQuery.from_mapping(
        {
            "product_keywords": args.keywords,
            "geos": args.geos,
            "intent_hints": args.intents,
            "usage_signals": args.usage_signals,
            "platforms": args.platforms,
            "exclude_brands": args.exclude_brands,
            "max_team_size": args.max_team_size,
        }
    )
    service = LeadDiscoveryService()

    if args.persist:
        with SessionLocal() as db:
            run = service.discover(query=query, budget=args.budget, db=db, recommend_channels=not args.no_channels)
    else:
        run = service.discover(query=query, budget=args.budget, recommend_channels=not args.no_channels)

    payload = {
        "status": run.status,
        "queries": len(run.queries),
        "results_found": run.results_found,
        "hosts_crawled": run.hosts_crawled,
        "crawl_failures": run.crawl_failures,
        "errors": run.errors,
        "candidates": [
            {
                "domain": item.candidate.domain,
                "url": item.candidate.url,
                "title": item.candidate.title,
                "overall_score": item.overall_score,
                "grade": item.grade,
                "breakdown": item.breakdown,
                "penalties": item.penalties,
                "completeness": item.completeness,
                "recommended_channel": item.recommended_channel,
                "reasons": list(item.reasons),
            }
            for item in run.candidates
        ],
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
