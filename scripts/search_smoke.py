#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json

from config import settings
from config.search_policy import load_search_policy
from engine.context import SearchContext
from engine.errors import ProviderUnavailable
from engine.search_engine import ContextualSearchService
from providers import PROVIDER_NAMES, StaticContentProvider, build_content_provider


def _build_provider(args):
    if args.fixture:
        return StaticContentProvider.from_json_file(args.fixture)
    return build_content_provider(args.provider)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run one contextual video search and print the ranked results.")
    parser.add_argument("term", help="Primary search term.")
    parser.add_argument("--subject", required=True, help="Subject, e.g. 'Science'.")
    parser.add_argument("--grade", required=True, help="Grade level, e.g. '5th Grade'.")
    parser.add_argument("--topic", required=True, help="Lesson topic.")
    parser.add_argument("--duration", type=float, default=None, help="Target duration in minutes.")
    parser.add_argument("--provider", choices=PROVIDER_NAMES, default=None, help="Content provider to query.")
    parser.add_argument("--fixture", default=None, help="JSON fixture for the offline static provider.")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON.")
    args = parser.parse_args(argv)

    service = ContextualSearchService(
        _build_provider(args),
        policy=load_search_policy(settings.SEARCH_POLICY_PATH),
    )
    context = SearchContext(
        subject=args.subject,
        grade_level=args.grade,
        topic=args.topic,
        target_duration_minutes=args.duration,
    )
    try:
        result = service.search(args.term, context)
    except ProviderUnavailable as exc:
        print(f"search unavailable: {exc}")
        return 2

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(
        f"term={args.term!r} strategy={result.search_strategy} results={len(result.results)} "
        f"avg={result.average_confidence:.1f} fallback={result.fallback_triggered}"
    )
    if result.fallback_reason:
        print(f"fallback_reason={result.fallback_reason}")
    print(f"terms={', '.join(result.search_terms_used)}")
    for idx, item in enumerate(result.results, start=1):
        print(
            f"{idx}. [{item.confidence}] {item.candidate.title} | {item.candidate.channel_title} | "
            f"term={item.query_term}"
        )
    for suggestion in result.improvement_suggestions:
        print(f"hint: {suggestion}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
