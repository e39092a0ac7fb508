#!/usr/bin/env python3
"""
Debug tool for recommendation system.

Prints the behavior profile built for a user and the score breakdown of
every recommended item.

Usage:
    python debug/debug_recommendations.py <user_id> [--seed CONTENT_ID] [--limit N] [--data-dir PATH]

Example:
    python debug/debug_recommendations.py ada --limit 5
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from config_manager import ConfigManager
from content_service.document_store import DocumentStore
from content_service.logging_config import setup_logging, stop_logging
from content_service.recommendations import (
    ContentNotFoundError,
    RecommendationEngine,
    UpstreamFailure,
    build_default_engine,
)
from content_service.recommendations.settings import weights_as_dict


def print_profile(engine: RecommendationEngine, uid: str) -> None:
    """Print the user's history counts as the engine sees them."""
    history = engine.user_repository.find_user_with_history(uid)
    if history is None:
        print(f"  No user document for {uid}; ranking as anonymous")
        return
    print(f"  Name: {history.name or '-'}")
    print(f"  Likes: {len(history.likes)}")
    print(f"  Watch records: {len(history.watch_progress)}")
    print(f"  Hovers: {len(history.hover_history)}")
    print(f"  Comments: {len(history.commented_content)}")
    print(f"  Unfollowed creators: {len(history.unfollowed_creators)}")

    engaged = engine.content_repository.find_by_ids(history.engaged_content_ids())
    missing = [cid for cid in history.engaged_content_ids() if cid not in engaged]
    if missing:
        print(f"  ⚠️  {len(missing)} engaged items not found in content store: {missing[:5]}{'...' if len(missing) > 5 else ''}")


def print_weights(engine: RecommendationEngine) -> None:
    print("\nScoring weights:")
    for name, value in weights_as_dict(engine.weights).items():
        print(f"  {name:22s} {value:8.2f}")
    settings = engine.settings
    print(f"  decay lambda: {settings.decay_lambda}  (exp(-lambda * days))")
    print(f"  caps: {settings.max_per_category} per category, {settings.max_per_creator} per creator")
    print(f"  candidate pool: {settings.candidate_pool_size}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Explain recommendations for one user")
    parser.add_argument("uid", help="User id (use '-' for an anonymous visitor)")
    parser.add_argument("--seed", help="Content id to compute related recommendations for")
    parser.add_argument("--limit", type=int, default=10, help="Number of recommendations (default 10)")
    parser.add_argument("--data-dir", type=Path, help="Data directory (defaults to the configured one)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    setup_logging(debug=args.debug)
    try:
        config_manager = ConfigManager()
        data_dir = args.data_dir or Path(config_manager.get_paths_config().data_dir)
        engine = build_default_engine(DocumentStore(data_dir), config_manager.get_recommendation_config())
        uid = None if args.uid == "-" else args.uid

        print(f"Data directory: {data_dir}")
        if uid:
            print(f"\nLoading user {uid}...")
            print_profile(engine, uid)
        print_weights(engine)

        seed_item = engine.resolve_seed(args.seed) if args.seed else None
        response = engine.recommend(user_id=uid, limit=args.limit, seed_item=seed_item)
    except ContentNotFoundError as exc:
        print(f"\n❌ {exc}", file=sys.stderr)
        return 1
    except (UpstreamFailure, ValueError) as exc:
        print(f"\n❌ Recommendation failed: {exc}", file=sys.stderr)
        return 2
    finally:
        stop_logging()

    mode = "personalized" if response.personalized else "anonymous"
    print(f"\nRecommendations ({mode}, {len(response.items)} items, at {response.generated_at.isoformat()}):")
    if response.profile:
        print(f"  Profile: {response.profile}")
    for rank, item in enumerate(response.items, start=1):
        score = response.scores[item["id"]]
        creator = item.get("creator") or {}
        print(f"\n  #{rank} {item['id']}  score={score.score:.4f}")
        print(f"     {item.get('title', '')!s:50.50s} [{item.get('category', '')}] by {creator.get('name') or creator.get('id', '-')}")
        for signal, value in sorted(score.breakdown.items(), key=lambda kv: abs(kv[1]), reverse=True):
            print(f"     {signal:16s} {value:+9.4f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
