"""Command-line front end for the news aggregation pipeline."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from news_aggregator.aggregator import open_aggregator, run_headlines, run_search
from news_aggregator.categories import CATEGORY_MAPPING
from news_aggregator.config import Config, load_config
from news_aggregator.errors import ConfigError
from news_aggregator.filters import validate_filters
from news_aggregator.preferences import DIMENSIONS, PreferenceStore
from news_aggregator.providers import all_source_names
from news_aggregator.saved_store import load_saved, remove_saved, save_article
from news_aggregator.storage import export_articles
from news_aggregator.store import JsonFileStore
from news_aggregator.types import SORT_OPTIONS, Article, FilterOptions, UserPreferences

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure standard logging format for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def format_article(a: Article) -> str:
    when = a.published_at.strftime("%Y-%m-%d %H:%M") if a.published_at else "unknown date"
    category = a.category or "-"
    return f"{when} | {a.source.name} | {category} | {a.title}\n    {a.url}  [{a.id}]"


def print_articles(articles: list[Article]) -> None:
    if not articles:
        print("No articles found.")
        return
    for a in articles:
        print(format_article(a))
    print(f"\n{len(articles)} article{'s' if len(articles) != 1 else ''}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="news-aggregator")
    parser.add_argument("--config", default=None, help="Path to a YAML config file.")
    parser.add_argument("--user", default="default", help="Preference profile to use.")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search every provider.")
    search.add_argument("--keyword", default="")
    search.add_argument("--category", default="", choices=[""] + list(CATEGORY_MAPPING))
    search.add_argument("--source", default="", help=f"One of: {', '.join(all_source_names())}")
    search.add_argument("--from", dest="date_from", default="", help="YYYY-MM-DD or ISO timestamp.")
    search.add_argument("--to", dest="date_to", default="", help="YYYY-MM-DD or ISO timestamp.")
    search.add_argument("--sort-by", default="publishedAt", choices=list(SORT_OPTIONS))

    headlines = sub.add_parser("headlines", help="Latest headlines from every provider.")

    for p in (search, headlines):
        p.add_argument("--no-preferences", action="store_true", help="Ignore stored preferences.")
        p.add_argument("--output", type=Path, default=None, help="Write results to .csv or .parquet.")
        p.add_argument("--save", action="append", default=[], metavar="ID", help="Save the article with this id.")

    prefs = sub.add_parser("prefs", help="Show or edit stored preferences.")
    prefs_sub = prefs.add_subparsers(dest="prefs_command", required=True)
    prefs_sub.add_parser("show")
    for action in ("add", "remove"):
        p = prefs_sub.add_parser(action)
        p.add_argument("dimension", choices=list(DIMENSIONS))
        p.add_argument("value")

    saved = sub.add_parser("saved", help="List or remove saved articles.")
    saved_sub = saved.add_subparsers(dest="saved_command", required=True)
    saved_sub.add_parser("list")
    rm = saved_sub.add_parser("remove")
    rm.add_argument("id")

    return parser


def print_preferences(prefs: UserPreferences) -> None:
    for label, values in (
        ("sources", prefs.preferred_sources),
        ("categories", prefs.preferred_categories),
        ("authors", prefs.preferred_authors),
    ):
        print(f"{label}: {', '.join(sorted(values)) or '(any)'}")


async def _fetch(args: argparse.Namespace, cfg: Config, preferences: UserPreferences | None) -> list[Article]:
    async with open_aggregator(cfg) as aggregator:
        if args.command == "headlines":
            return await run_headlines(aggregator, preferences=preferences)

        filters = FilterOptions(
            keyword=args.keyword,
            category=args.category,
            source=args.source,
            date_from=args.date_from,
            date_to=args.date_to,
            sort_by=args.sort_by,
        )
        for warning in validate_filters(filters):
            print(f"warning: {warning}", file=sys.stderr)
        return await run_search(aggregator, filters, preferences)


def run_fetch(args: argparse.Namespace, cfg: Config, store: PreferenceStore) -> int:
    preferences = None if args.no_preferences else store.load(args.user)
    articles = asyncio.run(_fetch(args, cfg, preferences))
    print_articles(articles)

    if args.output:
        export_articles(args.output, articles)

    by_id = {a.id: a for a in articles}
    for article_id in args.save:
        article = by_id.get(article_id)
        if article is None:
            logger.warning("No article with id %s in these results", article_id)
            continue
        if save_article(cfg.output_dir, article):
            logger.info("Saved %s", article_id)
    return 0


def run_prefs(args: argparse.Namespace, store: PreferenceStore) -> int:
    if args.prefs_command == "add":
        prefs = store.add(args.dimension, args.value, args.user)
    elif args.prefs_command == "remove":
        prefs = store.remove(args.dimension, args.value, args.user)
    else:
        prefs = store.load(args.user)
    print_preferences(prefs)
    return 0


def run_saved(args: argparse.Namespace, cfg: Config) -> int:
    if args.saved_command == "remove":
        if not remove_saved(cfg.output_dir, args.id):
            print(f"No saved article with id {args.id}", file=sys.stderr)
            return 1
        return 0

    df = load_saved(cfg.output_dir)
    if df.empty:
        print("No saved articles yet.")
        return 0
    for row in df.to_dict(orient="records"):
        print(f"{row.get('saved_at', '')} | {row.get('source', '')} | {row.get('title', '')}\n    {row.get('url', '')}  [{row.get('id', '')}]")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    store = PreferenceStore(JsonFileStore(cfg.preferences_file))

    if args.command in ("search", "headlines"):
        return run_fetch(args, cfg, store)
    if args.command == "prefs":
        return run_prefs(args, store)
    return run_saved(args, cfg)


if __name__ == "__main__":
    sys.exit(main())
