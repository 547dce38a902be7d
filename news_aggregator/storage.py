from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from news_aggregator.types import Article

logger = logging.getLogger(__name__)

COLUMNS = [
    "id",
    "published_at",
    "source_id",
    "source_name",
    "category",
    "title",
    "author",
    "description",
    "url",
    "image_url",
]


def articles_to_frame(articles: list[Article]) -> pd.DataFrame:
    rows = []
    for a in articles:
        rows.append(
            {
                "id": a.id,
                "published_at": a.published_at,
                "source_id": a.source.id,
                "source_name": a.source.name,
                "category": a.category,
                "title": a.title,
                "author": a.author,
                "description": a.description,
                "url": a.url,
                "image_url": a.image_url,
            }
        )
    df = pd.DataFrame(rows, columns=COLUMNS)
    # Normalize datetime for parquet
    df["published_at"] = pd.to_datetime(df["published_at"], utc=True, errors="coerce")
    return df


def write_frame(path: Path, df: pd.DataFrame) -> Path:
    """Write `df` as parquet or CSV depending on the suffix; returns the path written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        try:
            df.to_parquet(path, index=False)
            return path
        except ImportError:
            # no parquet engine installed: fall back to CSV next to parquet
            csv_path = path.with_suffix(".csv")
            logger.warning("Parquet engine unavailable, writing %s instead", csv_path)
            df.to_csv(csv_path, index=False, encoding="utf-8")
            return csv_path

    # default to csv
    df.to_csv(path, index=False, encoding="utf-8")
    return path


def export_articles(path: Path, articles: list[Article]) -> Path:
    written = write_frame(path, articles_to_frame(articles))
    logger.info("Saved %d articles to %s", len(articles), written)
    return written
