from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

import pandas as pd

from news_aggregator.types import Article

logger = logging.getLogger(__name__)

SAVED_FILE = "saved.jsonl"


def saved_path(output_dir: Path) -> Path:
    return output_dir / SAVED_FILE


def _iter_lines(path: Path) -> Iterator[tuple[str, dict[str, Any] | None]]:
    # yields (raw line, parsed record or None when the line is not valid JSON)
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            raw = raw.rstrip("\n")
            if not raw.strip():
                continue
            try:
                record = json.loads(raw)
            except ValueError:
                yield raw, None
                continue
            yield raw, record if isinstance(record, dict) else None


def load_saved(output_dir: Path) -> pd.DataFrame:
    """Saved article references as a DataFrame (empty when nothing is saved)."""
    path = saved_path(output_dir)
    if not path.exists():
        return pd.DataFrame([])

    records = []
    try:
        for _, record in _iter_lines(path):
            if record is None:
                logger.warning("Skipping malformed line in %s", path)
                continue
            records.append(record)
    except OSError as e:
        logger.error("Error reading saved articles from %s: %s", path, e)
        return pd.DataFrame([])
    return pd.DataFrame(records)


def is_saved(output_dir: Path, article_id: str) -> bool:
    if not article_id:
        return False
    df = load_saved(output_dir)
    if df.empty or "id" not in df.columns:
        return False
    return bool((df["id"].astype(str) == str(article_id)).any())


def save_article(output_dir: Path, article: Article) -> bool:
    """Append a reference to `article`.

    Returns False when it was already saved or the file could not be written.
    """
    if is_saved(output_dir, article.id):
        return False

    record = {
        "id": article.id,
        "title": article.title,
        "url": article.url,
        "source": article.source.name,
        "saved_at": datetime.now(timezone.utc).isoformat(),
    }
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        with open(saved_path(output_dir), "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")
    except OSError as e:
        logger.error("Failed to save article %s: %s", article.id, e)
        return False
    return True


def remove_saved(output_dir: Path, article_id: str) -> bool:
    """Drop the saved reference with `article_id`; malformed lines are left alone."""
    path = saved_path(output_dir)
    if not article_id or not path.exists():
        return False

    kept: list[str] = []
    removed = False
    try:
        for raw, record in _iter_lines(path):
            if record is not None and str(record.get("id", "")) == str(article_id):
                removed = True
            else:
                kept.append(raw)

        if removed:
            path.write_text("".join(line + "\n" for line in kept), encoding="utf-8")
    except OSError as e:
        logger.error("Failed to remove saved article %s: %s", article_id, e)
        return False
    return removed
