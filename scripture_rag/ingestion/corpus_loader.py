"""
Corpus Loader - Read and write passage corpora as JSON.

File format:
    {"passages": [{"id": 1, "collection_id": "Genesis", "locator": "1:1",
                   "text": "...", "category": "Old", ...}]}
A bare list of passage objects is also accepted.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Union

from ..retrieval.passage_store import Passage

logger = logging.getLogger(__name__)


def load_passages(path: Union[str, Path]) -> list[Passage]:
    """Load passages; records missing required fields are skipped."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    records = data.get("passages", []) if isinstance(data, dict) else data
    passages = []
    for record in records:
        try:
            passages.append(Passage.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed passage record {record!r:.80}: {e}")

    logger.info(f"Loaded {len(passages)} passages from {path}")
    return passages


def save_passages(passages: list[Passage], path: Union[str, Path]) -> Path:
    """Write passages to a JSON corpus file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "saved_at": datetime.now().isoformat(),
        "count": len(passages),
        "passages": [p.to_dict() for p in passages],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    logger.info(f"Saved {len(passages)} passages to {path}")
    return path
