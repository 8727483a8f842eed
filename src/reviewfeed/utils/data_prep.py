"""Data preparation for export."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

from ..core.constants import FileConstants
from ..core.models import PaginationState, ReviewItem

logger = logging.getLogger(__name__)


def prepare_row(item: ReviewItem) -> Dict[str, Any]:
    """Convert one row to a serializable dict."""
    return {
        "id": str(item.id),
        "user_name": item.user_name,
        "avatar_url": item.avatar_url,
        "rating": item.rating,
        "text": item.text,
        "created": item.created,
        "photo_urls": list(item.photo_urls),
        "is_valid": item.is_valid,
    }


def prepare_export(state: PaginationState) -> Dict[str, Any]:
    """Prepare a store snapshot for JSON export."""
    rows: List[Dict[str, Any]] = [prepare_row(item) for item in state.items]
    return {
        "summary": {
            "loaded": len(rows),
            "total_count": state.total_count,
            "offset": state.offset,
            "has_more": state.has_more,
            "invalid": sum(1 for row in rows if not row["is_valid"]),
        },
        "reviews": rows,
        "metadata": {
            "export_timestamp": None,
            "version": FileConstants.EXPORT_VERSION,
        },
    }


def export_to_json(data: Dict[str, Any], path: Union[str, Path]) -> Path:
    """Stamp the export time (UTC) and write a prepared export as UTF-8 JSON."""
    data["metadata"]["export_timestamp"] = datetime.now(timezone.utc).isoformat()
    path = Path(path)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Exported {len(data['reviews'])} reviews to {path}")
    return path
