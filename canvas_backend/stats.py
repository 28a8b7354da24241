"""
Summary figures for the menu and gallery admin screens.

Both backends hand back plain records, so the aggregation is done here in
Python rather than with a database pipeline.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from canvas_backend.records import CREATED_AT, Record, parse_timestamp, utc_now

RECENT_UPLOAD_WINDOW = timedelta(days=7)


def menu_stats(items: Iterable[Record]) -> Dict[str, Any]:
    items = list(items)
    prices: Dict[Any, List[float]] = defaultdict(list)
    counts: Dict[Any, int] = defaultdict(int)
    for item in items:
        category = item.get("category")
        counts[category] += 1
        price = item.get("price")
        if isinstance(price, (int, float)) and not isinstance(price, bool):
            prices[category].append(price)

    category_stats = [
        {
            "_id": category,
            "count": counts[category],
            "avgPrice": sum(prices[category]) / len(prices[category])
            if prices[category]
            else None,
        }
        # None sorts first, like a missing field in a $sort.
        for category in sorted(counts, key=lambda value: (value is not None, str(value)))
    ]
    return {
        "totalItems": len(items),
        "availableItems": sum(1 for item in items if item.get("isAvailable") is True),
        "featuredItems": sum(1 for item in items if item.get("featured") is True),
        "categoryStats": category_stats,
    }


def _created_after(record: Record, since: datetime) -> bool:
    value = record.get(CREATED_AT)
    if not isinstance(value, str):
        return False
    try:
        return parse_timestamp(value) >= since
    except ValueError:
        return False


def gallery_stats(images: Iterable[Record], now: Optional[datetime] = None) -> Dict[str, Any]:
    images = list(images)
    since = (now or utc_now()) - RECENT_UPLOAD_WINDOW
    total = len(images)
    active = sum(1 for image in images if image.get("isActive") is True)
    total_size = sum(
        image.get("size") or 0
        for image in images
        if isinstance(image.get("size") or 0, (int, float))
    )
    return {
        "totalImages": total,
        "activeImages": active,
        "inactiveImages": total - active,
        "totalSize": total_size,
        "recentUploads": sum(1 for image in images if _created_after(image, since)),
        # Halves round up, not to even.
        "averageSize": math.floor(total_size / total + 0.5) if total else 0,
    }
