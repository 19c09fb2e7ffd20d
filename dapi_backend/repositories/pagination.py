from __future__ import annotations

import math
from typing import Any, Dict, Sequence


def page_count(total: int, size: int) -> int:
    return math.ceil(total / size)


def check_page_args(index: int, size: int) -> None:
    if index < 1:
        raise ValueError("page index starts at 1")
    if size < 1:
        raise ValueError("page size must be positive")


def build_page(*, index: int, size: int, items: Sequence[Any], total: int) -> Dict[str, Any]:
    return {
        "size": size,
        "page": index,
        "count": len(items),
        "list": list(items),
        "total": total,
        "all": page_count(total, size),
    }
