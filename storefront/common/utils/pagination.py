from typing import Any, Tuple


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def normalize_paging(page: Any, page_size: Any, max_page_size: int = 100) -> Tuple[int, int]:
    """Clamp page/page_size coming from query strings to sane values."""
    p = max(_as_int(page), 1)
    ps = _as_int(page_size)
    ps = min(ps if ps > 0 else 20, max_page_size)
    return p, ps


def page_bounds(page: int, page_size: int) -> Tuple[int, int]:
    return (page - 1) * page_size, page_size
