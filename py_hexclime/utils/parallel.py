"""
Fork-join parallel map.

Cells of a field are independent, so construction fans the work out over a
thread pool and joins the results back in input order. The output never
depends on the worker count.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, TypeVar

from ..config import settings

T = TypeVar("T")
R = TypeVar("R")


def parallel_map(
    fn: Callable[[T], R], items: Iterable[T], workers: Optional[int] = None
) -> List[R]:
    """
    Apply fn to every item and return the results in input order.

    Args:
        fn: Pure function of a single item
        items: Inputs
        workers: Thread count; defaults to settings.field_workers. A single
            worker runs inline.

    Returns:
        List of results, ordered like items
    """
    workers = workers or settings.field_workers
    items = list(items)
    if workers <= 1 or len(items) < 2:
        return [fn(item) for item in items]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(fn, items))
