"""
Embedded bookmark normalization and destination resolution.
"""

import logging
from typing import Dict, List, Optional

from .config import DEFAULT_CONFIG, HeuristicConfig
from .models import (
    BookmarkEntry,
    ColumnAwareLineProvider,
    Destination,
    OutlineDocument,
    OutlineItem,
    ResolvedDestination,
)

DestinationCache = Dict[str, Optional[ResolvedDestination]]


def destination_cache_key(dest: Destination) -> str:
    return dest if isinstance(dest, str) else repr(dest)


async def resolve_destination(dest: Optional[Destination], document: OutlineDocument,
                              cache: DestinationCache) -> Optional[ResolvedDestination]:
    """
    Resolve a named or explicit destination to a page index and position.

    Results, including failures, are memoized in ``cache`` for the duration of
    one outline walk. Errors never propagate; they resolve to None.

    Args:
        dest: Named destination key or an explicit [page_ref, kind, left, top, zoom] sequence
        document: Document exposing destination lookups
        cache: Per-build memo keyed by the stringified destination

    Returns:
        ResolvedDestination, or None when the destination cannot be resolved
    """
    if dest is None:
        return None

    cache_key = destination_cache_key(dest)
    if cache_key in cache:
        return cache[cache_key]

    resolved = None
    try:
        explicit_dest = dest
        if isinstance(dest, str):
            explicit_dest = (document.all_named_destinations or {}).get(dest)
            if explicit_dest is None:
                explicit_dest = await document.get_destination(dest)

        if isinstance(explicit_dest, (list, tuple)) and len(explicit_dest) > 0:
            page_ref = explicit_dest[0]
            left = explicit_dest[2] if len(explicit_dest) > 2 else None
            top = explicit_dest[3] if len(explicit_dest) > 3 else None
            page_index = await document.get_page_index(page_ref)
            resolved = ResolvedDestination(
                page_index=int(page_index),
                left=float(left) if left is not None else 0.0,
                top=float(top) if top is not None else 0.0,
            )
        else:
            logging.warning(f"Destination {cache_key} is not an explicit destination")
    except Exception as e:
        logging.warning(f"Could not resolve destination {cache_key}: {e}")
        resolved = None

    cache[cache_key] = resolved
    return resolved


def estimate_column_from_position(page_index: int, left: float, provider: Optional[ColumnAwareLineProvider],
                                  config: HeuristicConfig = DEFAULT_CONFIG) -> int:
    """
    Estimate which layout column an x position falls into.

    Returns:
        Column index, or -1 for full-width/unknown
    """
    if provider is None or not provider.is_built:
        return -1

    page_data = provider.get_column_aware_lines(page_index + 1)
    if page_data is None or len(page_data.columns) <= 1:
        return -1

    columns = page_data.columns
    for index, column in enumerate(columns):
        if column.left - config.column_tolerance <= left <= column.right + config.column_tolerance:
            return index

    # Gutter between the first two columns
    if columns[0].right < left < columns[1].left:
        return -1

    if page_data.page_width > 0:
        ratio = left / page_data.page_width
        if ratio < config.left_column_ratio:
            return 0
        if ratio > config.right_column_ratio:
            return 1

    return -1


async def normalize_bookmarks(entries: List[BookmarkEntry], document: OutlineDocument,
                              provider: Optional[ColumnAwareLineProvider], cache: DestinationCache,
                              config: HeuristicConfig = DEFAULT_CONFIG) -> List[OutlineItem]:
    """Recursively convert bookmark entries into outline items."""
    result = []

    for entry in entries:
        dest = await resolve_destination(entry.dest, document, cache)
        page_index = dest.page_index if dest else 0
        left = dest.left if dest else 0.0
        top = dest.top if dest else 0.0

        children = []
        if entry.items:
            children = await normalize_bookmarks(entry.items, document, provider, cache, config)

        result.append(OutlineItem(
            title=entry.title or "Untitled",
            page_index=page_index,
            left=left,
            top=top,
            column_index=estimate_column_from_position(page_index, left, provider, config),
            children=children,
        ))

    return result


async def extract_native_outline(document: OutlineDocument, provider: Optional[ColumnAwareLineProvider],
                                 config: HeuristicConfig = DEFAULT_CONFIG) -> List[OutlineItem]:
    """Fetch and normalize the embedded outline; an absent outline yields []."""
    outline = await document.get_outline()
    if not outline:
        return []

    cache: DestinationCache = {}
    items = await normalize_bookmarks(outline, document, provider, cache, config)
    unresolved = sum(1 for value in cache.values() if value is None)
    if unresolved:
        logging.warning(f"{unresolved} outline destinations could not be resolved")
    return items
