"""
Hierarchy assignment and outline tree assembly for heading candidates.
"""

import logging
from dataclasses import replace
from functools import cmp_to_key
from typing import List, Tuple

from .analysis import round_font_size
from .lexicon import REFERENCE_PATTERN, strip_section_number
from .models import FlatOutlineEntry, HeadingCandidate, OutlineItem


def assign_levels_by_font_size(candidates: List[HeadingCandidate]) -> List[HeadingCandidate]:
    """Rank non-numbered candidates by font size: the largest distinct size is level 1."""
    if not candidates:
        return []

    unique_sizes = sorted({round_font_size(c.font_size) for c in candidates}, reverse=True)
    size_to_level = {size: index + 1 for index, size in enumerate(unique_sizes)}

    return [replace(c, level=size_to_level.get(round_font_size(c.font_size), 1)) for c in candidates]


def assign_heading_levels(candidates: List[HeadingCandidate]) -> List[HeadingCandidate]:
    """
    Give every candidate a hierarchy level.

    Numbered candidates take their numbering depth; the others are ranked by
    font size among themselves. The result is unordered.
    """
    if not candidates:
        return []

    numbered = [replace(c, level=max(c.number_depth, 1)) for c in candidates if c.is_numbered]
    non_numbered = assign_levels_by_font_size([c for c in candidates if not c.is_numbered])

    return numbered + non_numbered


def _sign(value: float) -> int:
    if value < 0:
        return -1
    if value > 0:
        return 1
    return 0


def _compare_reading_order(a: HeadingCandidate, b: HeadingCandidate) -> int:
    if a.page_index != b.page_index:
        return a.page_index - b.page_index

    if a.column_index != b.column_index:
        # Full-width items interleave with column items by vertical position
        if a.column_index == -1:
            return -1 if a.y < b.y else 1
        if b.column_index == -1:
            return 1 if b.y < a.y else -1
        return a.column_index - b.column_index

    return _sign(a.y - b.y)


def sort_reading_order(candidates: List[HeadingCandidate]) -> List[HeadingCandidate]:
    """Page, then column (full-width interleaved by y), then top to bottom."""
    return sorted(candidates, key=cmp_to_key(_compare_reading_order))


def build_outline_tree(candidates: List[HeadingCandidate]) -> List[OutlineItem]:
    """
    Build a nested outline from leveled candidates.

    A level stack starts with a synthetic root at level 0; entries at the same
    or a deeper level are popped before each candidate is attached, so every
    child is strictly deeper than its parent.

    Args:
        candidates: Candidates carrying a level >= 1

    Returns:
        Top-level outline items in reading order
    """
    if not candidates:
        return []

    root: List[OutlineItem] = []
    stack: List[Tuple[List[OutlineItem], int]] = [(root, 0)]

    for candidate in sort_reading_order(candidates):
        item = OutlineItem(
            title=candidate.title,
            page_index=candidate.page_index,
            left=candidate.x,
            top=candidate.top,
            column_index=candidate.column_index if candidate.column_index is not None else -1,
        )

        while len(stack) > 1 and stack[-1][1] >= candidate.level:
            stack.pop()

        stack[-1][0].append(item)
        stack.append((item.children, candidate.level))

    return root


def is_reference_heading(title: str) -> bool:
    return REFERENCE_PATTERN.match(strip_section_number(title)) is not None


def purge_reference_children(outline: List[OutlineItem]) -> List[OutlineItem]:
    """Empty the children of bibliography-like sections; the sections themselves stay."""

    def process_node(node: OutlineItem):
        if is_reference_heading(node.title):
            if node.children:
                logging.info(f"Discarding {len(node.children)} entries nested under {node.title!r}")
            node.children = []
            return
        for child in node.children:
            process_node(child)

    for item in outline:
        process_node(item)

    return outline


def flatten_outline(outline: List[OutlineItem], depth: int = 0) -> List[FlatOutlineEntry]:
    """Pre-order projection of the tree to (title, 1-based page, depth) entries."""
    result = []
    for item in outline:
        result.append(FlatOutlineEntry(title=item.title, page_number=item.page_index + 1, depth=depth))
        if item.children:
            result.extend(flatten_outline(item.children, depth + 1))
    return result
