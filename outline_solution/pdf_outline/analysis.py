"""
Font statistics and heading candidate classification.
"""

import logging
import re
from collections import Counter
from typing import Iterable, List, Optional

import numpy as np

from .config import DEFAULT_CONFIG, HeuristicConfig
from .lexicon import (
    ABSTRACT_PATTERN,
    NUMBERED_SECTION_PATTERN,
    SECTION_NUMBER_EXTRACT,
    matches_section_name,
    strip_section_number,
)
from .models import (
    AbstractAnchor,
    ColumnAwareLineProvider,
    ColumnAwarePageData,
    DocumentMetadata,
    FontStatistics,
    HeadingCandidate,
    Line,
    PageLines,
)


def round_font_size(size: float) -> float:
    """Font sizes are grouped at one decimal place."""
    return float(np.round(size, 1))


def is_boilerplate(text: str, config: HeuristicConfig = DEFAULT_CONFIG) -> bool:
    return bool(text) and text.startswith(config.boilerplate_prefixes)


def collect_page_lines(provider: ColumnAwareLineProvider, config: HeuristicConfig = DEFAULT_CONFIG,
                       max_pages: Optional[int] = None) -> List[PageLines]:
    """
    Gather the lines of every page in page order, dropping identifier boilerplate.

    Args:
        provider: Column-aware line provider
        config: Heuristic configuration
        max_pages: Only scan this many leading pages when set

    Returns:
        One PageLines record per page that has at least one usable line
    """
    page_count = provider.get_page_count() or 0
    if max_pages is not None:
        page_count = min(page_count, max_pages)

    pages = []
    for page_number in range(1, page_count + 1):
        page_data = provider.get_column_aware_lines(page_number)
        if page_data is None or not page_data.segments:
            continue

        lines = [
            line
            for segment in page_data.segments
            for line in segment.lines
            if line.text and not is_boilerplate(line.text, config)
        ]
        if lines:
            pages.append(PageLines(page_number, page_data, lines))

    return pages


def analyze_font_statistics(lines: Iterable[Line]) -> Optional[FontStatistics]:
    """
    Derive the body font of a document from its lines.

    The body size is the mode of the sizes rounded to one decimal; the body
    font name is the most frequent name, ties going to the first one seen.
    Returns None when no line has a measurable font size.
    """
    lines = list(lines)
    sizes = np.array([line.font_size for line in lines if line.font_size and line.font_size > 0],
                     dtype=float)
    if sizes.size == 0:
        return None

    size_counts = Counter(round_font_size(size) for size in sizes)
    body_font_size = size_counts.most_common(1)[0][0]

    name_counts = Counter(line.font_name for line in lines if line.font_name)
    body_font_name = name_counts.most_common(1)[0][0] if name_counts else None

    return FontStatistics(
        body_font_size=body_font_size,
        body_font_name=body_font_name,
        line_count=len(lines),
        distinct_sizes=len(size_counts),
    )


def is_italic_font(font_name: Optional[str]) -> bool:
    if not font_name:
        return False
    lower = font_name.lower()
    return (
        "italic" in lower
        or "oblique" in lower
        or "-it" in lower
        or "_it" in lower
        or re.search(r'[^a-z]it[^a-z]', lower) is not None
        or lower.endswith("it")
        or "slant" in lower
    )


def is_bold_font(font_name: Optional[str]) -> bool:
    if not font_name:
        return False
    lower = font_name.lower()
    return (
        "bold" in lower
        or "-bd" in lower
        or "_bd" in lower
        or "-b" in lower
        or "black" in lower
        or "heavy" in lower
        or "semibold" in lower
        or "demibold" in lower
        # Computer Modern bold extended
        or "cmbx" in lower
        or re.search(r'cmb[^a-z]', lower) is not None
    )


def is_title_case(text: str, ratio: float = DEFAULT_CONFIG.title_case_ratio) -> bool:
    if not text or len(text) < 5:
        return False
    words = text.split()
    if len(words) < 2:
        return False
    upper_words = [word for word in words if re.match(r'[A-Z]', word)]
    return len(upper_words) >= len(words) * ratio


def is_common_section_name(text: str) -> bool:
    """Whether a line names a well-known section, ignoring any numbering prefix."""
    if not text or len(text) < 2 or text[0].islower():
        return False

    stripped = strip_section_number(text).lower()
    if len(stripped) < 2:
        return False
    return matches_section_name(stripped)


def is_abstract_heading(text: str) -> bool:
    return is_common_section_name(text) and ABSTRACT_PATTERN.match(strip_section_number(text)) is not None


def calculate_number_depth(prefix: Optional[str]) -> int:
    """
    Depth of a numbering prefix.

    "1" -> 1, "1." -> 1, "1.1" -> 2, "1.1.1" -> 3, "A." -> 1
    """
    if not prefix:
        return 0
    if "." not in prefix:
        return 1
    if prefix.endswith("."):
        prefix = prefix[:-1]
    return len(prefix.split("."))


def is_full_width_in_column(line: Line, page_data: ColumnAwarePageData,
                            tolerance: float = DEFAULT_CONFIG.full_width_tolerance) -> bool:
    """Whether the visible width of a line fills its column (or the content area for full-width lines)."""
    columns = page_data.columns
    if 0 <= line.column_index < len(columns):
        available = columns[line.column_index].width
    elif columns:
        available = columns[-1].right - columns[0].left
    else:
        available = page_data.page_width - page_data.margin_left - page_data.margin_right

    if available <= 0:
        return False
    line_width = sum(item.width for item in line.items)
    return line_width > available * (1 - tolerance)


def analyze_line_as_heading(line: Line, page_number: int, font_stats: FontStatistics,
                            page_data: ColumnAwarePageData,
                            config: HeuristicConfig = DEFAULT_CONFIG) -> Optional[HeadingCandidate]:
    """
    Decide whether a line is a heading candidate.

    Four independent signals are evaluated: a numbering prefix, a larger font,
    title case, and a known section name. Numbered lines must start at their
    column's left edge, continue with an uppercase word and not fill the
    column; the other signals carry their own gates.

    Args:
        line: Column-aware line
        page_number: 1-based page number
        font_stats: Body font statistics for the document
        page_data: Layout data of the page the line belongs to
        config: Heuristic thresholds

    Returns:
        A HeadingCandidate, or None when the line is not a heading
    """
    text = (line.text or "").strip()
    if len(text) < config.min_line_length or len(text) > config.max_line_length:
        return None

    is_numbered = NUMBERED_SECTION_PATTERN.match(text) is not None
    number_prefix = None
    number_depth = 0
    remainder = text
    if is_numbered:
        match = SECTION_NUMBER_EXTRACT.match(text)
        number_prefix = match.group(1).rstrip()
        number_depth = calculate_number_depth(number_prefix)
        remainder = text[match.end():].strip()

    font_size = line.font_size or 0.0
    font_name = line.font_name or None
    body_size = font_stats.body_font_size

    is_larger_font = font_size > body_size * config.larger_font_ratio
    is_smaller_font = font_size < body_size * config.smaller_font_ratio
    is_different_font = bool(font_name and font_stats.body_font_name and font_name != font_stats.body_font_name)
    has_font_differentiation = (
        is_larger_font or is_italic_font(font_name) or is_bold_font(font_name) or is_different_font
    )
    is_at_column_start = line.is_at_column_start is True
    is_full_width = is_full_width_in_column(line, page_data, config.full_width_tolerance)

    if is_numbered:
        # In-text references ("see 2 Related Work") do not start at the column edge
        if not is_at_column_start:
            return None
        if not remainder or not remainder[0].isupper():
            return None
        # Full-width numbered lines are equation or table labels
        if is_full_width:
            return None

    first_run = line.items[0].text if line.items else text

    is_non_numbered_heading = (
        not is_numbered and is_larger_font and len(text) < config.non_numbered_max_length and is_at_column_start
    )
    is_title_case_heading = (
        not is_numbered
        and not is_smaller_font
        and is_title_case(first_run, config.title_case_ratio)
        and is_at_column_start
    )
    is_common_section_heading = is_common_section_name(text) and has_font_differentiation

    if not (is_numbered or is_non_numbered_heading or is_title_case_heading or is_common_section_heading):
        return None

    if not is_numbered and is_title_case_heading:
        title = first_run
    elif is_numbered:
        title = remainder or text
    else:
        title = text
    title = title.strip()

    if len(title) < 2:
        return None

    logging.debug(f"Heading candidate on page {page_number}: {text!r} "
                  f"(numbered={is_numbered}, large={is_non_numbered_heading}, "
                  f"title_case={is_title_case_heading}, section_name={is_common_section_heading})")

    navigation_top = (line.original_y + font_size) if line.original_y is not None else 0.0

    return HeadingCandidate(
        text=text,
        title=f"{number_prefix} {title}" if number_prefix else title,
        page_number=page_number,
        page_index=page_number - 1,
        x=line.x or 0.0,
        y=line.y or 0.0,
        top=navigation_top or line.y or 0.0,
        font_size=font_size,
        font_name=font_name,
        number_prefix=number_prefix,
        number_depth=number_depth,
        is_numbered=is_numbered,
        column_index=line.column_index if line.column_index is not None else -1,
        is_full_width=is_full_width,
    )


def page_one_skip_threshold(page: PageLines, config: HeuristicConfig = DEFAULT_CONFIG) -> float:
    """Y above which page-1 lines belong to the title/author block."""
    abstract_line = next((line for line in page.lines if is_abstract_heading(line.text)), None)
    if abstract_line is not None:
        return abstract_line.y - 1
    return page.page_data.page_height * config.page_one_skip_ratio


def collect_heading_candidates(pages: List[PageLines], font_stats: FontStatistics,
                               config: HeuristicConfig = DEFAULT_CONFIG) -> List[HeadingCandidate]:
    """Classify every line of every page, skipping the title block of page 1."""
    candidates = []

    for page in pages:
        skip_threshold_y = page_one_skip_threshold(page, config) if page.page_number == 1 else 0.0

        for line in page.lines:
            if page.page_number == 1 and line.y < skip_threshold_y:
                continue

            candidate = analyze_line_as_heading(line, page.page_number, font_stats, page.page_data, config)
            if candidate:
                candidates.append(candidate)

    logging.info(f"Found {len(candidates)} heading candidates")
    return candidates


def _clean_title_text(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    cleaned = text.strip()
    cleaned = re.sub(r'\*+$', '', cleaned).strip()  # footnote markers
    cleaned = re.sub(r'^title:\s*', '', cleaned, flags=re.IGNORECASE).strip()
    if len(cleaned) < 5 or not re.search(r'[a-zA-Z]{3,}', cleaned):
        return None
    return cleaned


def detect_title(page: PageLines, body_font_size: float, config: HeuristicConfig = DEFAULT_CONFIG) -> Optional[str]:
    """
    Detect the document title on the first page.

    The title is the block of largest-font lines in the top region of the
    page, joined top to bottom with hyphenated words rejoined.
    """
    top_threshold = page.page_data.page_height * config.title_region_ratio
    title_region = [line for line in page.lines if line.y < top_threshold]
    if not title_region:
        return None

    large_lines = [line for line in title_region if line.font_size >= body_font_size * config.title_font_ratio]
    if not large_lines:
        largest = max(title_region, key=lambda line: line.font_size or 0)
        if largest.font_size > body_font_size:
            return _clean_title_text(largest.text)
        return None

    large_lines.sort(key=lambda line: (line.y, -(line.font_size or 0)))
    max_font_size = max(line.font_size or 0 for line in large_lines)

    title_lines = []
    found_title_block = False
    for line in large_lines:
        if abs(line.font_size - max_font_size) < 0.5:
            stripped = line.text.strip()
            lower = stripped.lower()
            if re.match(r'^\d+\.?\s*$', stripped):
                continue
            if lower in ("abstract", "introduction") or lower.startswith("chapter "):
                continue
            title_lines.append(line)
            found_title_block = True
        elif found_title_block:
            break

    if not title_lines:
        return None

    title = ""
    for line in sorted(title_lines, key=lambda line: line.y):
        text = line.text.strip()
        if not title:
            title = text
        elif title.endswith("-"):
            title = title[:-1] + text
        else:
            title += " " + text

    return _clean_title_text(title)


def detect_abstract(pages: List[PageLines], body_font_size: float,
                    config: HeuristicConfig = DEFAULT_CONFIG) -> Optional[AbstractAnchor]:
    for page in pages:
        for line in page.lines:
            stripped = strip_section_number((line.text or "").strip())
            lower = stripped.lower()
            if not (lower in ("abstract", "abstract:", "abstract.") or re.match(r'^abstract\s*[-–—]\s*', lower)):
                continue

            is_larger = line.font_size > body_font_size * config.larger_font_ratio
            if is_larger or is_bold_font(line.font_name) or lower == "abstract":
                return AbstractAnchor(
                    page_index=page.page_number - 1,
                    top=line.original_y or line.y or 0.0,
                    left=line.x or 0.0,
                    column_index=line.column_index,
                )
    return None


def detect_document_metadata(provider: ColumnAwareLineProvider,
                             config: HeuristicConfig = DEFAULT_CONFIG) -> DocumentMetadata:
    """
    Detect the document title and the Abstract anchor from the leading pages.

    Args:
        provider: Column-aware line provider
        config: Heuristic configuration

    Returns:
        DocumentMetadata; either field is None when not found
    """
    result = DocumentMetadata()
    if provider is None or not provider.is_built:
        logging.warning("Line provider not built, cannot detect document metadata")
        return result

    pages = collect_page_lines(provider, config, max_pages=config.metadata_pages)
    pages = [
        page._replace(lines=[line for line in page.lines if len(line.text.strip()) >= 2])
        for page in pages
    ]
    font_stats = analyze_font_statistics(line for page in pages for line in page.lines)
    if font_stats is None:
        return result

    first_page = next((page for page in pages if page.page_number == 1), None)
    if first_page is not None:
        result.title = detect_title(first_page, font_stats.body_font_size, config)
    result.abstract = detect_abstract(pages, font_stats.body_font_size, config)

    logging.info(f"Detected title: {result.title!r}, abstract found: {result.abstract is not None}")
    return result
