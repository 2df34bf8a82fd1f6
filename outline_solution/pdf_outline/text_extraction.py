"""
PyMuPDF-backed document access and column-aware line indexing.
"""

import fitz
import unicodedata
import re
import numpy as np
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from .config import DEFAULT_COLUMN_CONFIG, ColumnDetectionConfig
from .models import (
    BookmarkEntry,
    ColumnAwarePageData,
    ColumnBounds,
    ColumnSegment,
    Destination,
    ExplicitDestination,
    Line,
    TextItem,
)


def normalize_text(text: str, custom_filters: List[str] = None) -> str:
    """Normalize text by removing extra spaces and normalizing unicode."""
    if custom_filters is None:
        custom_filters = []

    text = unicodedata.normalize('NFKC', text.strip())
    text = re.sub(r'\s+', ' ', text)

    for filter_pattern in custom_filters:
        text = re.sub(filter_pattern, '', text, flags=re.IGNORECASE)

    return text


class PyMuPDFDocument:
    """Outline and destination access for an open PyMuPDF document."""

    def __init__(self, doc: fitz.Document, named_destinations: Dict[str, ExplicitDestination] = None):
        self._doc = doc
        self._xref_to_index = {doc.page_xref(index): index for index in range(doc.page_count)}
        self._pre_resolved = dict(named_destinations or {})
        self._resolved_names: Optional[Dict[str, ExplicitDestination]] = None

    @property
    def all_named_destinations(self) -> Dict[str, ExplicitDestination]:
        return self._pre_resolved

    def _explicit_destination(self, page_index: int, to: Any = None, zoom: Any = None,
                              pdf_space: bool = True) -> ExplicitDestination:
        """
        Build a [page_ref, "XYZ", left, top, zoom] destination in PDF user space.

        PyMuPDF reports outline targets with the origin at the top-left of the
        page; those (pdf_space=False) are mapped back through the page's
        inverse transformation matrix so top is measured from the page bottom.
        """
        left, top = 0, 0
        if to is not None:
            point = fitz.Point(to[0], to[1])
            if not pdf_space:
                point = point * ~self._doc[page_index].transformation_matrix
            left, top = point.x, point.y
        return (self._doc.page_xref(page_index), "XYZ", left, top, zoom)

    def _load_named_destinations(self) -> Dict[str, ExplicitDestination]:
        names = {}
        for name, target in self._doc.resolve_names().items():
            page_index = target.get("page", -1)
            if page_index is None or page_index < 0:
                continue
            names[name] = self._explicit_destination(page_index, target.get("to"), target.get("zoom"))
        return names

    def _bookmark_destination(self, page: int, link: Dict) -> Optional[Destination]:
        kind = link.get("kind", fitz.LINK_GOTO)
        named = link.get("nameddest") or link.get("name")
        if kind == fitz.LINK_NAMED and named:
            return named
        # Links into other files or URIs have no target in this document
        if kind not in (fitz.LINK_GOTO, fitz.LINK_NAMED):
            return None

        target_page = link.get("page", page - 1)
        if target_page is None or target_page < 0:
            return named or None
        return self._explicit_destination(target_page, link.get("to"), link.get("zoom"), pdf_space=False)

    async def get_outline(self) -> List[BookmarkEntry]:
        """Nest the flat table of contents by level."""
        toc = self._doc.get_toc(simple=False)
        root: List[BookmarkEntry] = []
        stack: List[Tuple[int, List[BookmarkEntry]]] = [(0, root)]

        for entry in toc:
            level, title, page = entry[0], entry[1], entry[2]
            link = entry[3] if len(entry) > 3 and isinstance(entry[3], dict) else {}
            bookmark = BookmarkEntry(title=normalize_text(title or ""), dest=self._bookmark_destination(page, link))

            while len(stack) > 1 and stack[-1][0] >= level:
                stack.pop()
            stack[-1][1].append(bookmark)
            stack.append((level, bookmark.items))

        return root

    async def get_destination(self, name: str) -> Optional[ExplicitDestination]:
        if self._resolved_names is None:
            self._resolved_names = self._load_named_destinations()
        return self._resolved_names.get(name)

    async def get_page_index(self, page_ref: Any) -> int:
        return self._xref_to_index[page_ref]


def _true_runs(mask: np.ndarray) -> List[Tuple[int, int]]:
    """Inclusive (start, end) index pairs of consecutive True values."""
    padded = np.concatenate(([False], mask, [False]))
    changes = np.flatnonzero(padded[1:] != padded[:-1])
    return list(zip(changes[::2].tolist(), (changes[1::2] - 1).tolist()))


class ColumnAwareTextIndex:
    """
    Text lines of every page, segmented into layout columns.

    Lines come from PyMuPDF's dict extraction. Column gutters are vertical
    strips inside the text area that no ordinary (non-full-width) line
    crosses while enough lines sit on each side of them.
    """

    def __init__(self, doc: fitz.Document, config: ColumnDetectionConfig = DEFAULT_COLUMN_CONFIG,
                 custom_filters: List[str] = None):
        self._doc = doc
        self._config = config
        self._custom_filters = custom_filters or []
        self._pages: List[ColumnAwarePageData] = []
        self._is_built = False

    @property
    def is_built(self) -> bool:
        return self._is_built

    def build(self):
        if self._is_built:
            return
        self._pages = [self._index_page(page) for page in self._doc]
        self._is_built = True
        total_lines = sum(len(line_set.lines) for page in self._pages for line_set in page.segments)
        logging.info(f"Indexed {total_lines} lines on {len(self._pages)} pages")

    def get_page_count(self) -> int:
        return len(self._pages)

    def get_column_aware_lines(self, page_number: int) -> Optional[ColumnAwarePageData]:
        if 1 <= page_number <= len(self._pages):
            return self._pages[page_number - 1]
        return None

    def _read_lines(self, page: fitz.Page) -> List[Tuple[Line, float]]:
        """Lines of a page with their right edges."""
        page_height = page.rect.height
        lines = []

        for block in page.get_text("dict").get("blocks", []):
            if "lines" not in block:
                continue

            for raw_line in block["lines"]:
                spans = []
                items = []
                fonts = Counter()
                for span in raw_line["spans"]:
                    text = normalize_text(span["text"], self._custom_filters)
                    if not text:
                        continue
                    spans.append(span)
                    items.append(TextItem(text=text, width=span["bbox"][2] - span["bbox"][0]))
                    fonts[span["font"]] += len(text)

                if not spans:
                    continue

                line = Line(
                    text=" ".join(item.text for item in items),
                    font_size=max(span["size"] for span in spans),
                    font_name=fonts.most_common(1)[0][0] or None,
                    x=spans[0]["bbox"][0],
                    y=min(span["bbox"][1] for span in spans),
                    original_y=page_height - spans[0]["origin"][1],
                    items=items,
                )
                lines.append((line, max(span["bbox"][2] for span in spans)))

        return lines

    def _detect_gutters(self, lefts: np.ndarray, rights: np.ndarray, page_width: float) -> List[float]:
        config = self._config
        if lefts.size < config.min_lines:
            return []

        content_left, content_right = float(lefts.min()), float(rights.max())
        content_width = content_right - content_left
        if content_width <= 0:
            return []

        narrow = (rights - lefts) < content_width * config.full_width_ratio
        if narrow.sum() < config.min_lines:
            return []
        lefts, rights = lefts[narrow], rights[narrow]

        grid = np.arange(np.floor(content_left), np.ceil(content_right) + 1.0)
        coverage = ((grid[:, None] >= lefts[None, :]) & (grid[:, None] <= rights[None, :])).sum(axis=1)
        open_bins = coverage <= lefts.size * config.gutter_noise_ratio

        min_side = lefts.size * config.gutter_line_threshold
        edge = page_width * config.edge_margin_ratio
        gutters = []
        for start, end in _true_runs(open_bins):
            gap_left, gap_right = float(grid[start]), float(grid[end])
            if gap_right - gap_left < config.min_gutter_width:
                continue
            center = (gap_left + gap_right) / 2
            if center <= edge or center >= page_width - edge:
                continue
            if (rights < gap_left).sum() >= min_side and (lefts > gap_right).sum() >= min_side:
                gutters.append(center)

        return gutters

    @staticmethod
    def _build_column_boundaries(gutters: List[float], page_width: float,
                                 margin_left: float, margin_right: float) -> List[ColumnBounds]:
        if not gutters:
            return [ColumnBounds(margin_left, page_width - margin_right)]

        edges = [margin_left] + sorted(gutters) + [page_width - margin_right]
        return [ColumnBounds(edges[i], edges[i + 1]) for i in range(len(edges) - 1)]

    def _assign_column(self, left: float, right: float, columns: List[ColumnBounds], gutters: List[float]) -> int:
        half_gutter = self._config.min_gutter_width / 2
        if any(left < gutter - half_gutter and right > gutter + half_gutter for gutter in gutters):
            return -1

        center = (left + right) / 2
        for index, column in enumerate(columns):
            if column.left <= center <= column.right:
                return index

        distances = [abs(center - (column.left + column.right) / 2) for column in columns]
        return int(np.argmin(distances))

    @staticmethod
    def _segment_lines(lines: List[Line]) -> List[ColumnSegment]:
        """Split lines into full-width and columned bands in top-to-bottom order."""
        segments = []
        band: List[Line] = []
        band_is_full_width = None

        def flush():
            if not band:
                return
            if band_is_full_width:
                segments.append(ColumnSegment(lines=list(band), column_index=-1))
                return
            for column_index in sorted({line.column_index for line in band}):
                segments.append(ColumnSegment(
                    lines=[line for line in band if line.column_index == column_index],
                    column_index=column_index,
                ))

        for line in sorted(lines, key=lambda line: (line.y, line.x)):
            is_full_width = line.column_index == -1
            if band_is_full_width is not None and is_full_width != band_is_full_width:
                flush()
                band = []
            band.append(line)
            band_is_full_width = is_full_width
        flush()

        return segments

    def _index_page(self, page: fitz.Page) -> ColumnAwarePageData:
        page_width = page.rect.width
        page_height = page.rect.height
        line_extents = self._read_lines(page)

        if not line_extents:
            return ColumnAwarePageData(page_width=page_width, page_height=page_height)

        lines = [line for line, _ in line_extents]
        lefts = np.array([line.x for line in lines], dtype=float)
        rights = np.array([right for _, right in line_extents], dtype=float)

        padding = self._config.margin_padding
        margin_left = max(0.0, float(lefts.min()) - padding)
        margin_right = max(0.0, page_width - float(rights.max()) - padding)

        gutters = self._detect_gutters(lefts, rights, page_width)
        columns = self._build_column_boundaries(gutters, page_width, margin_left, margin_right)

        for line, right in line_extents:
            line.column_index = self._assign_column(line.x, right, columns, gutters)

        column_edges = {}
        for line in lines:
            column_edges[line.column_index] = min(column_edges.get(line.column_index, line.x), line.x)
        for line in lines:
            line.is_at_column_start = line.x - column_edges[line.column_index] <= self._config.column_start_tolerance

        if len(columns) > 1:
            logging.debug(f"Page {page.number + 1}: {len(columns)} columns at "
                          + ", ".join(f"[{c.left:.1f}-{c.right:.1f}]" for c in columns))

        return ColumnAwarePageData(
            page_width=page_width,
            page_height=page_height,
            margin_left=margin_left,
            margin_right=margin_right,
            columns=columns,
            segments=self._segment_lines(lines),
        )
