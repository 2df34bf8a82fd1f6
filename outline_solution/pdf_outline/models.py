"""
Data model shared by the outline pipeline.

Line/page records are produced by a column-aware line provider and are
read-only here. Heading candidates live for a single build only;
``OutlineItem`` is the public result node.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Sequence, Union


# [page_ref, kind, left, top, zoom?]
ExplicitDestination = Sequence[Any]
Destination = Union[str, ExplicitDestination]


@dataclass
class TextItem:
    """A sub-span of a line as rendered by the PDF engine."""
    text: str
    width: float = 0.0


@dataclass
class Line:
    text: str
    font_size: float = 0.0
    font_name: Optional[str] = None
    x: float = 0.0
    y: float = 0.0
    # Navigation-space Y (baseline measured from the page bottom)
    original_y: Optional[float] = None
    is_at_column_start: bool = False
    column_index: int = -1
    items: List[TextItem] = field(default_factory=list)


@dataclass
class ColumnBounds:
    left: float
    right: float

    @property
    def width(self) -> float:
        return self.right - self.left


@dataclass
class ColumnSegment:
    """A vertical band of lines; ``column_index`` is -1 for full-width bands."""
    lines: List[Line] = field(default_factory=list)
    column_index: int = -1


@dataclass
class ColumnAwarePageData:
    page_width: float
    page_height: float
    margin_left: float = 0.0
    margin_right: float = 0.0
    columns: List[ColumnBounds] = field(default_factory=list)
    segments: List[ColumnSegment] = field(default_factory=list)


class PageLines(NamedTuple):
    page_number: int
    page_data: ColumnAwarePageData
    lines: List[Line]


@dataclass
class ResolvedDestination:
    page_index: int
    left: float = 0.0
    top: float = 0.0


@dataclass
class BookmarkEntry:
    """One entry of an embedded bookmark hierarchy."""
    title: str
    dest: Optional[Destination] = None
    items: List["BookmarkEntry"] = field(default_factory=list)


@dataclass
class FontStatistics:
    body_font_size: float
    body_font_name: Optional[str]
    line_count: int = 0
    distinct_sizes: int = 0


@dataclass
class HeadingCandidate:
    text: str
    title: str
    page_number: int
    page_index: int
    x: float
    y: float
    top: float
    font_size: float
    font_name: Optional[str]
    number_prefix: Optional[str]
    number_depth: int
    is_numbered: bool
    column_index: int = -1
    is_full_width: bool = False
    level: int = 0


def new_item_id() -> str:
    return str(uuid.uuid4())


@dataclass
class OutlineItem:
    title: str
    page_index: int
    left: float = 0.0
    top: float = 0.0
    column_index: int = -1
    children: List["OutlineItem"] = field(default_factory=list)
    id: str = field(default_factory=new_item_id)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "pageIndex": self.page_index,
            "left": self.left,
            "top": self.top,
            "columnIndex": self.column_index,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class FlatOutlineEntry:
    title: str
    page_number: int
    depth: int

    def to_dict(self) -> Dict:
        return {"title": self.title, "pageNumber": self.page_number, "depth": self.depth}


@dataclass
class AbstractAnchor:
    page_index: int
    top: float
    left: float
    column_index: int = -1


@dataclass
class DocumentMetadata:
    title: Optional[str] = None
    abstract: Optional[AbstractAnchor] = None


class OutlineDocument(Protocol):
    """Access to the embedded outline and destination tables of a document."""

    @property
    def all_named_destinations(self) -> Dict[str, ExplicitDestination]:
        ...

    async def get_outline(self) -> List[BookmarkEntry]:
        ...

    async def get_destination(self, name: str) -> Optional[ExplicitDestination]:
        ...

    async def get_page_index(self, page_ref: Any) -> int:
        ...


class ColumnAwareLineProvider(Protocol):
    """Per-page text lines segmented into layout columns."""

    @property
    def is_built(self) -> bool:
        ...

    def get_page_count(self) -> int:
        ...

    def get_column_aware_lines(self, page_number: int) -> Optional[ColumnAwarePageData]:
        ...
