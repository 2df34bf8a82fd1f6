import pytest

from pdf_outline.models import (
    BookmarkEntry,
    ColumnAwarePageData,
    ColumnBounds,
    ColumnSegment,
    Line,
    TextItem,
)

PAGE_WIDTH = 612.0
PAGE_HEIGHT = 792.0
SINGLE_COLUMN = [ColumnBounds(50.0, 562.0)]
TWO_COLUMNS = [ColumnBounds(50.0, 300.0), ColumnBounds(320.0, 570.0)]


def make_line(text, font_size=10.0, font_name="Times-Roman", x=50.0, y=400.0, column_index=0,
              is_at_column_start=True, width=None, original_y=None):
    if width is None:
        width = len(text) * font_size * 0.5
    return Line(
        text=text,
        font_size=font_size,
        font_name=font_name,
        x=x,
        y=y,
        original_y=original_y,
        is_at_column_start=is_at_column_start,
        column_index=column_index,
        items=[TextItem(text=text, width=width)],
    )


def body_lines(count=20, y_start=420.0, column_index=0, x=50.0):
    return [
        make_line(f"the body text line number {i} continues here", x=x, y=y_start + i * 12,
                  column_index=column_index, width=200.0)
        for i in range(count)
    ]


def make_page(lines, columns=None, page_width=PAGE_WIDTH, page_height=PAGE_HEIGHT):
    columns = SINGLE_COLUMN if columns is None else columns
    column_indexes = sorted({line.column_index for line in lines})
    segments = [
        ColumnSegment(lines=[line for line in lines if line.column_index == index], column_index=index)
        for index in column_indexes
    ]
    return ColumnAwarePageData(
        page_width=page_width,
        page_height=page_height,
        margin_left=50.0,
        margin_right=page_width - columns[-1].right if columns else 50.0,
        columns=list(columns),
        segments=segments,
    )


class FakeLineProvider:
    def __init__(self, pages, is_built=True):
        self.pages = list(pages)
        self._is_built = is_built

    @property
    def is_built(self):
        return self._is_built

    def get_page_count(self):
        return len(self.pages)

    def get_column_aware_lines(self, page_number):
        if 1 <= page_number <= len(self.pages):
            return self.pages[page_number - 1]
        return None


class FakeDocument:
    """In-memory outline document; page refs are strings like 'p0'."""

    def __init__(self, outline=None, named=None, lazy_named=None, page_count=10, outline_error=None):
        self.outline = outline or []
        self.named = named or {}
        self.lazy_named = lazy_named or {}
        self.page_refs = {f"p{i}": i for i in range(page_count)}
        self.outline_error = outline_error
        self.destination_calls = []
        self.page_index_calls = []

    @property
    def all_named_destinations(self):
        return self.named

    async def get_outline(self):
        if self.outline_error is not None:
            raise self.outline_error
        return self.outline

    async def get_destination(self, name):
        self.destination_calls.append(name)
        return self.lazy_named.get(name)

    async def get_page_index(self, page_ref):
        self.page_index_calls.append(page_ref)
        return self.page_refs[page_ref]


def bookmark(title, page=0, *children, left=72, top=700):
    return BookmarkEntry(title=title, dest=[f"p{page}", "XYZ", left, top, None], items=list(children))


def titles(items):
    return [item.title for item in items]


@pytest.fixture
def heuristic_provider():
    """One page of numbered headings over body text, plus a reference list."""
    lines = [
        make_line("1 Introduction", font_name="Times-Bold", y=300.0, width=70.0),
        *body_lines(5, y_start=315.0),
        make_line("2 Method", font_name="Times-Bold", y=400.0, width=40.0),
        make_line("2.1 Data Collection", font_name="Times-Bold", y=420.0, width=90.0),
        *body_lines(10, y_start=440.0),
        make_line("3 References", font_name="Times-Bold", y=600.0, width=60.0),
        make_line("3.1 Extra Material", font_name="Times-Bold", y=620.0, width=90.0),
        *body_lines(5, y_start=640.0),
    ]
    return FakeLineProvider([make_page(lines)])
