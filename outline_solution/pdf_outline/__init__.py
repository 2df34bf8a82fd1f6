# PDF Outline Extractor Package
"""
PDF document structure extraction.

Produces a hierarchical outline for a PDF, preferring the embedded bookmark
tree and falling back to heading inference from font and layout statistics
of column-aware text lines.
"""

__version__ = "1.0.0"
__description__ = "Column-aware PDF outline extractor with embedded bookmark support"

from .extractor import PDFOutlineExtractor, OutlineSource, build_outline, build_heuristic_outline
from .hierarchy import flatten_outline
from .models import OutlineItem, FlatOutlineEntry
from .utils import setup_logging
from .processor import process_pdfs

__all__ = [
    'PDFOutlineExtractor',
    'OutlineSource',
    'OutlineItem',
    'FlatOutlineEntry',
    'build_outline',
    'build_heuristic_outline',
    'flatten_outline',
    'setup_logging',
    'process_pdfs',
]
