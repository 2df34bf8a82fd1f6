"""
Outline orchestration and the file-level PDF outline extractor.
"""

import asyncio
import enum
import fitz
import os
import time
import json
import logging
from pathlib import Path
from typing import List, Dict, Tuple, Optional
from datetime import datetime

from .analysis import (
    analyze_font_statistics,
    collect_heading_candidates,
    collect_page_lines,
    detect_document_metadata,
)
from .config import DEFAULT_COLUMN_CONFIG, DEFAULT_CONFIG, ColumnDetectionConfig, HeuristicConfig
from .hierarchy import (
    assign_heading_levels,
    build_outline_tree,
    flatten_outline,
    purge_reference_children,
)
from .models import ColumnAwareLineProvider, OutlineDocument, OutlineItem
from .native import extract_native_outline
from .text_extraction import ColumnAwareTextIndex, PyMuPDFDocument


class OutlineSource(enum.Enum):
    NATIVE = "native"
    PROMOTED_ROOT = "promoted_root"
    HEURISTIC = "heuristic"


def build_heuristic_outline(provider: Optional[ColumnAwareLineProvider],
                            config: HeuristicConfig = DEFAULT_CONFIG) -> List[OutlineItem]:
    """
    Infer an outline from text lines and font metadata.

    Returns an empty list when the provider has not finished indexing or the
    document has no measurable fonts.
    """
    if provider is None or not provider.is_built:
        logging.warning("Line provider not built, cannot generate heuristic outline")
        return []

    try:
        pages = collect_page_lines(provider, config)
        font_stats = analyze_font_statistics(line for page in pages for line in page.lines)
        if font_stats is None:
            logging.info("No measurable font sizes, skipping heuristic outline")
            return []

        logging.info(f"Body text: fontSize={font_stats.body_font_size:.1f}, fontName={font_stats.body_font_name}")

        candidates = collect_heading_candidates(pages, font_stats, config)
        if not candidates:
            logging.info("No heading candidates found")
            return []

        outline = build_outline_tree(assign_heading_levels(candidates))
        logging.info(f"Heuristic outline built with {len(outline)} top-level items")
        return purge_reference_children(outline)

    except Exception as e:
        logging.error(f"Error building heuristic outline: {str(e)}", exc_info=True)
        return []


async def build_outline_with_source(document: Optional[OutlineDocument],
                                    provider: Optional[ColumnAwareLineProvider],
                                    config: HeuristicConfig = DEFAULT_CONFIG) -> Tuple[List[OutlineItem], OutlineSource]:
    """
    Choose between the embedded outline and the heuristic one.

    A single embedded root with several children is replaced by its children;
    a single root with at most one child is treated as unusable. Never raises.

    Args:
        document: Document exposing the embedded outline, or None
        provider: Column-aware line provider for the heuristic fallback
        config: Heuristic configuration

    Returns:
        Tuple of (top-level outline items, source the outline came from)
    """
    native_outline = []
    if document is not None:
        try:
            native_outline = await extract_native_outline(document, provider, config)
        except Exception as e:
            logging.warning(f"Could not read embedded outline: {e}")
            native_outline = []

    if native_outline:
        if len(native_outline) == 1 and len(native_outline[0].children) > 1:
            logging.info("Single root detected, promoting children to top level")
            return native_outline[0].children, OutlineSource.PROMOTED_ROOT
        if len(native_outline) == 1:
            logging.info("Embedded outline unusable, building heuristic outline")
        else:
            logging.info(f"Using embedded outline with {len(native_outline)} top-level items")
            return native_outline, OutlineSource.NATIVE
    else:
        logging.info("No embedded outline found, building heuristic outline")

    return build_heuristic_outline(provider, config), OutlineSource.HEURISTIC


async def build_outline(document: Optional[OutlineDocument], provider: Optional[ColumnAwareLineProvider],
                        config: HeuristicConfig = DEFAULT_CONFIG) -> List[OutlineItem]:
    outline, _ = await build_outline_with_source(document, provider, config)
    return outline


class PDFOutlineExtractor:
    def __init__(self, custom_filters: List[str] = None,
                 column_config: ColumnDetectionConfig = DEFAULT_COLUMN_CONFIG, **heuristic_settings):
        """
        Initialize the PDF outline extractor.

        Args:
            custom_filters: Regex patterns removed from every text span
            column_config: Column detection tuning for the line index
            **heuristic_settings: Overrides for HeuristicConfig fields, e.g. larger_font_ratio=1.1
        """
        self.custom_filters = custom_filters or []
        self.column_config = column_config
        self.config = DEFAULT_CONFIG.with_overrides(heuristic_settings)

        self.processing_stats = {
            "total_files": 0,
            "successful_extractions": 0,
            "failed_extractions": 0,
            "total_headings": 0,
            "total_processing_time": 0.0
        }
        logging.info(f"Initialized PDFOutlineExtractor with {len(heuristic_settings)} heuristic overrides")

    def get_processing_stats(self) -> Dict:
        """Get processing statistics."""
        stats = self.processing_stats.copy()
        if stats["total_files"] > 0:
            stats["success_rate"] = stats["successful_extractions"] / stats["total_files"] * 100
            stats["avg_headings_per_file"] = stats["total_headings"] / stats["successful_extractions"] if stats["successful_extractions"] > 0 else 0
            stats["avg_processing_time"] = stats["total_processing_time"] / stats["total_files"]
        return stats

    def validate_pdf(self, pdf_path: str) -> Tuple[bool, Optional[str]]:
        """
        Validate PDF file before processing.

        Args:
            pdf_path: Path to PDF file

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            if not os.path.exists(pdf_path):
                return False, "File does not exist"

            if not pdf_path.lower().endswith('.pdf'):
                return False, "File is not a PDF"

            with fitz.open(pdf_path) as doc:
                if doc.page_count == 0:
                    return False, "PDF has no pages"

                if doc.needs_pass:
                    return False, "PDF is password protected"

            return True, None

        except Exception as e:
            return False, f"PDF validation error: {str(e)}"

    def extract_metadata(self, doc: fitz.Document, pdf_path: str) -> Dict:
        """Document-information metadata of an open PDF."""
        metadata = doc.metadata or {}
        return {
            "title": metadata.get("title", ""),
            "author": metadata.get("author", ""),
            "subject": metadata.get("subject", ""),
            "creator": metadata.get("creator", ""),
            "producer": metadata.get("producer", ""),
            "page_count": doc.page_count,
            "file_size": os.path.getsize(pdf_path),
        }

    def extract_outline(self, pdf_path: str, include_metadata: bool = False,
                        progress_callback: callable = None) -> Dict:
        """
        Extract the hierarchical outline of a PDF file.

        Args:
            pdf_path: Path to the PDF file
            include_metadata: Whether to include PDF metadata in output
            progress_callback: Optional callback function for progress updates

        Returns:
            Dictionary containing title, outline source, nested outline and flat outline
        """
        from . import __version__

        start_time = time.time()
        self.processing_stats["total_files"] += 1

        try:
            is_valid, error_msg = self.validate_pdf(pdf_path)
            if not is_valid:
                logging.error(f"PDF validation failed for {pdf_path}: {error_msg}")
                raise ValueError(f"Invalid PDF: {error_msg}")

            with fitz.open(pdf_path) as doc:
                if progress_callback:
                    progress_callback("Indexing text lines...")

                text_index = ColumnAwareTextIndex(doc, self.column_config, self.custom_filters)
                text_index.build()

                if progress_callback:
                    progress_callback("Building outline...")

                outline, source = asyncio.run(
                    build_outline_with_source(PyMuPDFDocument(doc), text_index, self.config)
                )

                if progress_callback:
                    progress_callback("Detecting title...")

                document_metadata = detect_document_metadata(text_index, self.config)
                title = document_metadata.title or (doc.metadata or {}).get("title") or ""

                flat_outline = flatten_outline(outline)
                output = {
                    "title": title,
                    "source": source.value,
                    "outline": [item.to_dict() for item in outline],
                    "flat_outline": [entry.to_dict() for entry in flat_outline],
                }

                if include_metadata:
                    processing_time = time.time() - start_time
                    abstract = document_metadata.abstract
                    output["metadata"] = {
                        **self.extract_metadata(doc, pdf_path),
                        "processing_time": f"{processing_time:.2f} seconds",
                        "headings_count": len(flat_outline),
                        "abstract": {
                            "pageIndex": abstract.page_index,
                            "top": abstract.top,
                            "left": abstract.left,
                            "columnIndex": abstract.column_index,
                        } if abstract else None,
                        "extraction_timestamp": datetime.now().isoformat(),
                        "extractor_version": __version__,
                    }

            self.processing_stats["successful_extractions"] += 1
            self.processing_stats["total_headings"] += len(flat_outline)
            self.processing_stats["total_processing_time"] += time.time() - start_time

            logging.info(f"Extracted {len(flat_outline)} headings ({source.value}) from {pdf_path} "
                         f"in {time.time() - start_time:.2f} seconds")

            if progress_callback:
                progress_callback("Complete!")

            return output

        except Exception as e:
            self.processing_stats["failed_extractions"] += 1
            self.processing_stats["total_processing_time"] += time.time() - start_time
            logging.error(f"Error extracting outline from {pdf_path}: {str(e)}")
            raise

    def save_output(self, output: Dict, output_path: Path):
        """
        Save the extracted outline to a JSON file with pretty printing.

        Args:
            output: Dictionary containing outline data
            output_path: Path to save the JSON file
        """
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(output, f, indent=2, ensure_ascii=False)
            logging.info(f"Saved output to {output_path}")
        except Exception as e:
            logging.error(f"Error saving output to {output_path}: {str(e)}")
            raise
