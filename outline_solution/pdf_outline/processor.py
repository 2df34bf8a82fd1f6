"""
Run the outline extractor over many PDFs and write the collected outlines.

Every file gets an entry in the batch results, including files that could
not be opened, and each successful entry records whether its outline came
from embedded bookmarks or from heading detection.
"""

import os
import logging
import concurrent.futures
from pathlib import Path
from typing import Callable, List, Dict, Optional, Tuple
from datetime import datetime

from .extractor import PDFOutlineExtractor
from .utils import save_output


def _failed_outline(pdf_path: str, error: str) -> Dict:
    return {
        "filename": os.path.basename(pdf_path),
        "status": "error",
        "error": error,
        "title": "",
        "source": None,
        "outline": [],
        "flat_outline": []
    }


def process_single_pdf(pdf_path: str, extractor: PDFOutlineExtractor,
                       include_metadata: bool = False, progress_callback: Callable = None) -> Dict:
    """Extract one outline; an unreadable PDF yields an error entry instead of raising."""
    filename = os.path.basename(pdf_path)
    if progress_callback:
        progress_callback(f"Extracting outline from {filename}")

    try:
        outline = extractor.extract_outline(pdf_path, include_metadata, progress_callback)
    except Exception as e:
        logging.error(f"No outline for {filename}: {str(e)}")
        return _failed_outline(pdf_path, str(e))

    return {"filename": filename, "status": "success", **outline}


def _tally(result: Dict, stats: Dict):
    if result["status"] != "success":
        stats["failed"] += 1
        return
    stats["successful"] += 1
    stats["sources"][result["source"]] = stats["sources"].get(result["source"], 0) + 1


def _extract_in_threads(pdf_paths: List[str], extractor: PDFOutlineExtractor, include_metadata: bool,
                        max_workers: int, progress_callback: Optional[Callable]) -> List[Dict]:
    results = []
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        pending = {
            executor.submit(process_single_pdf, pdf_path, extractor, include_metadata, progress_callback): pdf_path
            for pdf_path in pdf_paths
        }
        for future in concurrent.futures.as_completed(pending):
            pdf_path = pending[future]
            try:
                results.append(future.result())
            except Exception as e:
                logging.error(f"Worker failed on {pdf_path}: {str(e)}")
                results.append(_failed_outline(pdf_path, str(e)))
            if progress_callback:
                progress_callback(f"{len(results)}/{len(pdf_paths)} outlines done")
    return results


def _extract_in_order(pdf_paths: List[str], extractor: PDFOutlineExtractor, include_metadata: bool,
                      progress_callback: Optional[Callable]) -> List[Dict]:
    results = []
    for i, pdf_path in enumerate(pdf_paths, start=1):
        if progress_callback:
            progress_callback(f"[{i}/{len(pdf_paths)}] {os.path.basename(pdf_path)}")
        results.append(process_single_pdf(pdf_path, extractor, include_metadata, progress_callback))
    return results


def process_pdfs(pdf_paths: List[str], output_dir: str = "outputs", parallel: bool = True,
                 max_workers: int = 4, include_metadata: bool = False,
                 output_formats: List[str] = None,
                 config: Dict = None,
                 progress_callback: Callable = None) -> Dict:
    """
    Extract outlines from a batch of PDFs and save them under output_dir.

    A single PDFOutlineExtractor is shared by all workers so its counters
    cover the whole batch.

    Args:
        pdf_paths: PDF files to read
        output_dir: Folder for the per-file JSON outlines and combined summaries
        parallel: Use a thread pool when more than one file is given
        max_workers: Thread pool size
        include_metadata: Add document metadata and abstract position to each outline
        output_formats: Any of 'json', 'txt', 'md'
        config: Keyword settings forwarded to PDFOutlineExtractor
        progress_callback: Called with short status messages

    Returns:
        Dict with 'processing_info', 'statistics' (including the count of
        outlines per source) and 'results' ordered by filename
    """
    output_formats = output_formats or ['json']
    extractor_config = config or {}
    extractor = PDFOutlineExtractor(**extractor_config)

    stats = {
        "total_files": len(pdf_paths),
        "successful": 0,
        "failed": 0,
        "sources": {},
        "start_time": datetime.now().isoformat(),
    }

    if progress_callback:
        progress_callback(f"Extracting outlines from {len(pdf_paths)} PDFs")

    if parallel and len(pdf_paths) > 1:
        results = _extract_in_threads(pdf_paths, extractor, include_metadata, max_workers, progress_callback)
    else:
        results = _extract_in_order(pdf_paths, extractor, include_metadata, progress_callback)

    for result in results:
        _tally(result, stats)
    results.sort(key=lambda r: r["filename"])

    extractor_stats = extractor.get_processing_stats()
    stats.update({
        "end_time": datetime.now().isoformat(),
        "success_rate": stats["successful"] / stats["total_files"] * 100 if stats["total_files"] else 0,
        "total_headings_extracted": extractor_stats.get("total_headings", 0),
        "avg_headings_per_file": extractor_stats.get("avg_headings_per_file", 0),
        "avg_processing_time": extractor_stats.get("avg_processing_time", 0)
    })

    output_data = {
        "processing_info": {
            "timestamp": datetime.now().isoformat(),
            "total_files": len(pdf_paths),
            "configuration": extractor_config,
            "output_formats": output_formats,
            "parallel_processing": parallel
        },
        "statistics": stats,
        "results": results
    }

    save_output(output_data, Path(output_dir), output_formats)

    logging.info(f"Outlines extracted for {stats['successful']}/{stats['total_files']} PDFs "
                 f"(sources: {stats['sources']})")
    return output_data


def validate_batch_input(pdf_paths: List[str]) -> Tuple[List[str], List[str]]:
    """Split paths into readable PDFs and 'path: reason' strings for the rest."""
    valid_paths = []
    rejected = []

    for pdf_path in pdf_paths:
        if not os.path.exists(pdf_path):
            rejected.append(f"{pdf_path}: File does not exist")
        elif not pdf_path.lower().endswith('.pdf'):
            rejected.append(f"{pdf_path}: Not a PDF file")
        elif os.path.getsize(pdf_path) == 0:
            rejected.append(f"{pdf_path}: Empty file")
        else:
            valid_paths.append(pdf_path)

    return valid_paths, rejected
