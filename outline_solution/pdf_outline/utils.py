"""
Logging setup and output writers.
"""

import logging
import json
from typing import Dict, List
from pathlib import Path


def setup_logging(log_level: str = "INFO", log_file: str = "pdf_outline_extractor.log"):
    """Configure root logging with a detailed file log and a short console log."""
    log_levels = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL
    }

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))

    # The pipeline logs through the root logger
    logger = logging.getLogger()
    logger.setLevel(log_levels.get(log_level.upper(), logging.INFO))
    logger.handlers.clear()
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def _write_outline_text(f, items: List[Dict], depth: int = 0):
    for item in items:
        f.write(f"{'  ' * depth}- {item['title']} (Page {item['pageIndex'] + 1})\n")
        _write_outline_text(f, item.get('children', []), depth + 1)


def save_output(output: Dict, output_path: Path, output_formats: List[str]):
    """
    Save batch results in the requested formats.

    JSON writes one file per PDF; TXT and MD write a single combined summary.

    Args:
        output: Batch output with a 'results' list
        output_path: Output directory path
        output_formats: List of output formats ('json', 'txt', 'md')
    """
    output_path.mkdir(parents=True, exist_ok=True)

    for format_type in output_formats:
        try:
            if format_type.lower() == "json":
                for result in output.get('results', []):
                    if result['status'] == 'success':
                        file_output = {
                            "title": result.get('title', ''),
                            "source": result.get('source'),
                            "outline": result.get('outline', []),
                            "flat_outline": result.get('flat_outline', [])
                        }
                        if 'metadata' in result:
                            file_output["metadata"] = result['metadata']

                        file_path = output_path / (Path(result['filename']).stem + ".json")
                        with open(file_path, 'w', encoding='utf-8') as f:
                            json.dump(file_output, f, indent=2, ensure_ascii=False)
                        logging.info(f"Saved JSON to {file_path}")

            elif format_type.lower() == "txt":
                file_path = output_path / "extraction_results.txt"
                with open(file_path, 'w', encoding='utf-8') as f:
                    f.write("PDF Outline Extraction Results\n")
                    f.write("="*50 + "\n\n")

                    for result in output.get('results', []):
                        if result['status'] == 'success':
                            f.write(f"File: {result['filename']}\n")
                            f.write(f"Title: {result.get('title') or 'No title'}\n")
                            f.write("-" * 30 + "\n")
                            _write_outline_text(f, result.get('outline', []))
                            f.write("\n")
                logging.info(f"Saved TXT output to {file_path}")

            elif format_type.lower() == "md":
                file_path = output_path / "extraction_results.md"
                with open(file_path, 'w', encoding='utf-8') as f:
                    f.write("# PDF Outline Extraction Results\n\n")

                    for result in output.get('results', []):
                        if result['status'] == 'success':
                            f.write(f"## {result['filename']}\n\n")
                            if result.get('title'):
                                f.write(f"**Title:** {result['title']}\n\n")

                            f.write("### Outline\n\n")
                            for entry in result.get('flat_outline', []):
                                f.write(f"{'  ' * entry['depth']}- {entry['title']} *(page {entry['pageNumber']})*\n")
                            f.write("\n---\n\n")
                logging.info(f"Saved MD output to {file_path}")

            else:
                raise ValueError(f"Unsupported format: {format_type}")

        except Exception as e:
            logging.error(f"Error saving {format_type} output: {str(e)}")
            raise
