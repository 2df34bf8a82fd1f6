#!/usr/bin/env python3
"""
Docker entry point: extracts outlines for all PDFs in /app/input into /app/output.
"""

import sys
import time
from pathlib import Path

sys.path.insert(0, '/app')

from pdf_outline import PDFOutlineExtractor, setup_logging


def main():
    """Process all PDFs from /app/input to /app/output"""
    input_dir = Path("/app/input")
    output_dir = Path("/app/output")

    input_dir.mkdir(parents=True, exist_ok=True)
    output_dir.mkdir(parents=True, exist_ok=True)

    setup_logging("WARNING", None)

    pdf_files = sorted(input_dir.glob("*.pdf"))

    if not pdf_files:
        print("No PDF files found in /app/input directory")
        print("Please mount a volume with PDF files: -v /path/to/pdfs:/app/input")
        return

    print(f"Found {len(pdf_files)} PDF file(s) to process")

    extractor = PDFOutlineExtractor()

    processed_count = 0
    total_start_time = time.time()

    for pdf_file in pdf_files:
        try:
            start_time = time.time()
            print(f"Processing: {pdf_file.name}")

            result = extractor.extract_outline(str(pdf_file))

            output_path = output_dir / (pdf_file.stem + ".json")
            extractor.save_output(result, output_path)

            processing_time = time.time() - start_time
            print(f"Completed: {pdf_file.name} -> {output_path.name} "
                  f"({result['source']}, {processing_time:.2f}s)")
            processed_count += 1

        except Exception as e:
            print(f"Error processing {pdf_file.name}: {e}")
            continue

    total_time = time.time() - total_start_time
    print(f"\nProcessing Summary:")
    print(f"   Successfully processed: {processed_count}/{len(pdf_files)} files")
    print(f"   Total time: {total_time:.2f} seconds")
    print(f"   Output directory: {output_dir}")


if __name__ == "__main__":
    main()
