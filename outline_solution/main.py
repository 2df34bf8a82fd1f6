import argparse
import sys
import logging
from pathlib import Path

from pdf_outline import (
    process_pdfs,
    setup_logging,
    __version__
)
from pdf_outline.processor import validate_batch_input


def create_progress_callback(verbose: bool = False):
    """Create a progress callback function for processing updates."""
    def progress_callback(message: str):
        if verbose:
            print(f"Progress: {message}")
        logging.debug(message)

    return progress_callback


def collect_pdf_files(input_path: Path):
    if input_path.is_file():
        return [str(input_path)] if input_path.suffix.lower() == '.pdf' else []
    return sorted(str(p) for p in input_path.rglob('*.pdf'))


def main(argv=None):
    """Extract outlines from a PDF file or every PDF under a folder."""

    DEFAULT_PDF_FOLDER = "input"

    parser = argparse.ArgumentParser(
        description="PDF Outline Extractor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Usage Examples:
  %(prog)s                               # Process PDFs in the default folder (input/)
  %(prog)s papers/                       # Process all PDFs in a folder
  %(prog)s paper.pdf                     # Process a single PDF file
  %(prog)s papers/ --format json --format md
  %(prog)s --fast --metadata             # Parallel processing with document metadata
        """
    )

    parser.add_argument(
        'path',
        nargs='?',
        default=DEFAULT_PDF_FOLDER,
        help=f'Path to PDF file or folder containing PDFs (default: {DEFAULT_PDF_FOLDER})'
    )

    parser.add_argument(
        '--fast',
        action='store_true',
        help='Enable fast parallel processing'
    )

    parser.add_argument(
        '--output', '-o',
        default='output',
        help='Output folder (default: output)'
    )

    parser.add_argument(
        '--metadata',
        action='store_true',
        help='Include PDF metadata and detected abstract position in the output'
    )

    parser.add_argument(
        '--format',
        dest='formats',
        action='append',
        choices=['json', 'txt', 'md'],
        help='Output format, may be repeated (default: json)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show processing details'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'PDF Outline Extractor {__version__}'
    )

    args = parser.parse_args(argv)

    setup_logging('DEBUG' if args.verbose else 'INFO', 'pdf_outline.log')
    logger = logging.getLogger(__name__)

    progress_callback = create_progress_callback(args.verbose) if args.verbose else None

    try:
        input_path = Path(args.path)

        if not input_path.exists():
            print(f"Error: Path '{args.path}' does not exist")
            if args.path == DEFAULT_PDF_FOLDER:
                print(f"Please create the '{DEFAULT_PDF_FOLDER}' folder and add your PDF files, or specify a different path.")
            return 1

        pdf_files = collect_pdf_files(input_path)
        pdf_files, invalid_files = validate_batch_input(pdf_files)
        for reason in invalid_files:
            print(f"Skipping {reason}")
        if not pdf_files:
            if input_path.is_file():
                print(f"Error: '{args.path}' is not a PDF file")
            else:
                print(f"No PDF files found in '{args.path}'")
            return 1
        print(f"Found {len(pdf_files)} PDF file(s)")

        if args.verbose:
            print("Files to process:")
            for pdf_file in pdf_files:
                print(f"  - {Path(pdf_file).name}")
            print()

        use_parallel = args.fast or len(pdf_files) > 2
        workers = 6 if args.fast else 4

        if use_parallel and len(pdf_files) > 1:
            print(f"Using parallel processing with {workers} workers")

        results = process_pdfs(
            pdf_paths=pdf_files,
            output_dir=args.output,
            parallel=use_parallel,
            max_workers=workers,
            include_metadata=args.metadata,
            output_formats=args.formats or ['json'],
            progress_callback=progress_callback
        )

        stats = results['statistics']
        print(f"\nProcessing Complete!")
        print(f"   Processed: {stats['successful']}/{stats['total_files']} files")
        print(f"   Success Rate: {stats['success_rate']:.0f}%")
        print(f"   Headings Found: {stats['total_headings_extracted']}")
        for source, count in sorted(stats['sources'].items()):
            print(f"   Outline source {source}: {count}")
        print(f"   Output Folder: {args.output}/")

        if stats['failed'] > 0:
            print(f"\n{stats['failed']} files failed to process:")
            for result in results['results']:
                if result['status'] == 'error':
                    print(f"   - {result['filename']}: {result['error']}")

        return 0 if stats['failed'] == 0 else 1

    except KeyboardInterrupt:
        logger.info("Processing interrupted by user")
        print("\nProcessing interrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        print(f"Error: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
