#!/usr/bin/env python3
"""
Command-line interface for chrono_rename.
"""

import argparse
import sys
from pathlib import Path

from . import __version__
from .core import MediaSorter, MediaSortError
from .metadata import default_source


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chrono-rename",
        description="Rename media files into one sequence ordered by capture time",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  chrono-rename ~/Pictures/iceland trip
  chrono-rename --dry-run ~/Pictures/iceland trip

The tool will:
1. Read capture dates from every photo and video in the directory
2. Use the file modification date for files without one
3. Sort the files by capture time
4. Rename them as: <base name>_001.ext, <base name>_002.ext, ...

Supported formats:
  Photos: JPG, JPEG, PNG, HEIC, DNG, NEF, CR2, CR3, ARW, ORF, RAF
  Videos: MOV, MP4, M4V, AVI, MTS, M2TS, 3GP, MKV
        """
    )

    parser.add_argument('directory', help='Directory containing the media files')
    parser.add_argument('base_name', help='Name the numbered files start with')

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be renamed without actually renaming files'
    )

    parser.add_argument(
        '--exiftool',
        default='exiftool',
        metavar='PATH',
        help='exiftool executable to use (default: exiftool from PATH)'
    )

    parser.add_argument(
        '--no-exiftool',
        action='store_true',
        help='Read dates with Pillow/exifread and ffprobe instead of exiftool'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    return parser


def main(argv=None):
    """Main entry point for the chrono-rename command."""
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help and --version exit cleanly, usage errors exit with 1
        if e.code:
            sys.exit(1)
        raise

    directory = Path(args.directory).absolute()

    print(f"Chrono Rename v{__version__}")
    print(f"Mode: {'DRY RUN' if args.dry_run else 'RENAME FILES'}")
    if args.dry_run:
        print("\nNote: This is a dry run. No files will be actually renamed.")
    print("-" * 50)

    try:
        source = default_source(args.exiftool, use_exiftool=not args.no_exiftool)
        sorter = MediaSorter(source=source, dry_run=args.dry_run)
        sorter.process_directory(directory, args.base_name)
    except MediaSortError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        sys.exit(1)

    return 0


if __name__ == '__main__':
    main()
