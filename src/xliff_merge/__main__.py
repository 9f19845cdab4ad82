"""
Command-line entry point.

Usage:
    python -m xliff_merge -i messages.xlf -d messages.fr.xlf
    # or after installation:
    xliff-merge -i messages.xlf -d messages.fr.xlf -o merged.fr.xlf

    # Several origin files, exclusions and an id rename report:
    xliff-merge -i app.xlf -i lib.xlf -d messages.de.xlf \\
        --exclude-file vendor.xlf --id-mapping-file renames.json

    # Debug output via environment variable:
    XLIFF_MERGE_DEBUG=1 xliff-merge -i messages.xlf -d messages.fr.xlf
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from lxml import etree

from .constants import DEBUG_ENV_VAR, OMIT_TARGET
from .files import read_xliff, write_xliff
from .merge import merge_with_id_mapping
from .options import MergeOptions, parse_targets_blank

logger = logging.getLogger("xliff-merge")


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="xliff-merge",
        description="Merge freshly extracted XLIFF units into a translated XLIFF file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  xliff-merge -i messages.xlf -d messages.fr.xlf                 # Update in place
  xliff-merge -i messages.xlf -d messages.fr.xlf -o out.xlf      # Write elsewhere
  xliff-merge -i a.xlf -i b.xlf -d messages.de.xlf               # Several origins
  xliff-merge -i messages.xlf -d messages.en.xlf --source-language
        """
    )
    parser.add_argument(
        "-i", "--input-file",
        action="append",
        dest="input_files",
        required=True,
        metavar="PATH",
        help="Input file (merge origin). Can be specified multiple times."
    )
    parser.add_argument(
        "-d", "--destination-file",
        required=True,
        metavar="PATH",
        help="Merge destination. Created if it does not exist."
    )
    parser.add_argument(
        "-o", "--output-file",
        metavar="PATH",
        help="Output file; if not provided the merge destination is overwritten."
    )
    parser.add_argument(
        "--exclude-file",
        action="append",
        dest="exclude_files",
        default=[],
        metavar="PATH",
        help="File whose unit ids are left out of the merge. Can be specified multiple times."
    )
    parser.add_argument(
        "--id-mapping-file",
        metavar="PATH",
        help="Write a JSON object mapping old to new ids of fuzzy-matched units."
    )
    parser.add_argument(
        "--no-fuzzy-match",
        dest="fuzzy_match",
        action="store_false",
        help="Do not match units with changed ids by source text similarity."
    )
    parser.add_argument(
        "--no-collapse-whitespace",
        dest="collapse_whitespace",
        action="store_false",
        help="Treat whitespace-only source changes as changes."
    )
    parser.add_argument(
        "--no-reset-translation-state",
        dest="reset_translation_state",
        action="store_false",
        help="Keep the translation state of units whose source changed."
    )
    parser.add_argument(
        "--source-language",
        action="store_true",
        help="Destination is in the source language: targets mirror sources and become final."
    )
    parser.add_argument(
        "--replace-apostrophe",
        action="store_true",
        help="Write apostrophes as &apos;."
    )
    parser.add_argument(
        "--new-translation-targets-blank",
        type=parse_targets_blank,
        default=False,
        metavar=f"{{false,true,{OMIT_TARGET}}}",
        help="Targets of new units: copy of the source (false), empty (true) or none (omit)."
    )
    parser.add_argument(
        "--sync-targets-with-initial-state",
        action="store_true",
        help="Also update untranslated targets (initial state, equal to the old source)."
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=bool(os.environ.get(DEBUG_ENV_VAR)),
        help=f"Enable debug output (or set {DEBUG_ENV_VAR})."
    )
    return parser.parse_args(argv)


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format='%(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run a merge from command-line arguments; returns the exit status."""
    args = parse_args(argv)
    setup_logging(args.debug)

    try:
        origins = [read_xliff(path) for path in args.input_files]
        destination = read_xliff(args.destination_file, missing_ok=True)
        options = MergeOptions(
            fuzzy_match=args.fuzzy_match,
            collapse_whitespace=args.collapse_whitespace,
            reset_translation_state=args.reset_translation_state,
            source_language=args.source_language,
            replace_apostrophe=args.replace_apostrophe,
            new_translation_targets_blank=args.new_translation_targets_blank,
            sync_targets_with_initial_state=args.sync_targets_with_initial_state,
            exclude_files=[read_xliff(path) for path in args.exclude_files],
        )

        result = merge_with_id_mapping(origins, destination, options, args.destination_file)

        written = write_xliff(args.destination_file, result.output, args.output_file)
        logger.debug(f"wrote {written}")
        if args.id_mapping_file:
            Path(args.id_mapping_file).write_text(
                json.dumps(result.id_mapping, indent=2, ensure_ascii=False), encoding="utf-8"
            )
    except (OSError, ValueError, etree.XMLSyntaxError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
