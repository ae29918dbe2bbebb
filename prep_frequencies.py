#!/usr/bin/env python3
"""
Build letter and bigram frequency tables from a source code corpus.

Counts every character of the required alphabet (from the configuration
file) in the matching files below a directory and writes the proportions as
the two CSV files read by the scorer. Leading indentation is counted as
tabs, one per --indent-width spaces.

# Count Python and Rust sources of a project
python prep_frequencies.py ~/src/project --extensions .py .rs

"""

import sys

from layout_framework.cli_utils import create_parser, handle_common_errors
from layout_framework.config_loader import get_config_loader
from layout_framework.data_utils import save_frequency_table
from layout_framework.text_utils import DEFAULT_EXTENSIONS, count_corpus, frequencies_from_counts


def create_cli_parser():
    parser = create_parser(
        description="Build letter and bigram frequency CSV files from source files",
        epilog="""
Examples:

  # Count a project with the default extensions
  python prep_frequencies.py ~/src/project

  # Only Python files, two-space indentation, custom output
  python prep_frequencies.py ~/src/project --extensions .py --indent-width 2 \\
      --letters-out input/py_letters.csv --bigrams-out input/py_bigrams.csv
        """
    )

    parser.add_argument('directory', help="Root directory of the corpus")
    parser.add_argument(
        '--extensions',
        nargs='+',
        default=DEFAULT_EXTENSIONS,
        help=f"File extensions to count (default: {' '.join(DEFAULT_EXTENSIONS)})"
    )
    parser.add_argument(
        '--indent-width',
        dest='indent_width',
        type=int,
        default=4,
        help="Leading spaces typed as one tab (default: 4)"
    )
    parser.add_argument(
        '--letters-out',
        dest='letters_out',
        help="Letter frequency CSV (default: tables.data_files.letter_frequencies in config)"
    )
    parser.add_argument(
        '--bigrams-out',
        dest='bigrams_out',
        help="Bigram frequency CSV (default: tables.data_files.bigram_frequencies in config)"
    )

    return parser


@handle_common_errors
def main() -> int:
    parser = create_cli_parser()
    args = parser.parse_args()

    if args.indent_width < 1:
        parser.error("--indent-width must be at least 1")

    loader = get_config_loader(args.config)
    data_files = loader.get_tables_config()['data_files']
    letters_out = args.letters_out or data_files.get('letter_frequencies')
    bigrams_out = args.bigrams_out or data_files.get('bigram_frequencies')
    if not letters_out:
        parser.error("No letter frequency output file given or configured")

    letter_counts, bigram_counts = count_corpus(
        args.directory,
        extensions=args.extensions,
        alphabet=loader.get_required_characters(),
        indent_width=args.indent_width,
        verbose=args.verbose and not args.quiet,
    )
    if not letter_counts:
        print(f"Error: No characters counted below {args.directory}", file=sys.stderr)
        return 1

    save_frequency_table(frequencies_from_counts(letter_counts, bigram_counts), letters_out, bigrams_out)

    if not args.quiet:
        print(f"Counted {sum(letter_counts.values())} characters and {sum(bigram_counts.values())} bigrams")
        print(f"Letter frequencies saved to {letters_out}")
        if bigrams_out:
            print(f"Bigram frequencies saved to {bigrams_out}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
