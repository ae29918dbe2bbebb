#!/usr/bin/env python3
"""
Optimize a layered keyboard layout with simulated annealing.

Loads the keyboard, tables and layouts named in the configuration file,
calibrates the evaluation pipeline on the reference and starter layouts,
anneals the starter, and writes the best layout found as YAML.

Scores are normalized so the starter layout scores 1,000,000; lower is better.

# Default run (config.yaml)
python anneal_layout.py

# Short reproducible run from another starter
python anneal_layout.py --starter colemak_dh --iterations 2000 --seed 1

# Save the best layout and the score history
python anneal_layout.py --output output/best.yaml --history output/history.csv

"""

import sys
from dataclasses import replace

from layout_framework.annealing import Annealer
from layout_framework.cleanup import LayoutCleaner
from layout_framework.cli_utils import (create_parser, determine_output_mode, handle_common_errors,
                                        load_layout_argument, parse_seed, print_configuration_summary,
                                        report_issues)
from layout_framework.config_loader import get_config_loader
from layout_framework.layout_io import save_layout
from layout_framework.output_utils import (format_annealing_summary, format_layout_summary, print_results,
                                           save_history_csv)


def create_cli_parser():
    parser = create_parser(
        description="Optimize a layered keyboard layout with simulated annealing",
        epilog="""
Examples:

  # Default run
  python anneal_layout.py

  # Reproducible short run from a preset starter
  python anneal_layout.py --starter colemak_dh --iterations 2000 --seed 1

  # Starter from a YAML layout file, no cleanup
  python anneal_layout.py --starter output/best.yaml --no-cleanup
        """
    )

    search_group = parser.add_argument_group('Search Options')
    search_group.add_argument(
        '--starter',
        dest='starter',
        help="Starter layout: preset name or YAML file (overrides config)"
    )
    search_group.add_argument(
        '--iterations',
        dest='iterations',
        type=int,
        help="Number of annealing steps (overrides config)"
    )
    search_group.add_argument(
        '--seed',
        dest='seed',
        type=parse_seed,
        default=False,
        help="Random seed, or 'none' for a fresh one (overrides config)"
    )
    search_group.add_argument(
        '--no-cleanup',
        dest='no_cleanup',
        action='store_true',
        help="Do not prune unused keys after accepted moves"
    )
    search_group.add_argument(
        '--output',
        dest='output',
        help="YAML file for the best layout (default: output.layout_file in config)"
    )
    search_group.add_argument(
        '--history',
        dest='history',
        help="CSV file for the score history (default: output.history_file in config)"
    )

    return parser


@handle_common_errors
def main() -> int:
    parser = create_cli_parser()
    args = parser.parse_args()

    loader = get_config_loader(args.config)
    issues = loader.validate_config()
    if issues:
        report_issues(issues)
        return 1

    verbose = (args.verbose or loader.is_verbose()) and not args.quiet
    output_config = loader.get_output_config()
    output_format = determine_output_mode(args, output_config.get('format', 'detailed'))

    print_configuration_summary(loader, "Layered layout annealer", quiet=args.quiet)

    keyboard = loader.load_keyboard()
    pipeline = loader.build_pipeline(keyboard, verbose=verbose)

    reference = loader.load_layout('reference')
    starter = load_layout_argument(args.starter) if args.starter else loader.load_layout('starter')
    pipeline.calibrate(reference, starter)

    config = loader.get_annealing_config()
    if args.iterations is not None:
        config = replace(config, iterations=args.iterations)
    if args.seed is not False:
        config = replace(config, seed=args.seed)

    cleanup_config = loader.get_cleanup_config()
    cleaner = None if args.no_cleanup or not cleanup_config.enabled else LayoutCleaner(cleanup_config)

    annealer = Annealer(pipeline, loader.build_mutation_engine(), config, cleaner, quiet=args.quiet)
    result = annealer.run(starter)

    if not args.quiet:
        print()
        print(format_annealing_summary(result))
        print()
        print(format_layout_summary(result.best_layout))
        print()

    print_results(result.best_evaluation, output_format, output_config)

    layout_file = args.output or output_config.get('layout_file')
    if layout_file:
        save_layout(result.best_layout, layout_file)
        if not args.quiet:
            print(f"\nBest layout saved to {layout_file}")

    history_file = args.history or output_config.get('history_file')
    if history_file:
        save_history_csv(result, history_file)
        if not args.quiet:
            print(f"Score history saved to {history_file}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
