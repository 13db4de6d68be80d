"""
Launcher for the Restaurant Data Unifier.
Loads settings from the environment (or a .env file), runs one preprocessing
pass and writes the snapshot JSON.
"""

import argparse
import json
import sys
from pathlib import Path

from restaurant_unifier.config.settings import Settings
from restaurant_unifier.errors import ConfigurationError, SourceParseError, UnresolvedRecordError
from restaurant_unifier.preprocessing.integrity import check_data_integrity, format_integrity_report
from restaurant_unifier.preprocessing.orchestrator import run_preprocess
from restaurant_unifier.utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Unify Toast, DoorDash and Square exports into one snapshot',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py data/output/snapshot.json
  python run.py snapshot.json --env-file .env.staging --log-level DEBUG
        """
    )
    parser.add_argument('output', type=Path, help='Where to write the snapshot JSON')
    parser.add_argument('--env-file', type=Path, default=None, help='.env file with the input paths')
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Overrides UNIFIER_LOG_LEVEL'
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    print(" RESTAURANT DATA UNIFIER")
    print("=" * 60)

    try:
        settings = Settings.from_env(args.env_file)
        # The .env file may carry UNIFIER_LOG_LEVEL
        setup_logging(level=args.log_level)
        outcome = run_preprocess(settings)
    except ConfigurationError as e:
        print(f"\n Configuration error:\n{e}")
        return 1
    except (SourceParseError, UnresolvedRecordError) as e:
        print(f"\n Preprocessing aborted: {e}")
        return 1

    snapshot = outcome.snapshot
    print()
    for line in snapshot.report.summary_lines():
        print(line)
    print()
    print(format_integrity_report(check_data_integrity(outcome.sources, snapshot)))

    args.output.parent.mkdir(parents=True, exist_ok=True)
    with open(args.output, 'w', encoding='utf-8') as f:
        json.dump(snapshot.model_dump(mode='json'), f, indent=2)

    print()
    print(f" Snapshot v{snapshot.version} written to {args.output}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
