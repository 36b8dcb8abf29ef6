#!/usr/bin/env python3
"""
Notion to Markdown Migration Tool - Main CLI Entry Point

This script provides the command-line interface for importing Notion HTML
export archives into a tree of Markdown notes and attachments, preserving
the page hierarchy, links, properties and code block languages.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from config_loader import ConfigLoader
from fetchers import WrongExportFormatError
from logger import log_config, log_section, setup_logging
from orchestrator import ImportContext, MigrationOrchestrator, MigrationReport

__version__ = "1.0.0"

DEFAULT_CONFIG_PATH = 'config.yaml'


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='notion-markdown-migrator',
        description="Import Notion HTML export archives as Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import one export into ./notes
  notion-markdown-migrator Export-1234.zip -o ./notes

  # Import a multi-part export (all zips in a folder)
  notion-markdown-migrator ./exports/ -o ./notes

  # Settings from a config file
  notion-markdown-migrator --config config.yaml

  # Every note at the output root, attachments in one folder
  notion-markdown-migrator Export.zip -o ./notes --flat --attachment-folder attachments

  # Keep the table of contents and write a JSON report
  notion-markdown-migrator Export.zip -o ./notes --keep-toc --report-json report.json

  # Verbose logging
  notion-markdown-migrator Export.zip -o ./notes -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        'archives',
        nargs='*',
        help='Notion HTML export zip files, or folders containing them'
    )

    parser.add_argument(
        '-o', '--output',
        dest='output_dir',
        type=str,
        help='Output directory for the Markdown tree'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH} if present)'
    )

    parser.add_argument(
        '--flat',
        action='store_true',
        help='Place every note at the output root'
    )

    parser.add_argument(
        '--parent-pages-in-subfolders',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Put pages with children inside their own folder (default: on)'
    )

    parser.add_argument(
        '--single-line-breaks',
        action='store_true',
        help='Separate blocks with single instead of double line breaks'
    )

    parser.add_argument(
        '--keep-toc',
        action='store_true',
        help='Keep tables of contents as a list of links instead of removing them'
    )

    parser.add_argument(
        '--min-language-length',
        type=int,
        default=None,
        help='Code blocks longer than this are eligible for language detection (default: 25)'
    )

    parser.add_argument(
        '--languages',
        type=str,
        help='Comma-separated languages considered by detection (e.g., python,sql,sh)'
    )

    parser.add_argument(
        '--icon-property',
        type=str,
        default=None,
        help="Front matter property for the page icon; empty disables it (default: sticker)"
    )

    parser.add_argument(
        '--attachment-folder',
        type=str,
        default=None,
        help="Attachment placement: '' for the root, './sub' next to the note, or a root-relative folder"
    )

    parser.add_argument(
        '--report-json',
        type=str,
        help='Write the import report as JSON to this path'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable the progress bar'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def load_configuration(args: argparse.Namespace) -> dict:
    """Load the config file (optional unless given), merge CLI arguments and validate."""
    if args.config:
        config = ConfigLoader.load(args.config)
    elif os.path.exists(DEFAULT_CONFIG_PATH):
        config = ConfigLoader.load(DEFAULT_CONFIG_PATH)
    else:
        config = {}

    config = ConfigLoader.with_defaults(config)
    config = ConfigLoader.merge_with_args(config, args)
    ConfigLoader.validate(config)
    return config


def run_import(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Execute the import and print the report."""
    context = ImportContext(show_progress=not args.no_progress, logger=logger.getChild('context'))
    orchestrator = MigrationOrchestrator(config, context=context, logger=logger.getChild('orchestrator'))

    try:
        summary = orchestrator.run()
    except KeyboardInterrupt:
        context.cancel()
        raise

    report_generator = MigrationReport(logger)
    report = report_generator.generate_report(summary, config)
    print("\n" + report_generator.format_console_report(report))

    report_path = config.get('report', {}).get('json_path')
    if report_path:
        try:
            report_generator.export_json_report(report, report_path)
        except OSError as e:
            logger.warning(f"Failed to export JSON report: {e}")

    if summary.failed and summary.succeeded == 0:
        logger.error(f"Import failed: all {len(summary.failed)} entries failed")
        return 1
    if summary.failed:
        logger.warning(f"Import completed with {len(summary.failed)} errors")
    else:
        logger.info("Import completed successfully")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        logger = setup_logging(verbosity=args.verbose, log_file=args.log_file)

        log_section("Notion to Markdown Migration Tool")
        logger.info(f"Version: {__version__}")

        config = load_configuration(args)

        level = config.get('logging', {}).get('level')
        if level and not args.verbose:
            logger = setup_logging(log_file=config['logging'].get('log_file'), level=level)
        elif config.get('logging', {}).get('log_file') and not args.log_file:
            logger = setup_logging(verbosity=args.verbose, log_file=config['logging']['log_file'])

        log_config(config)

        return run_import(config, args, logger)

    except WrongExportFormatError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nImport interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
