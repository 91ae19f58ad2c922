"""Command-line interface for the manuscript alignment pipeline."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from .config import Config
from .pipeline import ManuscriptPipeline

COMMANDS = ("index", "discover")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = argparse.ArgumentParser(
        prog="manuscript-aligner",
        description="Discover, pair and align bilingual Arabic/English manuscripts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Index the default roots of the current project
  manuscript-aligner

  # Using a config file and a preset
  manuscript-aligner index --config config.yaml --preset manuscript

  # Restrict the scan and skip word-processor files
  manuscript-aligner index --include "content/**/*.md" --docx false

  # Write the file inventory only
  manuscript-aligner discover --root content
        """,
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    index_parser = subparsers.add_parser("index", help="Build the parallel corpus")
    setup_common_arguments(index_parser)
    setup_index_arguments(index_parser)
    discover_parser = subparsers.add_parser("discover", help="Write the translation inventory")
    setup_common_arguments(discover_parser)

    # If no command specified, treat as index command
    if not argv or argv[0] not in COMMANDS + ("-h", "--help"):
        argv = ["index"] + argv
    return parser.parse_args(argv)


def setup_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Setup arguments shared by all commands."""
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        help="Project root all relative paths are resolved against (default: .)",
    )
    parser.add_argument(
        "--root",
        action="append",
        dest="roots",
        help="Directory to scan; repeatable (default: content data docs outputs dist)",
    )
    parser.add_argument(
        "--include",
        action="append",
        help="Path or glob a file must match; repeatable",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        help="Path or glob to skip; repeatable",
    )
    parser.add_argument(
        "--docx",
        type=parse_bool,
        help="Whether .docx files are processed (true/false, default: true)",
    )
    parser.add_argument(
        "--preset",
        type=str,
        help="Named include/exclude preset from config/corpus.json",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        help="Maximum directory depth to scan (default: 8)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Number of parallel workers (default: 4)",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable progress bars",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )


def setup_index_arguments(parser: argparse.ArgumentParser) -> None:
    """Setup arguments for the index command."""
    parser.add_argument(
        "--map",
        type=Path,
        help="Translation map JSON (default: config/translations-map.json)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for parallel.jsonl and manifest.json (default: .cache)",
    )
    parser.add_argument(
        "--engine",
        choices=["nltk", "regex"],
        help="Sentence segmentation engine (default: nltk)",
    )
    parser.add_argument(
        "--format",
        choices=["jsonl", "csv"],
        help="Segment stream format (default: jsonl)",
    )


def build_config(args: argparse.Namespace) -> Config:
    """Build configuration from arguments."""
    # Start with config file if provided
    if hasattr(args, "config") and args.config:
        config = Config.from_yaml(args.config)
    else:
        config = Config()

    # Scan config overrides
    if hasattr(args, "project_root") and args.project_root:
        config.scan.project_root = args.project_root
    if hasattr(args, "roots") and args.roots:
        config.scan.roots = args.roots
    if hasattr(args, "include") and args.include:
        config.scan.include = config.scan.include + args.include
    if hasattr(args, "exclude") and args.exclude:
        config.scan.exclude = config.scan.exclude + args.exclude
    if hasattr(args, "docx") and args.docx is not None:
        config.scan.docx = args.docx
    if hasattr(args, "preset") and args.preset:
        config.scan.preset = args.preset
    if hasattr(args, "max_depth") and args.max_depth is not None:
        config.scan.max_depth = args.max_depth
    if hasattr(args, "map") and args.map:
        config.scan.map_path = args.map

    # Segmentation and output overrides
    if hasattr(args, "engine") and args.engine:
        config.segmentation.engine = args.engine
    if hasattr(args, "output_dir") and args.output_dir:
        config.output.output_dir = args.output_dir
    if hasattr(args, "format") and args.format:
        config.output.format = args.format

    # Processing overrides
    if hasattr(args, "workers") and args.workers is not None:
        config.processing.workers = args.workers
    if hasattr(args, "no_progress") and args.no_progress:
        config.processing.show_progress = False

    # Re-validate so CLI values obey the same bounds as YAML values
    return Config.model_validate(config.model_dump())


def _load_config(args: argparse.Namespace) -> Optional[Config]:
    try:
        return build_config(args)
    except FileNotFoundError as e:
        print(f"Error: Config file not found - {e}", file=sys.stderr)
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
    return None


def handle_index(args: argparse.Namespace) -> int:
    """Handle index command."""
    config = _load_config(args)
    if config is None:
        return 1

    try:
        ManuscriptPipeline(config).run()
        return 0
    except OSError as e:
        logging.exception("Could not write outputs")
        print(f"Error: {e}", file=sys.stderr)
        return 1


def handle_discover(args: argparse.Namespace) -> int:
    """Handle discover command."""
    config = _load_config(args)
    if config is None:
        return 1

    try:
        ManuscriptPipeline(config).discover()
        return 0
    except OSError as e:
        logging.exception("Could not write the inventory")
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose if hasattr(args, "verbose") else False)

    if args.command == "discover":
        return handle_discover(args)
    return handle_index(args)


if __name__ == "__main__":
    sys.exit(main())
