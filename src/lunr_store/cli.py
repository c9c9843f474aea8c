"""Command line interface for building and checking search stores."""

import argparse
import logging
import subprocess
import sys
from pathlib import Path

from lunr_store.config import CONFIG_FILENAME, load_config
from lunr_store.errors import LunrStoreError
from lunr_store.indexer import SiteIndexer
from lunr_store.store import FORMATS, read_entries, validate_entries

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path("_site/assets/js/lunr/lunr-store.js")


def configure_logging(verbose: bool = False) -> None:
    """Configure process-wide logging for a command run."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        Parser with ``build`` and ``validate`` subcommands.
    """
    parser = argparse.ArgumentParser(prog="lunr-store", description="Build and validate lunr.js search stores.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Index a site and write its search store.")
    build.add_argument("site", nargs="?", type=Path, default=Path("."), help="Site source root (default: .).")
    build.add_argument("--config", type=Path, help=f"Site config file (default: SITE/{CONFIG_FILENAME}).")
    build.add_argument("-o", "--output", type=Path, help=f"Store file to write (default: SITE/{DEFAULT_OUTPUT}).")
    build.add_argument("--format", choices=FORMATS, help="Output format (default: from the output suffix).")
    build.add_argument("--drafts", action="store_true", help="Index posts in _drafts.")
    build.add_argument("--future", action="store_true", help="Index posts dated in the future.")
    build.add_argument("--unpublished", action="store_true", help="Index documents marked published: false.")
    build.add_argument("--git", metavar="URL", help="Clone the site from this repository instead of SITE.")
    build.add_argument("--branch", default="main", help="Branch to clone with --git (default: main).")

    validate = subparsers.add_parser("validate", help="Check an existing search store file.")
    validate.add_argument("store", type=Path, help="Store file (.js or .json).")
    return parser


def run_build(args: argparse.Namespace) -> int:
    """Run the ``build`` subcommand.

    Args:
        args: Parsed arguments.

    Returns:
        Process exit status.
    """
    site_path: Path = args.site
    overrides = {
        name: True
        for name, enabled in (("show_drafts", args.drafts), ("future", args.future), ("unpublished", args.unpublished))
        if enabled
    }
    output: Path = args.output or site_path / DEFAULT_OUTPUT

    if args.git:
        # The cloned site's own _config.yml applies unless one is given
        config = load_config(args.config) if args.config else None
        store = SiteIndexer(config, **overrides).index_from_git(args.git, args.branch)
    else:
        config = load_config(args.config or site_path / CONFIG_FILENAME)
        store = SiteIndexer(config, **overrides).index_from_path(site_path)
    store.write(output, args.format)
    return 0


def run_validate(args: argparse.Namespace) -> int:
    """Run the ``validate`` subcommand.

    Args:
        args: Parsed arguments.

    Returns:
        0 when the store is valid, 1 otherwise.
    """
    entries = read_entries(args.store)
    problems = validate_entries(entries)
    for problem in problems:
        logger.error("%s: %s", args.store, problem)
    if problems:
        return 1
    logger.info("%s: %d valid search entries", args.store, len(entries))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``lunr-store`` console script.

    Args:
        argv: Arguments without the program name; defaults to ``sys.argv``.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        if args.command == "build":
            return run_build(args)
        return run_validate(args)
    except (LunrStoreError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    except subprocess.CalledProcessError as exc:
        logger.error("git failed: %s", exc.stderr.decode(errors="replace").strip() if exc.stderr else exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
