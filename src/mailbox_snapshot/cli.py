"""Command-line entry point — writes the mailbox snapshot to stdout as JSON Lines."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from mailbox_snapshot import __version__
from mailbox_snapshot.config import DEFAULT_CONFIG_FILE, load_config
from mailbox_snapshot.export.sink import JsonLinesWriter
from mailbox_snapshot.orchestration.extractor import (
    ExtractionError,
    HierarchyLoadError,
    snapshot_extractor_from_config,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_HIERARCHY_FAILED = 1
EXIT_MESSAGES_FAILED = 2
EXIT_UNRESOLVED_MESSAGES = 3
EXIT_CONFIG_ERROR = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mailbox-snapshot",
        description="Export a mailbox's folder paths and non-junk messages as JSON Lines.",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help="Configuration file to use (default: %(default)s). Ignored if it does not exist.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for messages written to stderr (default: %(default)s).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run one extraction and return the process exit code."""
    args = build_parser().parse_args(argv)
    # stdout carries the records; logs go to stderr.
    logging.basicConfig(
        level=args.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        config = load_config(args.config)
    except KeyError as exc:
        logger.error("[main] missing required setting; setting:%s", exc.args[0])
        return EXIT_CONFIG_ERROR
    except ValueError as exc:
        logger.error("[main] invalid configuration; error:%s", exc)
        return EXIT_CONFIG_ERROR

    extractor = snapshot_extractor_from_config(config)
    writer = JsonLinesWriter(sys.stdout)
    try:
        result = extractor.run(writer.write)
    except ExtractionError as exc:
        logger.error("[main] extraction failed; phase:%s;error:%s", exc.phase, exc)
        if isinstance(exc, HierarchyLoadError):
            return EXIT_HIERARCHY_FAILED
        return EXIT_MESSAGES_FAILED
    finally:
        writer.close()

    if not result.complete:
        logger.error(
            "[main] messages skipped in unknown folders; unresolved:%d",
            len(result.unresolved_ids),
        )
        return EXIT_UNRESOLVED_MESSAGES
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
