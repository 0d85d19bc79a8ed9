#!/usr/bin/env python3
"""
Manual reset and inspection of the storefront export pipeline state.

    python -m export_isolation reset          # teardown + suite preparation
    python -m export_isolation status         # residual feed rows / queue depth
    python -m export_isolation sync-indexers  # force indexers to on-save
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from .config import config
from .errors import HarnessError
from .fixture import IsolationProtocol, open_context
from .logging_config import configure_logging, set_log_level

logger = configure_logging("export-isolation:cli")


def setup_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m export_isolation",
        description="Reset or inspect the storefront export pipeline test state",
    )
    parser.add_argument(
        "action",
        choices=["reset", "status", "sync-indexers"],
        help="Action to perform",
    )
    parser.add_argument(
        "--mode",
        help="Execution mode override (queued/direct, or rest/soap)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


async def run_action(action: str, protocol: IsolationProtocol) -> int:
    if action == "reset":
        await protocol.after_each()
        await protocol.before_suite()
        logger.info("Pipeline state reset")
        return 0

    if action == "sync-indexers":
        await protocol.orchestrator.force_indexers_synchronous()
        return 0

    state = await protocol.orchestrator.residual_state()
    print("\n=== Residual State ===")
    for feed, rows in state.feed_rows.items():
        print(f"feed  {feed}: {rows}")
    for queue, depth in state.queue_depths.items():
        print(f"queue {queue}: {depth}")
    print(f"clean: {state.is_clean}")
    print("======================\n")
    return 0 if state.is_clean else 1


async def _main(action: str) -> int:
    async with open_context(config) as context:
        return await run_action(action, IsolationProtocol(context))


def main(argv: Optional[List[str]] = None) -> int:
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level("DEBUG")
    if args.mode:
        config.TESTS_WEB_API_ADAPTER = args.mode

    try:
        return asyncio.run(_main(args.action))
    except HarnessError as e:
        logger.error("Harness fault", **e.to_dict())
        return 1
    except ValueError as e:
        logger.error("Invalid configuration", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
