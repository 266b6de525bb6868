#!/usr/bin/env python3
"""CLI script for analyzing a book's character network."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from novelgraph.analysis import (
    AnalysisConfig,
    AnalysisOrchestrator,
    GutenbergFetcher,
    OpenAIOracle,
    ProgressReporter,
    QueueSubscriber,
    RunState,
)

SESSION_ID = "cli"


async def print_events(subscriber: QueueSubscriber, verbose: bool) -> None:
    """Print progress events until the run finishes."""
    while True:
        _, update = await subscriber.queue.get()
        update_type = update.get("type")

        if update_type == "batch_complete":
            data = update.get("data", {})
            print(
                f"  Batch {update['batchIndex'] + 1}/{update['totalBatches']}: "
                f"{len(data.get('characters', []))} characters, "
                f"{len(data.get('interactions', []))} interactions"
            )
        elif update.get("message"):
            print(update["message"])

        if verbose and update_type == "progress" and update.get("data"):
            for name in update["data"].get("registry", {}):
                print(f"  - {name}")

        if update_type in ("analysis_complete", "error"):
            return


async def analyze_book(
    book_id: str,
    output: Path | None,
    batch_size: int,
    verbose: bool,
) -> int:
    """Run one analysis and print the resulting graph."""
    print("=== Character Network Analysis ===")
    print(f"Book: {book_id}")
    print()

    reporter = ProgressReporter()
    subscriber = QueueSubscriber()
    reporter.join(SESSION_ID, subscriber)

    config = AnalysisConfig(batch_size=batch_size)
    orchestrator = AnalysisOrchestrator(
        fetcher=GutenbergFetcher(),
        oracle=OpenAIOracle(config=config),
        reporter=reporter,
        config=config,
    )

    printer = asyncio.create_task(print_events(subscriber, verbose))
    try:
        run = await orchestrator.run(SESSION_ID, book_id)
        await printer
    finally:
        printer.cancel()
    print()

    if run.state != RunState.COMPLETE or run.result is None:
        print(f"Failed: {run.error}")
        return 1

    print("=== Results ===")
    print(f"Characters: {len(run.result.characters)}")
    print(f"Interactions: {len(run.result.interactions)}")
    print(f"Dropped interactions: {run.dropped_interactions}")
    print()

    for character in run.result.characters[:10]:
        print(f"  {character.name} ({character.mentions} mentions)")
    if len(run.result.characters) > 10:
        print(f"  ... and {len(run.result.characters) - 10} more")
    print()

    if output:
        output.write_text(json.dumps(run.result.model_dump(), indent=2))
        print(f"Graph written to {output}")

    print("Done!")
    return 0


def main():
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Build a character interaction graph for a Project Gutenberg book"
    )
    parser.add_argument(
        "book_id",
        type=str,
        help="Project Gutenberg book ID (e.g. 1513)",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        help="Write the final graph as JSON to this path",
    )
    parser.add_argument(
        "-b", "--batch-size",
        type=int,
        default=3,
        help="Windows analyzed concurrently per batch",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print the discovered registry and debug logs",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    output = Path(args.output) if args.output else None
    sys.exit(asyncio.run(analyze_book(args.book_id, output, args.batch_size, args.verbose)))


if __name__ == "__main__":
    main()
