"""Manual search runner for testing and debugging adapters.

Runs one search against one shop through the dispatcher and prints the
listings it returns.

Usage:
    python scripts/run_search.py --source emex --part "масляный фильтр"
    python scripts/run_search.py --source rulim --part "колодки" --mode vin --vin XW8ZZZ61ZJG012345
    python scripts/run_search.py --source spartex --part "ремень ГРМ" --json
"""

import argparse
import asyncio
import sys
import time

from partsfinder.config import settings
from partsfinder.core.exceptions import PartsFinderException
from partsfinder.logging_config import configure_logging
from partsfinder.schemas import ListingSchema, SearchMode, SearchRequest, SearchResponse
from partsfinder.scrapers import SourceId, is_diagnostic
from partsfinder.scrapers.dispatcher import SearchDispatcher, build_query
from partsfinder.scrapers.register_adapters import register_all_adapters


async def run_search(source: str, request: SearchRequest, as_json: bool = False) -> int:
    """Run a search and display the results.

    Args:
        source: Source identifier (e.g., "emex")
        request: Search parameters
        as_json: Print the response envelope as JSON instead of a table

    Returns:
        Process exit code
    """
    factory = register_all_adapters()
    query = build_query(request)

    if not as_json:
        print(f"\n{'='*70}")
        print(f"  Searching {source.upper()}")
        print(f"{'='*70}")
        print(f"  Query: {query}")
        print(f"{'='*70}\n")

    started = time.monotonic()
    async with SearchDispatcher(factory=factory) as dispatcher:
        try:
            listings = await dispatcher.search(source, request)
        except PartsFinderException as e:
            print(f"\nError: {type(e).__name__}: {e.message}\n", file=sys.stderr)
            return 1

    duration_ms = int((time.monotonic() - started) * 1000)
    degraded = any(is_diagnostic(listing) for listing in listings)

    if as_json:
        response = SearchResponse(
            source=source,
            query=query,
            results=[ListingSchema(**listing.to_dict()) for listing in listings],
            total=0 if degraded else len(listings),
            degraded=degraded,
            message="Источник не вернул данных" if degraded else "",
            duration_ms=duration_ms,
        )
        print(response.model_dump_json(indent=2))
        return 0

    for i, listing in enumerate(listings, 1):
        print(f"[{i}] {listing.brand} {listing.article}")
        print(f"    Name: {listing.name}")
        print(f"    Price: {listing.price:,.2f}")
        print(f"    Delivery: {listing.delivery} d, {listing.availability.value}")
        print(f"    URL: {listing.link[:80]}")
        print()

    print(f"{'='*70}")
    print(f"  Total: {len(listings)}{' (degraded)' if degraded else ''}")
    print(f"  Took: {duration_ms} ms")
    print(f"{'='*70}\n")
    return 0


def main():
    """Parse arguments and run the search."""
    parser = argparse.ArgumentParser(
        description="Run a single auto-parts search for testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_search.py --source emex --part "масляный фильтр"
  python scripts/run_search.py --source rulim --part "колодки" --mode params --brand Toyota --model Camry
        """,
    )

    parser.add_argument(
        "--source",
        required=True,
        choices=[s.value for s in SourceId],
        help="Source identifier",
    )
    parser.add_argument("--part", required=True, help="Part name to search for")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in SearchMode],
        default=SearchMode.TEXT.value,
        help="How the vehicle is identified (default: text)",
    )
    parser.add_argument("--vin", help="17-character VIN (vin mode)")
    parser.add_argument("--brand", help="Vehicle brand (params mode)")
    parser.add_argument("--model", help="Vehicle model (params mode)")
    parser.add_argument("--year", type=int, help="Vehicle year (params mode)")
    parser.add_argument("--engine", help="Engine code (params mode)")
    parser.add_argument("--json", action="store_true", help="Print JSON response")

    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)

    try:
        request = SearchRequest(
            part_name=args.part,
            mode=args.mode,
            vin=args.vin,
            brand=args.brand,
            model=args.model,
            year=args.year,
            engine=args.engine,
        )
    except ValueError as e:
        parser.error(str(e))

    sys.exit(asyncio.run(run_search(args.source, request, args.json)))


if __name__ == "__main__":
    main()
