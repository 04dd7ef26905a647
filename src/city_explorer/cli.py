"""Command-line interface for City Explorer."""

import argparse
import asyncio
import json
import logging
import sys

from city_explorer import __version__
from city_explorer.config import Settings, get_settings
from city_explorer.errors import CityExplorerError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging (uvicorn only configures its own loggers)."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


async def _search(settings: Settings, query: str) -> int:
    from city_explorer.providers.aggregator import CityAggregator

    async with CityAggregator.from_settings(settings) as aggregator:
        cities = await aggregator.search(query)

    if not cities:
        print(f"No cities match '{query}'.")
        return 1

    for city in cities:
        print(f"{city.display_name():<50} pop {city.population:>12,}  ({city.latitude}, {city.longitude})")
    return 0


async def _explore(settings: Settings, query: str) -> int:
    from city_explorer.providers.aggregator import CityAggregator

    async with CityAggregator.from_settings(settings) as aggregator:
        bundle = await aggregator.explore(query)

    print(json.dumps(bundle.model_dump(by_alias=True), indent=2, ensure_ascii=False))
    return 0


async def _init_db(settings: Settings) -> int:
    from city_explorer.database.connection import Database

    database = Database.from_settings(settings)
    try:
        if not await database.connect():
            print("Could not connect to the database.", file=sys.stderr)
            return 1
        await database.create_tables()
    finally:
        await database.disconnect()

    print("Tables created.")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="City Explorer - Search cities with weather and country data"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", help="Bind address (default from settings)")
    serve_parser.add_argument("--port", type=int, help="Port (default from settings)")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes (development)"
    )

    # Init-db command
    subparsers.add_parser("init-db", help="Create database tables")

    # Search command
    search_parser = subparsers.add_parser("search", help="Search cities by name prefix")
    search_parser.add_argument("query", help="City name prefix")

    # Explore command
    explore_parser = subparsers.add_parser(
        "explore", help="Show weather and country data for the top matching city"
    )
    explore_parser.add_argument("query", help="City name prefix")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "city_explorer.api.app:create_app",
            factory=True,
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=args.reload,
        )
        return 0

    commands = {
        "init-db": lambda: _init_db(settings),
        "search": lambda: _search(settings, args.query),
        "explore": lambda: _explore(settings, args.query),
    }

    try:
        return asyncio.run(commands[args.command]())
    except CityExplorerError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
