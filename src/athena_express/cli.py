import argparse
import asyncio
import dataclasses
import json
import logging
import sys

from dotenv import load_dotenv

from athena_express.client import AthenaExpress
from athena_express.config.settings import AthenaConfig
from athena_express.dal.async_query_executor import QueryRequest
from athena_express.dal.errors import AthenaQueryError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a SQL query on Amazon Athena")
    parser.add_argument("sql", help="SQL statement to execute")
    parser.add_argument(
        "--database",
        default=None,
        help="Database to run against (default: ATHENA_DATABASE or 'default')",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print result lines as-is instead of decoded records",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Include data scanned, cost estimate, and engine time",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    """Run the athena-express CLI."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = AthenaConfig.from_env()
    except (KeyError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    overrides = {}
    if args.raw:
        overrides["format_json"] = False
    if args.stats:
        overrides["get_stats"] = True
    if overrides:
        config = dataclasses.replace(config, **overrides)

    client = AthenaExpress(config)
    try:
        result = asyncio.run(client.query(QueryRequest(sql=args.sql, database=args.database)))
    except ValueError as e:
        logger.error("Invalid query: %s", e)
        return 1
    except AthenaQueryError as e:
        logger.error("Query failed [%s]: %s", e.reason_code, e)
        return 1

    json.dump(result.to_payload(), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
