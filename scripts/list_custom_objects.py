"""List the custom object schemas defined in a HubSpot portal.

Useful for confirming that ``create_plant_schema`` ran and for finding the
object type id HubSpot assigned to ``plants``::

    python -m scripts.list_custom_objects --access-token "$HUBSPOT_ACCESS_TOKEN"
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Any, Dict

from app.clients.hubspot_crm import HubSpotAPIError, HubSpotCRMClient

EXIT_OK = 0
EXIT_USAGE_ERROR = 1
EXIT_API_ERROR = 4


def _describe(schema: Dict[str, Any]) -> str:
    labels = schema.get("labels") or {}
    return "\n".join(
        [
            f"- Name: {schema.get('name')}",
            f"  ID: {schema.get('objectTypeId') or schema.get('id')}",
            f"  Labels: {labels.get('singular')} / {labels.get('plural')}",
        ]
    )


async def list_custom_objects(client: HubSpotCRMClient) -> int:
    try:
        schemas = await client.list_schemas()
    except HubSpotAPIError as exc:
        print(f"Error fetching custom objects: {exc}", file=sys.stderr)
        return EXIT_API_ERROR

    print(f"Found {len(schemas)} custom object(s):")
    for schema in schemas:
        print(_describe(schema))
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="List custom object schemas in a portal.")
    parser.add_argument(
        "--access-token",
        default=os.environ.get("HUBSPOT_ACCESS_TOKEN"),
        help="Portal access token (default: $HUBSPOT_ACCESS_TOKEN).",
    )
    parser.add_argument(
        "--api-base-url",
        default=os.environ.get("HUBSPOT_API_BASE_URL", "https://api.hubapi.com"),
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if not args.access_token:
        print("An access token is required (--access-token or HUBSPOT_ACCESS_TOKEN).", file=sys.stderr)
        return EXIT_USAGE_ERROR
    client = HubSpotCRMClient(args.access_token, base_url=args.api_base_url)
    return asyncio.run(list_custom_objects(client))


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
