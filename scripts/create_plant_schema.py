"""Create the ``plants`` custom object schema in a HubSpot portal.

The schema must exist before the card can save plants. Run once per portal with
a token that has the ``crm.schemas.custom.write`` scope::

    python -m scripts.create_plant_schema --access-token "$HUBSPOT_ACCESS_TOKEN"
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


def _text_property(name: str, label: str, description: str, field_type: str = "text") -> Dict[str, str]:
    return {
        "name": name,
        "label": label,
        "type": "string",
        "fieldType": field_type,
        "description": description,
    }


PLANT_SCHEMA: Dict[str, Any] = {
    "name": "plants",
    "labels": {"singular": "Plant", "plural": "Plants"},
    "primaryDisplayProperty": "plant_name",
    "secondaryDisplayProperties": ["scientific_name", "care_level"],
    "searchableProperties": ["plant_name", "scientific_name"],
    "requiredProperties": ["plant_name"],
    "properties": [
        _text_property("plant_name", "Plant Name", "Common name of the plant"),
        _text_property("scientific_name", "Scientific Name", "Scientific/botanical name of the plant"),
        _text_property("watering_frequency", "Watering Frequency", "How often the plant needs to be watered"),
        _text_property("watering_period", "Watering Period", "Specific watering period from Perenual"),
        _text_property("sunlight_requirement", "Sunlight Requirement", "Amount of sunlight needed"),
        _text_property("care_level", "Care Level", "Difficulty level of caring for this plant"),
        _text_property("perenual_plant_id", "Perenual Plant ID", "ID from Perenual API database"),
        _text_property("image_url", "Image URL", "URL to plant image"),
        _text_property(
            "description",
            "Description",
            "Plant description and care information",
            field_type="textarea",
        ),
        {
            "name": "next_watering_date",
            "label": "Next Watering Date",
            "type": "date",
            "fieldType": "date",
            "description": "Next scheduled watering date",
        },
    ],
    "associatedObjects": ["CONTACT"],
}


async def create_schema(client: HubSpotCRMClient) -> int:
    try:
        result = await client.create_schema(PLANT_SCHEMA)
    except HubSpotAPIError as exc:
        if "already exists" in str(exc).lower() or exc.status_code == 409:
            print("Plants custom object already exists.")
            return EXIT_OK
        print(f"Error creating custom object: {exc}", file=sys.stderr)
        return EXIT_API_ERROR

    print("Created Plants custom object.")
    print(f"  objectTypeId: {result.get('objectTypeId') or result.get('id')}")
    print(f"  fullyQualifiedName: {result.get('fullyQualifiedName')}")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create the plants custom object schema.")
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
    return asyncio.run(create_schema(client))


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
