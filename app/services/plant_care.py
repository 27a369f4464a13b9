"""
Plant care operations: formatting Perenual data and keeping CRM plant records.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from app.clients.hubspot_crm import HubSpotAPIError, HubSpotCRMClient
from app.schemas.plants import (
    ContactPlant,
    PlantAssociationRequest,
    PlantDetails,
    PlantSummary,
)

logger = logging.getLogger(__name__)

WATERING_PERIOD_DAYS: Dict[str, int] = {
    "daily": 1,
    "frequent": 1,
    "average": 7,
    "minimum": 14,
    "none": 30,
}
DEFAULT_WATERING_DAYS = 7

PLANT_PROPERTIES: tuple[str, ...] = (
    "plant_name",
    "scientific_name",
    "watering_frequency",
    "watering_period",
    "sunlight_requirement",
    "care_level",
    "perenual_plant_id",
    "image_url",
    "description",
    "next_watering_date",
)


class PlantSchemaMissingError(Exception):
    """The plants custom object has not been defined in the portal."""


def calculate_next_watering_date(
    watering_period: Optional[str], *, today: Optional[date] = None
) -> str:
    """Return the next watering day as ``YYYY-MM-DD``."""
    start = today or datetime.now(timezone.utc).date()
    days = WATERING_PERIOD_DAYS.get((watering_period or "").strip().lower(), DEFAULT_WATERING_DAYS)
    return (start + timedelta(days=days)).isoformat()


def summarize_species(plant: Dict[str, Any]) -> PlantSummary:
    image = plant.get("default_image") or {}
    return PlantSummary(
        id=plant["id"],
        common_name=plant.get("common_name"),
        scientific_name=plant.get("scientific_name") or [],
        thumbnail=image.get("thumbnail") or None,
        watering=plant.get("watering") or "Unknown",
        sunlight=plant.get("sunlight") or [],
    )


def format_species_details(plant: Dict[str, Any]) -> PlantDetails:
    image = plant.get("default_image") or {}
    scientific = plant.get("scientific_name") or []
    if isinstance(scientific, str):
        scientific_name = scientific
    else:
        scientific_name = scientific[0] if scientific else ""
    return PlantDetails(
        id=plant["id"],
        common_name=plant.get("common_name"),
        scientific_name=scientific_name,
        image=image.get("original_url") or image.get("regular_url") or None,
        watering=plant.get("watering"),
        watering_period=plant.get("watering_period") or "Not specified",
        sunlight=plant.get("sunlight") or [],
        care_level=plant.get("care_level") or "Unknown",
        description=plant.get("description") or "No description available",
        cycle=plant.get("cycle") or "Unknown",
        attracts=plant.get("attracts") or [],
        propagation=plant.get("propagation") or [],
    )


def build_plant_properties(
    request: PlantAssociationRequest, *, today: Optional[date] = None
) -> Dict[str, str]:
    """Map a card submission onto the plants custom object properties."""
    sunlight = request.sunlight
    if isinstance(sunlight, list):
        sunlight_text = ", ".join(sunlight)
    else:
        sunlight_text = sunlight or "Unknown"
    return {
        "plant_name": request.common_name or "",
        "scientific_name": request.scientific_name or "",
        "watering_frequency": request.watering or "Unknown",
        "watering_period": request.watering_period or "Unknown",
        "sunlight_requirement": sunlight_text,
        "care_level": request.care_level or "Unknown",
        "perenual_plant_id": str(request.plant_id),
        "image_url": request.image_url or "",
        "description": request.description or "",
        "next_watering_date": calculate_next_watering_date(
            request.watering_period, today=today
        ),
    }


class PlantCareService:
    """Create, list, water and remove plant records for a portal."""

    def __init__(self, crm_client: HubSpotCRMClient, *, plant_object_type: str) -> None:
        self._crm = crm_client
        self._plant_type = plant_object_type

    async def add_plant_to_contact(
        self, request: PlantAssociationRequest, *, today: Optional[date] = None
    ) -> str:
        """Create the plant custom object and associate it with the contact."""
        properties = build_plant_properties(request, today=today)
        logger.info("Creating plant %s for contact %s", request.common_name, request.contact_id)
        try:
            created = await self._crm.create_object(self._plant_type, properties)
        except HubSpotAPIError as exc:
            if "does not exist" in str(exc):
                raise PlantSchemaMissingError(
                    "Plant custom object schema not found. Please create it in HubSpot first."
                ) from exc
            raise
        plant_object_id = str(created["id"])
        await self._crm.associate_default(
            self._plant_type, plant_object_id, "contacts", str(request.contact_id)
        )
        logger.info("Associated plant %s with contact %s", plant_object_id, request.contact_id)
        return plant_object_id

    async def list_contact_plants(self, contact_id: str) -> List[ContactPlant]:
        plant_ids = await self._crm.list_associated_ids("contacts", contact_id, self._plant_type)
        records = await self._crm.batch_read_objects(self._plant_type, plant_ids, PLANT_PROPERTIES)
        return [
            ContactPlant(id=str(record["id"]), properties=record.get("properties") or {})
            for record in records
        ]

    async def remove_plant(self, plant_object_id: str) -> None:
        logger.info("Archiving plant %s", plant_object_id)
        await self._crm.archive_object(self._plant_type, plant_object_id)

    async def water_plant(
        self, plant_object_id: str, *, today: Optional[date] = None
    ) -> str:
        """Record a watering by pushing ``next_watering_date`` forward."""
        record = await self._crm.get_object(
            self._plant_type, plant_object_id, properties=("watering_period",)
        )
        watering_period = (record.get("properties") or {}).get("watering_period")
        next_date = calculate_next_watering_date(watering_period, today=today)
        await self._crm.update_object(
            self._plant_type, plant_object_id, {"next_watering_date": next_date}
        )
        logger.info("Watered plant %s; next watering %s", plant_object_id, next_date)
        return next_date


__all__ = [
    "DEFAULT_WATERING_DAYS",
    "PLANT_PROPERTIES",
    "PlantCareService",
    "PlantSchemaMissingError",
    "WATERING_PERIOD_DAYS",
    "build_plant_properties",
    "calculate_next_watering_date",
    "format_species_details",
    "summarize_species",
]
