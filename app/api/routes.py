"""
FastAPI routes backing the plant search card and the watering workflow action.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from app.clients import (
    HubSpotAPIError,
    PerenualAPIError,
    PerenualClient,
    PerenualNotConfiguredError,
)
from app.dependencies import (
    get_authenticated_portal,
    get_perenual_client,
    get_plant_care_service,
)
from app.schemas import (
    ContactPlantsResponse,
    PlantAssociationRequest,
    PlantAssociationResult,
    PlantDetails,
    PlantSearchResponse,
    WorkflowActionResponse,
)
from app.services import AuthenticatedPortal, PlantCareService, PlantSchemaMissingError
from app.services.plant_care import format_species_details, summarize_species

router = APIRouter()
logger = logging.getLogger(__name__)


def _perenual_http_error(exc: PerenualAPIError | PerenualNotConfiguredError) -> HTTPException:
    if isinstance(exc, PerenualNotConfiguredError):
        return HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR, detail="API key not configured"
        )
    return HTTPException(
        status_code=exc.status_code,
        detail={"error": f"Perenual API error: {exc.status_code}", "details": exc.details},
    )


def _crm_http_error(exc: HubSpotAPIError, action: str) -> HTTPException:
    return HTTPException(
        status_code=HTTPStatus.BAD_GATEWAY,
        detail={"error": f"Failed to {action}", "details": str(exc)},
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/plants/search", response_model=PlantSearchResponse)
async def search_plants(
    perenual: Annotated[PerenualClient, Depends(get_perenual_client)],
    q: str | None = Query(default=None, description="Free-text plant name query."),
    indoor: bool | None = Query(default=None),
) -> PlantSearchResponse:
    if not q or not q.strip():
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail='Query parameter "q" is required',
        )

    logger.info("Searching for plants: %s", q)
    try:
        species = await perenual.search_species(q, indoor=indoor)
    except (PerenualAPIError, PerenualNotConfiguredError) as exc:
        raise _perenual_http_error(exc) from exc

    return PlantSearchResponse(data=[summarize_species(plant) for plant in species])


@router.get("/plants/{plant_id}", response_model=PlantDetails)
async def get_plant_details(
    plant_id: int,
    perenual: Annotated[PerenualClient, Depends(get_perenual_client)],
) -> PlantDetails:
    logger.info("Fetching plant details for ID: %s", plant_id)
    try:
        plant = await perenual.get_species_details(plant_id)
    except (PerenualAPIError, PerenualNotConfiguredError) as exc:
        raise _perenual_http_error(exc) from exc
    return format_species_details(plant)


@router.post("/plants/associate", response_model=PlantAssociationResult)
async def associate_plant(
    auth: Annotated[AuthenticatedPortal, Depends(get_authenticated_portal)],
    plant_care: Annotated[PlantCareService, Depends(get_plant_care_service)],
) -> PlantAssociationResult:
    """Create a plant custom object and associate it with a contact."""
    try:
        payload = PlantAssociationRequest.model_validate(auth.payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY, detail=exc.errors()
        ) from exc

    if not payload.contact_id or payload.plant_id in (None, ""):
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="contactId and plantId are required",
        )

    try:
        plant_object_id = await plant_care.add_plant_to_contact(payload)
    except PlantSchemaMissingError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc
    except HubSpotAPIError as exc:
        raise _crm_http_error(exc, "create plant") from exc

    return PlantAssociationResult(plant_object_id=plant_object_id)


@router.get("/plants/contact/{contact_id}", response_model=ContactPlantsResponse)
async def list_contact_plants(
    contact_id: str,
    plant_care: Annotated[PlantCareService, Depends(get_plant_care_service)],
) -> ContactPlantsResponse:
    try:
        plants = await plant_care.list_contact_plants(contact_id)
    except HubSpotAPIError as exc:
        raise _crm_http_error(exc, "fetch associated plants") from exc
    return ContactPlantsResponse(data=plants)


@router.delete("/plants/contact/{contact_id}/plant/{plant_object_id}")
async def remove_contact_plant(
    contact_id: str,
    plant_object_id: str,
    plant_care: Annotated[PlantCareService, Depends(get_plant_care_service)],
) -> dict:
    try:
        await plant_care.remove_plant(plant_object_id)
    except HubSpotAPIError as exc:
        raise _crm_http_error(exc, "remove plant") from exc
    logger.info("Removed plant %s from contact %s", plant_object_id, contact_id)
    return {"success": True, "plantObjectId": plant_object_id}


def _workflow_plant_id(payload: dict[str, Any]) -> str | None:
    input_fields = payload.get("inputFields") or {}
    candidate = input_fields.get("plantObjectId") or (payload.get("object") or {}).get("objectId")
    return str(candidate) if candidate not in (None, "") else None


@router.post(
    "/workflows/water-plant",
    response_model=WorkflowActionResponse,
    response_model_by_alias=True,
)
async def water_plant_action(
    auth: Annotated[AuthenticatedPortal, Depends(get_authenticated_portal)],
    plant_care: Annotated[PlantCareService, Depends(get_plant_care_service)],
) -> WorkflowActionResponse:
    """Custom workflow action: mark the enrolled plant as watered."""
    plant_object_id = _workflow_plant_id(auth.payload)
    if plant_object_id is None:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Workflow payload does not identify a plant.",
        )

    try:
        next_date = await plant_care.water_plant(plant_object_id)
    except HubSpotAPIError as exc:
        logger.error("Watering plant %s failed: %s", plant_object_id, exc)
        return WorkflowActionResponse(
            output_fields={
                "hs_execution_state": "FAIL_CONTINUE",
                "errorMessage": str(exc),
            }
        )

    return WorkflowActionResponse(
        output_fields={
            "hs_execution_state": "SUCCESS",
            "next_watering_date": next_date,
        }
    )


__all__ = ["router"]
