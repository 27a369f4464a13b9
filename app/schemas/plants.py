"""Schemas for the plant search card and workflow action."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PlantSummary(BaseModel):
    """Search result row shown in the UI card."""

    id: int
    common_name: Optional[str] = None
    scientific_name: List[str] = Field(default_factory=list)
    thumbnail: Optional[str] = None
    watering: str = "Unknown"
    sunlight: List[str] = Field(default_factory=list)


class PlantSearchResponse(BaseModel):
    data: List[PlantSummary]


class PlantDetails(BaseModel):
    """Species details returned to the card before a plant is saved."""

    id: int
    common_name: Optional[str] = None
    scientific_name: str = ""
    image: Optional[str] = None
    watering: Optional[str] = None
    watering_period: str = "Not specified"
    sunlight: List[str] = Field(default_factory=list)
    care_level: str = "Unknown"
    description: str = "No description available"
    cycle: str = "Unknown"
    attracts: List[str] = Field(default_factory=list)
    propagation: List[str] = Field(default_factory=list)


class PlantAssociationRequest(BaseModel):
    """Body posted by the card to save a plant against a contact."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    contact_id: Optional[Union[int, str]] = Field(None, alias="contactId")
    plant_id: Optional[Union[int, str]] = Field(None, alias="plantId")
    common_name: Optional[str] = Field(None, alias="commonName")
    scientific_name: Optional[str] = Field(None, alias="scientificName")
    watering: Optional[str] = None
    watering_period: Optional[str] = Field(None, alias="wateringPeriod")
    sunlight: Optional[Union[List[str], str]] = None
    care_level: Optional[str] = Field(None, alias="careLevel")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    description: Optional[str] = None


class PlantAssociationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    plant_object_id: str = Field(..., alias="plantObjectId")
    message: str = "Plant successfully created and associated with contact"


class ContactPlant(BaseModel):
    """A saved plant custom object."""

    id: str
    properties: Dict[str, Any] = Field(default_factory=dict)


class ContactPlantsResponse(BaseModel):
    data: List[ContactPlant]


class WorkflowActionResponse(BaseModel):
    """Response shape expected by HubSpot custom workflow actions."""

    model_config = ConfigDict(populate_by_name=True)

    output_fields: Dict[str, Any] = Field(..., alias="outputFields")


__all__ = [
    "ContactPlant",
    "ContactPlantsResponse",
    "PlantAssociationRequest",
    "PlantAssociationResult",
    "PlantDetails",
    "PlantSearchResponse",
    "PlantSummary",
    "WorkflowActionResponse",
]
