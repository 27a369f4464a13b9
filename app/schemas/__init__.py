"""Public schema exports."""

from .plants import (
    ContactPlant,
    ContactPlantsResponse,
    PlantAssociationRequest,
    PlantAssociationResult,
    PlantDetails,
    PlantSearchResponse,
    PlantSummary,
    WorkflowActionResponse,
)

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
