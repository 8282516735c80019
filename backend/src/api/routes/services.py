"""
Service catalog API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from src.models.transactions import ServiceCategory
from src.services.catalog import list_catalog


# Pydantic schemas
class CatalogEntryResponse(BaseModel):
    """One priced service."""
    code: str
    label: str
    category: str
    type: str
    pricing: str
    unit_price: float
    base_price: float
    unit: str


# Router
router = APIRouter(prefix="/services", tags=["services"])


@router.get("", response_model=List[CatalogEntryResponse])
def list_services(
    category: Optional[ServiceCategory] = Query(None, description="Filter by category"),
) -> List[CatalogEntryResponse]:
    """
    List the price list.

    Query parameters:
    - category: Filter by service category (barbing, charging, computer)

    Returns:
        Catalog entries in display order
    """
    return [
        CatalogEntryResponse(
            code=rule.code,
            label=rule.label,
            category=rule.category.value,
            type=rule.item_type,
            pricing=rule.shape.value,
            unit_price=float(rule.unit_price),
            base_price=float(rule.base_price),
            unit=rule.unit_name,
        )
        for rule in list_catalog(category)
    ]
