"""Product Routes — REST adapter over ProductService.

Invariants:
    - Handlers only translate HTTP <-> service calls; no cache or store access here
    - X-Actor-Id header (optional) becomes the audit actor for creations
    - Client IP and User-Agent captured as the audit source
    - PATCH forwards only fields present in the body (exclude_unset), so an
      explicit null clears description while an omitted field is untouched

Design Decisions:
    - Domain errors propagate to the global CatalogError handler (no try/except here)
    - Pydantic schemas reject malformed bodies early; ProductService re-validates
      so non-HTTP callers get the same guarantees
"""

import logging

from fastapi import APIRouter, Depends, Header, Request, status

from catalog.api.dependencies import get_product_service
from catalog.schemas.activity import RequestSource
from catalog.schemas.product import (
    DeleteResponse, ProductCreate, ProductRecord, ProductUpdate,
)
from catalog.services.product_service import ProductService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/products", tags=["products"])


def _request_source(request: Request) -> RequestSource:
    return RequestSource(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.post(
    "", response_model=ProductRecord, status_code=status.HTTP_201_CREATED,
)
async def create_product(
    body: ProductCreate,
    request: Request,
    x_actor_id: str | None = Header(default=None),
    service: ProductService = Depends(get_product_service),
):
    """Create a product; notifies listeners and queues an audit entry."""
    return await service.create(
        body.model_dump(), actor_id=x_actor_id, source=_request_source(request),
    )


@router.get("", response_model=list[ProductRecord])
async def list_products(service: ProductService = Depends(get_product_service)):
    return await service.list_all()


@router.get("/{product_id}", response_model=ProductRecord)
async def get_product(
    product_id: str, service: ProductService = Depends(get_product_service),
):
    return await service.get_by_id(product_id)


@router.patch("/{product_id}", response_model=ProductRecord)
async def update_product(
    product_id: str,
    body: ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    return await service.update(product_id, body.model_dump(exclude_unset=True))


@router.delete("/{product_id}", response_model=DeleteResponse)
async def delete_product(
    product_id: str, service: ProductService = Depends(get_product_service),
):
    return await service.delete(product_id)
