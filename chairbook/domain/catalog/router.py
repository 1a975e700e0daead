"""Catalog router - FastAPI endpoints for the service catalog"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...context import BusinessContext, get_business_context
from ...database import get_db
from ...models import Service
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService

router = APIRouter(prefix="/services", tags=["Services"])


def get_catalog_service(
    db: Session = Depends(get_db),
    ctx: BusinessContext = Depends(get_business_context),
) -> CatalogService:
    return CatalogService(db, ctx)


def to_service_response(service: Service) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        name=service.name,
        price=service.price,
        createdBy=service.created_by,
        createdAt=service.created_at,
    )


@router.get("", response_model=list[ServiceResponse])
async def get_services(service: CatalogService = Depends(get_catalog_service)):
    return [to_service_response(s) for s in service.get_services()]


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    return to_service_response(service.get_service(service_id))


@router.post("", response_model=ServiceResponse)
async def create_service(data: ServiceCreate, service: CatalogService = Depends(get_catalog_service)):
    return to_service_response(service.create_service(data))


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    return to_service_response(service.update_service(service_id, data))


@router.delete("/{service_id}")
async def delete_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.delete_service(service_id)
