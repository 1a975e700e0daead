"""Catalog service - Business logic for the service catalog"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...context import BusinessContext
from ...models import Service
from .repository import ServiceRepository
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session, ctx: BusinessContext):
        self.db = db
        self.ctx = ctx
        self.repo = ServiceRepository()

    def get_services(self) -> list[Service]:
        return self.repo.get_services(self.db, self.ctx)

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service_by_id(self.db, self.ctx, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        service = self.repo.create_service(
            self.db,
            self.ctx,
            name=data.name,
            price=data.price,
            created_by=self.ctx.staff_id,
        )
        logger.info(f"✅ Service created: {service.name} ({service.price})")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)
        return self.repo.update_service(self.db, service, name=data.name, price=data.price)

    def delete_service(self, service_id: int) -> dict:
        service = self.get_service(service_id)
        self.repo.delete_service(self.db, service)
        return {"message": "Service deleted"}
