"""Catalog repository - Database operations for services"""

from typing import Optional

from sqlalchemy.orm import Session

from ...context import BusinessContext
from ...models import Service


class ServiceRepository:
    """Repository for catalog service database operations"""

    @staticmethod
    def get_services(db: Session, ctx: BusinessContext) -> list[Service]:
        return (
            db.query(Service)
            .filter(Service.business_id == ctx.business_id)
            .order_by(Service.name.asc())
            .all()
        )

    @staticmethod
    def get_service_by_id(db: Session, ctx: BusinessContext, service_id: int) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.business_id == ctx.business_id)
            .first()
        )

    @staticmethod
    def create_service(db: Session, ctx: BusinessContext, **service_data) -> Service:
        service = Service(business_id=ctx.business_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def delete_service(db: Session, service: Service) -> None:
        db.delete(service)
        db.commit()
