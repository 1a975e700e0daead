"""Client repository - Database operations for clients and their history"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...context import BusinessContext
from ...models import Client, ClientHistory
from ...shared.timeutils import as_utc


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_clients(db: Session, ctx: BusinessContext, search: Optional[str] = None) -> list[Client]:
        """Get all clients of the business, optionally filtered by name or phone"""
        query = db.query(Client).filter(Client.business_id == ctx.business_id)

        if search:
            search_term = f"%{search.lower()}%"
            query = query.filter(
                (Client.name.ilike(search_term)) | (Client.phone.ilike(search_term))
            )

        return query.order_by(Client.name.asc()).all()

    @staticmethod
    def get_client_by_id(db: Session, ctx: BusinessContext, client_id: int) -> Optional[Client]:
        return (
            db.query(Client)
            .filter(Client.id == client_id, Client.business_id == ctx.business_id)
            .first()
        )

    @staticmethod
    def create_client(db: Session, ctx: BusinessContext, **client_data) -> Client:
        client = Client(business_id=ctx.business_id, **client_data)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(client, key):
                setattr(client, key, value)

        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        db.delete(client)
        db.commit()

    # History Methods
    @staticmethod
    def add_history(
        db: Session,
        ctx: BusinessContext,
        client_id: int,
        event_type: str,
        timestamp: datetime,
        appointment_id: Optional[int] = None,
        occurrence_start: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ClientHistory:
        entry = ClientHistory(
            business_id=ctx.business_id,
            client_id=client_id,
            event_type=event_type,
            appointment_id=appointment_id,
            occurrence_start=as_utc(occurrence_start),
            timestamp=as_utc(timestamp),
            notes=notes,
        )
        db.add(entry)
        return entry

    @staticmethod
    def find_history(
        db: Session,
        ctx: BusinessContext,
        appointment_id: int,
        event_type: str,
        occurrence_start: Optional[datetime] = None,
    ) -> Optional[ClientHistory]:
        """Find an existing history entry for an appointment (or one of its occurrences)"""
        query = db.query(ClientHistory).filter(
            ClientHistory.business_id == ctx.business_id,
            ClientHistory.appointment_id == appointment_id,
            ClientHistory.event_type == event_type,
        )
        if occurrence_start is not None:
            query = query.filter(ClientHistory.occurrence_start == as_utc(occurrence_start))
        return query.first()

    @staticmethod
    def get_history(db: Session, ctx: BusinessContext, client_id: int) -> list[ClientHistory]:
        """Get history for a client, newest first"""
        return (
            db.query(ClientHistory)
            .filter(
                ClientHistory.business_id == ctx.business_id,
                ClientHistory.client_id == client_id,
            )
            .order_by(ClientHistory.timestamp.desc(), ClientHistory.id.desc())
            .all()
        )
