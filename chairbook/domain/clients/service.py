"""Client service - Business logic for clients and visit tracking"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import AT_RISK_DAYS
from ...context import BusinessContext
from ...models import Client, ClientHistory
from ...shared.timeutils import from_db, utcnow
from .repository import ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)

VISIT_COMPLETED = "visit_completed"
APPOINTMENT_CANCELLED = "appointment_cancelled"
REMINDER_SENT = "reminder_sent"
CLIENT_CREATED = "client_created"


def risk_level(days_since_last_visit: int) -> str:
    if days_since_last_visit > 60:
        return "high"
    if days_since_last_visit > 45:
        return "medium"
    return "low"


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session, ctx: BusinessContext):
        self.db = db
        self.ctx = ctx
        self.repo = ClientRepository()

    def get_clients(self, search: Optional[str] = None) -> list[Client]:
        return self.repo.get_clients(self.db, self.ctx, search)

    def get_client(self, client_id: int) -> Client:
        client = self.repo.get_client_by_id(self.db, self.ctx, client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def create_client(self, data: ClientCreate) -> Client:
        logger.info(f"📥 Creating client for business: {self.ctx.business_id}")

        client = self.repo.create_client(
            self.db,
            self.ctx,
            name=data.name,
            phone=data.phone,
            contact_method=data.contactMethod,
            contact_handle=data.contactHandle,
            notes=data.notes,
            total_visits=0,
            total_cancellations=0,
        )
        self.repo.add_history(
            self.db, self.ctx, client.id, CLIENT_CREATED, utcnow(), notes="Client created"
        )
        self.db.commit()
        return client

    def update_client(self, client_id: int, data: ClientUpdate) -> Client:
        client = self.get_client(client_id)

        updates = {}
        if data.name is not None:
            updates["name"] = data.name
        if data.phone is not None:
            updates["phone"] = data.phone
        if data.contactMethod is not None:
            updates["contact_method"] = data.contactMethod
        if data.contactHandle is not None:
            updates["contact_handle"] = data.contactHandle
        if data.notes is not None:
            updates["notes"] = data.notes

        return self.repo.update_client(self.db, client, **updates)

    def delete_client(self, client_id: int) -> dict:
        client = self.get_client(client_id)
        self.repo.delete_client(self.db, client)
        return {"message": "Client deleted"}

    # ------------------------------------------------------------------
    # Visit tracking (client-history sink)
    # ------------------------------------------------------------------

    def has_visit_record(self, appointment_id: int, occurrence_start: Optional[datetime] = None) -> bool:
        return (
            self.repo.find_history(
                self.db, self.ctx, appointment_id, VISIT_COMPLETED, occurrence_start
            )
            is not None
        )

    def record_visit_completed(
        self,
        client_id: Optional[int],
        appointment_id: int,
        occurrence_start: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> Optional[ClientHistory]:
        """Bump the visit counter and log the visit. Walk-ins without a client are skipped."""
        if not client_id:
            return None
        client = self.repo.get_client_by_id(self.db, self.ctx, client_id)
        if not client:
            return None

        now = now or utcnow()
        client.total_visits = (client.total_visits or 0) + 1
        client.last_visit = now
        entry = self.repo.add_history(
            self.db,
            self.ctx,
            client.id,
            VISIT_COMPLETED,
            now,
            appointment_id=appointment_id,
            occurrence_start=occurrence_start,
            notes=f"Visit #{client.total_visits} completed",
        )
        self.db.commit()

        logger.info(f"📊 Client {client.name}: visit completed (total: {client.total_visits})")
        return entry

    def record_cancellation(
        self,
        client_id: Optional[int],
        appointment_id: int,
        reason: Optional[str] = None,
        occurrence_start: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> Optional[ClientHistory]:
        """Bump the cancellation counter once per appointment (or occurrence) and log it"""
        if not client_id:
            return None
        if self.repo.find_history(
            self.db, self.ctx, appointment_id, APPOINTMENT_CANCELLED, occurrence_start
        ):
            logger.debug(f"ℹ️ Cancellation of appointment {appointment_id} already recorded")
            return None
        client = self.repo.get_client_by_id(self.db, self.ctx, client_id)
        if not client:
            return None

        now = now or utcnow()
        client.total_cancellations = (client.total_cancellations or 0) + 1
        entry = self.repo.add_history(
            self.db,
            self.ctx,
            client.id,
            APPOINTMENT_CANCELLED,
            now,
            appointment_id=appointment_id,
            occurrence_start=occurrence_start,
            notes=reason or f"Cancellation #{client.total_cancellations}",
        )
        self.db.commit()

        logger.info(
            f"❌ Client {client.name}: appointment cancelled "
            f"(total cancellations: {client.total_cancellations})"
        )
        return entry

    def record_reminder_sent(self, client_id: int, method: str, now: Optional[datetime] = None) -> ClientHistory:
        client = self.get_client(client_id)

        now = now or utcnow()
        client.reminder_sent = now
        entry = self.repo.add_history(
            self.db, self.ctx, client.id, REMINDER_SENT, now, notes=f"Reminder sent via {method}"
        )
        self.db.commit()

        logger.info(f"📱 Client {client.name}: reminder sent via {method}")
        return entry

    def get_history(self, client_id: int) -> list[ClientHistory]:
        self.get_client(client_id)
        return self.repo.get_history(self.db, self.ctx, client_id)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    @staticmethod
    def _last_seen(client: Client) -> Optional[datetime]:
        """Last visit, or the creation date for clients who never came"""
        return from_db(client.last_visit) or from_db(client.created_at)

    def get_clients_at_risk(
        self, days_since_last_visit: int = AT_RISK_DAYS, now: Optional[datetime] = None
    ) -> list[tuple[Client, int, str]]:
        """Clients not seen for more than `days_since_last_visit` days, longest absence first"""
        now = now or utcnow()
        cutoff = now - timedelta(days=days_since_last_visit)

        at_risk = []
        for client in self.repo.get_clients(self.db, self.ctx):
            last_seen = self._last_seen(client)
            if last_seen is None or last_seen >= cutoff:
                continue
            days = (now - last_seen).days
            at_risk.append((client, days, risk_level(days)))

        return sorted(at_risk, key=lambda item: item[1], reverse=True)

    def get_client_stats(self, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        cutoff = now - timedelta(days=AT_RISK_DAYS)
        clients = self.repo.get_clients(self.db, self.ctx)

        active = 0
        at_risk = 0
        for client in clients:
            last_visit = from_db(client.last_visit)
            if last_visit and last_visit > cutoff:
                active += 1
            last_seen = self._last_seen(client)
            if last_seen and last_seen < cutoff:
                at_risk += 1

        total_visits = sum(c.total_visits or 0 for c in clients)
        total_cancellations = sum(c.total_cancellations or 0 for c in clients)
        attempts = total_visits + total_cancellations

        return {
            "totalClients": len(clients),
            "activeClients": active,
            "atRisk": at_risk,
            "totalVisits": total_visits,
            "totalCancellations": total_cancellations,
            "cancellationRate": round(total_cancellations / attempts * 100) if attempts else 0,
        }
