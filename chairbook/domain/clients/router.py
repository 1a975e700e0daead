"""Client router - FastAPI endpoints for client operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...config import AT_RISK_DAYS
from ...context import BusinessContext, get_business_context
from ...database import get_db
from ...models import Client, ClientHistory
from .schemas import (
    ClientAtRiskResponse,
    ClientCreate,
    ClientHistoryResponse,
    ClientResponse,
    ClientStatsResponse,
    ClientUpdate,
    ReminderRequest,
)
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(
    db: Session = Depends(get_db),
    ctx: BusinessContext = Depends(get_business_context),
) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db, ctx)


def to_client_response(client: Client) -> ClientResponse:
    return ClientResponse(
        id=client.id,
        name=client.name,
        phone=client.phone,
        contactMethod=client.contact_method,
        contactHandle=client.contact_handle,
        notes=client.notes,
        totalVisits=client.total_visits or 0,
        totalCancellations=client.total_cancellations or 0,
        lastVisit=client.last_visit,
        reminderSent=client.reminder_sent,
        createdAt=client.created_at,
    )


def to_history_response(entry: ClientHistory) -> ClientHistoryResponse:
    return ClientHistoryResponse(
        id=entry.id,
        clientId=entry.client_id,
        eventType=entry.event_type,
        appointmentId=entry.appointment_id,
        occurrenceStart=entry.occurrence_start,
        timestamp=entry.timestamp,
        notes=entry.notes,
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    search: Optional[str] = Query(None),
    service: ClientService = Depends(get_client_service),
):
    """Get all clients of the business"""
    return [to_client_response(c) for c in service.get_clients(search)]


@router.get("/at-risk", response_model=list[ClientAtRiskResponse])
async def get_clients_at_risk(
    days: int = Query(AT_RISK_DAYS, ge=1),
    service: ClientService = Depends(get_client_service),
):
    """Clients who have not visited for more than `days` days"""
    return [
        ClientAtRiskResponse(
            **to_client_response(client).model_dump(),
            daysSinceLastVisit=days_since,
            riskLevel=level,
        )
        for client, days_since, level in service.get_clients_at_risk(days)
    ]


@router.get("/stats/summary", response_model=ClientStatsResponse)
async def get_client_stats(service: ClientService = Depends(get_client_service)):
    return ClientStatsResponse(**service.get_client_stats())


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, service: ClientService = Depends(get_client_service)):
    return to_client_response(service.get_client(client_id))


@router.post("", response_model=ClientResponse)
async def create_client(data: ClientCreate, service: ClientService = Depends(get_client_service)):
    return to_client_response(service.create_client(data))


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    service: ClientService = Depends(get_client_service),
):
    return to_client_response(service.update_client(client_id, data))


@router.delete("/{client_id}")
async def delete_client(client_id: int, service: ClientService = Depends(get_client_service)):
    return service.delete_client(client_id)


# ============================================================================
# HISTORY
# ============================================================================


@router.get("/{client_id}/history", response_model=list[ClientHistoryResponse])
async def get_client_history(client_id: int, service: ClientService = Depends(get_client_service)):
    """Full event history of a client, newest first"""
    return [to_history_response(e) for e in service.get_history(client_id)]


@router.post("/{client_id}/reminders", response_model=ClientHistoryResponse)
async def record_reminder(
    client_id: int,
    data: ReminderRequest,
    service: ClientService = Depends(get_client_service),
):
    """Record that a reminder was sent to the client"""
    return to_history_response(service.record_reminder_sent(client_id, data.method))
