from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    contact_method = Column(String(20), nullable=True)  # whatsapp, instagram, phone
    contact_handle = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Visit tracking counters, maintained by the client-history sink
    total_visits = Column(Integer, default=0, nullable=False)
    total_cancellations = Column(Integer, default=0, nullable=False)
    last_visit = Column(DateTime(timezone=True), nullable=True)
    reminder_sent = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    history = relationship(
        "ClientHistory", back_populates="client", cascade="all, delete-orphan"
    )
    appointments = relationship("Appointment", back_populates="client")


class ClientHistory(Base):
    """Append-only log of client events (visits, cancellations, reminders)"""

    __tablename__ = "client_history"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    # visit_completed, appointment_cancelled, reminder_sent, client_created
    event_type = Column(String(50), nullable=False, index=True)
    appointment_id = Column(Integer, nullable=True, index=True)
    # Set for events that belong to a single recurring occurrence
    occurrence_start = Column(DateTime(timezone=True), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)

    client = relationship("Client", back_populates="history")


class Service(Base):
    """Catalog entry for a service the business offers"""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)
    created_by = Column(Integer, ForeignKey("staff_members.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class StaffMember(Base):
    __tablename__ = "staff_members"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), default="staff", nullable=False)  # admin, staff
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    schedules = relationship(
        "StaffSchedule", back_populates="staff_member", cascade="all, delete-orphan"
    )


class StaffSchedule(Base):
    """Weekly working hours of a staff member"""

    __tablename__ = "staff_schedules"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    staff_member_id = Column(Integer, ForeignKey("staff_members.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0=Monday .. 6=Sunday
    start_time = Column(String(5), nullable=False)  # HH:MM format
    end_time = Column(String(5), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    staff_member = relationship("StaffMember", back_populates="schedules")


class Appointment(Base):
    """
    Base definition of an appointment. Recurring appointments are expanded
    into occurrences at query time; only exceptions are stored per instance.
    """

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)
    service_name = Column(String(255), nullable=True)  # Free-text service when no catalog entry
    title = Column(String(255), nullable=False, default="Appointment")

    # Scheduling
    start_at = Column(DateTime(timezone=True), nullable=False, index=True)
    duration_min = Column(Integer, nullable=False)
    is_recurring = Column(Boolean, default=False, nullable=False)
    # {"freq": "WEEKLY", "interval": 1, "byweekday": [3], "until": "...", "count": 10}
    rrule = Column(JSON, nullable=True)
    timezone = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)

    # Status workflow: pending → done (automatic once elapsed) | cancelled (manual)
    status = Column(String(20), default="pending", nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("staff_members.id"), nullable=True, index=True)

    # Payment
    payment_method = Column(String(20), nullable=True)  # cash, card, transfer
    list_price = Column(Float, nullable=True)
    discount = Column(Float, nullable=True)  # Percent
    final_price = Column(Float, nullable=True)
    payment_status = Column(String(20), default="pending", nullable=False)  # pending, paid, cancelled
    payment_notes = Column(Text, nullable=True)

    # Actual execution times, set when the appointment is completed
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    actual_duration_min = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="appointments")
    exceptions = relationship(
        "AppointmentException", back_populates="appointment", cascade="all, delete-orphan"
    )


class AppointmentException(Base):
    """Skip or move override for one instance of a recurring appointment"""

    __tablename__ = "appointment_exceptions"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(64), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    original_start = Column(DateTime(timezone=True), nullable=False)
    type = Column(String(10), nullable=False)  # skip, move
    new_start = Column(DateTime(timezone=True), nullable=True)
    new_duration_min = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    appointment = relationship("Appointment", back_populates="exceptions")
