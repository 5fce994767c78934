"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Time
from repairshop.database import Base


class Appointment(Base):
    """Represents a booked visit of a client's vehicle to the shop."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_date_assignee", "appointment_date", "assigned_to"),
        Index("idx_appointments_status", "status"),
    )

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"))
    assigned_to = Column(Integer, ForeignKey("users.id"))  # mechanic; null means unassigned
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    estimated_duration = Column(Integer, nullable=False, default=60)
    status = Column(String, nullable=False, default="scheduled")
    priority = Column(String, nullable=False, default="normal")
    notes = Column(String)
    internal_notes = Column(String)
    actual_end_time = Column(DateTime)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
