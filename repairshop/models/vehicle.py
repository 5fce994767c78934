"""Vehicle model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from repairshop.database import Base


class Vehicle(Base):
    """Represents a vehicle owned by a client."""
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    make = Column(String, nullable=False)
    model = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    license_plate = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
