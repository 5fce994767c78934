"""Service catalog model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from repairshop.database import Base


class Service(Base):
    """Represents a service template offered by the shop."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String)
    estimated_duration = Column(Integer)  # minutes
    is_active = Column(Boolean, nullable=False, default=True)
