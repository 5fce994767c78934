"""Client model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from repairshop.database import Base


class Client(Base):
    """Represents a shop customer."""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True)
    phone = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
