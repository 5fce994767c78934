"""User model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from repairshop.database import Base


class User(Base):
    """Represents a staff member of the shop."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    first_name = Column(String)
    last_name = Column(String)
    role = Column(String)  # owner/manager/mechanic/receptionist
    is_active = Column(Boolean, nullable=False, default=True)
