from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from sitedirectory.core.database import Base


class User(Base):
    """Operator account. Read-only here; accounts are managed by the auth provider."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255))
    phone = Column(String(20))

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
