from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from src.ambrodeo.database import Base


class Follow(Base):
    """`address` follows `user_address`."""
    __tablename__ = "follows"
    __table_args__ = (UniqueConstraint("address", "user_address", name="uq_follows_address_user"),)

    target_column = "user_address"

    id = Column(Integer, primary_key=True, index=True)
    address = Column(String, nullable=False, index=True)
    user_address = Column(String, nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow)
