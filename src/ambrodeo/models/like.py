from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from src.ambrodeo.database import Base


class Like(Base):
    """A token like: one row per (address, token_address)."""
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("address", "token_address", name="uq_likes_address_token"),)

    target_column = "token_address"

    id = Column(Integer, primary_key=True, index=True)
    address = Column(String, nullable=False, index=True)
    token_address = Column(String, nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow)
