from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from src.ambrodeo.database import Base


class MessageLike(Base):
    __tablename__ = "message_likes"
    __table_args__ = (UniqueConstraint("address", "message_id", name="uq_message_likes_address_message"),)

    target_column = "message_id"

    id = Column(Integer, primary_key=True, index=True)
    address = Column(String, nullable=False, index=True)
    message_id = Column(String(32), nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow)
