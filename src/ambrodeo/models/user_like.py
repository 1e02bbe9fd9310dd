from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from src.ambrodeo.database import Base


class UserLike(Base):
    __tablename__ = "user_likes"
    __table_args__ = (UniqueConstraint("address", "user_address", name="uq_user_likes_address_user"),)

    target_column = "user_address"

    id = Column(Integer, primary_key=True, index=True)
    address = Column(String, nullable=False, index=True)
    user_address = Column(String, nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow)
