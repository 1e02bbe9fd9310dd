from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text
from src.ambrodeo.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    address = Column(String, unique=True, nullable=False, index=True)
    user_name = Column(String, nullable=False, default="")
    image = Column(Text, nullable=False, default="")

    # Denormalized engagement counters, mirrored from the relation tables
    messages_replies = Column(Integer, nullable=False, default=0)
    messages_likes = Column(Integer, nullable=False, default=0)
    like = Column(Integer, nullable=False, default=0)
    followers = Column(Integer, nullable=False, default=0)
    followed = Column(Integer, nullable=False, default=0)

    timestamp = Column(DateTime, default=datetime.utcnow)
