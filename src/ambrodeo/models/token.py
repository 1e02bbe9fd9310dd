from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from src.ambrodeo.database import Base


class Token(Base):
    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, index=True)
    token_address = Column(String, unique=True, nullable=False, index=True)
    like = Column(Integer, nullable=False, default=0)
    timestamp = Column(DateTime, default=datetime.utcnow)
