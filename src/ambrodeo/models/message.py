import itertools
import time
from datetime import datetime
from uuid import uuid4
from sqlalchemy import Column, Integer, String, DateTime, Text
from src.ambrodeo.database import Base


_sequence = itertools.count()


def generate_message_id():
    """
    32 hex chars that sort in creation order: nanosecond clock, a wrapping
    per-process sequence, then random bits.
    """
    return f"{time.time_ns():016x}{next(_sequence) & 0xffff:04x}{uuid4().hex[:12]}"


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(32), primary_key=True, default=generate_message_id)
    address = Column(String, nullable=False, index=True)
    token_address = Column(String, nullable=False, index=True)
    message = Column(Text, nullable=False)
    parent_id = Column(String(32), nullable=False, default="", index=True)  # "" for top-level messages
    like = Column(Integer, nullable=False, default=0)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)
