from pydantic import BaseModel
from typing import Optional


class AddMessage(BaseModel):
    tokenAddress: str
    message: str
    id: Optional[str] = None  # parent message id for replies


class MessageLikeRequest(BaseModel):
    id: str
    like: bool
