from pydantic import BaseModel
from typing import Optional


class AddOrUpdateUser(BaseModel):
    userName: Optional[str] = None
    image: Optional[str] = None
