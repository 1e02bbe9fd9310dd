from pydantic import BaseModel


class TokenLikeRequest(BaseModel):
    tokenAddress: str
    like: bool


class UserLikeRequest(BaseModel):
    userAddress: str
    like: bool


class FollowRequest(BaseModel):
    userAddress: str
    add: bool
