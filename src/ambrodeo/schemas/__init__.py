from .user import AddOrUpdateUser
from .message import AddMessage, MessageLikeRequest
from .like import TokenLikeRequest, UserLikeRequest, FollowRequest
