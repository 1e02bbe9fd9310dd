from .token import Token
from .user import User
from .message import Message
from .like import Like
from .message_like import MessageLike
from .user_like import UserLike
from .follow import Follow
