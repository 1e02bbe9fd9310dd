from src.ambrodeo.models import Token, User, Message, Like, MessageLike, Follow

def format_timestamp(value):
    return value.isoformat() if value else None

def serialize_token(token: Token):
    return {
        "tokenAddress": token.token_address,
        "like": token.like,
        "timestamp": format_timestamp(token.timestamp)
    }

def serialize_user(user: User):
    return {
        "address": user.address,
        "userName": user.user_name,
        "image": user.image,
        "messagesReplies": user.messages_replies,
        "messagesLikes": user.messages_likes,
        "like": user.like,
        "followers": user.followers,
        "followed": user.followed,
        "timestamp": format_timestamp(user.timestamp)
    }

def serialize_message(message: Message):
    return {
        "_id": message.id,
        "address": message.address,
        "tokenAddress": message.token_address,
        "message": message.message,
        "id": message.parent_id or "",
        "like": message.like,
        "timestamp": format_timestamp(message.timestamp)
    }

def serialize_like(like: Like):
    return {
        "address": like.address,
        "tokenAddress": like.token_address,
        "timestamp": format_timestamp(like.timestamp)
    }

def serialize_message_like(like: MessageLike):
    return {
        "address": like.address,
        "id": like.message_id,
        "timestamp": format_timestamp(like.timestamp)
    }

def serialize_follow(follow: Follow):
    return {
        "address": follow.address,
        "userAddress": follow.user_address,
        "timestamp": format_timestamp(follow.timestamp)
    }
