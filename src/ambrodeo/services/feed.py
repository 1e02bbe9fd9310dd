import logging
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from src.ambrodeo.auth.crypto import is_address
from src.ambrodeo.auth.gate import ensure_user
from src.ambrodeo.errors import InvalidAddress, InvalidPayload, TokenNotFound, MessageNotFound, InternalError
from src.ambrodeo.models import Token, User, Message, Like, MessageLike, UserLike, Follow
from src.ambrodeo.services.counters import CounterMutator, CounterTarget
from src.ambrodeo.services.token_resolver import TokenResolver

logger = logging.getLogger(__name__)


def normalize_address(address, field: str = "address") -> str:
    if not address or not is_address(address):
        raise InvalidAddress(f"Invalid {field}")
    return address.lower()


def upsert_user(db: Session, address: str, user_name: Optional[str] = None, image: Optional[str] = None):
    """Create the profile if needed, then overwrite only the fields that were sent."""
    ensure_user(db, address)

    changes = {}
    if user_name is not None:
        changes[User.user_name] = user_name
    if image is not None:
        changes[User.image] = image

    if not changes:
        return

    try:
        db.query(User).filter(User.address == address).update(changes, synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Could not update user {address}")
        raise InternalError()


def get_message(db: Session, message_id: str) -> Message:
    try:
        message = db.query(Message).filter(Message.id == message_id).first()
    except SQLAlchemyError:
        logger.exception(f"Message lookup failed for {message_id}")
        raise InternalError()

    if not message:
        raise MessageNotFound()
    return message


async def add_message(
    db: Session,
    resolver: TokenResolver,
    address: str,
    token_address: str,
    text: str,
    parent_id: Optional[str] = None
) -> Message:
    token_address = normalize_address(token_address, "tokenAddress")

    if not text or not text.strip():
        raise InvalidPayload("Message is empty")

    parent = get_message(db, parent_id) if parent_id else None
    if parent and parent.token_address != token_address:
        raise InvalidPayload("Reply must reference the token of its parent message")

    if not await resolver.ensure_exists(db, token_address):
        raise TokenNotFound()

    message = Message(
        address=address,
        token_address=token_address,
        message=text,
        parent_id=parent.id if parent else ""
    )

    try:
        db.add(message)
        if parent:
            db.query(User).filter(User.address == parent.address).update(
                {User.messages_replies: User.messages_replies + 1}, synchronize_session=False
            )
        db.commit()
        db.refresh(message)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Could not store message from {address} on {token_address}")
        raise InternalError()

    return message


async def toggle_token_like(db: Session, resolver: TokenResolver, address: str, token_address: str, like: bool) -> bool:
    token_address = normalize_address(token_address, "tokenAddress")

    if not await resolver.ensure_exists(db, token_address):
        raise TokenNotFound()

    return CounterMutator(db).toggle(
        Like, address, token_address, like,
        [CounterTarget(Token, "token_address", token_address, "like")]
    )


def toggle_message_like(db: Session, address: str, message_id: str, like: bool) -> bool:
    # The author is looked up first so their aggregate lands on the current owner.
    message = get_message(db, message_id)

    return CounterMutator(db).toggle(
        MessageLike, address, message.id, like,
        [
            CounterTarget(Message, "id", message.id, "like"),
            CounterTarget(User, "address", message.address, "messages_likes"),
        ]
    )


def toggle_user_like(db: Session, address: str, user_address: str, like: bool) -> bool:
    user_address = normalize_address(user_address, "userAddress")
    ensure_user(db, user_address)

    return CounterMutator(db).toggle(
        UserLike, address, user_address, like,
        [CounterTarget(User, "address", user_address, "like")]
    )


def toggle_follow(db: Session, address: str, user_address: str, add: bool) -> bool:
    user_address = normalize_address(user_address, "userAddress")
    ensure_user(db, user_address)

    return CounterMutator(db).toggle(
        Follow, address, user_address, add,
        [
            CounterTarget(User, "address", user_address, "followers"),
            CounterTarget(User, "address", address, "followed"),
        ]
    )
