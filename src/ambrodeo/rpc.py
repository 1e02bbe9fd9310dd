"""
JSON-RPC 2.0 surface over the same services as the REST routes.

Mutating methods carry ``address`` and ``signature`` in their params and pass the
same AuthGate as the REST headers. Client-side failures map to ``-32602`` with the
reason as message; datastore and unexpected failures map to a generic ``-32603``.
"""
import logging
from pydantic import ValidationError
from sqlalchemy.orm import Session
from src.ambrodeo.auth import AuthGate
from src.ambrodeo.errors import FeedError, InternalError
from src.ambrodeo.models import Token, User, Message, Like
from src.ambrodeo.schemas.rpc import (RPCRequest, RPCParams, rpc_success, rpc_error,
                                      INVALID_REQUEST, METHOD_NOT_FOUND, INVALID_PARAMS, INTERNAL_ERROR)
from src.ambrodeo.serializers import serialize_token, serialize_user, serialize_message, serialize_like
from src.ambrodeo.services import RelationQuery, TokenResolver
from src.ambrodeo.services import feed

logger = logging.getLogger(__name__)


async def get_secret(params: RPCParams, db: Session, gate: AuthGate, resolver: TokenResolver):
    address = feed.normalize_address(params.address)
    return {"address": address, "secret": gate.secret_store.issue(address)}


async def add_user(params: RPCParams, db: Session, gate: AuthGate, resolver: TokenResolver):
    address = gate.authenticate(db, params.address, params.signature)
    feed.upsert_user(db, address, user_name=params.userName, image=params.image)
    return {"message": "User add successfully"}


async def add_message(params: RPCParams, db: Session, gate: AuthGate, resolver: TokenResolver):
    address = gate.authenticate(db, params.address, params.signature)
    await feed.add_message(db, resolver, address, params.tokenAddress, params.message, parent_id=params.id)
    return {"message": "Message add successfully"}


async def add_like(params: RPCParams, db: Session, gate: AuthGate, resolver: TokenResolver):
    address = gate.authenticate(db, params.address, params.signature)
    await feed.toggle_token_like(db, resolver, address, params.tokenAddress, bool(params.like))
    return {"message": "Like successfully"}


async def get_token(params: RPCParams, db: Session, gate: AuthGate, resolver: TokenResolver):
    token_address = feed.normalize_address(params.tokenAddress, "tokenAddress")
    token = db.query(Token).filter(Token.token_address == token_address).first()
    return {"token": serialize_token(token) if token else None}


async def get_messages(params: RPCParams, db: Session, gate: AuthGate, resolver: TokenResolver):
    token_address = feed.normalize_address(params.tokenAddress, "tokenAddress")
    result = RelationQuery(db).list(
        Message, {"token_address": token_address, "parent_id": ""}, serialize_message,
        skip=params.skip, limit=params.limit
    )
    return {"total": result["total"], "message": result["data"]}


async def get_user_likes(params: RPCParams, db: Session, gate: AuthGate, resolver: TokenResolver):
    address = gate.authenticate(db, params.address, params.signature)
    result = RelationQuery(db).list(Like, {"address": address}, serialize_like, skip=params.skip, limit=params.limit)
    return {"total": result["total"], "like": result["data"]}


async def get_user(params: RPCParams, db: Session, gate: AuthGate, resolver: TokenResolver):
    address = feed.normalize_address(params.address)
    user = db.query(User).filter(User.address == address).first()
    return {"user": serialize_user(user) if user else None}


METHODS = {
    "getSecret": get_secret,
    "addUser": add_user,
    "addMessage": add_message,
    "addLike": add_like,
    "getToken": get_token,
    "getMessages": get_messages,
    "getUserLikes": get_user_likes,
    "getUser": get_user,
}


async def handle_rpc_request(body, db: Session, gate: AuthGate, resolver: TokenResolver):
    try:
        rpc = RPCRequest.model_validate(body)
    except ValidationError:
        return rpc_error(None, INVALID_REQUEST, "Invalid request")

    if rpc.jsonrpc != "2.0":
        return rpc_error(rpc.id, INVALID_REQUEST, "Invalid request")

    method = METHODS.get(rpc.method)
    if method is None:
        return rpc_error(rpc.id, METHOD_NOT_FOUND, "Method not found")

    try:
        params = RPCParams.model_validate(rpc.params)
    except ValidationError:
        return rpc_error(rpc.id, INVALID_PARAMS, "Invalid params")

    try:
        return rpc_success(rpc.id, await method(params, db, gate, resolver))
    except InternalError:
        return rpc_error(rpc.id, INTERNAL_ERROR, "Internal error")
    except FeedError as e:
        return rpc_error(rpc.id, INVALID_PARAMS, e.message)
    except Exception:
        logger.exception(f"Error processing RPC request {rpc.method}")
        return rpc_error(rpc.id, INTERNAL_ERROR, "Internal error")
