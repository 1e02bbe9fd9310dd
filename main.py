from fastapi import FastAPI, Depends, Query, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
from dotenv import load_dotenv
import logging
import os

from src.ambrodeo.database import get_db, init_db
from src.ambrodeo.auth import SecretChallengeStore, AuthGate
from src.ambrodeo.auth.crypto import is_address
from src.ambrodeo.errors import FeedError, InvalidAddress, InvalidPayload, InternalError
from src.ambrodeo.models import Token, User, Message, Like, MessageLike, UserLike, Follow
from src.ambrodeo.protocols import SubgraphClient
from src.ambrodeo.schemas import (AddOrUpdateUser, AddMessage, MessageLikeRequest, TokenLikeRequest,
                                  UserLikeRequest, FollowRequest)
from src.ambrodeo.serializers import (serialize_token, serialize_user, serialize_message, serialize_like,
                                      serialize_message_like, serialize_follow)
from src.ambrodeo.services import RelationQuery, TokenResolver
from src.ambrodeo.services import feed
from src.ambrodeo.rpc import handle_rpc_request

load_dotenv(override=True)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
SUBGRAPHS_ENDPOINT = os.getenv("SUBGRAPHS_ENDPOINT", "")
SUBGRAPH_TIMEOUT_SECONDS = float(os.getenv("SUBGRAPH_TIMEOUT_SECONDS", "10"))
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

app = FastAPI(title="AMBRodeo Social API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

app.state.secret_store = SecretChallengeStore()
app.state.token_resolver = TokenResolver(SubgraphClient(SUBGRAPHS_ENDPOINT, SUBGRAPH_TIMEOUT_SECONDS))


@app.exception_handler(FeedError)
async def feed_error_handler(request: Request, exc: FeedError):
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected payload on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content=InvalidPayload().payload())


@app.exception_handler(SQLAlchemyError)
async def datastore_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Datastore error on {request.url.path}")
    return JSONResponse(status_code=500, content=InternalError().payload())


def get_secret_store(request: Request) -> SecretChallengeStore:
    return request.app.state.secret_store


def get_auth_gate(secret_store: SecretChallengeStore = Depends(get_secret_store)) -> AuthGate:
    return AuthGate(secret_store)


def get_token_resolver(request: Request) -> TokenResolver:
    return request.app.state.token_resolver


def authenticated_address(
    address: Optional[str] = Header(None),
    signature: Optional[str] = Header(None),
    gate: AuthGate = Depends(get_auth_gate),
    db: Session = Depends(get_db)
) -> str:
    return gate.authenticate(db, address, signature)


def optional_address(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    if not is_address(address):
        raise InvalidAddress()
    return address.lower()


@app.get("/")
async def index():
    return {}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/api/secret")
async def get_secret(
    address: Optional[str] = Header(None),
    secret_store: SecretChallengeStore = Depends(get_secret_store)
):
    address = feed.normalize_address(address)
    return {"secret": secret_store.issue(address)}


@app.post("/api/user")
async def add_or_update_user(
    request: AddOrUpdateUser,
    address: str = Depends(authenticated_address),
    db: Session = Depends(get_db)
):
    feed.upsert_user(db, address, user_name=request.userName, image=request.image)
    return {}


@app.post("/api/message")
async def add_message(
    request: AddMessage,
    address: str = Depends(authenticated_address),
    db: Session = Depends(get_db),
    resolver: TokenResolver = Depends(get_token_resolver)
):
    await feed.add_message(db, resolver, address, request.tokenAddress, request.message, parent_id=request.id)
    return {}


@app.post("/api/like")
async def add_or_delete_like(
    request: TokenLikeRequest,
    address: str = Depends(authenticated_address),
    db: Session = Depends(get_db),
    resolver: TokenResolver = Depends(get_token_resolver)
):
    await feed.toggle_token_like(db, resolver, address, request.tokenAddress, request.like)
    return {}


@app.post("/api/userlike")
async def add_or_delete_user_like(
    request: UserLikeRequest,
    address: str = Depends(authenticated_address),
    db: Session = Depends(get_db)
):
    feed.toggle_user_like(db, address, request.userAddress, request.like)
    return {}


@app.post("/api/messagelike")
async def add_or_delete_message_like(
    request: MessageLikeRequest,
    address: str = Depends(authenticated_address),
    db: Session = Depends(get_db)
):
    feed.toggle_message_like(db, address, request.id, request.like)
    return {}


@app.post("/api/follow")
async def add_or_delete_follow(
    request: FollowRequest,
    address: str = Depends(authenticated_address),
    db: Session = Depends(get_db)
):
    feed.toggle_follow(db, address, request.userAddress, request.add)
    return {}


@app.get("/api/user")
async def get_user(
    address: Optional[str] = Query(None),
    header_address: Optional[str] = Header(None, alias="address"),
    db: Session = Depends(get_db)
):
    address = feed.normalize_address(address or header_address)
    user = db.query(User).filter(User.address == address).first()
    return serialize_user(user) if user else None


@app.get("/api/token")
async def get_token(tokenAddress: str = Query(...), db: Session = Depends(get_db)):
    token_address = feed.normalize_address(tokenAddress, "tokenAddress")
    token = db.query(Token).filter(Token.token_address == token_address).first()
    return serialize_token(token) if token else None


@app.get("/api/messages")
async def get_messages(
    tokenAddress: str = Query(...),
    address: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(0, ge=0),
    sort: int = Query(-1),
    db: Session = Depends(get_db)
):
    token_address = feed.normalize_address(tokenAddress, "tokenAddress")
    relations = RelationQuery(db)
    result = relations.list(
        Message, {"token_address": token_address, "parent_id": ""}, serialize_message,
        skip=skip, limit=limit, descending=sort != 1
    )
    relations.annotate_liked(result["data"], optional_address(address))
    return result


@app.get("/api/messagesbyuser")
async def get_messages_by_user(
    address: str = Query(...),
    requester: Optional[str] = Header(None, alias="address"),
    skip: int = Query(0, ge=0),
    limit: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    address = feed.normalize_address(address)
    relations = RelationQuery(db)
    result = relations.list(Message, {"address": address}, serialize_message, skip=skip, limit=limit)
    relations.annotate_liked(result["data"], optional_address(requester))
    return result


@app.get("/api/messagereplies")
async def get_message_replies(
    id: str = Query(...),
    address: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    relations = RelationQuery(db)
    result = relations.list(Message, {"parent_id": id}, serialize_message, skip=skip, limit=limit)
    relations.annotate_liked(result["data"], optional_address(address))
    return result


@app.get("/api/followers")
async def get_followers(
    userAddress: str = Query(...),
    skip: int = Query(0, ge=0),
    limit: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    user_address = feed.normalize_address(userAddress, "userAddress")
    return RelationQuery(db).list(Follow, {"user_address": user_address}, serialize_follow, skip=skip, limit=limit)


@app.get("/api/followed")
async def get_followed(
    address: str = Query(...),
    skip: int = Query(0, ge=0),
    limit: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    address = feed.normalize_address(address)
    return RelationQuery(db).list(Follow, {"address": address}, serialize_follow, skip=skip, limit=limit)


@app.get("/api/userlikes")
async def get_user_likes(
    address: Optional[str] = Query(None),
    header_address: Optional[str] = Header(None, alias="address"),
    skip: int = Query(0, ge=0),
    limit: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    address = feed.normalize_address(address or header_address)
    return RelationQuery(db).list(Like, {"address": address}, serialize_like, skip=skip, limit=limit)


@app.get("/api/messagelikes")
async def get_message_likes(
    id: Optional[str] = Query(None),
    address: Optional[str] = Query(None),
    header_address: Optional[str] = Header(None, alias="address"),
    skip: int = Query(0, ge=0),
    limit: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    if id:
        filters = {"message_id": id}
    else:
        filters = {"address": feed.normalize_address(address or header_address)}
    return RelationQuery(db).list(MessageLike, filters, serialize_message_like, skip=skip, limit=limit)


@app.get("/api/isfollowed")
async def is_followed(address: str = Query(...), userAddress: str = Query(...), db: Session = Depends(get_db)):
    filters = {
        "address": feed.normalize_address(address),
        "user_address": feed.normalize_address(userAddress, "userAddress")
    }
    return {"status": RelationQuery(db).exists(Follow, filters)}


@app.get("/api/isliked")
async def is_liked(
    address: str = Query(...),
    userAddress: Optional[str] = Query(None),
    tokenAddress: Optional[str] = Query(None),
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    address = feed.normalize_address(address)

    if userAddress:
        model, filters = UserLike, {"user_address": feed.normalize_address(userAddress, "userAddress")}
    elif tokenAddress:
        model, filters = Like, {"token_address": feed.normalize_address(tokenAddress, "tokenAddress")}
    elif id:
        model, filters = MessageLike, {"message_id": id}
    else:
        raise InvalidPayload("One of userAddress, tokenAddress or id is required")

    filters["address"] = address
    return {"status": RelationQuery(db).exists(model, filters)}


@app.post("/rpc")
async def rpc(
    request: Request,
    db: Session = Depends(get_db),
    gate: AuthGate = Depends(get_auth_gate),
    resolver: TokenResolver = Depends(get_token_resolver)
):
    try:
        body = await request.json()
    except ValueError:
        body = None
    return await handle_rpc_request(body, db, gate, resolver)


if __name__ == "__main__":
    import uvicorn
    init_db()
    uvicorn.run(app, host=HOST, port=PORT)
