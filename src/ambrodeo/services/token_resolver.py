import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from src.ambrodeo.database import insert_ignore
from src.ambrodeo.errors import InternalError
from src.ambrodeo.models import Token

logger = logging.getLogger(__name__)


class TokenResolver:
    """
    Makes sure a token row exists locally, materializing it from the external index
    on first reference. The local table is the cache: once a token is stored the
    index is never consulted for it again.
    """

    def __init__(self, index_client):
        self.index_client = index_client

    async def ensure_exists(self, db: Session, token_address: str) -> bool:
        token_address = token_address.lower()

        try:
            if db.query(Token).filter(Token.token_address == token_address).first():
                return True
        except SQLAlchemyError:
            logger.exception(f"Token lookup failed for {token_address}")
            raise InternalError()

        try:
            found = await self.index_client.token_exists(token_address)
        except Exception as e:
            # An unreachable or broken index is reported the same way as "not found".
            logger.warning(f"Token index lookup failed for {token_address}: {e}")
            return False

        if not found:
            logger.info(f"Token {token_address} not found in index")
            return False

        try:
            created = insert_ignore(
                db, Token,
                {"token_address": token_address, "like": 0},
                index_elements=["token_address"]
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Could not store token {token_address}")
            raise InternalError()

        if created:
            logger.info(f"Materialized token {token_address} from index")
        return True
