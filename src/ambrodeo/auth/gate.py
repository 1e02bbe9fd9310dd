import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from src.ambrodeo.auth.crypto import is_address, verify_signature
from src.ambrodeo.auth.secret_store import SecretChallengeStore
from src.ambrodeo.database import insert_ignore
from src.ambrodeo.errors import InvalidAddress, MissingCredential, InvalidSignature, InternalError
from src.ambrodeo.models import User

logger = logging.getLogger(__name__)


class AuthGate:
    """
    Validates the (address, signature) pair of a mutating request against the
    secret previously issued to that address. Every write re-derives the proof;
    there is no session.
    """

    def __init__(self, secret_store: SecretChallengeStore):
        self.secret_store = secret_store

    def authenticate(self, db: Session, address: str, signature: str) -> str:
        if not address or not is_address(address):
            raise InvalidAddress()

        address = address.lower()
        secret = self.secret_store.get(address)

        if not signature or not secret:
            raise MissingCredential()

        if not verify_signature(address, secret, signature):
            logger.warning(f"Signature mismatch for address {address}")
            raise InvalidSignature()

        ensure_user(db, address)
        return address


def ensure_user(db: Session, address: str) -> bool:
    """Create an empty profile for ``address`` if none exists. Returns True if created."""
    try:
        created = insert_ignore(
            db, User,
            {"address": address, "user_name": "", "image": ""},
            index_elements=["address"]
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Could not provision user {address}")
        raise InternalError()

    if created:
        logger.info(f"Provisioned default profile for {address}")
    return created
