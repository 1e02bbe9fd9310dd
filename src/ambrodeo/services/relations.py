import logging
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from src.ambrodeo.errors import InternalError
from src.ambrodeo.models import MessageLike

logger = logging.getLogger(__name__)


class RelationQuery:
    """Read side over relation tables and messages. Never mutates."""

    def __init__(self, db: Session):
        self.db = db

    def list(
        self,
        model,
        filters: Dict[str, Any],
        serialize: Callable[[Any], dict],
        skip: int = 0,
        limit: int = 0,
        descending: bool = True
    ) -> Dict[str, Any]:
        """
        Rows of ``model`` matching ``filters``, newest first unless ``descending`` is
        False. ``limit=0`` means no limit. ``total`` counts every match, regardless
        of ``skip``/``limit``.
        """
        try:
            query = self.db.query(model).filter_by(**filters)
            total = query.count()

            if descending:
                query = query.order_by(model.timestamp.desc(), model.id.desc())
            else:
                query = query.order_by(model.timestamp.asc(), model.id.asc())

            if skip:
                query = query.offset(skip)
            if limit:
                query = query.limit(limit)

            rows = query.all()
        except SQLAlchemyError:
            logger.exception(f"Listing {model.__tablename__} with {filters} failed")
            raise InternalError()

        return {"total": total, "data": [serialize(row) for row in rows]}

    def exists(self, model, filters: Dict[str, Any]) -> bool:
        try:
            return self.db.query(model.id).filter_by(**filters).first() is not None
        except SQLAlchemyError:
            logger.exception(f"Lookup on {model.__tablename__} with {filters} failed")
            raise InternalError()

    def annotate_liked(self, messages: List[dict], address: Optional[str]) -> List[dict]:
        """
        Add ``liked`` to each serialized message: whether ``address`` has a like row
        for it. One point lookup per row; a probe that fails leaves that row False.
        """
        for message in messages:
            message["liked"] = False
            if not address:
                continue
            try:
                message["liked"] = self.db.query(MessageLike.id).filter_by(
                    address=address, message_id=message["_id"]
                ).first() is not None
            except SQLAlchemyError:
                self.db.rollback()
                logger.warning(f"Like probe for message {message['_id']} failed", exc_info=True)
        return messages
