from sqlalchemy.orm import Session, aliased
from sqlalchemy.sql import func
from src.ambrodeo.database import SessionLocal
from src.ambrodeo.models import Token, User, Message, Like, MessageLike, UserLike, Follow
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _expected_counts(db: Session):
    """Counter values recomputed from the relation rows, keyed by (model, field)."""
    parent = aliased(Message)
    return {
        (Token, "like"): dict(
            db.query(Like.token_address, func.count(Like.id)).group_by(Like.token_address).all()
        ),
        (Message, "like"): dict(
            db.query(MessageLike.message_id, func.count(MessageLike.id)).group_by(MessageLike.message_id).all()
        ),
        (User, "like"): dict(
            db.query(UserLike.user_address, func.count(UserLike.id)).group_by(UserLike.user_address).all()
        ),
        (User, "followers"): dict(
            db.query(Follow.user_address, func.count(Follow.id)).group_by(Follow.user_address).all()
        ),
        (User, "followed"): dict(
            db.query(Follow.address, func.count(Follow.id)).group_by(Follow.address).all()
        ),
        (User, "messages_likes"): dict(
            db.query(Message.address, func.count(MessageLike.id))
              .join(MessageLike, MessageLike.message_id == Message.id)
              .group_by(Message.address)
              .all()
        ),
        (User, "messages_replies"): dict(
            db.query(parent.address, func.count(Message.id))
              .join(parent, Message.parent_id == parent.id)
              .group_by(parent.address)
              .all()
        ),
    }


KEY_COLUMNS = {
    Token: "token_address",
    Message: "id",
    User: "address",
}


def reconcile_counters(db: Session = None) -> int:
    """
    Recompute every denormalized counter from its relation rows and fix the ones
    that drifted. Returns the number of corrected counters.
    """
    owns_session = db is None
    if owns_session:
        db = SessionLocal()

    corrected = 0
    try:
        expected = _expected_counts(db)

        for (model, field), counts in expected.items():
            key_column = KEY_COLUMNS[model]
            for row in db.query(model).all():
                actual = getattr(row, field) or 0
                wanted = counts.get(getattr(row, key_column), 0)
                if actual != wanted:
                    logger.info(
                        f"{model.__tablename__}.{field} for {getattr(row, key_column)}: {actual} -> {wanted}"
                    )
                    setattr(row, field, wanted)
                    corrected += 1

        db.commit()
        logger.info(f"Counter reconciliation complete, {corrected} counters corrected.")
    except Exception:
        db.rollback()
        logger.exception("Counter reconciliation failed")
        raise
    finally:
        if owns_session:
            db.close()

    return corrected


if __name__ == "__main__":
    reconcile_counters()
