import logging
from dataclasses import dataclass
from typing import Iterable
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from src.ambrodeo.database import insert_ignore
from src.ambrodeo.errors import InternalError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CounterTarget:
    """The integer column ``field`` on the ``model`` row where ``key_column == key_value``."""
    model: type
    key_column: str
    key_value: str
    field: str


class CounterMutator:
    """
    Applies like/follow toggles to a relation table and keeps the denormalized
    counters that mirror it in step.

    A (actor, target) pair is either absent or present. Counters move by exactly
    one per state transition, never per request: the increment is conditioned on
    the insert actually creating the row, the decrement on the delete actually
    removing one. Both outcomes are reported by the store, never read beforehand.
    The row write and the counter writes commit together.
    """

    def __init__(self, db: Session):
        self.db = db

    def toggle(self, relation, actor: str, target: str, desired: bool, counters: Iterable[CounterTarget]) -> bool:
        """
        Move (actor, target) in ``relation`` to ``desired``.

        ``relation`` is a model with an ``address`` column and a ``target_column``
        naming its target key. Returns True if the state changed.
        """
        keys = {"address": actor, relation.target_column: target}

        try:
            if desired:
                changed = insert_ignore(self.db, relation, keys, index_elements=list(keys))
                delta = 1
            else:
                deleted = self.db.query(relation).filter_by(**keys).delete(synchronize_session=False)
                changed = deleted == 1
                delta = -1

            if changed:
                for counter in counters:
                    self._adjust(counter, delta)

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Toggle of {relation.__tablename__} ({actor} -> {target}) failed")
            raise InternalError()

        if changed:
            logger.debug(f"{relation.__tablename__}: {actor} -> {target} {'added' if desired else 'removed'}")
        return changed

    def _adjust(self, counter: CounterTarget, delta: int):
        column = getattr(counter.model, counter.field)
        query = self.db.query(counter.model).filter(
            getattr(counter.model, counter.key_column) == counter.key_value
        )
        if delta < 0:
            query = query.filter(column > 0)

        query.update({column: column + delta}, synchronize_session=False)
