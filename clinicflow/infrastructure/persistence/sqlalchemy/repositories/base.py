from typing import Any, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .....application.ports.change_feed import ChangeEvent, ChangeFeed
from .....exceptions import PersistenceError

logger = logging.getLogger(__name__)


class SqlRepository:
    table: str = ""

    def __init__(self, session: Session, feed: Optional[ChangeFeed] = None):
        self.session = session
        self.feed = feed

    def _save(self, row: Any, event: str, table: Optional[str] = None) -> Any:
        table = table or self.table
        try:
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        except SQLAlchemyError as e:
            logger.error(f"Error writing to {table}: {e}")
            self.session.rollback()
            raise PersistenceError(f"Could not save to {table}. Please try again.") from e
        self._publish(table, event, row.model_dump())
        return row

    def _delete(self, row: Any, event: str) -> None:
        payload = row.model_dump()
        try:
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error deleting from {self.table}: {e}")
            self.session.rollback()
            raise PersistenceError(f"Could not delete from {self.table}. Please try again.") from e
        self._publish(self.table, event, payload)

    def _query(self, statement):
        try:
            return self.session.exec(statement)
        except SQLAlchemyError as e:
            logger.error(f"Error reading {self.table}: {e}")
            raise PersistenceError(f"Could not read {self.table}. Please try again.") from e

    def _publish(self, table: str, event: str, row: dict) -> None:
        if self.feed is not None:
            self.feed.publish(ChangeEvent(table=table, event=event, row=row))
