"""Local fallback response store.

Holds imported responses and serves them when the platform API cannot be
reached. Each append runs in its own transaction, so concurrent imports
cannot interleave partial batches.
"""

from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from survey_insights.logging_config import get_logger
from survey_insights.models.stored_response import StoredResponse
from survey_insights.schemas.response import SurveyResponse

logger = get_logger(__name__)


class LocalStoreError(Exception):
    """Raised when the local store cannot be read or written."""
    pass


class LocalResponseStore:
    """Append/list/clear access to stored responses.

    Args:
        session_factory: Callable returning a new SQLAlchemy session
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def append(self, responses: Iterable[SurveyResponse]) -> int:
        """Store a batch of responses atomically.

        Returns:
            int: Number of responses stored

        Raises:
            LocalStoreError: If the batch could not be written (nothing is
                stored in that case)
        """
        with self._session_factory() as db:
            try:
                added = StoredResponse.append_many(db, responses)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to store responses: {e}")
                raise LocalStoreError(f"Failed to store responses: {e}") from e

        logger.info(f"Stored {added} responses in local store")
        return added

    def list(self, survey_id: Optional[str] = None) -> list[SurveyResponse]:
        """Stored responses in insertion order, optionally for one survey.

        Raises:
            LocalStoreError: If the store cannot be read
        """
        with self._session_factory() as db:
            try:
                return StoredResponse.list_responses(db, survey_id)
            except SQLAlchemyError as e:
                logger.error(f"Failed to load stored responses: {e}")
                raise LocalStoreError(f"Failed to load stored responses: {e}") from e

    def count(self, survey_id: Optional[str] = None) -> int:
        with self._session_factory() as db:
            try:
                return StoredResponse.count(db, survey_id)
            except SQLAlchemyError as e:
                logger.error(f"Failed to count stored responses: {e}")
                raise LocalStoreError(f"Failed to count stored responses: {e}") from e

    def clear(self) -> int:
        """Delete all stored responses; returns how many were removed."""
        with self._session_factory() as db:
            try:
                removed = StoredResponse.clear(db)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to clear stored responses: {e}")
                raise LocalStoreError(f"Failed to clear stored responses: {e}") from e
        logger.info(f"Cleared {removed} responses from local store")
        return removed
