"""StoredResponse model for the local fallback response store.

Imported responses and responses kept for offline use are stored here as
canonical JSON documents. The store is append-only apart from a bulk clear.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import (
    Index,
    String,
    DateTime,
    JSON,
    delete,
    func,
    select,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, Session

from survey_insights.models.database import Base
from survey_insights.schemas.response import SurveyResponse


class StoredResponse(Base):
    """Model for one canonical survey response in the local store.

    Attributes:
        id: Primary key (insertion order)
        response_id: Canonical response id (not unique; re-imports append)
        survey_id: Survey the response belongs to
        payload: Canonical response as camelCase JSON
        stored_at: When the response was written
    """

    __tablename__ = "stored_responses"

    # Primary Key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Response Identification
    response_id: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Canonical response id"
    )
    survey_id: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        default="",
        index=True,
        comment="Survey the response belongs to"
    )

    # Canonical Response Document
    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        comment="Canonical response as camelCase JSON"
    )

    stored_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the response was stored"
    )

    __table_args__ = (
        Index("idx_stored_survey_response", "survey_id", "response_id"),
    )

    @classmethod
    def append_many(cls, db: Session, responses: Iterable[SurveyResponse]) -> int:
        """Add responses to the session in order.

        Args:
            db: Database session
            responses: Canonical responses to store

        Returns:
            int: Number of responses added

        Note:
            Nothing is written until the caller commits, so a batch is
            stored completely or not at all.
        """
        now = datetime.now(timezone.utc)
        rows = [
            cls(
                response_id=response.id,
                survey_id=response.survey_id,
                payload=response.to_wire(),
                stored_at=now,
            )
            for response in responses
        ]
        db.add_all(rows)
        return len(rows)

    @classmethod
    def list_responses(cls, db: Session, survey_id: Optional[str] = None) -> list[SurveyResponse]:
        """Load stored responses in insertion order.

        Args:
            db: Database session
            survey_id: Only responses of this survey (all when None)

        Returns:
            list[SurveyResponse]: Canonical responses
        """
        statement = select(cls).order_by(cls.id)
        if survey_id is not None:
            statement = statement.where(cls.survey_id == survey_id)
        rows = db.execute(statement).scalars().all()
        return [SurveyResponse.model_validate(row.payload) for row in rows]

    @classmethod
    def count(cls, db: Session, survey_id: Optional[str] = None) -> int:
        """Count stored responses, optionally for one survey."""
        statement = select(func.count(cls.id))
        if survey_id is not None:
            statement = statement.where(cls.survey_id == survey_id)
        return db.execute(statement).scalar_one()

    @classmethod
    def clear(cls, db: Session) -> int:
        """Delete every stored response.

        Returns:
            int: Number of deleted rows
        """
        result = db.execute(delete(cls))
        return result.rowcount or 0

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<StoredResponse(id={self.id}, "
            f"response_id={self.response_id}, "
            f"survey_id={self.survey_id})>"
        )
