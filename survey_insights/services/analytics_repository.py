"""Survey responses from the analytical data source.

The analytical table (``GAME_DATA`` by default) has no fixed schema: column
names and casing differ between environments and the survey payload sits
in a JSON column. Rows are therefore selected whole and normalized by the
response mapper; survey, status and date filters apply to the canonical
responses.
"""

from typing import Any, Optional

from sqlalchemy import Engine, literal_column, select, table
from sqlalchemy.exc import SQLAlchemyError

from survey_insights.logging_config import get_logger
from survey_insights.schemas.response import ResponseQuery, SurveyResponse
from survey_insights.services.response_mapper import MappingHints, RecordSource, map_rows
from survey_insights.services.statistics import parse_response_date

logger = get_logger(__name__)


class AnalyticsQueryError(Exception):
    """Raised when the analytical source cannot be queried."""
    pass


def _sort_key(response: SurveyResponse) -> str:
    return response.timestamp or ""


def _within_dates(response: SurveyResponse, query: ResponseQuery) -> bool:
    if not query.start_date and not query.end_date:
        return True
    day = parse_response_date(response.timestamp)
    if day is None:
        return False
    start = parse_response_date(query.start_date) if query.start_date else None
    end = parse_response_date(query.end_date) if query.end_date else None
    if start and day < start:
        return False
    if end and day > end:
        return False
    return True


class AnalyticsRepository:
    """Read-only access to raw response rows in the analytical source.

    Args:
        engine: SQLAlchemy engine of the analytical database
        table_name: Table holding raw rows
    """

    def __init__(self, engine: Engine, table_name: str = "GAME_DATA"):
        self.engine = engine
        self.table_name = table_name

    def _fetch_rows(self) -> list[dict[str, Any]]:
        statement = select(literal_column("*")).select_from(table(self.table_name))
        try:
            with self.engine.connect() as connection:
                return [dict(row._mapping) for row in connection.execute(statement)]
        except SQLAlchemyError as e:
            logger.error(f"Error querying analytical table {self.table_name}: {e}")
            raise AnalyticsQueryError(f"Failed to fetch survey responses: {e}") from e

    def _mapped(self, survey_id: Optional[str]) -> list[SurveyResponse]:
        responses, skipped = map_rows(
            self._fetch_rows(),
            MappingHints(source=RecordSource.QUERY, survey_id_filter=survey_id),
        )
        if skipped:
            logger.debug(f"Skipped {skipped} rows of {self.table_name}", extra={"survey_id": survey_id})
        return responses

    def get_survey_responses(self, query: Optional[ResponseQuery] = None) -> list[SurveyResponse]:
        """Fetch canonical responses matching the query, newest first.

        Args:
            query: Survey/date/status filters and pagination

        Returns:
            list[SurveyResponse]

        Raises:
            AnalyticsQueryError: If the source cannot be queried
        """
        query = query or ResponseQuery()
        responses = [
            response
            for response in self._mapped(query.survey_id)
            if (query.status is None or response.status == query.status)
            and _within_dates(response, query)
        ]
        responses.sort(key=_sort_key, reverse=True)
        return responses[query.offset:query.offset + query.limit]

    def get_response_count(self, survey_id: str) -> int:
        """Number of responses of a survey in the analytical source.

        Raises:
            AnalyticsQueryError: If the source cannot be queried
        """
        return len(self._mapped(survey_id))
