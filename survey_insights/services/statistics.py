"""Per-question and per-survey statistics over canonical responses.

Aggregation depends on the question type:

- text: answers are listed verbatim
- radio / yesno: one count per chosen option
- checkbox: one count per selected option (a response can hit several)
- rating / likert: numeric mean and distribution; option labels are
  resolved to their 1-based position
- ranking: mean rank per option

Rates always use the full response collection as denominator, so
unanswered responses lower the rate but not the counts.
"""

import math
import re
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence, Union

from survey_insights.logging_config import get_logger
from survey_insights.schemas.response import (
    QuestionStatistics,
    ResponseCountByDate,
    ResponseStatus,
    SurveyResponse,
    SurveyStatistics,
)
from survey_insights.schemas.survey import Question, QuestionType, Survey

logger = get_logger(__name__)

_LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")

Number = Union[int, float]


def is_answered(value: Any) -> bool:
    """Whether an answer value counts as a response to its question."""
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


def percentage(part: int, whole: int) -> float:
    """``100 * part / whole``, or 0 when ``whole`` is zero."""
    if whole <= 0:
        return 0.0
    return 100.0 * part / whole


def answer_label(value: Any) -> str:
    """String key for an answer in option counts."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def resolve_scale_value(value: Any, options: Sequence[str]) -> Optional[Number]:
    """Resolve a rating/likert answer to a number.

    Numbers pass through. Strings are read as a leading integer, else as
    the 1-based position of the label in ``options``. Anything else is
    unresolvable.

    Example:
        >>> resolve_scale_value("Agree", ["Disagree", "Neutral", "Agree"])
        3
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float):
            if not math.isfinite(value):
                return None
            if value.is_integer():
                return int(value)
        return value
    if isinstance(value, str):
        match = _LEADING_INTEGER.match(value)
        if match:
            return int(match.group(1))
        if value in options:
            return options.index(value) + 1
    return None


def _valid_ranking(answer: Any) -> Optional[dict[str, int]]:
    """Return the ranking as option -> rank if ranks are distinct positive ints."""
    if not isinstance(answer, dict):
        return None
    ranks: dict[str, int] = {}
    for option, rank in answer.items():
        if isinstance(rank, bool):
            return None
        if isinstance(rank, str) and rank.strip().isdigit():
            rank = int(rank)
        if not isinstance(rank, int) or rank < 1:
            return None
        ranks[str(option)] = rank
    if len(set(ranks.values())) != len(ranks):
        return None
    return ranks


def compute_question_statistics(
    question: Question,
    responses: Sequence[SurveyResponse]
) -> QuestionStatistics:
    """Compute statistics for one question.

    Args:
        question: Question definition
        responses: All responses of the survey (the rate denominator)

    Returns:
        QuestionStatistics with the fields relevant to the question type
    """
    answers = [
        response.answers[question.id]
        for response in responses
        if is_answered(response.answers.get(question.id))
    ]
    total_responses = len(answers)

    stats = QuestionStatistics(
        question_id=question.id,
        question_text=question.text,
        question_type=question.type,
        total_responses=total_responses,
        response_rate=percentage(total_responses, len(responses)),
    )

    if question.type in (QuestionType.RADIO, QuestionType.YESNO):
        stats.option_counts = dict(Counter(answer_label(answer) for answer in answers))

    elif question.type == QuestionType.CHECKBOX:
        option_counts: Counter = Counter()
        for answer in answers:
            if isinstance(answer, (list, tuple, set)):
                option_counts.update(answer_label(option) for option in answer)
        stats.option_counts = dict(option_counts)

    elif question.type in (QuestionType.RATING, QuestionType.LIKERT):
        values = [
            resolved
            for resolved in (resolve_scale_value(answer, question.options) for answer in answers)
            if resolved is not None
        ]
        if values:
            stats.average_rating = sum(values) / len(values)
            stats.rating_distribution = dict(Counter(answer_label(value) for value in values))

    elif question.type == QuestionType.TEXT:
        stats.text_responses = [str(answer) for answer in answers]

    elif question.type == QuestionType.RANKING:
        rank_totals: dict[str, list[int]] = defaultdict(list)
        for answer in answers:
            ranking = _valid_ranking(answer)
            if ranking is None:
                logger.debug(f"Ignoring invalid ranking answer for question {question.id}")
                continue
            for option, rank in ranking.items():
                rank_totals[option].append(rank)
        if rank_totals:
            stats.average_ranks = {
                option: sum(ranks) / len(ranks) for option, ranks in rank_totals.items()
            }

    return stats


def parse_response_date(timestamp: Any) -> Optional[str]:
    """UTC calendar date (YYYY-MM-DD) of an ISO-8601 timestamp, if it parses."""
    if not isinstance(timestamp, str) or not timestamp.strip():
        return None
    text = timestamp.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).date().isoformat()


def compute_response_over_time(responses: Iterable[SurveyResponse]) -> list[ResponseCountByDate]:
    """Count responses per UTC date, ascending; bad timestamps are skipped."""
    per_date: Counter = Counter()
    for response in responses:
        day = parse_response_date(response.timestamp)
        if day is None:
            logger.debug(f"Response {response.id} has unparsable timestamp {response.timestamp!r}")
            continue
        per_date[day] += 1

    return [ResponseCountByDate(date=day, count=count) for day, count in sorted(per_date.items())]


def compute_average_time_spent(responses: Iterable[SurveyResponse]) -> int:
    """Mean seconds spent over completed responses that recorded it, rounded."""
    durations = [
        response.time_spent
        for response in responses
        if response.status == ResponseStatus.COMPLETED and response.time_spent is not None
    ]
    if not durations:
        return 0
    return int(math.floor(sum(durations) / len(durations) + 0.5))


def compute_survey_statistics(
    survey: Survey,
    responses: Sequence[SurveyResponse]
) -> SurveyStatistics:
    """Compute survey-level statistics and per-question statistics.

    Args:
        survey: Survey definition (question order drives output order)
        responses: Responses of that survey

    Returns:
        SurveyStatistics
    """
    total = len(responses)
    completed = sum(1 for response in responses if response.status == ResponseStatus.COMPLETED)

    return SurveyStatistics(
        survey_id=survey.id,
        total_responses=total,
        completion_rate=percentage(completed, total),
        average_time_spent=compute_average_time_spent(responses),
        question_stats=[
            compute_question_statistics(question, responses)
            for question in survey.iter_questions()
        ],
        response_over_time=compute_response_over_time(responses),
    )
