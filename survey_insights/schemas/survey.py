"""Pydantic schemas for survey definitions.

Surveys are authored elsewhere; this service only needs their question
structure to compute statistics and build exports. Definitions are loaded
from YAML or JSON files and must conform to these schemas.
"""

from enum import Enum
from typing import Iterator, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class QuestionType(str, Enum):
    """Valid question types in survey definitions."""
    TEXT = "text"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    RATING = "rating"
    LIKERT = "likert"
    YESNO = "yesno"
    RANKING = "ranking"


# Types whose answers must be one of the question's options
CHOICE_TYPES = {
    QuestionType.RADIO,
    QuestionType.CHECKBOX,
    QuestionType.LIKERT,
    QuestionType.YESNO,
    QuestionType.RANKING,
}


class Question(BaseModel):
    """A single survey question.

    Attributes:
        id: Question identifier, unique within the survey
        type: Question type, drives answer shape and aggregation
        text: Question text (the authoring tool stores it as ``question``)
        required: Whether the question must be answered
        options: Ordered options for choice, scale and ranking types
        order: Position within the section, if the author set one
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Question identifier")
    type: QuestionType = Field(..., description="Question type")
    text: str = Field(
        ...,
        validation_alias=AliasChoices("text", "question"),
        description="Question text"
    )
    required: bool = Field(default=False, description="Whether an answer is required")
    options: list[str] = Field(default_factory=list, description="Answer options")
    order: Optional[int] = Field(None, description="Position within section")


class Section(BaseModel):
    """A group of questions shown together.

    Attributes:
        id: Section identifier
        title: Section heading
        description: Section introduction text
        order: Position within the survey
        questions: Questions in display order
    """
    id: str = Field(..., min_length=1, description="Section identifier")
    title: str = Field(default="", description="Section title")
    description: str = Field(default="", description="Section description")
    order: int = Field(default=0, description="Section position")
    questions: list[Question] = Field(default_factory=list)


class Survey(BaseModel):
    """Complete survey definition.

    Attributes:
        id: Survey identifier referenced by responses
        title: Human-readable survey title
        description: Survey description
        sections: Survey sections in display order
        created_at: ISO-8601 creation time, if known
        updated_at: ISO-8601 last update time, if known
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Survey identifier")
    title: str = Field(default="", description="Survey title")
    description: str = Field(default="", description="Survey description")
    sections: list[Section] = Field(default_factory=list)
    created_at: Optional[str] = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    updated_at: Optional[str] = Field(
        None, validation_alias=AliasChoices("updated_at", "updatedAt")
    )

    @model_validator(mode='after')
    def validate_unique_question_ids(self):
        """Question ids are the keys of response answers and must not collide."""
        question_ids = [question.id for question in self.questions]
        if len(question_ids) != len(set(question_ids)):
            duplicates = sorted({qid for qid in question_ids if question_ids.count(qid) > 1})
            raise ValueError(f"Duplicate question IDs found: {duplicates}")
        return self

    @property
    def questions(self) -> list[Question]:
        """All questions, in section order then question order."""
        return list(self.iter_questions())

    def iter_questions(self) -> Iterator[Question]:
        for section in self.sections:
            yield from section.questions
