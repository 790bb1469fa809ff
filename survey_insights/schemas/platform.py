"""Pydantic schemas for the platform game-data API.

The platform stores survey submissions as generic "game data" records whose
``data`` field carries the survey payload, either as a JSON string or as an
already-decoded object.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class GameDataDTO(BaseModel):
    """One game-data record as returned by the platform API.

    Attributes:
        id: Platform record identifier
        data: Survey payload (JSON string or object)
        exerciseId: Exercise the record was captured in
        gameConfigId: Game configuration the record belongs to
        organizationId: Owning organization
        userId: Submitting user, if known
        groupName: Respondent group, if any
        creationTimestamp: Creation time in epoch milliseconds

    Example:
        {
            "id": "gd_1",
            "data": "{\\"surveyId\\": \\"s1\\", \\"answers\\": {\\"q1\\": \\"Yes\\"}}",
            "exerciseId": "ex_1",
            "gameConfigId": "gc_1",
            "organizationId": "org_1",
            "creationTimestamp": 1718000000000
        }
    """
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1, description="Platform record identifier")
    data: Union[str, dict[str, Any], None] = Field(None, description="Survey payload")
    exerciseId: Optional[str] = Field(None, description="Exercise identifier")
    gameConfigId: Optional[str] = Field(None, description="Game config identifier")
    organizationId: Optional[str] = Field(None, description="Organization identifier")
    userId: Optional[str] = Field(None, description="User identifier")
    groupName: Optional[str] = Field(None, description="Respondent group")
    creationTimestamp: Optional[int] = Field(None, description="Epoch milliseconds")


class GameDataList(BaseModel):
    """Envelope of the list and search endpoints.

    Records are kept raw so one malformed record can be skipped without
    rejecting the whole page.
    """
    gameData: list[Any] = Field(default_factory=list)


class GameDataQuery(BaseModel):
    """Filters supported by the platform search endpoint."""
    survey_id: Optional[str] = None
    exercise_id: Optional[str] = None
    game_config_id: Optional[str] = None
    organization_id: Optional[str] = None
    user_id: Optional[str] = None

    def search_params(self) -> dict[str, str]:
        """Query string for ``/api/searchGameData``; empty means list all.

        ``survey_id`` is not a platform filter; it is applied after mapping.
        """
        params = {
            "exerciseId": self.exercise_id,
            "gameConfigId": self.game_config_id,
            "organizationId": self.organization_id,
            "userId": self.user_id,
        }
        return {key: value for key, value in params.items() if value}
