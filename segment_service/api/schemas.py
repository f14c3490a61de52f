from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SegmentRequest(BaseModel):
    slug: str = Field(
        ...,
        description=r"A short name containing only letters, numbers, underscores, or hyphens. Format: ^[\w-]+$",
        examples=["AVITO_VOICE_MESSAGES"],
    )


class UpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    segments_to_add: Optional[List[str]] = Field(default=None, alias="segments-to-add")
    segments_to_remove: Optional[List[str]] = Field(default=None, alias="segments-to-remove")


class SegmentsList(BaseModel):
    segments: List[str]


class SuccessResponse(BaseModel):
    success: str


class ErrorResponse(BaseModel):
    error: str
