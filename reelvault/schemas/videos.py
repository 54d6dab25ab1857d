from __future__ import annotations

"""
ReelVault • Video Schemas
=========================

Wire shapes for the video routes. Field names follow the browser client
(camelCase on the wire, snake_case in Python via aliases).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VideoOut(BaseModel):
    """One listed video: bucket object joined with uploader attribution."""
    model_config = ConfigDict(populate_by_name=True)

    key: str
    name: str
    size: int
    last_modified: str = Field(..., alias="lastModified", description="ISO-8601 timestamp")
    url: str = Field("", description='Public URL, or "" when previews are not public')
    uploader: str


class UploadOut(BaseModel):
    success: bool = True
    key: str
    url: str = ""


class RenameIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_name: Optional[str] = Field(None, alias="newName")


class RenameOut(BaseModel):
    success: bool = True
    key: str


class SuccessOut(BaseModel):
    success: bool = True
