"""
monitor/connectors/schemas.py

Response schemas for Drive, Sheets and OAuth token endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class DriveFile(BaseModel):
    """
    One file or folder entry returned by the Drive files endpoint.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    mime_type: str | None = Field(default=None, alias="mimeType")
    modified_time: str | None = Field(default=None, alias="modifiedTime")
    trashed: bool = False


class DriveFileList(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    files: list[DriveFile] = Field(default_factory=list)
    next_page_token: str | None = Field(default=None, alias="nextPageToken")


class SheetValues(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    range: str | None = None
    major_dimension: str | None = Field(default=None, alias="majorDimension")
    values: list[list[Any]] = Field(default_factory=list)


class TokenResponse(BaseModel):
    """
    Successful reply from the OAuth token endpoint.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    expires_in: int = Field(default=3600, ge=0)
    refresh_token: str | None = None
    token_type: str = "Bearer"
