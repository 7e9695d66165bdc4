# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/sncf_oauth

"""
Data models for the sncf-oauth package.
"""

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class SncfScope(StrEnum):
    ACTIVITY = "activity"
    ADDRESS = "address"
    COMPANY = "company"
    DEPARTMENT = "department"
    EMAIL = "email"
    FACILITY = "facility"
    MANAGER = "manager"
    OCCUPATION = "occupation"
    OPENID = "openid"
    OTHER = "other"
    PROFILE = "profile"
    SERVICE = "service"


class SncfEnvironment(StrEnum):
    PROD = "prod"
    REC = "rec"
    DEV = "dev"


DEFAULT_SCOPES: tuple[SncfScope, ...] = (SncfScope.OPENID, SncfScope.EMAIL, SncfScope.PROFILE)


class Endpoints(BaseModel):
    """
    The three provider URLs used by one driver instance.

    Attributes:
        authorize_url (str): Where the user is redirected to authorize the request.
        token_url (str): Where the authorization code is exchanged for an access token.
        user_info_url (str): Where the user details are fetched with a bearer token.
    """

    model_config = ConfigDict(frozen=True)

    authorize_url: str
    token_url: str
    user_info_url: str


class AccessToken(BaseModel):
    """
    Access token obtained from the authorization code exchange.

    `token` mirrors `access_token` so that callers can treat it like any bearer token.
    `id_token` is passed through as received and never verified.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    type: Literal["bearer"] = "bearer"
    access_token: str
    refresh_token: str | None = None
    scopes: list[str] = Field(default_factory=list)
    id_token: str | None = None
    expires_in: int | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "AccessToken":
        """
        Builds the token from the token endpoint JSON body.

        Args:
            data: The decoded token endpoint response.

        Returns:
            AccessToken: The normalized token.

        Raises:
            ValueError: If `scope` is neither a string nor a list.
        """
        raw_scope = data.get("scope") or ""
        if isinstance(raw_scope, str):
            scopes = raw_scope.split()
        elif isinstance(raw_scope, list):
            scopes = [str(s) for s in raw_scope]
        else:
            raise ValueError(f"Unsupported scope value of type {type(raw_scope).__name__}")

        return cls(
            token=data["access_token"],
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            scopes=scopes,
            id_token=data.get("id_token"),
            expires_in=data.get("expires_in"),
        )

    def __repr__(self) -> str:
        # Token material MUST be redacted in __repr__
        return f"AccessToken(type='bearer', scopes={self.scopes!r}, expires_in={self.expires_in!r})"

    def __str__(self) -> str:
        return self.__repr__()


class BearerToken(BaseModel):
    """Token wrapper returned when the profile is fetched from an existing access token."""

    model_config = ConfigDict(frozen=True)

    token: str
    type: Literal["bearer"] = "bearer"

    def __repr__(self) -> str:
        return "BearerToken(type='bearer')"

    def __str__(self) -> str:
        return self.__repr__()


class UserProfile(BaseModel):
    """
    Normalized SNCF user record.

    Serializes with camelCase keys (`nickName`, `avatarUrl`, `emailVerificationState`)
    when dumped with `by_alias=True`.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "u1",
                "nickName": "Doe Jane",
                "name": "Doe Jane",
                "email": "j@x.com",
                "avatarUrl": None,
                "emailVerificationState": "unsupported",
            }
        },
    )

    id: str = Field(..., description="The subject identifier (`sub`).")
    nick_name: str = Field(..., alias="nickName", description="`displayName`, or the full name when absent.")
    name: str = Field(..., description="Always `<family_name> <first_name>`.")
    email: str | None = Field(default=None, description="Taken from the provider's `Mail` field.")
    avatar_url: None = Field(default=None, alias="avatarUrl")
    email_verification_state: Literal["unsupported"] = Field(
        default="unsupported", alias="emailVerificationState"
    )
    original: dict[str, Any] = Field(default_factory=dict, description="The untouched user-info payload.")
    token: AccessToken | BearerToken | None = None
