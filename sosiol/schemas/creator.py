import re

from pydantic import BaseModel, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[a-z0-9_]{3,30}$")


class CreatorUpsertRequest(BaseModel):
    wallet_address: str = Field(..., alias="walletAddress", min_length=32, max_length=44)
    username: str = Field(..., min_length=3, max_length=30)
    display_name: str = Field(..., alias="displayName", min_length=1, max_length=50)
    signature: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    bio: str | None = Field(None, max_length=500)
    avatar_url: str | None = Field(None, alias="avatarUrl", max_length=2048)
    cover_image_url: str | None = Field(None, alias="coverImageUrl", max_length=2048)

    model_config = {"populate_by_name": True}

    @field_validator("username")
    @classmethod
    def normalize_username(cls, value: str) -> str:
        value = value.strip().lower()
        if not USERNAME_PATTERN.match(value):
            raise ValueError("Username may only contain letters, digits and underscores")
        return value

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Display name cannot be blank")
        return value


class CreatorResponse(BaseModel):
    id: str
    walletAddress: str
    username: str
    displayName: str
    bio: str
    avatarUrl: str
    coverImageUrl: str
    totalTipsReceived: float
    createdAt: str | None = None
    updatedAt: str | None = None


class CleanupResponse(BaseModel):
    message: str
    deletedTips: int
    totalTipsReceived: float
