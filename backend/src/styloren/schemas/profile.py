"""Pydantic schemas for user profile preferences."""
from pydantic import BaseModel, Field, model_validator


class ProfileUpdate(BaseModel):
    """Schema for updating profile preferences; omitted fields are left unchanged."""

    display_name: str | None = Field(default=None, max_length=100, description="Name the stylist addresses the user by")
    save_scan_history: bool | None = Field(default=None, description="Save analyzed outfits to history")

    @model_validator(mode="after")
    def check_not_empty(self) -> "ProfileUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one of display_name or save_scan_history is required")
        return self


class Profile(BaseModel):
    """Schema for returning profile preferences."""

    display_name: str | None
    save_scan_history: bool
