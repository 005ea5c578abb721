"""
Storage response models for container provisioning and image listing.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StorageContainer(BaseModel):
    """A provisioned container with a container-scoped upload token."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Container name")
    url: str = Field(..., description="Browsable container URL with the signed token appended")
    connection_descriptor: str = Field(
        ...,
        description="Connection string embedding the account endpoint and the same token",
    )
    expires_on: datetime = Field(..., description="Absolute UTC instant the token stops being accepted")


class ArtImageSet(BaseModel):
    """Directly fetchable image URLs for one artist asset, sharing one read token."""

    model_config = ConfigDict(frozen=True)

    image_urls: list[str] = Field(default_factory=list, description="Signed object URLs in backend order")
    expires_on: datetime = Field(..., description="Expiry shared by every URL in the set")
