"""Update package metadata models."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ObjectMetadata(BaseModel):
    """A single object of an update package.

    Each object is written by the install mode named in ``mode``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mode: str = Field(..., description="Install mode handling this object (e.g., 'flash')")
    filename: str = Field(..., description="Filename inside the package")
    sha256sum: str = Field(
        ..., pattern=r"^[a-f0-9]{64}$", description="Content identifier of the payload"
    )
    size: int = Field(..., ge=0, description="Payload size in bytes")
    target_type: Optional[str] = Field(
        None, alias="target-type", description="How 'target' is interpreted"
    )
    target: Optional[str] = Field(None, description="Device path or symbolic name")


class UpdateMetadata(BaseModel):
    """Immutable description of an update package."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    product_uid: str = Field(..., alias="product-uid", description="Product identifier")
    version: str = Field(..., min_length=1, description="Package version")
    objects: list[ObjectMetadata] = Field(
        ..., min_length=1, description="Objects to install, in order"
    )
