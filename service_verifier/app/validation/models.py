"""
Request and response models for the verify endpoint.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..networks import Network


class VerifyRequest(BaseModel):
    """Request model for zkLogin signature verification."""

    model_config = ConfigDict(populate_by_name=True)

    signature: str
    # Serialized as "bytes" on the wire
    payload: str = Field(alias="bytes")
    intent_scope: str
    author: Optional[str] = None
    network: Optional[Network] = None
    curr_epoch: Optional[int] = Field(default=None, ge=0, le=2**64 - 1)


class VerifyResponse(BaseModel):
    """Response model for zkLogin signature verification."""

    is_verified: bool
