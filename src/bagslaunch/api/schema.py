"""Response schemas for the token-launch API.

Each operation has exactly one accepted shape.  Responses that do not parse
are reported as upstream errors rather than searched for alternative fields.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool
    response: T


class TokenInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token_mint: str = Field(..., alias="tokenMint", min_length=1)
    token_metadata: str = Field(..., alias="tokenMetadata", min_length=1)
    token_launch: Dict[str, Any] = Field(default_factory=dict, alias="tokenLaunch")


class LaunchConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    config_key: str = Field(..., alias="configKey", min_length=1)
    tx: Optional[str] = None


class ErrorBody(BaseModel):
    success: bool = False
    error: Any = None
