"""Pydantic request models for the search and proxy endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from webfinder.models.results import StrategyId


class BatchCompanyItem(BaseModel):
    """One company to look up in a batch."""

    ruc: str | None = Field(default=None, pattern=r"^\d{11}$")
    name: str = Field(..., min_length=2, max_length=200)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("name must contain at least 2 non-blank characters")
        return value


class BatchSearchRequest(BaseModel):
    """Request model for a sequential batch search (max 50 companies)."""

    companies: list[BatchCompanyItem] = Field(..., min_length=1, max_length=50)
    strategy: StrategyId | None = None
    delay_ms: int | None = Field(default=None, ge=1000, le=60000)


class ProxyTestRequest(BaseModel):
    """Request model for testing a single proxy against the reference page."""

    ip: str = Field(..., pattern=r"^\d{1,3}(\.\d{1,3}){3}$")
    port: int = Field(..., ge=1, le=65535)
    protocol: str = Field(default="socks5", pattern=r"^(socks5h?|https?)$")
