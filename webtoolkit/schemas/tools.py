"""Schemas for the random-string and slugify endpoints."""

from pydantic import BaseModel, Field


class RandomStringResponse(BaseModel):
    """Response for GET /random-string."""

    value: str = Field(..., description="Random characters from [a-zA-Z0-9_+].")


class SlugifyRequest(BaseModel):
    """Request body for POST /slugify."""

    text: str = Field(..., description="Arbitrary text to turn into a slug.")


class SlugifyResponse(BaseModel):
    """Response for POST /slugify."""

    slug: str = Field(..., description="Lowercase [a-z0-9] words joined by hyphens.")
