"""Structured shapes the generation provider must return."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ProposalPlan(BaseModel):
    """Summary plus ordered section titles for a new proposal."""

    summary: str = Field(min_length=1)
    sections: list[str] = Field(min_length=1)

    @field_validator("sections")
    @classmethod
    def _unique_titles(cls, value: list[str]) -> list[str]:
        titles = [title.strip() for title in value]
        if any(not title for title in titles):
            raise ValueError("section titles must not be blank")
        if len(set(titles)) != len(titles):
            raise ValueError("section titles must be unique")
        return titles
