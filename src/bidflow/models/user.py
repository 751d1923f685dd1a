"""User and actor models.

Users are provisioned by the identity store; this service only reads them.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

from bidflow.models.base import DocumentBase


class Role(StrEnum):
    ADMIN = "Admin"
    CREATOR = "Bid Creator"
    REVIEWER = "Bid Reviewer"
    VIEWER = "Bid Viewer"
    CLIENT = "Client"


class User(DocumentBase):
    name: str
    email: str = ""
    role: Role


class Actor(BaseModel):
    """The authenticated caller of an operation."""

    id: str
    name: str = ""
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
