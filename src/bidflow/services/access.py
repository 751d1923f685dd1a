"""Capability checks: the single place that decides who may do what."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from bidflow.errors import AuthorizationError
from bidflow.models.document import DocumentStatus
from bidflow.models.user import Role

if TYPE_CHECKING:
    from bidflow.models.document import Document
    from bidflow.models.user import Actor


class Capability(StrEnum):
    READ = "read"
    REVISE = "revise"
    SUBMIT = "submit"
    REVIEW = "review"


_REVIEWER_READABLE = frozenset({DocumentStatus.SUBMITTED, DocumentStatus.IN_PROGRESS})

CREATE_ROLES = frozenset({Role.ADMIN, Role.CREATOR})


def is_owner(actor: Actor, document: Document) -> bool:
    return actor.id == document.creator_id


def can(actor: Actor, document: Document, capability: Capability) -> bool:
    """Return whether ``actor`` holds ``capability`` on ``document``."""
    if actor.is_admin:
        return True
    match capability:
        case Capability.READ:
            if is_owner(actor, document):
                return True
            if actor.role == Role.REVIEWER:
                return document.status in _REVIEWER_READABLE
            if actor.role in (Role.VIEWER, Role.CLIENT):
                return document.status == DocumentStatus.APPROVED
            return False
        case Capability.REVISE | Capability.SUBMIT:
            return is_owner(actor, document)
        case Capability.REVIEW:
            return actor.role == Role.REVIEWER
    return False


def authorize(actor: Actor, document: Document, capability: Capability) -> None:
    """Raise ``AuthorizationError`` unless ``actor`` holds ``capability``."""
    if not can(actor, document, capability):
        msg = f"{actor.role} {actor.id} may not {capability} document {document.id}"
        raise AuthorizationError(msg)


def require_role(actor: Actor, roles: frozenset[Role], action: str) -> None:
    """Raise ``AuthorizationError`` unless the actor's role is in ``roles``."""
    if actor.role not in roles:
        raise AuthorizationError(f"{actor.role} may not {action}")
