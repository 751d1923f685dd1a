"""Notification model: a message addressed to one user about one document."""

from __future__ import annotations

from bidflow.models.base import DocumentBase


class Notification(DocumentBase):
    user_id: str
    document_id: str
    text: str
    read: bool = False
