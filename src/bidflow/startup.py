"""Initialization helpers for the API lifespan."""

from __future__ import annotations

import logging
from datetime import timedelta
from types import SimpleNamespace
from typing import TYPE_CHECKING

from bidflow.credentials import CredentialProvider
from bidflow.database.client import CosmosClient
from bidflow.database.repositories import (
    ApprovalRepository,
    DocumentRepository,
    NotificationRepository,
    UserRepository,
)
from bidflow.generation.adapter import GenerationAdapter
from bidflow.generation.llm import create_chat_client
from bidflow.services.approvals import ReviewWorkflow
from bidflow.services.documents import DocumentService
from bidflow.services.notifications import NotificationService
from bidflow.services.versions import VersionChainManager
from bidflow.storage.graph import GraphArtifactStore
from bidflow.storage.renderer import DocumentRenderer

if TYPE_CHECKING:
    from bidflow.config import Settings
    from bidflow.generation.adapter import GenerationProvider
    from bidflow.storage import ArtifactStore

logger = logging.getLogger(__name__)


async def init_database(settings: Settings) -> CosmosClient:
    """Create and verify the Cosmos DB client. Raises ``ConnectionError``."""
    cosmos = CosmosClient(settings.cosmos)
    await cosmos.initialize()
    return cosmos


async def init_storage(settings: Settings) -> SimpleNamespace:
    """Create the credential provider and the Graph-backed artifact store."""
    credentials = CredentialProvider(settings.entra)
    await credentials.initialize()
    scope = settings.storage.scope

    async def token_provider() -> str:
        return await credentials.get_token(scope)

    store = GraphArtifactStore(settings.storage, token_provider)
    logger.info(
        "Artifact store ready: site=%s root=%s",
        settings.storage.site_id,
        settings.storage.root_folder or "/",
    )
    return SimpleNamespace(credentials=credentials, store=store)


def init_generation(settings: Settings) -> GenerationAdapter:
    client = create_chat_client(settings.openai)
    return GenerationAdapter(
        client,
        timeout_seconds=settings.openai.timeout_seconds,
    )


def init_services(
    settings: Settings,
    cosmos: CosmosClient,
    store: ArtifactStore,
    generator: GenerationProvider,
) -> DocumentService:
    """Wire repositories and services into the document service."""
    database = cosmos.database
    documents_repo = DocumentRepository(database)
    notifications = NotificationService(
        NotificationRepository(database), UserRepository(database)
    )
    workflow = ReviewWorkflow(
        ApprovalRepository(database),
        documents_repo,
        notifications,
        quorum=settings.workflow.review_quorum,
        max_attempts=settings.workflow.version_max_attempts,
    )
    versions = VersionChainManager(
        documents_repo,
        store,
        generator,
        max_attempts=settings.workflow.version_max_attempts,
        orphan_after=timedelta(seconds=settings.workflow.orphan_artifact_seconds),
    )
    return DocumentService(
        documents_repo,
        generator,
        store,
        versions,
        workflow,
        notifications,
        DocumentRenderer(),
        model=settings.openai.deployment,
        auto_review=settings.openai.auto_review,
    )
