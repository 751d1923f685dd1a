"""Content generation adapter.

Wraps one ``agent_framework`` agent per prompt and turns provider output into
domain values. Every call is bounded by ``timeout_seconds``; provider output
is treated as untrusted and validated before it reaches the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from agent_framework import Agent
from pydantic import ValidationError

from bidflow.errors import GenerationError, GenerationFormatError, GenerationTimeout
from bidflow.generation.prompts import load_prompt
from bidflow.generation.schemas import ProposalPlan

if TYPE_CHECKING:
    from agent_framework.azure import AzureOpenAIChatClient

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def _strip_fences(text: str) -> str:
    return _FENCE.sub("", text.strip()).strip()


@runtime_checkable
class GenerationProvider(Protocol):
    """Operations the document service needs from a text generator."""

    async def summarize_and_plan(self, project_name: str, project_details: str) -> ProposalPlan: ...

    async def generate_section(
        self, project_name: str, summary: str, project_details: str, section_name: str
    ) -> str: ...

    async def revise_section(
        self, section_name: str, current_text: str, instructions: str
    ) -> str: ...

    async def generate_from_document(self, source_text: str) -> str: ...

    async def critique(self, proposal_text: str) -> str: ...


class GenerationAdapter:
    """Azure OpenAI backed implementation of :class:`GenerationProvider`."""

    def __init__(
        self,
        client: AzureOpenAIChatClient,
        *,
        timeout_seconds: float = 120.0,
    ) -> None:
        self._timeout = timeout_seconds
        self._planner = Agent(client, name="planner", instructions=load_prompt("plan"))
        self._writer = Agent(client, name="section-writer", instructions=load_prompt("section"))
        self._reviser = Agent(client, name="section-reviser", instructions=load_prompt("revise"))
        self._proposer = Agent(
            client,
            name="technical-proposal",
            instructions=load_prompt("technical_proposal"),
        )
        self._reviewer = Agent(
            client,
            name="proposal-reviewer",
            instructions=load_prompt("review_proposal"),
        )

    async def _run(self, agent: Agent, task: str, *, operation: str) -> str:
        try:
            async with asyncio.timeout(self._timeout):
                response = await agent.run(task)
        except TimeoutError as exc:
            msg = f"{operation} timed out after {self._timeout:.0f}s"
            raise GenerationTimeout(msg) from exc
        except GenerationError:
            raise
        except Exception as exc:
            logger.warning("Generation call failed: operation=%s", operation, exc_info=True)
            raise GenerationError(f"{operation} failed: {exc}") from exc

        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise GenerationFormatError(f"{operation} returned an empty response")
        logger.debug("Generation call completed: operation=%s chars=%d", operation, len(text))
        return text

    async def summarize_and_plan(self, project_name: str, project_details: str) -> ProposalPlan:
        """Return the project summary and the ordered section titles.

        Raises ``GenerationFormatError`` unless the provider answers with a
        JSON object holding a non-empty ``summary`` and a non-empty list of
        unique section titles.
        """
        task = f"Project name: {project_name}\n\nProject details:\n{project_details}"
        text = await self._run(self._planner, task, operation="summarize_and_plan")
        try:
            plan = ProposalPlan.model_validate(json.loads(_strip_fences(text)))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise GenerationFormatError(f"summarize_and_plan returned an invalid plan: {exc}") from exc
        logger.info(
            "Proposal planned: project=%s sections=%d", project_name, len(plan.sections)
        )
        return plan

    async def generate_section(
        self, project_name: str, summary: str, project_details: str, section_name: str
    ) -> str:
        task = (
            f"Project name: {project_name}\n\n"
            f"Project summary:\n{summary}\n\n"
            f"Project details:\n{project_details}\n\n"
            f"Section to write: {section_name}"
        )
        return await self._run(self._writer, task, operation="generate_section")

    async def revise_section(self, section_name: str, current_text: str, instructions: str) -> str:
        task = (
            f"Section: {section_name}\n\n"
            f"Current text:\n{current_text}\n\n"
            f"Instructions:\n{instructions}"
        )
        return await self._run(self._reviser, task, operation="revise_section")

    async def generate_from_document(self, source_text: str) -> str:
        """Draft a full technical proposal from RFQ text."""
        return await self._run(
            self._proposer,
            f"RFQ text:\n{source_text}",
            operation="generate_from_document",
        )

    async def critique(self, proposal_text: str) -> str:
        """Review a proposal and return the findings as an HTML fragment."""
        return await self._run(
            self._reviewer,
            f"Technical proposal:\n{proposal_text}",
            operation="critique",
        )
