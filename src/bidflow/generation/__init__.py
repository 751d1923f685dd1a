"""Text-generation adapter over Azure OpenAI."""

from bidflow.generation.adapter import GenerationAdapter, GenerationProvider
from bidflow.generation.schemas import ProposalPlan

__all__ = ["GenerationAdapter", "GenerationProvider", "ProposalPlan"]
