"""Prompt loader for the generation adapter's instruction files."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"

logger = logging.getLogger(__name__)


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Load the markdown prompt ``name`` from the prompts directory.

    Raises ``FileNotFoundError`` if the prompt file does not exist.
    """
    path = PROMPTS_DIR / f"{name}.md"
    text = path.read_text(encoding="utf-8")
    logger.debug("Prompt loaded: name=%s path=%s", name, path)
    return text
