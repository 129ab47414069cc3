"""Question answering over the bound store."""

import logging
from pathlib import Path

from docgate.app.errors import ValidationError
from docgate.app.llm.client import InferenceClient
from docgate.app.store.handle import RemoteStoreHandle

logger = logging.getLogger(__name__)


def load_instruction_prefix(path: str | Path) -> str:
    """Read the instruction prefix file; a missing file means no prefix."""
    path = Path(path)
    try:
        prefix = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning(f"Prompt file {path} not found, questions are sent without instructions")
        return ""
    logger.info(f"Loaded instruction prefix from {path}")
    return prefix


def compose_prompt(instruction_prefix: str, question: str) -> str:
    """Prefix the question with the instructions, when there are any."""
    if instruction_prefix:
        return f"{instruction_prefix}\n{question}"
    return question


class QueryGateway:
    """Sends questions to the inference capability scoped to the current store."""

    def __init__(
        self,
        handle: RemoteStoreHandle,
        inference: InferenceClient,
        instruction_prefix: str = "",
    ) -> None:
        self._handle = handle
        self._inference = inference
        self.instruction_prefix = instruction_prefix

    async def ask(self, question: str | None) -> str:
        """Answer a question from the store's documents.

        Raises:
            ValidationError: Missing or blank question (no remote call is made)
            StoreNotInitialized: No store acquired yet
        """
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("Question is missing or invalid")

        question = question.strip()
        store = self._handle.require()
        logger.info(f"Question: {question}")
        return await self._inference.generate(
            store_id=store.id, prompt=compose_prompt(self.instruction_prefix, question)
        )
