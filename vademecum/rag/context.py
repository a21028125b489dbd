"""
Context Builder for Vademecum

Assembles the grounding text handed to the note-generation workflow:
one block per resolved medication, then the interaction alerts.
"""

import logging

from vademecum.rag.interactions import InteractionChecker
from vademecum.rag.retriever import RetrievalEngine
from vademecum.security.input_validation import validate_medication_names

logger = logging.getLogger(__name__)

ALERTS_HEADER = "\n## ALERTAS DE INTERACCIONES"
WARNING_MARKER = "⚠️"
BLOCK_SEPARATOR = "\n\n"


class ContextBuilder:
    """Builds the medication context string for downstream prompts."""

    def __init__(self, retriever: RetrievalEngine, checker: InteractionChecker):
        self._retriever = retriever
        self._checker = checker

    async def build(self, medications: list[str]) -> str:
        """
        Build the context for a list of medication names.

        Per-drug blocks come first in input order; interaction alerts (if
        any) come last. Downstream consumers rely on this ordering.

        Raises:
            InvalidInputError: If no medication names are given.
        """
        medications = validate_medication_names(medications, 1)

        blocks: list[str] = []
        for med in medications:
            info = await self._retriever.get_medication(med)
            if info is not None:
                blocks.append(f"## {info.generic_name}\n{info.content}")

        # A single medication cannot interact with anything
        if len(medications) >= 2:
            interactions = await self._checker.check(medications)
            if interactions:
                blocks.append(ALERTS_HEADER)
                for i in interactions:
                    blocks.append(
                        f"{WARNING_MARKER} {i.drug_a} + {i.drug_b}: {i.effect} "
                        f"(Severidad: {i.severity})"
                    )

        logger.debug(
            "Built context with %d blocks for %d medications",
            len(blocks),
            len(medications),
        )
        return BLOCK_SEPARATOR.join(blocks)
