"""
Interaction Checker for Vademecum

Cross-matches the interaction partners declared in each medication's record
against the other medications in the same request.

Partner matching is a loose case-insensitive substring test in either
direction, so "Aspirina" (as written in the source document) matches the
user's "Aspirina 100mg". An interacting pair is reported once, whichever
side declared it.
"""

import logging

from vademecum.config import DEFAULT_SEVERITY
from vademecum.rag.retriever import RetrievalEngine
from vademecum.rag.schemas import InteractionAlert
from vademecum.security.input_validation import validate_medication_names

logger = logging.getLogger(__name__)

MIN_MEDICATIONS = 2


def names_overlap(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction."""
    a, b = a.lower(), b.lower()
    return a in b or b in a


def dedupe_pairs(alerts: list[InteractionAlert]) -> list[InteractionAlert]:
    """Keep the first alert per unordered drug pair."""
    seen: set[frozenset[str]] = set()
    unique: list[InteractionAlert] = []
    for alert in alerts:
        pair = frozenset((alert.drug_a, alert.drug_b))
        if pair in seen:
            continue
        seen.add(pair)
        unique.append(alert)
    return unique


class InteractionChecker:
    """Finds declared interactions among a handful of medications."""

    def __init__(
        self,
        retriever: RetrievalEngine,
        default_severity: str = DEFAULT_SEVERITY,
    ):
        self._retriever = retriever
        self.default_severity = default_severity

    async def check(self, medications: list[str]) -> list[InteractionAlert]:
        """
        Check interactions between the given medication names.

        Args:
            medications: Raw user input; generic or commercial names.

        Returns:
            One InteractionAlert per interacting pair.

        Raises:
            InvalidInputError: If fewer than 2 medications are given.
            RetrievalError: If a semantic lookup cannot embed a name.
        """
        medications = validate_medication_names(medications, MIN_MEDICATIONS)

        alerts: list[InteractionAlert] = []
        for med in medications:
            info = await self._retriever.get_medication(med)
            if info is None or not info.metadata.interactions:
                continue

            others = [m for m in medications if m.lower() != med.lower()]
            for interaction in info.metadata.interactions:
                partner = next(
                    (o for o in others if names_overlap(o, interaction.partner_drug)),
                    None,
                )
                if partner is None:
                    continue
                alerts.append(
                    InteractionAlert(
                        drug_a=med,
                        drug_b=partner,
                        effect=interaction.effect,
                        severity=interaction.severity or self.default_severity,
                    )
                )

        unique = dedupe_pairs(alerts)
        if unique:
            logger.info(
                "Found %d interaction(s) among %d medications",
                len(unique),
                len(medications),
            )
        return unique
