"""
Vademecum Section Segmenter & Field Extractor

Splits the text of a drug-reference document into one section per
medication and extracts structured sub-fields from each section.

Both steps are heuristics over loosely structured prose:
- Sections start at an all-caps drug-name header preceded by a blank line.
- Every field is a named, independent FieldRule that matches a labelled
  paragraph and captures up to the next known label.

A field that is missing or cannot be parsed is simply empty.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from vademecum.config import MIN_NAME_LENGTH, MIN_SECTION_LENGTH
from vademecum.rag.schemas import DrugInteraction, MedicationCandidate, MedicationMetadata

logger = logging.getLogger(__name__)

# ============================================
# Labels
# ============================================

# Label patterns (Spanish drug references). Matched case-insensitively at
# the start of a line; see label_head for the accepted forms.
LABELS: dict[str, str] = {
    "indications": r"indicaci[oó]n(?:es)?(?:\s+terap[eé]uticas?)?",
    "contraindications": r"contraindicaci[oó]n(?:es)?",
    "adverse_effects": (
        r"(?:efectos?\s+(?:adversos?|secundarios?|indeseables?)"
        r"|reacci[oó]n(?:es)?\s+adversas?)"
    ),
    "dosing_pediatric": (
        r"dosis\s+(?:en\s+)?(?:pedi[aá]tric[ao]s?|niñ[oa]s|infantil(?:es)?)"
    ),
    "dosing_geriatric": (
        r"dosis\s+(?:en\s+)?(?:geri[aá]tric[ao]s?|ancian[oa]s|adultos\s+mayores)"
    ),
    "dosing_adult": (
        r"(?:dosis|posolog[ií]a)"
        r"(?!\s+(?:en\s+)?(?:pedi|geri|niñ|infan|ancian|adultos\s+mayores))"
        r"(?:\s+(?:en\s+)?adultos?)?"
    ),
    "pregnancy_lactation": r"(?:embarazo(?:\s*(?:y|e|/)\s*lactancia)?|lactancia)",
    "interactions": r"interacci[oó]n(?:es)?(?:\s+(?:medicamentosas?|farmacol[oó]gicas?))?",
    "commercial_names": r"(?:nombres?|marcas?)\s+comerciales?",
    "active_ingredient": r"principios?\s+activos?",
    "therapeutic_group": r"grupo\s+terap[eé]utico",
    "presentations": r"presentaci[oó]n(?:es)?",
    "routes_of_administration": r"v[ií]as?\s+de\s+administraci[oó]n",
    "pharmacokinetics": r"farmacocin[eé]tica",
}

# Labels with no field of their own; they only end the previous paragraph.
BOUNDARY_LABELS: tuple[str, ...] = (
    r"precauciones",
    r"advertencias",
    r"mecanismo\s+de\s+acci[oó]n",
    r"farmacodinamia",
    r"sobredosis",
    r"conservaci[oó]n",
)

_ANY_LABEL = "|".join([*LABELS.values(), *BOUNDARY_LABELS])
_LOWER = "a-záéíóúüñ"
_FLAGS = re.IGNORECASE | re.MULTILINE | re.DOTALL


def label_head(label: str) -> str:
    """A label opening a line.

    Any case when followed by a colon. Without a colon the whole line must
    be upper case (a sub-heading), so list items like "Embarazo" stay items.
    """
    return (
        rf"[ \t]*(?:(?:{label})[ \t]*:"
        rf"|(?-i:(?=[^{_LOWER}\n]*$))(?:{label})[ \t]*\.?[ \t]*$)"
    )


_NEXT_LABEL_OR_END = rf"(?=^{label_head(_ANY_LABEL)}|\Z)"

_LABEL_ONLY_LINE = re.compile(rf"^(?:{_ANY_LABEL})[ \t]*[:.]?$", re.IGNORECASE)

_UPPER = "A-ZÁÉÍÓÚÜÑ"
HEADER_LINE_PATTERN = re.compile(
    rf"^[{_UPPER}]{{3,}}[{_UPPER}0-9-]*(?:[ \t]+[{_UPPER}0-9][{_UPPER}0-9-]*)*$"
)

_LEADING_BULLET = re.compile(r"^[\s•·▪●◦*\-–]+")
_INLINE_BULLET = re.compile(r"[•·▪●◦]|\s[-–]\s")
_NAME_SEPARATORS = re.compile(r"[,;\n]")
_SEVERITY_MARKER = re.compile(
    r"\(\s*(?:severidad|gravedad)\s*:?\s*([^)]+?)\s*\)\s*$", re.IGNORECASE
)
_TRAILING_PUNCTUATION = " \t.,;:-–"

MIN_FRAGMENT_LENGTH = 3


# ============================================
# Value Parsers
# ============================================


def _collapse(text: str) -> str:
    return " ".join(text.split())


def parse_text(body: str) -> str | None:
    """Scalar field: whitespace collapsed, None when empty."""
    value = _collapse(body)
    return value or None


def parse_list(body: str) -> list[str]:
    """List field: split on bullets, list hyphens and newlines."""
    items: list[str] = []
    for line in body.split("\n"):
        for fragment in _INLINE_BULLET.split(line):
            item = _collapse(_LEADING_BULLET.sub("", fragment)).rstrip(" ,;")
            if len(item) >= MIN_FRAGMENT_LENGTH:
                items.append(item)
    return items


def parse_names(body: str) -> list[str]:
    """Commercial names: comma/semicolon/newline separated, order kept."""
    names: list[str] = []
    seen: set[str] = set()
    for raw in _NAME_SEPARATORS.split(body):
        name = _collapse(_LEADING_BULLET.sub("", raw)).rstrip(" .")
        if len(name) > 1 and name.lower() not in seen:
            seen.add(name.lower())
            names.append(name)
    return names


def _split_partner(line: str) -> tuple[str, str] | None:
    """Split "Drug: effect" / "Drug - effect" at the first separator.

    A colon wins over dashes so hyphenated drug names stay intact.
    """
    if ":" in line:
        partner, _, effect = line.partition(":")
    else:
        match = re.search(r"[-–]", line)
        if match is None:
            return None
        partner, effect = line[: match.start()], line[match.end() :]
    partner = _collapse(partner)
    effect = _collapse(effect)
    if not partner or not effect:
        return None
    return partner, effect


def parse_interactions(body: str) -> list[DrugInteraction]:
    """Interaction lines as {partner_drug, effect, severity?} pairs."""
    interactions: list[DrugInteraction] = []
    for raw_line in body.split("\n"):
        for fragment in re.split(r"[•·▪●◦]", raw_line):
            line = _LEADING_BULLET.sub("", fragment).strip()
            if len(line) < MIN_FRAGMENT_LENGTH:
                continue

            severity = None
            marker = _SEVERITY_MARKER.search(line)
            if marker:
                severity = marker.group(1).strip().lower()
                line = line[: marker.start()].rstrip()

            pair = _split_partner(line)
            if pair is None:
                continue
            partner, effect = pair
            interactions.append(
                DrugInteraction(partner_drug=partner, effect=effect, severity=severity)
            )
    return interactions


# ============================================
# Field Rules
# ============================================


@dataclass(frozen=True)
class FieldRule:
    """Extracts one field from a section by its label."""

    field: str
    label: str
    parser: Callable[[str], Any]

    def __post_init__(self) -> None:
        pattern = re.compile(
            rf"^{label_head(self.label)}[ \t]*(?P<body>.*?){_NEXT_LABEL_OR_END}",
            _FLAGS,
        )
        object.__setattr__(self, "_pattern", pattern)

    def extract(self, section: str) -> Any:
        match = self._pattern.search(section)  # type: ignore[attr-defined]
        if not match:
            return self.parser("")
        try:
            return self.parser(match.group("body"))
        except Exception as e:
            logger.debug("Field %s could not be parsed: %s", self.field, e)
            return self.parser("")


FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule("indications", LABELS["indications"], parse_list),
    FieldRule("contraindications", LABELS["contraindications"], parse_list),
    FieldRule("adverse_effects", LABELS["adverse_effects"], parse_list),
    FieldRule("dosing_adult", LABELS["dosing_adult"], parse_text),
    FieldRule("dosing_pediatric", LABELS["dosing_pediatric"], parse_text),
    FieldRule("dosing_geriatric", LABELS["dosing_geriatric"], parse_text),
    FieldRule("pregnancy_lactation", LABELS["pregnancy_lactation"], parse_text),
    FieldRule("interactions", LABELS["interactions"], parse_interactions),
    FieldRule("presentations", LABELS["presentations"], parse_list),
    FieldRule(
        "routes_of_administration", LABELS["routes_of_administration"], parse_list
    ),
    FieldRule("pharmacokinetics", LABELS["pharmacokinetics"], parse_text),
)

COMMERCIAL_NAMES_RULE = FieldRule(
    "commercial_names", LABELS["commercial_names"], parse_names
)
ACTIVE_INGREDIENT_RULE = FieldRule(
    "active_ingredient", LABELS["active_ingredient"], parse_text
)
THERAPEUTIC_GROUP_RULE = FieldRule(
    "therapeutic_group", LABELS["therapeutic_group"], parse_text
)


# ============================================
# Name & Content
# ============================================


def normalize_generic_name(raw: str) -> str:
    """Collapse whitespace, drop trailing punctuation, capitalize first letter."""
    name = _collapse(raw).strip(_TRAILING_PUNCTUATION).lower()
    return name[:1].upper() + name[1:]


def build_content(name: str, metadata: MedicationMetadata) -> str:
    """Denormalized text that gets embedded.

    Field order is fixed so unchanged source text always reproduces the same
    embedding input.
    """
    parts = [f"Medicamento: {name}"]

    if metadata.indications:
        parts.append("\nINDICACIONES:\n" + "\n".join(metadata.indications))

    if metadata.dosing_adult:
        parts.append(f"\nDOSIS ADULTOS: {metadata.dosing_adult}")

    if metadata.dosing_pediatric:
        parts.append(f"\nDOSIS PEDIÁTRICA: {metadata.dosing_pediatric}")

    if metadata.contraindications:
        parts.append("\nCONTRAINDICACIONES:\n" + "\n".join(metadata.contraindications))

    if metadata.interactions:
        lines = [f"- {i.partner_drug}: {i.effect}" for i in metadata.interactions]
        parts.append("\nINTERACCIONES:\n" + "\n".join(lines))

    if metadata.adverse_effects:
        parts.append("\nEFECTOS ADVERSOS:\n" + ", ".join(metadata.adverse_effects))

    if metadata.pregnancy_lactation:
        parts.append(f"\nEMBARAZO/LACTANCIA: {metadata.pregnancy_lactation}")

    return "\n".join(parts)


# ============================================
# Segmenter
# ============================================


class SectionSegmenter:
    """Turns one extracted-text blob into candidate medication records.

    Attributes:
        min_section_length: Sections shorter than this are discarded.
        min_name_length: Generic names shorter than this are discarded.
    """

    def __init__(
        self,
        min_section_length: int = MIN_SECTION_LENGTH,
        min_name_length: int = MIN_NAME_LENGTH,
        rules: tuple[FieldRule, ...] = FIELD_RULES,
    ) -> None:
        self.min_section_length = min_section_length
        self.min_name_length = min_name_length
        self.rules = rules

    def segment(self, text: str) -> list[MedicationCandidate]:
        """Split text into sections and extract one candidate per section."""
        if not text or not text.strip():
            return []

        candidates: list[MedicationCandidate] = []
        for section in self.split_sections(text):
            candidate = self.parse_section(section)
            if candidate is not None:
                candidates.append(candidate)

        logger.info(
            "Segmented document into %d medication candidates", len(candidates)
        )
        return candidates

    def split_sections(self, text: str) -> list[str]:
        """Split at all-caps header lines that follow a blank line."""
        text = text.replace("\r\n", "\n").replace("\r", "\n")

        sections: list[list[str]] = []
        current: list[str] = []
        previous_blank = True  # start of text counts as a blank line

        for line in text.split("\n"):
            stripped = line.strip()
            if previous_blank and self.is_header(stripped):
                if current:
                    sections.append(current)
                current = [line]
            else:
                current.append(line)
            previous_blank = not stripped

        if current:
            sections.append(current)

        return ["\n".join(lines).strip() for lines in sections]

    @staticmethod
    def is_header(line: str) -> bool:
        """True for an all-caps drug-name line that is not a field label."""
        return bool(HEADER_LINE_PATTERN.match(line)) and not _LABEL_ONLY_LINE.match(
            line
        )

    def parse_section(self, section: str) -> MedicationCandidate | None:
        """Extract a candidate from one section, or None for noise."""
        if len(section) < self.min_section_length:
            return None

        first_line = next((ln.strip() for ln in section.split("\n") if ln.strip()), "")
        if len(first_line) < self.min_name_length:
            return None

        generic_name = normalize_generic_name(first_line)
        if len(generic_name) < self.min_name_length:
            return None

        metadata = self.extract_metadata(section)
        return MedicationCandidate(
            generic_name=generic_name,
            commercial_names=COMMERCIAL_NAMES_RULE.extract(section),
            active_ingredient=ACTIVE_INGREDIENT_RULE.extract(section),
            therapeutic_group=THERAPEUTIC_GROUP_RULE.extract(section),
            content=build_content(generic_name, metadata),
            metadata=metadata,
        )

    def extract_metadata(self, section: str) -> MedicationMetadata:
        """Run every field rule over a section."""
        fields = {rule.field: rule.extract(section) for rule in self.rules}
        return MedicationMetadata(**fields)
