"""
Tests for the section segmenter and field rules.
"""

import pytest

from tests.samples import (
    ASPIRINA_SECTION,
    IBUPROFENO_SECTION,
    SAMPLE_VADEMECUM_TEXT,
    WARFARINA_SECTION,
)
from vademecum.rag.schemas import DrugInteraction, MedicationMetadata
from vademecum.rag.segmenter import (
    FIELD_RULES,
    LABELS,
    FieldRule,
    SectionSegmenter,
    build_content,
    normalize_generic_name,
    parse_interactions,
    parse_list,
    parse_names,
    parse_text,
)


@pytest.fixture
def segmenter() -> SectionSegmenter:
    return SectionSegmenter()


class TestSplitSections:
    """Tests for header-based section splitting."""

    @pytest.mark.unit
    def test_two_sections(self, segmenter):
        sections = segmenter.split_sections(SAMPLE_VADEMECUM_TEXT)
        assert len(sections) == 2
        assert sections[0].startswith("IBUPROFENO")
        assert sections[1].startswith("ASPIRINA")

    @pytest.mark.unit
    def test_header_requires_preceding_blank_line(self, segmenter):
        text = "IBUPROFENO\nDosis adultos: 400 mg\nAINE DE USO ORAL\nmás texto"
        sections = segmenter.split_sections(text)
        assert len(sections) == 1

    @pytest.mark.unit
    def test_preamble_kept_as_its_own_section(self, segmenter):
        text = "Índice general de la obra\n\nIBUPROFENO\nDosis adultos: 400 mg"
        sections = segmenter.split_sections(text)
        assert len(sections) == 2
        assert sections[1].startswith("IBUPROFENO")

    @pytest.mark.unit
    def test_windows_line_endings(self, segmenter):
        text = SAMPLE_VADEMECUM_TEXT.replace("\n", "\r\n")
        assert len(segmenter.split_sections(text)) == 2

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "line",
        ["IBUPROFENO", "ÁCIDO ACETILSALICÍLICO", "VITAMINA B12", "AMOXICILINA-CLAVULÁNICO"],
    )
    def test_is_header_accepts_drug_names(self, line):
        assert SectionSegmenter.is_header(line)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "line",
        ["Ibuprofeno", "AB", "INTERACCIONES", "CONTRAINDICACIONES:", "", "DOSIS: 400 mg"],
    )
    def test_is_header_rejects_labels_and_prose(self, line):
        assert not SectionSegmenter.is_header(line)


class TestParseSection:
    """Tests for candidate extraction from one section."""

    @pytest.mark.unit
    def test_generic_name_normalized(self, segmenter):
        candidate = segmenter.parse_section(IBUPROFENO_SECTION)
        assert candidate is not None
        assert candidate.generic_name == "Ibuprofeno"

    @pytest.mark.unit
    def test_short_section_discarded(self, segmenter):
        assert segmenter.parse_section("PARACETAMOL\nDolor") is None

    @pytest.mark.unit
    def test_short_name_discarded(self):
        segmenter = SectionSegmenter(min_section_length=0)
        assert segmenter.parse_section("AB\n" + "x" * 80) is None

    @pytest.mark.unit
    def test_fields_extracted(self, segmenter):
        candidate = segmenter.parse_section(IBUPROFENO_SECTION)
        meta = candidate.metadata

        assert candidate.commercial_names == ["Advil", "Motrin"]
        assert candidate.therapeutic_group == "Antiinflamatorio no esteroideo"
        assert meta.indications == ["Dolor leve a moderado", "Fiebre"]
        assert meta.dosing_adult == "400 mg cada 6 a 8 horas"
        assert meta.dosing_pediatric == "5 a 10 mg/kg cada 6 a 8 horas"
        assert meta.contraindications == [
            "Úlcera péptica activa",
            "Insuficiencia renal grave",
        ]
        assert meta.interactions == [
            DrugInteraction(partner_drug="Aspirina", effect="riesgo de sangrado")
        ]
        assert meta.adverse_effects == ["náuseas, dispepsia"]
        assert meta.pregnancy_lactation == "evitar en el tercer trimestre"

    @pytest.mark.unit
    def test_missing_fields_are_empty(self, segmenter):
        candidate = segmenter.parse_section(ASPIRINA_SECTION)
        meta = candidate.metadata
        assert meta.interactions == []
        assert meta.contraindications == []
        assert meta.dosing_pediatric is None
        assert meta.pregnancy_lactation is None
        assert candidate.active_ingredient is None

    @pytest.mark.unit
    def test_pediatric_dose_not_taken_as_adult_dose(self, segmenter):
        section = (
            "PARACETAMOL\n\nDosis pediátrica: 15 mg/kg cada 6 horas\n"
            "Indicaciones:\n- Fiebre en niños pequeños"
        )
        meta = segmenter.parse_section(section).metadata
        assert meta.dosing_adult is None
        assert meta.dosing_pediatric == "15 mg/kg cada 6 horas"

    @pytest.mark.unit
    def test_boundary_label_ends_previous_field(self, segmenter):
        section = (
            "METFORMINA\n\nIndicaciones:\n- Diabetes mellitus tipo 2\n"
            "Precauciones:\n- Controlar la función renal"
        )
        meta = segmenter.parse_section(section).metadata
        assert meta.indications == ["Diabetes mellitus tipo 2"]

    @pytest.mark.unit
    def test_label_word_as_list_item_stays_in_list(self, segmenter):
        section = (
            "METAMIZOL\n\nContraindicaciones:\n"
            "Hipersensibilidad a pirazolonas\nEmbarazo\nInsuficiencia renal grave\n"
            "Interacciones:\nMetotrexato: aumenta la toxicidad hematológica"
        )
        meta = segmenter.parse_section(section).metadata

        assert meta.contraindications == [
            "Hipersensibilidad a pirazolonas",
            "Embarazo",
            "Insuficiencia renal grave",
        ]
        assert meta.pregnancy_lactation is None
        assert meta.interactions[0].partner_drug == "Metotrexato"

    @pytest.mark.unit
    def test_all_caps_label_without_colon_opens_field(self, segmenter):
        section = (
            "METAMIZOL\n\nCONTRAINDICACIONES\n- Hipersensibilidad a pirazolonas\n"
            "EMBARAZO\nEvitar en el primer y tercer trimestre"
        )
        meta = segmenter.parse_section(section).metadata

        assert meta.contraindications == ["Hipersensibilidad a pirazolonas"]
        assert meta.pregnancy_lactation == "Evitar en el primer y tercer trimestre"

    @pytest.mark.unit
    def test_content_built_from_extracted_fields(self, segmenter):
        candidate = segmenter.parse_section(IBUPROFENO_SECTION)
        assert candidate.content == build_content("Ibuprofeno", candidate.metadata)
        assert candidate.content.startswith("Medicamento: Ibuprofeno\n")


class TestSegment:
    """Tests for the full segmentation pass."""

    @pytest.mark.unit
    def test_segment_sample_document(self, segmenter):
        candidates = segmenter.segment(SAMPLE_VADEMECUM_TEXT)
        assert [c.generic_name for c in candidates] == ["Ibuprofeno", "Aspirina"]

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["", "   \n\n  "])
    def test_empty_text(self, segmenter, text):
        assert segmenter.segment(text) == []

    @pytest.mark.unit
    def test_same_text_same_output(self, segmenter):
        first = segmenter.segment(SAMPLE_VADEMECUM_TEXT)
        second = segmenter.segment(SAMPLE_VADEMECUM_TEXT)
        assert [c.model_dump() for c in first] == [c.model_dump() for c in second]


class TestValueParsers:
    """Tests for per-field value parsers."""

    @pytest.mark.unit
    def test_parse_text_collapses_whitespace(self):
        assert parse_text("  400 mg\n  cada   8 horas ") == "400 mg cada 8 horas"
        assert parse_text(" \n ") is None

    @pytest.mark.unit
    def test_parse_list_bullets(self):
        body = "• Cefalea • Mareo\n- Náuseas\n* Rash cutáneo\nok"
        assert parse_list(body) == ["Cefalea", "Mareo", "Náuseas", "Rash cutáneo"]

    @pytest.mark.unit
    def test_parse_list_keeps_hyphenated_words(self):
        assert parse_list("- Antiinflamatorio no-esteroideo") == [
            "Antiinflamatorio no-esteroideo"
        ]

    @pytest.mark.unit
    def test_parse_names_dedupes_case_insensitively(self):
        assert parse_names("Advil, ADVIL; Motrin\nNurofen.") == [
            "Advil",
            "Motrin",
            "Nurofen",
        ]

    @pytest.mark.unit
    def test_parse_interactions_with_severity(self):
        body = WARFARINA_SECTION.split("Interacciones:\n", 1)[1]
        assert parse_interactions(body) == [
            DrugInteraction(
                partner_drug="Ibuprofeno",
                effect="aumenta el riesgo de hemorragia",
                severity="grave",
            ),
            DrugInteraction(
                partner_drug="Paracetamol",
                effect="potencia el efecto anticoagulante",
            ),
        ]

    @pytest.mark.unit
    def test_parse_interactions_dash_separator(self):
        assert parse_interactions("Litio - aumenta la litemia") == [
            DrugInteraction(partner_drug="Litio", effect="aumenta la litemia")
        ]

    @pytest.mark.unit
    def test_parse_interactions_skips_lines_without_separator(self):
        assert parse_interactions("Ver tabla anexa\n\n") == []

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("IBUPROFENO", "Ibuprofeno"),
            ("ÁCIDO   ACETILSALICÍLICO.", "Ácido acetilsalicílico"),
            ("  VITAMINA B12 -", "Vitamina b12"),
        ],
    )
    def test_normalize_generic_name(self, raw, expected):
        assert normalize_generic_name(raw) == expected


class TestFieldRules:
    """Tests for individual field rules."""

    @pytest.mark.unit
    def test_every_metadata_field_has_a_rule(self):
        assert {r.field for r in FIELD_RULES} == set(MedicationMetadata.model_fields)

    @pytest.mark.unit
    def test_rule_miss_returns_parser_default(self):
        rule = FieldRule("indications", LABELS["indications"], parse_list)
        assert rule.extract("IBUPROFENO\nsin etiquetas") == []

    @pytest.mark.unit
    def test_label_must_start_a_line(self):
        rule = FieldRule("dosing_adult", LABELS["dosing_adult"], parse_text)
        assert rule.extract("Ajustar la dosis: según respuesta") is None

    @pytest.mark.unit
    def test_failing_parser_yields_empty_field(self):
        def boom(body: str):
            if body:
                raise ValueError("bad body")
            return None

        rule = FieldRule("pharmacokinetics", LABELS["pharmacokinetics"], boom)
        assert rule.extract("Farmacocinética: vida media 2 h") is None


class TestBuildContent:
    """Tests for the denormalized content text."""

    @pytest.mark.unit
    def test_field_order(self):
        meta = MedicationMetadata(
            indications=["Dolor"],
            dosing_adult="400 mg",
            dosing_pediatric="10 mg/kg",
            contraindications=["Úlcera"],
            interactions=[DrugInteraction(partner_drug="Aspirina", effect="sangrado")],
            adverse_effects=["Náuseas", "Mareo"],
            pregnancy_lactation="Evitar",
        )
        assert build_content("Ibuprofeno", meta) == (
            "Medicamento: Ibuprofeno\n"
            "\nINDICACIONES:\nDolor\n"
            "\nDOSIS ADULTOS: 400 mg\n"
            "\nDOSIS PEDIÁTRICA: 10 mg/kg\n"
            "\nCONTRAINDICACIONES:\nÚlcera\n"
            "\nINTERACCIONES:\n- Aspirina: sangrado\n"
            "\nEFECTOS ADVERSOS:\nNáuseas, Mareo\n"
            "\nEMBARAZO/LACTANCIA: Evitar"
        )

    @pytest.mark.unit
    def test_name_only(self):
        assert build_content("Ibuprofeno", MedicationMetadata()) == "Medicamento: Ibuprofeno"
