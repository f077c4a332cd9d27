"""Unit tests for company name cleaning and search variants."""

import pytest

from webfinder.ranking.names import (
    clean_company_name,
    fold_accents,
    generate_search_variants,
    get_company_words,
)


class TestCleanCompanyName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("ALICORP S.A.A.", "ALICORP"),
            ("BANCO DE CREDITO DEL PERU S.A.C.", "BANCO DE CREDITO DEL PERU"),
            ("Gloria S.A.", "GLORIA"),
            ("XYZ TEST SAC", "XYZ TEST"),
            ("INVERSIONES LOPEZ E.I.R.L.", "INVERSIONES LOPEZ"),
            ("TRANSPORTES PEREZ S.R.L.", "TRANSPORTES PEREZ"),
            ("CORPORACION LINDLEY S.A.", "LINDLEY"),
            ("GRUPO ROMERO", "ROMERO"),
            ("MINERA  ANDINA,  SOCIEDAD ANONIMA CERRADA", "MINERA ANDINA"),
        ],
    )
    def test_strips_suffixes_and_prefixes(self, raw, expected):
        assert clean_company_name(raw) == expected

    def test_keeps_ampersand_and_hyphen(self):
        assert clean_company_name("A & B DISTRIBUCIONES-SUR SAC") == "A & B DISTRIBUCIONES-SUR"

    def test_does_not_strip_sa_inside_words(self):
        assert clean_company_name("SAN FERNANDO S.A.") == "SAN FERNANDO"

    def test_empty_input(self):
        assert clean_company_name("") == ""


class TestCompanyWords:
    def test_lowercase_and_folded(self):
        assert get_company_words("COMPAÑIA MINERA ÁNDES S.A.") == ["minera", "andes"]

    def test_drops_short_words(self):
        assert get_company_words("BANCO DE CREDITO DEL PERU") == ["banco", "credito", "del", "peru"]

    def test_fold_accents(self):
        assert fold_accents("CRÉDITO ñandú") == "CREDITO nandu"


class TestSearchVariants:
    def test_bank_acronym(self):
        variants = generate_search_variants("BANCO DE CREDITO DEL PERU S.A.C.")
        assert variants[0] == "BANCO DE CREDITO DEL PERU"
        assert "BCP" in variants
        assert "BANCO DE CREDITO" in variants

    def test_single_word_has_no_acronym(self):
        assert generate_search_variants("ALICORP S.A.A.") == ["ALICORP"]

    def test_variants_are_unique(self):
        variants = generate_search_variants("PERU PERU SAC")
        assert len(variants) == len(set(variants))

    def test_long_names_skip_acronym(self):
        name = "UNO DOS TRES CUATRO CINCO SEIS SIETE"
        variants = generate_search_variants(name)
        assert variants == [name]

    def test_empty_name(self):
        assert generate_search_variants("S.A.C.") == []
