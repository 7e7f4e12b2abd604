"""
Tests for text normalization and catalog matching.

Run with: pytest pupitre/material_lists/tests/test_matching.py -v
"""

import pytest

from pupitre.material_lists.config import MatchSettings
from pupitre.material_lists.matching import (
    best_catalog_match,
    catalog_entry_matches,
    digits_only,
    fields_match,
    normalize_text,
    score_candidate,
    tokenize,
)


class TestNormalizeText:

    def test_lowercase_accents_whitespace(self):
        assert normalize_text("  Cuaderno   MATEMÁTICAS\tÑandú ") == "cuaderno matematicas nandu"

    def test_none_is_empty(self):
        assert normalize_text(None) == ""

    def test_non_string(self):
        assert normalize_text(978) == "978"


class TestTokenize:

    def test_min_length_and_stop_words(self):
        assert tokenize("Libro de la Selva y más", min_length=2, stop_words={"de", "la"}) == [
            "libro", "selva", "mas",
        ]

    def test_digits_only(self):
        assert digits_only("978-956-15 1234-5") == "9789561512345"
        assert digits_only(None) == ""


class TestScoreCandidate:

    @pytest.mark.parametrize("query,candidate,score", [
        ("Lápiz grafito", "lapiz grafito", 100),
        ("Lápiz grafito", "Lápiz grafito HB caja 12", 80),
        ("Lápiz grafito HB caja 12", "Lápiz grafito", 60),
        ("grafito lapiz", "Lapiz Faber grafito", 50),
        ("cuaderno matematica cuadro grande", "Cuaderno cuadro grande 100h", 40),
        ("cuaderno matematica cuadro azul", "Cuaderno rojo azul", 0),
        ("tijeras", "Tijeras punta roma", 80),
        ("set de reglas", "Reglas set escolar", 50),
    ])
    def test_rules(self, query, candidate, score):
        assert score_candidate(query, candidate) == score

    def test_empty_names_score_zero(self):
        assert score_candidate("", "algo") == 0
        assert score_candidate("algo", None) == 0


class TestBestCatalogMatch:

    def test_highest_score_wins(self):
        products = [
            {"id": 1, "name": "Lápiz grafito HB caja 12"},
            {"id": 2, "name": "Lápiz grafito"},
        ]
        assert best_catalog_match("lapiz grafito", products)["id"] == 2

    def test_first_of_equal_scores_wins(self):
        products = [
            {"id": 1, "name": "Lápiz grafito rojo"},
            {"id": 2, "name": "Lápiz grafito azul"},
        ]
        assert best_catalog_match("lapiz grafito", products)["id"] == 1

    def test_below_threshold_is_none(self):
        assert best_catalog_match("compás metálico", [{"id": 1, "name": "Regla metálica"}]) is None

    def test_blank_names_ignored(self):
        assert best_catalog_match("regla", [{"id": 1, "name": "  "}, {"id": 2}]) is None

    def test_threshold_is_configurable(self):
        settings = MatchSettings(score_threshold=90)
        assert best_catalog_match("regla", [{"id": 1, "name": "Regla 30 cm"}], settings) is None


class TestCatalogEntryMatches:

    def test_isbn_digit_containment(self):
        assert catalog_entry_matches("cualquier", "otro libro", "978-956-15-1234-5", "ISBN 9789561512345")

    def test_isbn_mode_ignores_names(self):
        assert not catalog_entry_matches("Lenguaje", "Lenguaje", "9789561512345", "9780000000000")

    def test_short_isbn_falls_back_to_name(self):
        assert catalog_entry_matches("Lenguaje 1", "Libro Lenguaje 1 básico", "12345", None)

    def test_name_containment_either_way(self):
        assert catalog_entry_matches("Lenguaje 1 básico edición 2025", "lenguaje 1 basico")

    def test_two_tokens_enough(self):
        assert catalog_entry_matches("historia chile tercero", "Historia de Chile 3")

    def test_one_token_not_enough(self):
        assert not catalog_entry_matches("historia universal tercero", "Historia de Chile 3")


class TestFieldsMatch:

    def test_substring_in_any_field(self):
        assert fields_match(["Regla", None, "Artel"], "artel", ["artel"])

    def test_tokens_across_fields(self):
        assert fields_match(["Cuaderno 7mm", "Universitario"], "cuaderno universitario", ["cuaderno", "universitario"])

    def test_single_token_needs_substring(self):
        assert not fields_match(["Regla"], "compas", ["compas"])
