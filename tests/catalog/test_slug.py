"""Tests for slugs."""

import pytest

from storefront.catalog.slug import join_path, slugify


class TestSlugify:
    """Tests for slugify."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Décor & Thématique", "decor-et-thematique"),
            ("Jupes et pendrillons", "jupes-et-pendrillons"),
            ("  Rideaux / Jupes  ", "rideaux-jupes"),
            ("Chaises---Pliantes!!", "chaises-pliantes"),
            ("Ÿ ÀÉÎÕÜ ç", "y-aeiou-c"),
            ("Tables 2024", "tables-2024"),
        ],
    )
    def test_french(self, name: str, expected: str) -> None:
        """Diacritics are stripped and & becomes et."""
        assert slugify(name) == expected

    def test_english_ampersand(self) -> None:
        """The en locale uses and."""
        assert slugify("Tables & Chairs", locale="en") == "tables-and-chairs"

    def test_unknown_locale_uses_french(self) -> None:
        """Unknown locales fall back to the French word."""
        assert slugify("A & B", locale="de") == "a-et-b"

    def test_no_usable_characters(self) -> None:
        """Names made of punctuation give an empty slug."""
        assert slugify("!!! ???") == ""

    def test_idempotent(self) -> None:
        """A slug slugifies to itself."""
        slug = slugify("Mobilier de jardin & Décor")
        assert slugify(slug) == slug


class TestJoinPath:
    """Tests for full path joining."""

    def test_root(self) -> None:
        assert join_path(None, "mobilier") == "mobilier"

    def test_child(self) -> None:
        assert join_path("mobilier", "chaises") == "mobilier/chaises"
