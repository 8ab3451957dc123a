"""Tests for company name variations."""

from __future__ import annotations

import pytest

from artifactlens.discovery.variations import generate_name_variations, strip_company_suffix


class TestStripCompanySuffix:
    def test_strips_ai(self):
        assert strip_company_suffix("Acme AI") == "acme"

    def test_strips_labs(self):
        assert strip_company_suffix("Modal Labs") == "modal"

    def test_strips_only_one_suffix(self):
        assert strip_company_suffix("Foo Tech Inc") == "foo tech"

    def test_keeps_bare_suffix_word(self):
        # Nothing precedes "AI", so there is no suffix to strip
        assert strip_company_suffix("AI") == "ai"

    def test_collapses_whitespace(self):
        assert strip_company_suffix("  Big   Data  Corp ") == "big data"


class TestGenerateNameVariations:
    def test_acme_ai(self):
        variations = generate_name_variations("Acme AI")
        for expected in ("acme ai", "acme", "acme-ai", "acmeai"):
            assert expected in variations

    def test_original_name_first(self):
        assert generate_name_variations("Modal Labs")[0] == "modal labs"

    def test_includes_underscored_form(self):
        assert "modal_labs" in generate_name_variations("Modal Labs")

    def test_includes_distinct_slug(self):
        variations = generate_name_variations("Acme AI", slug="acme-robotics")
        assert "acme-robotics" in variations

    def test_slug_equal_to_name_not_duplicated(self):
        variations = generate_name_variations("Acme", slug="ACME")
        assert variations.count("acme") == 1

    def test_no_duplicates(self):
        variations = generate_name_variations("Deep Mind Technologies", slug="deepmind")
        assert len(variations) == len(set(variations))

    def test_transliterated_form(self):
        variations = generate_name_variations("Über Robotics")
        assert "über robotics" in variations
        assert "uber robotics" in variations

    def test_single_character_variants_dropped(self):
        variations = generate_name_variations("X AI")
        assert "x" not in variations
        assert "x ai" in variations

    @pytest.mark.parametrize(
        "name",
        ["Acme AI", "AI", "Q Labs", "ab", "Stability AI", "a b c", "Mistral", "  Hugging Face  "],
    )
    def test_never_empty_and_no_short_variants(self, name):
        variations = generate_name_variations(name)
        assert variations
        assert all(len(v) > 1 for v in variations)
        assert "" not in variations
