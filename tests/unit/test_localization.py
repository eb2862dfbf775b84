"""
Unit tests for LocalizationProvider and the label/fallback tables.
"""

import pytest

from opportunity_scanner.localization import (
    DEFAULT_LANGUAGE,
    FALLBACKS,
    LABELS,
    LocalizationProvider,
    get_locale,
)


class TestTables:
    """Tests for table completeness."""

    @pytest.mark.parametrize("language", sorted(LABELS))
    def test_label_keys_match_default(self, language):
        """Test that every language defines exactly the default label keys."""
        assert set(LABELS[language]) == set(LABELS[DEFAULT_LANGUAGE])

    @pytest.mark.parametrize("language", sorted(FALLBACKS))
    def test_fallback_keys_match_default(self, language):
        """Test that every language defines exactly the default fallback keys."""
        assert set(FALLBACKS[language]) == set(FALLBACKS[DEFAULT_LANGUAGE])

    def test_no_empty_values(self):
        """Test that no label or fallback is blank."""
        for tables in (LABELS, FALLBACKS):
            for table in tables.values():
                assert all(value.strip() for value in table.values())

    def test_placeholders_match_across_languages(self):
        """Test that formatted labels use the same placeholders in every language."""
        import string

        def placeholders(text):
            return {name for _, name, _, _ in string.Formatter().parse(text) if name}

        for key, text in LABELS[DEFAULT_LANGUAGE].items():
            for language, table in LABELS.items():
                assert placeholders(table[key]) == placeholders(text), f"{language}:{key}"


class TestLocalizationProvider:
    """Tests for language resolution."""

    @pytest.fixture
    def provider(self):
        return LocalizationProvider()

    def test_french_lookup(self, provider):
        """Test that 'fr' resolves to the French tables."""
        locale = provider.get("fr")

        assert locale.code == "fr"
        assert locale.label("executive_summary") == "Synthèse"

    def test_code_is_normalized(self, provider):
        """Test that case and surrounding spaces are ignored."""
        assert provider.get(" FR ").code == "fr"

    @pytest.mark.parametrize("code", ["de", "", None, "fr-CA", "xx"])
    def test_unknown_language_uses_whole_default_table(self, provider, code):
        """Test that unrecognized codes get the complete default locale."""
        locale = provider.get(code)

        assert locale.code == DEFAULT_LANGUAGE
        assert dict(locale.labels) == LABELS[DEFAULT_LANGUAGE]
        assert dict(locale.fallbacks) == FALLBACKS[DEFAULT_LANGUAGE]

    def test_label_formatting(self):
        """Test placeholder substitution in labels."""
        locale = get_locale("en")
        assert locale.label("opportunity_heading", number=2, title="Chatbot") == "Opportunity 2: Chatbot"

    def test_tables_are_read_only(self):
        """Test that resolved tables cannot be modified."""
        locale = get_locale("en")
        with pytest.raises(TypeError):
            locale.labels["report_title"] = "Changed"

    def test_unsupported_default_language(self):
        """Test that the default language must be supported."""
        with pytest.raises(ValueError):
            LocalizationProvider(default_language="de")
