"""Localization package."""

from scansave.i18n.catalog import CATALOG
from scansave.i18n.translator import FALLBACK_LANGUAGE, Translator

__all__ = ["CATALOG", "FALLBACK_LANGUAGE", "Translator"]
