"""
Translation lookup

The core only needs key -> string lookup with {name} interpolation.
Lookups fall back to English, then to the key itself, so a missing
translation never breaks a pipeline run.
"""

import re
from typing import Optional

from scansave.i18n.catalog import CATALOG
from scansave.models.receipt import SpendingCategory


FALLBACK_LANGUAGE = "en"

_PLACEHOLDER = re.compile(r"{(\w+)}")


class Translator:
    """Key-based string lookup over a nested language catalog."""

    def __init__(self, catalog: Optional[dict[str, dict[str, str]]] = None):
        self._catalog = catalog if catalog is not None else CATALOG

    @property
    def languages(self) -> list[str]:
        return sorted(self._catalog)

    def normalize_language(self, language: Optional[str]) -> str:
        """Reduce 'de-AT' style codes to a supported base language."""
        if not language:
            return FALLBACK_LANGUAGE
        base = language.split("-")[0].split("_")[0].lower()
        return base if base in self._catalog else FALLBACK_LANGUAGE

    def t(self, key: str, language: Optional[str] = None, **params) -> str:
        lang = self.normalize_language(language)
        text = self._catalog.get(lang, {}).get(key)
        if text is None:
            text = self._catalog.get(FALLBACK_LANGUAGE, {}).get(key)
        if text is None:
            return key
        if params:
            text = _PLACEHOLDER.sub(
                lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0),
                text,
            )
        return text

    def category_label(self, category: SpendingCategory, language: Optional[str] = None) -> str:
        return self.t(f"category.{SpendingCategory.coerce(category).value}", language)
