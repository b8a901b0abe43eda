"""Translation helpers bridging backend services and the shared catalogue."""

from .catalog import (
    BASE_LOCALE,
    Translator,
    available_locales,
    get_translator,
    load_translations,
    normalise_locale,
)

__all__ = [
    "BASE_LOCALE",
    "Translator",
    "available_locales",
    "get_translator",
    "load_translations",
    "normalise_locale",
]
