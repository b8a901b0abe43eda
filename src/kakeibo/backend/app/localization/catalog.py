"""Translation catalogue helpers backed by packaged JSON resources.

Kakeibo ships a single Japanese catalogue. Unknown locales resolve to it and
unknown keys resolve to themselves so a missing label never breaks a response.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import cache
from importlib import resources
from typing import Any, Mapping

BASE_LOCALE = "ja"
_TRANSLATIONS_PACKAGE = "kakeibo.translations"


@dataclass(frozen=True)
class Translator:
    """Callable helper for retrieving localized strings."""

    locale: str
    _messages: Mapping[str, str]

    def __call__(self, key: str) -> str:
        return self._messages.get(key, key)


@cache
def available_locales() -> tuple[str, ...]:
    """Return the locales with a published catalogue."""

    root = resources.files(_TRANSLATIONS_PACKAGE)
    locales = sorted(
        entry.name.removesuffix(".json")
        for entry in root.iterdir()
        if entry.name.endswith(".json")
    )
    return tuple(locales) or (BASE_LOCALE,)


@cache
def _read_catalogue(locale: str) -> dict[str, Any]:
    resource = resources.files(_TRANSLATIONS_PACKAGE).joinpath(f"{locale}.json")
    if not resource.is_file():
        return {"backend": {}, "frontend": {}}

    with resource.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    backend = payload.get("backend") or {}
    frontend = payload.get("frontend") or {}
    return {
        "backend": {str(key): str(value) for key, value in backend.items()},
        "frontend": frontend,
    }


def normalise_locale(locale: str | None) -> str:
    """Normalise a requested locale (``ja-JP``, ``JA``) to a catalogue key."""

    if not locale:
        return BASE_LOCALE

    normalized = locale.strip().lower().replace("_", "-").split("-")[0]
    return normalized if normalized in available_locales() else BASE_LOCALE


def get_translator(locale: str | None = None) -> Translator:
    """Return a translator instance for the requested locale."""

    normalized = normalise_locale(locale)
    catalogue = _read_catalogue(normalized)
    return Translator(locale=normalized, _messages=catalogue["backend"])


def load_translations(locale: str | None = None) -> dict[str, Any]:
    """Expose backend and frontend strings for API consumers."""

    normalized = normalise_locale(locale)
    catalogue = _read_catalogue(normalized)
    return {
        "locale": normalized,
        "available_locales": list(available_locales()),
        "backend": dict(catalogue["backend"]),
        "frontend": catalogue["frontend"],
    }


__all__ = [
    "BASE_LOCALE",
    "Translator",
    "available_locales",
    "get_translator",
    "load_translations",
    "normalise_locale",
]
