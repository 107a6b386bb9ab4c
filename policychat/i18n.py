"""Runtime gettext translations for user-facing strings."""

from __future__ import annotations

import gettext as _gettext
import os
from collections.abc import Iterable, Sequence
from gettext import GNUTranslations, NullTranslations
from io import BytesIO
from pathlib import Path
from typing import Final

import polib

__all__ = ["DOMAIN", "LOCALE_DIR", "_", "gettext", "get_translation", "install"]

DOMAIN: Final = "policychat"
LOCALE_DIR: Final = Path(__file__).resolve().parent / "locale"

_TRANSLATION: NullTranslations = NullTranslations()


def get_translation() -> NullTranslations:
    """Return the currently active translation object."""
    return _TRANSLATION


def gettext(message: str) -> str:
    """Translate *message* using the active catalogue."""
    return _TRANSLATION.gettext(message)


_: Final = gettext


def install(
    languages: Iterable[str] | None = None,
    *,
    localedir: str | os.PathLike[str] = LOCALE_DIR,
    domain: str = DOMAIN,
) -> NullTranslations:
    """Activate the catalogue for *languages* (environment when ``None``).

    Compiled ``.mo`` catalogues are preferred; a plain ``.po`` file is compiled
    in memory with :mod:`polib` when no ``.mo`` is shipped.
    """
    global _TRANSLATION

    localedir_path = Path(localedir)
    requested = _expand_languages(languages if languages is not None else _env_languages())
    translation = _gettext.translation(
        domain,
        localedir=str(localedir_path),
        languages=requested or None,
        fallback=True,
    )
    if type(translation) is NullTranslations:
        translation = _load_po_translation(domain, localedir_path, requested) or translation
    _TRANSLATION = translation
    return translation


def _env_languages() -> list[str]:
    raw: list[str] = []
    for name in ("LANGUAGE", "LC_ALL", "LC_MESSAGES", "LANG"):
        value = os.environ.get(name)
        if value:
            raw.extend(token.strip() for token in value.split(":") if token.strip())
    return raw


def _expand_languages(languages: Iterable[str]) -> list[str]:
    expanded: list[str] = []
    for language in languages:
        if not language:
            continue
        base = language.split(".", 1)[0]
        for candidate in (base, base.split("_", 1)[0]):
            if candidate and candidate not in expanded:
                expanded.append(candidate)
    return expanded


def _load_po_translation(
    domain: str,
    localedir: Path,
    languages: Sequence[str],
) -> NullTranslations | None:
    for language in languages:
        po_path = localedir / language / "LC_MESSAGES" / f"{domain}.po"
        if not po_path.exists():
            continue
        catalog = polib.pofile(str(po_path))
        return GNUTranslations(BytesIO(catalog.to_binary()))
    return None
