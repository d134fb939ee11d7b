"""Naming helpers.

Centralizes the id and label conventions shared with Pokémon Showdown.
"""

from __future__ import annotations

import re

_NON_ID_RE = re.compile(r"[^a-z0-9]+")


def to_id(text: str) -> str:
    """Normalize a display name into a Showdown id ("Choice Scarf" -> "choicescarf")."""
    return _NON_ID_RE.sub("", (text or "").lower())


def format_label(format_name: str) -> str:
    """Strip the leading bracketed generation tag from a format name.

    "[Gen 9] OU" -> "OU". Names without a tag are returned unchanged.
    """
    idx = format_name.find("]")
    if idx < 0:
        return format_name
    return format_name[idx + 2:]


def slug_titlecase(slug: str) -> str:
    """PokéAPI slug to display name: "sand-force" -> "Sand Force", "porygon-z" -> "Porygon Z"."""
    return " ".join(word[:1].upper() + word[1:] for word in slug.replace("-", " ").split())
