"""String helpers shared by prefix derivation and path synthesis."""

from __future__ import annotations

import re

_HUMP = re.compile(r"([a-z0-9])([A-Z])")
_WORD_HUMP = re.compile(r"([a-z])([A-Z])")
_MULTI_DASH = re.compile(r"-{2,}")
_MULTI_SLASH = re.compile(r"/{2,}")

_IRREGULAR_PLURALS = {
    "child": "children",
    "person": "people",
    "man": "men",
    "woman": "women",
    "tooth": "teeth",
    "foot": "feet",
    "mouse": "mice",
    "goose": "geese",
}

_VOWELS = frozenset("aeiou")


def camel_to_kebab(text: str) -> str:
    """currentUser -> current-user, find_by_code -> find-by-code.

    Idempotent on kebab-case input. A leading capital is never hyphenated.
    """
    s = _HUMP.sub(r"\1-\2", text).replace("_", "-")
    s = _MULTI_DASH.sub("-", s)
    return s.lower()


def pluralize(word: str) -> str:
    """
    Best-effort English plural; not a dictionary.

    Irregular nouns are matched case-insensitively on the last hyphenated
    word and returned as listed. Words ending in "s" are assumed plural,
    except the singular-looking "-ss" and "-us" endings (class, bus, status).
    """
    if not word:
        return word

    head, sep, last = word.rpartition("-")
    irregular = _IRREGULAR_PLURALS.get(last.lower())
    if irregular is not None:
        return head + sep + irregular

    if word.endswith("s") and not word.endswith(("ss", "us")):
        return word

    if word.endswith("y") and len(word) > 1 and word[-2].lower() not in _VOWELS:
        return word[:-1] + "ies"

    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"

    return word + "s"


def normalize_path(path: str) -> str:
    # single leading slash, no trailing slash except for root
    trimmed = _MULTI_SLASH.sub("/", (path or "").strip()).strip("/")
    return "/" + trimmed if trimmed else "/"


def join_path(prefix: str, suffix: str) -> str:
    if not suffix:
        return prefix
    return prefix.rstrip("/") + "/" + suffix.lstrip("/")


def humanize_class_name(class_name: str) -> str:
    """pkg.mod.UserDetailController -> "User Detail"."""
    short = class_name.rsplit(".", 1)[-1]
    if short.endswith("Controller") and short != "Controller":
        short = short[: -len("Controller")]
    return _WORD_HUMP.sub(r"\1 \2", short)
