"""
Selector candidate lists for semantic field names.

Candidates are ordered from user-visible, accessibility-oriented matches to
brittle implementation-detail matches, so resolution is reproducible across runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum


class CandidateKind(StrEnum):
    """How a candidate locates its element."""

    EXPLICIT = "explicit"
    TEXT_MATCH = "text_match"
    ATTRIBUTE_MATCH = "attribute_match"
    ID_MATCH = "id_match"
    PLACEHOLDER_MATCH = "placeholder_match"
    TEST_ID_MATCH = "test_id_match"


class Interaction(StrEnum):
    """Interaction the candidate list is built for."""

    FILL = "fill"
    CLICK = "click"


@dataclass(frozen=True)
class Candidate:
    """One ordered lookup expression."""

    kind: CandidateKind
    value: str
    selector: str


TYPED_INPUTS: tuple[str, ...] = ("text", "password", "email")

_EXPLICIT_PREFIXES = ("[", ".", "#", "//", "xpath=", "css=", "text=", "role=")
_EXPLICIT_MARKERS = ("data-", "aria-", "role=")
_STRIP_CHARS = re.compile(r"[\[\]\"']")
_CSS_IDENT = re.compile(r"^-?[A-Za-z_][\w-]*$")
_LEADING_SIGIL = re.compile(r"^(?:#|\.|text=|css=)")


def is_explicit_selector(field_name: str) -> bool:
    """Check whether the field name is already a selector expression."""
    name = field_name.strip()
    if not name:
        return False
    return name.startswith(_EXPLICIT_PREFIXES) or any(m in name for m in _EXPLICIT_MARKERS)


def clean_field_name(field_name: str) -> str:
    """Strip quotes and brackets so the name is safe inside attribute selectors."""
    return _STRIP_CHARS.sub("", field_name or "").strip()


def _id_candidate(name: str) -> Candidate:
    ident = name.replace("#", "")
    if _CSS_IDENT.match(ident):
        selector = f"#{ident}"
    else:
        selector = f'[id="{ident}"]'
    return Candidate(CandidateKind.ID_MATCH, ident, selector)


def _baseline_candidates(interaction: Interaction) -> tuple[Candidate, ...]:
    if interaction == Interaction.CLICK:
        return (
            Candidate(CandidateKind.ATTRIBUTE_MATCH, "submit", 'button[type="submit"]'),
            Candidate(CandidateKind.ATTRIBUTE_MATCH, "submit", 'input[type="submit"]'),
            Candidate(CandidateKind.ATTRIBUTE_MATCH, "button", '[role="button"]'),
            Candidate(CandidateKind.TEST_ID_MATCH, "", "[data-testid]"),
        )
    return (
        *(
            Candidate(CandidateKind.ATTRIBUTE_MATCH, kind, f'input[type="{kind}"]')
            for kind in TYPED_INPUTS
        ),
        Candidate(CandidateKind.ATTRIBUTE_MATCH, "textarea", "textarea"),
        Candidate(CandidateKind.TEST_ID_MATCH, "", "[data-testid]"),
    )


def _fill_candidates(name: str) -> list[Candidate]:
    lowered = name.lower()
    candidates = [
        Candidate(CandidateKind.TEXT_MATCH, name, f'text="{name}"'),
        Candidate(CandidateKind.ATTRIBUTE_MATCH, name, f'input[name="{name}"]'),
        _id_candidate(name),
        Candidate(CandidateKind.PLACEHOLDER_MATCH, name, f'input[placeholder*="{name}"]'),
    ]
    candidates.extend(
        Candidate(
            CandidateKind.ATTRIBUTE_MATCH,
            lowered,
            f'input[type="{kind}"][id*="{lowered}"]',
        )
        for kind in TYPED_INPUTS
    )
    candidates.append(
        Candidate(CandidateKind.ATTRIBUTE_MATCH, name, f'textarea[name="{name}"]')
    )
    candidates.append(
        Candidate(CandidateKind.TEST_ID_MATCH, lowered, f'[data-testid*="{lowered}"]')
    )
    return candidates


def _click_candidates(name: str) -> list[Candidate]:
    lowered = name.lower()
    return [
        Candidate(CandidateKind.TEXT_MATCH, name, f'text="{name}"'),
        Candidate(CandidateKind.ATTRIBUTE_MATCH, name, f'button[name="{name}"]'),
        _id_candidate(name),
        Candidate(
            CandidateKind.ATTRIBUTE_MATCH, name, f'input[type="submit"][value*="{name}"]'
        ),
        Candidate(CandidateKind.TEXT_MATCH, name, f'[role="button"]:has-text("{name}")'),
        Candidate(CandidateKind.TEXT_MATCH, name, f'a:has-text("{name}")'),
        Candidate(CandidateKind.TEXT_MATCH, name, f'*[onclick]:has-text("{name}")'),
        Candidate(CandidateKind.TEXT_MATCH, name, f'button:has-text("{name}")'),
        Candidate(CandidateKind.TEST_ID_MATCH, lowered, f'[data-testid*="{lowered}"]'),
    ]


def build_candidates(
    field_name: str,
    interaction: Interaction = Interaction.FILL,
) -> tuple[Candidate, ...]:
    """
    Build the ordered candidate list for a semantic field name.

    The result is never empty and is a pure function of its inputs. For fill
    interactions the order is: exact visible text, ``name`` attribute, ``id``,
    ``placeholder`` substring, typed inputs with an ``id`` substring, textarea
    by ``name``, and finally a ``data-testid`` substring. A field name that is
    already a selector is tried verbatim before that list. Empty names yield a
    baseline of generic attribute patterns.

    Args:
        field_name: Free-text field name, e.g. "username"
        interaction: Interaction the element is needed for

    Returns:
        Tuple of candidates in priority order
    """
    interaction = Interaction(interaction)
    raw = (field_name or "").strip()
    name = clean_field_name(_LEADING_SIGIL.sub("", raw))

    if not name:
        return _baseline_candidates(interaction)

    candidates: list[Candidate] = []
    if is_explicit_selector(raw):
        candidates.append(Candidate(CandidateKind.EXPLICIT, raw, raw))

    match interaction:
        case Interaction.FILL:
            candidates.extend(_fill_candidates(name))
        case Interaction.CLICK:
            candidates.extend(_click_candidates(name))

    seen: set[str] = set()
    ordered: list[Candidate] = []
    for candidate in candidates:
        if candidate.selector not in seen:
            seen.add(candidate.selector)
            ordered.append(candidate)
    return tuple(ordered)


def selectors(candidates: tuple[Candidate, ...] | list[Candidate]) -> list[str]:
    """Return the selector strings of a candidate list in order."""
    return [c.selector for c in candidates]
