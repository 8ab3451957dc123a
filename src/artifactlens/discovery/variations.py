"""Company name variations used as ownership match targets.

A catalog owner is rarely spelled exactly like the company: "Acme AI" may
publish as ``acme``, ``acme-ai`` or ``acmeai``.  The variations produced here
are the only strings the ownership validator compares against.
"""

from __future__ import annotations

import re

import structlog
from unidecode import unidecode

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Trailing corporate/product suffix (single pass, one suffix only)
# ---------------------------------------------------------------------------

_SUFFIX_PATTERN = re.compile(
    r"\s+("
    r"ai|inc|labs|technologies|tech|io|hq|co|corp|corporation|ltd|llc"
    r")$",
    re.IGNORECASE,
)

_WHITESPACE = re.compile(r"\s+")

MIN_VARIATION_LENGTH = 2


def strip_company_suffix(name: str) -> str:
    """Lowercase *name* and drop one trailing suffix such as ``AI`` or ``Labs``."""
    text = _WHITESPACE.sub(" ", name.lower()).strip()
    return _SUFFIX_PATTERN.sub("", text).strip()


def _derived_forms(clean: str) -> list[str]:
    forms = [clean, _WHITESPACE.sub("-", clean)]
    concatenated = _WHITESPACE.sub("", clean)
    if len(concatenated) > 2:
        forms.append(concatenated)
    forms.append(_WHITESPACE.sub("_", clean))
    return forms


def generate_name_variations(name: str, slug: str | None = None) -> list[str]:
    """Return the deduplicated, lowercase match targets for a company.

    Order is significant only for readability of logs: the original name
    first, then the slug, then the suffix-stripped name and the hyphenated,
    concatenated and underscored forms of both the full and the stripped
    name.  Variants of length 1 or less are dropped.

    >>> generate_name_variations("Acme AI")
    ['acme ai', 'acme-ai', 'acmeai', 'acme_ai', 'acme']
    """
    lowered = _WHITESPACE.sub(" ", name.lower()).strip()
    candidates: list[str] = [name.strip().lower()]
    if slug and slug.strip().lower() != name.strip().lower():
        candidates.append(slug.strip().lower())

    clean = strip_company_suffix(name)
    candidates.extend(_derived_forms(lowered))
    candidates.extend(_derived_forms(clean))

    # Non-ASCII names also get a transliterated form (e.g. "Über" → "uber")
    ascii_clean = unidecode(clean)
    if ascii_clean != clean:
        candidates.extend(_derived_forms(ascii_clean))

    variations = [
        v for v in dict.fromkeys(candidates) if len(v) >= MIN_VARIATION_LENGTH
    ]
    logger.debug("name_variations_generated", name=name, variations=variations)
    return variations
