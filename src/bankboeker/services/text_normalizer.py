"""Bank description normalization and whole-token keyword matching.

Raw bank descriptions carry terminal ids, timestamps, card numbers and
processor names around the merchant name. ``clean`` strips that noise so the
matcher stages compare merchant names only.
"""

import re
from functools import lru_cache

_FLAGS = re.IGNORECASE

# Order matters: each group is applied in sequence on every pass.
_NOISE_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Wallets
    re.compile(r"\b(?:apple|google|samsung|garmin)\s+pay\b", _FLAGS),
    # Payment processors and gateways
    re.compile(r"\b(?:ccv|mollie|buckaroo|adyen|multisafepay|pay\.nl|sisow)\b", _FLAGS),
    # Dutch payment-method phrases
    re.compile(r"\b(?:betaal\s*automaat|pin\s*automaat)\b", _FLAGS),
    re.compile(r"\b(?:contactloos|mobiele\s+betaling|mobile\s+payment|nfc)\b", _FLAGS),
    re.compile(
        r"(?<!\w)(?:pasnummer|pas\s*nr|kaart\s*nr|card\s*nr)\.?:?(?:\s*\d+(?!\w))?", _FLAGS
    ),
    # Dates: DD-MM-YYYY, DD/MM/YYYY, YYYY-MM-DD
    re.compile(r"\b\d{1,2}[-.]\d{1,2}[-.]\d{2,4}\b"),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b"),
    re.compile(r"\b\d{4}[-/.]\d{1,2}[-/.]\d{1,2}\b"),
    # Times: HH:MM[:SS]
    re.compile(r"\b\d{1,2}:\d{2}(?::\d{2})?\b"),
    # Bank jargon, with the short reference number that follows it
    re.compile(
        r"\b(?:bea|sepa|trx|pas|nr|ref|iban|bic|term|pin|id|code|omschrijving|incasso)\b"
        r"[.:]?(?:\s*\d+(?!\w))?",
        _FLAGS,
    ),
    # Terminal and transaction ids
    re.compile(r"\b\d{4,}\b"),
)

_WHITESPACE = re.compile(r"\s+")

DUTCH_CITIES: tuple[str, ...] = (
    "Amsterdam",
    "Rotterdam",
    "Den Haag",
    "Utrecht",
    "Eindhoven",
    "Groningen",
    "Tilburg",
    "Almere",
    "Breda",
    "Nijmegen",
    "Apeldoorn",
    "Haarlem",
    "Arnhem",
    "Enschede",
    "Amersfoort",
    "Zaanstad",
    "Haarlemmermeer",
    "Den Bosch",
    "Zwolle",
    "Zoetermeer",
    "Leiden",
    "Maastricht",
    "Dordrecht",
    "Ede",
    "Alphen aan den Rijn",
    "Westland",
    "Alkmaar",
    "Emmen",
    "Delft",
    "Hilversum",
)


def _clean_once(text: str) -> str:
    for pattern in _NOISE_PATTERNS:
        text = pattern.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def clean(text: str | None) -> str:
    """Strip payment noise from a bank description or counterparty name.

    The rules are reapplied until nothing changes, so removing one token can
    never expose a new one: ``clean(clean(x)) == clean(x)``.
    """
    if not text:
        return ""
    current = _WHITESPACE.sub(" ", text).strip()
    while True:
        cleaned = _clean_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


@lru_cache(maxsize=2048)
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(keyword)}(?!\w)", _FLAGS)


def matches_keyword(text: str | None, keyword: str | None) -> bool:
    """Case-insensitive whole-token match.

    "BP" matches "BP Station" but not "BPost"; "SHELL" does not match "SHELLFISH".
    """
    if not text or not keyword:
        return False
    keyword = keyword.strip()
    if not keyword:
        return False
    return _keyword_pattern(keyword).search(text) is not None


def select_match_text(contra_name: str | None, description: str | None) -> str:
    """Pick the least noisy input for matching and clean it.

    The counterparty name is structured bank metadata; the description is
    only used when the name is missing or too short to be meaningful.
    """
    if contra_name and len(contra_name.strip()) > 2:
        return clean(contra_name)
    return clean(description)


def extract_city(text: str | None) -> str | None:
    """Return the first known Dutch city mentioned in ``text``."""
    if not text:
        return None
    for city in DUTCH_CITIES:
        if matches_keyword(text, city):
            return city
    return None
