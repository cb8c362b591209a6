"""Accountant menu: candidate accounts, semantic buckets and response parsing.

Account names in a Dutch chart are compounds ("Brandstofkosten",
"Kantinekosten"), so bucket and fallback keywords are matched as substrings
of the account name or tax category.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from decimal import Decimal

from bankboeker.logger import get_logger
from bankboeker.models import AccountType
from bankboeker.schemas import AccountRecord, EnrichmentResult
from bankboeker.services.account_lookup import is_blacklisted_code

logger = get_logger(__name__)

CAR_TRAVEL = "CAR & TRAVEL"
OFFICE_GENERAL = "OFFICE & GENERAL"
HOUSING = "HOUSING & FACILITIES"
PROFESSIONAL = "PROFESSIONAL SERVICES"
FOOD_HOSPITALITY = "FOOD & HOSPITALITY"
INVENTORY = "INVENTORY & PURCHASES"
BANKING = "BANKING & FINANCE"
ASSETS = "ASSETS & DEPRECIATION"
PRIVATE = "PRIVATE & PERSONAL"
OTHER = "OTHER EXPENSES"

MENU_ORDER: tuple[str, ...] = (
    CAR_TRAVEL,
    OFFICE_GENERAL,
    HOUSING,
    PROFESSIONAL,
    FOOD_HOSPITALITY,
    INVENTORY,
    BANKING,
    ASSETS,
    PRIVATE,
    OTHER,
)

# Tax category keywords are authoritative and checked first.
TAX_CATEGORY_BUCKETS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (CAR_TRAVEL, ("autokosten", "vervoer", "auto", "transport")),
    (HOUSING, ("huisvesting", "huur", "gebouw", "pand")),
    (OFFICE_GENERAL, ("kantoor", "algemene kosten", "algemeen", "office")),
    (FOOD_HOSPITALITY, ("verkoop", "representatie", "relatie", "marketing")),
    (PROFESSIONAL, ("advies", "administratie", "accountant", "juridisch", "notaris")),
    (ASSETS, ("afschrijving", "depreci", "investering", "inventaris", "activa")),
    (PRIVATE, ("privé", "prive", "priv")),
    (BANKING, ("financieel", "financiele", "bank", "rente", "baten en lasten")),
    (INVENTORY, ("inkoop", "voorraad", "handelsgoederen", "purchase")),
)

NAME_BUCKETS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (CAR_TRAVEL, ("auto", "brandstof", "voertuig", "reis", "parkeer", "kilometervergoeding")),
    (FOOD_HOSPITALITY, ("kantine", "representatie", "relatie", "maaltijd", "horeca", "restaurant")),
    (HOUSING, ("huur", "gebouw", "energi", "schoonmaak", "water", "gas", "elektra")),
    (PROFESSIONAL, ("accountant", "advies", "notaris", "juridisch", "administratie", "advocaat")),
    (INVENTORY, ("inkoop", "voorraad", "handelsgoederen")),
    (BANKING, ("bank", "rente", "financier", "kosten geldverkeer")),
    (ASSETS, ("afschrijving", "depreci", "inventaris", "investering", "apparatuur")),
    (PRIVATE, ("privé", "prive")),
    (OFFICE_GENERAL, ("kantoor", "algemeen", "algemene", "telefoon", "internet", "software", "verzekering")),
)

INDUSTRY_ACCOUNT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Car Repair Shop": ("onderhoud", "auto", "voertuig", "reparatie"),
    "Gas Station": ("brandstof", "fuel", "auto"),
    "Supermarket": ("kantine", "levensmiddel", "inkoop", "kantoor"),
    "Food & Hospitality": ("kantine", "representatie", "relatie", "maaltijd"),
    "Restaurant": ("representatie", "relatie", "maaltijd"),
    "Software": ("automatisering", "software", "ict"),
    "Insurance": ("verzekering",),
    "Bank": ("bank",),
    "Telecom": ("telecommunicatie", "telefoon", "internet"),
    "Energy": ("energie", "gas", "elektra"),
    "Retail": ("representatie", "kantoor"),
    "Consulting": ("advies", "accountant", "consultant"),
    "Marketing": ("marketing", "reclame", "advertentie"),
    "Office Supplies": ("kantoor", "benodigdheden"),
    "Travel": ("reis", "travel"),
    "Transport": ("vervoer", "transport", "reis"),
    "Hardware Store": ("onderhoud", "inventaris", "kantoor"),
}

GENERIC_ACCOUNT_KEYWORDS: tuple[str, ...] = ("kantoor", "algemeen", "algemene", "overig")

_UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
_CODE_PATTERN = re.compile(r"\b(4\d{3}|1[89]\d{2}|\d{4})\b")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_CODE_FENCE = re.compile(r"```(?:json|javascript|js)?\s*", re.IGNORECASE)

PRIVATE_CODE_RANGE = (1800, 1899)


@dataclass
class AccountGroup:
    title: str
    accounts: list[AccountRecord]


def _lower(value: str | None) -> str:
    return (value or "").lower()


def _mentions_depreciation(account: AccountRecord) -> bool:
    text = f"{_lower(account.name)} {_lower(account.tax_category)}"
    return "afschrijv" in text or "depreci" in text


def _is_private_code(code: str) -> bool:
    return code.isdigit() and PRIVATE_CODE_RANGE[0] <= int(code) <= PRIVATE_CODE_RANGE[1]


def select_candidate_accounts(accounts: list[AccountRecord]) -> list[AccountRecord]:
    """Expense accounts plus private withdrawals, without blacklisted ones."""
    candidates = []
    for account in accounts:
        if not account.is_active or is_blacklisted_code(account.code):
            continue
        if account.type == AccountType.EQUITY and _is_private_code(account.code):
            candidates.append(account)
        elif account.type == AccountType.EXPENSE and not _mentions_depreciation(account):
            candidates.append(account)
    return candidates


def classify_account(account: AccountRecord) -> str:
    tax_category = _lower(account.tax_category)
    if tax_category:
        for title, keywords in TAX_CATEGORY_BUCKETS:
            if any(keyword in tax_category for keyword in keywords):
                return title

    name = _lower(account.name)
    for title, keywords in NAME_BUCKETS:
        if any(keyword in name for keyword in keywords):
            return title
    return OTHER


def group_accounts(accounts: list[AccountRecord]) -> list[AccountGroup]:
    """Group accounts into semantic buckets; empty buckets are dropped."""
    buckets: dict[str, list[AccountRecord]] = {title: [] for title in MENU_ORDER}
    for account in accounts:
        buckets[classify_account(account)].append(account)
    return [AccountGroup(title, members) for title, members in buckets.items() if members]


def apply_amount_rule(
    groups: list[AccountGroup], amount: Decimal | None, threshold: Decimal
) -> list[AccountGroup]:
    """Below the capitalization threshold the asset bucket is not offered at all."""
    if amount is None or abs(amount) >= threshold:
        return groups
    return [group for group in groups if group.title != ASSETS]


def menu_accounts(groups: list[AccountGroup]) -> list[AccountRecord]:
    return [account for group in groups for account in group.accounts]


def _result(account: AccountRecord, confidence: int, reason: str, industry: str) -> EnrichmentResult:
    return EnrichmentResult(
        account_id=account.id,
        account_code=account.code,
        account_name=account.name,
        confidence=confidence,
        reason=reason,
        industry=industry,
    )


def _parse_json_choice(
    raw: str, by_id: dict[str, AccountRecord], by_code: dict[str, AccountRecord], industry: str
) -> EnrichmentResult | None:
    content = _CODE_FENCE.sub("", raw).strip()
    match = _JSON_OBJECT.search(content)
    if match:
        content = match.group(0)
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None

    analysis = parsed.get("analysis") or "AI reasoning"
    account_id = parsed.get("id")
    if isinstance(account_id, str) and account_id.lower() in by_id:
        account = by_id[account_id.lower()]
        return _result(account, 85, f"{analysis} -> {account.name}", industry)

    code = parsed.get("selected_account_code")
    if code is not None and str(code) in by_code:
        account = by_code[str(code)]
        return _result(account, 80, f"{analysis} -> {account.name}", industry)
    return None


def parse_accountant_response(
    raw: str, accounts: list[AccountRecord], industry: str
) -> EnrichmentResult | None:
    """Extract the chosen account from an LLM answer.

    Only accounts present in ``accounts`` are accepted; identifiers the model
    invents are ignored.
    """
    by_id = {str(account.id).lower(): account for account in accounts}
    by_code = {account.code: account for account in accounts}

    result = _parse_json_choice(raw, by_id, by_code, industry)
    if result is not None:
        return result

    for candidate in _UUID_PATTERN.findall(raw):
        account = by_id.get(candidate.lower())
        if account is not None:
            return _result(account, 75, f"AI Match: {account.name}", industry)

    for code in _CODE_PATTERN.findall(raw):
        account = by_code.get(code)
        if account is not None:
            return _result(account, 70, f"AI Match: {account.name}", industry)

    logger.info("Accountant response did not name a known account", industry=industry)
    return None


def fallback_simple_match(industry: str, accounts: list[AccountRecord]) -> EnrichmentResult | None:
    """Deterministic keyword match of the industry against account names."""
    keywords = INDUSTRY_ACCOUNT_KEYWORDS.get(industry)

    if not keywords:
        for account in accounts:
            name = _lower(account.name)
            if any(keyword in name for keyword in GENERIC_ACCOUNT_KEYWORDS):
                return _result(account, 70, f"Generic match: {account.name}", industry)
        return None

    for keyword in keywords:
        for account in accounts:
            if keyword in _lower(account.name) or keyword in _lower(account.tax_category):
                return _result(account, 75, f"Keyword match: {industry} -> {account.name}", industry)

    logger.info("No fallback account for industry", industry=industry)
    return None
