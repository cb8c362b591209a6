"""External enrichment: identify a business on the web, then pick a ledger account.

Two stages run in sequence:

1. Detective: a web search (Tavily) tells us what kind of business the
   counterparty is. Without a search key, or when the search fails, a local
   vendor table stands in for the search.
2. Accountant: an LLM (OpenRouter) picks an account from a grouped menu of
   expense accounts. Without an LLM key, or when the call fails, a keyword
   match of the industry against account names is used.

Every provider call is bounded by ``enrichment_timeout_seconds`` and every
provider failure degrades to the local path. Nothing here raises for a
provider problem.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.config import Settings
from bankboeker.logger import get_logger
from bankboeker.models import Account, AccountType
from bankboeker.prompts import get_accountant_prompt
from bankboeker.schemas import AccountRecord, EnrichmentResult
from bankboeker.services.account_menu import (
    apply_amount_rule,
    fallback_simple_match,
    group_accounts,
    menu_accounts,
    parse_accountant_response,
    select_candidate_accounts,
)
from bankboeker.services.providers import (
    PROVIDER_FAILURES,
    CompletionProvider,
    ProviderError,
    SearchProvider,
    SearchResponse,
)
from bankboeker.services.text_normalizer import clean, matches_keyword

logger = get_logger(__name__)

T = TypeVar("T")

MIN_NAME_LENGTH = 3

INDUSTRY_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "Car Repair Shop",
        ("car service", "auto service", "automotive repair", "car repair", "garage", "autowerkplaats", "autoschade"),
    ),
    ("Gas Station", ("gas station", "petrol station", "fuel station", "tankstation", "benzinestation")),
    ("Supermarket", ("supermarket", "grocery store", "supermarkt", "levensmiddelen")),
    (
        "Food & Hospitality",
        (
            "patisserie",
            "bakery",
            "bakker",
            "boulangerie",
            "lunchroom",
            "cafe",
            "coffee",
            "delicatessen",
            "restaurant",
            "eatery",
            "dining",
            "food service",
            "bistro",
            "brasserie",
            "horeca",
        ),
    ),
    ("Software", ("software", "saas", "cloud service", "tech company", "application")),
    ("Insurance", ("insurance", "verzekering", "insurer")),
    ("Bank", ("bank", "banking", "financial institution")),
    ("Telecom", ("telecom", "telecommunication", "mobile provider", "internet provider")),
    ("Energy", ("energy", "electricity", "gas supplier", "utilities", "energie")),
    ("Retail", ("retail", "store", "shop", "winkel")),
    ("Consulting", ("consulting", "consultancy", "advisory", "advies")),
    ("Marketing", ("marketing", "advertising", "reclame")),
    ("Office Supplies", ("office supplies", "stationery", "kantoor")),
    ("Travel", ("travel", "airline", "hotel", "booking", "reis")),
    ("Transport", ("transport", "logistics", "delivery", "courier")),
    ("Hardware Store", ("hardware store", "bouwmarkt", "construction")),
)

CLUE_INDUSTRIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Food & Hospitality", ("restaurant", "cafe", "bar", "bistro", "lunchroom", "brasserie")),
    ("Food & Hospitality", ("bakery", "bakkerij", "patisserie")),
    ("Supermarket", ("supermarket", "grocery")),
    ("Transport", ("taxi", "uber")),
    ("Car Repair Shop", ("garage", "car service")),
    ("Gas Station", ("gas station", "fuel")),
    ("Software", ("software", "saas")),
    ("Travel", ("hotel", "accommodation")),
)

HOSPITALITY_CLUES: tuple[str, ...] = ("restaurant", "cafe", "bar")

SIMULATED_VENDOR_INDUSTRIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Car Repair Shop", ("car service", "auto service", "garage", "autowerkplaats", "autoschade", "onderhoud auto")),
    ("Gas Station", ("shell", "bp", "esso", "texaco", "total", "q8", "gulf", "tinq")),
    ("Supermarket", ("albert heijn", "ah to go", "jumbo", "lidl", "aldi", "plus", "coop", "spar", "dirk")),
    (
        "Software",
        (
            "github",
            "gitlab",
            "aws",
            "azure",
            "google cloud",
            "dropbox",
            "slack",
            "zoom",
            "microsoft",
            "adobe",
            "atlassian",
        ),
    ),
    ("Telecom", ("kpn", "vodafone", "ziggo", "t-mobile", "tele2", "telfort")),
    ("Energy", ("essent", "eneco", "vattenfall", "greenchoice", "energiedirect")),
    ("Insurance", ("asr", "aegon", "nn verzekeringen", "achmea", "univé", "centraal beheer")),
    ("Travel", ("ns", "schiphol", "klm", "booking", "hotels.com", "airbnb", "transavia")),
    ("Transport", ("uber", "taxi", "bolt")),
    ("Marketing", ("google ads", "facebook ads", "meta ads", "linkedin ads")),
    ("Office Supplies", ("staples", "office centre", "makro")),
    ("Bank", ("abn amro", "ing bank", "rabobank", "bunq", "knab", "triodos")),
    ("Hardware Store", ("gamma", "karwei", "praxis", "hornbach", "bouwmaat")),
    (
        "Food & Hospitality",
        (
            "mcdonalds",
            "burger king",
            "kfc",
            "subway",
            "dominos",
            "pizza hut",
            "patisserie",
            "bakkerij",
            "bakker",
            "lunchroom",
            "coffee company",
            "starbucks",
            "cafe",
            "restaurant",
            "horeca",
        ),
    ),
)

_QUERY_CATEGORIES = "Gas Station, Supermarket, Restaurant, Software, Insurance, Bank, Telecom, Retail"


def _first_industry(
    text: str, table: tuple[tuple[str, tuple[str, ...]], ...]
) -> tuple[str, str] | None:
    for industry, keywords in table:
        for keyword in keywords:
            if matches_keyword(text, keyword):
                return industry, keyword
    return None


def build_search_query(
    name: str,
    *,
    city: str | None = None,
    address: str | None = None,
    category_clues: str | None = None,
) -> str:
    """Build the detective query; location narrows down common names."""
    if city and address:
        query = f'"{name}" {address} {city} Netherlands business type'
    elif city:
        query = f'"{name}" {city} Netherlands business type'
    else:
        query = (
            f'What kind of business is "{name}" in The Netherlands? '
            f"Return ONLY the industry category (e.g., {_QUERY_CATEGORIES})."
        )
    if category_clues:
        query = f"{query} {category_clues}"
    return query


def extract_industry(response: SearchResponse) -> str | None:
    """Match the search answer (or joined result contents) against the industry table."""
    if response.answer:
        content = response.answer
    else:
        content = " ".join(result.content for result in response.results if result.content)
    if not content:
        return None

    hit = _first_industry(content, INDUSTRY_PATTERNS)
    if hit is None:
        return None
    industry, keyword = hit
    logger.debug("Industry detected", industry=industry, keyword=keyword)
    return industry


def map_category_clues(category_clues: str | None) -> str | None:
    if not category_clues:
        return None
    hit = _first_industry(category_clues, CLUE_INDUSTRIES)
    return hit[0] if hit else None


def _contradicts_clues(industry: str, category_clues: str) -> bool:
    if not any(matches_keyword(category_clues, clue) for clue in HOSPITALITY_CLUES):
        return False
    lowered = industry.lower()
    return not any(word in lowered for word in ("food", "hospitality", "restaurant"))


def simulate_industry(cleaned_name: str) -> str | None:
    """Detect the industry of a well-known Dutch vendor without a web search."""
    hit = _first_industry(cleaned_name, SIMULATED_VENDOR_INDUSTRIES)
    return hit[0] if hit else None


class EnrichmentService:
    """Detective and accountant enrichment for unknown counterparties."""

    def __init__(
        self,
        config: Settings,
        search_provider: SearchProvider | None = None,
        completion_provider: CompletionProvider | None = None,
    ):
        self.config = config
        self.search_provider = search_provider
        self.completion_provider = completion_provider
        self.timeout = config.enrichment_timeout_seconds

    async def _call(self, request: Callable[[], Awaitable[T]]) -> T:
        """Run one provider request under the timeout, retrying once on 429/5xx."""
        try:
            return await asyncio.wait_for(request(), timeout=self.timeout)
        except ProviderError as exc:
            if not exc.retryable:
                raise
            logger.info("Retrying provider call", error=str(exc))
            return await asyncio.wait_for(request(), timeout=self.timeout)

    async def enrich(
        self,
        db: AsyncSession,
        name: str,
        *,
        city: str | None = None,
        address: str | None = None,
        category_clues: str | None = None,
        amount: Decimal | None = None,
    ) -> EnrichmentResult | None:
        """Suggest a ledger account for an unknown counterparty ``name``.

        Returns None when the name is too short, no industry can be
        determined, or no account fits the industry.
        """
        cleaned = clean(name)
        if len(cleaned) < MIN_NAME_LENGTH:
            logger.debug("Name too short for enrichment", name=name)
            return None

        if self.search_provider is None:
            return await self._simulate(db, cleaned, amount)

        query = build_search_query(cleaned, city=city, address=address, category_clues=category_clues)
        try:
            response = await self._call(lambda: self.search_provider.search(query))
        except PROVIDER_FAILURES as exc:
            logger.warning(
                "Search failed, using simulation",
                name=cleaned,
                error=str(exc) or type(exc).__name__,
            )
            return await self._simulate(db, cleaned, amount)

        industry = extract_industry(response)

        if category_clues:
            clue_industry = map_category_clues(category_clues)
            if clue_industry and (industry is None or _contradicts_clues(industry, category_clues)):
                logger.info(
                    "Category clues override search industry",
                    search_industry=industry,
                    clue_industry=clue_industry,
                )
                return await self.map_industry_to_account(
                    db,
                    clue_industry,
                    cleaned,
                    amount=amount,
                    evidence=f"Category clues: {category_clues}",
                )

        if industry is None:
            logger.info("Search did not reveal an industry", name=cleaned)
            return None

        return await self.map_industry_to_account(
            db, industry, cleaned, amount=amount, evidence=response.answer or industry
        )

    async def _simulate(
        self, db: AsyncSession, cleaned: str, amount: Decimal | None
    ) -> EnrichmentResult | None:
        industry = simulate_industry(cleaned)
        if industry is None:
            logger.debug("No simulated industry", name=cleaned)
            return None

        evidence = f"This appears to be a {industry} based on known vendor patterns in the Netherlands."
        result = await self.map_industry_to_account(db, industry, cleaned, amount=amount, evidence=evidence)
        if result is None:
            return None
        return result.model_copy(update={"reason": f"Herkend als {result.account_name}"})

    async def load_candidate_accounts(self, db: AsyncSession) -> list[AccountRecord]:
        result = await db.execute(
            select(Account)
            .where(Account.type.in_([AccountType.EXPENSE, AccountType.EQUITY]))
            .where(Account.is_active == True)  # noqa: E712
            .order_by(Account.code)
        )
        records = [AccountRecord.decode(account) for account in result.scalars().all()]
        return select_candidate_accounts(records)

    async def map_industry_to_account(
        self,
        db: AsyncSession,
        industry: str,
        description: str,
        *,
        amount: Decimal | None = None,
        evidence: str | None = None,
    ) -> EnrichmentResult | None:
        """Accountant stage: choose one account from the grouped menu."""
        candidates = await self.load_candidate_accounts(db)
        groups = apply_amount_rule(
            group_accounts(candidates), amount, self.config.capitalization_threshold
        )
        accounts = menu_accounts(groups)
        if not accounts:
            logger.warning("No candidate accounts for enrichment", industry=industry)
            return None

        if self.completion_provider is None:
            return fallback_simple_match(industry, accounts)

        prompt = get_accountant_prompt(
            description=description,
            industry=industry,
            evidence=evidence,
            amount=amount,
            threshold=self.config.capitalization_threshold,
            groups=groups,
        )
        try:
            raw = await self._call(lambda: self.completion_provider.complete(prompt))
        except PROVIDER_FAILURES as exc:
            logger.warning(
                "Completion failed, using keyword fallback",
                industry=industry,
                error=str(exc) or type(exc).__name__,
            )
            return fallback_simple_match(industry, accounts)

        result = parse_accountant_response(raw, accounts, industry)
        if result is None:
            return fallback_simple_match(industry, accounts)
        return result
