"""Static vendor table: well-known Dutch/EU merchants to ledger account codes.

The table is an auditable safety net. Matching is pure; the only I/O is the
final lookup of the account by code.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.logger import get_logger
from bankboeker.models import Account
from bankboeker.services.account_lookup import get_bookable_account_by_code
from bankboeker.services.text_normalizer import matches_keyword

logger = get_logger(__name__)


@dataclass(frozen=True)
class VendorDefault:
    keywords: tuple[str, ...]
    account_code: str
    category: str


@dataclass(frozen=True)
class VendorMatch:
    keyword: str
    account_code: str
    category: str


VENDOR_DEFAULTS: tuple[VendorDefault, ...] = (
    VendorDefault(("geldmaat",), "1800", "Privé opnames"),
    VendorDefault(
        (
            "shell",
            "bp",
            "esso",
            "texaco",
            "total",
            "totalenergies",
            "tango",
            "tinq",
            "fastned",
            "tesla supercharger",
            "yellowbrick",
            "avia",
            "lukoil",
            "gulf",
        ),
        "4310",
        "Brandstofkosten",
    ),
    VendorDefault(("parkmobile", "q-park", "parkeren", "parking", "easypark"), "4300", "Parkeerkosten"),
    VendorDefault(
        (
            "albert heijn",
            "ah to go",
            "jumbo",
            "lidl",
            "aldi",
            "plus",
            "picnic",
            "sligro",
            "makro",
            "hanos",
            "dirk",
            "coop",
            "spar",
            "vomar",
            "hoogvliet",
            "dekamarkt",
        ),
        "4700",
        "Kantinekosten",
    ),
    VendorDefault(("kruidvat", "etos", "trekpleister", "da drogist"), "4700", "Drogisterij"),
    VendorDefault(
        ("action", "hema", "bruna", "staples", "viking", "123inkt", "bol.com", "coolblue"),
        "4700",
        "Kantoorbenodigdheden",
    ),
    VendorDefault(
        ("gamma", "praxis", "karwei", "hornbach", "bauhaus", "hubo"),
        "4700",
        "Klein materiaal",
    ),
    VendorDefault(
        ("kpn", "ziggo", "vodafone", "t-mobile", "odido", "tele2", "simyo"),
        "4520",
        "Telefoon en internet",
    ),
    VendorDefault(
        (
            "google workspace",
            "microsoft 365",
            "microsoft",
            "adobe",
            "dropbox",
            "zoom",
            "slack",
            "moneybird",
            "exact online",
            "twinfield",
            "afas",
            "apple.com/bill",
        ),
        "4530",
        "Software en abonnementen",
    ),
    VendorDefault(
        ("centraal beheer", "nationale nederlanden", "interpolis", "univé", "aegon", "allianz", "ohra", "fbto"),
        "4600",
        "Verzekeringen",
    ),
    VendorDefault(
        ("ing bank", "rabobank", "abn amro", "bunq", "knab", "triodos", "sns bank", "asn bank"),
        "4610",
        "Bankkosten",
    ),
    VendorDefault(
        ("ns", "ns reizigers", "klm", "transavia", "uber", "bolt", "gvb", "ret", "htm", "arriva", "connexxion"),
        "4300",
        "Reiskosten",
    ),
    VendorDefault(
        ("mcdonald's", "mcdonalds", "burger king", "kfc", "subway", "febo", "dominos", "new york pizza"),
        "4700",
        "Kantinekosten",
    ),
    VendorDefault(
        ("loetje", "starbucks", "brasserie", "restaurant", "la place", "van der valk"),
        "4360",
        "Representatiekosten",
    ),
    VendorDefault(
        (
            "kwik-fit",
            "euromaster",
            "profile tyrecenter",
            "autobedrijf",
            "garage",
            "apk",
            "anwb",
            "carglass",
            "bovag",
        ),
        "4310",
        "Autokosten",
    ),
)


def iter_vendor_matches(cleaned_text: str):
    """Yield every table hit in table order, one per entry."""
    if not cleaned_text:
        return
    for entry in VENDOR_DEFAULTS:
        for keyword in entry.keywords:
            if matches_keyword(cleaned_text, keyword):
                yield VendorMatch(keyword=keyword, account_code=entry.account_code, category=entry.category)
                break


def match_vendor(cleaned_text: str) -> VendorMatch | None:
    """First table entry with a keyword hit, or None."""
    return next(iter_vendor_matches(cleaned_text), None)


async def find_vendor_account(
    db: AsyncSession, cleaned_text: str
) -> tuple[VendorMatch, Account] | None:
    """Resolve the first vendor hit whose account code exists in the chart.

    Entries whose code has no active account are skipped.
    """
    for match in iter_vendor_matches(cleaned_text):
        account = await get_bookable_account_by_code(db, match.account_code)
        if account is not None:
            return match, account
        logger.debug(
            "Vendor account code not in chart",
            keyword=match.keyword,
            account_code=match.account_code,
        )
    return None
