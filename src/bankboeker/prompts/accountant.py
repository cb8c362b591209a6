"""Prompt template for mapping an identified business to a ledger account."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol
from uuid import UUID


class MenuAccount(Protocol):
    id: UUID
    code: str
    name: str


class MenuGroup(Protocol):
    title: str
    accounts: Sequence[MenuAccount]


RESPONSE_FORMAT = """{
  "analysis": "Short explanation of the business and the expense",
  "category_group": "CAR & TRAVEL",
  "selected_account_code": "4310",
  "selected_account_name": "Brandstofkosten",
  "id": "<uuid of the chosen account>"
}"""


def format_menu(groups: Sequence[MenuGroup]) -> str:
    """Render grouped accounts as the numbered menu shown to the model."""
    sections = []
    for group in groups:
        rows = "\n".join(
            f"  • {account.code} {account.name} (ID: {account.id})" for account in group.accounts
        )
        sections.append(f"{group.title}:\n{rows}")
    return "\n\n".join(sections)


def _amount_rule(amount: Decimal | None, threshold: Decimal) -> str:
    if amount is None:
        return "Amount unknown: only choose ASSETS & DEPRECIATION when the description clearly names a capital asset."
    if abs(amount) < threshold:
        return (
            f"The amount EUR {abs(amount):.2f} is below the capitalization threshold of "
            f"EUR {threshold:.2f}. DO NOT select ASSETS & DEPRECIATION; book it as a cost."
        )
    return (
        f"The amount EUR {abs(amount):.2f} is at or above the capitalization threshold of "
        f"EUR {threshold:.2f}. This could be a capital asset if it is equipment or inventory."
    )


def get_accountant_prompt(
    *,
    description: str,
    industry: str,
    evidence: str | None,
    amount: Decimal | None,
    threshold: Decimal,
    groups: Sequence[MenuGroup],
) -> str:
    """Return the accountant prompt for one transaction."""
    amount_text = f"EUR {abs(amount):.2f}" if amount is not None else "unknown"
    return (
        "You are an experienced Dutch bookkeeper (boekhouder) for small businesses.\n"
        "Choose the single best ledger account for the bank transaction below.\n\n"
        "Transaction details:\n"
        f"- Description: {description}\n"
        f"- Amount: {amount_text}\n"
        f"- Industry: {industry}\n\n"
        "Evidence from web research:\n"
        f"{evidence or 'No additional evidence available.'}\n\n"
        "Amount rule:\n"
        f"{_amount_rule(amount, threshold)}\n\n"
        "Available accounts:\n"
        f"{format_menu(groups)}\n\n"
        "Think step by step:\n"
        "1. What does this business sell or provide?\n"
        "2. Why would a small business pay them?\n"
        "3. Which category group fits that purpose?\n"
        "4. Which account within that group is most specific?\n\n"
        "Rules:\n"
        "- Only choose an account from the list above\n"
        "- Copy the ID exactly as shown; never invent an ID\n"
        "- Fuel and parking belong to CAR & TRAVEL, business lunches to FOOD & HOSPITALITY\n\n"
        "Respond with a single JSON object and nothing else:\n"
        f"{RESPONSE_FORMAT}\n"
    )
