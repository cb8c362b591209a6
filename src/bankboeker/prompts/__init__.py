"""Prompts package."""

from bankboeker.prompts.accountant import RESPONSE_FORMAT, format_menu, get_accountant_prompt

__all__ = [
    "RESPONSE_FORMAT",
    "format_menu",
    "get_accountant_prompt",
]
