"""Common FastAPI dependencies for consistent type annotations.

Usage:
    from bankboeker.deps import AutomationService, DbSession

    async def my_endpoint(db: DbSession, service: AutomationService):
        # db is AsyncSession with get_db dependency injected
        # service is the BankAutomationService stored on app.state
        ...
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bankboeker.database import get_db
from bankboeker.services.bank_automation import BankAutomationService


def get_automation_service(request: Request) -> BankAutomationService:
    return request.app.state.automation


DbSession = Annotated[AsyncSession, Depends(get_db)]
AutomationService = Annotated[BankAutomationService, Depends(get_automation_service)]

__all__ = ["AutomationService", "DbSession", "get_automation_service"]
