"""Marketing spend ledger API endpoints."""
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal_analytics.api.deps import get_db
from portal_analytics.schemas.marketing_spend import (
    MonthlySpend,
    MonthlySpendCreate,
    MonthlySpendList,
    parse_month,
)
from portal_analytics.services.marketing_spend_service import MarketingSpendService

router = APIRouter(prefix="/marketing-spend", tags=["Marketing Spend"])


@router.put("", response_model=MonthlySpend)
async def upsert_marketing_spend(
    spend_data: MonthlySpendCreate,
    db: AsyncSession = Depends(get_db),
) -> MonthlySpend:
    """
    Record the marketing spend of a month.

    The month is normalised to its first day. Writing a month that already
    has an entry replaces its spend and notes.
    """
    service = MarketingSpendService(db)
    entry = await service.upsert_spend(spend_data)
    return MonthlySpend.model_validate(entry)


@router.get("", response_model=MonthlySpendList)
async def list_marketing_spend(
    year: Optional[int] = Query(None, ge=2000, le=2100, description="Calendar year. Defaults to the current year."),
    db: AsyncSession = Depends(get_db),
) -> MonthlySpendList:
    """List the spend entries of one calendar year in month order."""
    target_year = year or date.today().year
    service = MarketingSpendService(db)
    entries = await service.list_for_year(target_year)

    items = [MonthlySpend.model_validate(entry) for entry in entries]
    return MonthlySpendList(
        year=target_year,
        items=items,
        total_spend=sum((item.spend for item in items), Decimal(0)),
    )


@router.delete("/{month}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_marketing_spend(
    month: str,
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Remove the spend entry of a month (``YYYY-MM``).

    Raises:
        HTTPException 400: If the month format is invalid
        HTTPException 404: If no spend is recorded for the month
    """
    try:
        month_start = parse_month(month)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    service = MarketingSpendService(db)
    deleted = await service.delete_month(month_start)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No marketing spend recorded for {month_start.strftime('%Y-%m')}",
        )
