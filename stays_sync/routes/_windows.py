from datetime import date
from typing import Optional

from fastapi import HTTPException, status


def resolve_window(
    from_date: Optional[date],
    to_date: Optional[date],
    default: tuple[date, date],
) -> tuple[date, date]:
    """
    Fill missing query dates from ``default`` and validate the order.

    Raises:
        HTTPException: 400 if the resulting window ends before it starts
    """
    start = from_date or default[0]
    end = to_date or default[1]
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="'from' must be on or before 'to'",
        )
    return start, end
