from datetime import date, datetime, tzinfo
from typing import Iterable, List, Optional

from pos_edge.domain.checkout.schemas import Transaction


def local_day(moment: datetime, tz: Optional[tzinfo] = None) -> date:
    return moment.astimezone(tz).date()


def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    start: Optional[date] = None,
    end: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> List[Transaction]:
    """Filter sales by id substring and an inclusive range of calendar days."""
    needle = search.strip().lower()
    matched = []
    for transaction in transactions:
        if needle and needle not in str(transaction.id).lower():
            continue
        day = local_day(transaction.date, tz)
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        matched.append(transaction)
    return matched
