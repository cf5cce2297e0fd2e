# pos_edge/domain/reports/service.py
"""
Sales statistics for the dashboard and the period reports.

All figures are computed from the local transaction history of the active
branch. Profit is (price at sale - cost at sale) x quantity, summed over line
items, so it stays correct after products change price.
"""
import calendar
import enum
import math
from collections import Counter, OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from pydantic import BaseModel

from pos_edge.domain.catalog.schemas import Product
from pos_edge.domain.checkout.schemas import Transaction

DELETED_PRODUCT_NAME = "Produk Terhapus"
UNCATEGORIZED = "Uncategorized"
TOP_PRODUCTS = 10


class Period(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class DailySales(BaseModel):
    day: date
    sales: int


class DashboardStats(BaseModel):
    today_sales: int
    total_revenue: int
    last_7_days: List[DailySales]


class CategoryProfit(BaseModel):
    category: str
    profit: int


class TrendPoint(BaseModel):
    label: str
    profit: int


class ProductSales(BaseModel):
    product_id: UUID
    name: str
    category: str
    quantity: int
    revenue: int


class PeriodReport(BaseModel):
    period: Period
    transaction_count: int
    total_revenue: int
    total_profit: int
    total_items_sold: int
    avg_profit: int
    profit_by_category: List[CategoryProfit]
    trend: List[TrendPoint]
    top_products: List[ProductSales]


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    return now if now.tzinfo is not None else now.astimezone()


def _local(transaction: Transaction, now: datetime) -> datetime:
    return transaction.date.astimezone(now.tzinfo)


def transaction_profit(transaction: Transaction) -> int:
    return sum(item.profit for item in transaction.items)


def round_to_hundred(value: float) -> int:
    # half-up, the way cashiers round
    return int(math.floor(value / 100 + 0.5)) * 100


def dashboard_stats(transactions: Iterable[Transaction], now: Optional[datetime] = None) -> DashboardStats:
    now = _now(now)
    today = now.date()
    sales_by_day: Counter = Counter()
    total_revenue = 0
    for transaction in transactions:
        total_revenue += transaction.total
        sales_by_day[_local(transaction, now).date()] += transaction.total

    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    return DashboardStats(
        today_sales=sales_by_day[today],
        total_revenue=total_revenue,
        last_7_days=[DailySales(day=day, sales=sales_by_day[day]) for day in days],
    )


def in_period(moment: datetime, period: Period, now: datetime) -> bool:
    if period is Period.DAILY:
        return moment.date() == now.date()
    if period is Period.WEEKLY:
        # rolling: today and the six days before it
        return moment.date() >= now.date() - timedelta(days=6)
    if period is Period.MONTHLY:
        return (moment.year, moment.month) == (now.year, now.month)
    return moment.year == now.year


def _trend_buckets(period: Period, now: datetime) -> "OrderedDict[str, int]":
    if period is Period.DAILY:
        keys = [f"{hour:02d}:00" for hour in range(6, 23)]
    elif period is Period.WEEKLY:
        keys = [(now.date() - timedelta(days=offset)).isoformat() for offset in range(6, -1, -1)]
    elif period is Period.MONTHLY:
        days = calendar.monthrange(now.year, now.month)[1]
        keys = [date(now.year, now.month, day).isoformat() for day in range(1, days + 1)]
    else:
        keys = [f"{now.year}-{month:02d}" for month in range(1, 13)]
    return OrderedDict((key, 0) for key in keys)


def _trend_key(moment: datetime, period: Period) -> str:
    if period is Period.DAILY:
        return f"{moment.hour:02d}:00"
    if period is Period.YEARLY:
        return f"{moment.year}-{moment.month:02d}"
    return moment.date().isoformat()


def period_report(
    transactions: Iterable[Transaction],
    period: Period,
    products: Iterable[Product] = (),
    now: Optional[datetime] = None,
) -> PeriodReport:
    now = _now(now)
    names = {p.id: p.name for p in products}

    selected = [t for t in transactions if in_period(_local(t, now), period, now)]

    total_profit = 0
    total_items = 0
    by_category: Dict[str, int] = {}
    trend = _trend_buckets(period, now)
    sold: Dict[UUID, ProductSales] = {}

    for transaction in selected:
        profit = transaction_profit(transaction)
        total_profit += profit
        key = _trend_key(_local(transaction, now), period)
        # hours outside opening time have no bucket
        if key in trend:
            trend[key] += profit

        for item in transaction.items:
            total_items += item.quantity
            category = item.category or UNCATEGORIZED
            by_category[category] = by_category.get(category, 0) + item.profit

            entry = sold.get(item.product_id)
            if entry is None:
                entry = sold[item.product_id] = ProductSales(
                    product_id=item.product_id,
                    name=names.get(item.product_id) or item.name or DELETED_PRODUCT_NAME,
                    category=category,
                    quantity=0,
                    revenue=0,
                )
            entry.quantity += item.quantity
            entry.revenue += item.line_total

    return PeriodReport(
        period=period,
        transaction_count=len(selected),
        total_revenue=sum(t.total for t in selected),
        total_profit=total_profit,
        total_items_sold=total_items,
        avg_profit=round_to_hundred(total_profit / len(selected)) if selected else 0,
        profit_by_category=[
            CategoryProfit(category=name, profit=value)
            for name, value in sorted(by_category.items(), key=lambda kv: kv[1], reverse=True)
        ],
        trend=[TrendPoint(label=label, profit=value) for label, value in trend.items()],
        top_products=sorted(sold.values(), key=lambda p: p.quantity, reverse=True)[:TOP_PRODUCTS],
    )
