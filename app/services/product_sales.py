from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from app.services.ingestion import SaleRow
from app.services.report_metrics import safe_ratio
from app.services.report_ranges import format_day_label

UnitType = Literal["box", "pack", "piece"]

UNIT_TYPES: tuple[UnitType, ...] = ("box", "pack", "piece")
UNKNOWN_LABEL = "ไม่ระบุ"
UNKNOWN_REGION = "ไม่ระบุเขต"
TOP_CONTRIBUTORS = 3

_BOX_MARKERS = ("กล่อง", "ลัง", "box")
_PACK_MARKERS = ("แพ็ค", "pack")


@dataclass(frozen=True, slots=True)
class UnitBreakdown:
    quantity: float = 0.0
    revenue: float = 0.0
    transactions: int = 0


@dataclass(frozen=True, slots=True)
class Contributor:
    name: str
    total_revenue: float
    total_quantity: float


@dataclass(frozen=True, slots=True)
class ProductSummary:
    product_key: str
    product_code: str
    product_name: str
    unit_breakdown: dict[str, UnitBreakdown]
    total_revenue: float
    total_quantity: float
    transactions: int
    average_unit_price: float
    contribution_percent: float
    best_region: str | None
    top_employees: tuple[Contributor, ...]
    top_stores: tuple[Contributor, ...]
    last_sold_date: date | None


@dataclass(frozen=True, slots=True)
class TimelineBucket:
    date: date
    label: str
    total_revenue: float
    total_quantity: float
    transactions: int


@dataclass(frozen=True, slots=True)
class SalesSummary:
    total_revenue: float
    total_quantity: float
    transactions: int
    average_unit_price: float
    unique_products: int
    unique_employees: int
    unique_stores: int
    all_stores: tuple[str, ...]
    unit_breakdown: dict[str, UnitBreakdown]


@dataclass(frozen=True, slots=True)
class ProductSalesReport:
    summary: SalesSummary
    products: tuple[ProductSummary, ...]
    timeline: tuple[TimelineBucket, ...]


@dataclass(slots=True)
class _Tally:
    quantity: float = 0.0
    revenue: float = 0.0
    transactions: int = 0

    def add(self, quantity: float, revenue: float) -> None:
        self.quantity += quantity
        self.revenue += revenue
        self.transactions += 1

    def freeze(self) -> UnitBreakdown:
        return UnitBreakdown(
            quantity=round(self.quantity, 2),
            revenue=round(self.revenue, 2),
            transactions=self.transactions,
        )


@dataclass(slots=True)
class _ProductTally:
    product_code: str
    product_name: str
    units: dict[str, _Tally] = field(default_factory=lambda: {unit: _Tally() for unit in UNIT_TYPES})
    employees: dict[str, _Tally] = field(default_factory=dict)
    stores: dict[str, _Tally] = field(default_factory=dict)
    last_sold: tuple[date, str] | None = None

    @property
    def revenue(self) -> float:
        return sum(item.revenue for item in self.units.values())

    @property
    def quantity(self) -> float:
        return sum(item.quantity for item in self.units.values())

    @property
    def transactions(self) -> int:
        return sum(item.transactions for item in self.units.values())


def classify_unit(unit_name: str | None) -> UnitType:
    normalized = (unit_name or "").strip().lower()
    if any(marker in normalized for marker in _BOX_MARKERS):
        return "box"
    if any(marker in normalized for marker in _PACK_MARKERS):
        return "pack"
    return "piece"


def sale_revenue(sale: SaleRow) -> float:
    if sale.unit_price > 0:
        return sale.unit_price * sale.quantity
    return sale.total


def _top_contributors(tallies: Mapping[str, _Tally]) -> tuple[Contributor, ...]:
    ranked = sorted(tallies.items(), key=lambda item: item[1].revenue, reverse=True)
    return tuple(
        Contributor(
            name=name,
            total_revenue=round(tally.revenue, 2),
            total_quantity=round(tally.quantity, 2),
        )
        for name, tally in ranked[:TOP_CONTRIBUTORS]
    )


def _best_region(employees: Mapping[str, _Tally], employee_regions: Mapping[str, str | None]) -> str | None:
    revenue_by_region: dict[str, float] = {}
    for name, tally in employees.items():
        region = (employee_regions.get(name) or "").strip() or UNKNOWN_REGION
        revenue_by_region[region] = revenue_by_region.get(region, 0.0) + tally.revenue

    best: str | None = None
    best_revenue = 0.0
    for region, revenue in revenue_by_region.items():
        if revenue > best_revenue:
            best, best_revenue = region, revenue
    return best


def build_product_sales_report(
    sales: Iterable[SaleRow],
    *,
    dates: Sequence[date],
    employee_names: Collection[str] | None = None,
    store_names: Collection[str] | None = None,
    employee_regions: Mapping[str, str | None] | None = None,
) -> ProductSalesReport:
    """Aggregate sales rows per product, per unit bucket and per day.

    Empty ``employee_names``/``store_names`` collections mean no filter.
    """
    date_set = set(dates)
    regions = employee_regions or {}
    products: dict[str, _ProductTally] = {}
    summary_units = {unit: _Tally() for unit in UNIT_TYPES}
    timeline = {day: _Tally() for day in sorted(date_set)}

    for sale in sales:
        if sale.date not in date_set:
            continue
        if employee_names and sale.employee_name not in employee_names:
            continue
        if store_names and sale.store_name not in store_names:
            continue

        unit = classify_unit(sale.unit_name)
        revenue = sale_revenue(sale)
        quantity = sale.quantity

        key = f"{sale.product_code or 'unknown'}::{sale.product_name}"
        product = products.get(key)
        if product is None:
            product = _ProductTally(product_code=sale.product_code, product_name=sale.product_name)
            products[key] = product

        product.units[unit].add(quantity, revenue)
        product.employees.setdefault(sale.employee_name or UNKNOWN_LABEL, _Tally()).add(quantity, revenue)
        product.stores.setdefault(sale.store_name or UNKNOWN_LABEL, _Tally()).add(quantity, revenue)
        sold_at = (sale.date, sale.time)
        if product.last_sold is None or sold_at > product.last_sold:
            product.last_sold = sold_at

        summary_units[unit].add(quantity, revenue)
        timeline[sale.date].add(quantity, revenue)

    total_revenue = sum(item.revenue for item in summary_units.values())
    total_quantity = sum(item.quantity for item in summary_units.values())

    product_rows = [
        ProductSummary(
            product_key=key,
            product_code=tally.product_code,
            product_name=tally.product_name,
            unit_breakdown={unit: tally.units[unit].freeze() for unit in UNIT_TYPES},
            total_revenue=round(tally.revenue, 2),
            total_quantity=round(tally.quantity, 2),
            transactions=tally.transactions,
            average_unit_price=round(safe_ratio(tally.revenue, tally.quantity), 2),
            contribution_percent=round(safe_ratio(tally.revenue, total_revenue) * 100, 2),
            best_region=_best_region(tally.employees, regions),
            top_employees=_top_contributors(tally.employees),
            top_stores=_top_contributors(tally.stores),
            last_sold_date=tally.last_sold[0] if tally.last_sold else None,
        )
        for key, tally in products.items()
    ]
    product_rows.sort(key=lambda item: item.total_revenue, reverse=True)

    employees_seen = {name for tally in products.values() for name in tally.employees}
    stores_seen = {name for tally in products.values() for name in tally.stores}

    summary = SalesSummary(
        total_revenue=round(total_revenue, 2),
        total_quantity=round(total_quantity, 2),
        transactions=sum(item.transactions for item in summary_units.values()),
        average_unit_price=round(safe_ratio(total_revenue, total_quantity), 2),
        unique_products=len(product_rows),
        unique_employees=len(employees_seen),
        unique_stores=len(stores_seen),
        all_stores=tuple(sorted(stores_seen)),
        unit_breakdown={unit: summary_units[unit].freeze() for unit in UNIT_TYPES},
    )

    buckets = tuple(
        TimelineBucket(
            date=day,
            label=format_day_label(day),
            total_revenue=round(tally.revenue, 2),
            total_quantity=round(tally.quantity, 2),
            transactions=tally.transactions,
        )
        for day, tally in timeline.items()
        if tally.transactions > 0
    )
    return ProductSalesReport(summary=summary, products=tuple(product_rows), timeline=buckets)
