"""Parse-and-validate boundary for rows coming from the external store.

Rows may be positional sequences (sheet-style exports) or mappings (ORM/JSON
rows). Every parser returns ``None`` on a structural mismatch so nothing
unvalidated reaches the reconstruction pipeline.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Generic, TypeVar

from app.models import COUNTED_LEAVE_STATUSES, AttendanceStatus
from app.services.report_ranges import parse_iso_date

T = TypeVar("T")

ATTENDANCE_COLUMNS = ("date", "time", "status", "employee_name", "store_name")
SALES_COLUMNS = (
    "date",
    "time",
    "employee_name",
    "store_name",
    "product_code",
    "product_name",
    "unit_name",
    "quantity",
    "unit_price",
    "total",
)

_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("date", "recorded_date", "recordedDate"),
    "time": ("time", "recorded_time", "recordedTime"),
    "status": ("status",),
    "employee_name": ("employee_name", "employeeName"),
    "employee_id": ("employee_id", "employeeId"),
    "store_name": ("store_name", "storeName"),
    "product_code": ("product_code", "productCode"),
    "product_name": ("product_name", "productName"),
    "unit_name": ("unit_name", "unitName"),
    "quantity": ("quantity",),
    "unit_price": ("unit_price", "unitPrice"),
    "total": ("total",),
    "start_date": ("start_date", "startDate"),
    "end_date": ("end_date", "endDate"),
    "type": ("type",),
    "effective_month": ("effective_month", "effectiveMonth"),
    "baseline": ("baseline",),
    "items": ("items",),
    "month": ("month",),
    "target_revenue_pc": ("target_revenue_pc", "targetRevenuePC"),
    "label": ("label",),
    "amount": ("amount",),
    "default_store_id": ("default_store_id", "defaultStoreId"),
    "regular_day_off": ("regular_day_off", "regularDayOff"),
}

_STATUS_ALIASES = {
    "check-in": AttendanceStatus.CHECK_IN.value,
    "checkin": AttendanceStatus.CHECK_IN.value,
    "เข้างาน": AttendanceStatus.CHECK_IN.value,
    "check-out": AttendanceStatus.CHECK_OUT.value,
    "checkout": AttendanceStatus.CHECK_OUT.value,
    "ออกงาน": AttendanceStatus.CHECK_OUT.value,
}

KNOWN_ATTENDANCE_STATUSES = tuple(_STATUS_ALIASES)


@dataclass(frozen=True, slots=True)
class AttendanceRow:
    date: date
    time: str
    status: str
    employee_name: str
    store_name: str


@dataclass(frozen=True, slots=True)
class SaleRow:
    date: date
    time: str
    employee_name: str
    store_name: str
    product_code: str
    product_name: str
    unit_name: str
    quantity: float
    unit_price: float
    total: float


@dataclass(frozen=True, slots=True)
class LeaveRecord:
    employee_id: str
    start_date: date
    end_date: date
    status: str
    type: str

    @property
    def is_counted(self) -> bool:
        return self.status in COUNTED_LEAVE_STATUSES


@dataclass(frozen=True, slots=True)
class ExpenseItem:
    label: str
    amount: float


@dataclass(frozen=True, slots=True)
class ExpenseBaseline:
    employee_id: str
    effective_month: str
    baseline: float
    items: tuple[ExpenseItem, ...] = ()


@dataclass(frozen=True, slots=True)
class TargetRecord:
    employee_id: str
    month: str
    target_revenue_pc: float | None


@dataclass(frozen=True, slots=True)
class EmployeeProfile:
    id: str
    name: str
    region: str | None = None
    default_store_id: str | None = None
    regular_day_off: str | None = None


@dataclass(frozen=True, slots=True)
class StoreProfile:
    id: str
    name: str
    province: str | None = None
    region: str | None = None


@dataclass(frozen=True, slots=True)
class ParsedRows(Generic[T]):
    rows: tuple[T, ...]
    discarded: int


def _read(values: Any, field: str, columns: Sequence[str] = ()) -> Any:
    if isinstance(values, Mapping):
        for key in _FIELD_ALIASES.get(field, (field,)):
            if key in values:
                return values[key]
        return None
    if isinstance(values, (str, bytes)):
        return None
    if isinstance(values, Sequence):
        try:
            index = columns.index(field)
        except ValueError:
            return None
        return values[index] if index < len(values) else None
    return getattr(values, field, None)


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return ""


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", ""))
        except ValueError:
            return 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return number


def _date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _text(value)
    return parse_iso_date(text[:10]) if text else None


def normalize_attendance_status(value: Any) -> str | None:
    return _STATUS_ALIASES.get(_text(value).lower())


def parse_attendance_row(values: Any) -> AttendanceRow | None:
    if values is None:
        return None
    if not isinstance(values, Mapping) and isinstance(values, Sequence) and len(values) < len(ATTENDANCE_COLUMNS) - 1:
        return None

    row_date = _date(_read(values, "date", ATTENDANCE_COLUMNS))
    if row_date is None:
        return None
    status = normalize_attendance_status(_read(values, "status", ATTENDANCE_COLUMNS))
    if status is None:
        return None

    return AttendanceRow(
        date=row_date,
        time=_text(_read(values, "time", ATTENDANCE_COLUMNS)),
        status=status,
        employee_name=_text(_read(values, "employee_name", ATTENDANCE_COLUMNS)),
        store_name=_text(_read(values, "store_name", ATTENDANCE_COLUMNS)),
    )


def parse_sale_row(values: Any) -> SaleRow | None:
    if values is None:
        return None
    if not isinstance(values, Mapping) and isinstance(values, Sequence) and len(values) < 6:
        return None

    row_date = _date(_read(values, "date", SALES_COLUMNS))
    if row_date is None:
        return None

    quantity = _number(_read(values, "quantity", SALES_COLUMNS))
    unit_price = _number(_read(values, "unit_price", SALES_COLUMNS))
    raw_total = _read(values, "total", SALES_COLUMNS)
    total = _number(raw_total) if raw_total not in (None, "") else quantity * unit_price

    return SaleRow(
        date=row_date,
        time=_text(_read(values, "time", SALES_COLUMNS)),
        employee_name=_text(_read(values, "employee_name", SALES_COLUMNS)),
        store_name=_text(_read(values, "store_name", SALES_COLUMNS)),
        product_code=_text(_read(values, "product_code", SALES_COLUMNS)),
        product_name=_text(_read(values, "product_name", SALES_COLUMNS)),
        unit_name=_text(_read(values, "unit_name", SALES_COLUMNS)),
        quantity=quantity,
        unit_price=unit_price,
        total=total,
    )


def parse_leave_record(values: Any) -> LeaveRecord | None:
    if values is None:
        return None
    start = _date(_read(values, "start_date"))
    end = _date(_read(values, "end_date"))
    if start is None or end is None:
        return None

    raw_status = _read(values, "status")
    status = getattr(raw_status, "value", raw_status)
    return LeaveRecord(
        employee_id=_text(_read(values, "employee_id")),
        start_date=start,
        end_date=end,
        status=_text(status).lower(),
        type=_text(_read(values, "type")),
    )


def parse_expense_baseline(values: Any) -> ExpenseBaseline | None:
    if values is None:
        return None
    effective_month = _text(_read(values, "effective_month"))
    if not effective_month:
        return None

    items: list[ExpenseItem] = []
    raw_items = _read(values, "items")
    if isinstance(raw_items, Sequence) and not isinstance(raw_items, (str, bytes)):
        for raw_item in raw_items:
            if not isinstance(raw_item, Mapping):
                continue
            label = _text(_read(raw_item, "label"))
            if not label:
                continue
            items.append(ExpenseItem(label=label, amount=_number(_read(raw_item, "amount"))))

    return ExpenseBaseline(
        employee_id=_text(_read(values, "employee_id")),
        effective_month=effective_month,
        baseline=_number(_read(values, "baseline")),
        items=tuple(items),
    )


def parse_target_record(values: Any) -> TargetRecord | None:
    if values is None:
        return None
    employee_id = _text(_read(values, "employee_id"))
    if not employee_id:
        return None
    raw_target = _read(values, "target_revenue_pc")
    return TargetRecord(
        employee_id=employee_id,
        month=_text(_read(values, "month")),
        target_revenue_pc=None if raw_target in (None, "") else _number(raw_target),
    )


def _optional_text(value: Any) -> str | None:
    return _text(value) or None


def parse_employee(values: Any) -> EmployeeProfile | None:
    if values is None:
        return None
    employee_id = _text(_read(values, "id"))
    name = _text(_read(values, "name"))
    if not employee_id or not name:
        return None
    return EmployeeProfile(
        id=employee_id,
        name=name,
        region=_optional_text(_read(values, "region")),
        default_store_id=_optional_text(_read(values, "default_store_id")),
        regular_day_off=_optional_text(_read(values, "regular_day_off")),
    )


def parse_store(values: Any) -> StoreProfile | None:
    if values is None:
        return None
    store_id = _text(_read(values, "id"))
    name = _text(_read(values, "name"))
    if not store_id or not name:
        return None
    return StoreProfile(
        id=store_id,
        name=name,
        province=_optional_text(_read(values, "province")),
        region=_optional_text(_read(values, "region")),
    )


def parse_rows(rows: Iterable[Any], parser: Callable[[Any], T | None]) -> ParsedRows[T]:
    parsed: list[T] = []
    discarded = 0
    for raw in rows:
        item = parser(raw)
        if item is None:
            discarded += 1
            continue
        parsed.append(item)
    return ParsedRows(rows=tuple(parsed), discarded=discarded)
