#!/usr/bin/env python
from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import bindparam, create_engine, text

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.services.ingestion import KNOWN_ATTENDANCE_STATUSES
from app.services.schema_guard import REQUIRED_TABLE_COLUMNS
from app.settings import get_settings

EXPECTED_HEAD = "0001_report_sources"


def run() -> dict:
    engine = create_engine(get_settings().database_url)
    report: dict = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "checks": [],
    }

    def add(name: str, status: str, details: dict) -> None:
        report["checks"].append(
            {
                "name": name,
                "status": status,
                "details": details,
            }
        )

    with engine.connect() as conn:
        tables = set(
            conn.execute(
                text(
                    """
                    select table_name
                    from information_schema.tables
                    where table_schema='public'
                    """
                )
            ).scalars()
        )

        current_versions: list[str] = []
        if "alembic_version" in tables:
            current_versions = [
                row[0]
                for row in conn.execute(text("select version_num from alembic_version")).fetchall()
            ]
        add("alembic_version", "ok" if current_versions else "fail", {"current": current_versions})
        add(
            "migration_up_to_date",
            "ok" if EXPECTED_HEAD in current_versions else "warn",
            {"expected_head": EXPECTED_HEAD, "current": current_versions},
        )

        missing_tables = sorted(table for table in REQUIRED_TABLE_COLUMNS if table not in tables)
        add("missing_report_tables", "fail" if missing_tables else "ok", {"tables": missing_tables})

        if "attendance_logs" in tables:
            unknown_statuses = conn.execute(
                text(
                    """
                    select status, count(*)
                    from attendance_logs
                    where lower(trim(status)) not in :statuses
                    group by status
                    """
                ).bindparams(bindparam("statuses", expanding=True)),
                {"statuses": list(KNOWN_ATTENDANCE_STATUSES)},
            ).fetchall()
            add(
                "attendance_unknown_status",
                "warn" if unknown_statuses else "ok",
                {"rows": [list(row) for row in unknown_statuses]},
            )

            orphan_employee_names = conn.execute(
                text(
                    """
                    select distinct a.employee_name
                    from attendance_logs a
                    left join employees e on trim(e.name) = trim(a.employee_name)
                    where e.id is null
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "attendance_unknown_employee_name",
                "warn" if orphan_employee_names else "ok",
                {"sample_names": [row[0] for row in orphan_employee_names]},
            )

        if "sales_records" in tables:
            unpriced_sales = conn.execute(
                text(
                    """
                    select id
                    from sales_records
                    where coalesce(unit_price, 0) = 0 and total is null
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "sales_without_price_or_total",
                "warn" if unpriced_sales else "ok",
                {"sample_ids": [row[0] for row in unpriced_sales]},
            )

        if "leave_requests" in tables:
            inverted_leaves = conn.execute(
                text(
                    """
                    select id
                    from leave_requests
                    where end_date < start_date
                    limit 20
                    """
                )
            ).fetchall()
            add(
                "leave_inverted_range",
                "fail" if inverted_leaves else "ok",
                {"sample_ids": [row[0] for row in inverted_leaves]},
            )

    return report


if __name__ == "__main__":
    print(json.dumps(run(), ensure_ascii=False, indent=2))
