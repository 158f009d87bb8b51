"""Read-only aggregation over assets, lendings and categories.

Nothing here writes. An empty match yields an empty ``data`` list, never an
error; store errors propagate unchanged.
"""

import logging
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Any, Callable, Optional

from sqlalchemy import case, desc, func, select
from sqlalchemy.orm import Session, aliased

from assets import from_money, to_money
from errors import ConflictError
from lendings import lending_to_schema, overdue_clause
from models import ASSET_STATUSES, DashboardSummary, ReportData, ReportIn, utcnow
from orm import AssetORM, CategoryORM, LendingORM, UserORM

logger = logging.getLogger(__name__)

NO_ASSET = "N/A"
UNKNOWN_USER = "Unknown"
RECENT_LIMIT = 5


def _day(value: Optional[datetime]) -> Optional[str]:
    return value.date().isoformat() if value else None


def _money_total(value: Decimal | float | None) -> float:
    return from_money(to_money(value or 0)) or 0.0


def _params(body: ReportIn, *keys: str) -> dict[str, Any]:
    return {k: getattr(body, k) for k in keys if getattr(body, k) is not None}


def _within(column, body: ReportIn):
    """Range filter on ``column``; inclusive on both ends.

    An ``end_date`` at exactly midnight is a calendar-day bound (a plain
    ``2024-01-31`` parses to midnight) and covers that whole day.
    """
    clauses = []
    if body.start_date is not None:
        clauses.append(column >= body.start_date)
    if body.end_date is not None:
        if body.end_date.time() == time.min:
            clauses.append(column < body.end_date + timedelta(days=1))
        else:
            clauses.append(column <= body.end_date)
    return clauses


class ReportingEngine:
    def __init__(self, db: Session):
        self.db = db

    def _report(self, report_type: str, parameters: dict[str, Any], data: list[dict[str, Any]]) -> ReportData:
        logger.debug("report generated type=%s rows=%s", report_type, len(data))
        return ReportData(
            report_type=report_type,  # type: ignore
            generated_at=utcnow(),
            parameters=parameters,
            data=data,
        )

    def generate_report(self, body: ReportIn) -> ReportData:
        generators: dict[str, Callable[[ReportIn], ReportData]] = {
            "inventory": self.inventory_report,
            "lending": self.lending_report,
            "returns": self.returns_report,
            "overdue": lambda _body: self.overdue_report(),
            "category_summary": lambda _body: self.category_summary_report(),
        }
        generator = generators.get(body.report_type)
        if generator is None:
            raise ConflictError(f"unsupported report type: {body.report_type}")
        return generator(body)

    # ---------- inventory ----------
    def inventory_report(self, body: ReportIn) -> ReportData:
        status_counts = [
            func.sum(case((AssetORM.status == s, 1), else_=0)).label(s) for s in ASSET_STATUSES
        ]
        stmt = (
            select(
                CategoryORM.id,
                CategoryORM.name,
                func.count(AssetORM.id).label("total_assets"),
                *status_counts,
                func.sum(AssetORM.purchase_price).label("total_purchase_value"),
                func.sum(AssetORM.current_value).label("total_current_value"),
            )
            .join(AssetORM, AssetORM.category_id == CategoryORM.id)
            .group_by(CategoryORM.id, CategoryORM.name)
            .order_by(CategoryORM.id.asc())
        )
        if body.category_id is not None:
            stmt = stmt.where(AssetORM.category_id == body.category_id)
        if body.status is not None:
            stmt = stmt.where(AssetORM.status == body.status)

        data = []
        for row in self.db.execute(stmt).all():
            m = row._mapping
            item: dict[str, Any] = {
                "category_id": m["id"],
                "category_name": m["name"],
                "total_assets": int(m["total_assets"]),
            }
            for s in ASSET_STATUSES:
                item[s] = int(m[s] or 0)
            item["total_purchase_value"] = _money_total(m["total_purchase_value"])
            item["total_current_value"] = _money_total(m["total_current_value"])
            data.append(item)

        params = _params(body, "start_date", "end_date", "category_id", "status")
        return self._report("inventory", params, data)

    # ---------- lending / returns ----------
    def lending_report(self, body: ReportIn) -> ReportData:
        lender = aliased(UserORM)
        stmt = (
            select(LendingORM, AssetORM.name, CategoryORM.name, lender.username)
            .join(AssetORM, LendingORM.asset_id == AssetORM.id)
            .join(CategoryORM, AssetORM.category_id == CategoryORM.id)
            .join(lender, LendingORM.lent_by_user_id == lender.id)
            .order_by(LendingORM.lent_date.asc(), LendingORM.id.asc())
        )
        stmt = stmt.where(*_within(LendingORM.lent_date, body))

        data = [
            {
                "lending_id": l.id,
                "asset_name": asset_name,
                "category_name": category_name,
                "borrower_name": l.borrower_name,
                "borrower_email": l.borrower_email,
                "department": l.department,
                "lent_date": _day(l.lent_date),
                "expected_return_date": _day(l.expected_return_date),
                "actual_return_date": _day(l.actual_return_date),
                "status": l.status,
                "lent_by": lent_by,
            }
            for l, asset_name, category_name, lent_by in self.db.execute(stmt).all()
        ]
        return self._report("lending", _params(body, "start_date", "end_date"), data)

    def returns_report(self, body: ReportIn) -> ReportData:
        lender = aliased(UserORM)
        returner = aliased(UserORM)
        stmt = (
            select(LendingORM, AssetORM.name, CategoryORM.name, lender.username, returner.username)
            .join(AssetORM, LendingORM.asset_id == AssetORM.id)
            .join(CategoryORM, AssetORM.category_id == CategoryORM.id)
            .join(lender, LendingORM.lent_by_user_id == lender.id)
            .outerjoin(returner, LendingORM.returned_by_user_id == returner.id)
            .where(LendingORM.actual_return_date.is_not(None))
            .order_by(LendingORM.actual_return_date.asc(), LendingORM.id.asc())
        )
        stmt = stmt.where(*_within(LendingORM.actual_return_date, body))

        data = [
            {
                "lending_id": l.id,
                "asset_name": asset_name,
                "category_name": category_name,
                "borrower_name": l.borrower_name,
                "department": l.department,
                "lent_date": _day(l.lent_date),
                "expected_return_date": _day(l.expected_return_date),
                "actual_return_date": _day(l.actual_return_date),
                "lent_by": lent_by,
                "returned_by": returned_by or UNKNOWN_USER,
                "notes": l.notes,
            }
            for l, asset_name, category_name, lent_by, returned_by in self.db.execute(stmt).all()
        ]
        return self._report("returns", _params(body, "start_date", "end_date"), data)

    # ---------- overdue ----------
    def overdue_report(self) -> ReportData:
        now = utcnow()
        lender = aliased(UserORM)
        stmt = (
            select(LendingORM, AssetORM.name, CategoryORM.name, lender.username)
            .join(AssetORM, LendingORM.asset_id == AssetORM.id)
            .join(CategoryORM, AssetORM.category_id == CategoryORM.id)
            .join(lender, LendingORM.lent_by_user_id == lender.id)
            .where(overdue_clause(now))
            .order_by(LendingORM.expected_return_date.asc(), LendingORM.id.asc())
        )
        data = [
            {
                "lending_id": l.id,
                "asset_name": asset_name,
                "category_name": category_name,
                "borrower_name": l.borrower_name,
                "borrower_email": l.borrower_email,
                "borrower_phone": l.borrower_phone,
                "department": l.department,
                "lent_date": _day(l.lent_date),
                "expected_return_date": _day(l.expected_return_date),
                # timedelta.days floors
                "days_overdue": (now - l.expected_return_date).days,
                "lent_by": lent_by,
            }
            for l, asset_name, category_name, lent_by in self.db.execute(stmt).all()
        ]
        return self._report("overdue", {}, data)

    # ---------- category summary ----------
    def category_summary_report(self) -> ReportData:
        categories = self.db.execute(
            select(CategoryORM.id, CategoryORM.name).order_by(CategoryORM.id.asc())
        ).all()

        per_asset = self.db.execute(
            select(
                AssetORM.id,
                AssetORM.name,
                AssetORM.category_id,
                AssetORM.current_value,
                func.count(LendingORM.id).label("lendings"),
                func.sum(case((LendingORM.status == "active", 1), else_=0)).label("active"),
            )
            .outerjoin(LendingORM, LendingORM.asset_id == AssetORM.id)
            .group_by(AssetORM.id, AssetORM.name, AssetORM.category_id, AssetORM.current_value)
            .order_by(AssetORM.id.asc())
        ).all()

        by_category: dict[int, list] = {}
        for row in per_asset:
            by_category.setdefault(row.category_id, []).append(row)

        data = []
        for category_id, category_name in categories:
            assets = by_category.get(category_id, [])
            total_assets = len(assets)
            total_value = sum((a.current_value or Decimal("0") for a in assets), Decimal("0"))
            total_lendings = sum(int(a.lendings) for a in assets)
            active_lendings = sum(int(a.active or 0) for a in assets)

            most = least = None
            for a in assets:
                if most is None or a.lendings > most.lendings:
                    most = a
                if least is None or a.lendings < least.lendings:
                    least = a

            data.append(
                {
                    "category_id": category_id,
                    "category_name": category_name,
                    "total_assets": total_assets,
                    "total_value": _money_total(total_value),
                    "total_lendings": total_lendings,
                    "active_lendings": active_lendings,
                    "utilization_rate": round(active_lendings / total_assets, 2) if total_assets else 0,
                    "most_lent_asset": most.name if most else NO_ASSET,
                    "most_lent_count": int(most.lendings) if most else 0,
                    "least_lent_asset": least.name if least else NO_ASSET,
                    "least_lent_count": int(least.lendings) if least else 0,
                }
            )
        return self._report("category_summary", {}, data)

    # ---------- dashboard ----------
    def dashboard_summary(self) -> DashboardSummary:
        counts = dict(
            self.db.execute(
                select(AssetORM.status, func.count()).group_by(AssetORM.status)
            ).all()
        )
        total_categories = self.db.execute(select(func.count()).select_from(CategoryORM)).scalar_one()
        overdue = self.db.execute(
            select(func.count()).select_from(LendingORM).where(overdue_clause(utcnow()))
        ).scalar_one()

        recent_lendings = self.db.execute(
            select(LendingORM)
            .where(LendingORM.status == "active")
            .order_by(desc(LendingORM.created_at), desc(LendingORM.id))
            .limit(RECENT_LIMIT)
        ).scalars().all()
        recent_returns = self.db.execute(
            select(LendingORM)
            .where(LendingORM.status == "returned")
            .order_by(desc(LendingORM.actual_return_date), desc(LendingORM.id))
            .limit(RECENT_LIMIT)
        ).scalars().all()

        return DashboardSummary(
            total_assets=sum(int(n) for n in counts.values()),
            available_assets=int(counts.get("available", 0)),
            lent_assets=int(counts.get("lent", 0)),
            overdue_lendings=int(overdue),
            assets_in_maintenance=int(counts.get("maintenance", 0)),
            total_categories=int(total_categories),
            recent_lendings=[lending_to_schema(l) for l in recent_lendings],
            recent_returns=[lending_to_schema(l) for l in recent_returns],
        )
