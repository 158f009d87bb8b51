"""Lending lifecycle: lend an available asset, take it back, and the joined views.

A lending moves ``active -> returned`` exactly once. Both transitions touch
two rows (the lending and its asset) and are committed together; the status
checks are repeated as compare-and-set UPDATEs inside the same transaction,
so two callers racing on one asset cannot both succeed.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from assets import asset_with_category
from db import atomic
from errors import ConflictError, NotFoundError
from models import (
    AssetCondition,
    Lending,
    LendingIn,
    LendingUpdate,
    LendingWithDetails,
    ReturnIn,
    utcnow,
)
from orm import AssetORM, CategoryORM, LendingORM, UserORM

logger = logging.getLogger(__name__)

CONDITION_TO_ASSET_STATUS: dict[Optional[AssetCondition], str] = {
    None: "available",
    "good": "available",
    "damaged": "damaged",
    "needs_maintenance": "maintenance",
}


def lending_to_schema(l: LendingORM) -> Lending:
    return Lending(
        id=l.id,
        asset_id=l.asset_id,
        borrower_name=l.borrower_name,
        borrower_email=l.borrower_email,
        borrower_phone=l.borrower_phone,
        department=l.department,
        lent_date=l.lent_date,
        expected_return_date=l.expected_return_date,
        actual_return_date=l.actual_return_date,
        status=l.status,  # type: ignore
        notes=l.notes,
        lent_by_user_id=l.lent_by_user_id,
        returned_by_user_id=l.returned_by_user_id,
        created_at=l.created_at,
        updated_at=l.updated_at,
    )


def _joined_lendings():
    return (
        select(LendingORM, AssetORM, CategoryORM)
        .join(AssetORM, LendingORM.asset_id == AssetORM.id)
        .join(CategoryORM, AssetORM.category_id == CategoryORM.id)
        .order_by(LendingORM.id.asc())
    )


def overdue_clause(now):
    return (LendingORM.status == "active") & (LendingORM.expected_return_date < now)


class LendingEngine:
    def __init__(self, db: Session):
        self.db = db

    def _require_user(self, user_id: int) -> None:
        if self.db.get(UserORM, user_id) is None:
            raise NotFoundError("user", user_id)

    # ---------- transitions ----------
    def create_lending(self, body: LendingIn, *, commit: bool = True) -> Lending:
        with atomic(self.db, commit=commit):
            asset = self.db.get(AssetORM, body.asset_id, with_for_update=True, populate_existing=True)
            if asset is None:
                raise NotFoundError("asset", body.asset_id)
            if asset.status != "available":
                logger.warning("lend rejected asset_id=%s status=%s", asset.id, asset.status)
                raise ConflictError(
                    f"asset not available for lending (id={asset.id}, status={asset.status})"
                )
            self._require_user(body.lent_by_user_id)

            now = utcnow()
            flipped = self.db.execute(
                update(AssetORM)
                .where(AssetORM.id == asset.id, AssetORM.status == "available")
                .values(status="lent", updated_at=now)
            )
            if flipped.rowcount != 1:
                logger.warning("lend lost race asset_id=%s", asset.id)
                raise ConflictError(f"asset not available for lending (id={asset.id})")

            lending = LendingORM(
                asset_id=asset.id,
                borrower_name=body.borrower_name,
                borrower_email=body.borrower_email,
                borrower_phone=body.borrower_phone,
                department=body.department,
                lent_date=now,
                expected_return_date=body.expected_return_date,
                actual_return_date=None,
                status="active",
                notes=body.notes,
                lent_by_user_id=body.lent_by_user_id,
                returned_by_user_id=None,
                created_at=now,
                updated_at=now,
            )
            self.db.add(lending)

        logger.info(
            "lending created id=%s asset_id=%s borrower=%s due=%s",
            lending.id,
            lending.asset_id,
            lending.borrower_name,
            lending.expected_return_date.isoformat(),
        )
        return lending_to_schema(lending)

    def return_asset(self, body: ReturnIn, *, commit: bool = True) -> Lending:
        with atomic(self.db, commit=commit):
            lending = self.db.get(LendingORM, body.lending_id, with_for_update=True, populate_existing=True)
            if lending is None:
                raise NotFoundError("lending record", body.lending_id)
            if lending.status != "active":
                logger.warning("return rejected lending_id=%s status=%s", lending.id, lending.status)
                raise ConflictError(
                    f"lending record is not active (id={lending.id}, status={lending.status})"
                )
            self._require_user(body.returned_by_user_id)

            now = utcnow()
            values = {
                "status": "returned",
                "actual_return_date": now,
                "returned_by_user_id": body.returned_by_user_id,
                "updated_at": now,
            }
            if body.return_notes:
                values["notes"] = body.return_notes

            closed = self.db.execute(
                update(LendingORM)
                .where(LendingORM.id == lending.id, LendingORM.status == "active")
                .values(**values)
            )
            if closed.rowcount != 1:
                logger.warning("return lost race lending_id=%s", lending.id)
                raise ConflictError(f"lending record is not active (id={lending.id})")

            new_status = CONDITION_TO_ASSET_STATUS[body.asset_condition]
            self.db.execute(
                update(AssetORM)
                .where(AssetORM.id == lending.asset_id)
                .values(status=new_status, updated_at=now)
            )

        logger.info(
            "lending returned id=%s asset_id=%s asset_status=%s",
            lending.id,
            lending.asset_id,
            new_status,
        )
        return lending_to_schema(lending)

    def update_lending(self, lending_id: int, body: LendingUpdate, *, commit: bool = True) -> Lending:
        """Edit borrower details, due date or notes. Status and asset are never touched."""
        lending = self.db.get(LendingORM, lending_id)
        if lending is None:
            raise NotFoundError("lending record", lending_id)

        data = body.model_dump(exclude_unset=True)
        for k in ("borrower_name", "expected_return_date"):
            if k in data and data[k] is None:
                del data[k]

        with atomic(self.db, commit=commit):
            for k, v in data.items():
                setattr(lending, k, v)
            lending.updated_at = utcnow()
        logger.info("lending updated id=%s fields=%s", lending_id, sorted(data))
        return lending_to_schema(lending)

    # ---------- views ----------
    def _details(self, stmt) -> list[LendingWithDetails]:
        rows = self.db.execute(stmt).all()
        return [
            LendingWithDetails(**lending_to_schema(l).model_dump(), asset=asset_with_category(a, c))
            for l, a, c in rows
        ]

    def list(self) -> list[LendingWithDetails]:
        return self._details(_joined_lendings())

    def list_active(self) -> list[LendingWithDetails]:
        return self._details(_joined_lendings().where(LendingORM.status == "active"))

    def list_overdue(self) -> list[LendingWithDetails]:
        return self._details(_joined_lendings().where(overdue_clause(utcnow())))

    def get_by_id(self, lending_id: int) -> Optional[LendingWithDetails]:
        found = self._details(_joined_lendings().where(LendingORM.id == lending_id))
        return found[0] if found else None

    def list_by_asset(self, asset_id: int) -> list[LendingWithDetails]:
        return self._details(_joined_lendings().where(LendingORM.asset_id == asset_id))
