from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session

from categories import category_to_schema
from db import atomic
from errors import ConflictError, NotFoundError
from models import Asset, AssetIn, AssetStatus, AssetUpdate, AssetWithCategory, utcnow
from orm import AssetORM, CategoryORM, LendingORM

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
MONEY_FIELDS = ("purchase_price", "current_value")
# required columns; an explicit null in a patch leaves them untouched
NON_NULLABLE = ("name", "category_id", "status")


def to_money(value: float | Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def from_money(value: Decimal | float | None) -> float | None:
    if value is None:
        return None
    return float(value)


def asset_to_schema(a: AssetORM) -> Asset:
    return Asset(
        id=a.id,
        name=a.name,
        description=a.description,
        category_id=a.category_id,
        serial_number=a.serial_number,
        purchase_date=a.purchase_date,
        purchase_price=from_money(a.purchase_price),
        current_value=from_money(a.current_value),
        status=a.status,  # type: ignore
        location=a.location,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


def asset_with_category(a: AssetORM, c: CategoryORM) -> AssetWithCategory:
    return AssetWithCategory(
        **asset_to_schema(a).model_dump(),
        category=category_to_schema(c),
    )


def _joined_assets():
    # inner join: an asset whose category vanished is not listed
    return (
        select(AssetORM, CategoryORM)
        .join(CategoryORM, AssetORM.category_id == CategoryORM.id)
        .order_by(AssetORM.id.asc())
    )


class AssetService:
    def __init__(self, db: Session):
        self.db = db

    def _require_category(self, category_id: int) -> None:
        if self.db.get(CategoryORM, category_id) is None:
            raise ConflictError(f"category does not exist (id={category_id})")

    def create(self, body: AssetIn, *, commit: bool = True) -> Asset:
        self._require_category(body.category_id)

        now = utcnow()
        a = AssetORM(
            name=body.name,
            description=body.description,
            category_id=body.category_id,
            serial_number=body.serial_number,
            purchase_date=body.purchase_date,
            purchase_price=to_money(body.purchase_price),
            current_value=to_money(body.current_value),
            status=body.status,
            location=body.location,
            created_at=now,
            updated_at=now,
        )
        with atomic(self.db, commit=commit):
            self.db.add(a)
        logger.info("asset created id=%s category_id=%s status=%s", a.id, a.category_id, a.status)
        return asset_to_schema(a)

    def list(self) -> list[AssetWithCategory]:
        rows = self.db.execute(_joined_assets()).all()
        return [asset_with_category(a, c) for a, c in rows]

    def get_by_id(self, asset_id: int) -> Optional[AssetWithCategory]:
        row = self.db.execute(_joined_assets().where(AssetORM.id == asset_id)).first()
        return asset_with_category(*row) if row else None

    def list_by_category(self, category_id: int) -> list[AssetWithCategory]:
        rows = self.db.execute(_joined_assets().where(AssetORM.category_id == category_id)).all()
        return [asset_with_category(a, c) for a, c in rows]

    def list_by_status(self, status: AssetStatus) -> list[AssetWithCategory]:
        rows = self.db.execute(_joined_assets().where(AssetORM.status == status)).all()
        return [asset_with_category(a, c) for a, c in rows]

    def update(self, asset_id: int, body: AssetUpdate, *, commit: bool = True) -> Asset:
        """Apply the fields present in ``body``.

        ``status`` is written as given. This is the administrative override:
        no lending-lifecycle check is made here, so an operator can move an
        asset to ``retired`` or back to ``available`` by hand.
        """
        a = self.db.get(AssetORM, asset_id)
        if not a:
            raise NotFoundError("asset", asset_id)

        data = body.model_dump(exclude_unset=True)
        for k in NON_NULLABLE:
            if k in data and data[k] is None:
                del data[k]

        if "category_id" in data:
            self._require_category(data["category_id"])

        for k in MONEY_FIELDS:
            if k in data:
                data[k] = to_money(data[k])

        with atomic(self.db, commit=commit):
            for k, v in data.items():
                setattr(a, k, v)
            a.updated_at = utcnow()
        logger.info("asset updated id=%s fields=%s", asset_id, sorted(data))
        return asset_to_schema(a)

    def count_lendings(self, asset_id: int) -> int:
        n = self.db.execute(
            select(func.count()).select_from(LendingORM).where(LendingORM.asset_id == asset_id)
        ).scalar_one()
        return int(n)

    def delete(self, asset_id: int, *, commit: bool = True) -> bool:
        a = self.db.get(AssetORM, asset_id)
        if not a:
            raise NotFoundError("asset", asset_id)

        # returned lendings count too: history pins the asset forever
        history = self.count_lendings(asset_id)
        if history > 0:
            logger.warning("asset delete blocked id=%s lendings=%s", asset_id, history)
            raise ConflictError(f"cannot delete asset with lending history (id={asset_id}, lendings={history})")

        with atomic(self.db, commit=commit):
            self.db.execute(delete(AssetORM).where(AssetORM.id == asset_id))
        logger.info("asset deleted id=%s", asset_id)
        return True
