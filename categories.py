from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session

from db import atomic
from errors import ConflictError, NotFoundError
from models import Category, CategoryIn, CategoryUpdate, utcnow
from orm import AssetORM, CategoryORM

logger = logging.getLogger(__name__)


def category_to_schema(c: CategoryORM) -> Category:
    return Category(
        id=c.id,
        name=c.name,
        description=c.description,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


class CategoryService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, body: CategoryIn, *, commit: bool = True) -> Category:
        now = utcnow()
        c = CategoryORM(
            name=body.name,
            description=body.description,
            created_at=now,
            updated_at=now,
        )
        with atomic(self.db, commit=commit):
            self.db.add(c)
        logger.info("category created id=%s name=%s", c.id, c.name)
        return category_to_schema(c)

    def list(self) -> list[Category]:
        rows = self.db.execute(select(CategoryORM).order_by(CategoryORM.id.asc())).scalars().all()
        return [category_to_schema(c) for c in rows]

    def get_by_id(self, category_id: int) -> Optional[Category]:
        row = self.db.get(CategoryORM, category_id)
        return category_to_schema(row) if row else None

    def exists(self, category_id: int) -> bool:
        return self.db.get(CategoryORM, category_id) is not None

    def update(self, category_id: int, body: CategoryUpdate, *, commit: bool = True) -> Category:
        c = self.db.get(CategoryORM, category_id)
        if not c:
            raise NotFoundError("category", category_id)

        # explicit null is kept (clears description); omitted fields are not
        data = body.model_dump(exclude_unset=True)
        if data.get("name", "") is None:
            del data["name"]
        if not data:
            return category_to_schema(c)

        with atomic(self.db, commit=commit):
            for k, v in data.items():
                setattr(c, k, v)
            c.updated_at = utcnow()
        logger.info("category updated id=%s fields=%s", category_id, sorted(data))
        return category_to_schema(c)

    def count_assets(self, category_id: int) -> int:
        used = self.db.execute(
            select(func.count()).select_from(AssetORM).where(AssetORM.category_id == category_id)
        ).scalar_one()
        return int(used)

    def delete(self, category_id: int, *, commit: bool = True) -> bool:
        c = self.db.get(CategoryORM, category_id)
        if not c:
            raise NotFoundError("category", category_id)

        used = self.count_assets(category_id)
        if used > 0:
            logger.warning("category delete blocked id=%s assets=%s", category_id, used)
            raise ConflictError(f"cannot delete category with {used} associated assets (id={category_id})")

        with atomic(self.db, commit=commit):
            self.db.execute(delete(CategoryORM).where(CategoryORM.id == category_id))
        logger.info("category deleted id=%s", category_id)
        return True
