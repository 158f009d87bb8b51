import os
import tempfile
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# ---- テスト用DBパス（アプリのimportより先に設定する）----
_TMP_DIR = Path(tempfile.mkdtemp(prefix="asset_lending_"))
os.environ["APP_DB_PATH"] = str(_TMP_DIR / "test_inventory.db")
os.environ.pop("APP_DATABASE_URL", None)


@pytest.fixture(scope="session")
def app_module():
    import main

    return main


@pytest.fixture()
def client(app_module):
    # get_db を override（テスト用SessionLocalを使う）
    def _get_db_override():
        db = app_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app_module.app.dependency_overrides[app_module.get_db] = _get_db_override
    with TestClient(app_module.app) as c:
        yield c
    app_module.app.dependency_overrides.clear()


@pytest.fixture()
def db_session(app_module):
    db = app_module.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db(app_module, db_session):
    # 各テスト前にテーブルを全消し（順序注意：lendings -> assets -> categories -> users）
    from sqlalchemy import delete
    from orm import LendingORM, AssetORM, CategoryORM, UserORM

    db_session.execute(delete(LendingORM))
    db_session.execute(delete(AssetORM))
    db_session.execute(delete(CategoryORM))
    db_session.execute(delete(UserORM))
    db_session.commit()
    yield


@pytest.fixture()
def staff_user(db_session):
    from models import UserIn
    from users import UserService

    return UserService(db_session).create(
        UserIn(username="clerk", email="clerk@example.com", password="secret1", role="staff")
    )


@pytest.fixture()
def electronics(db_session):
    from categories import CategoryService
    from models import CategoryIn

    return CategoryService(db_session).create(CategoryIn(name="Electronics", description="Gadgets"))


@pytest.fixture()
def laptop(db_session, electronics):
    from assets import AssetService
    from models import AssetIn

    return AssetService(db_session).create(
        AssetIn(
            name="Laptop",
            category_id=electronics.id,
            serial_number="SN-001",
            purchase_price=1500.50,
            current_value=1200,
            location="Shelf A",
        )
    )


@pytest.fixture()
def lend(db_session, staff_user):
    """Factory: lend an asset for ``days`` (negative = already past due)."""
    from lendings import LendingEngine
    from models import LendingIn, utcnow

    def _lend(asset_id: int, borrower: str = "Jane", days: int = 7, **extra):
        body = LendingIn(
            asset_id=asset_id,
            borrower_name=borrower,
            expected_return_date=utcnow() + timedelta(days=days),
            lent_by_user_id=staff_user.id,
            **extra,
        )
        return LendingEngine(db_session).create_lending(body)

    return _lend
