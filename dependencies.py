from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from assets import AssetService
from categories import CategoryService
from db import SessionLocal
from lendings import LendingEngine
from reports import ReportingEngine
from users import UserService


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


def get_asset_service(db: Session = Depends(get_db)) -> AssetService:
    return AssetService(db)


def get_lending_engine(db: Session = Depends(get_db)) -> LendingEngine:
    return LendingEngine(db)


def get_reporting_engine(db: Session = Depends(get_db)) -> ReportingEngine:
    return ReportingEngine(db)
