from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_lending_engine
from lendings import LendingEngine
from models import Lending, LendingIn, LendingUpdate, LendingWithDetails, ReturnIn

router = APIRouter()


@router.post("/lendings", response_model=Lending, status_code=201)
def create_lending_api(
    body: LendingIn,
    engine: LendingEngine = Depends(get_lending_engine),
):
    return engine.create_lending(body)


@router.post("/lendings/return", response_model=Lending)
def return_asset_api(
    body: ReturnIn,
    engine: LendingEngine = Depends(get_lending_engine),
):
    return engine.return_asset(body)


@router.get("/lendings", response_model=list[LendingWithDetails])
def list_lendings_api(engine: LendingEngine = Depends(get_lending_engine)):
    return engine.list()


@router.get("/lendings/active", response_model=list[LendingWithDetails])
def list_active_lendings_api(engine: LendingEngine = Depends(get_lending_engine)):
    return engine.list_active()


@router.get("/lendings/overdue", response_model=list[LendingWithDetails])
def list_overdue_lendings_api(engine: LendingEngine = Depends(get_lending_engine)):
    return engine.list_overdue()


@router.get("/lendings/by-asset/{asset_id}", response_model=list[LendingWithDetails])
def list_lendings_by_asset_api(
    asset_id: int,
    engine: LendingEngine = Depends(get_lending_engine),
):
    return engine.list_by_asset(asset_id)


@router.get("/lendings/{lending_id}", response_model=LendingWithDetails)
def get_lending_api(
    lending_id: int,
    engine: LendingEngine = Depends(get_lending_engine),
):
    lending = engine.get_by_id(lending_id)
    if not lending:
        raise HTTPException(status_code=404, detail=f"lending record not found (id={lending_id})")
    return lending


@router.patch("/lendings/{lending_id}", response_model=Lending)
def update_lending_api(
    lending_id: int,
    body: LendingUpdate,
    engine: LendingEngine = Depends(get_lending_engine),
):
    return engine.update_lending(lending_id, body)
