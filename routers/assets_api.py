from fastapi import APIRouter, Depends, HTTPException

from assets import AssetService
from dependencies import get_asset_service
from models import Asset, AssetIn, AssetStatus, AssetUpdate, AssetWithCategory

router = APIRouter()


@router.post("/assets", response_model=Asset, status_code=201)
def create_asset_api(
    body: AssetIn,
    svc: AssetService = Depends(get_asset_service),
):
    return svc.create(body)


@router.get("/assets", response_model=list[AssetWithCategory])
def list_assets_api(svc: AssetService = Depends(get_asset_service)):
    return svc.list()


@router.get("/assets/by-category/{category_id}", response_model=list[AssetWithCategory])
def list_assets_by_category_api(
    category_id: int,
    svc: AssetService = Depends(get_asset_service),
):
    return svc.list_by_category(category_id)


@router.get("/assets/by-status/{status}", response_model=list[AssetWithCategory])
def list_assets_by_status_api(
    status: AssetStatus,
    svc: AssetService = Depends(get_asset_service),
):
    return svc.list_by_status(status)


@router.get("/assets/{asset_id}", response_model=AssetWithCategory)
def get_asset_api(
    asset_id: int,
    svc: AssetService = Depends(get_asset_service),
):
    asset = svc.get_by_id(asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail=f"asset not found (id={asset_id})")
    return asset


@router.patch("/assets/{asset_id}", response_model=Asset)
def update_asset_api(
    asset_id: int,
    body: AssetUpdate,
    svc: AssetService = Depends(get_asset_service),
):
    return svc.update(asset_id, body)


@router.delete("/assets/{asset_id}", status_code=204)
def delete_asset_api(
    asset_id: int,
    svc: AssetService = Depends(get_asset_service),
):
    svc.delete(asset_id)
    return None
