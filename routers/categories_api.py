from fastapi import APIRouter, Depends, HTTPException

from categories import CategoryService
from dependencies import get_category_service
from models import Category, CategoryIn, CategoryUpdate

router = APIRouter()


@router.post("/categories", response_model=Category, status_code=201)
def create_category_api(
    body: CategoryIn,
    svc: CategoryService = Depends(get_category_service),
):
    return svc.create(body)


@router.get("/categories", response_model=list[Category])
def list_categories_api(svc: CategoryService = Depends(get_category_service)):
    return svc.list()


@router.get("/categories/{category_id}", response_model=Category)
def get_category_api(
    category_id: int,
    svc: CategoryService = Depends(get_category_service),
):
    category = svc.get_by_id(category_id)
    if not category:
        raise HTTPException(status_code=404, detail=f"category not found (id={category_id})")
    return category


@router.patch("/categories/{category_id}", response_model=Category)
def update_category_api(
    category_id: int,
    body: CategoryUpdate,
    svc: CategoryService = Depends(get_category_service),
):
    return svc.update(category_id, body)


@router.delete("/categories/{category_id}", status_code=204)
def delete_category_api(
    category_id: int,
    svc: CategoryService = Depends(get_category_service),
):
    svc.delete(category_id)
    return None
