from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_user_service
from models import LoginIn, User, UserIn
from users import UserService

router = APIRouter()


@router.post("/users", response_model=User, status_code=201)
def create_user_api(
    body: UserIn,
    svc: UserService = Depends(get_user_service),
):
    return svc.create(body)


@router.get("/users", response_model=list[User])
def list_users_api(svc: UserService = Depends(get_user_service)):
    return svc.list()


@router.post("/login", response_model=User)
def login_api(
    body: LoginIn,
    svc: UserService = Depends(get_user_service),
):
    # credentials check only; no session or token is issued
    user = svc.authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="invalid username or password")
    return user
