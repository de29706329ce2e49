# microstore/api/routers/users.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from microstore.api.deps import require_admin
from microstore.data.database import get_db
from microstore.domain.errors import ValidationError
from microstore.domain.schemas import LoginIn, UserCreate, UserRead
from microstore.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.register_user(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=list[UserRead])
def list_users(db: Session = Depends(get_db), _admin=Depends(require_admin)):
    return UserService(db).list_users()


@router.post("/login", response_model=UserRead)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = UserService(db).authenticate(payload.username, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return user


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = UserService(db).get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
