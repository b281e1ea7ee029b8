from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shop.api.errors import domain_errors
from shop.data.database import get_db
from shop.domain.schemas import UserCreate, UserRead
from shop.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    with domain_errors():
        return UserService(db).create_user(payload)


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    with domain_errors():
        return UserService(db).get_user(user_id)
