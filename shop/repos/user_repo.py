from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shop.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_email(self, email: str) -> UserModel | None:
        stmt = select(UserModel).where(func.lower(UserModel.email) == email.lower())
        return self.db.execute(stmt).scalars().first()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
