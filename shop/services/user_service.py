from sqlalchemy.orm import Session

from shop.data.models.user import UserModel
from shop.domain.errors import EmailTaken, UserNotFound
from shop.domain.schemas import UserCreate, UserRead
from shop.repos.user_repo import UserRepo
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        # idempotentne po id: ponowna rejestracja zwraca istniejacego usera
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        email = payload.email.strip().lower() if payload.email else None
        if email and self.repo.get_by_email(email):
            raise EmailTaken(email)

        user = UserModel(id=payload.id, name=payload.name, email=email, user_type=payload.user_type)
        created = self.repo.create_user(user)
        logger.info(f"Utworzono uzytkownika {created.id} ({created.user_type})")
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound(user_id)
        return UserRead.model_validate(user)

    def require_admin(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user or not user.is_admin:
            raise PermissionError("Admin privileges required")
        return user
