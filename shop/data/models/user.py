from sqlalchemy import Column, Integer, String
from shop.data.database import Base


class UserModel(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, unique=True)
    # customer | admin
    user_type = Column(String, nullable=False, default="customer")

    @property
    def is_admin(self) -> bool:
        return self.user_type == "admin"
