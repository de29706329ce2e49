import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from microstore.data.models.user import UserModel
from microstore.domain.errors import ValidationError
from microstore.domain.schemas import UserCreate
from microstore.repos.user_repo import UserRepo
from microstore.utils.settings import BCRYPT_ROUNDS
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def register_user(self, payload: UserCreate) -> UserModel:
        if self.repo.get_by_username(payload.username):
            raise ValidationError(f"Username {payload.username} is already taken")
        if self.repo.get_by_email(payload.email):
            raise ValidationError(f"Email {payload.email} is already registered")

        user = UserModel(
            username=payload.username,
            password=hash_password(payload.password),
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            is_admin=False,
        )
        try:
            created = self.repo.create_user(user)
        except IntegrityError:
            #wyscig z rownoleglą rejestracja
            self.repo.rollback()
            raise ValidationError("Username or email is already registered")

        logger.info(f"User {created.id} registered as {created.username}")
        return created

    def get_user(self, user_id: int) -> UserModel | None:
        return self.repo.get_user(user_id)

    def get_user_by_username(self, username: str) -> UserModel | None:
        return self.repo.get_by_username(username)

    def list_users(self) -> list[UserModel]:
        return self.repo.list_users()

    def authenticate(self, username: str, password: str) -> UserModel | None:
        user = self.repo.get_by_username(username)
        if not user:
            return None

        #stare konta maja haslo plain text - migracja przy pierwszym logowaniu
        if not user.password.startswith(_BCRYPT_PREFIXES):
            if user.password != password:
                return None
            logger.info(f"Migrating legacy password for user {user.id}")
            self.repo.update_password(user, hash_password(password))
            return user

        if not verify_password(password, user.password):
            return None
        return user
