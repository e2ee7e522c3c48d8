import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from db.models import User, UserRole, Role


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_all(self) -> List[User]:
        return self.session.query(User).order_by(User.id).all()

    def get_by_id(self, _id: int) -> Optional[User]:
        return self.session.get(User, _id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter_by(email=email.lower()).first()

    def search(self, email: str, role: str) -> List[User]:
        query = self.session.query(User).filter(User.email.contains(email.lower()))
        if role:
            query = query.filter(User.roles.any(UserRole.role == role))
        return query.order_by(User.id).all()

    def exist_by_email(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def create(self, email: str, password_hash: str, first_name: str, last_name: str, security_stamp: str,
               roles: List[Role]) -> User:
        user = User(
            email=email.lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            security_stamp=security_stamp,
            roles=[UserRole(role=role.value) for role in roles]
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)

        return user

    def update_password(self, user: User, password_hash: str, security_stamp: str):
        user.password_hash = password_hash
        user.security_stamp = security_stamp
        user.failed_login_count = 0
        user.lockout_end = None
        self.session.commit()
        self.session.refresh(user)

    def register_failed_login(self, user: User, lockout_end: Optional[datetime.datetime]):
        user.failed_login_count += 1
        if lockout_end:
            user.lockout_end = lockout_end
            user.failed_login_count = 0
        self.session.commit()

    def reset_failed_logins(self, user: User):
        user.failed_login_count = 0
        user.lockout_end = None
        self.session.commit()

    def delete(self, user: User):
        self.session.delete(user)
        self.session.commit()
