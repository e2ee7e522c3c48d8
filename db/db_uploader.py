"""
초기 어드민 계정을 만드는 데 사용됩니다. 계정 정보는 `ADMIN_EMAIL`, `ADMIN_PASSWORD` 환경 변수에서 가져옵니다.
"""

import logging

from config import ENVIRONMENT, ADMIN_EMAIL, ADMIN_PASSWORD
from db.database import SessionLocal
from db.models import Role
from repository.user_repository import UserRepository
from util import hash_password, new_security_stamp

logger = logging.getLogger(__name__)


def init_data():
    # 테스트 실행 시에는 사전 데이터 실행 스킵
    if ENVIRONMENT == 'test':
        return

    with SessionLocal() as session:
        repository = UserRepository(session)
        if repository.exist_by_email(ADMIN_EMAIL):
            return

        admin = repository.create(
            email=ADMIN_EMAIL,
            password_hash=hash_password(ADMIN_PASSWORD),
            first_name='Admin',
            last_name='Reservas',
            security_stamp=new_security_stamp(),
            roles=[Role.ADMIN]
        )
        logger.info(f'Admin account {admin.email} created')
