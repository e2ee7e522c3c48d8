from typing import List, Annotated

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session

from auth.auth_bearer import require_admin
from db.database import get_db
from schemas import user, base
from service.user_service import UserService

user_router = APIRouter(
    prefix='/users',
    tags=['유저']
)


@user_router.get('', response_model=List[user.UserBase], name='유저 검색')
def get_users(current_user: Annotated[user.TokenPayload, Depends(require_admin)],
              db: Session = Depends(get_db),
              email: Annotated[
                  str | None,
                  Query(
                      title="이메일",
                      description="검색할 이메일. 해당 값을 포함하는 `email`을 가진 유저를 반환합니다",
                  ),
              ] = None,
              role: Annotated[
                  str | None,
                  Query(
                      title="유저 role",
                      description="검색할 유저의 role. Admin / Client 둘중 하나의 값을 전달해주세요.",
                  ),
              ] = None):
    """
    유저들의 리스트를 반환합니다. `email`과 `role`을 통해 검색할 수 있습니다. 만약 파라미터가 주어지지 않는다면 모든 유저들을 반환합니다.
    어드민 전용 API 입니다.
    """
    user_service = UserService(db)
    return user_service.search_users(email, role)


@user_router.delete('/{user_id}',
                    response_model=base.MessageOutputBase,
                    name='유저 삭제',
                    responses={
                        400: {
                            "description": "자기 자신을 삭제하려는 경우",
                            "content": {
                                "application/json": {
                                    "example": {"detail": "Admins cannot delete themselves"}
                                }
                            }
                        },
                        404: {
                            "description": "`user_id`값을 가진 유저가 없는 경우",
                            "content": {
                                "application/json": {
                                    "example": {"detail": "User not found"}
                                }
                            }
                        }
                    })
def delete_user(current_user: Annotated[user.TokenPayload, Depends(require_admin)],
                db: Session = Depends(get_db),
                user_id: int = Path(..., description='삭제할 유저의 `id`')):
    """
    유저를 삭제합니다. 유저의 예약도 함께 삭제되고, 예약에 연결된 QR 링크는 참조만 끊긴 채 남습니다.
    어드민 전용 API 입니다.
    """
    user_service = UserService(db)
    return user_service.delete_user(current_user, user_id)
