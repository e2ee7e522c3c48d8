from typing import Annotated

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session
from starlette import status

from auth.auth_bearer import get_current_user
from db.database import get_db
from schemas import reservation, user, base
from service.reservation_service import ReservationService

reservation_router = APIRouter(
    prefix='/reservas',
    tags=['예약']
)

NOT_FOUND_RESPONSE = {
    "description": "`reservation_id`값을 가진 예약이 없는 경우",
    "content": {
        "application/json": {
            "example": {"detail": "Reservation not found"}
        }
    }
}

FORBIDDEN_RESPONSE = {
    "description": "다른 유저의 예약인 경우",
    "content": {
        "application/json": {
            "example": {"detail": "Cannot access other users' reservations"}
        }
    }
}


@reservation_router.get('',
                        response_model=reservation.PagedReservations,
                        name='내 예약 목록 조회')
def get_my_reservations(current_user: Annotated[user.TokenPayload, Depends(get_current_user)],
                        db: Session = Depends(get_db),
                        page: int = Query(1, description='페이지 번호. 1보다 작으면 1로 처리합니다'),
                        limit: int = Query(10, description='페이지 크기. 1~100 범위를 벗어나면 10으로 처리합니다')):
    """
    내 예약 목록을 최근에 만든 순서로 반환합니다.
    """
    reservation_service = ReservationService(db)
    return reservation_service.get_my_reservations(current_user, page, limit)


@reservation_router.get('/{reservation_id}',
                        response_model=reservation.ReservationDetail,
                        name='예약 상세 조회',
                        responses={404: NOT_FOUND_RESPONSE, 403: FORBIDDEN_RESPONSE})
def get_reservation(current_user: Annotated[user.TokenPayload, Depends(get_current_user)],
                    db: Session = Depends(get_db),
                    reservation_id: int = Path(..., description='조회할 예약의 `id`')):
    reservation_service = ReservationService(db)
    return reservation_service.get_reservation(current_user, reservation_id)


@reservation_router.post('',
                         status_code=status.HTTP_201_CREATED,
                         response_model=reservation.ReservationDetail,
                         name='예약 생성',
                         responses={
                             400: {
                                 "description": "예약 일시가 과거인 경우",
                                 "content": {
                                     "application/json": {
                                         "example": {"detail": "Scheduled time must be in the future"}
                                     }
                                 }
                             }
                         })
def make_reservation(current_user: Annotated[user.TokenPayload, Depends(get_current_user)],
                     make_reservation_request: reservation.CreateReservationInput,
                     db: Session = Depends(get_db)):
    """
    새 예약을 만듭니다. 예약 일시는 현재보다 미래여야 하고, 상태는 항상 `Active`로 시작합니다.
    """
    reservation_service = ReservationService(db)
    return reservation_service.make_reservation(current_user, make_reservation_request)


@reservation_router.put('/{reservation_id}',
                        response_model=reservation.ReservationDetail,
                        name='예약 수정',
                        responses={404: NOT_FOUND_RESPONSE, 403: FORBIDDEN_RESPONSE})
def edit_reservation(current_user: Annotated[user.TokenPayload, Depends(get_current_user)],
                     edit_reservation_request: reservation.UpdateReservationInput,
                     db: Session = Depends(get_db),
                     reservation_id: int = Path(..., description='수정할 예약의 `id`')):
    """
    예약을 수정합니다. `status`를 생략하면 기존 상태를 유지합니다.
    """
    reservation_service = ReservationService(db)
    return reservation_service.edit_reservation(current_user, reservation_id, edit_reservation_request)


@reservation_router.delete('/{reservation_id}',
                           response_model=base.MessageOutputBase,
                           name='예약 삭제',
                           responses={
                               200: {
                                   "content": {
                                       "application/json": {
                                           "example": {"message": "Reservation deleted successfully"}
                                       }
                                   }
                               },
                               404: NOT_FOUND_RESPONSE,
                               403: FORBIDDEN_RESPONSE
                           })
def delete_reservation(current_user: Annotated[user.TokenPayload, Depends(get_current_user)],
                       db: Session = Depends(get_db),
                       reservation_id: int = Path(..., description='삭제할 예약의 `id`')):
    """
    예약을 삭제합니다. 예약에 연결된 QR 링크는 더 이상 예약 정보를 보여주지 않습니다.
    """
    reservation_service = ReservationService(db)
    return reservation_service.delete_reservation(current_user, reservation_id)
