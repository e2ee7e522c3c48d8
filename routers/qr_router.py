from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from auth.auth_bearer import get_current_user, require_admin
from db.database import get_db
from routers.templating import templates
from schemas import qr, user, base
from service.qr_service import QRService

qr_router = APIRouter(
    prefix='/qr',
    tags=['QR']
)


@qr_router.post('/generate/{reservation_id}',
                response_model=qr.QRGenerateOutput,
                name='QR 링크 발급',
                responses={
                    404: {
                        "description": "`reservation_id`값을 가진 예약이 없는 경우",
                        "content": {
                            "application/json": {
                                "example": {"detail": "Reservation not found"}
                            }
                        }
                    },
                    403: {
                        "description": "다른 유저의 예약인 경우",
                        "content": {
                            "application/json": {
                                "example": {"detail": "Cannot generate QR links for other users' reservations"}
                            }
                        }
                    }
                })
def generate_qr(current_user: Annotated[user.TokenPayload, Depends(get_current_user)],
                request: Request,
                db: Session = Depends(get_db),
                reservation_id: int = Path(..., description='QR 링크를 발급할 예약의 `id`')):
    """
    예약 정보를 보여주는 QR 링크를 발급합니다. 링크는 10분 동안 한 번만 사용할 수 있고,
    새 링크를 발급하면 같은 예약의 이전 링크는 더 이상 사용할 수 없습니다.
    """
    qr_service = QRService(db)
    return qr_service.generate(current_user, reservation_id, str(request.base_url))


@qr_router.get('/access/{qr_hash}',
               response_model=qr.QRAccessOutput,
               name='QR 링크로 예약 조회',
               responses={
                   404: {
                       "description": "QR 링크가 없거나 예약이 삭제된 경우",
                       "content": {
                           "application/json": {
                               "example": {"detail": "QR link not found"}
                           }
                       }
                   },
                   400: {
                       "description": "QR 링크가 만료되었거나 이미 사용된 경우",
                       "content": {
                           "application/json": {
                               "example": {"detail": "QR link has expired"}
                           }
                       }
                   }
               })
def access_qr(db: Session = Depends(get_db),
              qr_hash: str = Path(..., description='QR 링크의 hash')):
    """
    QR 링크로 예약 정보를 조회합니다. 로그인 없이 사용할 수 있고, 예약자의 이메일은 포함하지 않습니다.
    """
    qr_service = QRService(db)
    return qr_service.access(qr_hash)


@qr_router.get('/view/{qr_hash}', response_class=HTMLResponse, name='QR 링크 페이지')
def view_qr(request: Request,
            db: Session = Depends(get_db),
            qr_hash: str = Path(..., description='QR 링크의 hash')):
    """
    QR 코드를 스캔했을 때 열리는 페이지입니다. `access`와 같은 규칙으로 검증합니다.
    """
    qr_service = QRService(db)
    try:
        access = qr_service.access(qr_hash)
    except HTTPException as exc:
        return templates.TemplateResponse(request, 'qr/error.html', {'detail': exc.detail},
                                          status_code=exc.status_code)

    return templates.TemplateResponse(request, 'qr/view.html', {'access': access})


@qr_router.delete('/cleanup-expired',
                  response_model=base.DeletedCountOutput,
                  name='만료된 QR 링크 삭제')
def cleanup_expired(current_user: Annotated[user.TokenPayload, Depends(require_admin)],
                    db: Session = Depends(get_db)):
    """
    만료된 QR 링크를 모두 삭제합니다. 어드민 전용 API 입니다.
    """
    qr_service = QRService(db)
    return qr_service.cleanup_expired()
