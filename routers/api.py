from fastapi import APIRouter

from routers.auth_router import auth_router
from routers.qr_router import qr_router
from routers.reservation_router import reservation_router
from routers.user_router import user_router

router = APIRouter(
    prefix='/api'
)

router.include_router(auth_router)
router.include_router(user_router)
router.include_router(reservation_router)
router.include_router(qr_router)
