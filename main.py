import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette import status

from config import CORS_ORIGINS, LOG_LEVEL
from db import models
from db.database import engine
from db.db_uploader import init_data
from routers import api
from routers.web_router import web_router, LoginRequired, login_required_handler

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s %(levelname)s [%(name)s] %(message)s')
logger = logging.getLogger(__name__)

models.Base.metadata.create_all(bind=engine)

init_data()

description = """
예약 관리 시스템 API
고객이 서비스 예약을 만들고 관리하며, 예약 정보를 10분 동안 유효한 QR 링크로 공유합니다.

아래와 같은 ENDPOINT를 지원합니다
## 인증

* **회원가입**
* **로그인**
* **내 정보 조회**
* **비밀번호 재설정 요청**
* **비밀번호 재설정**

## 유저
* **유저 검색**
* **유저 삭제**

## 예약
* **내 예약 목록 조회**
* **예약 상세 조회**
* **예약 생성**
* **예약 수정**
* **예약 삭제**

## QR
* **QR 링크 발급**
* **QR 링크로 예약 조회**
* **QR 링크 페이지**
* **만료된 QR 링크 삭제**
"""
tags_metadata = [
    {
        'name': '인증',
        'description': '회원가입, 로그인, 비밀번호 재설정과 관련된 API'
    },
    {
        'name': '유저',
        'description': '유저 관리 API. 어드민만 사용할 수 있습니다'
    },
    {
        'name': '예약',
        'description': '예약과 관련된 API. 자신의 예약만 조회하고 수정할 수 있습니다'
    },
    {
        'name': 'QR',
        'description': '예약 정보를 공유하는 QR 링크와 관련된 API'
    }
]

app = FastAPI(
    title='예약 관리 시스템 API 문서',
    description=description,
    summary='서비스 예약 및 QR 접근 링크 처리 시스템',
    openapi_tags=tags_metadata
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.add_exception_handler(LoginRequired, login_required_handler)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f'Unhandled error on {request.method} {request.url.path}')
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content={'detail': 'Internal server error'})


app.include_router(api.router)
app.include_router(web_router)


if __name__ == '__main__':
    uvicorn.run('main:app')
