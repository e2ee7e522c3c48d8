"""
Jinja2 템플릿으로 렌더링하는 웹 화면입니다. REST API와 같은 서비스를 사용하고,
로그인 세션은 HTTP-only `access_token` 쿠키에 담긴 JWT로 유지합니다.
"""

import base64
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Form, Request, HTTPException, BackgroundTasks, Query, Path
from fastapi.responses import RedirectResponse, HTMLResponse, Response
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette import status

from auth.auth_bearer import parse_access_token
from config import JWT_EXPIRATION_MINUTES
from db.database import get_db
from db.models import ServiceType, ReservationStatus
from routers.templating import templates
from schemas.reservation import CreateReservationInput, UpdateReservationInput
from schemas.user import TokenPayload, LoginUser, RegisterUser, ForgotPasswordInput, ResetPasswordInput
from service.qr_service import QRService, render_qr_png
from service.reservation_service import ReservationService
from service.user_service import UserService

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = 'access_token'
LOGIN_URL = '/account/login'

web_router = APIRouter(
    tags=['웹 화면'],
    include_in_schema=False,
    default_response_class=HTMLResponse
)


class LoginRequired(Exception):
    pass


def login_required_handler(request: Request, exc: LoginRequired):
    response = RedirectResponse(LOGIN_URL, status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response


def get_web_user(request: Request) -> Optional[TokenPayload]:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        return None

    try:
        return parse_access_token(token)
    except HTTPException as exc:
        logger.info(f'Ignoring session cookie: {exc.detail}')
        return None


def require_web_user(current_user: Annotated[Optional[TokenPayload], Depends(get_web_user)]) -> TokenPayload:
    if current_user is None:
        raise LoginRequired()
    return current_user


def _validation_messages(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        field = '.'.join(str(loc) for loc in error['loc'])
        message = error['msg'].removeprefix('Value error, ')
        messages.append(f'{field}: {message}' if field else message)
    return messages


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def _login_redirect(token: str) -> RedirectResponse:
    response = _redirect('/dashboard')
    response.set_cookie(ACCESS_TOKEN_COOKIE, token, max_age=JWT_EXPIRATION_MINUTES * 60, httponly=True,
                        samesite='lax')
    return response


def _error_page(request: Request, current_user: TokenPayload, exc: HTTPException):
    return templates.TemplateResponse(request, 'message.html',
                                      {'current_user': current_user, 'title': 'Error', 'message': exc.detail},
                                      status_code=exc.status_code)


def _reservation_form(request: Request, current_user: TokenPayload, form: dict, errors: list[str],
                      reservation_id: Optional[int] = None, status_code: int = status.HTTP_200_OK):
    return templates.TemplateResponse(request, 'reservations/form.html', {
        'current_user': current_user,
        'form': form,
        'errors': errors,
        'reservation_id': reservation_id,
        'service_types': list(ServiceType),
        'statuses': list(ReservationStatus),
    }, status_code=status_code)


@web_router.get('/')
def index(current_user: Annotated[Optional[TokenPayload], Depends(get_web_user)]):
    return _redirect('/dashboard' if current_user else LOGIN_URL)


@web_router.get('/account/login')
def login_page(request: Request):
    return templates.TemplateResponse(request, 'account/login.html', {'errors': [], 'email': ''})


@web_router.post('/account/login')
def login(request: Request,
          email: Annotated[str, Form()],
          password: Annotated[str, Form()],
          db: Session = Depends(get_db)):
    try:
        auth = UserService(db).login(LoginUser(email=email, password=password))
    except ValidationError as exc:
        errors = _validation_messages(exc)
    except HTTPException as exc:
        errors = [exc.detail]
    else:
        return _login_redirect(auth.token)

    return templates.TemplateResponse(request, 'account/login.html', {'errors': errors, 'email': email},
                                      status_code=status.HTTP_400_BAD_REQUEST)


@web_router.get('/account/register')
def register_page(request: Request):
    return templates.TemplateResponse(request, 'account/register.html', {'errors': [], 'form': {}})


@web_router.post('/account/register')
def register(request: Request,
             background_tasks: BackgroundTasks,
             first_name: Annotated[str, Form()],
             last_name: Annotated[str, Form()],
             email: Annotated[str, Form()],
             password: Annotated[str, Form()],
             confirm_password: Annotated[str, Form()],
             db: Session = Depends(get_db)):
    form = {'first_name': first_name, 'last_name': last_name, 'email': email}
    try:
        register_user = RegisterUser(first_name=first_name, last_name=last_name, email=email, password=password,
                                     confirm_password=confirm_password)
        auth = UserService(db).register(register_user, background_tasks)
    except ValidationError as exc:
        errors = _validation_messages(exc)
    except HTTPException as exc:
        errors = [exc.detail]
    else:
        return _login_redirect(auth.token)

    return templates.TemplateResponse(request, 'account/register.html', {'errors': errors, 'form': form},
                                      status_code=status.HTTP_400_BAD_REQUEST)


@web_router.post('/account/logout')
def logout():
    response = _redirect(LOGIN_URL)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response


@web_router.get('/account/forgot-password')
def forgot_password_page(request: Request):
    return templates.TemplateResponse(request, 'account/forgot_password.html', {'errors': []})


@web_router.post('/account/forgot-password')
def forgot_password(request: Request,
                    background_tasks: BackgroundTasks,
                    email: Annotated[str, Form()],
                    db: Session = Depends(get_db)):
    try:
        result = UserService(db).forgot_password(ForgotPasswordInput(email=email), background_tasks)
    except ValidationError as exc:
        return templates.TemplateResponse(request, 'account/forgot_password.html',
                                          {'errors': _validation_messages(exc)},
                                          status_code=status.HTTP_400_BAD_REQUEST)

    return templates.TemplateResponse(request, 'message.html', {'title': 'Check your email',
                                                                'message': result.message})


@web_router.get('/account/reset-password')
def reset_password_page(request: Request, email: str = Query(''), token: str = Query('')):
    return templates.TemplateResponse(request, 'account/reset_password.html',
                                      {'errors': [], 'email': email, 'token': token})


@web_router.post('/account/reset-password')
def reset_password(request: Request,
                   email: Annotated[str, Form()],
                   token: Annotated[str, Form()],
                   new_password: Annotated[str, Form()],
                   confirm_password: Annotated[str, Form()],
                   db: Session = Depends(get_db)):
    try:
        result = UserService(db).reset_password(ResetPasswordInput(email=email, token=token,
                                                                   new_password=new_password,
                                                                   confirm_password=confirm_password))
    except ValidationError as exc:
        errors = _validation_messages(exc)
    except HTTPException as exc:
        errors = [exc.detail]
    else:
        return templates.TemplateResponse(request, 'message.html', {'title': 'Password changed',
                                                                    'message': result.message})

    return templates.TemplateResponse(request, 'account/reset_password.html',
                                      {'errors': errors, 'email': email, 'token': token},
                                      status_code=status.HTTP_400_BAD_REQUEST)


@web_router.get('/dashboard')
def dashboard(request: Request,
              current_user: Annotated[TokenPayload, Depends(require_web_user)],
              db: Session = Depends(get_db)):
    reservation_service = ReservationService(db)
    recent = reservation_service.get_recent_reservations(current_user)
    total_count = reservation_service.get_my_reservations(current_user, 1, 1).total_count

    return templates.TemplateResponse(request, 'dashboard.html', {
        'current_user': current_user,
        'recent': recent,
        'total_count': total_count,
    })


@web_router.get('/reservas')
def reservation_list(request: Request,
                     current_user: Annotated[TokenPayload, Depends(require_web_user)],
                     db: Session = Depends(get_db),
                     page: int = Query(1),
                     limit: int = Query(10)):
    paged = ReservationService(db).get_my_reservations(current_user, page, limit)
    return templates.TemplateResponse(request, 'reservations/index.html',
                                      {'current_user': current_user, 'paged': paged})


@web_router.get('/reservas/create')
def create_reservation_page(request: Request,
                            current_user: Annotated[TokenPayload, Depends(require_web_user)]):
    return _reservation_form(request, current_user, {}, [])


@web_router.post('/reservas/create')
def create_reservation(request: Request,
                       current_user: Annotated[TokenPayload, Depends(require_web_user)],
                       title: Annotated[str, Form()],
                       scheduled_at: Annotated[str, Form()],
                       service_type: Annotated[str, Form()],
                       description: Annotated[str, Form()] = '',
                       db: Session = Depends(get_db)):
    form = {'title': title, 'description': description, 'scheduled_at': scheduled_at,
            'service_type': service_type}
    try:
        data = CreateReservationInput(title=title, description=description or None, scheduled_at=scheduled_at,
                                      service_type=service_type)
        created = ReservationService(db).make_reservation(current_user, data)
    except ValidationError as exc:
        errors = _validation_messages(exc)
    except HTTPException as exc:
        errors = [exc.detail]
    else:
        return _redirect(f'/reservas/{created.id}')

    return _reservation_form(request, current_user, form, errors, status_code=status.HTTP_400_BAD_REQUEST)


@web_router.get('/reservas/{reservation_id}')
def reservation_detail(request: Request,
                       current_user: Annotated[TokenPayload, Depends(require_web_user)],
                       db: Session = Depends(get_db),
                       reservation_id: int = Path(...)):
    try:
        detail = ReservationService(db).get_reservation(current_user, reservation_id)
    except HTTPException as exc:
        return _error_page(request, current_user, exc)

    return templates.TemplateResponse(request, 'reservations/detail.html',
                                      {'current_user': current_user, 'reservation': detail})


@web_router.get('/reservas/{reservation_id}/edit')
def edit_reservation_page(request: Request,
                          current_user: Annotated[TokenPayload, Depends(require_web_user)],
                          db: Session = Depends(get_db),
                          reservation_id: int = Path(...)):
    try:
        detail = ReservationService(db).get_reservation(current_user, reservation_id)
    except HTTPException as exc:
        return _error_page(request, current_user, exc)

    form = {
        'title': detail.title,
        'description': detail.description or '',
        'scheduled_at': detail.scheduled_at.strftime('%Y-%m-%dT%H:%M'),
        'service_type': str(detail.service_type.value),
        'status': str(detail.status.value),
    }
    return _reservation_form(request, current_user, form, [], reservation_id=reservation_id)


@web_router.post('/reservas/{reservation_id}/edit')
def edit_reservation(request: Request,
                     current_user: Annotated[TokenPayload, Depends(require_web_user)],
                     title: Annotated[str, Form()],
                     scheduled_at: Annotated[str, Form()],
                     service_type: Annotated[str, Form()],
                     reservation_status: Annotated[str, Form(alias='status')],
                     description: Annotated[str, Form()] = '',
                     db: Session = Depends(get_db),
                     reservation_id: int = Path(...)):
    form = {'title': title, 'description': description, 'scheduled_at': scheduled_at,
            'service_type': service_type, 'status': reservation_status}
    try:
        data = UpdateReservationInput(title=title, description=description or None, scheduled_at=scheduled_at,
                                      service_type=service_type, status=reservation_status)
        ReservationService(db).edit_reservation(current_user, reservation_id, data)
    except ValidationError as exc:
        errors = _validation_messages(exc)
    except HTTPException as exc:
        if exc.status_code != status.HTTP_400_BAD_REQUEST:
            return _error_page(request, current_user, exc)
        errors = [exc.detail]
    else:
        return _redirect(f'/reservas/{reservation_id}')

    return _reservation_form(request, current_user, form, errors, reservation_id=reservation_id,
                             status_code=status.HTTP_400_BAD_REQUEST)


@web_router.post('/reservas/{reservation_id}/delete')
def delete_reservation(request: Request,
                       current_user: Annotated[TokenPayload, Depends(require_web_user)],
                       db: Session = Depends(get_db),
                       reservation_id: int = Path(...)):
    try:
        ReservationService(db).delete_reservation(current_user, reservation_id)
    except HTTPException as exc:
        return _error_page(request, current_user, exc)

    return _redirect('/reservas')


@web_router.post('/reservas/{reservation_id}/qr')
def generate_qr(request: Request,
                current_user: Annotated[TokenPayload, Depends(require_web_user)],
                db: Session = Depends(get_db),
                reservation_id: int = Path(...)):
    try:
        qr_link = QRService(db).generate(current_user, reservation_id, str(request.base_url))
    except HTTPException as exc:
        return _error_page(request, current_user, exc)

    qr_image = base64.b64encode(render_qr_png(qr_link.qr_url)).decode('ascii')
    return templates.TemplateResponse(request, 'reservations/qr.html',
                                      {'current_user': current_user, 'qr': qr_link, 'qr_image': qr_image})


@web_router.get('/reservas/qr/{qr_hash}/download')
def download_qr(request: Request,
                current_user: Annotated[TokenPayload, Depends(require_web_user)],
                db: Session = Depends(get_db),
                qr_hash: str = Path(...)):
    try:
        qr_link = QRService(db).get_valid_link(current_user, qr_hash, str(request.base_url))
    except HTTPException as exc:
        return _error_page(request, current_user, exc)

    return Response(content=render_qr_png(qr_link.qr_url), media_type='image/png',
                    headers={'Content-Disposition': f'attachment; filename="reserva-{qr_link.reservation_id}-qr.png"'})
