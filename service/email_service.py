"""
알림 메일 발송. `MAIL_SIMULATE`가 켜져 있으면 실제로 보내지 않고 로그만 남깁니다.
"""

import logging
from urllib.parse import urlencode

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from fastapi_mail.errors import ConnectionErrors

import config

logger = logging.getLogger(__name__)


def _connection_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=config.MAIL_USERNAME,
        MAIL_PASSWORD=config.MAIL_PASSWORD,
        MAIL_FROM=config.MAIL_FROM,
        MAIL_FROM_NAME=config.MAIL_FROM_NAME,
        MAIL_PORT=config.MAIL_PORT,
        MAIL_SERVER=config.MAIL_SERVER,
        MAIL_STARTTLS=True,
        MAIL_SSL_TLS=False,
        USE_CREDENTIALS=True,
    )


async def send_email(to: str, subject: str, body: str):
    if config.MAIL_SIMULATE:
        logger.info(f'[simulated email] to={to} subject={subject!r}\n{body}')
        return

    message = MessageSchema(subject=subject, recipients=[to], body=body, subtype=MessageType.html)
    try:
        await FastMail(_connection_config()).send_message(message)
        logger.info(f'Email sent to {to}: {subject!r}')
    except ConnectionErrors:
        logger.exception(f'Failed to send email to {to}')


def render_welcome_email(name: str) -> str:
    return f"""
    <html>
    <body>
        <h2>Welcome, {name}!</h2>
        <p>Your account on the reservation system has been created.</p>
    </body>
    </html>
    """


def password_reset_url(email: str, token: str) -> str:
    return f"{config.FRONTEND_URL.rstrip('/')}/reset-password?{urlencode({'email': email, 'token': token})}"


def render_password_reset_email(name: str, reset_url: str) -> str:
    return f"""
    <html>
    <body>
        <h2>Hello {name},</h2>
        <p>We received a request to reset your password. The link is valid for
        {config.PASSWORD_RESET_EXPIRATION_HOURS} hours.</p>
        <a href="{reset_url}">Reset password</a>
        <p>If you did not request this, you can ignore this email.</p>
    </body>
    </html>
    """
