"""
환경 변수에서 애플리케이션 설정을 읽어옵니다. `.env` 파일이 있으면 먼저 로드합니다.
"""

import os

from dotenv import load_dotenv

load_dotenv()

ENVIRONMENT = os.environ.get('environment', 'dev')

SQLALCHEMY_DATABASE_URL = os.environ.get('SQLALCHEMY_DATABASE_URL', 'sqlite:///./reservas.db')

JWT_SECRET = os.environ.get('JWT_SECRET', 'reservas-dev-secret-key-change-me-in-production')
JWT_ALGORITHM = 'HS256'
JWT_ISSUER = os.environ.get('JWT_ISSUER', 'reservas-api')
JWT_AUDIENCE = os.environ.get('JWT_AUDIENCE', 'reservas-clients')
JWT_EXPIRATION_MINUTES = int(os.environ.get('JWT_EXPIRATION_MINUTES', '60'))

PASSWORD_RESET_EXPIRATION_HOURS = int(os.environ.get('PASSWORD_RESET_EXPIRATION_HOURS', '24'))
MAX_FAILED_LOGIN_ATTEMPTS = 5
LOCKOUT_MINUTES = 15

QR_VALID_MINUTES = int(os.environ.get('QR_VALID_MINUTES', '10'))

PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL', '')
FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:5173')
CORS_ORIGINS = [origin.strip() for origin in
                os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://localhost:5173').split(',')
                if origin.strip()]

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@reservas.com')
ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'Admin123!')

MAIL_SIMULATE = os.environ.get('MAIL_SIMULATE', 'true').lower() in ('1', 'true', 'yes')
MAIL_USERNAME = os.environ.get('MAIL_USERNAME', '')
MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD', '')
MAIL_FROM = os.environ.get('MAIL_FROM', 'no-reply@reservas.com')
MAIL_FROM_NAME = os.environ.get('MAIL_FROM_NAME', 'Sistema de Reservas')
MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
MAIL_PORT = int(os.environ.get('MAIL_PORT', '587'))
