import os

from fastapi.templating import Jinja2Templates

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

templates = Jinja2Templates(directory=os.path.join(BASE_DIR, 'templates'))


def format_datetime(value, fmt='%Y-%m-%d %H:%M'):
    return value.strftime(fmt) if value else ''


templates.env.filters['datetime'] = format_datetime
