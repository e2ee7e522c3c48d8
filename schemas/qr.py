import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class QRGenerateOutput(BaseModel):
    model_config = ConfigDict(extra='ignore')

    hash: str
    qr_url: str
    expires_at: datetime.datetime
    reservation_id: int
    valid_minutes: int


class QRAccessOutput(BaseModel):
    """
    QR로 접근했을 때 보여주는 제한된 예약 정보입니다. 예약자의 이메일이나 id는 포함하지 않습니다.
    """
    model_config = ConfigDict(extra='ignore')

    reservation_id: int
    service_type: str
    scheduled_at: datetime.datetime
    status: str
    description: Optional[str]
    client_name: str
    accessed_at: datetime.datetime
    message: str
