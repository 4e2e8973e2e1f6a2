import uuid

from pydantic import BaseModel


class VideoCallRequest(BaseModel):
    appointment_id: uuid.UUID


class VideoTokenResponse(BaseModel):
    token: str
    channel_name: str
    app_id: str
    uid: int
