from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user
from ...services.video_service import VideoService, AgoraTokenProvider
from ...schemas.appointment import AppointmentResponse, AppointmentActionResponse
from ...schemas.video import VideoCallRequest, VideoTokenResponse
from ...models.user import User

router = APIRouter(prefix="/video", tags=["Video"])

def get_video_provider() -> AgoraTokenProvider:
    """Video provider dependency."""
    return AgoraTokenProvider()

@router.post("/token", response_model=VideoTokenResponse)
async def get_video_token(
    call_data: VideoCallRequest,
    current_user: User = Depends(get_current_user),
    provider: AgoraTokenProvider = Depends(get_video_provider),
    db: Session = Depends(get_db)
):
    """Issue a join credential for an appointment's call."""
    return VideoService(db, provider).issue_token(call_data.appointment_id, current_user)

@router.post("/end-call", response_model=AppointmentActionResponse)
async def end_call(
    call_data: VideoCallRequest,
    current_user: User = Depends(get_current_user),
    provider: AgoraTokenProvider = Depends(get_video_provider),
    db: Session = Depends(get_db)
):
    appointment = VideoService(db, provider).end_call(call_data.appointment_id, current_user)
    return AppointmentActionResponse(
        message="Call ended successfully",
        appointment=AppointmentResponse.model_validate(appointment),
    )
