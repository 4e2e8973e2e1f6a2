from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Optional
import logging
import time
import uuid

from agora_token_builder import RtcTokenBuilder

from ..core.config import settings
from ..core.exceptions import BadRequestError, NotFoundError, ServerError
from ..models.user import User
from ..models.appointment import Appointment, AppointmentStatus
from ..schemas.video import VideoTokenResponse

logger = logging.getLogger(__name__)

# Agora RTC roles
ROLE_PUBLISHER = 1

# 0 lets the provider assign a uid when the client joins
DEFAULT_UID = 0

TOKEN_ERROR = "Server error generating video token"


class VideoProviderError(Exception):
    pass


class AgoraTokenProvider:
    """Signs RTC join credentials with the configured Agora project."""

    def __init__(self, app_id: Optional[str] = None, app_certificate: Optional[str] = None):
        self.app_id = app_id if app_id is not None else settings.AGORA_APP_ID
        self.app_certificate = (
            app_certificate if app_certificate is not None else settings.AGORA_APP_CERTIFICATE
        )

    def build_token(self, channel_name: str, uid: int, ttl_seconds: int) -> str:
        if not self.app_id or not self.app_certificate:
            raise VideoProviderError("Agora credentials are not configured")

        expires_at = int(time.time()) + ttl_seconds
        return RtcTokenBuilder.buildTokenWithUid(
            self.app_id,
            self.app_certificate,
            channel_name,
            uid,
            ROLE_PUBLISHER,
            expires_at,
        )


class VideoService:
    """Hands out video-call credentials for appointments and ends calls."""

    def __init__(self, db: Session, provider: Optional[AgoraTokenProvider] = None):
        self.db = db
        self.provider = provider or AgoraTokenProvider()

    def _participant_appointment(self, appointment_id: uuid.UUID, user: User, *statuses) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            (Appointment.patient_id == user.id) | (Appointment.doctor_id == user.id),
            Appointment.status.in_(statuses),
        ).first()

    def issue_token(
        self, appointment_id: uuid.UUID, user: User, now: Optional[datetime] = None
    ) -> VideoTokenResponse:
        appointment = self._participant_appointment(
            appointment_id, user, AppointmentStatus.SCHEDULED, AppointmentStatus.IN_PROGRESS
        )
        if not appointment:
            raise NotFoundError("Appointment not found or not accessible")

        now = now or datetime.now()
        if appointment.status == AppointmentStatus.SCHEDULED:
            starts_at = datetime.combine(appointment.appointment_date, appointment.start_time)
            window = timedelta(minutes=settings.VIDEO_JOIN_WINDOW_MINUTES)
            # Only early joins are refused
            if now < starts_at - window:
                raise BadRequestError(
                    f"Call can only be joined within {settings.VIDEO_JOIN_WINDOW_MINUTES} "
                    f"minutes of the appointment time"
                )

        try:
            token = self.provider.build_token(
                appointment.video_channel_name, DEFAULT_UID, settings.VIDEO_TOKEN_TTL_SECONDS
            )
        except Exception:
            logger.exception(f"Video token generation failed for appointment {appointment.id}")
            raise ServerError(TOKEN_ERROR)

        if appointment.status == AppointmentStatus.SCHEDULED:
            appointment.status = AppointmentStatus.IN_PROGRESS
            self.db.commit()
            logger.info(f"Call started for appointment {appointment.id}")

        return VideoTokenResponse(
            token=token,
            channel_name=appointment.video_channel_name,
            app_id=self.provider.app_id,
            uid=DEFAULT_UID,
        )

    def end_call(self, appointment_id: uuid.UUID, user: User) -> Appointment:
        appointment = self._participant_appointment(
            appointment_id, user, AppointmentStatus.IN_PROGRESS
        )
        if not appointment:
            raise NotFoundError("Appointment not found or call not in progress")

        appointment.status = AppointmentStatus.COMPLETED
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Call ended for appointment {appointment.id}")
        return appointment
