from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import date, time
from typing import Optional
import logging
import secrets
import time as clock
import uuid

from ..core.exceptions import BadRequestError, ConflictError, NotFoundError
from ..core.security import AuthorizationError, UserRole
from ..models.user import User
from ..models.availability import AvailabilitySlot
from ..models.appointment import Appointment, AppointmentStatus
from ..models.medical_record import MedicalRecord, Prescription
from ..schemas.appointment import (
    AppointmentCreate, AppointmentSlot, AppointmentDetailResponse, MedicalRecordCreate
)

logger = logging.getLogger(__name__)


def day_of_week(value: date) -> int:
    """Day index used by availability slots: Sunday = 0 ... Saturday = 6."""
    return (value.weekday() + 1) % 7


def generate_video_channel_name(requester_id: uuid.UUID) -> str:
    millis = int(clock.time() * 1000)
    return f"appointment_{millis}_{requester_id.hex}_{secrets.token_hex(4)}"


def build_appointment_detail(appointment: Appointment) -> AppointmentDetailResponse:
    profile = appointment.doctor.doctor_profile
    return AppointmentDetailResponse(
        id=appointment.id,
        patient_id=appointment.patient_id,
        doctor_id=appointment.doctor_id,
        appointment_date=appointment.appointment_date,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        status=appointment.status,
        symptoms=appointment.symptoms,
        cancellation_reason=appointment.cancellation_reason,
        video_channel_name=appointment.video_channel_name,
        created_at=appointment.created_at,
        patient_first_name=appointment.patient.first_name,
        patient_last_name=appointment.patient.last_name,
        doctor_first_name=appointment.doctor.first_name,
        doctor_last_name=appointment.doctor.last_name,
        specialization=profile.specialization if profile else None,
        hospital_name=profile.hospital_name if profile else None,
    )


class BookingService:
    """Appointment booking and lifecycle.

    A slot is bookable when no live appointment for the doctor starts at the
    exact same date and time, and some available weekly slot of the doctor
    fully contains the requested window. Only the start time is compared
    against existing bookings; partially overlapping windows with different
    start times are not detected.
    """

    def __init__(self, db: Session):
        self.db = db

    # Availability/conflict checks

    def get_bookable_doctor(self, doctor_id: uuid.UUID) -> User:
        doctor = self.db.query(User).filter(
            User.id == doctor_id,
            User.role == UserRole.DOCTOR,
            User.is_approved.is_(True),
            User.is_active.is_(True),
        ).first()
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    def is_slot_taken(
        self,
        doctor_id: uuid.UUID,
        appointment_date: date,
        start_time: time,
        exclude_appointment_id: Optional[uuid.UUID] = None,
    ) -> bool:
        query = self.db.query(Appointment.id).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == appointment_date,
            Appointment.start_time == start_time,
            Appointment.status != AppointmentStatus.CANCELLED,
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.first() is not None

    def has_covering_availability(
        self,
        doctor_id: uuid.UUID,
        appointment_date: date,
        start_time: time,
        end_time: time,
    ) -> bool:
        slot = self.db.query(AvailabilitySlot.id).filter(
            AvailabilitySlot.doctor_id == doctor_id,
            AvailabilitySlot.day_of_week == day_of_week(appointment_date),
            AvailabilitySlot.start_time <= start_time,
            AvailabilitySlot.end_time >= end_time,
            AvailabilitySlot.is_available.is_(True),
        ).first()
        return slot is not None

    def check_slot(
        self,
        doctor_id: uuid.UUID,
        slot: AppointmentSlot,
        exclude_appointment_id: Optional[uuid.UUID] = None,
    ) -> None:
        if self.is_slot_taken(doctor_id, slot.appointment_date, slot.start_time, exclude_appointment_id):
            raise ConflictError("This slot is already booked")

        if not self.has_covering_availability(doctor_id, slot.appointment_date, slot.start_time, slot.end_time):
            raise BadRequestError("Doctor is not available at this time")

    def _commit_slot(self, appointment: Appointment) -> None:
        """Commit a new or moved booking; the partial unique index settles races."""
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(
                f"Slot conflict on commit for doctor {appointment.doctor_id} "
                f"at {appointment.appointment_date} {appointment.start_time}"
            )
            raise ConflictError("Appointment slot conflict")
        self.db.refresh(appointment)

    # Booking lifecycle

    def book_appointment(self, patient: User, data: AppointmentCreate) -> Appointment:
        doctor = self.get_bookable_doctor(data.doctor_id)
        self.check_slot(doctor.id, data)

        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_date=data.appointment_date,
            start_time=data.start_time,
            end_time=data.end_time,
            status=AppointmentStatus.SCHEDULED,
            symptoms=data.symptoms,
            video_channel_name=generate_video_channel_name(patient.id),
        )
        self.db.add(appointment)
        self._commit_slot(appointment)

        logger.info(
            f"Booked appointment {appointment.id} with doctor {doctor.id} "
            f"on {appointment.appointment_date} at {appointment.start_time}"
        )
        return appointment

    def get_participant_appointment(self, appointment_id: uuid.UUID, user: User) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment or not appointment.is_participant(user.id):
            raise NotFoundError("Appointment not found")
        return appointment

    def get_appointment_detail(self, appointment_id: uuid.UUID, user: User) -> AppointmentDetailResponse:
        return build_appointment_detail(self.get_participant_appointment(appointment_id, user))

    def update_status(
        self, appointment_id: uuid.UUID, user: User, new_status: AppointmentStatus
    ) -> Appointment:
        appointment = self.get_participant_appointment(appointment_id, user)

        if not appointment.can_transition_to(new_status):
            raise ConflictError(
                f"Cannot change appointment status from "
                f"'{AppointmentStatus(appointment.status).value}' to '{new_status.value}'"
            )

        logger.info(f"Appointment {appointment.id}: {appointment.status.value} -> {new_status.value}")
        appointment.status = new_status
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def cancel_appointment(
        self, appointment_id: uuid.UUID, user: User, reason: Optional[str] = None
    ) -> Appointment:
        appointment = self.get_participant_appointment(appointment_id, user)

        if appointment.status != AppointmentStatus.SCHEDULED:
            raise ConflictError("Only scheduled appointments can be cancelled")

        appointment.status = AppointmentStatus.CANCELLED
        appointment.cancellation_reason = reason
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Cancelled appointment {appointment.id} by user {user.id}")
        return appointment

    def reschedule_appointment(
        self, appointment_id: uuid.UUID, patient: User, slot: AppointmentSlot
    ) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.patient_id == patient.id,
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found")

        if appointment.status != AppointmentStatus.SCHEDULED:
            raise ConflictError("Only scheduled appointments can be rescheduled")

        doctor = self.get_bookable_doctor(appointment.doctor_id)
        try:
            self.check_slot(doctor.id, slot, exclude_appointment_id=appointment.id)
        except ConflictError:
            raise ConflictError("New slot is already booked")

        appointment.appointment_date = slot.appointment_date
        appointment.start_time = slot.start_time
        appointment.end_time = slot.end_time
        self._commit_slot(appointment)

        logger.info(
            f"Rescheduled appointment {appointment.id} to "
            f"{appointment.appointment_date} at {appointment.start_time}"
        )
        return appointment

    def add_medical_record(
        self, appointment_id: uuid.UUID, doctor: User, data: MedicalRecordCreate
    ) -> MedicalRecord:
        """Record the consultation outcome and complete the appointment."""
        if doctor.role != UserRole.DOCTOR:
            raise AuthorizationError("Only doctors can add medical records")

        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.doctor_id == doctor.id,
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found")

        if appointment.status == AppointmentStatus.CANCELLED:
            raise ConflictError("Cannot add a medical record to a cancelled appointment")

        if appointment.medical_record is not None:
            raise ConflictError("A medical record already exists for this appointment")

        record = MedicalRecord(
            patient_id=appointment.patient_id,
            doctor_id=doctor.id,
            appointment_id=appointment.id,
            diagnosis=data.diagnosis,
            symptoms=data.symptoms,
            notes=data.notes,
            vital_signs=data.vital_signs,
        )
        self.db.add(record)

        if data.medications:
            record.prescription = Prescription(
                appointment_id=appointment.id,
                patient_id=appointment.patient_id,
                doctor_id=doctor.id,
                medications=[medication.model_dump() for medication in data.medications],
                instructions=data.instructions,
            )

        appointment.status = AppointmentStatus.COMPLETED
        if doctor.doctor_profile is not None:
            doctor.doctor_profile.total_consultations = (doctor.doctor_profile.total_consultations or 0) + 1

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("A medical record already exists for this appointment")
        self.db.refresh(record)

        logger.info(f"Medical record {record.id} added for appointment {appointment.id}")
        return record
