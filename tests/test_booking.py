from datetime import date, time

import pytest
from sqlalchemy.exc import OperationalError

from telehealth.core.exceptions import BadRequestError, ConflictError, NotFoundError
from telehealth.core.security import UserRole
from telehealth.models import Appointment, AppointmentStatus
from telehealth.schemas.appointment import AppointmentCreate, AppointmentSlot
from telehealth.services.booking_service import (
    BookingService, day_of_week, generate_video_channel_name
)
from tests.conftest import auth_headers, booking_payload

class TestDayOfWeek:

    @pytest.mark.parametrize("value, expected", [
        (date(2024, 1, 14), 0),  # Sunday
        (date(2024, 1, 15), 1),  # Monday
        (date(2024, 1, 20), 6),  # Saturday
    ])
    def test_sunday_is_zero(self, value, expected):
        assert day_of_week(value) == expected

class TestChannelName:

    def test_channel_name_format(self, patient):
        name = generate_video_channel_name(patient.id)
        prefix, millis, requester, suffix = name.split("_")
        assert prefix == "appointment"
        assert millis.isdigit()
        assert requester == patient.id.hex
        assert suffix

    def test_channel_names_are_unique(self, patient):
        assert generate_video_channel_name(patient.id) != generate_video_channel_name(patient.id)

class TestBookAppointment:

    def test_book_within_availability(self, client, patient, doctor):
        """Monday 10:00-10:30 fits the doctor's Monday 09:00-17:00 window."""
        response = client.post(
            "/api/appointments/",
            json=booking_payload(doctor, symptoms="Chest pain"),
            headers=auth_headers(patient)
        )
        assert response.status_code == 201

        appointment = response.json()["appointment"]
        assert appointment["status"] == "scheduled"
        assert appointment["patient_id"] == str(patient.id)
        assert appointment["doctor_id"] == str(doctor.id)
        assert appointment["start_time"] == "10:00:00"
        assert appointment["symptoms"] == "Chest pain"
        assert appointment["video_channel_name"].startswith("appointment_")

    def test_identical_second_booking_conflicts(self, client, db_session, patient, doctor):
        headers = auth_headers(patient)
        first = client.post("/api/appointments/", json=booking_payload(doctor), headers=headers)
        assert first.status_code == 201

        second = client.post("/api/appointments/", json=booking_payload(doctor), headers=headers)
        assert second.status_code == 409
        assert second.json()["detail"] == "This slot is already booked"
        assert db_session.query(Appointment).count() == 1

    def test_other_patient_same_slot_conflicts(self, client, make_user, patient, doctor):
        other = make_user(UserRole.PATIENT)
        client.post("/api/appointments/", json=booking_payload(doctor), headers=auth_headers(patient))

        response = client.post("/api/appointments/", json=booking_payload(doctor), headers=auth_headers(other))
        assert response.status_code == 409

    def test_cancelled_slot_can_be_rebooked(self, client, patient, doctor):
        headers = auth_headers(patient)
        first = client.post("/api/appointments/", json=booking_payload(doctor), headers=headers)
        appointment_id = first.json()["appointment"]["id"]
        client.post(f"/api/appointments/{appointment_id}/cancel", headers=headers)

        response = client.post("/api/appointments/", json=booking_payload(doctor), headers=headers)
        assert response.status_code == 201

    def test_different_start_time_is_not_a_conflict(self, client, patient, doctor):
        """Only the exact start time is compared, not overlap."""
        headers = auth_headers(patient)
        client.post("/api/appointments/", json=booking_payload(doctor), headers=headers)

        response = client.post(
            "/api/appointments/",
            json=booking_payload(doctor, start="10:15", end="10:45"),
            headers=headers
        )
        assert response.status_code == 201

    @pytest.mark.parametrize("appointment_date, start, end", [
        ("2024-01-16", "10:00", "10:30"),  # Tuesday, no slot
        ("2024-01-15", "08:30", "09:30"),  # starts before the window
        ("2024-01-15", "16:45", "17:15"),  # ends after the window
    ])
    def test_outside_availability(self, client, patient, doctor, appointment_date, start, end):
        response = client.post(
            "/api/appointments/",
            json=booking_payload(doctor, appointment_date, start, end),
            headers=auth_headers(patient)
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Doctor is not available at this time"

    def test_window_edges_are_inclusive(self, client, patient, doctor):
        response = client.post(
            "/api/appointments/",
            json=booking_payload(doctor, start="16:30", end="17:00"),
            headers=auth_headers(patient)
        )
        assert response.status_code == 201

    def test_disabled_slot_is_not_bookable(self, client, make_user, add_availability, patient):
        doctor = make_user(UserRole.DOCTOR)
        add_availability(doctor, is_available=False)

        response = client.post(
            "/api/appointments/", json=booking_payload(doctor), headers=auth_headers(patient)
        )
        assert response.status_code == 400

    def test_end_before_start_rejected(self, client, patient, doctor):
        response = client.post(
            "/api/appointments/",
            json=booking_payload(doctor, start="11:00", end="10:30"),
            headers=auth_headers(patient)
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Validation failed"

    @pytest.mark.parametrize("start", ["10", "25:00", "10:60", "ten"])
    def test_malformed_time_rejected(self, client, patient, doctor, start):
        response = client.post(
            "/api/appointments/",
            json=booking_payload(doctor, start=start),
            headers=auth_headers(patient)
        )
        assert response.status_code == 400

    def test_missing_fields_rejected(self, client, patient):
        response = client.post("/api/appointments/", json={}, headers=auth_headers(patient))
        assert response.status_code == 400

    def test_unknown_doctor(self, client, patient, doctor):
        payload = booking_payload(doctor)
        payload["doctor_id"] = str(patient.id)

        response = client.post("/api/appointments/", json=payload, headers=auth_headers(patient))
        assert response.status_code == 404
        assert response.json()["detail"] == "Doctor not found"

    def test_unapproved_doctor_not_bookable(self, client, add_availability, patient, pending_doctor):
        add_availability(pending_doctor)

        response = client.post(
            "/api/appointments/", json=booking_payload(pending_doctor), headers=auth_headers(patient)
        )
        assert response.status_code == 404

    def test_only_patients_book(self, client, doctor):
        response = client.post(
            "/api/appointments/", json=booking_payload(doctor), headers=auth_headers(doctor)
        )
        assert response.status_code == 403

    def test_database_error_is_a_server_error(self, client, patient, doctor, monkeypatch):
        def broken_lookup(*args, **kwargs):
            raise OperationalError("SELECT appointments.id", {}, Exception("database is locked"))

        monkeypatch.setattr(BookingService, "is_slot_taken", broken_lookup)

        response = client.post(
            "/api/appointments/", json=booking_payload(doctor), headers=auth_headers(patient)
        )
        assert response.status_code == 500
        assert response.json() == {"detail": "Server error", "code": "server_error"}

class TestBookingService:

    def _request(self, doctor, **overrides):
        fields = dict(
            doctor_id=doctor.id,
            appointment_date=date(2024, 1, 15),
            start_time="10:00",
            end_time="10:30",
        )
        fields.update(overrides)
        return AppointmentCreate(**fields)

    def test_check_slot_order(self, db_session, patient, doctor):
        """A taken slot is reported as a conflict before availability is checked."""
        service = BookingService(db_session)
        service.book_appointment(patient, self._request(doctor))

        with pytest.raises(ConflictError):
            service.check_slot(doctor.id, self._request(doctor))

        with pytest.raises(BadRequestError):
            service.check_slot(doctor.id, self._request(doctor, start_time="18:00", end_time="18:30"))

    def test_unique_index_race_translated(self, db_session, patient, doctor, monkeypatch):
        """A booking that slips past the pre-check still hits the unique index."""
        service = BookingService(db_session)
        service.book_appointment(patient, self._request(doctor))

        monkeypatch.setattr(service, "is_slot_taken", lambda *args, **kwargs: False)

        with pytest.raises(ConflictError) as exc_info:
            service.book_appointment(patient, self._request(doctor))
        assert exc_info.value.detail == "Appointment slot conflict"
        assert db_session.query(Appointment).count() == 1

    def test_reschedule_race_translated(self, db_session, patient, doctor, monkeypatch):
        """Moving onto a live start time past the pre-check still hits the unique index."""
        service = BookingService(db_session)
        service.book_appointment(patient, self._request(doctor))
        moved = service.book_appointment(patient, self._request(doctor, start_time="11:00", end_time="11:30"))

        monkeypatch.setattr(service, "is_slot_taken", lambda *args, **kwargs: False)
        slot = AppointmentSlot(appointment_date=date(2024, 1, 15), start_time="10:00", end_time="10:30")

        with pytest.raises(ConflictError) as exc_info:
            service.reschedule_appointment(moved.id, patient, slot)
        assert exc_info.value.status_code == 409
        assert exc_info.value.detail == "Appointment slot conflict"
        assert moved.start_time == time(11, 0)

    def test_reschedule_with_deactivated_doctor(self, db_session, patient, doctor):
        service = BookingService(db_session)
        appointment = service.book_appointment(patient, self._request(doctor))

        doctor.is_active = False
        db_session.commit()
        slot = AppointmentSlot(appointment_date=date(2024, 1, 15), start_time="11:00", end_time="11:30")

        with pytest.raises(NotFoundError):
            service.reschedule_appointment(appointment.id, patient, slot)
        assert appointment.start_time == time(10, 0)

    def test_exclude_self_when_checking(self, db_session, patient, doctor):
        service = BookingService(db_session)
        appointment = service.book_appointment(patient, self._request(doctor))

        assert service.is_slot_taken(doctor.id, date(2024, 1, 15), time(10, 0))
        assert not service.is_slot_taken(
            doctor.id, date(2024, 1, 15), time(10, 0), exclude_appointment_id=appointment.id
        )

    def test_inactive_doctor_not_bookable(self, db_session, make_user, add_availability, patient):
        doctor = make_user(UserRole.DOCTOR, active=False)
        add_availability(doctor)

        with pytest.raises(NotFoundError):
            BookingService(db_session).book_appointment(patient, self._request(doctor))

class TestAppointmentAccess:

    def _book(self, client, patient, doctor, **kwargs):
        response = client.post(
            "/api/appointments/", json=booking_payload(doctor, **kwargs), headers=auth_headers(patient)
        )
        assert response.status_code == 201
        return response.json()["appointment"]["id"]

    def test_participants_see_details(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)

        for user in (patient, doctor):
            response = client.get(f"/api/appointments/{appointment_id}", headers=auth_headers(user))
            assert response.status_code == 200

        data = response.json()
        assert data["patient_first_name"] == "Ramesh"
        assert data["doctor_last_name"] == "Patel"
        assert data["specialization"] == "Cardiologist"
        assert data["hospital_name"] == "Apollo Hospital"

    def test_outsiders_get_not_found(self, client, make_user, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        outsider = make_user(UserRole.PATIENT)

        response = client.get(f"/api/appointments/{appointment_id}", headers=auth_headers(outsider))
        assert response.status_code == 404

class TestAppointmentLifecycle:

    def _book(self, client, patient, doctor, start="10:00", end="10:30"):
        response = client.post(
            "/api/appointments/",
            json=booking_payload(doctor, start=start, end=end),
            headers=auth_headers(patient)
        )
        return response.json()["appointment"]["id"]

    def _set_status(self, client, user, appointment_id, new_status):
        return client.patch(
            f"/api/appointments/{appointment_id}/status",
            json={"status": new_status},
            headers=auth_headers(user)
        )

    def test_forward_transitions(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)

        response = self._set_status(client, doctor, appointment_id, "in_progress")
        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "in_progress"

        response = self._set_status(client, patient, appointment_id, "completed")
        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "completed"

    @pytest.mark.parametrize("first, second", [
        ("completed", "scheduled"),
        ("completed", "cancelled"),
        ("cancelled", "scheduled"),
        ("cancelled", "in_progress"),
        ("in_progress", "cancelled"),
        ("in_progress", "scheduled"),
    ])
    def test_illegal_transitions_conflict(self, client, patient, doctor, first, second):
        appointment_id = self._book(client, patient, doctor)
        assert self._set_status(client, doctor, appointment_id, first).status_code == 200

        response = self._set_status(client, doctor, appointment_id, second)
        assert response.status_code == 409
        assert response.json()["code"] == "conflict"

    def test_same_status_is_not_a_transition(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        assert self._set_status(client, doctor, appointment_id, "scheduled").status_code == 409

    def test_unknown_status_rejected(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        assert self._set_status(client, doctor, appointment_id, "done").status_code == 400

    def test_cancel_with_reason(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)

        response = client.post(
            f"/api/appointments/{appointment_id}/cancel",
            json={"reason": "Feeling better"},
            headers=auth_headers(patient)
        )
        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "cancelled"
        assert response.json()["appointment"]["cancellation_reason"] == "Feeling better"

    def test_cancel_only_from_scheduled(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        self._set_status(client, doctor, appointment_id, "in_progress")

        response = client.post(f"/api/appointments/{appointment_id}/cancel", headers=auth_headers(patient))
        assert response.status_code == 409

    def test_cancel_twice_conflicts(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        headers = auth_headers(doctor)
        assert client.post(f"/api/appointments/{appointment_id}/cancel", headers=headers).status_code == 200
        assert client.post(f"/api/appointments/{appointment_id}/cancel", headers=headers).status_code == 409

class TestReschedule:

    def _book(self, client, patient, doctor, start="10:00", end="10:30"):
        response = client.post(
            "/api/appointments/",
            json=booking_payload(doctor, start=start, end=end),
            headers=auth_headers(patient)
        )
        return response.json()["appointment"]["id"]

    def _reschedule(self, client, user, appointment_id, start, end, appointment_date="2024-01-15"):
        return client.post(
            f"/api/appointments/{appointment_id}/reschedule",
            json={"appointment_date": appointment_date, "start_time": start, "end_time": end},
            headers=auth_headers(user)
        )

    def test_reschedule_to_free_slot(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)

        response = self._reschedule(client, patient, appointment_id, "11:00", "11:30")
        assert response.status_code == 200
        assert response.json()["appointment"]["start_time"] == "11:00:00"

    def test_reschedule_onto_own_slot_allowed(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)

        response = self._reschedule(client, patient, appointment_id, "10:00", "10:45")
        assert response.status_code == 200

    def test_reschedule_onto_taken_slot(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        self._book(client, patient, doctor, start="11:00", end="11:30")

        response = self._reschedule(client, patient, appointment_id, "11:00", "11:30")
        assert response.status_code == 409

    def test_reschedule_outside_availability(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)

        response = self._reschedule(client, patient, appointment_id, "10:00", "10:30", "2024-01-16")
        assert response.status_code == 400

    def test_only_owning_patient_reschedules(self, client, make_user, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        other = make_user(UserRole.PATIENT)

        response = self._reschedule(client, other, appointment_id, "11:00", "11:30")
        assert response.status_code == 404

    def test_cancelled_appointment_cannot_be_rescheduled(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        client.post(f"/api/appointments/{appointment_id}/cancel", headers=auth_headers(patient))

        response = self._reschedule(client, patient, appointment_id, "11:00", "11:30")
        assert response.status_code == 409

class TestMedicalRecord:

    def _book(self, client, patient, doctor):
        response = client.post(
            "/api/appointments/", json=booking_payload(doctor), headers=auth_headers(patient)
        )
        return response.json()["appointment"]["id"]

    def test_record_completes_appointment(self, client, db_session, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        record = {
            "diagnosis": "Hypertension",
            "notes": "Reduce salt intake",
            "vital_signs": {"bp": "150/95", "pulse": 82},
            "medications": [{"name": "Amlodipine", "dosage": "5mg", "frequency": "daily", "duration": "30 days"}],
            "instructions": "Take after breakfast"
        }

        response = client.post(
            f"/api/appointments/{appointment_id}/medical-record",
            json=record,
            headers=auth_headers(doctor)
        )
        assert response.status_code == 201
        assert response.json()["medical_record"]["diagnosis"] == "Hypertension"
        assert response.json()["medical_record"]["vital_signs"] == {"bp": "150/95", "pulse": 82}

        appointment = db_session.query(Appointment).first()
        assert appointment.status == AppointmentStatus.COMPLETED
        assert appointment.medical_record.prescription.medications[0]["name"] == "Amlodipine"
        assert doctor.doctor_profile.total_consultations == 1

    def test_record_without_medications_has_no_prescription(self, client, db_session, patient, doctor):
        appointment_id = self._book(client, patient, doctor)

        response = client.post(
            f"/api/appointments/{appointment_id}/medical-record",
            json={"diagnosis": "Common cold"},
            headers=auth_headers(doctor)
        )
        assert response.status_code == 201
        assert db_session.query(Appointment).first().medical_record.prescription is None

    def test_duplicate_record_conflicts(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        url = f"/api/appointments/{appointment_id}/medical-record"

        assert client.post(url, json={"diagnosis": "Flu"}, headers=auth_headers(doctor)).status_code == 201
        assert client.post(url, json={"diagnosis": "Flu"}, headers=auth_headers(doctor)).status_code == 409

    def test_cancelled_appointment_rejects_record(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        client.post(f"/api/appointments/{appointment_id}/cancel", headers=auth_headers(patient))

        response = client.post(
            f"/api/appointments/{appointment_id}/medical-record",
            json={"diagnosis": "Flu"},
            headers=auth_headers(doctor)
        )
        assert response.status_code == 409

    def test_other_doctor_cannot_write_record(self, client, make_user, patient, doctor):
        appointment_id = self._book(client, patient, doctor)
        other_doctor = make_user(UserRole.DOCTOR)

        response = client.post(
            f"/api/appointments/{appointment_id}/medical-record",
            json={"diagnosis": "Flu"},
            headers=auth_headers(other_doctor)
        )
        assert response.status_code == 404

    def test_patient_cannot_write_record(self, client, patient, doctor):
        appointment_id = self._book(client, patient, doctor)

        response = client.post(
            f"/api/appointments/{appointment_id}/medical-record",
            json={"diagnosis": "Flu"},
            headers=auth_headers(patient)
        )
        assert response.status_code == 403
