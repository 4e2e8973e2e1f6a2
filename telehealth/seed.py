"""Seed the database with demo accounts, availability and articles.

Usage:
    python -m telehealth.seed

Accounts are matched on email, so running it twice does not duplicate rows.
"""
from datetime import date, time
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .core.database import SessionLocal, init_db
from .core.security import UserRole, get_password_hash
from .models import (
    User, PatientProfile, DoctorProfile, AvailabilitySlot, HealthArticle
)

logger = logging.getLogger(__name__)

ADMIN = {
    "email": "admin@telehealth.com",
    "password": "admin123",
    "first_name": "System",
    "last_name": "Admin",
}

DOCTOR_PASSWORD = "doctor123"
DOCTORS = [
    {
        "email": "dr.sharma@telehealth.com",
        "first_name": "Rajesh",
        "last_name": "Sharma",
        "phone": "+91-9876543210",
        "profile": {
            "specialization": "Cardiologist",
            "qualification": "MBBS, MD (Cardiology)",
            "experience_years": 15,
            "hospital_name": "Apollo Hospital",
            "hospital_address": "Jubilee Hills, Hyderabad",
            "registration_number": "MCI-12345",
            "bio": "Cardiologist focused on heart disease prevention and treatment.",
            "consultation_fee": 800,
            "rating": 4.8,
            "total_consultations": 120,
        },
    },
    {
        "email": "dr.patel@telehealth.com",
        "first_name": "Priya",
        "last_name": "Patel",
        "phone": "+91-9876543211",
        "profile": {
            "specialization": "General Physician",
            "qualification": "MBBS, MD (General Medicine)",
            "experience_years": 10,
            "hospital_name": "Fortis Hospital",
            "hospital_address": "Bannerghatta Road, Bangalore",
            "registration_number": "MCI-23456",
            "bio": "General physician treating common ailments, with a focus on preventive care.",
            "consultation_fee": 500,
            "rating": 4.7,
            "total_consultations": 95,
        },
    },
    {
        "email": "dr.kumar@telehealth.com",
        "first_name": "Amit",
        "last_name": "Kumar",
        "phone": "+91-9876543212",
        "profile": {
            "specialization": "Pediatrician",
            "qualification": "MBBS, MD (Pediatrics)",
            "experience_years": 12,
            "hospital_name": "Max Healthcare",
            "hospital_address": "Saket, New Delhi",
            "registration_number": "MCI-34567",
            "bio": "Pediatrician specializing in child healthcare and development.",
            "consultation_fee": 600,
            "rating": 4.6,
            "total_consultations": 80,
        },
    },
    {
        "email": "dr.reddy@telehealth.com",
        "first_name": "Lakshmi",
        "last_name": "Reddy",
        "phone": "+91-9876543213",
        "profile": {
            "specialization": "Dermatologist",
            "qualification": "MBBS, MD (Dermatology)",
            "experience_years": 8,
            "hospital_name": "KIMS Hospital",
            "hospital_address": "Secunderabad, Telangana",
            "registration_number": "MCI-45678",
            "bio": "Dermatologist with a focus on skin conditions common in rural areas.",
            "consultation_fee": 700,
            "rating": 4.5,
            "total_consultations": 60,
        },
    },
]

# Monday to Friday, 09:00-17:00
WEEKDAYS = range(1, 6)
WORKDAY = (time(9, 0), time(17, 0))

PATIENT_PASSWORD = "patient123"
PATIENTS = [
    {
        "email": "ramesh.kumar@example.com",
        "first_name": "Ramesh",
        "last_name": "Kumar",
        "phone": "+91-9123456789",
        "profile": {
            "date_of_birth": date(1985, 5, 15),
            "gender": "Male",
            "blood_group": "O+",
            "city": "Ranchi",
            "state": "Jharkhand",
            "allergies": "Penicillin",
        },
    },
    {
        "email": "sunita.devi@example.com",
        "first_name": "Sunita",
        "last_name": "Devi",
        "phone": "+91-9123456790",
        "profile": {
            "date_of_birth": date(1990, 8, 22),
            "gender": "Female",
            "blood_group": "A+",
            "city": "Patna",
            "state": "Bihar",
            "chronic_conditions": "Diabetes Type 2",
        },
    },
]

ARTICLES = [
    {
        "title": "Managing Diabetes at Home",
        "category": "Chronic Care",
        "content": "Check blood sugar regularly, keep meals balanced and take "
                   "medication on schedule. Talk to your doctor before changing doses.",
    },
    {
        "title": "When to See a Doctor for Fever",
        "category": "General Health",
        "content": "Seek care if a fever lasts more than three days, goes above "
                   "103°F, or comes with a rash, stiff neck or difficulty breathing.",
    },
    {
        "title": "Preparing for Your Video Consultation",
        "category": "Telehealth",
        "content": "Find a quiet, well-lit place, test your camera and microphone, "
                   "and keep a list of your symptoms and current medicines ready.",
    },
]


def get_or_create_user(db: Session, role: UserRole, password: str, data: dict) -> tuple:
    """Return ``(user, created)`` for the account with ``data["email"]``."""
    user = db.query(User).filter(User.email == data["email"]).first()
    if user:
        return user, False

    user = User(
        email=data["email"],
        password_hash=get_password_hash(password),
        role=role,
        first_name=data["first_name"],
        last_name=data["last_name"],
        phone=data.get("phone"),
        is_active=True,
        is_approved=True,
    )
    db.add(user)
    return user, True


def seed(db: Session) -> None:
    admin, _ = get_or_create_user(db, UserRole.ADMIN, ADMIN["password"], ADMIN)
    db.flush()
    logger.info("Admin user ready")

    for data in DOCTORS:
        doctor, created = get_or_create_user(db, UserRole.DOCTOR, DOCTOR_PASSWORD, data)
        if not created:
            continue
        doctor.doctor_profile = DoctorProfile(**data["profile"])
        db.flush()
        for day in WEEKDAYS:
            db.add(AvailabilitySlot(
                doctor_id=doctor.id,
                day_of_week=day,
                start_time=WORKDAY[0],
                end_time=WORKDAY[1],
                is_available=True,
            ))
    logger.info(f"{len(DOCTORS)} doctors ready with weekday availability")

    for data in PATIENTS:
        patient, created = get_or_create_user(db, UserRole.PATIENT, PATIENT_PASSWORD, data)
        if created:
            patient.patient_profile = PatientProfile(**data["profile"])
    logger.info(f"{len(PATIENTS)} patients ready")

    for data in ARTICLES:
        exists = db.query(HealthArticle.id).filter(HealthArticle.title == data["title"]).first()
        if not exists:
            db.add(HealthArticle(author_id=admin.id, is_published=True, **data))
    logger.info(f"{len(ARTICLES)} health articles ready")

    db.commit()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    init_db()

    db = SessionLocal()
    try:
        seed(db)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Seeding failed")
        sys.exit(1)
    finally:
        db.close()

    logger.info("Seeding complete")


if __name__ == "__main__":
    main()
