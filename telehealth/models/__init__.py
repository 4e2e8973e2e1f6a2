from .user import User
from .patient import PatientProfile
from .doctor import DoctorProfile
from .availability import AvailabilitySlot
from .appointment import Appointment, AppointmentStatus
from .medical_record import MedicalRecord, Prescription
from .health_article import HealthArticle

__all__ = [
    "User",
    "PatientProfile",
    "DoctorProfile",
    "AvailabilitySlot",
    "Appointment",
    "AppointmentStatus",
    "MedicalRecord",
    "Prescription",
    "HealthArticle",
]
