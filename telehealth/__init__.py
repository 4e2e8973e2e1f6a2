"""
Telehealth API

A FastAPI-based backend for remote consultations: patient, doctor and admin
accounts, appointment booking against doctor availability, medical records,
prescriptions, health articles and video-call token issuance.
"""

__version__ = "1.0.0"
