"""
Test suite for the Telehealth API.

Covers the booking checker, the access gate, video call handoff and the
resource endpoints, against an in-memory SQLite database.
"""
