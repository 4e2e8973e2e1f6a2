from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime, timezone
import logging

from ..models.user import User
from ..models.patient import PatientProfile
from ..models.doctor import DoctorProfile
from ..core.exceptions import BadRequestError
from ..core.security import (
    verify_password, get_password_hash, create_user_token,
    AuthenticationError, AuthorizationError, PendingApprovalError, UserRole
)
from ..schemas.auth import UserSignup, UserLogin, TokenResponse, UserResponse, ChangePassword

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserSignup) -> TokenResponse:
        """Register a patient or doctor together with their profile.

        Patients are approved straight away; doctors wait for an admin.
        """
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()

        if existing_user:
            raise BadRequestError("Email already registered")

        is_doctor = user_data.role == UserRole.DOCTOR
        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            phone=user_data.phone,
            is_active=True,
            is_approved=not is_doctor,
        )
        self.db.add(new_user)

        if is_doctor:
            new_user.doctor_profile = DoctorProfile()
        else:
            new_user.patient_profile = PatientProfile()

        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            self.db.rollback()
            raise BadRequestError("Email already registered")
        self.db.refresh(new_user)

        logger.info(f"Registered {new_user.role.value} account {new_user.id}")

        return TokenResponse(
            message=(
                "Doctor account created. Awaiting admin approval."
                if is_doctor else "Account created successfully"
            ),
            access_token=create_user_token(new_user),
            user=UserResponse.model_validate(new_user),
        )

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return a bearer token."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user or not verify_password(login_data.password, user.password_hash):
            raise AuthenticationError("Invalid credentials")

        # Account state is only revealed to callers holding the password
        if not user.is_active:
            raise AuthorizationError("Account is deactivated")

        if user.role == UserRole.DOCTOR and not user.is_approved:
            raise PendingApprovalError()

        user.last_login = datetime.now(timezone.utc)
        self.db.commit()

        return TokenResponse(
            message="Login successful",
            access_token=create_user_token(user),
            user=UserResponse.model_validate(user),
        )

    def change_password(self, user: User, password_data: ChangePassword) -> None:
        if not verify_password(password_data.current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")

        user.password_hash = get_password_hash(password_data.new_password)
        self.db.commit()
        logger.info(f"Password changed for user {user.id}")
