"""Account registration, login and credential management."""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from hospital_meal_service.auth.passwords import MIN_PASSWORD_LENGTH, hash_password, verify_password
from hospital_meal_service.auth.token_service import Identity, TokenService
from hospital_meal_service.errors import (
    DuplicateUserError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from hospital_meal_service.models.user_models import (
    LoginRequest,
    PasswordChangeRequest,
    RegisterRequest,
    Role,
    SuperadminSetupRequest,
    User,
)
from hospital_meal_service.observability.decorators import traced
from hospital_meal_service.repositories.user_repository import UserRepository
from hospital_meal_service.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

SUPERADMIN_PLACEHOLDER = "ADMIN"
SUPERADMIN_PATIENT_ID = "SUPERADMIN_001"


@dataclass
class LoginResult:
    """Issued token and the account it was issued for.

    Attributes:
        token: Signed bearer token
        user: Authenticated account
    """

    token: str
    user: User


class AuthService:
    """Service for self-service account flows."""

    def __init__(
        self,
        user_repository: UserRepository,
        token_service: TokenService,
        settings_service: SettingsService,
    ) -> None:
        """Initialize the AuthService.

        Args:
            user_repository: Repository for users
            token_service: Issues bearer tokens on login
            settings_service: Consulted for the registration switch
        """
        self.user_repository = user_repository
        self.token_service = token_service
        self.settings_service = settings_service

    @traced("register_user")
    async def register(self, request: RegisterRequest) -> User:
        """Create a patient account.

        Raises:
            ForbiddenError: Registration is switched off
            DuplicateUserError: Email or patient id already registered
        """
        if not await self.settings_service.registration_allowed():
            raise ForbiddenError("Registration is currently disabled")

        self.ensure_unique(request.email, request.patient_id)

        user = User(
            id=str(uuid.uuid4()),
            full_name=request.full_name,
            email=request.email,
            password_hash=hash_password(request.password),
            ward_number=request.ward_number,
            bed_number=request.bed_number,
            patient_id=request.patient_id,
            contact_number=request.contact_number,
            dietary_restrictions=request.dietary_restrictions,
            role=Role.PATIENT,
            created_at=datetime.now(UTC),
        )
        self.insert(user)

        logger.info(f"Registered patient account {user.id}")
        return user

    @traced("login")
    async def login(self, request: LoginRequest) -> LoginResult:
        """Exchange credentials for a bearer token.

        Unknown email and wrong password produce the same error.

        Raises:
            InvalidRequestError: Missing or invalid credentials
            ForbiddenError: Account is deactivated
        """
        if not request.email or not request.password:
            raise InvalidRequestError("Please provide email and password")

        user = self.user_repository.get_user_by_email(request.email.strip().lower())
        if user is None or not verify_password(user.password_hash, request.password):
            logger.info("Rejected login with invalid credentials")
            raise InvalidRequestError("Invalid credentials")

        if not user.is_active:
            raise ForbiddenError("Account is deactivated")

        return LoginResult(token=self.token_service.issue(user), user=user)

    async def superadmin_exists(self) -> bool:
        return bool(self.user_repository.list_users(role=Role.SUPERADMIN))

    @traced("setup_superadmin")
    async def setup_superadmin(self, request: SuperadminSetupRequest) -> User:
        """Create the first superadmin. Only allowed while none exists.

        Raises:
            InvalidRequestError: A superadmin already exists
            DuplicateUserError: Email already registered
        """
        if await self.superadmin_exists():
            raise InvalidRequestError("Superadmin already exists")

        if self.user_repository.get_user_by_email(request.email) is not None:
            raise DuplicateUserError("User with this email already exists")

        user = User(
            id=str(uuid.uuid4()),
            full_name=request.full_name,
            email=request.email,
            password_hash=hash_password(request.password),
            ward_number=SUPERADMIN_PLACEHOLDER,
            bed_number=SUPERADMIN_PLACEHOLDER,
            patient_id=SUPERADMIN_PATIENT_ID,
            role=Role.SUPERADMIN,
            created_at=datetime.now(UTC),
        )
        self.insert(user)

        logger.info(f"Superadmin account {user.id} created")
        return user

    @traced("change_password")
    async def change_password(self, identity: Identity, request: PasswordChangeRequest) -> None:
        """Rotate the caller's password after checking the current one.

        Raises:
            InvalidRequestError: Missing fields, short password or wrong current password
            NotFoundError: Caller's account no longer exists
        """
        if not request.current_password or not request.new_password:
            raise InvalidRequestError("Current password and new password are required")

        if len(request.new_password) < MIN_PASSWORD_LENGTH:
            raise InvalidRequestError(
                f"New password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        user = self.user_repository.get_user(identity.user_id)
        if user is None:
            raise NotFoundError("User not found")

        if not verify_password(user.password_hash, request.current_password):
            raise InvalidRequestError("Current password is incorrect")

        self.user_repository.save_user(
            user.model_copy(update={"password_hash": hash_password(request.new_password)})
        )
        logger.info(f"Password changed for user {user.id}")

    def ensure_unique(self, email: str, patient_id: str) -> None:
        """Reject an email or patient id that is already registered.

        Raises:
            DuplicateUserError: Either identifier is taken
        """
        if self.user_repository.get_user_by_email(email) is not None:
            raise DuplicateUserError()
        if patient_id and self.user_repository.get_user_by_patient_id(patient_id) is not None:
            raise DuplicateUserError()

    def insert(self, user: User) -> None:
        if not self.user_repository.create_user(user):
            raise DuplicateUserError()
