import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from eldercare.client import CareApiClient
from eldercare.errors import (
    ErrorCategory,
    FormValidationError,
    RemoteServiceError,
    ServiceUnavailableError,
    SignupConflictError,
)
from eldercare.models import Role, SignupRequest, User

logger = logging.getLogger(__name__)

TodayFn = Callable[[], date]

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d@$!%*?&]{8,}$")

MIN_AGE = 18
MAX_AGE = 120

MSG_REGISTERED = "Your account has been created successfully."
MSG_FAILED = "Registration failed. Please try again."
MSG_NETWORK = "Network error. Please check your connection and try again."


@dataclass
class SignupForm:
    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    date_of_birth: str = ""
    role: str = Role.PATIENT.value


@dataclass(frozen=True)
class SignupOutcome:
    ok: bool
    message: str
    category: ErrorCategory | None = None
    user: User | None = None
    # set on a duplicate email so the view can point at the login page
    login_hint: str | None = None
    field_errors: dict[str, str] = field(default_factory=dict)


def validate_age(dob: str, today: date) -> str | None:
    try:
        born = date.fromisoformat(dob)
    except ValueError:
        return "Please enter a valid date of birth"
    # calendar-year difference, birthdays are not considered
    age = today.year - born.year
    if age < MIN_AGE:
        return f"You must be at least {MIN_AGE} years old"
    if age > MAX_AGE:
        return "Please enter a valid date of birth"
    return None


def validate_signup_form(form: SignupForm, today: date) -> dict[str, str]:
    errors: dict[str, str] = {}

    if not form.name:
        errors["name"] = "Name is required"
    elif len(form.name.strip()) < 2:
        errors["name"] = "Name must be at least 2 characters"

    if not form.email:
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(form.email):
        errors["email"] = "Please enter a valid email address"

    if not form.password:
        errors["password"] = "Password is required"
    elif not PASSWORD_RE.match(form.password):
        errors["password"] = (
            "Password must be at least 8 characters with uppercase, "
            "lowercase, and number"
        )

    if not form.confirm_password:
        errors["confirm_password"] = "Please confirm your password"
    elif form.confirm_password != form.password:
        errors["confirm_password"] = "Passwords do not match"

    if not form.date_of_birth:
        errors["date_of_birth"] = "Date of birth is required"
    elif (age_error := validate_age(form.date_of_birth, today)) is not None:
        errors["date_of_birth"] = age_error

    if form.role not in {r.value for r in Role}:
        errors["role"] = "Please select a role"

    return errors


class SignupService:
    def __init__(
        self,
        client: CareApiClient,
        *,
        today_fn: TodayFn = lambda: datetime.now(UTC).date(),
    ) -> None:
        self._client = client
        self._today_fn = today_fn
        self.form = SignupForm()

    async def register(self) -> SignupOutcome:
        field_errors = validate_signup_form(self.form, self._today_fn())
        if field_errors:
            exc = FormValidationError(list(field_errors.values()))
            return SignupOutcome(
                False, exc.message, exc.category, field_errors=field_errors
            )

        body = SignupRequest(
            name=self.form.name.strip(),
            email=self.form.email,
            password=self.form.password,
            date_of_birth=self.form.date_of_birth,
            role=Role(self.form.role),
        )

        try:
            user = await self._client.signup(body)
        except SignupConflictError as exc:
            return SignupOutcome(
                False, exc.message, exc.category, login_hint=exc.hint
            )
        except RemoteServiceError as exc:
            return SignupOutcome(False, exc.detail or MSG_FAILED, exc.category)
        except ServiceUnavailableError as exc:
            logger.error("Signup failed: %s", exc.message)
            return SignupOutcome(False, MSG_NETWORK, exc.category)

        logger.info("Registered %s as %s", body.email, body.role.value)
        self.form = SignupForm()
        return SignupOutcome(True, MSG_REGISTERED, user=user)
