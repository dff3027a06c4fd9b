"""Shared fixtures: in-memory database, reference data, bearer tokens, API client"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ALLOW_ANONYMOUS_BOOKINGS"] = "true"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from clinic_api.auth import build_principal  # noqa: E402
from clinic_api.database import Base, SessionLocal, engine, get_db  # noqa: E402
from clinic_api.main import app  # noqa: E402
from clinic_api.models import (  # noqa: E402
    Appointment,
    AppointmentStatus,
    Assistant,
    Clinic,
    Doctor,
    RoleType,
    User,
)
from clinic_api.security_utils import create_access_token  # noqa: E402

TOMORROW = date.today() + timedelta(days=1)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _add(db, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def make_user(db_session):
    def _make(email: str, role: RoleType = RoleType.USER, **kwargs) -> User:
        return _add(
            db_session,
            User(email=email, role=role.value, full_name=kwargs.pop("full_name", email), **kwargs),
        )

    return _make


@pytest.fixture
def clinic(db_session):
    return _add(
        db_session,
        Clinic(
            location_name="Downtown Clinic",
            address="1 Main St",
            city="Springfield",
            state="IL",
            postal_code="62701",
            phone="+15551230000",
        ),
    )


@pytest.fixture
def make_doctor(db_session, make_user):
    def _make(name: str = "Dr. Grey", fee: float = 500.0) -> Doctor:
        slug = name.lower().replace(" ", "").replace(".", "")
        user = make_user(f"{slug}@clinic.test", RoleType.DOCTOR)
        return _add(
            db_session,
            Doctor(
                user_id=user.id,
                name=name,
                specialization="Cardiology",
                license_number=f"LIC-{slug}",
                consultation_fee=fee,
            ),
        )

    return _make


@pytest.fixture
def doctor(make_doctor):
    return make_doctor()


@pytest.fixture
def other_doctor(make_doctor):
    return make_doctor("Dr. House", fee=800.0)


@pytest.fixture
def assistant(db_session, make_user, doctor):
    user = make_user("nina@clinic.test", RoleType.ASSISTANT)
    return _add(
        db_session,
        Assistant(
            user_id=user.id,
            doctor_id=doctor.id,
            name="Nina",
            email="nina@clinic.test",
            phone="+15551239999",
        ),
    )


@pytest.fixture
def patient(make_user):
    return make_user("jane@example.com")


@pytest.fixture
def other_patient(make_user):
    return make_user("bob@example.com")


@pytest.fixture
def admin(make_user):
    return make_user("admin@clinic.test", RoleType.ADMIN)


@pytest.fixture
def make_slot(db_session, doctor, clinic):
    def _make(
        start: str = "09:00",
        end: str = "10:00",
        max_patients: int = 1,
        on_date: date = TOMORROW,
        for_doctor: Doctor = None,
        status: AppointmentStatus = AppointmentStatus.AVAILABLE,
    ) -> Appointment:
        return _add(
            db_session,
            Appointment(
                doctor_id=(for_doctor or doctor).id,
                clinic_id=clinic.id,
                date=on_date,
                start_time=start,
                end_time=end,
                duration=30,
                max_patients=max_patients,
                current_bookings=0,
                status=status.value,
            ),
        )

    return _make


@pytest.fixture
def principal_for(db_session):
    def _principal(user: User):
        db_session.refresh(user)
        return build_principal(user)

    return _principal


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({"sub": user.id, "email": user.email, "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def patient_payload():
    def _payload(**overrides) -> dict:
        payload = {
            "patientName": "Jane Doe",
            "patientEmail": "jane@example.com",
            "patientPhone": "555-123-4567",
            "patientAge": 34,
            "patientGender": "Female",
            "reasonForVisit": "Chest pain",
        }
        payload.update(overrides)
        return payload

    return _payload
