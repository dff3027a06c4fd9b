import enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class RoleType(str, enum.Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    ASSISTANT = "assistant"
    USER = "user"  # patient


class AppointmentStatus(str, enum.Enum):
    AVAILABLE = "Available"
    BOOKED = "Booked"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class TokenAppointmentStatus(str, enum.Enum):
    CONFIRMED = "Confirmed"
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "No Show"


# Bookings in these states hold a place in their slot
ACTIVE_BOOKING_STATUSES = (TokenAppointmentStatus.CONFIRMED, TokenAppointmentStatus.PENDING)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), default=RoleType.USER.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="user", uselist=False)
    assistant = relationship("Assistant", back_populates="user", uselist=False)


class Clinic(Base):
    __tablename__ = "clinics"

    id = Column(Integer, primary_key=True, index=True)
    location_name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    postal_code = Column(String(20), nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="clinic")


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    specialization = Column(String(255), nullable=False)
    qualification = Column(String(255), nullable=True)
    experience = Column(Integer, nullable=True)  # years
    license_number = Column(String(100), unique=True, nullable=False)
    bio = Column(Text, nullable=True)
    consultation_fee = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="doctor")
    assistants = relationship("Assistant", back_populates="doctor")
    appointments = relationship("Appointment", back_populates="doctor")
    token_appointments = relationship("TokenAppointment", back_populates="doctor")


class Assistant(Base):
    __tablename__ = "assistants"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(50), nullable=False)
    qualification = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="assistant")
    doctor = relationship("Doctor", back_populates="assistants")


class Appointment(Base):
    """A bookable doctor/clinic/date/time window with a patient capacity (a slot)"""

    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_doctor_date", "doctor_id", "date"),)

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False)

    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM format
    end_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes

    # Status workflow: Available ⇄ Booked (driven by current_bookings),
    # Completed / Cancelled only by explicit edits
    status = Column(String(20), default=AppointmentStatus.AVAILABLE.value, nullable=False)
    max_patients = Column(Integer, default=1, nullable=False)
    current_bookings = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="appointments")
    clinic = relationship("Clinic", back_populates="appointments")
    token_appointments = relationship("TokenAppointment", back_populates="appointment")


class TokenAppointment(Base):
    """One patient's booking against a slot, identified by its token number"""

    __tablename__ = "token_appointments"
    __table_args__ = (Index("ix_token_appointments_doctor_date", "doctor_id", "date"),)

    id = Column(Integer, primary_key=True, index=True)

    # Patient identity (email is optional for assistant/doctor bookings)
    patient_name = Column(String(255), nullable=False)
    patient_email = Column(String(255), nullable=True, index=True)
    patient_phone = Column(String(50), nullable=False)
    patient_age = Column(Integer, nullable=False)
    patient_gender = Column(String(20), nullable=False)
    patient_location = Column(String(255), nullable=True)
    patient_type = Column(String(20), default="New", nullable=False)  # New, Old
    is_old_patient = Column(Boolean, default=False, nullable=False)

    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)

    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM, within the slot window
    token_number = Column(String(50), unique=True, nullable=False)

    status = Column(String(20), default=TokenAppointmentStatus.CONFIRMED.value, nullable=False)
    doctor_fee = Column(Float, nullable=True)
    reason_for_visit = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="token_appointments")
    appointment = relationship("Appointment", back_populates="token_appointments")
