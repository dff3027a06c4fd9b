"""Dashboard repository - doctor-scoped counts and listings"""

from datetime import date

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ...models import Appointment, Assistant, Doctor, TokenAppointment, TokenAppointmentStatus


class DashboardRepository:
    @staticmethod
    def get_todays_bookings(db: Session, doctor_id: int, today: date) -> list[TokenAppointment]:
        return (
            db.query(TokenAppointment)
            .filter(TokenAppointment.doctor_id == doctor_id, TokenAppointment.date == today)
            .order_by(TokenAppointment.time)
            .all()
        )

    @staticmethod
    def get_confirmed_between(
        db: Session, doctor_id: int, start: date, end: date, limit: int
    ) -> list[TokenAppointment]:
        return (
            db.query(TokenAppointment)
            .filter(
                TokenAppointment.doctor_id == doctor_id,
                TokenAppointment.date.between(start, end),
                TokenAppointment.status == TokenAppointmentStatus.CONFIRMED.value,
            )
            .order_by(TokenAppointment.date, TokenAppointment.time)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_bookings_between(
        db: Session, doctor_id: int, start: date, end: date
    ) -> list[TokenAppointment]:
        return (
            db.query(TokenAppointment)
            .filter(
                TokenAppointment.doctor_id == doctor_id,
                TokenAppointment.date.between(start, end),
            )
            .order_by(TokenAppointment.date, TokenAppointment.time)
            .all()
        )

    @staticmethod
    def get_stats(db: Session, doctor_id: int, today: date) -> dict:
        slots = db.query(Appointment).filter(Appointment.doctor_id == doctor_id)
        bookings = db.query(TokenAppointment).filter(TokenAppointment.doctor_id == doctor_id)
        return {
            "totalAppointments": slots.count(),
            "todayAppointments": slots.filter(Appointment.date == today).count(),
            "totalPatients": bookings.count(),
            "todayPatients": bookings.filter(TokenAppointment.date == today).count(),
            "pendingAppointments": bookings.filter(
                TokenAppointment.status == TokenAppointmentStatus.PENDING.value
            ).count(),
            "completedAppointments": bookings.filter(
                TokenAppointment.status == TokenAppointmentStatus.COMPLETED.value
            ).count(),
            "assistantsCount": db.query(Assistant)
            .filter(Assistant.doctor_id == doctor_id, Assistant.is_active.is_(True))
            .count(),
        }


def _count_status(status: TokenAppointmentStatus):
    return func.sum(case((TokenAppointment.status == status.value, 1), else_=0))


class GlobalDashboardRepository:
    """Clinic-wide figures across every doctor"""

    @staticmethod
    def get_day_stats(db: Session, on_date: date) -> dict:
        day = db.query(TokenAppointment).filter(TokenAppointment.date == on_date)
        by_status = dict(
            db.query(TokenAppointment.status, func.count(TokenAppointment.id))
            .filter(TokenAppointment.date == on_date)
            .group_by(TokenAppointment.status)
            .all()
        )
        # Anonymous walk-ins have no email; their phone number identifies them instead
        patients = (
            db.query(
                func.count(
                    func.distinct(
                        func.coalesce(TokenAppointment.patient_email, TokenAppointment.patient_phone)
                    )
                )
            )
            .filter(TokenAppointment.date == on_date)
            .scalar()
        )
        revenue = (
            db.query(func.coalesce(func.sum(TokenAppointment.doctor_fee), 0.0))
            .filter(
                TokenAppointment.date == on_date,
                TokenAppointment.status == TokenAppointmentStatus.COMPLETED.value,
            )
            .scalar()
        )
        return {
            "totalDoctors": db.query(Doctor).count(),
            "totalAppointmentsToday": day.count(),
            "totalPatientsToday": patients or 0,
            "confirmedAppointments": by_status.get(TokenAppointmentStatus.CONFIRMED.value, 0),
            "pendingAppointments": by_status.get(TokenAppointmentStatus.PENDING.value, 0),
            "completedAppointments": by_status.get(TokenAppointmentStatus.COMPLETED.value, 0),
            "cancelledAppointments": by_status.get(TokenAppointmentStatus.CANCELLED.value, 0),
            "totalRevenue": float(revenue or 0),
        }

    @staticmethod
    def get_doctor_day_stats(db: Session, on_date: date) -> list[dict]:
        """One row per doctor with bookings that day, busiest first"""
        total = func.count(TokenAppointment.id).label("totalAppointments")
        rows = (
            db.query(
                Doctor.id,
                Doctor.name,
                Doctor.specialization,
                total,
                _count_status(TokenAppointmentStatus.CONFIRMED),
                _count_status(TokenAppointmentStatus.COMPLETED),
                _count_status(TokenAppointmentStatus.CANCELLED),
                func.sum(
                    case(
                        (
                            TokenAppointment.status == TokenAppointmentStatus.COMPLETED.value,
                            TokenAppointment.doctor_fee,
                        ),
                        else_=0.0,
                    )
                ),
            )
            .join(TokenAppointment, TokenAppointment.doctor_id == Doctor.id)
            .filter(TokenAppointment.date == on_date)
            .group_by(Doctor.id, Doctor.name, Doctor.specialization)
            .order_by(total.desc(), Doctor.name)
            .all()
        )
        return [
            {
                "doctorId": doctor_id,
                "doctorName": name,
                "specialization": specialization,
                "totalAppointments": count,
                "confirmedAppointments": int(confirmed or 0),
                "completedAppointments": int(completed or 0),
                "cancelledAppointments": int(cancelled or 0),
                "totalRevenue": float(revenue or 0),
            }
            for doctor_id, name, specialization, count, confirmed, completed, cancelled, revenue in rows
        ]
