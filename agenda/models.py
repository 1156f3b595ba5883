import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def generate_public_id():
    """Generate a unique ID for externally visible records"""
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class AppointmentStatus(str, enum.Enum):
    """
    Appointment status.

    Member values are the strings exposed by the API; member names are what
    the database stores (SQLAlchemy's Enum type persists names), so this one
    enum is the conversion table between both representations.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def storage_value(self) -> str:
        return self.name

    @classmethod
    def from_storage(cls, value: str) -> "AppointmentStatus":
        return cls[value]

    @property
    def blocks_slot(self) -> bool:
        """Whether an appointment in this status occupies its time range"""
        return self not in (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)


ACTIVE_STATUSES = frozenset(
    {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS}
)
NON_BLOCKING_STATUSES = (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    email_verified = Column(Boolean, default=False, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    business = relationship("Business", back_populates="user", uselist=False)


class Business(Base):
    __tablename__ = "businesses"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    admin_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(255), nullable=True)
    province = Column(String(255), nullable=True)
    logo = Column(Text, nullable=True)  # URL or data URI
    # Schedule mode: per-day operating hours vs. a single global schedule
    use_individual_schedule = Column(Boolean, default=False, nullable=False)
    use_individual_professional_schedule = Column(Boolean, default=False, nullable=False)
    global_open_time = Column(String(5), nullable=True)  # HH:mm
    global_close_time = Column(String(5), nullable=True)  # HH:mm
    global_duration = Column(Integer, nullable=True)  # slot length in minutes
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="business")
    operating_hours = relationship(
        "OperatingHours", back_populates="business", cascade="all, delete-orphan"
    )
    professionals = relationship(
        "Professional",
        back_populates="business",
        order_by="Professional.created_at",
    )
    services = relationship("Service", back_populates="business", order_by="Service.created_at")
    clients = relationship("Client", back_populates="business")
    appointments = relationship("Appointment", back_populates="business")
    booking_preferences = relationship(
        "BookingPreferences", back_populates="business", uselist=False, cascade="all, delete-orphan"
    )
    communication_settings = relationship(
        "CommunicationSettings",
        back_populates="business",
        uselist=False,
        cascade="all, delete-orphan",
    )


class OperatingHours(Base):
    __tablename__ = "operating_hours"
    __table_args__ = (UniqueConstraint("business_id", "day_of_week", name="uq_operating_hours_day"),)

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    day_of_week = Column(String(10), nullable=False)  # monday..sunday
    enabled = Column(Boolean, default=True, nullable=False)
    open_time = Column(String(5), nullable=False)
    close_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)

    business = relationship("Business", back_populates="operating_hours")


service_professionals = Table(
    "service_professionals",
    Base.metadata,
    Column("service_id", String(36), ForeignKey("services.id"), primary_key=True),
    Column("professional_id", String(36), ForeignKey("professionals.id"), primary_key=True),
)


class Professional(Base):
    __tablename__ = "professionals"
    __table_args__ = (
        UniqueConstraint("business_id", "external_id", name="uq_professional_external_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_public_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    external_id = Column(String(100), nullable=False)  # ID supplied by the frontend
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    birth_date = Column(Date, nullable=True)
    dni = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    use_individual_schedule = Column(Boolean, default=False, nullable=False)
    global_open_time = Column(String(5), nullable=True)
    global_close_time = Column(String(5), nullable=True)
    global_duration = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    business = relationship("Business", back_populates="professionals")
    schedules = relationship(
        "ProfessionalSchedule", back_populates="professional", cascade="all, delete-orphan"
    )
    services = relationship(
        "Service", secondary=service_professionals, back_populates="professionals"
    )
    appointments = relationship("Appointment", back_populates="professional")


class ProfessionalSchedule(Base):
    __tablename__ = "professional_schedules"
    __table_args__ = (
        UniqueConstraint("professional_id", "day_of_week", name="uq_professional_schedule_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(String(36), ForeignKey("professionals.id"), nullable=False, index=True)
    day_of_week = Column(String(10), nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)
    open_time = Column(String(5), nullable=False)
    close_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)

    professional = relationship("Professional", back_populates="schedules")


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (UniqueConstraint("business_id", "external_id", name="uq_service_external_id"),)

    id = Column(String(36), primary_key=True, default=generate_public_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    external_id = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    price = Column(Numeric(10, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    business = relationship("Business", back_populates="services")
    professionals = relationship(
        "Professional",
        secondary=service_professionals,
        back_populates="services",
        order_by="Professional.created_at",
    )
    appointments = relationship("Appointment", back_populates="service")


class Client(Base):
    __tablename__ = "clients"
    __table_args__ = (Index("ix_clients_business_email", "business_id", "email"),)

    id = Column(String(36), primary_key=True, default=generate_public_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    business = relationship("Business", back_populates="clients")
    appointments = relationship("Appointment", back_populates="client")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_professional_date", "professional_id", "date"),
        Index("ix_appointments_business_date", "business_id", "date"),
    )

    id = Column(String(36), primary_key=True, default=generate_public_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    professional_id = Column(String(36), ForeignKey("professionals.id"), nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:mm, 24h
    end_time = Column(String(5), nullable=False)  # HH:mm, 24h
    duration = Column(Integer, nullable=False)  # minutes
    status = Column(
        Enum(AppointmentStatus, name="appointment_status"),
        default=AppointmentStatus.CONFIRMED,
        nullable=False,
    )
    price = Column(Numeric(10, 2), nullable=True)  # Snapshot of the service price at booking time
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_reason = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    business = relationship("Business", back_populates="appointments")
    client = relationship("Client", back_populates="appointments")
    professional = relationship("Professional", back_populates="appointments")
    service = relationship("Service", back_populates="appointments")


class BookingPreferences(Base):
    __tablename__ = "booking_preferences"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(36), ForeignKey("businesses.id"), unique=True, nullable=False)
    allow_cancellation = Column(Boolean, default=True, nullable=False)
    hours_before_booking = Column(Integer, default=24, nullable=False)  # cancellation window
    max_days_ahead = Column(Integer, default=30, nullable=False)

    business = relationship("Business", back_populates="booking_preferences")


class CommunicationSettings(Base):
    __tablename__ = "communication_settings"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String(36), ForeignKey("businesses.id"), unique=True, nullable=False)
    send_confirmation_email = Column(Boolean, default=True, nullable=False)
    send_reminder_email = Column(Boolean, default=True, nullable=False)
    reminder_hours_before = Column(Integer, default=24, nullable=False)

    business = relationship("Business", back_populates="communication_settings")
