"""Database setup and models for confirmed run-sheet extractions."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session

from .models import RunSheetDocument


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class RunSheetScreenshot(Base):
    """Represents one processed screenshot."""
    __tablename__ = "runsheet_screenshots"

    id = Column(Integer, primary_key=True)
    file_path = Column(String(500), nullable=False)
    layout = Column(String(20), nullable=False)
    image_width = Column(Float, nullable=True)
    image_height = Column(Float, nullable=True)
    processed_at = Column(DateTime, nullable=True)


class RunSheetClinician(Base):
    """Represents the vocabulary of clinicians seen in column headers."""
    __tablename__ = "runsheet_clinicians"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True)


class RunSheetAppointment(Base):
    """Represents a single extracted appointment."""
    __tablename__ = "runsheet_appointments"

    id = Column(Integer, primary_key=True)
    screenshot_id = Column(Integer, ForeignKey("runsheet_screenshots.id"), nullable=False)
    clinician_id = Column(Integer, ForeignKey("runsheet_clinicians.id"), nullable=True)
    patient_name = Column(String(200), nullable=True)
    patient_phone = Column(String(20), nullable=True)
    appointment_time = Column(String(5), nullable=True)
    appointment_type = Column(String(100), nullable=True)
    confidence = Column(Float, nullable=False, default=0.0)


def get_db_engine(db_path: str = "runsheet_data.db", echo: bool = False) -> Engine:
    """
    Create and return a SQLAlchemy Engine connected to a SQLite database.

    Args:
        db_path: SQLite file path, or ``:memory:`` for an in-memory database
        echo: Log emitted SQL

    Returns:
        sqlalchemy.Engine: Database engine instance
    """
    if db_path == ":memory:":
        return create_engine("sqlite://", echo=echo)

    full_db_path = Path(db_path).expanduser().resolve()
    full_db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{full_db_path}", echo=echo)


def create_tables(engine: Engine) -> None:
    """
    Create all database tables defined in Base.metadata.

    Args:
        engine: SQLAlchemy Engine instance
    """
    Base.metadata.create_all(engine)


def get_or_create_clinician(session: Session, name: str) -> RunSheetClinician:
    clinician = session.execute(
        select(RunSheetClinician).where(RunSheetClinician.name == name)
    ).scalar_one_or_none()
    if clinician is None:
        clinician = RunSheetClinician(name=name)
        session.add(clinician)
        session.flush()
    return clinician


def save_run_sheet(session: Session, document: RunSheetDocument, processed_at: Optional[datetime] = None) -> int:
    """
    Persist a document and its appointments.

    Clinicians are looked up by name and created on first sight. The caller
    owns the transaction; this only adds and flushes.

    Args:
        session: Open SQLAlchemy session
        document: Extracted run sheet
        processed_at: Timestamp to record (default: now, UTC)

    Returns:
        The new screenshot id
    """
    screenshot = RunSheetScreenshot(
        file_path=str(document.file_path),
        layout=document.layout.value,
        image_width=document.image_width,
        image_height=document.image_height,
        processed_at=processed_at or datetime.now(timezone.utc),
    )
    session.add(screenshot)
    session.flush()

    clinicians = {}
    for appointment in document.appointments:
        clinician_id = None
        if appointment.clinician_name:
            if appointment.clinician_name not in clinicians:
                clinicians[appointment.clinician_name] = get_or_create_clinician(
                    session, appointment.clinician_name
                )
            clinician_id = clinicians[appointment.clinician_name].id

        session.add(RunSheetAppointment(
            screenshot_id=screenshot.id,
            clinician_id=clinician_id,
            patient_name=appointment.patient_name,
            patient_phone=appointment.patient_phone,
            appointment_time=appointment.appointment_time,
            appointment_type=appointment.appointment_type,
            confidence=appointment.confidence,
        ))

    session.flush()
    return screenshot.id
