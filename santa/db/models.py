from __future__ import annotations

import enum

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class PartyStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"


class Party(Base):
    __tablename__ = "parties"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    status = Column(
        Enum(PartyStatus, name="party_status"),
        nullable=False,
        default=PartyStatus.PENDING,
        server_default=PartyStatus.PENDING.value,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    participants = relationship(
        "Participant",
        back_populates="party",
        cascade="all, delete-orphan",
        order_by="Participant.id",
    )
    assignments = relationship("Assignment", back_populates="party", cascade="all, delete-orphan")
    metadata_row = relationship(
        "AssignmentMetadata", back_populates="party", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Party(id={self.id}, name={self.name}, status={self.status})>"


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True)
    party_id = Column(Integer, ForeignKey("parties.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    assigned_to_id = Column(Integer, ForeignKey("participants.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    party = relationship("Party", back_populates="participants")
    assigned_to = relationship("Participant", remote_side=[id])

    def __repr__(self) -> str:
        return (
            "<Participant(id={0}, party_id={1}, name={2}, assigned_to_id={3})>"
        ).format(self.id, self.party_id, self.name, self.assigned_to_id)


class ParticipantExclusion(Base):
    __tablename__ = "participant_exclusions"

    id = Column(Integer, primary_key=True)
    party_id = Column(Integer, ForeignKey("parties.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    excluded_participant_id = Column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    reason = Column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "party_id",
            "participant_id",
            "excluded_participant_id",
            name="uq_participant_exclusions_pair",
        ),
    )


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True)
    party_id = Column(Integer, ForeignKey("parties.id", ondelete="CASCADE"), nullable=False)
    giver_id = Column(Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    party = relationship("Party", back_populates="assignments")
    giver = relationship("Participant", foreign_keys=[giver_id])
    receiver = relationship("Participant", foreign_keys=[receiver_id])

    __table_args__ = (
        UniqueConstraint("party_id", "giver_id", name="uq_assignments_party_giver"),
    )


class PreviousAssignment(Base):
    __tablename__ = "previous_assignments"

    id = Column(Integer, primary_key=True)
    party_id = Column(Integer, ForeignKey("parties.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    giver_id = Column(Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("party_id", "year", "giver_id", name="uq_previous_assignments_year_giver"),
    )


class AssignmentMetadata(Base):
    __tablename__ = "assignment_metadata"

    id = Column(Integer, primary_key=True)
    party_id = Column(Integer, ForeignKey("parties.id", ondelete="CASCADE"), nullable=False, unique=True)
    generation_attempts = Column(Integer, nullable=False, default=0)
    last_generated_at = Column(DateTime(timezone=True), nullable=True)
    last_seed = Column(BigInteger, nullable=True)
    algorithm_used = Column(String, nullable=True)
    is_locked = Column(Boolean, nullable=False, default=False)

    party = relationship("Party", back_populates="metadata_row")
