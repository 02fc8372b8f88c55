from __future__ import annotations

import datetime
from typing import Iterable, List, Optional

from sqlalchemy import and_, delete, func, select, update

from santa.db.models import (
    Assignment,
    AssignmentMetadata,
    Participant,
    ParticipantExclusion,
    Party,
    PartyStatus,
    PreviousAssignment,
)


def create_party(session, name: str) -> Party:
    party = Party(name=name)
    session.add(party)
    session.flush()
    return party


def get_party_by_id(session, party_id: int) -> Optional[Party]:
    return session.scalar(select(Party).where(Party.id == party_id))


def update_party_status(session, party: Party, status: PartyStatus) -> None:
    party.status = status


def add_participant(session, party_id: int, name: str, email: Optional[str]) -> Participant:
    participant = Participant(party_id=party_id, name=name, email=email)
    session.add(participant)
    session.flush()
    return participant


def get_participant(session, party_id: int, participant_id: int) -> Optional[Participant]:
    return session.scalar(
        select(Participant).where(
            and_(Participant.party_id == party_id, Participant.id == participant_id)
        )
    )


def list_participants(session, party_id: int) -> List[Participant]:
    return list(
        session.scalars(
            select(Participant).where(Participant.party_id == party_id).order_by(Participant.id)
        ).all()
    )


def upsert_exclusion(
    session,
    party_id: int,
    participant_id: int,
    excluded_participant_id: int,
    reason: Optional[str],
) -> ParticipantExclusion:
    exclusion = session.scalar(
        select(ParticipantExclusion).where(
            and_(
                ParticipantExclusion.party_id == party_id,
                ParticipantExclusion.participant_id == participant_id,
                ParticipantExclusion.excluded_participant_id == excluded_participant_id,
            )
        )
    )
    if exclusion:
        exclusion.reason = reason
        return exclusion

    exclusion = ParticipantExclusion(
        party_id=party_id,
        participant_id=participant_id,
        excluded_participant_id=excluded_participant_id,
        reason=reason,
    )
    session.add(exclusion)
    session.flush()
    return exclusion


def list_exclusions(session, party_id: int) -> List[ParticipantExclusion]:
    return list(
        session.scalars(
            select(ParticipantExclusion).where(ParticipantExclusion.party_id == party_id)
        ).all()
    )


def delete_exclusions(session, party_id: int) -> None:
    session.execute(delete(ParticipantExclusion).where(ParticipantExclusion.party_id == party_id))


def assignments_exist(session, party_id: int) -> bool:
    return session.scalar(
        select(func.count()).select_from(Assignment).where(Assignment.party_id == party_id)
    ) > 0


def list_assignments(session, party_id: int) -> List[Assignment]:
    return list(
        session.scalars(
            select(Assignment).where(Assignment.party_id == party_id).order_by(Assignment.id)
        ).all()
    )


def get_assignment_for_giver(session, party_id: int, giver_id: int) -> Optional[Assignment]:
    return session.scalar(
        select(Assignment).where(
            and_(Assignment.party_id == party_id, Assignment.giver_id == giver_id)
        )
    )


def create_assignments(session, party_id: int, assignments: Iterable) -> List[Assignment]:
    rows = [
        Assignment(party_id=party_id, giver_id=item.giver_id, receiver_id=item.receiver_id)
        for item in assignments
    ]
    session.add_all(rows)
    session.flush()
    return rows


def set_participant_receivers(session, assignments: Iterable) -> None:
    for item in assignments:
        session.execute(
            update(Participant)
            .where(Participant.id == item.giver_id)
            .values(assigned_to_id=item.receiver_id)
        )


def clear_assignments(session, party_id: int) -> None:
    session.execute(delete(Assignment).where(Assignment.party_id == party_id))
    session.execute(
        update(Participant).where(Participant.party_id == party_id).values(assigned_to_id=None)
    )


def list_previous_assignments(session, party_id: int, year: int) -> List[PreviousAssignment]:
    return list(
        session.scalars(
            select(PreviousAssignment).where(
                and_(PreviousAssignment.party_id == party_id, PreviousAssignment.year == year)
            )
        ).all()
    )


def save_previous_assignments(session, party_id: int, year: int, assignments: Iterable) -> None:
    existing = {row.giver_id: row for row in list_previous_assignments(session, party_id, year)}
    for item in assignments:
        row = existing.get(item.giver_id)
        if row:
            row.receiver_id = item.receiver_id
            continue
        session.add(
            PreviousAssignment(
                party_id=party_id,
                year=year,
                giver_id=item.giver_id,
                receiver_id=item.receiver_id,
            )
        )
    session.flush()


def get_metadata(session, party_id: int) -> Optional[AssignmentMetadata]:
    return session.scalar(select(AssignmentMetadata).where(AssignmentMetadata.party_id == party_id))


def upsert_metadata(
    session,
    party_id: int,
    generation_attempts: int,
    seed: Optional[int],
    algorithm_used: str,
    is_locked: bool,
) -> AssignmentMetadata:
    metadata = get_metadata(session, party_id)
    if not metadata:
        metadata = AssignmentMetadata(party_id=party_id)
        session.add(metadata)
    metadata.generation_attempts = generation_attempts
    metadata.last_generated_at = datetime.datetime.now(datetime.timezone.utc)
    metadata.last_seed = seed
    metadata.algorithm_used = algorithm_used
    metadata.is_locked = is_locked
    session.flush()
    return metadata


def set_locked(session, party_id: int, is_locked: bool) -> bool:
    metadata = get_metadata(session, party_id)
    if not metadata:
        return False
    metadata.is_locked = is_locked
    return True


def is_locked(session, party_id: int) -> bool:
    metadata = get_metadata(session, party_id)
    return bool(metadata and metadata.is_locked)
