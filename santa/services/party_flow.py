from __future__ import annotations

import datetime
import random
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from santa.core.config import Settings, load_settings
from santa.db import Participant, Party, PartyStatus, repo
from santa.services.assignment import ALGORITHM_NAME, Assignment, generate_assignments
from santa.services.constraints import MIN_PARTICIPANTS, build_exclusion_map, build_previous_pairs
from santa.services.errors import AssignmentError, InfeasibleConstraints


@dataclass(frozen=True)
class GenerationResult:
    party: Party
    assignments: List[Assignment]
    participants: List[Participant]
    seed: int
    regenerated: bool


@dataclass(frozen=True)
class AssignmentStats:
    total_participants: int
    total_assignments: int
    is_locked: bool
    generated_at: Optional[datetime.datetime]
    generation_attempts: int
    algorithm: str


def create_party(session, name: str) -> Party:
    return repo.create_party(session, name)


def get_party(session, party_id: int) -> Party:
    party = repo.get_party_by_id(session, party_id)
    if party is None:
        raise AssignmentError(f"Party {party_id} not found.")
    return party


def add_participant(session, party: Party, name: str, email: Optional[str] = None) -> Participant:
    if party.status == PartyStatus.ACTIVE:
        raise AssignmentError("Assignments already exist. Delete them before adding participants.")
    return repo.add_participant(session, party.id, name, email)


def add_exclusion(
    session,
    party: Party,
    participant_id: int,
    excluded_participant_id: int,
    reason: Optional[str] = None,
) -> None:
    if participant_id == excluded_participant_id:
        raise AssignmentError("A participant cannot exclude themselves.")
    for item in (participant_id, excluded_participant_id):
        if repo.get_participant(session, party.id, item) is None:
            raise AssignmentError(f"Participant {item} is not part of this party.")
    repo.upsert_exclusion(session, party.id, participant_id, excluded_participant_id, reason)


def clear_exclusions(session, party: Party) -> None:
    repo.delete_exclusions(session, party.id)


def generate_party_assignments(
    session,
    party: Party,
    seed: Optional[int] = None,
    max_attempts: Optional[int] = None,
    regenerate: bool = False,
    force_regenerate: bool = False,
    lock_after_generation: bool = False,
    year: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> GenerationResult:
    if repo.is_locked(session, party.id) and not force_regenerate:
        raise AssignmentError("Assignments are locked. Use force_regenerate to regenerate.")

    existing = repo.assignments_exist(session, party.id)
    if existing and not regenerate:
        raise AssignmentError(
            "Assignments already exist. Delete them first or use the regenerate option."
        )

    participants = repo.list_participants(session, party.id)
    if len(participants) < MIN_PARTICIPANTS:
        raise InfeasibleConstraints(
            f"At least {MIN_PARTICIPANTS} participants are required for Secret Santa."
        )

    exclusions = build_exclusion_map(repo.list_exclusions(session, party.id))
    year = year or datetime.date.today().year
    previous_pairs = build_previous_pairs(repo.list_previous_assignments(session, party.id, year - 1))

    if existing:
        repo.clear_assignments(session, party.id)
        logger.bind(party_id=party.id).info("Deleted existing assignments")

    if seed is None:
        seed = random.randint(1, 2**31 - 1)
    if max_attempts is None:
        max_attempts = (settings or load_settings()).max_attempts

    assignments = generate_assignments(
        participants,
        exclusions=exclusions,
        previous_pairs=previous_pairs,
        seed=seed,
        max_attempts=max_attempts,
    )

    try:
        repo.create_assignments(session, party.id, assignments)
    except IntegrityError as exc:
        raise AssignmentError("Secret Santa assignments already exist for this party.") from exc
    repo.set_participant_receivers(session, assignments)
    repo.save_previous_assignments(session, party.id, year, assignments)

    metadata = repo.get_metadata(session, party.id)
    repo.upsert_metadata(
        session,
        party.id,
        generation_attempts=(metadata.generation_attempts if metadata else 0) + 1,
        seed=seed,
        algorithm_used=ALGORITHM_NAME,
        is_locked=lock_after_generation,
    )
    repo.update_party_status(session, party, PartyStatus.ACTIVE)

    logger.bind(
        party_id=party.id,
        seed=seed,
        participant_count=len(participants),
        regeneration=existing,
        action="generate_assignments",
    ).info("Assignments generated")

    return GenerationResult(
        party=party,
        assignments=assignments,
        participants=participants,
        seed=seed,
        regenerated=existing,
    )


def delete_party_assignments(session, party: Party) -> None:
    if repo.is_locked(session, party.id):
        raise AssignmentError("Assignments are locked and cannot be deleted. Unlock them first.")
    repo.clear_assignments(session, party.id)
    repo.update_party_status(session, party, PartyStatus.PENDING)
    logger.bind(party_id=party.id, action="delete_assignments").info("Deleted assignments")


def regenerate_party_assignments(session, party: Party, **options) -> GenerationResult:
    delete_party_assignments(session, party)
    options["regenerate"] = True
    return generate_party_assignments(session, party, **options)


def lock_assignments(session, party: Party) -> bool:
    locked = repo.set_locked(session, party.id, True)
    if locked:
        logger.bind(party_id=party.id, action="lock_assignments").info("Assignments locked")
    return locked


def unlock_assignments(session, party: Party) -> bool:
    unlocked = repo.set_locked(session, party.id, False)
    if unlocked:
        logger.bind(party_id=party.id, action="unlock_assignments").info("Assignments unlocked")
    return unlocked


def get_receiver(session, party: Party, participant_id: int) -> Optional[Participant]:
    assignment = repo.get_assignment_for_giver(session, party.id, participant_id)
    if not assignment:
        return None
    return repo.get_participant(session, party.id, assignment.receiver_id)


def get_assignment_stats(session, party: Party) -> AssignmentStats:
    metadata = repo.get_metadata(session, party.id)
    return AssignmentStats(
        total_participants=len(repo.list_participants(session, party.id)),
        total_assignments=len(repo.list_assignments(session, party.id)),
        is_locked=bool(metadata and metadata.is_locked),
        generated_at=metadata.last_generated_at if metadata else None,
        generation_attempts=metadata.generation_attempts if metadata else 0,
        algorithm=(metadata.algorithm_used if metadata else None) or "unknown",
    )
