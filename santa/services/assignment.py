from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Set

from loguru import logger

from santa.services.constraints import (
    ExclusionMap,
    PairSet,
    ParticipantId,
    build_constraint_graph,
    build_exclusion_map,
    build_previous_pairs,
)
from santa.services.search import find_cycle
from santa.services.validation import validate_assignments

DEFAULT_MAX_ATTEMPTS = 1000
ALGORITHM_NAME = "cycle"


@dataclass(frozen=True)
class Participant:
    id: ParticipantId
    name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class Assignment:
    giver_id: ParticipantId
    receiver_id: ParticipantId


def _participant_id(participant) -> ParticipantId:
    if isinstance(participant, Mapping):
        if "id" not in participant:
            raise TypeError(f"Participant record is missing 'id': {participant!r}")
        return participant["id"]
    return getattr(participant, "id", participant)


def participant_ids(participants: Iterable) -> List[ParticipantId]:
    return [_participant_id(participant) for participant in participants]


def _exclusion_map(exclusions) -> ExclusionMap:
    if isinstance(exclusions, Mapping):
        exclusions = [
            (participant_id, excluded_id)
            for participant_id, excluded in exclusions.items()
            for excluded_id in excluded
        ]
    return build_exclusion_map(exclusions)


def _previous_pairs(previous_pairs) -> PairSet:
    if isinstance(previous_pairs, Mapping):
        previous_pairs = previous_pairs.items()
    return build_previous_pairs(previous_pairs)


def cycle_to_assignments(path: Sequence[ParticipantId]) -> List[Assignment]:
    return [
        Assignment(giver_id=giver, receiver_id=path[(index + 1) % len(path)])
        for index, giver in enumerate(path)
    ]


def generate_assignments(
    participants: Sequence,
    exclusions=None,
    previous_pairs=None,
    seed: Optional[int] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> List[Assignment]:
    """Draw a single gift cycle covering every participant.

    ``exclusions`` are symmetric hard rules, ``previous_pairs`` are
    ``(giver, receiver)`` pairs that are only avoided when possible.
    Raises ``InfeasibleConstraints`` before searching, ``AttemptsExhausted``
    when the search gives up and ``InvariantViolation`` if the drawn cycle
    fails validation.
    """
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
        raise ValueError("max_attempts must be a positive integer.")
    if seed is None:
        seed = random.randint(1, 2**31 - 1)

    ids = participant_ids(participants)
    exclusion_map = _exclusion_map(exclusions)
    soft_avoid: Set = _previous_pairs(previous_pairs)

    graph = build_constraint_graph(ids, exclusion_map)
    result = find_cycle(ids, graph, soft_avoid, seed, max_attempts)
    assignments = cycle_to_assignments(result.path)
    validate_assignments(assignments, ids, exclusion_map)

    repeated = sum(1 for item in assignments if (item.giver_id, item.receiver_id) in soft_avoid)
    logger.bind(seed=seed, attempts=result.attempts, repeated_pairs=repeated).info(
        "Assignments generated successfully on attempt {attempt}", attempt=result.attempts
    )
    return assignments
