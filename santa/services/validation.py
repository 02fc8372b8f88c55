from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence, Set

from santa.services.constraints import ParticipantId
from santa.services.errors import InvariantViolation


def validate_assignments(
    assignments: Sequence,
    participant_ids: Iterable[ParticipantId],
    exclusions: Optional[Mapping[ParticipantId, Set[ParticipantId]]] = None,
) -> None:
    known = set(participant_ids)
    exclusions = exclusions or {}
    givers: Set[ParticipantId] = set()
    receivers: Set[ParticipantId] = set()

    if len(assignments) != len(known):
        raise InvariantViolation(
            f"Expected {len(known)} assignments, got {len(assignments)}."
        )

    for assignment in assignments:
        giver_id, receiver_id = assignment.giver_id, assignment.receiver_id
        if giver_id not in known or receiver_id not in known:
            raise InvariantViolation("Invalid participant in assignment.")
        if giver_id == receiver_id:
            raise InvariantViolation("Self-assignment detected.")
        if receiver_id in exclusions.get(giver_id, ()):
            raise InvariantViolation("Assignment violates exclusion rule.")
        givers.add(giver_id)
        receivers.add(receiver_id)

    if len(givers) != len(known) or len(receivers) != len(known):
        raise InvariantViolation("Not all participants have assignments.")
