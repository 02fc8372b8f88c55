from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, Mapping, Optional, Sequence, Set, Tuple

from loguru import logger

from santa.services.errors import InfeasibleConstraints

ParticipantId = Hashable
ExclusionMap = Dict[ParticipantId, Set[ParticipantId]]
PairSet = Set[Tuple[ParticipantId, ParticipantId]]

MIN_PARTICIPANTS = 3

EXCLUDER_FIELDS = ("participant_id", "participantId")
EXCLUDED_FIELDS = ("excluded_participant_id", "excludedParticipantId")
GIVER_FIELDS = ("giver_id", "giverId")
RECEIVER_FIELDS = ("receiver_id", "receiverId")


@dataclass(frozen=True)
class ExclusionRule:
    participant_id: ParticipantId
    excluded_participant_id: ParticipantId
    reason: Optional[str] = None


@dataclass(frozen=True)
class ConstraintGraph:
    nodes: Tuple[ParticipantId, ...]
    receivers: Mapping[ParticipantId, Tuple[ParticipantId, ...]]

    def allows(self, giver: ParticipantId, receiver: ParticipantId) -> bool:
        return receiver in self.receivers.get(giver, ())

    def givers_of(self, receiver: ParticipantId) -> Tuple[ParticipantId, ...]:
        return tuple(giver for giver in self.nodes if self.allows(giver, receiver))


def _read(item, names: Tuple[str, ...], kind: str):
    if isinstance(item, Mapping):
        for name in names:
            if name in item:
                return item[name]
        raise TypeError(f"{kind} record is missing {names[0]!r}: {item!r}")
    return getattr(item, names[0])


def _pair(item, first: Tuple[str, ...], second: Tuple[str, ...], kind: str):
    if isinstance(item, Mapping) or hasattr(item, first[0]):
        return _read(item, first, kind), _read(item, second, kind)
    if isinstance(item, (tuple, list)) and len(item) == 2:
        return item[0], item[1]
    raise TypeError(f"Cannot read {kind} from {item!r}.")


def build_exclusion_map(exclusions: Optional[Iterable] = None) -> ExclusionMap:
    exclusion_map: ExclusionMap = {}
    for item in exclusions or []:
        participant_id, excluded_id = _pair(
            item, EXCLUDER_FIELDS, EXCLUDED_FIELDS, "exclusion"
        )
        if participant_id == excluded_id:
            continue
        exclusion_map.setdefault(participant_id, set()).add(excluded_id)
        exclusion_map.setdefault(excluded_id, set()).add(participant_id)
    return exclusion_map


def build_previous_pairs(previous: Optional[Iterable] = None) -> PairSet:
    return {
        _pair(item, GIVER_FIELDS, RECEIVER_FIELDS, "previous pair")
        for item in previous or []
    }


def build_constraint_graph(
    participant_ids: Sequence[ParticipantId],
    exclusions: Optional[Mapping[ParticipantId, Set[ParticipantId]]] = None,
) -> ConstraintGraph:
    """Build the giver -> receivers graph and reject provably impossible inputs.

    Passing this check does not mean a gift cycle exists, only that nobody is
    left without a receiver or without a giver.
    """
    nodes = tuple(participant_ids)
    if len(nodes) < MIN_PARTICIPANTS:
        raise InfeasibleConstraints(
            f"At least {MIN_PARTICIPANTS} participants are required for Secret Santa."
        )
    if len(set(nodes)) != len(nodes):
        raise InfeasibleConstraints("Participant ids must be unique.")

    exclusions = exclusions or {}
    receivers = {
        giver: tuple(
            receiver
            for receiver in nodes
            if receiver != giver and receiver not in exclusions.get(giver, ())
        )
        for giver in nodes
    }
    graph = ConstraintGraph(nodes=nodes, receivers=receivers)

    for giver in nodes:
        if not receivers[giver]:
            logger.bind(participant_id=giver).warning("Participant has no possible receivers")
            raise InfeasibleConstraints(
                "Assignment is mathematically impossible with current exclusions. "
                "Please remove some exclusions or add more participants."
            )

    for receiver in nodes:
        if not graph.givers_of(receiver):
            logger.bind(participant_id=receiver).warning("Participant has no possible givers")
            raise InfeasibleConstraints(
                "Assignment is mathematically impossible with current exclusions. "
                "Please remove some exclusions or add more participants."
            )

    return graph
