from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterator, List, Optional, Sequence, Set, Tuple

from loguru import logger

from santa.services.constraints import ConstraintGraph, ParticipantId
from santa.services.errors import AttemptsExhausted
from santa.services.shuffle import seeded_shuffle


@dataclass(frozen=True)
class SearchResult:
    path: Tuple[ParticipantId, ...]
    attempts: int
    seed: int


def _candidates(
    current: ParticipantId,
    graph: ConstraintGraph,
    soft_avoid: AbstractSet[Tuple[ParticipantId, ParticipantId]],
    visited: Set[ParticipantId],
) -> Iterator[ParticipantId]:
    unvisited = [receiver for receiver in graph.receivers[current] if receiver not in visited]
    # sorted() is stable, so graph order is kept inside each group.
    return iter(sorted(unvisited, key=lambda receiver: (current, receiver) in soft_avoid))


def search_from(
    start: ParticipantId,
    graph: ConstraintGraph,
    soft_avoid: AbstractSet[Tuple[ParticipantId, ParticipantId]],
) -> Optional[List[ParticipantId]]:
    size = len(graph.nodes)
    path: List[ParticipantId] = [start]
    visited: Set[ParticipantId] = {start}
    frontier = [_candidates(start, graph, soft_avoid, visited)]

    while frontier:
        receiver = next(frontier[-1], None)
        if receiver is None:
            frontier.pop()
            visited.discard(path.pop())
            continue

        path.append(receiver)
        visited.add(receiver)
        if len(path) == size:
            # The closing edge is accepted even when it repeats a previous pair.
            if graph.allows(receiver, start):
                return path
            visited.discard(path.pop())
            continue
        frontier.append(_candidates(receiver, graph, soft_avoid, visited))

    return None


def find_cycle(
    participant_ids: Sequence[ParticipantId],
    graph: ConstraintGraph,
    soft_avoid: Optional[AbstractSet[Tuple[ParticipantId, ParticipantId]]],
    seed: int,
    max_attempts: int,
) -> SearchResult:
    soft_avoid = soft_avoid or frozenset()
    failed_starts: Set[ParticipantId] = set()

    for attempt in range(max_attempts):
        start = seeded_shuffle(participant_ids, seed + attempt)[0]
        if start in failed_starts:
            continue

        path = search_from(start, graph, soft_avoid)
        if path is not None:
            logger.bind(seed=seed, attempt=attempt + 1).debug("Gift cycle found")
            return SearchResult(path=tuple(path), attempts=attempt + 1, seed=seed)

        failed_starts.add(start)
        logger.bind(seed=seed, attempt=attempt + 1, start=start).debug("Search attempt failed")

    logger.bind(seed=seed, attempts=max_attempts).warning("Gift cycle search exhausted")
    raise AttemptsExhausted(
        "Unable to generate valid Secret Santa assignments after maximum attempts. "
        "Please review exclusions and previous assignments.",
        attempts=max_attempts,
        seed=seed,
    )
