import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from santa.core.config import Settings
from santa.db import Base, PartyStatus, repo
from santa.services import party_flow
from santa.services.assignment import Assignment
from santa.services.errors import AssignmentError, AttemptsExhausted, InfeasibleConstraints


def create_session():
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)()


def create_party(session, names=("Ann", "Bob", "Cid", "Dee")):
    party = party_flow.create_party(session, "Office party")
    people = [
        party_flow.add_participant(session, party, name, f"{name.lower()}@example.com")
        for name in names
    ]
    return party, people


def pairs(assignments):
    return {(item.giver_id, item.receiver_id) for item in assignments}


def test_generate_persists_assignments():
    session = create_session()
    party, people = create_party(session)

    result = party_flow.generate_party_assignments(session, party, seed=42, year=2026)

    ids = [person.id for person in people]
    assert [(item.giver_id, item.receiver_id) for item in result.assignments] == [
        (ids[0], ids[1]),
        (ids[1], ids[2]),
        (ids[2], ids[3]),
        (ids[3], ids[0]),
    ]
    assert result.seed == 42
    assert not result.regenerated
    assert pairs(repo.list_assignments(session, party.id)) == pairs(result.assignments)
    assert pairs(repo.list_previous_assignments(session, party.id, 2026)) == pairs(result.assignments)
    assert party.status == PartyStatus.ACTIVE

    session.expire_all()
    receivers = {person.id: person.assigned_to_id for person in repo.list_participants(session, party.id)}
    assert receivers == {item.giver_id: item.receiver_id for item in result.assignments}

    metadata = repo.get_metadata(session, party.id)
    assert metadata.generation_attempts == 1
    assert metadata.last_seed == 42
    assert metadata.algorithm_used == "cycle"
    assert not metadata.is_locked


def test_generate_twice_requires_regenerate():
    session = create_session()
    party, _ = create_party(session)
    party_flow.generate_party_assignments(session, party, seed=1, year=2026)

    with pytest.raises(AssignmentError):
        party_flow.generate_party_assignments(session, party, seed=2, year=2026)

    result = party_flow.generate_party_assignments(session, party, seed=2, year=2026, regenerate=True)
    assert result.regenerated
    assert len(repo.list_assignments(session, party.id)) == 4
    assert len(repo.list_previous_assignments(session, party.id, 2026)) == 4
    assert repo.get_metadata(session, party.id).generation_attempts == 2


def test_locked_assignments_need_force():
    session = create_session()
    party, _ = create_party(session)
    party_flow.generate_party_assignments(
        session, party, seed=3, year=2026, lock_after_generation=True
    )

    with pytest.raises(AssignmentError):
        party_flow.generate_party_assignments(session, party, seed=4, year=2026, regenerate=True)
    with pytest.raises(AssignmentError):
        party_flow.delete_party_assignments(session, party)

    result = party_flow.generate_party_assignments(
        session, party, seed=4, year=2026, regenerate=True, force_regenerate=True
    )
    assert len(result.assignments) == 4
    assert not repo.is_locked(session, party.id)


def test_lock_unlock_and_delete():
    session = create_session()
    party, people = create_party(session)
    assert not party_flow.lock_assignments(session, party)

    party_flow.generate_party_assignments(session, party, seed=5, year=2026)
    assert party_flow.lock_assignments(session, party)
    assert party_flow.get_assignment_stats(session, party).is_locked

    assert party_flow.unlock_assignments(session, party)
    party_flow.delete_party_assignments(session, party)

    assert not repo.assignments_exist(session, party.id)
    assert party.status == PartyStatus.PENDING
    session.expire_all()
    assert all(person.assigned_to_id is None for person in repo.list_participants(session, party.id))


def test_regenerate_replaces_assignments():
    session = create_session()
    party, _ = create_party(session)
    party_flow.generate_party_assignments(session, party, seed=6, year=2026)

    result = party_flow.regenerate_party_assignments(session, party, seed=7, year=2026)
    assert result.seed == 7
    assert pairs(repo.list_assignments(session, party.id)) == pairs(result.assignments)


@pytest.mark.parametrize("seed", range(5))
def test_generate_respects_stored_exclusions(seed):
    session = create_session()
    party, people = create_party(session, names=("Ann", "Bob", "Cid", "Dee", "Eve"))
    party_flow.add_exclusion(session, party, people[0].id, people[1].id, reason="couple")

    result = party_flow.generate_party_assignments(session, party, seed=seed, year=2026)
    forbidden = {(people[0].id, people[1].id), (people[1].id, people[0].id)}
    assert not pairs(result.assignments) & forbidden


@pytest.mark.parametrize("seed", range(5))
def test_generate_avoids_last_year_pairs(seed):
    session = create_session()
    party, people = create_party(session)
    repo.save_previous_assignments(
        session, party.id, 2025, [Assignment(people[0].id, people[1].id)]
    )

    result = party_flow.generate_party_assignments(session, party, seed=seed, year=2026)
    assert (people[0].id, people[1].id) not in pairs(result.assignments)


def test_add_exclusion_validates_participants():
    session = create_session()
    party, people = create_party(session)
    other, strangers = create_party(session, names=("Zed", "Yan", "Xia"))

    with pytest.raises(AssignmentError):
        party_flow.add_exclusion(session, party, people[0].id, people[0].id)
    with pytest.raises(AssignmentError):
        party_flow.add_exclusion(session, party, people[0].id, strangers[0].id)

    party_flow.add_exclusion(session, party, people[0].id, people[1].id)
    party_flow.add_exclusion(session, party, people[0].id, people[1].id, reason="siblings")
    exclusions = repo.list_exclusions(session, party.id)
    assert len(exclusions) == 1
    assert exclusions[0].reason == "siblings"

    party_flow.clear_exclusions(session, party)
    assert repo.list_exclusions(session, party.id) == []


def test_generate_needs_three_participants():
    session = create_session()
    party, _ = create_party(session, names=("Ann", "Bob"))
    with pytest.raises(InfeasibleConstraints):
        party_flow.generate_party_assignments(session, party, seed=1)


def test_infeasible_exclusions_store_nothing():
    session = create_session()
    party, people = create_party(session)
    for other in people[1:]:
        party_flow.add_exclusion(session, party, people[0].id, other.id)

    with pytest.raises(InfeasibleConstraints):
        party_flow.generate_party_assignments(session, party, seed=1, year=2026)
    assert not repo.assignments_exist(session, party.id)
    assert party.status == PartyStatus.PENDING


def test_cannot_add_participant_after_generation():
    session = create_session()
    party, _ = create_party(session)
    party_flow.generate_party_assignments(session, party, seed=8, year=2026)
    with pytest.raises(AssignmentError):
        party_flow.add_participant(session, party, "Late", None)


def test_receiver_and_stats():
    session = create_session()
    party, people = create_party(session)

    stats = party_flow.get_assignment_stats(session, party)
    assert stats.total_assignments == 0
    assert stats.generation_attempts == 0
    assert stats.algorithm == "unknown"
    assert party_flow.get_receiver(session, party, people[0].id) is None

    result = party_flow.generate_party_assignments(session, party, seed=9, year=2026)
    expected = {item.giver_id: item.receiver_id for item in result.assignments}
    assert party_flow.get_receiver(session, party, people[0].id).id == expected[people[0].id]

    stats = party_flow.get_assignment_stats(session, party)
    assert stats.total_participants == 4
    assert stats.total_assignments == 4
    assert stats.generation_attempts == 1
    assert stats.algorithm == "cycle"
    assert stats.generated_at is not None


def test_force_regenerate_still_needs_regenerate():
    session = create_session()
    party, _ = create_party(session)
    party_flow.generate_party_assignments(session, party, seed=10, year=2026)

    with pytest.raises(AssignmentError):
        party_flow.generate_party_assignments(
            session, party, seed=11, year=2026, force_regenerate=True
        )


def create_blocked_party(session):
    party, people = create_party(session, names=("Ann", "Bob", "Cid"))
    party_flow.add_exclusion(session, party, people[0].id, people[1].id)
    return party


def test_configured_attempt_budget_bounds_search():
    session = create_session()
    party = create_blocked_party(session)
    settings = Settings(
        database_url="sqlite+pysqlite:///:memory:",
        log_level="INFO",
        log_path="logs/santa.log",
        max_attempts=3,
    )

    with pytest.raises(AttemptsExhausted) as excinfo:
        party_flow.generate_party_assignments(session, party, seed=1, year=2026, settings=settings)
    assert excinfo.value.attempts == 3


def test_attempt_budget_from_environment(monkeypatch):
    monkeypatch.setenv("ASSIGNMENT_MAX_ATTEMPTS", "4")
    session = create_session()
    party = create_blocked_party(session)

    with pytest.raises(AttemptsExhausted) as excinfo:
        party_flow.generate_party_assignments(session, party, seed=1, year=2026)
    assert excinfo.value.attempts == 4


def test_explicit_attempts_override_settings(monkeypatch):
    monkeypatch.setenv("ASSIGNMENT_MAX_ATTEMPTS", "4")
    session = create_session()
    party = create_blocked_party(session)

    with pytest.raises(AttemptsExhausted) as excinfo:
        party_flow.generate_party_assignments(session, party, seed=1, year=2026, max_attempts=2)
    assert excinfo.value.attempts == 2


def test_get_party_by_id():
    session = create_session()
    party, _ = create_party(session)

    assert party_flow.get_party(session, party.id) is party
    with pytest.raises(AssignmentError):
        party_flow.get_party(session, party.id + 100)


def test_generation_time_is_timezone_aware():
    session = create_session()
    party, _ = create_party(session)
    party_flow.generate_party_assignments(session, party, seed=12, year=2026)

    generated_at = repo.get_metadata(session, party.id).last_generated_at
    assert generated_at.tzinfo is not None
