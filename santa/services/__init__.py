from santa.services.assignment import Assignment, Participant, generate_assignments
from santa.services.errors import (
    AssignmentError,
    AttemptsExhausted,
    InfeasibleConstraints,
    InvariantViolation,
)

__all__ = [
    "Assignment",
    "AssignmentError",
    "AttemptsExhausted",
    "InfeasibleConstraints",
    "InvariantViolation",
    "Participant",
    "generate_assignments",
]
