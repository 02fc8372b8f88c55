from __future__ import annotations

from typing import Optional


class AssignmentError(RuntimeError):
    pass


class InfeasibleConstraints(AssignmentError):
    pass


class AttemptsExhausted(AssignmentError):
    def __init__(self, message: str, attempts: int, seed: Optional[int] = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.seed = seed


class InvariantViolation(AssignmentError):
    pass
