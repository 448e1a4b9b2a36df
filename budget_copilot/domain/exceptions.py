"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InsufficientDataError(DomainException):
    """No accounts and no transactions: no decision is possible"""

    pass


class InvalidBalanceError(DomainException):
    """Current balance missing or not integer cents (caller bug)"""

    pass


class MalformedEntityError(DomainException):
    """A single debt, bill, income or transaction record failed validation"""

    def __init__(self, kind: str, entity_id: str, reason: str):
        super().__init__(f"Malformed {kind} {entity_id}: {reason}")
        self.kind = kind
        self.entity_id = entity_id
        self.reason = reason


class DecisionNotFoundError(DomainException):
    """Decision does not exist or belongs to another user"""

    pass


class ConcurrentComputeConflictError(DomainException):
    """Another computation for the same user holds the lock; retry later"""

    pass


class GoalNotFoundError(DomainException):
    """Goal does not exist or belongs to another user"""

    pass


class InactiveGoalError(DomainException):
    """Contribution attempted on a paused, completed or abandoned goal"""

    pass


class StorageError(DomainException):
    """Persistence collaborator failed to read or write"""

    pass
