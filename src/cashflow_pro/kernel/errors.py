"""
Custom exceptions for Cashflow Pro

A small, explicit error hierarchy lets the session façade tell a rejected
edit apart from a missing record or a failed save, and report each one
without ever crashing the process.
"""


class CashflowError(Exception):
    """Base exception for all Cashflow Pro errors"""

    pass


class ValidationError(CashflowError):
    """
    Raised when input would violate a model constraint

    Raised before any mutation happens, so a rejected edit leaves the
    project exactly as it was.
    """

    def __init__(self, errors: list[str] | str) -> None:
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__(", ".join(self.errors))


class NotFoundError(CashflowError):
    """Base class for lookups of ids that do not exist"""

    pass


class CategoryNotFound(NotFoundError):
    """Raised when a budget category does not exist"""

    def __init__(self, category_id: int) -> None:
        self.category_id = category_id
        super().__init__(f"Category {category_id} not found")


class ScenarioNotFound(NotFoundError, ValidationError):
    """
    Raised when a scenario does not exist

    Also a ValidationError: naming a missing base scenario is invalid input
    for scenario creation.
    """

    def __init__(self, scenario_id: str) -> None:
        self.scenario_id = scenario_id
        ValidationError.__init__(self, f"Scenario {scenario_id} not found")


class ProjectNotFound(NotFoundError):
    """Raised when a project is not loaded in the session"""

    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")


class PersistenceError(CashflowError):
    """
    Raised when the document store fails

    In-memory state is never rolled back; the next debounced save retries.
    """

    pass


class DocumentNotFound(PersistenceError):
    """Raised when a stored document does not exist"""

    def __init__(self, document_id: str) -> None:
        self.document_id = document_id
        super().__init__(f"Document {document_id} not found")


class PermissionDenied(CashflowError):
    """Raised when the acting user lacks the role an operation requires"""

    def __init__(self, action: str, required_role: str) -> None:
        self.action = action
        self.required_role = required_role
        super().__init__(f"Only {required_role} can {action}")


class DistributionError(CashflowError):
    """
    Raised by the distribution shapes on malformed parameters

    Never escapes distribute(): it is caught there and reported through
    logging and metrics.
    """

    def __init__(self, method: str, reason: str) -> None:
        self.method = method
        self.reason = reason
        super().__init__(f"Cannot distribute with {method}: {reason}")
