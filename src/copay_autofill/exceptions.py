"""Exception hierarchy for copay-autofill."""


class CopayError(Exception):
    """Base exception for all copay-autofill errors."""


class DocumentFetchError(CopayError):
    """Raised when an eligibility document cannot be retrieved."""


class DocumentFetchExhausted(DocumentFetchError):
    """All fetch attempts failed (HTTP errors, transport errors, unparsable PDF)."""

    def __init__(self, message: str, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


class DocumentFetchTimeout(DocumentFetchExhausted):
    """The final fetch attempt timed out."""


class DocumentFormatUnavailable(DocumentFetchError):
    """The server never returned a valid PDF within the retry budget."""

    def __init__(self, message: str, attempts: int = 0, head: bytes = b"") -> None:
        super().__init__(message)
        self.attempts = attempts
        self.head = head


class ExtractionError(CopayError):
    """Raised when cost-share extraction cannot proceed."""


class NoCandidatesFound(ExtractionError):
    """No grammar produced a candidate, even after the default-rule fallback."""

    def __init__(self, message: str, insurer: str = "") -> None:
        super().__init__(message)
        self.insurer = insurer


class ElementWaitTimeout(CopayError):
    """An expected page element or value never appeared."""

    def __init__(self, message: str, waited: float = 0.0) -> None:
        super().__init__(message)
        self.waited = waited


class PersistenceError(CopayError):
    """Raised when persisted workflow state cannot be read or written."""


class WorkflowError(CopayError):
    """Raised when a workflow step cannot complete."""


class WorkflowMaxRetriesExceeded(WorkflowError):
    """The same step was resumed more times than allowed without advancing."""


class WorkflowCancelled(WorkflowError):
    """The user stopped the workflow."""
