"""Analysis pipeline exceptions."""


class AnalysisError(Exception):
    """Base exception for analysis errors."""


class FetchError(AnalysisError):
    """Raised when the source document cannot be retrieved."""


class OracleCallError(AnalysisError):
    """Raised when a single extraction call fails or returns unusable content."""


class RunError(AnalysisError):
    """Raised for unexpected failures while orchestrating a run."""
