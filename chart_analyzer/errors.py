"""Error taxonomy for credential handling and chart analysis."""


class ChartAnalysisError(Exception):
    """Base for every failure surfaced by the analysis core."""

    # True when the UI must ask the user for an API key again
    requires_credential: bool = False


class InvalidInput(ChartAnalysisError):
    pass


class ClientConstructionFailed(ChartAnalysisError):
    pass


class NotAuthenticated(ChartAnalysisError):
    requires_credential = True


class AnalysisInProgress(ChartAnalysisError):
    pass


class EmptyResponse(ChartAnalysisError):
    pass


class MalformedAnalysis(ChartAnalysisError):
    """Reply text is not a JSON object. ``excerpt`` holds a bounded prefix of it."""

    def __init__(self, message: str, excerpt: str) -> None:
        super().__init__(message)
        self.excerpt = excerpt


class RemoteAuthRejected(ChartAnalysisError):
    requires_credential = True


class QuotaExceeded(ChartAnalysisError):
    pass


class TransportFailure(ChartAnalysisError):
    pass
