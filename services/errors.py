"""
Error taxonomy for the portfolio backend.

Services raise these; routers turn them into HTTP responses using the
``status_code`` each class carries.
"""


class PortfolioTrackerError(Exception):
    """Base exception for all portfolio backend errors."""

    status_code = 500


class ValidationError(PortfolioTrackerError):
    """Raised when input is missing or malformed."""

    status_code = 400


class StoreUnavailable(PortfolioTrackerError):
    """Raised when the position store cannot be read or written."""


class QuoteUnavailable(PortfolioTrackerError):
    """Raised when the market-data provider has no usable current price."""

    def __init__(self, ticker: str, reason: str = "no valid current price"):
        self.ticker = ticker
        self.reason = reason
        super().__init__(f"Quote unavailable for {ticker}: {reason}")


class SuggestionSourceError(PortfolioTrackerError):
    """Raised when the symbol search call fails."""


class AdviceGenerationError(PortfolioTrackerError):
    """Raised when the language model cannot produce position advice."""


class RecommendationError(PortfolioTrackerError):
    """Raised when recommendations cannot be produced or parsed."""


class SummaryGenerationError(PortfolioTrackerError):
    """Raised when the language model cannot produce a portfolio summary."""
