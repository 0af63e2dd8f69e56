"""
Error taxonomy for the recommendation pipeline.

Only GenerationError and RetryExhausted propagate to callers. Catalog
failures are modelled as CatalogMiss/CatalogError results (see
catalog_service) and PersistenceError is logged, never raised.
"""


class RecommendationPipelineError(Exception):
    """Base class for recommendation pipeline errors."""


class GenerationError(RecommendationPipelineError):
    """The generator was unreachable or returned a malformed payload."""


class PersistenceError(RecommendationPipelineError):
    """A recommendation row could not be written."""


class RetryExhausted(RecommendationPipelineError):
    """Every pipeline attempt failed; the last error is chained as __cause__."""

    def __init__(self, attempts: int, message: str = ""):
        self.attempts = attempts
        super().__init__(
            message or f"Recommendation generation failed after {attempts} attempts"
        )
