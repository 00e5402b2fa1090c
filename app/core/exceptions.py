"""Domain exceptions raised by the review workflow and mapped to HTTP errors
by the routers.
"""


class CandidateNotFoundError(LookupError):
    """No candidate exists for the given id."""

    def __init__(self, candidate_id: str) -> None:
        self.candidate_id = candidate_id
        super().__init__(f"Candidate not found: {candidate_id}")


class InvalidReviewError(ValueError):
    """A review request failed validation before anything was persisted."""
