"""Service layer exceptions."""


class InvalidStateError(Exception):
    """Operation not allowed in the competition's current status."""

    def __init__(self, competition_id: str, status: str, expected: str):
        self.competition_id = competition_id
        self.status = status
        self.expected = expected
        super().__init__(
            f"Competition {competition_id} is {status}, expected {expected}"
        )
