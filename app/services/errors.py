"""Domain errors raised by the movie services and mapped to HTTP in app.main"""
from typing import Dict, List, Optional

from pydantic import ValidationError


class MovieServiceError(Exception):
    """Base class for movie service failures"""


class MovieValidationError(MovieServiceError):
    """Candidate failed field validation; `errors` maps field name to messages"""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__(f"Invalid movie: {', '.join(sorted(errors))}")

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "MovieValidationError":
        return cls(collect_field_errors(exc.errors()))


class MovieNotFound(MovieServiceError):
    def __init__(self, movie_id: Optional[int]):
        self.movie_id = movie_id
        super().__init__(f"Movie {movie_id} not found")


class MovieIdMismatch(MovieServiceError):
    """Route id and body id disagree; treated as untrusted input"""

    def __init__(self, route_id: int, body_id: int):
        self.route_id = route_id
        self.body_id = body_id
        super().__init__(f"Movie id mismatch: route={route_id}, body={body_id}")


class MovieConcurrencyConflict(MovieServiceError):
    """
    The movie was changed by someone else since it was read.

    `current` holds the stored state so the caller can show it and let the
    user reconcile. Never retried automatically.
    """

    def __init__(self, movie_id: int, expected_version: int, current=None):
        self.movie_id = movie_id
        self.expected_version = expected_version
        self.current = current
        super().__init__(
            f"Movie {movie_id} was modified concurrently (expected version {expected_version})"
        )


def collect_field_errors(errors) -> Dict[str, List[str]]:
    """Group pydantic error dicts by their top-level field name."""
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = str(loc[0]) if loc else "__all__"
        grouped.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return grouped
