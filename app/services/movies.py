"""
Create, read, update and delete for a single movie.

Callers are expected to have checked authorization already; this module
only guards data integrity. Updates are whole-record replacements checked
against the movie's version, and a lost update is reported as
MovieConcurrencyConflict instead of being overwritten.
"""
from typing import Any, Mapping, Type, TypeVar, Union
import logging

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..crud.movie import movie as movie_crud
from ..models.movie import Movie
from ..schemas.movie import MovieCreate, MovieUpdate
from .errors import (
    MovieConcurrencyConflict,
    MovieIdMismatch,
    MovieNotFound,
    MovieValidationError,
)

logger = logging.getLogger(__name__)

SchemaType = TypeVar("SchemaType", bound=BaseModel)


def _validate(schema: Type[SchemaType], candidate: Union[SchemaType, Mapping[str, Any]]) -> SchemaType:
    if isinstance(candidate, schema):
        return candidate
    if isinstance(candidate, BaseModel):
        candidate = candidate.model_dump()
    try:
        return schema.model_validate(candidate)
    except ValidationError as e:
        raise MovieValidationError.from_pydantic(e) from e


async def create_movie(
    db: AsyncSession, candidate: Union[MovieCreate, Mapping[str, Any]]
) -> Movie:
    try:
        data = _validate(MovieCreate, candidate)
    except MovieValidationError as e:
        logger.warning(f"Failed to create movie, invalid fields: {e.errors}")
        raise

    movie = await movie_crud.create(db, obj_in=data)
    logger.info(f"Created new movie: {movie.title} (ID: {movie.id})")
    return movie


async def get_movie(db: AsyncSession, movie_id: int) -> Movie:
    movie = await movie_crud.get(db, movie_id)
    if movie is None:
        logger.warning(f"Movie with ID {movie_id} not found")
        raise MovieNotFound(movie_id)
    return movie


async def update_movie(
    db: AsyncSession,
    movie_id: int,
    candidate: Union[MovieUpdate, Mapping[str, Any]],
    expected_version: int,
) -> Movie:
    """
    Replace movie `movie_id` with `candidate`.

    Returns the movie as the UPDATE wrote it, so a delete that lands after
    the commit does not turn a persisted update into an error.

    Raises:
        MovieValidationError: candidate fails field validation
        MovieIdMismatch: body id differs from `movie_id` (store untouched)
        MovieNotFound: the movie does not exist, or was deleted meanwhile
        MovieConcurrencyConflict: the movie moved past `expected_version`
    """
    try:
        data = _validate(MovieUpdate, candidate)
    except MovieValidationError as e:
        logger.warning(f"Failed to edit movie {movie_id}, invalid fields: {e.errors}")
        raise

    if data.id != movie_id:
        logger.error(
            f"Movie ID mismatch during edit. Route ID: {movie_id}, Movie Object ID: {data.id}"
        )
        raise MovieIdMismatch(movie_id, data.id)

    try:
        movie = await movie_crud.replace(
            db, id=movie_id, obj_in=data, expected_version=expected_version
        )
        await db.commit()
    except StaleDataError:
        await db.rollback()
        current = await movie_crud.get(db, movie_id)
        if current is None:
            logger.warning(
                f"Concurrency failure during update for ID {movie_id}: movie no longer exists."
            )
            raise MovieNotFound(movie_id)

        logger.error(
            f"Concurrency conflict during update for ID {movie_id}: "
            f"expected version {expected_version}, stored version {current.version}."
        )
        raise MovieConcurrencyConflict(movie_id, expected_version, current)

    logger.info(f"Updated movie: {movie.title} (ID: {movie.id}, version {movie.version})")
    return movie


async def delete_movie(db: AsyncSession, movie_id: int) -> bool:
    """
    Remove movie `movie_id`. A missing movie is already deleted, so this
    logs a warning and returns False instead of raising.
    """
    movie = await movie_crud.get(db, movie_id)
    if movie is None:
        logger.warning(f"Attempted to delete movie ID {movie_id}, but movie was not found.")
        return False

    await movie_crud.remove(db, db_obj=movie)
    logger.info(f"Deleted movie ID: {movie_id}")
    return True
