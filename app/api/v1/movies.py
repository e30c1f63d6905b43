from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from ...database import get_async_db
from ...models.user import User
from ...schemas.movie import (
    Movie,
    MovieCreate,
    MovieDeleteResult,
    MovieEditForm,
    MovieListFragment,
)
from ...services import catalog, movies as movie_service
from ..deps import require_admin
import logging

logger = logging.getLogger(__name__)

# Anyone may browse the catalog
router = APIRouter(prefix="/movies", tags=["movies"])

# Every route on this router sits behind the Admin role guard
admin_router = APIRouter(
    prefix="/movies",
    tags=["movies-admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=None, status_code=status.HTTP_200_OK)
async def list_movies(
    search_string: Optional[str] = Query(None, alias="searchString"),
    movie_genre: Optional[str] = Query(None, alias="movieGenre"),
    movie_rating: Optional[str] = Query(None, alias="movieRating"),
    is_ajax: bool = Query(False, alias="isAjax"),
    db: AsyncSession = Depends(get_async_db)
):
    """
    Filtered movie list with genre and rating facets.
    With isAjax=true only the movie list fragment is returned.
    """
    view_model = await catalog.list_movies(
        db, search_string=search_string, genre=movie_genre, rating=movie_rating
    )

    if is_ajax:
        return MovieListFragment(movies=view_model.movies)
    return view_model


@router.get("/{movie_id}", response_model=Movie)
async def get_movie(movie_id: int, db: AsyncSession = Depends(get_async_db)):
    """Get single movie by ID"""
    logger.info(f"Movie details requested for ID: {movie_id}")
    return await movie_service.get_movie(db, movie_id)


@admin_router.post("", response_model=Movie, status_code=status.HTTP_201_CREATED)
async def create_movie(
    movie_in: MovieCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(require_admin),
):
    """Create new movie"""
    logger.info(f"Admin user {current_user.email} creating movie: {movie_in.title}")
    return await movie_service.create_movie(db, movie_in)


@admin_router.get("/{movie_id}/edit", response_model=Movie)
async def edit_movie_form(
    movie_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(require_admin),
):
    """Current state of a movie for the edit form; carries the version to send back"""
    logger.info(f"Admin user {current_user.email} opened edit form for movie ID: {movie_id}")
    return await movie_service.get_movie(db, movie_id)


@admin_router.put("/{movie_id}", response_model=Movie)
async def update_movie(
    movie_id: int,
    movie_in: MovieEditForm,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(require_admin),
):
    """Replace a movie; 409 when it changed since `version` was read"""
    logger.info(f"Admin user {current_user.email} saving edits for movie ID: {movie_id}")
    return await movie_service.update_movie(db, movie_id, movie_in, movie_in.version)


@admin_router.get("/{movie_id}/delete", response_model=Movie)
async def delete_movie_confirmation(
    movie_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(require_admin),
):
    """Movie shown on the delete confirmation page"""
    logger.info(f"Admin user {current_user.email} opened delete confirmation for movie ID: {movie_id}")
    return await movie_service.get_movie(db, movie_id)


@admin_router.delete("/{movie_id}", response_model=MovieDeleteResult)
async def delete_movie(
    movie_id: int,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(require_admin),
):
    """Delete a movie; deleting a missing movie is a no-op"""
    logger.info(f"Admin user {current_user.email} confirmed deletion of movie ID: {movie_id}")
    deleted = await movie_service.delete_movie(db, movie_id)
    return MovieDeleteResult(id=movie_id, deleted=deleted)
