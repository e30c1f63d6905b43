"""
Catalog queries: the filtered movie list plus genre and rating facets.
"""
from typing import Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..crud.movie import movie as movie_crud
from ..schemas.movie import Movie as MovieSchema, MovieGenreViewModel

logger = logging.getLogger(__name__)


async def list_movies(
    db: AsyncSession,
    search_string: Optional[str] = None,
    genre: Optional[str] = None,
    rating: Optional[str] = None,
) -> MovieGenreViewModel:
    """
    Assemble the list view model.

    Filters are ANDed and empty values are ignored. The title search is
    case-insensitive; genre and rating match exactly. Facets always cover
    the whole table so a narrowed selection can be widened again. Movie
    order is store order and should not be relied upon.
    """
    logger.info(
        f"list_movies called with search_string={search_string!r}, "
        f"genre={genre!r}, rating={rating!r}"
    )

    # One session cannot run statements concurrently, so these run in turn
    genres = await movie_crud.distinct_genres(db)
    ratings = await movie_crud.distinct_ratings(db)
    movies = await movie_crud.get_filtered(
        db, search_string=search_string, genre=genre, rating=rating
    )

    logger.info(f"Found {len(movies)} movies ({len(genres)} genres, {len(ratings)} ratings)")
    return MovieGenreViewModel(
        movies=[MovieSchema.model_validate(m) for m in movies],
        genres=genres,
        ratings=ratings,
        movie_genre=genre,
        movie_rating=rating,
        search_string=search_string,
    )
