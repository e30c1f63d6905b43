from typing import List, Optional
from sqlalchemy import select, update, func, literal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql import Select
from ..crud.base import CRUDBase
from ..models.movie import Movie
from ..schemas.movie import MovieCreate, MovieUpdate

LIKE_ESCAPE = "/"


def like_contains_pattern(text: str) -> str:
    """Wrap `text` in `%...%` with LIKE wildcards escaped so they match literally."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


class CRUDMovie(CRUDBase[Movie, MovieCreate, MovieUpdate]):
    def filtered(
        self,
        *,
        search_string: Optional[str] = None,
        genre: Optional[str] = None,
        rating: Optional[str] = None,
    ) -> Select:
        """Build (but do not run) the filtered movie query. Filters are ANDed."""
        query = select(Movie)
        if search_string:
            # Both operands go through the database's upper()
            pattern = func.upper(literal(like_contains_pattern(search_string)))
            query = query.where(
                func.upper(Movie.title).like(pattern, escape=LIKE_ESCAPE)
            )
        if genre:
            query = query.where(Movie.genre == genre)
        if rating:
            query = query.where(Movie.rating == rating)
        return query.order_by(Movie.id)

    async def get_filtered(
        self,
        db: AsyncSession,
        *,
        search_string: Optional[str] = None,
        genre: Optional[str] = None,
        rating: Optional[str] = None,
    ) -> List[Movie]:
        result = await db.execute(
            self.filtered(search_string=search_string, genre=genre, rating=rating)
        )
        return list(result.scalars().all())

    async def distinct_genres(self, db: AsyncSession) -> List[str]:
        result = await db.execute(
            select(Movie.genre)
            .where(Movie.genre.is_not(None))
            .distinct()
            .order_by(Movie.genre)
        )
        return list(result.scalars().all())

    async def distinct_ratings(self, db: AsyncSession) -> List[str]:
        result = await db.execute(
            select(Movie.rating)
            .where(Movie.rating.is_not(None))
            .distinct()
            .order_by(Movie.rating)
        )
        return list(result.scalars().all())

    async def exists(self, db: AsyncSession, id: int) -> bool:
        result = await db.execute(select(Movie.id).where(Movie.id == id))
        return result.scalar_one_or_none() is not None

    async def replace(
        self, db: AsyncSession, *, id: int, obj_in: MovieUpdate, expected_version: int
    ) -> Movie:
        """
        Overwrite every column of movie `id` if it is still at `expected_version`.

        Does not commit. Returns the row as written by the UPDATE. Raises
        StaleDataError when no row matched, either because the movie was
        deleted or because its version moved on.
        """
        values = obj_in.model_dump(exclude={"id", "version"})
        stmt = (
            update(Movie)
            .where(Movie.id == id, Movie.version == expected_version)
            .values(**values, version=Movie.version + 1)
            .returning(Movie)
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        result = await db.execute(stmt)
        updated = result.scalars().one_or_none()
        if updated is None:
            raise StaleDataError(
                "UPDATE statement on table 'movies' expected to update 1 row(s); "
                "0 were matched."
            )
        return updated

movie = CRUDMovie(Movie)
