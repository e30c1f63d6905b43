from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date
from decimal import Decimal

class MovieBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=60)
    release_date: Optional[date] = None
    genre: Optional[str] = Field(None, max_length=30)
    rating: Optional[str] = Field(None, max_length=5)
    price: Decimal = Field(Decimal("0.00"), ge=0, max_digits=18, decimal_places=2)

    model_config = {"str_strip_whitespace": True}

    @field_validator("genre", "rating", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

class MovieCreate(MovieBase):
    pass

class MovieUpdate(MovieBase):
    """Full replacement of a stored movie; `id` must match the route."""
    id: int

class MovieEditForm(MovieUpdate):
    """Edit form body: the replacement plus the version it was read at."""
    version: int = Field(..., ge=1)

class Movie(MovieBase):
    id: int
    version: int

    model_config = {"from_attributes": True, "str_strip_whitespace": True}

class MovieGenreViewModel(BaseModel):
    movies: List[Movie] = []
    genres: List[str] = []
    ratings: List[str] = []
    movie_genre: Optional[str] = None
    movie_rating: Optional[str] = None
    search_string: Optional[str] = None

class MovieListFragment(BaseModel):
    movies: List[Movie] = []

class MovieDeleteResult(BaseModel):
    id: int
    deleted: bool
