# app/models/movie.py
"""
Movie model for the catalog
"""
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Date, Numeric
from ..database import Base


class Movie(Base):
    """
    A single catalog entry.

    `version` is the optimistic concurrency token: every successful
    update bumps it by one, and an update is only applied when the
    caller's expected version matches the stored one.
    """
    __tablename__ = "movies"

    # ==================== PRIMARY KEY ====================
    id = Column(Integer, primary_key=True, index=True)

    # ==================== MOVIE DETAILS ====================
    title = Column(String(60), nullable=False, index=True)
    release_date = Column(Date, nullable=True)
    genre = Column(String(30), nullable=True, index=True)
    rating = Column(String(5), nullable=True, index=True)  # G, PG, PG-13, R, etc.
    price = Column(Numeric(18, 2), nullable=False, default=Decimal("0.00"))

    # ==================== CONCURRENCY ====================
    version = Column(Integer, nullable=False, default=1)

    def __repr__(self):
        return f"<Movie(id={self.id}, title='{self.title}', version={self.version})>"

