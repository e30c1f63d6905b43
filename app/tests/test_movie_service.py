"""Tests for movie create/update/delete and the conflict-aware update path."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.crud.movie import movie as movie_crud
from app.services import movies as movie_service
from app.services.errors import (
    MovieConcurrencyConflict,
    MovieIdMismatch,
    MovieNotFound,
    MovieValidationError,
)


def _body(movie_id: int, **overrides) -> dict:
    body = {
        "id": movie_id,
        "title": "Rio Bravo",
        "release_date": "1959-04-15",
        "genre": "Western",
        "rating": "G",
        "price": "4.49",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_create_movie_assigns_id_and_first_version(db) -> None:
    movie = await movie_service.create_movie(
        db, {"title": "  Rio Bravo ", "release_date": "1959-04-15", "genre": "Western", "rating": "G", "price": "3.99"}
    )

    assert movie.id is not None
    assert movie.version == 1
    assert movie.title == "Rio Bravo"
    assert movie.release_date == date(1959, 4, 15)
    assert movie.price == Decimal("3.99")


@pytest.mark.asyncio
async def test_create_movie_rejects_missing_title_before_store(db) -> None:
    with pytest.raises(MovieValidationError) as exc_info:
        await movie_service.create_movie(db, {"genre": "Western", "price": "3.99"})

    assert "title" in exc_info.value.errors
    assert await movie_crud.count(db) == 0


@pytest.mark.asyncio
async def test_create_movie_rejects_blank_title_and_negative_price(db) -> None:
    with pytest.raises(MovieValidationError) as exc_info:
        await movie_service.create_movie(db, {"title": "   ", "price": "-1"})

    assert set(exc_info.value.errors) == {"title", "price"}


@pytest.mark.asyncio
async def test_create_movie_rejects_fractional_cents(db) -> None:
    with pytest.raises(MovieValidationError) as exc_info:
        await movie_service.create_movie(db, {"title": "Rio Bravo", "price": "3.999"})

    assert "price" in exc_info.value.errors


@pytest.mark.asyncio
async def test_get_movie_missing_raises_not_found(db) -> None:
    with pytest.raises(MovieNotFound):
        await movie_service.get_movie(db, 404)


@pytest.mark.asyncio
async def test_update_replaces_whole_record_and_bumps_version(db, catalog) -> None:
    target = catalog[3]

    updated = await movie_service.update_movie(
        db, target.id, _body(target.id, title="Rio Bravo (Remastered)", genre=None), 1
    )

    assert updated.title == "Rio Bravo (Remastered)"
    assert updated.genre is None
    assert updated.price == Decimal("4.49")
    assert updated.version == 2


@pytest.mark.asyncio
async def test_update_with_mismatched_ids_never_reaches_store(db, catalog, monkeypatch) -> None:
    replace = AsyncMock()
    monkeypatch.setattr(movie_crud, "replace", replace)

    with pytest.raises(MovieIdMismatch) as exc_info:
        await movie_service.update_movie(db, catalog[0].id, _body(catalog[1].id), 1)

    assert exc_info.value.route_id == catalog[0].id
    assert exc_info.value.body_id == catalog[1].id
    replace.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_invalid_candidate_raises_validation_error(db, catalog) -> None:
    with pytest.raises(MovieValidationError) as exc_info:
        await movie_service.update_movie(db, catalog[0].id, _body(catalog[0].id, title=""), 1)

    assert "title" in exc_info.value.errors


@pytest.mark.asyncio
async def test_update_unknown_movie_raises_not_found(db) -> None:
    with pytest.raises(MovieNotFound):
        await movie_service.update_movie(db, 99, _body(99), 1)


@pytest.mark.asyncio
async def test_update_after_concurrent_delete_raises_not_found(db, session_factory, catalog) -> None:
    target_id = catalog[0].id

    async with session_factory() as other:
        assert await movie_service.delete_movie(other, target_id) is True

    with pytest.raises(MovieNotFound):
        await movie_service.update_movie(db, target_id, _body(target_id), 1)


@pytest.mark.asyncio
async def test_update_after_concurrent_edit_raises_conflict(db, session_factory, catalog) -> None:
    target_id = catalog[0].id

    async with session_factory() as other:
        await movie_service.update_movie(other, target_id, _body(target_id, title="Edited elsewhere"), 1)

    with pytest.raises(MovieConcurrencyConflict) as exc_info:
        await movie_service.update_movie(db, target_id, _body(target_id, title="My edit"), 1)

    conflict = exc_info.value
    assert conflict.expected_version == 1
    assert conflict.current.version == 2
    assert conflict.current.title == "Edited elsewhere"

    stored = await movie_service.get_movie(db, target_id)
    assert stored.title == "Edited elsewhere"


@pytest.mark.asyncio
async def test_update_returns_written_movie_when_deleted_right_after_commit(
    db, session_factory, catalog, monkeypatch
) -> None:
    """An update that committed is reported as done even if the row is gone by the time we return."""
    target_id = catalog[0].id
    commit = db.commit

    async def commit_then_delete_elsewhere() -> None:
        await commit()
        async with session_factory() as other:
            assert await movie_service.delete_movie(other, target_id) is True

    monkeypatch.setattr(db, "commit", commit_then_delete_elsewhere)

    updated = await movie_service.update_movie(db, target_id, _body(target_id, title="Last cut"), 1)

    assert updated.id == target_id
    assert updated.title == "Last cut"
    assert updated.version == 2
    assert await movie_crud.exists(db, target_id) is False


@pytest.mark.asyncio
async def test_update_with_current_version_after_conflict_succeeds(db, catalog) -> None:
    target_id = catalog[0].id
    await movie_service.update_movie(db, target_id, _body(target_id, title="First"), 1)

    with pytest.raises(MovieConcurrencyConflict):
        await movie_service.update_movie(db, target_id, _body(target_id, title="Stale"), 1)

    updated = await movie_service.update_movie(db, target_id, _body(target_id, title="Reconciled"), 2)
    assert updated.title == "Reconciled"
    assert updated.version == 3


@pytest.mark.asyncio
async def test_delete_existing_movie(db, catalog) -> None:
    target_id = catalog[0].id

    assert await movie_service.delete_movie(db, target_id) is True
    with pytest.raises(MovieNotFound):
        await movie_service.get_movie(db, target_id)


@pytest.mark.asyncio
async def test_delete_missing_movie_is_a_no_op(db, catalog) -> None:
    assert await movie_service.delete_movie(db, 12345) is False
    assert await movie_crud.count(db) == len(catalog)
