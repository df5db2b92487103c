"""Tests for :class:`speciesdex.state.pagination.PaginationCoordinator`."""

from __future__ import annotations

import asyncio

import pytest

from speciesdex.errors import ConnectionFailureError, RequestTimeoutError
from speciesdex.state.pagination import PaginationCoordinator, PaginationState

from .support.doubles import FakeRepository, make_items


def _batches(*sizes: int) -> dict[int, list]:
    return {page: make_items(page, size) for page, size in enumerate(sizes)}


@pytest.mark.asyncio
async def test_has_more_turns_false_only_after_short_batch() -> None:
    """Batches of 20, 20 and 7 come from load_initial followed by two load_more calls.

    The first full batch is the initial load, so only the second load_more sees
    the short batch and clears ``has_more``.
    """

    repository = FakeRepository(_batches(20, 20, 7))
    coordinator = PaginationCoordinator(repository)

    await coordinator.load_initial()
    assert coordinator.state.has_more

    await coordinator.load_more()
    assert coordinator.state.has_more
    assert coordinator.state.current_page == 1

    await coordinator.load_more()
    assert not coordinator.state.has_more
    assert coordinator.state.current_page == 2
    assert len(coordinator.state.items) == 47

    await coordinator.load_more()
    assert repository.calls == [(0, False), (1, False), (2, False)]


@pytest.mark.asyncio
async def test_duplicate_initial_load_issues_one_request() -> None:
    repository = FakeRepository(_batches(20))
    repository.gate = asyncio.Event()
    coordinator = PaginationCoordinator(repository)
    updates: list[PaginationState] = []
    coordinator.subscribe(updates.append)

    first = asyncio.create_task(coordinator.load_initial())
    second = asyncio.create_task(coordinator.load_initial())
    await asyncio.sleep(0.01)
    repository.gate.set()
    await asyncio.gather(first, second)

    assert repository.calls == [(0, False)]
    assert [state.is_loading for state in updates] == [True, False]
    assert len(updates[-1].items) == 20


@pytest.mark.asyncio
async def test_load_more_is_ignored_while_in_flight() -> None:
    repository = FakeRepository(_batches(20, 20))
    coordinator = PaginationCoordinator(repository)
    await coordinator.load_initial()
    repository.gate = asyncio.Event()

    first = asyncio.create_task(coordinator.load_more())
    await asyncio.sleep(0.01)
    await coordinator.load_more()
    repository.gate.set()
    await first

    assert repository.calls == [(0, False), (1, False)]
    assert len(coordinator.state.items) == 40


@pytest.mark.asyncio
async def test_failed_load_more_preserves_items_and_page() -> None:
    repository = FakeRepository(_batches(20))
    repository.errors[1] = ConnectionFailureError()
    coordinator = PaginationCoordinator(repository)
    await coordinator.load_initial()
    before = coordinator.state.items

    await coordinator.load_more()

    state = coordinator.state
    assert state.items == before
    assert state.current_page == 0
    assert isinstance(state.error, ConnectionFailureError)
    assert not state.is_loading_more


@pytest.mark.asyncio
async def test_failed_initial_load_sets_error_and_retry_clears_it() -> None:
    repository = FakeRepository(_batches(20))
    repository.errors[0] = RequestTimeoutError()
    coordinator = PaginationCoordinator(repository)

    await coordinator.load_initial()
    assert isinstance(coordinator.state.error, RequestTimeoutError)
    assert coordinator.state.items == ()
    assert not coordinator.state.is_loading

    del repository.errors[0]
    await coordinator.load_initial()
    assert coordinator.state.error is None
    assert len(coordinator.state.items) == 20


@pytest.mark.asyncio
async def test_refresh_forces_network_and_resets_list() -> None:
    repository = FakeRepository(_batches(20, 20))
    coordinator = PaginationCoordinator(repository)
    await coordinator.load_initial()
    await coordinator.load_more()

    await coordinator.refresh()

    assert repository.calls[-1] == (0, True)
    assert coordinator.state.current_page == 0
    assert len(coordinator.state.items) == 20


@pytest.mark.asyncio
async def test_refresh_is_suppressed_during_initial_load() -> None:
    repository = FakeRepository(_batches(20))
    repository.gate = asyncio.Event()
    coordinator = PaginationCoordinator(repository)

    initial = asyncio.create_task(coordinator.load_initial())
    await asyncio.sleep(0.01)
    await coordinator.refresh()
    repository.gate.set()
    await initial

    assert repository.calls == [(0, False)]


@pytest.mark.asyncio
async def test_stale_load_more_after_refresh_is_discarded() -> None:
    repository = FakeRepository(_batches(20, 20))
    coordinator = PaginationCoordinator(repository)
    await coordinator.load_initial()

    repository.gate = asyncio.Event()
    pending_more = asyncio.create_task(coordinator.load_more())
    await asyncio.sleep(0.01)
    refreshing = asyncio.create_task(coordinator.refresh())
    await asyncio.sleep(0.01)
    repository.gate.set()
    await asyncio.gather(pending_more, refreshing)

    state = coordinator.state
    assert len(state.items) == 20
    assert state.current_page == 0
    assert not state.is_loading
    assert not state.is_loading_more


@pytest.mark.asyncio
async def test_unexpected_errors_reset_flag_and_propagate() -> None:
    repository = FakeRepository(_batches(20))
    repository.errors[0] = RuntimeError("bug")
    coordinator = PaginationCoordinator(repository)

    with pytest.raises(RuntimeError):
        await coordinator.load_initial()

    assert not coordinator.state.is_loading
    assert coordinator.state.error is None


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications() -> None:
    coordinator = PaginationCoordinator(FakeRepository(_batches(20)))
    updates: list[PaginationState] = []
    unsubscribe = coordinator.subscribe(updates.append)

    unsubscribe()
    await coordinator.load_initial()

    assert updates == []
    assert len(coordinator.state.items) == 20


def test_page_size_defaults_to_repository_page_size() -> None:
    assert PaginationCoordinator(FakeRepository(page_size=50)).page_size == 50
    assert PaginationCoordinator(FakeRepository(), page_size=10).page_size == 10
