"""Observable pagination state for the catalog list.

State transitions are expressed as events folded by the pure :func:`reduce`
function. :class:`PaginationCoordinator` owns the current state, turns user
triggers into repository calls and notifies subscribers after every
transition.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace

from speciesdex.errors import CatalogError
from speciesdex.schemas.catalog import ListItem
from speciesdex.services.repository import CatalogRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaginationState:
    items: tuple[ListItem, ...] = ()
    is_loading: bool = False
    is_loading_more: bool = False
    error: CatalogError | None = None
    current_page: int = 0
    has_more: bool = True


# -- events --------------------------------------------------------------------


@dataclass(frozen=True)
class LoadInitialStarted:
    pass


@dataclass(frozen=True)
class RefreshStarted:
    pass


@dataclass(frozen=True)
class LoadMoreStarted:
    pass


@dataclass(frozen=True)
class InitialPageLoaded:
    items: Sequence[ListItem]
    page_size: int


@dataclass(frozen=True)
class MorePageLoaded:
    page: int
    items: Sequence[ListItem]
    page_size: int


@dataclass(frozen=True)
class LoadFailed:
    error: CatalogError
    during_load_more: bool = False


@dataclass(frozen=True)
class LoadAborted:
    """The request ended with an unexpected exception; only the flag is reset."""

    during_load_more: bool = False


PaginationEvent = (
    LoadInitialStarted
    | RefreshStarted
    | LoadMoreStarted
    | InitialPageLoaded
    | MorePageLoaded
    | LoadFailed
    | LoadAborted
)


def has_more_after(batch_size: int, page_size: int) -> bool:
    """A batch strictly smaller than the page size is the last one."""

    return batch_size >= page_size


def reduce(state: PaginationState, event: PaginationEvent) -> PaginationState:
    """Return the state that follows ``state`` after ``event``."""

    if isinstance(event, LoadInitialStarted):
        return replace(state, is_loading=True, error=None)

    if isinstance(event, RefreshStarted):
        return PaginationState(is_loading=True)

    if isinstance(event, LoadMoreStarted):
        return replace(state, is_loading_more=True, error=None)

    if isinstance(event, InitialPageLoaded):
        return replace(
            state,
            items=tuple(event.items),
            is_loading=False,
            error=None,
            current_page=0,
            has_more=has_more_after(len(event.items), event.page_size),
        )

    if isinstance(event, MorePageLoaded):
        return replace(
            state,
            items=state.items + tuple(event.items),
            is_loading_more=False,
            current_page=event.page,
            has_more=has_more_after(len(event.items), event.page_size),
        )

    if isinstance(event, LoadFailed):
        if event.during_load_more:
            return replace(state, is_loading_more=False, error=event.error)
        return replace(state, is_loading=False, error=event.error)

    if isinstance(event, LoadAborted):
        if event.during_load_more:
            return replace(state, is_loading_more=False)
        return replace(state, is_loading=False)

    raise TypeError(f"Unknown pagination event: {event!r}")


Listener = Callable[[PaginationState], None]


@dataclass
class _Subscriptions:
    listeners: list[Listener] = field(default_factory=list)

    def add(self, listener: Listener) -> Callable[[], None]:
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def notify(self, state: PaginationState) -> None:
        for listener in list(self.listeners):
            listener(state)


class PaginationCoordinator:
    """Drive :class:`PaginationState` from ``load_initial``, ``load_more`` and ``refresh``.

    Guard flags are set synchronously before the first ``await`` so a second
    trigger issued while the first is in flight is a no-op. ``refresh`` bumps a
    generation counter; completions that belong to an older generation are
    dropped instead of being applied on top of the refreshed list.
    """

    def __init__(self, repository: CatalogRepository, page_size: int | None = None) -> None:
        self._repository = repository
        self._page_size = page_size if page_size is not None else repository.page_size
        self._state = PaginationState()
        self._subscriptions = _Subscriptions()
        self._generation = 0

    @property
    def state(self) -> PaginationState:
        return self._state

    @property
    def page_size(self) -> int:
        return self._page_size

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state updates; returns the unsubscribe callable."""

        return self._subscriptions.add(listener)

    def _dispatch(self, event: PaginationEvent) -> None:
        self._state = reduce(self._state, event)
        self._subscriptions.notify(self._state)

    def _is_current(self, generation: int, event: PaginationEvent) -> bool:
        if generation == self._generation:
            return True
        logger.debug("Discarding stale %s from generation %s", type(event).__name__, generation)
        return False

    def _complete(self, generation: int, event: PaginationEvent) -> None:
        if self._is_current(generation, event):
            self._dispatch(event)

    async def load_initial(self) -> None:
        if self._state.is_loading:
            return
        self._dispatch(LoadInitialStarted())
        await self._load_first_page(self._generation, force_refresh=False)

    async def refresh(self) -> None:
        """Reload page 0 from the network, discarding the current list."""

        if self._state.is_loading:
            return
        self._generation += 1
        self._dispatch(RefreshStarted())
        await self._load_first_page(self._generation, force_refresh=True)

    async def _load_first_page(self, generation: int, *, force_refresh: bool) -> None:
        try:
            items = await self._repository.list_page(0, force_refresh)
        except CatalogError as exc:
            self._complete(generation, LoadFailed(exc, during_load_more=False))
            return
        except BaseException:
            self._complete(generation, LoadAborted(during_load_more=False))
            raise
        self._complete(generation, InitialPageLoaded(items, self._page_size))

    async def load_more(self) -> None:
        state = self._state
        if state.is_loading_more or state.is_loading or not state.has_more:
            return

        generation = self._generation
        next_page = state.current_page + 1
        self._dispatch(LoadMoreStarted())
        try:
            items = await self._repository.list_page(next_page, False)
        except CatalogError as exc:
            self._complete(generation, LoadFailed(exc, during_load_more=True))
            return
        except BaseException:
            self._complete(generation, LoadAborted(during_load_more=True))
            raise
        self._complete(generation, MorePageLoaded(next_page, items, self._page_size))


__all__ = [
    "InitialPageLoaded",
    "LoadAborted",
    "LoadFailed",
    "LoadInitialStarted",
    "LoadMoreStarted",
    "MorePageLoaded",
    "PaginationCoordinator",
    "PaginationEvent",
    "PaginationState",
    "RefreshStarted",
    "has_more_after",
    "reduce",
]
