"""Startup and shutdown events publishing their results on the application state."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from typing import Any

from robyn import Robyn

from upload_storage.core.logger import LogIcon, logger
from upload_storage.core.settings import settings as st

AsyncHandler = Callable[[], Coroutine[Any, Any, None]]


class State:
    """Attribute bag injected into handlers as ``global_dependencies["state"]``."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        object.__setattr__(self, "_data", {})

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"State has no attribute '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def __len__(self) -> int:
        return len(self._data)

    def clear(self) -> None:
        self._data.clear()


class BaseEvent[T](ABC):
    """A resource started with the app.

    The value returned by ``startup`` is published on the state under ``name``
    and handed back to ``shutdown``.
    """

    name: str
    state: State

    @abstractmethod
    async def startup(self) -> T: ...

    async def shutdown(self, instance: T) -> None:  # noqa: B027
        """Optional cleanup. Override if cleanup is needed."""

    @classmethod
    def has_shutdown(cls) -> bool:
        return cls.shutdown is not BaseEvent.shutdown


class Lifespan:
    """Starts registered events in order and stops them in reverse.

    When an event fails to start, the events already started are shut down
    before the error propagates, so the storage roots or any other resource
    are never left half initialized.
    """

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._event_classes: list[type[BaseEvent[Any]]] = []
        self._events: list[BaseEvent[Any]] = []
        self._state: State | None = None

    def register(self, event_cls: type[BaseEvent[Any]]) -> "Lifespan":
        """Register an event class. Returns self for chaining."""
        self._event_classes.append(event_cls)
        return self

    @property
    def state(self) -> State | None:
        return self._state

    @property
    def events(self) -> list[BaseEvent[Any]]:
        return self._events

    async def _shutdown_events(self, state: State) -> None:
        for event in reversed(self._events):
            if event.has_shutdown() and event.name in state:
                logger.info(f"Shutting down: {event.name}", icon=LogIcon.PROCESSING)
                await event.shutdown(getattr(state, event.name))
                logger.info(f"Shutdown complete: {event.name}", icon=LogIcon.SUCCESS)
        self._events.clear()
        state.clear()

    @property
    def startup(self) -> AsyncHandler:
        async def _startup() -> None:
            logger.info("Starting application lifespan", icon=LogIcon.START, version=st.API_VERSION)
            state = self._state = State()

            for event_cls in self._event_classes:
                event = event_cls()
                event.state = state

                logger.info(f"Starting event: {event.name}", icon=LogIcon.PROCESSING)
                try:
                    instance = await event.startup()
                except Exception:
                    logger.error(f"Event failed to start: {event.name}", icon=LogIcon.ERROR)
                    await self._shutdown_events(state)
                    raise
                setattr(state, event.name, instance)
                logger.info(f"Event ready: {event.name}", icon=LogIcon.SUCCESS)

                self._events.append(event)

            self._app.inject_global(state=state)
            logger.info("App state ready", icon=LogIcon.COMPLETE, events=len(state))

        return _startup

    @property
    def shutdown(self) -> AsyncHandler:
        async def _shutdown() -> None:
            logger.info("Cleaning up app state", icon=LogIcon.TOOL)

            if self._state is None:
                logger.info("No state to cleanup", icon=LogIcon.WARNING)
                return

            await self._shutdown_events(self._state)
            logger.info("Cleanup complete", icon=LogIcon.COMPLETE)

        return _shutdown


def create_lifespan(app: Robyn) -> Lifespan:
    """Create lifespan manager for event registration."""
    return Lifespan(app)
