"""Base middleware architecture for Robyn applications."""

import inspect
from abc import ABC
from collections.abc import Awaitable, Callable

from robyn import Request, Response, Robyn

from upload_storage.core.logger import LogIcon, logger

type RequestHook = Callable[[Request], Request | Response | Awaitable[Request | Response]]
type ResponseHook = Callable[[Response], Response | Awaitable[Response]]


class BaseMiddleware(ABC):
    """Base class for middlewares with before/after hooks.

    Hooks may be plain or ``async`` methods. Middlewares without their own
    ``endpoints`` apply to every registered route.
    """

    endpoints: frozenset[str] = frozenset()

    def __init__(self, endpoints: frozenset[str] | list[str] | None = None) -> None:
        if endpoints is not None:
            self.endpoints = frozenset(endpoints)

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        # Check that at least one of before/after is implemented
        if not (cls.has_before() or cls.has_after()):
            raise TypeError(f"{cls.__name__} must implement at least one of before/after")

    @classmethod
    def has_before(cls) -> bool:
        return cls.before is not BaseMiddleware.before

    @classmethod
    def has_after(cls) -> bool:
        return cls.after is not BaseMiddleware.after

    def before(self, request: Request) -> Request | Response:
        """Called before request handling. Return Request to continue or Response to short-circuit."""
        return request

    def after(self, response: Response) -> Response:
        """Called after request handling. Return modified Response."""
        return response


async def run_hook[T](hook: Callable[[T], object], value: T) -> object:
    """Call a sync or async hook and return its result."""
    result = hook(value)
    if inspect.isawaitable(result):
        return await result
    return result


class MiddlewareHandler:
    """Manages middleware registration for a Robyn application."""

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._middlewares: list[BaseMiddleware] = []

    @property
    def middlewares(self) -> list[BaseMiddleware]:
        return list(self._middlewares)

    def register(self, middleware: BaseMiddleware) -> "MiddlewareHandler":
        """Register a middleware instance. Returns self for chaining."""
        if not isinstance(middleware, BaseMiddleware):
            raise TypeError(f"Expected a BaseMiddleware instance, got {middleware!r}")
        self._middlewares.append(middleware)
        endpoints = self._apply_middleware(middleware)
        logger.info(
            f"Registered middleware: {middleware.__class__.__name__}",
            icon=LogIcon.ADAPTER,
            endpoints=len(endpoints),
        )
        return self

    def _apply_middleware(self, middleware: BaseMiddleware) -> frozenset[str]:
        """Apply middleware to endpoints."""
        endpoints = middleware.endpoints or self._get_all_routes()

        for endpoint in endpoints:
            if middleware.has_before():
                self._register_before(endpoint, middleware.before)
            if middleware.has_after():
                self._register_after(endpoint, middleware.after)
        return endpoints

    def _get_all_routes(self) -> frozenset[str]:
        """Get all registered routes from the app."""
        routes = self._app.get_all_routes()
        return frozenset(route[1] for route in routes)

    def _register_before(self, endpoint: str, handler: RequestHook) -> None:
        """Register a before_request handler for an endpoint."""
        @self._app.before_request(endpoint)
        async def before_wrapper(request: Request) -> Request | Response:
            return await run_hook(handler, request)

    def _register_after(self, endpoint: str, handler: ResponseHook) -> None:
        """Register an after_request handler for an endpoint."""
        @self._app.after_request(endpoint)
        async def after_wrapper(response: Response) -> Response:
            return await run_hook(handler, response)
