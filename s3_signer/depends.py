"""Bind process-wide values to an app and inject them into handlers.

    bind(app, StorageBackend, fs)

    async def handler(fs: Injected[StorageBackend]) -> ...
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, Any, Callable, TypeVar

from fastapi import Depends, FastAPI, Request

T = TypeVar("T")


def bind(app: FastAPI, tp: type[T], value: T) -> None:
    bindings = getattr(app.state, "bindings", None)
    if bindings is None:
        bindings = app.state.bindings = {}
    bindings[tp] = value


@lru_cache(maxsize=None)
def _provider(tp: Any) -> Callable[[Request], Any]:
    async def provide(request: Request) -> Any:
        try:
            return request.app.state.bindings[tp]
        except (AttributeError, KeyError):
            raise LookupError(f"nothing bound to {tp!r}") from None

    return provide


if TYPE_CHECKING:
    Injected = Annotated[T, ...]
else:

    class Injected:
        def __class_getitem__(cls, tp: Any) -> Any:
            return Annotated[tp, Depends(_provider(tp))]
