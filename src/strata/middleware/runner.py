"""Middleware runner — executes an onion of layers around a terminal step.

The layer list is ordered outermost first. Running it calls layer 0 with
a continuation bound to layer 1, and so on; the last continuation calls
the terminal handler, which has no continuation of its own.

All traversal state (the cursor) lives in the continuation objects
created for one call, never on the runner. One runner can therefore be
re-entered from inside its own layers, or run by several threads at
once, without the traversals seeing each other.
"""

from collections.abc import Iterable

from strata.http.request import Request
from strata.http.response import Response
from strata.middleware.protocol import Layer, RequestHandler


class Continuation:
    """The rest of a chain, from layer ``index`` to the terminal handler.

    Passed to a layer as its ``next`` argument. Immutable; calling it
    twice runs the remainder twice.
    """

    __slots__ = ("_index", "_layers", "_terminal")

    def __init__(self, layers: tuple[Layer, ...], terminal: RequestHandler, index: int) -> None:
        self._layers = layers
        self._terminal = terminal
        self._index = index

    def __call__(self, request: Request) -> Response:
        if self._index >= len(self._layers):
            return self._terminal.handle(request)
        layer = self._layers[self._index]
        return layer(request, Continuation(self._layers, self._terminal, self._index + 1))

    handle = __call__


class MiddlewareRunner:
    """An ordered layer list plus the terminal step it wraps.

    ``add`` puts a layer in front of the ones already present, so the
    most recently added layer is the outermost one.

    Usage::

        runner = MiddlewareRunner(DispatchHandler(router))
        runner.add(timing)
        response = runner.handle(request)
    """

    __slots__ = ("_layers", "terminal")

    def __init__(self, terminal: RequestHandler, layers: Iterable[Layer] = ()) -> None:
        self.terminal = terminal
        self._layers: tuple[Layer, ...] = tuple(layers)

    def add(self, layer: Layer) -> None:
        # Replace, don't mutate: traversals in flight keep their snapshot
        self._layers = (layer, *self._layers)

    @property
    def layers(self) -> tuple[Layer, ...]:
        """The layers, outermost first, without the terminal step."""
        return self._layers

    @property
    def middleware(self) -> tuple[Layer | RequestHandler, ...]:
        """The layers, outermost first, followed by the terminal step."""
        return (*self._layers, self.terminal)

    def handle(self, request: Request) -> Response:
        """Run *request* through every layer and the terminal step."""
        return Continuation(self._layers, self.terminal, 0)(request)

    def __len__(self) -> int:
        return len(self._layers)
