"""Invocation strategies — how a resolved route target is called.

A strategy receives the target, the current request, a fresh response,
and the route arguments (placeholder values merged over route defaults).
The router holds exactly one active strategy and consults it for every
dispatched route.

Built-in strategies::

    # RequestResponse (default): arguments as one mapping
    def show(request, response, args):
        return response.write(f"Hello {args['name']}")

    # RequestResponseArgs: arguments by parameter name
    def show(request, response, name):
        return response.write(f"Hello {name}")
"""

import inspect
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from strata.errors import ResolutionError
from strata.http.request import Request
from strata.http.response import Response


class InvocationStrategy(Protocol):
    """Protocol for calling a route target."""

    def __call__(
        self,
        target: Callable[..., Any],
        request: Request,
        response: Response,
        arguments: Mapping[str, str],
    ) -> Any: ...


class RequestResponse:
    """Call ``target(request, response, arguments)``.

    Each argument is also copied onto the request attributes, next to
    the attributes the request already carries.
    """

    __slots__ = ()

    def __call__(
        self,
        target: Callable[..., Any],
        request: Request,
        response: Response,
        arguments: Mapping[str, str],
    ) -> Any:
        request = request.with_attributes(arguments)
        return target(request, response, dict(arguments))


class RequestResponseArgs:
    """Call ``target(request, response, *values)``.

    Values are looked up by name, in the order the target declares its
    parameters after ``request`` and ``response``. A parameter with a
    default may be missing from the arguments. A ``*args`` parameter
    receives the arguments not yet consumed, in mapping order.
    """

    __slots__ = ()

    def __call__(
        self,
        target: Callable[..., Any],
        request: Request,
        response: Response,
        arguments: Mapping[str, str],
    ) -> Any:
        return target(request, response, *_positional_values(target, arguments))


def _positional_values(target: Callable[..., Any], arguments: Mapping[str, str]) -> list[str]:
    try:
        parameters = list(inspect.signature(target).parameters.values())
    except (TypeError, ValueError):
        return list(arguments.values())

    values: list[str] = []
    consumed: set[str] = set()
    # The first two positional slots receive request and response
    reserved = 2
    for param in parameters:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            values.extend(v for k, v in arguments.items() if k not in consumed)
            break
        if param.kind not in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            break
        if reserved:
            reserved -= 1
            continue
        if param.name in arguments:
            values.append(arguments[param.name])
            consumed.add(param.name)
        elif param.default is inspect.Parameter.empty:
            raise ResolutionError(target, f"no route argument named {param.name!r}")
        else:
            break
    return values
