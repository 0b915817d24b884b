"""Callable resolution — turns route and middleware targets into callables.

A target is one of three shapes::

    app.get("/", index)                        # direct callable
    app.get("/users", "users:index")           # service id + method
    app.get("/health", "myapp.views.health")   # dotted function path

``parse_target`` classifies a target at registration time without
touching the container. ``CallableResolver.resolve`` does the actual
lookup at dispatch time, through a deferred container cell, so swapping
the application's container changes future resolutions without
re-registering routes.
"""

import importlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from strata.container import Container
from strata.errors import ResolutionError

logger = logging.getLogger("strata.resolver")

FALLBACK_METHOD = "invoke_named"


@dataclass(frozen=True, slots=True)
class DirectCallable:
    """A target that is already callable (function, closure, instance)."""

    target: Callable[..., Any]


@dataclass(frozen=True, slots=True)
class QualifiedReference:
    """A ``"service:method"`` target."""

    service: str
    method: str

    def __str__(self) -> str:
        return f"{self.service}:{self.method}"


@dataclass(frozen=True, slots=True)
class FunctionName:
    """A dotted import path to a module-level function."""

    name: str

    def __str__(self) -> str:
        return self.name


type TargetSpec = DirectCallable | QualifiedReference | FunctionName


def parse_target(target: Any) -> TargetSpec:
    """Classify *target* into one of the three target shapes.

    Raises ``ResolutionError`` if it is neither callable nor a string.
    """
    if isinstance(target, DirectCallable | QualifiedReference | FunctionName):
        return target
    if isinstance(target, str):
        service, sep, method = target.partition(":")
        if not sep:
            return FunctionName(target)
        if not service or not method:
            raise ResolutionError(target, "expected 'service:method'")
        return QualifiedReference(service, method)
    if callable(target):
        return DirectCallable(target)
    raise ResolutionError(target, "target must be callable or a string")


class NamedInvocation:
    """Routes a call to a service's ``invoke_named(method, args)`` fallback.

    Used when a ``"service:method"`` target names a method the service
    does not define but the service accepts named dispatch::

        class Actions:
            def invoke_named(self, name, args):
                ...
    """

    __slots__ = ("instance", "method")

    def __init__(self, instance: Any, method: str) -> None:
        self.instance = instance
        self.method = method

    def __call__(self, *args: Any) -> Any:
        return getattr(self.instance, FALLBACK_METHOD)(self.method, list(args))

    def __repr__(self) -> str:
        return f"NamedInvocation({self.instance!r}, {self.method!r})"


class CallableResolver:
    """Resolve target specs to callables.

    Args:
        container: Zero-argument callable returning the current container
            (or ``None``). Called on every resolution, never cached.
    """

    __slots__ = ("_container",)

    def __init__(self, container: Callable[[], Container | None] | None = None) -> None:
        self._container = container or _no_container

    @property
    def container(self) -> Container | None:
        """The container this resolver currently sees."""
        return self._container()

    def resolve(self, target: Any) -> Callable[..., Any]:
        """Resolve *target* to a callable.

        Raises ``ResolutionError`` if the service, method, or function
        cannot be found.
        """
        spec = parse_target(target)
        match spec:
            case DirectCallable(target=func):
                return func
            case QualifiedReference(service=service, method=method):
                return self._bind(spec, self.resolve_service(service), method)
            case FunctionName(name=name):
                return self._import_function(spec, name)

    def resolve_service(self, id: str) -> Any:
        """Look *id* up in the container, falling back to a dotted type name.

        A type found by import is instantiated without arguments.

        Raises ``ResolutionError`` if *id* is in neither place, if the
        container fails to produce it, or if the type needs arguments.
        """
        container = self._container()
        if container is not None and container.has(id):
            logger.debug("Resolved %r from the container", id)
            try:
                return container.get(id)
            except LookupError as exc:
                raise ResolutionError(id, f"container lookup failed: {exc!r}") from exc

        obj = _import_dotted(id)
        if not isinstance(obj, type):
            raise ResolutionError(id, "not found in the container and not an importable type")
        logger.debug("Resolved %r by instantiating %s", id, obj.__qualname__)
        try:
            return obj()
        except TypeError as exc:
            raise ResolutionError(id, f"cannot instantiate {obj.__qualname__}: {exc}") from exc

    def _bind(self, spec: QualifiedReference, instance: Any, method: str) -> Callable[..., Any]:
        bound = getattr(instance, method, None)
        if callable(bound):
            return bound
        if callable(getattr(instance, FALLBACK_METHOD, None)):
            return NamedInvocation(instance, method)
        msg = f"{type(instance).__name__} has no method {method!r} and no {FALLBACK_METHOD}()"
        raise ResolutionError(str(spec), msg)

    def _import_function(self, spec: FunctionName, name: str) -> Callable[..., Any]:
        func = _import_dotted(name)
        if func is None or not callable(func):
            raise ResolutionError(str(spec), "not an importable callable")
        return func


def _import_dotted(path: str) -> Any:
    """Import ``"package.module.attr"``; return ``None`` if it does not exist.

    Import errors raised from inside an existing module propagate.
    """
    module_path, _, attr_name = path.rpartition(".")
    if not module_path or not attr_name:
        return None
    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as exc:
        if exc.name is None or not _is_prefix(exc.name, module_path):
            raise
        return None
    return getattr(module, attr_name, None)


def _no_container() -> None:
    return None


def _is_prefix(name: str, module_path: str) -> bool:
    """Whether *name* is *module_path* or one of its parent packages."""
    return module_path == name or module_path.startswith(f"{name}.")
