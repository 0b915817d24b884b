"""Shared type aliases used across strata modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route target — a callable, an "id:method" string, or a dotted function path
Target: TypeAlias = Callable[..., Any] | str
