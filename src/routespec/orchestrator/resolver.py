from __future__ import annotations

import importlib
from types import ModuleType
from typing import Any, Mapping, Optional

from routespec.errors import ResolutionError
from routespec.grammar.parser import RoutePath

_MISSING = object()


class Resolver:
    """
    Resolve `a::b::c` references to Python objects.

    The first segment is looked up in `namespace` (typically the generation
    site's globals()); otherwise the longest importable module prefix is
    imported and the remaining segments are walked with getattr, importing
    sub-modules on demand.
    """

    def __init__(self, namespace: Optional[Mapping[str, Any]] = None) -> None:
        self.namespace = namespace or {}

    def resolve(self, path: RoutePath) -> Any:
        segments = path.segments

        if segments[0] in self.namespace:
            return self._walk(self.namespace[segments[0]], segments, 1, path)

        for cut in range(len(segments) - 1, 0, -1):
            module_name = ".".join(segments[:cut])
            module = _try_import(module_name)
            if module is not None:
                return self._walk(module, segments, cut, path)

        if len(segments) == 1:
            raise ResolutionError(str(path), "name not found in the generation namespace")
        raise ResolutionError(str(path), f"no importable module for `{segments[0]}`")

    def resolve_callable(self, path: RoutePath) -> Any:
        obj = self.resolve(path)
        if not callable(obj):
            raise ResolutionError(str(path), f"{type(obj).__name__} object is not callable")
        return obj

    def _walk(self, obj: Any, segments: tuple[str, ...], start: int, path: RoutePath) -> Any:
        for i in range(start, len(segments)):
            name = segments[i]
            nxt = getattr(obj, name, _MISSING)
            if nxt is _MISSING and isinstance(obj, ModuleType):
                nxt = _try_import(f"{obj.__name__}.{name}") or _MISSING
            if nxt is _MISSING:
                owner = "::".join(segments[:i]) or "<namespace>"
                raise ResolutionError(str(path), f"`{owner}` has no attribute `{name}`")
            obj = nxt
        return obj


def _try_import(module_name: str) -> Optional[ModuleType]:
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        # missing module (or missing parent package) only; a broken import inside it propagates
        if exc.name == module_name or module_name.startswith(f"{exc.name}."):
            return None
        raise
