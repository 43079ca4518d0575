from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union, get_args

from routespec.config import GeneratorSettings
from routespec.domain.models import HttpMethod, Info, OpenApiDocument, Operation
from routespec.errors import GeneratorConsumedError

logger = logging.getLogger(__name__)

HTTP_METHODS: frozenset[str] = frozenset(get_args(HttpMethod))


@dataclass(frozen=True)
class OperationInfo:
    """One operation fragment as contributed by a companion registration function."""

    path: str
    method: str
    operation: Operation


FragmentSource = Union[OperationInfo, Callable[[], OperationInfo]]


class OpenApiGenerator:
    """
    Single-use accumulator for operation fragments.

    Owned by exactly one generation pass: register() any number of times,
    then finalize() once. Entries are keyed by operation id; re-registering
    an id replaces the earlier fragment (last write wins).
    """

    def __init__(self, settings: GeneratorSettings) -> None:
        self.settings = settings
        self._operations: dict[str, OperationInfo] = {}
        self._finalized = False

    def __len__(self) -> int:
        return len(self._operations)

    def register(self, operation_id: str, fragment: FragmentSource) -> None:
        self._check_open()
        info = fragment() if callable(fragment) else fragment
        if not isinstance(info, OperationInfo):
            raise TypeError(f"expected OperationInfo, got {type(info).__name__}")

        method = info.method.lower()
        if method not in HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method {info.method!r} for {info.path}")
        op = info.operation.model_copy(update={"operation_id": operation_id}, deep=True)

        if operation_id in self._operations:
            logger.debug("operation id %s registered again, replacing", operation_id)
        self._operations[operation_id] = OperationInfo(path=info.path, method=method, operation=op)

    def finalize(self) -> OpenApiDocument:
        """Consume the generator and return the document (placeholder info)."""
        self._check_open()
        self._finalized = True

        paths: dict[str, dict[str, Operation]] = {}
        for entry in self._operations.values():
            paths.setdefault(entry.path, {})[entry.method] = entry.operation

        doc = OpenApiDocument(
            openapi=self.settings.openapi_version,
            info=Info(title="", version=""),
            paths=paths,
        )
        doc._order = [(entry.path, entry.method) for entry in self._operations.values()]
        return doc

    def _check_open(self) -> None:
        if self._finalized:
            raise GeneratorConsumedError("OpenApiGenerator already finalized")
