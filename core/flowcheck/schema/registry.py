"""Registry mapping node kind strings to their schemas."""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from flowcheck.schema.models import KindCategory, NodeKindSchema

logger = logging.getLogger(__name__)

SchemaLookup = Callable[[str], NodeKindSchema | Mapping[str, Any] | None]


class SchemaRegistryError(ValueError):
    """Raised when a registry is used incorrectly (e.g. duplicate kind)."""


class SchemaRegistry:
    """
    Kind string -> NodeKindSchema.

    The validator consumes a registry but never owns or mutates it. Kinds
    that are not registered are still categorised: anything ending in
    ``_trigger`` is treated as a trigger so custom trigger kinds work
    without a schema.
    """

    def __init__(self, schemas: Iterable[NodeKindSchema] = ()):
        self._schemas: dict[str, NodeKindSchema] = {}
        for schema in schemas:
            self.register(schema)

    def register(self, schema: NodeKindSchema, replace: bool = False) -> None:
        if schema.kind in self._schemas and not replace:
            raise SchemaRegistryError(f"Node kind '{schema.kind}' is already registered")
        self._schemas[schema.kind] = schema

    def get(self, kind: str) -> NodeKindSchema | None:
        return self._schemas.get(kind)

    def kinds(self) -> list[str]:
        return list(self._schemas)

    def __contains__(self, kind: object) -> bool:
        return kind in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def category_of(self, kind: str) -> KindCategory:
        schema = self._schemas.get(kind)
        if schema is not None:
            return schema.category
        if kind.endswith("_trigger"):
            return KindCategory.TRIGGER
        return KindCategory.GENERIC

    def is_trigger(self, kind: str) -> bool:
        return self.category_of(kind) == KindCategory.TRIGGER

    def is_branching(self, kind: str) -> bool:
        return self.category_of(kind) == KindCategory.CONTROL_FLOW


class SchemaResolver:
    """
    Resolves schemas for one validation run.

    Prefers the caller's lookup function when one is given (it may return
    a NodeKindSchema or a plain mapping in the editor's palette format),
    otherwise falls back to the registry. Results are cached per kind so
    every analyzer in the run sees the same schema.
    """

    def __init__(self, registry: SchemaRegistry, lookup: SchemaLookup | None = None):
        self.registry = registry
        self._lookup = lookup
        self._cache: dict[str, NodeKindSchema | None] = {}
        self._invalid: dict[str, str] = {}

    def resolve(self, kind: str) -> NodeKindSchema | None:
        if not kind:
            return None
        if kind not in self._cache:
            self._cache[kind] = self._load(kind)
        return self._cache[kind]

    def category_of(self, kind: str) -> KindCategory:
        schema = self.resolve(kind)
        if schema is not None:
            return schema.category
        return self.registry.category_of(kind)

    def is_trigger(self, kind: str) -> bool:
        return self.category_of(kind) == KindCategory.TRIGGER

    def is_branching(self, kind: str) -> bool:
        return self.category_of(kind) == KindCategory.CONTROL_FLOW

    def invalid_kinds(self) -> dict[str, str]:
        """Kinds whose looked-up schema failed to parse, with the reason."""
        return dict(self._invalid)

    def _load(self, kind: str) -> NodeKindSchema | None:
        if self._lookup is None:
            return self.registry.get(kind)

        raw = self._lookup(kind)
        if raw is None or isinstance(raw, NodeKindSchema):
            return raw
        try:
            return NodeKindSchema.model_validate({"nodeType": kind, **raw})
        except (ValidationError, TypeError) as e:
            logger.warning(f"Schema lookup for kind '{kind}' returned an unusable schema: {e}")
            self._invalid[kind] = str(e).splitlines()[0]
            return None
