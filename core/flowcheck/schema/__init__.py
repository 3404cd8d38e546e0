"""Node kind schemas and the registry the validator reads them from."""

from flowcheck.schema.builtin import BUILTIN_SCHEMAS, LLM_KINDS
from flowcheck.schema.models import FieldSpec, KindCategory, NodeKindSchema, ValueKind
from flowcheck.schema.registry import (
    SchemaLookup,
    SchemaRegistry,
    SchemaRegistryError,
    SchemaResolver,
)


def default_registry() -> SchemaRegistry:
    """A fresh registry holding the built-in palette kinds."""
    return SchemaRegistry(BUILTIN_SCHEMAS)


__all__ = [
    "BUILTIN_SCHEMAS",
    "LLM_KINDS",
    "FieldSpec",
    "KindCategory",
    "NodeKindSchema",
    "ValueKind",
    "SchemaLookup",
    "SchemaRegistry",
    "SchemaRegistryError",
    "SchemaResolver",
    "default_registry",
]
