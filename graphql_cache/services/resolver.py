"""
Cache Resolver

graphql-core integration. Fields opt in through a `cache` extension on
their definition; the middleware turns each resolution of such a field
into a ResolutionContext and hands the underlying resolver to Marshal.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from graphql import GraphQLField, GraphQLOutputType, GraphQLResolveInfo

from ..constants import CACHE_EXTENSION, FORCE_CACHE_FLAG
from ..domain.key_builder import KeyBuilder
from ..domain.shapes import unwrap_object
from ..domain.value_objects import CacheDirective, CacheKey, ResolutionContext
from .marshal import Marshal


def cached_field(
    type_: GraphQLOutputType,
    cache: Any = True,
    extensions: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> GraphQLField:
    """
    Build a GraphQLField carrying a cache directive.

    `cache` is `True`, or a mapping with `key`, `key_value` and `expiry`
    (see CacheDirective.parse).
    """
    extensions = dict(extensions or {})
    extensions[CACHE_EXTENSION] = CacheDirective.parse(cache)
    return GraphQLField(type_, extensions=extensions, **kwargs)


def directive_for(info: GraphQLResolveInfo) -> CacheDirective:
    """Cache directive declared on the field being resolved."""
    field = info.parent_type.fields.get(info.field_name)
    if field is None or not field.extensions:
        return CacheDirective.disabled()
    return CacheDirective.parse(field.extensions.get(CACHE_EXTENSION))


def force_requested(execution_context: Any) -> bool:
    """Whether the execution context asks to bypass cached values."""
    if isinstance(execution_context, Mapping):
        return bool(execution_context.get(FORCE_CACHE_FLAG))
    return bool(getattr(execution_context, FORCE_CACHE_FLAG, False))


class CacheResolver:
    """Wires a single field resolution into the read-through engine."""

    def __init__(self, key_builder: KeyBuilder, marshal: Marshal):
        self.key_builder = key_builder
        self.marshal = marshal

    def context_for(
        self,
        root: Any,
        info: GraphQLResolveInfo,
        arguments: Mapping,
        directive: CacheDirective,
    ) -> ResolutionContext:
        return ResolutionContext(
            parent_type_name=info.parent_type.name,
            field_name=info.field_name,
            parent_object=unwrap_object(root),
            arguments=dict(arguments),
            directive=directive,
            execution_context=info.context,
        )

    def cache_key(self, context: ResolutionContext) -> CacheKey:
        return self.key_builder.build(context)

    def call(
        self,
        context: ResolutionContext,
        thunk: Callable[[], Any],
        force: bool = False,
    ) -> Any:
        key = self.cache_key(context)
        return self.marshal.read(key, context.directive, force=force, thunk=thunk)


class CacheMiddleware:
    """
    graphql-core middleware applying read-through caching to fields
    declared with a cache directive.

    Usage:
        graphql(schema, source, middleware=[cache.middleware()])
    """

    def __init__(self, resolver: CacheResolver):
        self.resolver = resolver

    def resolve(self, next_, root, info: GraphQLResolveInfo, **args):
        directive = directive_for(info)
        if not directive.enabled:
            return next_(root, info, **args)

        context = self.resolver.context_for(root, info, args, directive)
        return self.resolver.call(
            context,
            lambda: next_(root, info, **args),
            force=force_requested(info.context),
        )
