"""Registration of concrete template instantiations."""

from __future__ import annotations

import logging
from collections import deque

from .context import ProjectionContext
from .decls import AllocationPlace, ParsedType, TemplateParameter, TypeKind, to_boundary_type
from .errors import (
    SafeBindError,
    TemplateResolutionError,
    UnresolvedReferenceError,
    UnsupportedTypeError,
)
from .names import size_const_name
from .registry import TargetTypeInfo, TypeKey, TypeWrapperKind
from .target import TargetName
from .typemap import allocation_place_for
from .words import class_case

logger = logging.getLogger(__name__)


def instantiation_key(t: ParsedType) -> TypeKey:
    return t.name, t.template_arguments


def finalize_instantiation(ctx: ProjectionContext, t: ParsedType) -> TargetTypeInfo:
    """Build the registry entry of one instantiation.

    The name is the template's name followed by the captions of its
    arguments (`QList<QString>` -> `ListString`). Raises
    `UnresolvedReferenceError` while an argument type is not registered yet.
    """
    base_name = ctx.names.resolve(t.name, t.include_file, is_function=False)
    captions = []
    for arg in t.template_arguments or ():
        if isinstance(arg.base, TemplateParameter):
            raise UnsupportedTypeError(f"instantiation still has template parameters: {t.to_cpp_pseudo_code()}")
        boundary = to_boundary_type(arg, flags_names=ctx.config.flags_templates)
        complete = ctx.complete_type(boundary, is_template_argument=True)
        captions.append(complete.api_type.caption(base_name))
    name = TargetName((*base_name.parts[:-1], base_name.last_name + class_case("_".join(captions))))
    place = allocation_place_for(t, ctx.config.type_allocation_places)
    return TargetTypeInfo(
        cpp_name=t.name,
        cpp_template_arguments=t.template_arguments,
        target_name=name,
        kind=TypeWrapperKind.STRUCT,
        include_file=t.include_file,
        allocation_place=place,
        size_const_name=size_const_name(name) if place is AllocationPlace.STACK else None,
        is_deletable=t.has_public_destructor,
        doc=t.doc,
    )


def resolve_template_instantiations(ctx: ProjectionContext) -> int:
    """Register every instantiation once all of its argument types are known.

    Entries blocked on a missing type wait under that type's key and are
    retried when it gets registered. Entries still waiting at the end can
    never be resolved and fail the run. Returns the number of registered
    instantiations.
    """
    flags = set(ctx.config.flags_templates)
    seen: set[TypeKey] = set()
    pending: list[ParsedType] = []
    for t in ctx.declarations.types:
        if t.kind is not TypeKind.TEMPLATE_INSTANTIATION or t.name in flags:
            continue
        key = instantiation_key(t)
        if key in seen:
            continue
        seen.add(key)
        pending.append(t)
    pending.sort(key=lambda t: t.to_cpp_pseudo_code())

    queue = deque(pending)
    waiting: dict[TypeKey, list[ParsedType]] = {}
    blocked: dict[TypeKey, tuple[ParsedType, str]] = {}
    registered = 0
    while queue:
        t = queue.popleft()
        text = t.to_cpp_pseudo_code()
        blocked.pop(instantiation_key(t), None)
        try:
            info = finalize_instantiation(ctx, t)
        except UnresolvedReferenceError as e:
            if e.key is None:
                ctx.diagnostics.skip(text, f"failed to process template instantiation: {e}")
                continue
            waiting.setdefault(e.key, []).append(t)
            blocked[instantiation_key(t)] = (t, str(e))
            continue
        except SafeBindError as e:
            ctx.diagnostics.skip(text, f"failed to process template instantiation: {e}")
            continue
        try:
            ctx.registry.add(info)
        except SafeBindError as e:
            ctx.diagnostics.skip(text, str(e))
            continue
        registered += 1
        queue.extend(waiting.pop(info.key, []))

    if blocked:
        lines = [f"  {t.to_cpp_pseudo_code()}: {msg}" for t, msg in blocked.values()]
        raise TemplateResolutionError("failed to resolve template instantiations:\n" + "\n".join(lines))
    logger.info("registered %d template instantiations", registered)
    return registered
