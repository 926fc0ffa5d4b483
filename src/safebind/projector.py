"""Driver running the projection phases over one library."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import ProjectorConfig
from .context import ProjectionContext
from .decls import (
    AllocationPlace,
    ClassBase,
    DeclarationSet,
    EnumBase,
    ParsedMethod,
    ParsedType,
    TypeKind,
)
from .diagnostics import DiagnosticLog, Severity
from .enums import prepare_enum_values
from .errors import ProjectionFailedError, SafeBindError
from .modules import Module, ModuleAssembler
from .names import sanitize_identifier, size_const_name
from .registry import TargetTypeInfo, TypeRegistry, TypeWrapperKind
from .target import TargetType
from .templates import resolve_template_instantiations
from .typemap import allocation_place_for, call_type
from .words import snake_case

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallArgument:
    name: str
    call_type: TargetType


@dataclass(frozen=True)
class CallDescriptor:
    """Signature of one exported native symbol at the call boundary."""

    name: str
    arguments: tuple[CallArgument, ...]
    return_type: TargetType


@dataclass(frozen=True)
class ProjectionOutput:
    crate_name: str
    modules: tuple[Module, ...]
    # declaring unit -> descriptors, sorted by symbol name
    call_descriptors: dict[str, tuple[CallDescriptor, ...]]
    registry: TypeRegistry
    diagnostics: DiagnosticLog


def _flaggable_enums(ctx: ProjectionContext) -> set[str]:
    flags = set(ctx.config.flags_templates)
    result: set[str] = set()
    for t in ctx.declarations.types:
        if t.kind is not TypeKind.TEMPLATE_INSTANTIATION or t.name not in flags:
            continue
        for arg in t.template_arguments or ():
            if isinstance(arg.base, EnumBase):
                result.add(arg.base.name)
    return result


def _declared_type_info(ctx: ProjectionContext, t: ParsedType, flaggable: set[str]) -> TargetTypeInfo | None:
    name = ctx.names.resolve(t.name, t.include_file, is_function=False)
    if t.kind is TypeKind.ENUM:
        return TargetTypeInfo(
            cpp_name=t.name,
            cpp_template_arguments=None,
            target_name=name,
            kind=TypeWrapperKind.ENUM,
            include_file=t.include_file,
            values=tuple(prepare_enum_values(t.values)),
            is_flaggable=t.name in flaggable,
            doc=t.doc,
        )
    if t.kind is TypeKind.CLASS:
        place = allocation_place_for(t, ctx.config.type_allocation_places)
        return TargetTypeInfo(
            cpp_name=t.name,
            cpp_template_arguments=None,
            target_name=name,
            kind=TypeWrapperKind.STRUCT,
            include_file=t.include_file,
            allocation_place=place,
            size_const_name=size_const_name(name) if place is AllocationPlace.STACK else None,
            is_deletable=t.has_public_destructor,
            doc=t.doc,
        )
    return None


def register_declared_types(ctx: ProjectionContext) -> int:
    """Register every enum and non-template class of the library.

    Types are visited in name order so target name collisions are reported
    the same way on every run. Returns the number of registered types.
    """
    flaggable = _flaggable_enums(ctx)
    registered = 0
    for t in sorted(ctx.declarations.types, key=lambda t: (t.name, t.include_file)):
        try:
            info = _declared_type_info(ctx, t, flaggable)
            if info is None:
                continue
            ctx.registry.add(info)
        except SafeBindError as e:
            ctx.diagnostics.skip(t.to_cpp_pseudo_code(), f"failed to register type: {e}")
            continue
        registered += 1
    logger.info("registered %d declared types", registered)
    return registered


def _class_is_registered(ctx: ProjectionContext, m: ParsedMethod) -> bool:
    if m.class_membership is None:
        return True
    cls = m.class_membership.class_type
    return ctx.registry.get(cls.name, cls.template_arguments) is not None


def accepted_methods(ctx: ProjectionContext) -> list[ParsedMethod]:
    """Methods whose owning class made it into this library's registry."""
    result = []
    for m in ctx.declarations.methods:
        if _class_is_registered(ctx, m):
            result.append(m)
            continue
        cls: ClassBase = m.class_membership.class_type
        ctx.diagnostics.skip(m.short_text, f"owning class is not registered: {cls.to_cpp_pseudo_code()}")
    return result


def call_descriptor(ctx: ProjectionContext, m: ParsedMethod) -> CallDescriptor:
    args = tuple(
        CallArgument(
            name=sanitize_identifier(snake_case(a.name)) if a.name else f"arg{i}",
            call_type=call_type(ctx.registry, a.argument_type.ffi_type),
        )
        for i, a in enumerate(m.arguments)
    )
    return CallDescriptor(name=m.c_name, arguments=args, return_type=call_type(ctx.registry, m.return_type.ffi_type))


def build_call_descriptors(
    ctx: ProjectionContext, methods: list[ParsedMethod]
) -> dict[str, tuple[CallDescriptor, ...]]:
    by_unit: dict[str, list[CallDescriptor]] = {unit: [] for unit in ctx.declarations.all_units()}
    for m in methods:
        try:
            descriptor = call_descriptor(ctx, m)
        except SafeBindError as e:
            ctx.diagnostics.skip(m.short_text, f"failed to build call descriptor: {e}")
            continue
        by_unit.setdefault(m.include_file, []).append(descriptor)
    return {unit: tuple(sorted(items, key=lambda d: d.name)) for unit, items in sorted(by_unit.items())}


def project(
    declarations: DeclarationSet,
    config: ProjectorConfig,
    dependencies: tuple[TypeRegistry, ...] = (),
) -> ProjectionOutput:
    """Project a parsed library onto the binding-language API.

    Raises `ProjectionFailedError` carrying every diagnostic when a run-wide
    failure occurs; per-entity failures are reported as skips instead.
    """
    ctx = ProjectionContext.create(declarations, config, dependencies)
    logger.info(
        "projecting %s: %d types, %d methods", declarations.library, len(declarations.types), len(declarations.methods)
    )
    modules: list[Module] = []
    methods: list[ParsedMethod] = []
    try:
        register_declared_types(ctx)
        resolve_template_instantiations(ctx)
        ctx.registry.freeze()
        methods = accepted_methods(ctx)
        modules = ModuleAssembler(ctx).run(methods)
    except SafeBindError as e:
        ctx.diagnostics.fatal(declarations.library, str(e))
    if ctx.diagnostics.has_fatal:
        raise ProjectionFailedError(
            f"projection of {declarations.library} failed:\n{ctx.diagnostics.report()}",
            diagnostics=list(ctx.diagnostics.entries),
        )

    placed = set().union(*(m.native_symbols() for m in modules))
    descriptors = build_call_descriptors(ctx, [m for m in methods if m.c_name in placed])
    logger.info(
        "projected %s: %d modules, %d types, %d skipped entities",
        declarations.library,
        len(modules),
        len(ctx.registry),
        len(ctx.diagnostics.of(Severity.SKIP)),
    )
    return ProjectionOutput(
        crate_name=config.crate_name,
        modules=tuple(modules),
        call_descriptors=descriptors,
        registry=ctx.registry,
        diagnostics=ctx.diagnostics,
    )
