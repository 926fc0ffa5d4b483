"""Projection of native functions and methods onto binding-language methods."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace

from .context import ProjectionContext
from .decls import AllocationPlace, ArgRole, CastKind, ParsedMethod, to_boundary_type
from .errors import StructuralInvariantError
from .names import operator_name, sanitize_identifier
from .target import (
    CPP_DELETABLE,
    DEREF,
    DEREF_MUT,
    DROP,
    DYNAMIC_CAST,
    STATIC_CAST,
    UNSAFE_STATIC_CAST,
    CommonType,
    CompleteType,
    TargetIndirection,
    TargetName,
    TargetType,
    UnitType,
)
from .typemap import assign_lifetimes, option_ref
from .words import snake_case


class ReceiverKind(enum.Enum):
    NONE = "none"
    VALUE = "value"
    CONST_REF = "const_ref"
    MUT_REF = "mut_ref"


class ScopeKind(enum.Enum):
    FREE = "free"
    IMPL = "impl"
    TRAIT_IMPL = "trait_impl"


@dataclass(frozen=True)
class MethodScope:
    kind: ScopeKind
    # Type of the impl block (IMPL only).
    target_type: CommonType | None = None

    @classmethod
    def impl(cls, target_type: CommonType) -> "MethodScope":
        return cls(ScopeKind.IMPL, target_type)


FREE_SCOPE = MethodScope(ScopeKind.FREE)
TRAIT_IMPL_SCOPE = MethodScope(ScopeKind.TRAIT_IMPL)


@dataclass(frozen=True)
class MethodArgument:
    name: str
    argument_type: CompleteType
    ffi_index: int


@dataclass(frozen=True)
class ArgumentsVariant:
    arguments: tuple[MethodArgument, ...]
    return_type: CompleteType
    # Index of the native argument receiving the result, if any.
    return_ffi_index: int | None
    source: ParsedMethod
    assumed_static_lifetime: bool = False

    def receiver_kind(self) -> ReceiverKind:
        if not self.arguments or self.arguments[0].name != "self":
            return ReceiverKind.NONE
        api = self.arguments[0].argument_type.api_type
        if isinstance(api, CommonType):
            if api.indirection is TargetIndirection.REF:
                return ReceiverKind.CONST_REF if api.is_const else ReceiverKind.MUT_REF
            if api.indirection is TargetIndirection.NONE:
                return ReceiverKind.VALUE
        raise StructuralInvariantError(f"invalid receiver type: {api.to_text()}")

    def signature_text(self, name: str, receiver: ReceiverKind | None = None) -> str:
        receiver = self.receiver_kind() if receiver is None else receiver
        items = []
        if receiver is ReceiverKind.VALUE:
            items.append("self")
        elif receiver is ReceiverKind.CONST_REF:
            items.append("&self")
        elif receiver is ReceiverKind.MUT_REF:
            items.append("&mut self")
        items.extend(f"{a.name}: {a.argument_type.api_type.to_text()}" for a in self.arguments if a.name != "self")
        ret = self.return_type.api_type
        tail = "" if isinstance(ret, UnitType) else f" -> {ret.to_text()}"
        return f"fn {name}({', '.join(items)}){tail}"


@dataclass(frozen=True)
class MethodDoc:
    source_signature: str
    doc: str | None = None
    target_signatures: tuple[str, ...] = ()


class CaptionStrategy(enum.Enum):
    UNSAFE_ONLY = "unsafe_only"
    SELF_ONLY = "self_only"
    SELF_AND_INDEX = "self_and_index"
    SELF_AND_ARG_NAMES = "self_and_arg_names"
    SELF_AND_ARG_TYPES = "self_and_arg_types"


@dataclass(frozen=True)
class OverloadedArguments:
    params_trait_name: str
    params_trait_lifetime: str | None
    common_return_type: TargetType | None
    shared_arguments: tuple[MethodArgument, ...]
    variant_argument_name: str
    source_method_name: str


@dataclass(frozen=True)
class TargetMethod:
    name: TargetName
    scope: MethodScope
    is_unsafe: bool
    variant: ArgumentsVariant | None = None
    overloaded: OverloadedArguments | None = None
    variant_docs: tuple[MethodDoc, ...] = ()


@dataclass(frozen=True)
class SingleMethod:
    """One native function projected as one binding-language method."""

    name: TargetName
    scope: MethodScope
    # Callers must uphold validity of raw pointer arguments.
    is_unsafe: bool
    variant: ArgumentsVariant
    doc: MethodDoc | None = None

    def receiver_kind(self) -> ReceiverKind:
        return self.variant.receiver_kind()

    def can_be_overloaded_with(self, other: "SingleMethod") -> bool:
        if self.is_unsafe != other.is_unsafe:
            return False
        if self.receiver_kind() is not other.receiver_kind():
            return False
        mine = self.variant.arguments
        theirs = other.variant.arguments
        if len(mine) != len(theirs):
            return True
        return not all(
            a.argument_type.cpp_type.can_be_the_same_as(b.argument_type.cpp_type) for a, b in zip(mine, theirs)
        )

    def name_suffix(self, strategy: CaptionStrategy, all_receivers: set[ReceiverKind], index: int) -> str | None:
        if strategy is CaptionStrategy.UNSAFE_ONLY:
            return "unsafe" if self.is_unsafe else None
        kind = self.receiver_kind()
        if len(all_receivers) == 1 or kind is ReceiverKind.CONST_REF:
            receiver_caption = None
        elif kind is ReceiverKind.NONE:
            receiver_caption = "static"
        elif kind is ReceiverKind.MUT_REF:
            receiver_caption = "mut" if ReceiverKind.CONST_REF in all_receivers else None
        else:
            raise StructuralInvariantError("unsupported combination of receiver kinds")

        other = None
        args = self.variant.arguments
        if strategy is CaptionStrategy.SELF_AND_INDEX:
            other = str(index)
        elif strategy is CaptionStrategy.SELF_AND_ARG_NAMES:
            other = "_".join(a.name for a in args) if args else "no_args"
        elif strategy is CaptionStrategy.SELF_AND_ARG_TYPES:
            if self.scope.kind is ScopeKind.FREE:
                context = self.name
            elif self.scope.kind is ScopeKind.IMPL and self.scope.target_type is not None:
                context = self.scope.target_type.base
            else:
                raise StructuralInvariantError("trait impl methods cannot be captioned by argument types")
            if args:
                other = "_".join(a.argument_type.api_type.caption(context) for a in args if a.name != "self")
            else:
                other = "no_args"

        items = [x for x in (receiver_caption, other) if x]
        return "_".join(items) if items else None

    def to_method(self) -> TargetMethod:
        return TargetMethod(
            name=self.name,
            scope=self.scope,
            is_unsafe=self.is_unsafe,
            variant=self.variant,
            variant_docs=(self.doc,) if self.doc is not None else (),
        )


@dataclass(frozen=True)
class TraitAssociatedType:
    name: str
    value: TargetType


@dataclass(frozen=True)
class CapabilityImpl:
    target_type: TargetType
    trait_type: CommonType
    associated_types: tuple[TraitAssociatedType, ...] = ()
    methods: tuple[TargetMethod, ...] = ()
    # Native deleter of heap allocated objects.
    deleter_name: str | None = None

    def sort_key(self) -> tuple[str, str]:
        return self.trait_type.to_text(), self.target_type.to_text()


def conversion_caption(ctx: ProjectionContext, method: ParsedMethod) -> str | None:
    if method.operator != "conversion" or method.conversion_type is None:
        return None
    boundary = to_boundary_type(method.conversion_type, is_return=True, flags_names=ctx.config.flags_templates)
    complete = ctx.complete_type(boundary, is_template_argument=True)
    return complete.api_type.caption(TargetName((ctx.config.crate_name,)))


def free_function_name(ctx: ProjectionContext, method: ParsedMethod) -> TargetName:
    return ctx.names.resolve(
        method.name,
        method.include_file,
        is_function=True,
        operator=method.operator,
        conversion_caption=conversion_caption(ctx, method),
    )


def method_name(ctx: ProjectionContext, method: ParsedMethod) -> TargetName:
    if method.class_membership is None:
        return free_function_name(ctx, method)
    if method.is_constructor:
        return TargetName(("new",))
    if method.operator is not None:
        return TargetName((operator_name(method.operator, conversion_caption(ctx, method)),))
    return TargetName((snake_case(method.name),))


def generate_single_method(ctx: ProjectionContext, method: ParsedMethod, scope: MethodScope) -> SingleMethod:
    arguments: list[MethodArgument] = []
    out_return: tuple[int, CompleteType] | None = None
    for i, arg in enumerate(method.arguments):
        if arg.role is ArgRole.OUT_RETURN:
            if out_return is not None:
                raise StructuralInvariantError("more than one out-return argument")
            out_return = (
                i,
                ctx.complete_type(arg.argument_type, is_return=True, allocation_place=method.allocation_place),
            )
            continue
        is_receiver = arg.role is ArgRole.RECEIVER
        arguments.append(
            MethodArgument(
                name="self" if is_receiver else sanitize_identifier(snake_case(arg.name)),
                argument_type=ctx.complete_type(
                    arg.argument_type, is_receiver=is_receiver, allocation_place=method.allocation_place
                ),
                ffi_index=i,
            )
        )
    if out_return is not None:
        if not method.return_type.ffi_type.is_void():
            raise StructuralInvariantError("native function with an out-return argument must return void")
        return_ffi_index, return_type = out_return
    else:
        return_ffi_index = None
        return_type = ctx.complete_type(method.return_type, is_return=True, allocation_place=method.allocation_place)

    scoped = assign_lifetimes([a.argument_type for a in arguments], return_type)
    if scoped.assumed_static:
        ctx.diagnostics.warn(
            method.short_text,
            "returns a reference but receives none; assuming the result lives for the whole program",
        )
    arguments = [replace(a, argument_type=t) for a, t in zip(arguments, scoped.arguments)]

    return SingleMethod(
        name=method_name(ctx, method),
        scope=scope,
        is_unsafe=any(a.argument_type.api_type.is_unsafe_argument() for a in arguments),
        variant=ArgumentsVariant(
            arguments=tuple(arguments),
            return_type=scoped.return_type,
            return_ffi_index=return_ffi_index,
            source=method,
            assumed_static_lifetime=scoped.assumed_static,
        ),
        doc=MethodDoc(source_signature=method.short_text, doc=method.doc),
    )


def _owner_allocation_place(ctx: ProjectionContext, method: ParsedMethod) -> AllocationPlace:
    membership = method.class_membership
    if membership is not None:
        owner = membership.class_type
        info = ctx.registry.find(owner.name, owner.template_arguments)
        if info is not None and info.allocation_place is not None:
            return info.allocation_place
    return method.allocation_place


def process_destructor(ctx: ProjectionContext, method: ParsedMethod, scope: MethodScope) -> CapabilityImpl:
    """Turn a native destructor into a cleanup capability of the wrapper type."""
    if scope.kind is not ScopeKind.IMPL or scope.target_type is None:
        raise StructuralInvariantError("destructor must be in a type scope")
    place = _owner_allocation_place(ctx, method)
    if place is AllocationPlace.STACK:
        single = generate_single_method(ctx, method, scope)
        drop = replace(single, name=TargetName(("drop",)), scope=TRAIT_IMPL_SCOPE)
        return CapabilityImpl(
            target_type=scope.target_type,
            trait_type=CommonType(base=DROP),
            methods=(drop.to_method(),),
        )
    if place is AllocationPlace.HEAP:
        return CapabilityImpl(
            target_type=scope.target_type,
            trait_type=CommonType(base=CPP_DELETABLE),
            deleter_name=method.c_name,
        )
    raise StructuralInvariantError("destructor must have an allocation place")


def process_cast(ctx: ProjectionContext, single: SingleMethod) -> list[CapabilityImpl]:
    """Turn a native cast function into cast capabilities of the source type.

    Every cast gets a const and a `_mut` accessor. Checked casts return an
    optional reference. Safe casts to a direct base also give `Deref` and
    `DerefMut`.
    """
    source = single.variant.source
    cast = source.cast
    if cast is None:
        raise StructuralInvariantError("not a cast function")
    if cast.kind is CastKind.STATIC:
        trait = UNSAFE_STATIC_CAST if cast.is_unsafe else STATIC_CAST
    elif cast.kind is CastKind.DYNAMIC:
        trait = DYNAMIC_CAST
    else:
        trait = ctx.config.qobject_cast_name
    args = single.variant.arguments
    if len(args) != 1:
        raise StructuralInvariantError("cast function must take exactly one argument")
    from_type = args[0].argument_type
    to_type = single.variant.return_type
    is_unsafe_static = cast.kind is CastKind.STATIC and cast.is_unsafe
    source_value = from_type.ptr_to_value().api_type
    target_value = to_type.ptr_to_value().api_type

    results: list[CapabilityImpl] = []
    accessors: list[TargetMethod] = []
    for is_const in (True, False):
        ref = to_type.ptr_to_ref(is_const)
        return_type = ref if cast.kind is CastKind.STATIC else option_ref(ref)
        receiver = replace(args[0], name="self", argument_type=from_type.ptr_to_ref(is_const))
        accessor = replace(
            single,
            name=TargetName((source.name if is_const else f"{source.name}_mut",)),
            scope=TRAIT_IMPL_SCOPE,
            is_unsafe=is_unsafe_static,
            variant=replace(single.variant, arguments=(receiver,), return_type=return_type),
        )
        accessors.append(accessor.to_method())
        if cast.kind is CastKind.STATIC and not cast.is_unsafe and cast.is_direct:
            deref = replace(accessor, name=TargetName(("deref" if is_const else "deref_mut",)))
            results.append(
                CapabilityImpl(
                    target_type=source_value,
                    trait_type=CommonType(base=DEREF if is_const else DEREF_MUT),
                    associated_types=(TraitAssociatedType("Target", target_value),) if is_const else (),
                    methods=(deref.to_method(),),
                )
            )
    results.append(
        CapabilityImpl(
            target_type=source_value,
            trait_type=CommonType(base=trait, generic_arguments=(target_value,)),
            methods=tuple(accessors),
        )
    )
    return results
