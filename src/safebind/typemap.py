"""Projection of native types onto boundary and API types."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .decls import (
    AllocationPlace,
    BoundaryType,
    BuiltInNumeric,
    BuiltInNumericKind,
    ClassBase,
    CppType,
    CppTypeIndirection,
    EnumBase,
    FunctionPointerBase,
    IndirectionChange,
    NumericKind,
    ParsedType,
    PointerSizedInteger,
    SpecificNumeric,
    TemplateParameter,
    VoidBase,
)
from .errors import (
    InvalidTemplateArgumentsError,
    StructuralInvariantError,
    UnsupportedTypeError,
)
from .registry import TypeRegistry, TypeWrapperKind
from .target import (
    CPP_BOX,
    OPTION,
    ApiConversion,
    CommonType,
    CompleteType,
    FunctionPointerType,
    TargetIndirection,
    TargetName,
    TargetType,
    UnitType,
)


_LIBC_NAMES = {
    BuiltInNumericKind.CHAR: "c_char",
    BuiltInNumericKind.SCHAR: "c_schar",
    BuiltInNumericKind.UCHAR: "c_uchar",
    BuiltInNumericKind.WCHAR: "wchar_t",
    BuiltInNumericKind.SHORT: "c_short",
    BuiltInNumericKind.USHORT: "c_ushort",
    BuiltInNumericKind.INT: "c_int",
    BuiltInNumericKind.UINT: "c_uint",
    BuiltInNumericKind.LONG: "c_long",
    BuiltInNumericKind.ULONG: "c_ulong",
    BuiltInNumericKind.LONGLONG: "c_longlong",
    BuiltInNumericKind.ULONGLONG: "c_ulonglong",
    BuiltInNumericKind.FLOAT: "c_float",
    BuiltInNumericKind.DOUBLE: "c_double",
}

_NUMERIC_PREFIXES = {NumericKind.INT: "i", NumericKind.UINT: "u", NumericKind.FLOAT: "f"}

_CALL_INDIRECTIONS = {
    CppTypeIndirection.NONE: TargetIndirection.NONE,
    CppTypeIndirection.PTR: TargetIndirection.PTR,
    CppTypeIndirection.PTR_PTR: TargetIndirection.PTR_PTR,
}


def call_type(registry: TypeRegistry, cpp_type: CppType) -> TargetType:
    """Binding-language type used at the native call boundary for a boundary type."""
    text = cpp_type.to_cpp_pseudo_code()
    indirection = _CALL_INDIRECTIONS.get(cpp_type.indirection)
    if indirection is None:
        raise UnsupportedTypeError(f"unsupported indirection for a boundary type: {text}")
    base = cpp_type.base
    if isinstance(base, VoidBase):
        if indirection is TargetIndirection.NONE:
            return UnitType()
        name = TargetName.of("libc::c_void")
    elif isinstance(base, BuiltInNumeric):
        if base.kind is BuiltInNumericKind.BOOL:
            name = TargetName.of("bool")
        elif base.kind in _LIBC_NAMES:
            name = TargetName(("libc", _LIBC_NAMES[base.kind]))
        else:
            raise UnsupportedTypeError(f"unsupported numeric type: {text}")
    elif isinstance(base, SpecificNumeric):
        name = TargetName.of(f"{_NUMERIC_PREFIXES[base.kind]}{base.bits}")
    elif isinstance(base, PointerSizedInteger):
        name = TargetName.of("isize" if base.is_signed else "usize")
    elif isinstance(base, EnumBase):
        name = registry.lookup(base.name).target_name
    elif isinstance(base, ClassBase):
        name = registry.lookup(base.name, base.template_arguments).target_name
    elif isinstance(base, FunctionPointerBase):
        if base.allows_variadic_arguments:
            raise UnsupportedTypeError(f"function pointers with variadic arguments are not supported: {text}")
        if indirection is not TargetIndirection.NONE:
            raise UnsupportedTypeError(f"pointers to function pointers are not supported: {text}")
        return FunctionPointerType(
            return_type=call_type(registry, base.return_type),
            arguments=tuple(call_type(registry, a) for a in base.arguments),
        )
    elif isinstance(base, TemplateParameter):
        raise UnsupportedTypeError(f"template parameters cannot be projected: {text}")
    else:
        raise UnsupportedTypeError(f"unknown type: {text}")
    return CommonType(
        base=name,
        is_const=cpp_type.is_const,
        is_const2=cpp_type.is_const2,
        indirection=indirection,
    )


def complete_type(
    registry: TypeRegistry,
    boundary: BoundaryType,
    *,
    is_receiver: bool = False,
    is_return: bool = False,
    is_template_argument: bool = False,
    allocation_place: AllocationPlace = AllocationPlace.NOT_APPLICABLE,
    flags_wrapper: TargetName = TargetName.of("qt_core::flags::Flags"),
) -> CompleteType:
    """Derive the call type, API type and API conversion of a boundary type."""
    call = call_type(registry, boundary.ffi_type)
    api: TargetType = call
    conversion = ApiConversion.NONE
    change = boundary.conversion
    text = boundary.original_type.to_cpp_pseudo_code()

    if change is IndirectionChange.NO_CHANGE:
        if is_receiver:
            if not isinstance(call, CommonType) or call.indirection is not TargetIndirection.PTR:
                raise StructuralInvariantError(f"receiver must be passed by pointer: {text}")
            api = replace(call, indirection=TargetIndirection.REF)
            conversion = ApiConversion.REF_TO_PTR
    elif change is IndirectionChange.VALUE_TO_POINTER:
        if not isinstance(call, CommonType) or call.indirection is not TargetIndirection.PTR:
            raise StructuralInvariantError(f"by-value type must cross the boundary as a pointer: {text}")
        value = replace(call, indirection=TargetIndirection.NONE, is_const=False, is_const2=False)
        if is_return:
            info = registry.find_by_target_name(call.base)
            if info is None or info.kind is not TypeWrapperKind.STRUCT:
                raise StructuralInvariantError(f"returned value is not a struct type: {text}")
            if not info.is_deletable:
                raise StructuralInvariantError(f"{info.cpp_text()} is not deletable")
            # The registered place of the type wins over the method's own policy.
            place = info.allocation_place or allocation_place
            if place is AllocationPlace.STACK:
                api = value
                conversion = ApiConversion.VALUE_TO_PTR
            elif place is AllocationPlace.HEAP:
                api = CommonType(base=CPP_BOX, generic_arguments=(value,))
                conversion = ApiConversion.OWNING_HANDLE_TO_PTR
            else:
                raise StructuralInvariantError(f"return allocation place is not applicable: {text}")
        elif is_template_argument:
            api = replace(value, is_const=True, is_const2=True)
            conversion = ApiConversion.VALUE_TO_PTR
        else:
            api = replace(call, indirection=TargetIndirection.REF, is_const=True, is_const2=True)
            conversion = ApiConversion.REF_TO_PTR
    elif change is IndirectionChange.REFERENCE_TO_POINTER:
        if not isinstance(call, CommonType):
            raise StructuralInvariantError(f"reference to a non-common type: {text}")
        if call.indirection is TargetIndirection.PTR:
            api = replace(call, indirection=TargetIndirection.REF)
        elif call.indirection is TargetIndirection.PTR_PTR:
            api = replace(call, indirection=TargetIndirection.PTR_REF)
        else:
            raise StructuralInvariantError(f"reference must cross the boundary as a pointer: {text}")
        conversion = ApiConversion.REF_TO_PTR
    elif change is IndirectionChange.FLAGS_TO_UINT:
        base = boundary.original_type.base
        if not isinstance(base, ClassBase) or not base.template_arguments or len(base.template_arguments) != 1:
            raise StructuralInvariantError(f"flags type must have exactly one template argument: {text}")
        arg = base.template_arguments[0]
        if not isinstance(arg.base, EnumBase) or arg.indirection is not CppTypeIndirection.NONE:
            raise InvalidTemplateArgumentsError(f"flags template argument must be an enum: {text}")
        enum_info = registry.lookup(arg.base.name)
        api = CommonType(base=flags_wrapper, generic_arguments=(CommonType(base=enum_info.target_name),))
        conversion = ApiConversion.FLAGS_TO_UINT

    return CompleteType(
        cpp_type=boundary.original_type,
        cpp_ffi_type=boundary.ffi_type,
        cpp_to_ffi_conversion=change,
        call_type=call,
        api_type=api,
        api_conversion=conversion,
    )


def allocation_place_for(parsed: ParsedType, overrides: dict[str, AllocationPlace]) -> AllocationPlace:
    """Stack when the type is a plain copyable value of known size, heap otherwise."""
    override = overrides.get(parsed.to_cpp_pseudo_code(), overrides.get(parsed.name))
    if override is AllocationPlace.STACK and parsed.byte_size is None:
        raise StructuralInvariantError(f"{parsed.to_cpp_pseudo_code()} cannot be stack allocated: size is unknown")
    if override is not None:
        return override
    if (
        parsed.byte_size is not None
        and parsed.has_public_destructor
        and parsed.is_copyable
        and not parsed.is_polymorphic
    ):
        return AllocationPlace.STACK
    return AllocationPlace.HEAP


@dataclass(frozen=True)
class LifetimeAssignment:
    arguments: tuple[CompleteType, ...]
    return_type: CompleteType
    # The returned reference is not tied to any argument.
    assumed_static: bool = False


def assign_lifetimes(arguments: list[CompleteType], return_type: CompleteType) -> LifetimeAssignment:
    """Tie the validity scope of a returned reference to the arguments.

    An argument that already carries a scope is reused. Otherwise every
    reference argument gets a fresh scope (`l0`, `l1`, ...) and the result
    borrows from `l0`. Without any reference argument the result is assumed
    to live for the whole program (`static`).
    """
    if not return_type.api_type.carries_ref():
        return LifetimeAssignment(arguments=tuple(arguments), return_type=return_type)
    for arg in arguments:
        lifetime = arg.api_type.lifetime_of()
        if lifetime is not None:
            return LifetimeAssignment(
                arguments=tuple(arguments),
                return_type=replace(return_type, api_type=return_type.api_type.with_lifetime(lifetime)),
            )
    result: list[CompleteType] = []
    n = 0
    for arg in arguments:
        if arg.api_type.carries_ref():
            arg = replace(arg, api_type=arg.api_type.with_lifetime(f"l{n}"))
            n += 1
        result.append(arg)
    lifetime = "l0" if n else "static"
    return LifetimeAssignment(
        arguments=tuple(result),
        return_type=replace(return_type, api_type=return_type.api_type.with_lifetime(lifetime)),
        assumed_static=n == 0,
    )


def option_ref(value: CompleteType) -> CompleteType:
    """Wrap a reference API type into an optional reference."""
    return replace(
        value,
        api_type=CommonType(base=OPTION, generic_arguments=(value.api_type,)),
        api_conversion=ApiConversion.OPTION_REF_TO_PTR,
    )
