"""Parsed native declarations (the input of a projection run)."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Union

from .errors import DeclarationLoadError, UnsupportedTypeError

DEFAULT_FLAGS_TEMPLATES = ("QFlags",)


class CppTypeIndirection(enum.Enum):
    NONE = "none"
    PTR = "ptr"
    REF = "ref"
    PTR_PTR = "ptr_ptr"
    PTR_REF = "ptr_ref"
    RVALUE_REF = "rvalue_ref"


class BuiltInNumericKind(enum.Enum):
    BOOL = "bool"
    CHAR = "char"
    SCHAR = "schar"
    UCHAR = "uchar"
    WCHAR = "wchar"
    CHAR16 = "char16"
    CHAR32 = "char32"
    SHORT = "short"
    USHORT = "ushort"
    INT = "int"
    UINT = "uint"
    LONG = "long"
    ULONG = "ulong"
    LONGLONG = "longlong"
    ULONGLONG = "ulonglong"
    INT128 = "int128"
    UINT128 = "uint128"
    FLOAT = "float"
    DOUBLE = "double"
    LONGDOUBLE = "longdouble"


_BUILTIN_CPP_NAMES = {
    BuiltInNumericKind.BOOL: "bool",
    BuiltInNumericKind.CHAR: "char",
    BuiltInNumericKind.SCHAR: "signed char",
    BuiltInNumericKind.UCHAR: "unsigned char",
    BuiltInNumericKind.WCHAR: "wchar_t",
    BuiltInNumericKind.CHAR16: "char16_t",
    BuiltInNumericKind.CHAR32: "char32_t",
    BuiltInNumericKind.SHORT: "short",
    BuiltInNumericKind.USHORT: "unsigned short",
    BuiltInNumericKind.INT: "int",
    BuiltInNumericKind.UINT: "unsigned int",
    BuiltInNumericKind.LONG: "long",
    BuiltInNumericKind.ULONG: "unsigned long",
    BuiltInNumericKind.LONGLONG: "long long",
    BuiltInNumericKind.ULONGLONG: "unsigned long long",
    BuiltInNumericKind.INT128: "__int128_t",
    BuiltInNumericKind.UINT128: "__uint128_t",
    BuiltInNumericKind.FLOAT: "float",
    BuiltInNumericKind.DOUBLE: "double",
    BuiltInNumericKind.LONGDOUBLE: "long double",
}

# kind -> (numeric class, widths the type may have across supported platforms)
_BUILTIN_WIDTHS: dict[BuiltInNumericKind, tuple[str, frozenset[int]]] = {
    BuiltInNumericKind.CHAR: ("char", frozenset({8})),
    BuiltInNumericKind.SCHAR: ("int", frozenset({8})),
    BuiltInNumericKind.UCHAR: ("uint", frozenset({8})),
    BuiltInNumericKind.WCHAR: ("wchar", frozenset({16, 32})),
    BuiltInNumericKind.CHAR16: ("uint", frozenset({16})),
    BuiltInNumericKind.CHAR32: ("uint", frozenset({32})),
    BuiltInNumericKind.SHORT: ("int", frozenset({16})),
    BuiltInNumericKind.USHORT: ("uint", frozenset({16})),
    BuiltInNumericKind.INT: ("int", frozenset({32})),
    BuiltInNumericKind.UINT: ("uint", frozenset({32})),
    BuiltInNumericKind.LONG: ("int", frozenset({32, 64})),
    BuiltInNumericKind.ULONG: ("uint", frozenset({32, 64})),
    BuiltInNumericKind.LONGLONG: ("int", frozenset({64})),
    BuiltInNumericKind.ULONGLONG: ("uint", frozenset({64})),
    BuiltInNumericKind.INT128: ("int", frozenset({128})),
    BuiltInNumericKind.UINT128: ("uint", frozenset({128})),
    BuiltInNumericKind.FLOAT: ("float", frozenset({32})),
    BuiltInNumericKind.DOUBLE: ("float", frozenset({64})),
    BuiltInNumericKind.LONGDOUBLE: ("float", frozenset({64, 80, 128})),
}


class NumericKind(enum.Enum):
    INT = "int"
    UINT = "uint"
    FLOAT = "float"


@dataclass(frozen=True)
class VoidBase:
    def to_cpp_pseudo_code(self) -> str:
        return "void"


@dataclass(frozen=True)
class BuiltInNumeric:
    kind: BuiltInNumericKind

    def to_cpp_pseudo_code(self) -> str:
        return _BUILTIN_CPP_NAMES[self.kind]


@dataclass(frozen=True)
class SpecificNumeric:
    name: str
    bits: int
    kind: NumericKind

    def to_cpp_pseudo_code(self) -> str:
        return self.name


@dataclass(frozen=True)
class PointerSizedInteger:
    name: str
    is_signed: bool

    def to_cpp_pseudo_code(self) -> str:
        return self.name


@dataclass(frozen=True)
class EnumBase:
    name: str

    def to_cpp_pseudo_code(self) -> str:
        return self.name


@dataclass(frozen=True)
class ClassBase:
    name: str
    template_arguments: tuple["CppType", ...] | None = None

    def to_cpp_pseudo_code(self) -> str:
        if self.template_arguments is None:
            return self.name
        args = ", ".join(a.to_cpp_pseudo_code() for a in self.template_arguments)
        return f"{self.name}< {args} >"


@dataclass(frozen=True)
class FunctionPointerBase:
    return_type: "CppType"
    arguments: tuple["CppType", ...]
    allows_variadic_arguments: bool = False

    def to_cpp_pseudo_code(self) -> str:
        args = ", ".join(a.to_cpp_pseudo_code() for a in self.arguments)
        if self.allows_variadic_arguments:
            args = f"{args}, ..." if args else "..."
        return f"{self.return_type.to_cpp_pseudo_code()} (*)({args})"


@dataclass(frozen=True)
class TemplateParameter:
    nested_level: int
    index: int
    name: str | None = None

    def to_cpp_pseudo_code(self) -> str:
        return self.name or f"T{self.nested_level}_{self.index}"


CppTypeBase = Union[
    VoidBase,
    BuiltInNumeric,
    SpecificNumeric,
    PointerSizedInteger,
    EnumBase,
    ClassBase,
    FunctionPointerBase,
    TemplateParameter,
]


def _numeric_profile(base: CppTypeBase) -> tuple[str, frozenset[int]] | None:
    if isinstance(base, BuiltInNumeric):
        return _BUILTIN_WIDTHS.get(base.kind)
    if isinstance(base, SpecificNumeric):
        return base.kind.value, frozenset({base.bits})
    if isinstance(base, PointerSizedInteger):
        return ("int" if base.is_signed else "uint"), frozenset({32, 64})
    return None


def _bases_can_be_the_same(a: CppTypeBase, b: CppTypeBase) -> bool:
    if a == b:
        return True
    if isinstance(a, ClassBase) and isinstance(b, ClassBase):
        if a.name != b.name or a.template_arguments is None or b.template_arguments is None:
            return False
        if len(a.template_arguments) != len(b.template_arguments):
            return False
        return all(x.can_be_the_same_as(y) for x, y in zip(a.template_arguments, b.template_arguments))
    pa = _numeric_profile(a)
    pb = _numeric_profile(b)
    if pa is None or pb is None:
        return False
    ka, wa = pa
    kb, wb = pb
    # char and wchar_t alias an integer of either signedness.
    for loose in ("char", "wchar"):
        if loose in (ka, kb):
            other = kb if ka == loose else ka
            return other in {loose, "int", "uint"} and bool(wa & wb)
    return ka == kb and bool(wa & wb)


@dataclass(frozen=True)
class CppType:
    base: CppTypeBase
    indirection: CppTypeIndirection = CppTypeIndirection.NONE
    is_const: bool = False
    is_const2: bool = False

    def is_void(self) -> bool:
        return isinstance(self.base, VoidBase) and self.indirection is CppTypeIndirection.NONE

    def to_cpp_pseudo_code(self) -> str:
        text = self.base.to_cpp_pseudo_code()
        if self.is_const:
            text = f"const {text}"
        ind = self.indirection
        if ind is CppTypeIndirection.PTR:
            text += "*"
        elif ind is CppTypeIndirection.REF:
            text += "&"
        elif ind is CppTypeIndirection.PTR_PTR:
            text += "* const*" if self.is_const2 else "**"
        elif ind is CppTypeIndirection.PTR_REF:
            text += "* const&" if self.is_const2 else "*&"
        elif ind is CppTypeIndirection.RVALUE_REF:
            text += "&&"
        return text

    def can_be_the_same_as(self, other: "CppType") -> bool:
        """Whether the two types may be the same type on some supported platform."""
        if self == other:
            return True
        if (
            self.indirection is not other.indirection
            or self.is_const != other.is_const
            or self.is_const2 != other.is_const2
        ):
            return False
        return _bases_can_be_the_same(self.base, other.base)


class IndirectionChange(enum.Enum):
    NO_CHANGE = "no_change"
    VALUE_TO_POINTER = "value_to_pointer"
    REFERENCE_TO_POINTER = "reference_to_pointer"
    FLAGS_TO_UINT = "flags_to_uint"


@dataclass(frozen=True)
class BoundaryType:
    """A source type together with its representation at the native boundary."""

    original_type: CppType
    ffi_type: CppType
    conversion: IndirectionChange = IndirectionChange.NO_CHANGE


def to_boundary_type(
    cpp_type: CppType,
    *,
    is_return: bool = False,
    flags_names: tuple[str, ...] = DEFAULT_FLAGS_TEMPLATES,
) -> BoundaryType:
    """Derive the boundary representation of a plain source type."""
    base = cpp_type.base
    if isinstance(base, FunctionPointerBase):
        for item in (*base.arguments, base.return_type):
            if to_boundary_type(item, flags_names=flags_names).conversion is not IndirectionChange.NO_CHANGE:
                raise UnsupportedTypeError(
                    f"function pointers with converted arguments are not supported: "
                    f"{cpp_type.to_cpp_pseudo_code()}"
                )
    ind = cpp_type.indirection
    if isinstance(base, ClassBase) and base.name in flags_names and ind is CppTypeIndirection.NONE:
        return BoundaryType(
            original_type=cpp_type,
            ffi_type=CppType(BuiltInNumeric(BuiltInNumericKind.UINT)),
            conversion=IndirectionChange.FLAGS_TO_UINT,
        )
    if ind is CppTypeIndirection.RVALUE_REF:
        raise UnsupportedTypeError(f"rvalue references are not supported: {cpp_type.to_cpp_pseudo_code()}")
    if ind is CppTypeIndirection.REF:
        return BoundaryType(
            cpp_type, replace(cpp_type, indirection=CppTypeIndirection.PTR), IndirectionChange.REFERENCE_TO_POINTER
        )
    if ind is CppTypeIndirection.PTR_REF:
        return BoundaryType(
            cpp_type, replace(cpp_type, indirection=CppTypeIndirection.PTR_PTR), IndirectionChange.REFERENCE_TO_POINTER
        )
    if ind is CppTypeIndirection.NONE and isinstance(base, ClassBase):
        ffi = replace(cpp_type, indirection=CppTypeIndirection.PTR, is_const=not is_return)
        return BoundaryType(cpp_type, ffi, IndirectionChange.VALUE_TO_POINTER)
    return BoundaryType(cpp_type, cpp_type, IndirectionChange.NO_CHANGE)


class ArgRole(enum.Enum):
    RECEIVER = "receiver"
    POSITIONAL = "positional"
    OUT_RETURN = "out_return"


@dataclass(frozen=True)
class BoundaryArgument:
    name: str
    argument_type: BoundaryType
    role: ArgRole
    # Position among the source arguments (POSITIONAL only).
    index: int | None = None


class AllocationPlace(enum.Enum):
    STACK = "stack"
    HEAP = "heap"
    NOT_APPLICABLE = "not_applicable"


class CastKind(enum.Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    QOBJECT = "qobject"


@dataclass(frozen=True)
class CastInfo:
    kind: CastKind
    is_unsafe: bool = False
    # Cast between a class and its direct base.
    is_direct: bool = False


@dataclass(frozen=True)
class ClassMembership:
    class_type: ClassBase
    is_const: bool = False
    is_static: bool = False
    is_virtual: bool = False


@dataclass(frozen=True)
class ParsedMethod:
    name: str
    c_name: str
    include_file: str
    arguments: tuple[BoundaryArgument, ...]
    return_type: BoundaryType
    class_membership: ClassMembership | None = None
    operator: str | None = None
    conversion_type: CppType | None = None
    is_constructor: bool = False
    is_destructor: bool = False
    allocation_place: AllocationPlace = AllocationPlace.NOT_APPLICABLE
    cast: CastInfo | None = None
    doc: str | None = None
    signature: str = ""

    @property
    def full_name(self) -> str:
        if self.class_membership is None:
            return self.name
        return f"{self.class_membership.class_type.name}::{self.name}"

    @property
    def short_text(self) -> str:
        return self.signature or self.full_name


class TypeKind(enum.Enum):
    PRIMITIVE = "primitive"
    ENUM = "enum"
    CLASS = "class"
    TEMPLATE_INSTANTIATION = "template_instantiation"
    FUNCTION_POINTER = "function_pointer"


@dataclass(frozen=True)
class EnumValue:
    name: str
    value: int
    doc: str | None = None


@dataclass(frozen=True)
class ParsedType:
    name: str
    kind: TypeKind
    include_file: str
    template_arguments: tuple[CppType, ...] | None = None
    byte_size: int | None = None
    has_public_destructor: bool = True
    is_copyable: bool = True
    is_polymorphic: bool = False
    values: tuple[EnumValue, ...] = ()
    doc: str | None = None

    def to_cpp_pseudo_code(self) -> str:
        return ClassBase(self.name, self.template_arguments).to_cpp_pseudo_code()


@dataclass(frozen=True)
class DeclarationSet:
    library: str
    types: tuple[ParsedType, ...] = ()
    methods: tuple[ParsedMethod, ...] = ()
    # Declaring units (headers); derived from the entities when empty.
    units: tuple[str, ...] = field(default=())

    def all_units(self) -> list[str]:
        if self.units:
            return list(self.units)
        seen: set[str] = set()
        for item in (*self.types, *self.methods):
            if item.include_file:
                seen.add(item.include_file)
        return sorted(seen)

    @classmethod
    def from_dict(cls, obj: Any) -> "DeclarationSet":
        if not isinstance(obj, dict):
            raise DeclarationLoadError("declarations must be a JSON object")
        library = obj.get("library")
        if not isinstance(library, str) or not library:
            raise DeclarationLoadError("declarations.library must be a non-empty string")
        raw_units = obj.get("units", [])
        if not isinstance(raw_units, list) or not all(isinstance(u, str) for u in raw_units):
            raise DeclarationLoadError("declarations.units must be a list of strings")
        raw_types = obj.get("types", [])
        raw_methods = obj.get("methods", [])
        if not isinstance(raw_types, list) or not isinstance(raw_methods, list):
            raise DeclarationLoadError("declarations.types and declarations.methods must be lists")
        types = tuple(_parse_type_decl(t, f"types[{i}]") for i, t in enumerate(raw_types))
        methods = tuple(_parse_method(m, f"methods[{i}]") for i, m in enumerate(raw_methods))
        return cls(library=library, types=types, methods=methods, units=tuple(raw_units))


def load_declarations(path: Path) -> DeclarationSet:
    path = Path(path)
    if not path.exists():
        raise DeclarationLoadError(f"declarations file not found: {path}")
    try:
        obj = json.loads(path.read_text(encoding="utf-8"))
    except Exception as e:  # noqa: BLE001 - boundary parse
        raise DeclarationLoadError(f"failed to parse {path.name}: {e}") from e
    return DeclarationSet.from_dict(obj)


def _enum_value(enum_cls: type[enum.Enum], raw: Any, where: str) -> Any:
    try:
        return enum_cls(raw)
    except ValueError as e:
        raise DeclarationLoadError(f"{where}: invalid {enum_cls.__name__} {raw!r}") from e


def _req_str(obj: dict[str, Any], key: str, where: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str) or not v:
        raise DeclarationLoadError(f"{where}.{key} must be a non-empty string")
    return v


def _opt_str(obj: dict[str, Any], key: str, where: str) -> str | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise DeclarationLoadError(f"{where}.{key} must be a string")
    return v


def _opt_bool(obj: dict[str, Any], key: str, default: bool) -> bool:
    v = obj.get(key)
    return v if isinstance(v, bool) else default


def _parse_type_list(raw: Any, where: str) -> tuple[CppType, ...]:
    if not isinstance(raw, list):
        raise DeclarationLoadError(f"{where} must be a list")
    return tuple(parse_cpp_type(t, f"{where}[{i}]") for i, t in enumerate(raw))


def _parse_base(raw: Any, where: str) -> CppTypeBase:
    if isinstance(raw, str):
        # Shorthand: builtin numeric kind or "void".
        if raw == "void":
            return VoidBase()
        return BuiltInNumeric(_enum_value(BuiltInNumericKind, raw, where))
    if not isinstance(raw, dict):
        raise DeclarationLoadError(f"{where} must be a string or an object")
    kind = raw.get("kind")
    if kind == "void":
        return VoidBase()
    if kind == "builtin":
        return BuiltInNumeric(_enum_value(BuiltInNumericKind, raw.get("name"), where))
    if kind == "specific_numeric":
        bits = raw.get("bits")
        if not isinstance(bits, int) or bits <= 0:
            raise DeclarationLoadError(f"{where}.bits must be a positive integer")
        return SpecificNumeric(
            name=_req_str(raw, "name", where),
            bits=bits,
            kind=_enum_value(NumericKind, raw.get("number_kind"), where),
        )
    if kind == "pointer_sized_integer":
        return PointerSizedInteger(name=_req_str(raw, "name", where), is_signed=_opt_bool(raw, "is_signed", False))
    if kind == "enum":
        return EnumBase(_req_str(raw, "name", where))
    if kind == "class":
        args = raw.get("template_arguments")
        return ClassBase(
            name=_req_str(raw, "name", where),
            template_arguments=None if args is None else _parse_type_list(args, f"{where}.template_arguments"),
        )
    if kind == "function_pointer":
        if "return_type" not in raw:
            raise DeclarationLoadError(f"{where}.return_type is required")
        return FunctionPointerBase(
            return_type=parse_cpp_type(raw["return_type"], f"{where}.return_type"),
            arguments=_parse_type_list(raw.get("arguments", []), f"{where}.arguments"),
            allows_variadic_arguments=_opt_bool(raw, "allows_variadic_arguments", False),
        )
    if kind == "template_parameter":
        level = raw.get("nested_level", 0)
        index = raw.get("index")
        if not isinstance(level, int) or not isinstance(index, int):
            raise DeclarationLoadError(f"{where}: template parameter needs integer nested_level and index")
        return TemplateParameter(nested_level=level, index=index, name=_opt_str(raw, "name", where))
    raise DeclarationLoadError(f"{where}: unknown type kind {kind!r}")


def parse_cpp_type(raw: Any, where: str = "type") -> CppType:
    if isinstance(raw, str):
        return CppType(_parse_base(raw, where))
    if not isinstance(raw, dict) or "base" not in raw:
        raise DeclarationLoadError(f"{where} must be an object with a base")
    return CppType(
        base=_parse_base(raw["base"], f"{where}.base"),
        indirection=_enum_value(CppTypeIndirection, raw.get("indirection", "none"), where),
        is_const=_opt_bool(raw, "is_const", False),
        is_const2=_opt_bool(raw, "is_const2", False),
    )


def _parse_boundary_type(raw: Any, where: str, *, is_return: bool) -> BoundaryType:
    if isinstance(raw, dict) and "original" in raw:
        original = parse_cpp_type(raw["original"], f"{where}.original")
        ffi = parse_cpp_type(raw.get("ffi", raw["original"]), f"{where}.ffi")
        conversion = _enum_value(IndirectionChange, raw.get("conversion", "no_change"), where)
        return BoundaryType(original, ffi, conversion)
    cpp_type = parse_cpp_type(raw, where)
    try:
        return to_boundary_type(cpp_type, is_return=is_return)
    except UnsupportedTypeError as e:
        raise DeclarationLoadError(f"{where}: {e}") from e


def _parse_argument(raw: Any, where: str) -> BoundaryArgument:
    if not isinstance(raw, dict):
        raise DeclarationLoadError(f"{where} must be an object")
    role = _enum_value(ArgRole, raw.get("role", "positional"), where)
    index = raw.get("index")
    if role is ArgRole.POSITIONAL and not isinstance(index, int):
        raise DeclarationLoadError(f"{where}.index is required for positional arguments")
    if "type" not in raw:
        raise DeclarationLoadError(f"{where}.type is required")
    return BoundaryArgument(
        name=_req_str(raw, "name", where),
        argument_type=_parse_boundary_type(raw["type"], f"{where}.type", is_return=role is ArgRole.OUT_RETURN),
        role=role,
        index=index if isinstance(index, int) else None,
    )


def _parse_method(raw: Any, where: str) -> ParsedMethod:
    if not isinstance(raw, dict):
        raise DeclarationLoadError(f"{where} must be an object")
    membership = None
    raw_class = raw.get("class")
    if raw_class is not None:
        if not isinstance(raw_class, dict):
            raise DeclarationLoadError(f"{where}.class must be an object")
        raw_class_type = raw_class.get("type")
        if not isinstance(raw_class_type, dict):
            raise DeclarationLoadError(f"{where}.class.type must be an object")
        class_base = _parse_base({**raw_class_type, "kind": "class"}, f"{where}.class.type")
        assert isinstance(class_base, ClassBase)
        membership = ClassMembership(
            class_type=class_base,
            is_const=_opt_bool(raw_class, "is_const", False),
            is_static=_opt_bool(raw_class, "is_static", False),
            is_virtual=_opt_bool(raw_class, "is_virtual", False),
        )
    operator = raw.get("operator")
    conversion_type = None
    if isinstance(operator, dict):
        if "conversion" not in operator:
            raise DeclarationLoadError(f"{where}.operator must be a string or a conversion object")
        conversion_type = parse_cpp_type(operator["conversion"], f"{where}.operator.conversion")
        operator = "conversion"
    elif operator is not None and not isinstance(operator, str):
        raise DeclarationLoadError(f"{where}.operator must be a string")
    cast = None
    raw_cast = raw.get("cast")
    if raw_cast is not None:
        if not isinstance(raw_cast, dict):
            raise DeclarationLoadError(f"{where}.cast must be an object")
        cast = CastInfo(
            kind=_enum_value(CastKind, raw_cast.get("kind"), f"{where}.cast"),
            is_unsafe=_opt_bool(raw_cast, "is_unsafe", False),
            is_direct=_opt_bool(raw_cast, "is_direct", False),
        )
    raw_args = raw.get("arguments", [])
    if not isinstance(raw_args, list):
        raise DeclarationLoadError(f"{where}.arguments must be a list")
    return ParsedMethod(
        name=_req_str(raw, "name", where),
        c_name=_req_str(raw, "c_name", where),
        include_file=_req_str(raw, "include_file", where),
        arguments=tuple(_parse_argument(a, f"{where}.arguments[{i}]") for i, a in enumerate(raw_args)),
        return_type=_parse_boundary_type(raw.get("return_type", "void"), f"{where}.return_type", is_return=True),
        class_membership=membership,
        operator=operator,
        conversion_type=conversion_type,
        is_constructor=_opt_bool(raw, "is_constructor", False),
        is_destructor=_opt_bool(raw, "is_destructor", False),
        allocation_place=_enum_value(AllocationPlace, raw.get("allocation_place", "not_applicable"), where),
        cast=cast,
        doc=_opt_str(raw, "doc", where),
        signature=_opt_str(raw, "signature", where) or "",
    )


def _parse_type_decl(raw: Any, where: str) -> ParsedType:
    if not isinstance(raw, dict):
        raise DeclarationLoadError(f"{where} must be an object")
    kind = _enum_value(TypeKind, raw.get("kind"), where)
    args = raw.get("template_arguments")
    byte_size = raw.get("byte_size")
    if byte_size is not None and (not isinstance(byte_size, int) or byte_size < 0):
        raise DeclarationLoadError(f"{where}.byte_size must be a non-negative integer")
    values: list[EnumValue] = []
    raw_values = raw.get("values", [])
    if not isinstance(raw_values, list):
        raise DeclarationLoadError(f"{where}.values must be a list")
    for i, v in enumerate(raw_values):
        vw = f"{where}.values[{i}]"
        if not isinstance(v, dict) or not isinstance(v.get("value"), int):
            raise DeclarationLoadError(f"{vw} must be an object with an integer value")
        values.append(EnumValue(name=_req_str(v, "name", vw), value=v["value"], doc=_opt_str(v, "doc", vw)))
    if kind is TypeKind.ENUM and not values:
        raise DeclarationLoadError(f"{where}: enum has no values")
    if kind is TypeKind.TEMPLATE_INSTANTIATION and not args:
        raise DeclarationLoadError(f"{where}: template instantiation has no template arguments")
    return ParsedType(
        name=_req_str(raw, "name", where),
        kind=kind,
        include_file=_req_str(raw, "include_file", where),
        template_arguments=None if args is None else _parse_type_list(args, f"{where}.template_arguments"),
        byte_size=byte_size,
        has_public_destructor=_opt_bool(raw, "has_public_destructor", True),
        is_copyable=_opt_bool(raw, "is_copyable", True),
        is_polymorphic=_opt_bool(raw, "is_polymorphic", False),
        values=tuple(values),
        doc=_opt_str(raw, "doc", where),
    )
