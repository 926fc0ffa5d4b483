"""Binding-language type model."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Union

from .decls import CppType, IndirectionChange
from .errors import StructuralInvariantError
from .words import snake_case


@dataclass(frozen=True)
class TargetName:
    parts: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.parts or any(not p for p in self.parts):
            raise ValueError(f"invalid target name: {self.parts!r}")

    @classmethod
    def of(cls, full_name: str) -> "TargetName":
        return cls(tuple(full_name.split("::")))

    @property
    def last_name(self) -> str:
        return self.parts[-1]

    def full_name(self, current: "TargetName | None" = None) -> str:
        """Path of the name, relative to `current` when it is an enclosing module."""
        if current is not None and self.parts[: len(current.parts)] == current.parts:
            rest = self.parts[len(current.parts) :]
            if rest:
                return "::".join(rest)
        return "::".join(self.parts)

    def includes(self, other: "TargetName") -> bool:
        n = len(self.parts)
        return len(other.parts) > n and other.parts[:n] == self.parts

    def includes_directly(self, other: "TargetName") -> bool:
        return self.includes(other) and len(other.parts) == len(self.parts) + 1

    def child(self, name: str) -> "TargetName":
        return TargetName((*self.parts, name))

    def __str__(self) -> str:
        return self.full_name()


class TargetIndirection(enum.Enum):
    NONE = "none"
    PTR = "ptr"
    PTR_PTR = "ptr_ptr"
    REF = "ref"
    PTR_REF = "ptr_ref"


_CAPTION_SUFFIXES = {
    TargetIndirection.REF: "_ref",
    TargetIndirection.PTR: "_ptr",
    TargetIndirection.PTR_PTR: "_ptr_ptr",
    TargetIndirection.PTR_REF: "_ptr_ref",
}


@dataclass(frozen=True)
class UnitType:
    def caption(self, context: TargetName) -> str:
        return "empty"

    def to_text(self) -> str:
        return "()"

    def is_ref(self) -> bool:
        return False

    def carries_ref(self) -> bool:
        return False

    def lifetime_of(self) -> str | None:
        return None

    def with_lifetime(self, lifetime: str) -> "UnitType":
        return self

    def is_unsafe_argument(self) -> bool:
        return False


@dataclass(frozen=True)
class CommonType:
    base: TargetName
    generic_arguments: tuple["TargetType", ...] | None = None
    is_const: bool = False
    is_const2: bool = False
    indirection: TargetIndirection = TargetIndirection.NONE
    # Validity scope of a reference (REF and PTR_REF only).
    lifetime: str | None = None

    def caption(self, context: TargetName) -> str:
        if len(self.base.parts) == 1:
            name = snake_case(self.base.parts[0])
        else:
            remaining = list(context.parts)
            good: list[str] = []
            for part in self.base.parts:
                if remaining and part == remaining[0]:
                    remaining.pop(0)
                    continue
                remaining = []
                snake = snake_case(part)
                if not good or good[-1] != snake:
                    good.append(snake)
            name = "_".join(good) if good else self.base.last_name
        if self.generic_arguments is not None:
            name = "_".join([name, *(a.caption(context) for a in self.generic_arguments)])
        suffix = _CAPTION_SUFFIXES.get(self.indirection)
        if suffix is not None:
            name = f"{name}{'' if self.is_const else '_mut'}{suffix}"
        return name

    def to_text(self) -> str:
        text = self.base.full_name()
        if self.generic_arguments is not None:
            text += "<" + ", ".join(a.to_text() for a in self.generic_arguments) + ">"
        lt = f"'{self.lifetime} " if self.lifetime else ""
        mut = "" if self.is_const else "mut "
        ind = self.indirection
        if ind is TargetIndirection.REF:
            return f"&{lt}{mut}{text}"
        if ind is TargetIndirection.PTR:
            return f"*{'const' if self.is_const else 'mut'} {text}"
        if ind is TargetIndirection.PTR_PTR:
            inner = f"*{'const' if self.is_const else 'mut'} {text}"
            return f"*{'const' if self.is_const2 else 'mut'} {inner}"
        if ind is TargetIndirection.PTR_REF:
            inner = f"*{'const' if self.is_const else 'mut'} {text}"
            return f"&{lt}{'' if self.is_const2 else 'mut '}{inner}"
        return text

    def is_ref(self) -> bool:
        return self.indirection in (TargetIndirection.REF, TargetIndirection.PTR_REF)

    def carries_ref(self) -> bool:
        return self.is_ref() or any(
            isinstance(a, CommonType) and a.carries_ref() for a in self.generic_arguments or ()
        )

    def lifetime_of(self) -> str | None:
        if self.is_ref():
            return self.lifetime
        for a in self.generic_arguments or ():
            lt = a.lifetime_of()
            if lt is not None:
                return lt
        return None

    def with_lifetime(self, lifetime: str) -> "CommonType":
        if self.is_ref():
            return replace(self, lifetime=lifetime)
        if self.generic_arguments:
            return replace(self, generic_arguments=tuple(a.with_lifetime(lifetime) for a in self.generic_arguments))
        return self

    def is_unsafe_argument(self) -> bool:
        if self.indirection in (TargetIndirection.PTR, TargetIndirection.PTR_PTR, TargetIndirection.PTR_REF):
            return True
        return any(a.is_unsafe_argument() for a in self.generic_arguments or ())


@dataclass(frozen=True)
class FunctionPointerType:
    return_type: "TargetType"
    arguments: tuple["TargetType", ...]

    def caption(self, context: TargetName) -> str:
        return "fn"

    def to_text(self) -> str:
        args = ", ".join(a.to_text() for a in self.arguments)
        return f'extern "C" fn({args}) -> {self.return_type.to_text()}'

    def is_ref(self) -> bool:
        return False

    def carries_ref(self) -> bool:
        return False

    def lifetime_of(self) -> str | None:
        return None

    def with_lifetime(self, lifetime: str) -> "FunctionPointerType":
        return self

    def is_unsafe_argument(self) -> bool:
        return True


TargetType = Union[UnitType, CommonType, FunctionPointerType]


def common(full_name: str, *, generic_arguments: tuple[TargetType, ...] | None = None) -> CommonType:
    return CommonType(base=TargetName.of(full_name), generic_arguments=generic_arguments)


# Capability and helper types of the binding language runtime.
CPP_BOX = TargetName.of("cpp_utils::CppBox")
CPP_DELETABLE = TargetName.of("cpp_utils::CppDeletable")
STATIC_CAST = TargetName.of("cpp_utils::StaticCast")
UNSAFE_STATIC_CAST = TargetName.of("cpp_utils::UnsafeStaticCast")
DYNAMIC_CAST = TargetName.of("cpp_utils::DynamicCast")
DROP = TargetName.of("Drop")
DEREF = TargetName.of("std::ops::Deref")
DEREF_MUT = TargetName.of("std::ops::DerefMut")
OPTION = TargetName.of("std::option::Option")


class ApiConversion(enum.Enum):
    NONE = "none"
    REF_TO_PTR = "ref_to_ptr"
    VALUE_TO_PTR = "value_to_ptr"
    OWNING_HANDLE_TO_PTR = "owning_handle_to_ptr"
    FLAGS_TO_UINT = "flags_to_uint"
    OPTION_REF_TO_PTR = "option_ref_to_ptr"


@dataclass(frozen=True)
class CompleteType:
    cpp_type: CppType
    cpp_ffi_type: CppType
    cpp_to_ffi_conversion: IndirectionChange
    call_type: TargetType
    api_type: TargetType
    api_conversion: ApiConversion

    def ptr_to_ref(self, is_const: bool) -> "CompleteType":
        api = self.api_type
        if not isinstance(api, CommonType) or api.indirection is not TargetIndirection.PTR:
            raise StructuralInvariantError(f"not a pointer type: {api.to_text()}")
        if self.api_conversion is not ApiConversion.NONE:
            raise StructuralInvariantError("api conversion is already set")
        return replace(
            self,
            api_type=replace(api, indirection=TargetIndirection.REF, is_const=is_const),
            api_conversion=ApiConversion.REF_TO_PTR,
        )

    def ptr_to_value(self) -> "CompleteType":
        api = self.api_type
        if not isinstance(api, CommonType) or api.indirection is not TargetIndirection.PTR:
            raise StructuralInvariantError(f"not a pointer type: {api.to_text()}")
        if self.api_conversion is not ApiConversion.NONE:
            raise StructuralInvariantError("api conversion is already set")
        return replace(
            self,
            api_type=replace(api, indirection=TargetIndirection.NONE, is_const=True),
            api_conversion=ApiConversion.VALUE_TO_PTR,
        )
