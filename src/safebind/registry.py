"""Registry of native types that have a binding-language counterpart."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator

from .decls import AllocationPlace, ClassBase, CppType
from .errors import ReservedIdentifierCollisionError, StructuralInvariantError, UnresolvedReferenceError
from .names import is_escaped_identifier
from .target import TargetName

TypeKey = tuple[str, "tuple[CppType, ...] | None"]


class TypeWrapperKind(enum.Enum):
    # Opaque fixed-size buffer (stack) or heap handle.
    STRUCT = "struct"
    ENUM = "enum"


@dataclass(frozen=True)
class ProjectedEnumValue:
    name: str
    value: int
    # Source names folded into this variant; the first one is canonical.
    source_names: tuple[str, ...] = ()
    doc: str | None = None
    is_dummy: bool = False


@dataclass(frozen=True)
class TargetTypeInfo:
    cpp_name: str
    cpp_template_arguments: tuple[CppType, ...] | None
    target_name: TargetName
    kind: TypeWrapperKind
    include_file: str
    allocation_place: AllocationPlace | None = None
    size_const_name: str | None = None
    is_deletable: bool = False
    values: tuple[ProjectedEnumValue, ...] = ()
    is_flaggable: bool = False
    doc: str | None = None

    @property
    def key(self) -> TypeKey:
        return self.cpp_name, self.cpp_template_arguments

    def cpp_text(self) -> str:
        return ClassBase(self.cpp_name, self.cpp_template_arguments).to_cpp_pseudo_code()

    def check(self) -> None:
        if self.kind is TypeWrapperKind.ENUM:
            if len(self.values) < 2:
                raise StructuralInvariantError(f"enum {self.cpp_name} has fewer than two variants")
            return
        if self.allocation_place is AllocationPlace.STACK and not self.size_const_name:
            raise StructuralInvariantError(f"stack allocated type {self.cpp_text()} has no size constant")
        if self.allocation_place is not AllocationPlace.STACK and self.size_const_name:
            raise StructuralInvariantError(f"heap allocated type {self.cpp_text()} has a size constant")


class TypeRegistry:
    """Ordered registry of projected types, frozen once the type passes are done.

    Lookups fall back to the registries of dependency libraries, in order.
    """

    def __init__(self, *, crate_name: str, dependencies: tuple["TypeRegistry", ...] = ()) -> None:
        self.crate_name = crate_name
        self.dependencies = tuple(dependencies)
        self._entries: dict[TypeKey, TargetTypeInfo] = {}
        self._by_target: dict[TargetName, TargetTypeInfo] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def add(self, info: TargetTypeInfo) -> None:
        if self._frozen:
            raise StructuralInvariantError(f"registry of {self.crate_name} is frozen; cannot add {info.cpp_text()}")
        info.check()
        if info.key in self._entries:
            raise StructuralInvariantError(f"type registered twice: {info.cpp_text()}")
        taken = self._by_target.get(info.target_name)
        if taken is not None:
            msg = f"{info.cpp_text()} and {taken.cpp_text()} both map to {info.target_name}"
            if any(is_escaped_identifier(p) for p in info.target_name.parts):
                raise ReservedIdentifierCollisionError(msg)
            raise StructuralInvariantError(msg)
        self._entries[info.key] = info
        self._by_target[info.target_name] = info

    def get(self, name: str, template_arguments: tuple[CppType, ...] | None = None) -> TargetTypeInfo | None:
        return self._entries.get((name, template_arguments))

    def find(self, name: str, template_arguments: tuple[CppType, ...] | None = None) -> TargetTypeInfo | None:
        info = self.get(name, template_arguments)
        if info is not None:
            return info
        for dep in self.dependencies:
            info = dep.find(name, template_arguments)
            if info is not None:
                return info
        return None

    def lookup(self, name: str, template_arguments: tuple[CppType, ...] | None = None) -> TargetTypeInfo:
        info = self.find(name, template_arguments)
        if info is None:
            text = ClassBase(name, template_arguments).to_cpp_pseudo_code()
            raise UnresolvedReferenceError(
                f"type has no binding equivalent: {text}", key=(name, template_arguments)
            )
        return info

    def find_by_target_name(self, name: TargetName) -> TargetTypeInfo | None:
        info = self._by_target.get(name)
        if info is not None:
            return info
        for dep in self.dependencies:
            info = dep.find_by_target_name(name)
            if info is not None:
                return info
        return None

    def __iter__(self) -> Iterator[TargetTypeInfo]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
