"""MessagePack exchange of finalized registries and projection output (v0)."""

from __future__ import annotations

import dataclasses
import enum
from typing import Any

import msgpack

from .decls import (
    AllocationPlace,
    BuiltInNumeric,
    ClassBase,
    CppType,
    EnumBase,
    FunctionPointerBase,
    ParsedMethod,
    PointerSizedInteger,
    SpecificNumeric,
    TemplateParameter,
    VoidBase,
    parse_cpp_type,
)
from .diagnostics import DiagnosticLog
from .errors import ExchangeDecodeError, SafeBindError
from .registry import ProjectedEnumValue, TargetTypeInfo, TypeRegistry, TypeWrapperKind
from .target import TargetName

EXCHANGE_VERSION = 0


def cpp_type_to_obj(t: CppType) -> dict[str, Any]:
    """Inverse of `parse_cpp_type` for the object form."""
    base = t.base
    if isinstance(base, VoidBase):
        raw: Any = {"kind": "void"}
    elif isinstance(base, BuiltInNumeric):
        raw = {"kind": "builtin", "name": base.kind.value}
    elif isinstance(base, SpecificNumeric):
        raw = {"kind": "specific_numeric", "name": base.name, "bits": base.bits, "number_kind": base.kind.value}
    elif isinstance(base, PointerSizedInteger):
        raw = {"kind": "pointer_sized_integer", "name": base.name, "is_signed": base.is_signed}
    elif isinstance(base, EnumBase):
        raw = {"kind": "enum", "name": base.name}
    elif isinstance(base, ClassBase):
        raw = {"kind": "class", "name": base.name}
        if base.template_arguments is not None:
            raw["template_arguments"] = [cpp_type_to_obj(a) for a in base.template_arguments]
    elif isinstance(base, FunctionPointerBase):
        raw = {
            "kind": "function_pointer",
            "return_type": cpp_type_to_obj(base.return_type),
            "arguments": [cpp_type_to_obj(a) for a in base.arguments],
            "allows_variadic_arguments": base.allows_variadic_arguments,
        }
    elif isinstance(base, TemplateParameter):
        raw = {"kind": "template_parameter", "nested_level": base.nested_level, "index": base.index}
        if base.name is not None:
            raw["name"] = base.name
    else:
        raise TypeError(f"unknown type base: {base!r}")
    return {
        "base": raw,
        "indirection": t.indirection.value,
        "is_const": t.is_const,
        "is_const2": t.is_const2,
    }


def _info_to_obj(info: TargetTypeInfo) -> dict[str, Any]:
    obj: dict[str, Any] = {
        "cpp_name": info.cpp_name,
        "target_name": list(info.target_name.parts),
        "kind": info.kind.value,
        "include_file": info.include_file,
        "is_deletable": info.is_deletable,
        "is_flaggable": info.is_flaggable,
    }
    if info.cpp_template_arguments is not None:
        obj["template_arguments"] = [cpp_type_to_obj(a) for a in info.cpp_template_arguments]
    if info.allocation_place is not None:
        obj["allocation_place"] = info.allocation_place.value
    if info.size_const_name is not None:
        obj["size_const_name"] = info.size_const_name
    if info.values:
        obj["values"] = [
            {"name": v.name, "value": v.value, "source_names": list(v.source_names), "doc": v.doc, "is_dummy": v.is_dummy}
            for v in info.values
        ]
    if info.doc is not None:
        obj["doc"] = info.doc
    return obj


def _info_from_obj(obj: Any, where: str) -> TargetTypeInfo:
    if not isinstance(obj, dict):
        raise ExchangeDecodeError(f"{where} must be a map")
    cpp_name = obj.get("cpp_name")
    target_name = obj.get("target_name")
    include_file = obj.get("include_file")
    if not isinstance(cpp_name, str) or not cpp_name:
        raise ExchangeDecodeError(f"{where}.cpp_name must be a non-empty string")
    if not isinstance(target_name, list) or not all(isinstance(p, str) and p for p in target_name) or not target_name:
        raise ExchangeDecodeError(f"{where}.target_name must be a list of non-empty strings")
    if not isinstance(include_file, str):
        raise ExchangeDecodeError(f"{where}.include_file must be a string")

    raw_args = obj.get("template_arguments")
    args = None
    if raw_args is not None:
        if not isinstance(raw_args, list):
            raise ExchangeDecodeError(f"{where}.template_arguments must be a list")
        try:
            args = tuple(parse_cpp_type(a, f"{where}.template_arguments[{i}]") for i, a in enumerate(raw_args))
        except SafeBindError as e:
            raise ExchangeDecodeError(str(e)) from e

    values: list[ProjectedEnumValue] = []
    for i, v in enumerate(obj.get("values") or []):
        if not isinstance(v, dict) or not isinstance(v.get("name"), str) or not isinstance(v.get("value"), int):
            raise ExchangeDecodeError(f"{where}.values[{i}] must be a map with a name and an integer value")
        doc = v.get("doc")
        values.append(
            ProjectedEnumValue(
                name=v["name"],
                value=v["value"],
                source_names=tuple(str(s) for s in v.get("source_names") or ()),
                doc=doc if isinstance(doc, str) else None,
                is_dummy=bool(v.get("is_dummy", False)),
            )
        )

    try:
        kind = TypeWrapperKind(obj.get("kind"))
        place = obj.get("allocation_place")
        allocation_place = None if place is None else AllocationPlace(place)
    except ValueError as e:
        raise ExchangeDecodeError(f"{where}: {e}") from e
    size_const = obj.get("size_const_name")
    doc = obj.get("doc")
    return TargetTypeInfo(
        cpp_name=cpp_name,
        cpp_template_arguments=args,
        target_name=TargetName(tuple(target_name)),
        kind=kind,
        include_file=include_file,
        allocation_place=allocation_place,
        size_const_name=size_const if isinstance(size_const, str) else None,
        is_deletable=bool(obj.get("is_deletable", False)),
        values=tuple(values),
        is_flaggable=bool(obj.get("is_flaggable", False)),
        doc=doc if isinstance(doc, str) else None,
    )


def encode_registry(registry: TypeRegistry) -> bytes:
    payload = {
        "exchange": EXCHANGE_VERSION,
        "kind": "registry",
        "crate_name": registry.crate_name,
        "types": [_info_to_obj(info) for info in registry],
    }
    return msgpack.packb(payload, use_bin_type=True)


def decode_registry(payload: bytes, dependencies: tuple[TypeRegistry, ...] = ()) -> TypeRegistry:
    """Rebuild a frozen registry, usable as a dependency of another run."""
    try:
        obj = msgpack.unpackb(payload, raw=False)
    except Exception as e:  # noqa: BLE001 - boundary decoding error
        raise ExchangeDecodeError(str(e)) from e

    if not isinstance(obj, dict) or obj.get("kind") != "registry":
        raise ExchangeDecodeError("invalid registry envelope")
    if obj.get("exchange") != EXCHANGE_VERSION:
        raise ExchangeDecodeError(f"unsupported exchange version: {obj.get('exchange')!r}")
    crate_name = obj.get("crate_name")
    types = obj.get("types")
    if not isinstance(crate_name, str) or not crate_name or not isinstance(types, list):
        raise ExchangeDecodeError("invalid registry envelope")

    registry = TypeRegistry(crate_name=crate_name, dependencies=dependencies)
    for i, raw in enumerate(types):
        info = _info_from_obj(raw, f"types[{i}]")
        try:
            registry.add(info)
        except SafeBindError as e:
            raise ExchangeDecodeError(f"types[{i}]: {e}") from e
    registry.freeze()
    return registry


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, TargetName):
        return value.full_name()
    if isinstance(value, CppType):
        return value.to_cpp_pseudo_code()
    if isinstance(value, ParsedMethod):
        # Source methods are referenced, not embedded.
        return {"c_name": value.c_name, "signature": value.short_text}
    if isinstance(value, TypeRegistry):
        return [_info_to_obj(info) for info in value]
    if isinstance(value, DiagnosticLog):
        return [_plain(d) for d in value.entries]
    if dataclasses.is_dataclass(value):
        obj = {"type": type(value).__name__}
        for f in dataclasses.fields(value):
            obj[f.name] = _plain(getattr(value, f.name))
        return obj
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    raise TypeError(f"cannot encode {type(value).__name__}")


def encode_output(output: Any) -> bytes:
    """Pack a `ProjectionOutput` for the renderer."""
    payload = {
        "exchange": EXCHANGE_VERSION,
        "kind": "output",
        "crate_name": output.crate_name,
        "modules": _plain(output.modules),
        "call_descriptors": _plain(output.call_descriptors),
        "registry": _plain(output.registry),
        "diagnostics": _plain(output.diagnostics),
    }
    return msgpack.packb(payload, use_bin_type=True)


def decode_output(payload: bytes) -> dict[str, Any]:
    try:
        obj = msgpack.unpackb(payload, raw=False)
    except Exception as e:  # noqa: BLE001 - boundary decoding error
        raise ExchangeDecodeError(str(e)) from e
    if not isinstance(obj, dict) or obj.get("kind") != "output":
        raise ExchangeDecodeError("invalid output envelope")
    if obj.get("exchange") != EXCHANGE_VERSION:
        raise ExchangeDecodeError(f"unsupported exchange version: {obj.get('exchange')!r}")
    return obj
