"""Builders for declarations in their JSON form."""

from __future__ import annotations


def class_type(name: str, indirection: str = "none", *, is_const: bool = False, args=None) -> dict:
    base = {"kind": "class", "name": name}
    if args is not None:
        base["template_arguments"] = list(args)
    return {"base": base, "indirection": indirection, "is_const": is_const}


def enum_type(name: str, indirection: str = "none") -> dict:
    return {"base": {"kind": "enum", "name": name}, "indirection": indirection}


def stack_class(name: str, include_file: str, **extra) -> dict:
    return {"name": name, "kind": "class", "include_file": include_file, "byte_size": 8, **extra}


def heap_class(name: str, include_file: str, **extra) -> dict:
    return {"name": name, "kind": "class", "include_file": include_file, "is_polymorphic": True, **extra}


def this_arg(class_name: str, *, is_const: bool = False) -> dict:
    return {"name": "this", "role": "receiver", "type": class_type(class_name, "ptr", is_const=is_const)}


def arg(name: str, type_, index: int) -> dict:
    return {"name": name, "role": "positional", "index": index, "type": type_}


def method(class_name: str, name: str, include_file: str, *args, c_name=None, **extra) -> dict:
    is_const = extra.pop("is_const", False)
    return {
        "name": name,
        "c_name": c_name or f"{include_file}_{name}",
        "include_file": include_file,
        "class": {"type": {"name": class_name}, "is_const": is_const},
        "arguments": list(args),
        **extra,
    }


def function(name: str, include_file: str, *args, c_name=None, **extra) -> dict:
    return {
        "name": name,
        "c_name": c_name or f"{include_file}_{name}",
        "include_file": include_file,
        "arguments": list(args),
        **extra,
    }
