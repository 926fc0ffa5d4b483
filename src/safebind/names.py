"""Name resolution from native declarations to binding-language paths."""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import UnresolvedReferenceError
from .target import TargetName
from .words import Case, convert_case, split_words, to_upper_case_words

RESERVED_IDENTIFIERS = frozenset(
    {
        "abstract", "alignof", "as", "become", "box", "break", "const", "continue", "crate", "do",
        "else", "enum", "extern", "false", "final", "fn", "for", "if", "impl", "in", "let", "loop",
        "macro", "match", "mod", "move", "mut", "offsetof", "override", "priv", "proc", "pub",
        "pure", "ref", "return", "Self", "self", "sizeof", "static", "struct", "super", "trait",
        "true", "type", "typeof", "unsafe", "unsized", "use", "virtual", "where", "while", "yield",
    }
)


def sanitize_identifier(name: str) -> str:
    if name in RESERVED_IDENTIFIERS:
        return f"{name}_"
    return name


def is_escaped_identifier(name: str) -> bool:
    return name.endswith("_") and name[:-1] in RESERVED_IDENTIFIERS


def remove_prefix_and_convert_case(s: str, case: Case, prefixes: tuple[str, ...] | list[str]) -> str:
    """Drop a library prefix word (`QDirIterator` -> `DirIterator`) and convert case.

    The prefix is only removed when something other than a number remains.
    """
    words = split_words(s)
    if len(words) > 1 and not words[1][0].isdigit() and words[0] in prefixes:
        words = words[1:]
    return convert_case(words, case)


def include_file_to_module_name(include_file: str, prefixes: tuple[str, ...] | list[str]) -> str:
    name = include_file.rsplit("/", 1)[-1]
    if "." in name:
        name = name[: name.index(".")]
    return remove_prefix_and_convert_case(name, Case.SNAKE, prefixes)


def operator_name(operator: str, conversion_caption: str | None = None) -> str:
    if operator == "conversion":
        if not conversion_caption:
            raise UnresolvedReferenceError("conversion operator without a target type")
        return f"as_{conversion_caption}"
    return f"op_{operator}"


def size_const_name(name: TargetName) -> str:
    return "_".join(to_upper_case_words(split_words(p)) for p in name.parts)


@dataclass
class NameResolver:
    crate_name: str
    prefixes: tuple[str, ...] = ()
    filtered_namespaces: tuple[str, ...] = ()
    # declaring unit -> top level module
    top_modules: dict[str, TargetName] = field(default_factory=dict)

    @classmethod
    def for_units(
        cls,
        *,
        crate_name: str,
        units: list[str],
        prefixes: tuple[str, ...] = (),
        filtered_namespaces: tuple[str, ...] = (),
    ) -> "NameResolver":
        top: dict[str, TargetName] = {}
        for unit in units:
            module = sanitize_identifier(include_file_to_module_name(unit, prefixes))
            if module:
                top[unit] = TargetName((crate_name, module))
        return cls(
            crate_name=crate_name,
            prefixes=tuple(prefixes),
            filtered_namespaces=tuple(filtered_namespaces),
            top_modules=top,
        )

    def top_module_name(self, unit: str) -> TargetName:
        name = self.top_modules.get(unit)
        if name is None:
            raise UnresolvedReferenceError(f"no top level module generated for header: {unit!r}")
        return name

    def convert(self, s: str, case: Case) -> str:
        return sanitize_identifier(remove_prefix_and_convert_case(s, case, self.prefixes))

    def resolve(
        self,
        cpp_name: str,
        unit: str,
        *,
        is_function: bool,
        operator: str | None = None,
        conversion_caption: str | None = None,
    ) -> TargetName:
        """Full binding path of a native entity declared in `unit`.

        `QStringList::Iterator` declared in `QString` becomes
        `<crate>::string::string_list::Iterator`.
        """
        parts = cpp_name.split("::")
        last = parts.pop()
        if operator is not None:
            last_part = operator_name(operator, conversion_caption)
        else:
            last_part = self.convert(last, Case.SNAKE if is_function else Case.CLASS)
        result = list(self.top_module_name(unit).parts)
        for part in parts:
            if part in self.filtered_namespaces:
                continue
            result.append(self.convert(part, Case.SNAKE))
        # Collapse `string_list::string_list` when the unit is named after its namespace.
        if len(result) > 2 and result[1] == result[2]:
            del result[2]
        result.append(last_part)
        return TargetName(tuple(result))
