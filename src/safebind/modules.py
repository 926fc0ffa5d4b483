"""Assembly of projected types and functions into a module tree."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from .context import ProjectionContext
from .decls import ClassBase, ParsedMethod
from .errors import SafeBindError, UnplacedEntityError
from .methods import FREE_SCOPE, CapabilityImpl, MethodScope, TargetMethod, free_function_name
from .overloads import OverloadTrait, process_sibling_functions
from .registry import TargetTypeInfo, TypeWrapperKind
from .target import CommonType, TargetName

logger = logging.getLogger(__name__)

OVERLOADING_MODULE = "overloading"


class DeclarationKind(enum.Enum):
    WRAPPER = "wrapper"
    OVERLOAD_TRAIT = "overload_trait"


@dataclass(frozen=True)
class TypeDeclaration:
    name: TargetName
    kind: DeclarationKind
    info: TargetTypeInfo | None = None
    methods: tuple[TargetMethod, ...] = ()
    trait_impls: tuple[CapabilityImpl, ...] = ()
    overload_trait: OverloadTrait | None = None
    doc: str | None = None


@dataclass
class Module:
    name: TargetName
    doc: str | None = None
    types: list[TypeDeclaration] = field(default_factory=list)
    functions: list[TargetMethod] = field(default_factory=list)
    trait_impls: list[CapabilityImpl] = field(default_factory=list)
    submodules: list["Module"] = field(default_factory=list)

    @property
    def last_name(self) -> str:
        return self.name.last_name

    def is_empty(self) -> bool:
        return not self.types and not self.functions and not self.submodules

    def walk(self):
        yield self
        for sub in self.submodules:
            yield from sub.walk()

    def native_symbols(self) -> set[str]:
        """Native symbols called by anything placed in this module tree."""
        methods: list[TargetMethod] = []
        impls: list[CapabilityImpl] = []
        result: set[str] = set()
        for module in self.walk():
            methods.extend(module.functions)
            impls.extend(module.trait_impls)
            for d in module.types:
                methods.extend(d.methods)
                impls.extend(d.trait_impls)
                if d.overload_trait is not None:
                    result.update(v.source.c_name for v in d.overload_trait.impls)
        for impl in impls:
            methods.extend(impl.methods)
            if impl.deleter_name is not None:
                result.add(impl.deleter_name)
        result.update(m.variant.source.c_name for m in methods if m.variant is not None)
        return result


class ModuleAssembler:
    """Distributes projected types and free functions over modules.

    Top-level modules come from declaring units; deeper ones from namespaces
    and nested types. Every accepted method and every registered type must
    end up in exactly one module.
    """

    def __init__(self, ctx: ProjectionContext) -> None:
        self.ctx = ctx
        self._free_names: dict[ParsedMethod, TargetName] = {}

    def _check_name(self, module: TargetName, name: TargetName, submodules: set[str]) -> bool:
        if not module.includes(name):
            return False
        if module.includes_directly(name):
            return True
        submodules.add(name.parts[len(module.parts)])
        return False

    def _module_doc(self, module: TargetName) -> tuple[str | None, str | None]:
        if len(module.parts) != 2:
            return None, None
        units = sorted(u for u, n in self.ctx.names.top_modules.items() if n == module)
        if not units:
            return None, None
        return units[0], f"Entities from `{units[0]}` C++ header"

    def generate_type(
        self, info: TargetTypeInfo, methods: list[ParsedMethod]
    ) -> tuple[TypeDeclaration, list[OverloadTrait], list[ParsedMethod]]:
        if info.kind is TypeWrapperKind.ENUM:
            decl = TypeDeclaration(name=info.target_name, kind=DeclarationKind.WRAPPER, info=info, doc=info.doc)
            return decl, [], methods
        class_type = ClassBase(info.cpp_name, info.cpp_template_arguments)
        own: list[ParsedMethod] = []
        rest: list[ParsedMethod] = []
        for m in methods:
            if m.class_membership is not None and m.class_membership.class_type == class_type:
                own.append(m)
            else:
                rest.append(m)
        scope = MethodScope.impl(CommonType(base=info.target_name))
        result = process_sibling_functions(self.ctx, own, scope)
        decl = TypeDeclaration(
            name=info.target_name,
            kind=DeclarationKind.WRAPPER,
            info=info,
            methods=tuple(result.methods),
            trait_impls=tuple(result.trait_impls),
            doc=info.doc,
        )
        return decl, result.overload_traits, rest

    def generate_module(
        self, methods: list[ParsedMethod], module_name: TargetName
    ) -> tuple[Module | None, list[ParsedMethod]]:
        header, doc = self._module_doc(module_name)
        module = Module(name=module_name, doc=doc)
        submodules: set[str] = set()
        overload_traits: list[OverloadTrait] = []

        for info in self.ctx.registry:
            if not self._check_name(module_name, info.target_name, submodules):
                continue
            decl, traits, methods = self.generate_type(info, methods)
            if header is not None and info.cpp_name == header and info.doc:
                module.doc = info.doc.split("\n", 1)[0]
            module.types.append(decl)
            overload_traits.extend(traits)

        free: list[ParsedMethod] = []
        rest: list[ParsedMethod] = []
        for m in methods:
            name = self._free_names.get(m)
            if name is not None and self._check_name(module_name, name, submodules):
                free.append(m)
            else:
                rest.append(m)
        methods = rest

        for sub in sorted(submodules):
            submodule, methods = self.generate_module(methods, module_name.child(sub))
            if submodule is not None:
                module.submodules.append(submodule)

        result = process_sibling_functions(self.ctx, free, FREE_SCOPE)
        module.functions = result.methods
        module.trait_impls = result.trait_impls
        overload_traits.extend(result.overload_traits)
        if overload_traits:
            overloading = module_name.child(OVERLOADING_MODULE)
            module.submodules.append(
                Module(
                    name=overloading,
                    doc="Types for emulating overloading for overloaded functions in this module",
                    types=sorted(
                        (
                            TypeDeclaration(
                                name=overloading.child(t.name),
                                kind=DeclarationKind.OVERLOAD_TRAIT,
                                overload_trait=t,
                            )
                            for t in overload_traits
                        ),
                        key=lambda d: d.name.parts,
                    ),
                )
            )
        module.types.sort(key=lambda d: d.name.parts)
        module.submodules.sort(key=lambda s: s.name.parts)
        if module.is_empty():
            self.ctx.diagnostics.skip(module_name.full_name(), "skipping empty module")
            return None, methods
        return module, methods

    def run(self, methods: list[ParsedMethod]) -> list[Module]:
        ctx = self.ctx
        module_names = {info.target_name.parts[1] for info in ctx.registry}
        placeable: list[ParsedMethod] = []
        for m in methods:
            if m.class_membership is None:
                try:
                    name = free_function_name(ctx, m)
                except SafeBindError as e:
                    ctx.diagnostics.skip(m.short_text, f"cannot name free function: {e}")
                    continue
                self._free_names[m] = name
                module_names.add(name.parts[1])
            placeable.append(m)

        modules: list[Module] = []
        ordered = sorted(module_names)
        for i, name in enumerate(ordered):
            logger.info("(%d/%d) Generating module: %s", i + 1, len(ordered), name)
            module, placeable = self.generate_module(placeable, TargetName((ctx.config.crate_name, name)))
            if module is not None:
                modules.append(module)

        if placeable:
            text = "\n".join(f"  {m.short_text}" for m in placeable)
            raise UnplacedEntityError(f"methods were not placed in any module:\n{text}")
        declared = {
            d.info.key for module in modules for sub in module.walk() for d in sub.types if d.info is not None
        }
        missing = [info for info in ctx.registry if info.key not in declared]
        if missing:
            text = "\n".join(f"  {info.cpp_text()}" for info in missing)
            raise UnplacedEntityError(f"types were not declared in any module:\n{text}")
        return modules
