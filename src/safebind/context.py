"""State shared by the phases of one projection run."""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import ProjectorConfig
from .decls import AllocationPlace, BoundaryType, DeclarationSet
from .diagnostics import DiagnosticLog
from .names import NameResolver
from .registry import TypeRegistry
from .target import CompleteType
from .typemap import complete_type


@dataclass
class ProjectionContext:
    config: ProjectorConfig
    declarations: DeclarationSet
    names: NameResolver
    registry: TypeRegistry
    diagnostics: DiagnosticLog = field(default_factory=DiagnosticLog)

    @classmethod
    def create(
        cls,
        declarations: DeclarationSet,
        config: ProjectorConfig,
        dependencies: tuple[TypeRegistry, ...] = (),
    ) -> "ProjectionContext":
        names = NameResolver.for_units(
            crate_name=config.crate_name,
            units=declarations.all_units(),
            prefixes=config.prefixes_to_remove,
            filtered_namespaces=config.filtered_namespaces,
        )
        return cls(
            config=config,
            declarations=declarations,
            names=names,
            registry=TypeRegistry(crate_name=config.crate_name, dependencies=dependencies),
        )

    def complete_type(
        self,
        boundary: BoundaryType,
        *,
        is_receiver: bool = False,
        is_return: bool = False,
        is_template_argument: bool = False,
        allocation_place: AllocationPlace = AllocationPlace.NOT_APPLICABLE,
    ) -> CompleteType:
        return complete_type(
            self.registry,
            boundary,
            is_receiver=is_receiver,
            is_return=is_return,
            is_template_argument=is_template_argument,
            allocation_place=allocation_place,
            flags_wrapper=self.config.flags_wrapper_name,
        )
