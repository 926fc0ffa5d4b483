"""safebind: project parsed C++ declarations onto a safe binding-language API."""

from __future__ import annotations

from . import errors, exchange
from .config import ProjectorConfig, load_config
from .decls import DeclarationSet, load_declarations
from .projector import ProjectionOutput, project

__all__ = [
    "DeclarationSet",
    "ProjectionOutput",
    "ProjectorConfig",
    "errors",
    "exchange",
    "load_config",
    "load_declarations",
    "project",
]
