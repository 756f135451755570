"""
Data model for the bundler pipeline.

Nodes and expressions are frozen once built; a new run builds a new graph.
"""
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class RequireKind(str, Enum):
    """Whether a require argument is known at bundle time."""
    LITERAL = "Literal"
    DYNAMIC = "Dynamic"


class DiagnosticKind(str, Enum):
    """Categorizes non-fatal findings reported alongside a bundle."""
    DYNAMIC_REQUIRE = "DynamicRequireWarning"
    CYCLE = "CycleWarning"
    MISSING_MODULE = "MissingModuleWarning"


class RequireExpression(BaseModel):
    """One `require(...)` call site."""
    model_config = ConfigDict(frozen=True)

    kind: RequireKind
    value: Optional[str] = None
    line: int
    column: int

    @property
    def is_literal(self) -> bool:
        return self.kind == RequireKind.LITERAL

    def __str__(self):
        if self.is_literal:
            return f'require("{self.value}") at {self.line}:{self.column}'
        return f"require(<dynamic>) at {self.line}:{self.column}"


class ModuleNode(BaseModel):
    """A parsed module and the requires found in it."""
    model_config = ConfigDict(frozen=True)

    id: str
    path: Path
    source: str
    requires: Tuple[RequireExpression, ...] = ()
    is_entry: bool = False
    # Path below the search root it was found in, '/' separated
    relative_path: Optional[str] = None

    @property
    def required_ids(self) -> Tuple[str, ...]:
        """Literal require targets in source order, duplicates included."""
        return tuple(r.value for r in self.requires if r.is_literal)

    @property
    def dynamic_requires(self) -> Tuple[RequireExpression, ...]:
        return tuple(r for r in self.requires if not r.is_literal)


class Diagnostic(BaseModel):
    """A warning collected while bundling."""
    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind
    module_id: str
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    @property
    def location(self) -> str:
        if self.line is None:
            return "?"
        return f"{self.line}:{self.column}"

    def __str__(self):
        return f"{self.kind.value}: {self.message} ('{self.module_id}' at {self.location})"


class WrappedModule(BaseModel):
    """A module's source wrapped for registration in the bundle."""
    model_config = ConfigDict(frozen=True)

    module_id: str
    key: str
    path: str
    text: str
    source_offset: int  # lines in `text` before the first source line
    line_count: int


class LineMapping(BaseModel):
    """Where a module's source lines sit inside the bundle."""
    model_config = ConfigDict(frozen=True)

    module_id: str
    path: str
    bundle_start: int  # bundle line holding source line 1
    line_count: int

    def contains(self, bundle_line: int) -> bool:
        return self.bundle_start <= bundle_line < self.bundle_start + self.line_count


class SourceLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    module_id: str
    path: str
    line: int

    def __str__(self):
        return f"{self.path}:{self.line} (module '{self.module_id}')"


class Bundle(BaseModel):
    """The assembled output of one bundling run."""
    text: str
    entry_id: str
    modules: List[str]
    line_map: List[LineMapping] = []
    diagnostics: List[Diagnostic] = []

    def locate(self, bundle_line: int) -> Optional[SourceLocation]:
        """Map a line of the bundle back to the original file and line."""
        for mapping in self.line_map:
            if mapping.contains(bundle_line):
                return SourceLocation(
                    module_id=mapping.module_id,
                    path=mapping.path,
                    line=bundle_line - mapping.bundle_start + 1,
                )
        return None

    def warnings(self, kind: Optional[DiagnosticKind] = None) -> List[Diagnostic]:
        if kind is None:
            return list(self.diagnostics)
        return [d for d in self.diagnostics if d.kind == kind]
