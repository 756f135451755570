"""
Dependency graph construction.

Starting from the entry file, every statically known require is resolved,
read and parsed exactly once. Modules are kept in first-discovery order
(breadth-first), which makes the emitted bundle deterministic.
"""
from collections import deque
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from .config import BundleOptions, DynamicRequirePolicy, MissingModulePolicy
from .console import debug_log
from .errors import DynamicRequireError, ParseError, ResolutionError, get_line_context
from .models import Diagnostic, DiagnosticKind, ModuleNode
from .parser import parse, strip_bom
from .resolver import ModuleResolver

_VISITING = 1
_DONE = 2


class DependencyGraph:
    """Modules keyed by id, in discovery order, plus the entry id."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        self.nodes: Dict[str, ModuleNode] = {}
        self.missing: List[str] = []

    def add(self, node: ModuleNode) -> None:
        self.nodes[node.id] = node

    @property
    def entry(self) -> ModuleNode:
        return self.nodes[self.entry_id]

    def __contains__(self, module_id):
        return module_id in self.nodes

    def __getitem__(self, module_id) -> ModuleNode:
        return self.nodes[module_id]

    def __iter__(self) -> Iterator[ModuleNode]:
        return iter(self.nodes.values())

    def __len__(self):
        return len(self.nodes)

    def dependencies(self, module_id: str) -> List[str]:
        """Bundled modules required by module_id, first occurrence order, no duplicates."""
        return [d for d in dict.fromkeys(self.nodes[module_id].required_ids) if d in self.nodes]

    def edges(self) -> Iterator[Tuple[str, str]]:
        for module_id in self.nodes:
            for dependency in self.dependencies(module_id):
                yield module_id, dependency

    def find_cycles(self) -> List[List[str]]:
        """
        Return each cycle closed by a back edge, as a path that starts and
        ends with the same module. A self-require yields [a, a].
        """
        cycles = []
        state = {}
        stack = []

        def visit(module_id):
            state[module_id] = _VISITING
            stack.append(module_id)
            for dependency in self.dependencies(module_id):
                if state.get(dependency) == _VISITING:
                    cycles.append(stack[stack.index(dependency):] + [dependency])
                elif dependency not in state:
                    visit(dependency)
            stack.pop()
            state[module_id] = _DONE

        for module_id in self.nodes:
            if module_id not in state:
                visit(module_id)
        return cycles


class GraphBuilder:
    """
    Builds a DependencyGraph and collects diagnostics along the way.

    The builder owns the graph until build() returns; callers should treat
    the result as read-only.
    """

    def __init__(self, options: Optional[BundleOptions] = None, resolver: Optional[ModuleResolver] = None):
        self.options = options or BundleOptions()
        self.resolver = resolver
        self.diagnostics: List[Diagnostic] = []
        self._parents: Dict[str, Optional[str]] = {}

    def make_resolver(self, entry_path: Path) -> ModuleResolver:
        """Search the entry's directory first, then the configured roots."""
        roots = [entry_path.parent] + list(self.options.search_roots)
        return ModuleResolver(roots, self.options.path_templates, self.options.module_separator)

    def chain(self, module_id: str) -> List[str]:
        """The require chain from the entry down to module_id."""
        chain = []
        current = module_id
        while current is not None:
            chain.append(current)
            current = self._parents.get(current)
        return list(reversed(chain))

    def build(self, entry_path, source: Optional[str] = None) -> DependencyGraph:
        """
        Build the graph rooted at entry_path.

        Args:
            entry_path: Path to the entry module. Its directory is the first
                        search root.
            source: Entry source code to use instead of reading entry_path.

        Raises:
            ResolutionError: If the entry or a required module cannot be found.
            ParseError: If a reachable module is not valid Lua.
            DynamicRequireError: On a non-literal require when those are fatal.
        """
        entry_path = Path(entry_path)
        entry_id = self.options.root_module_name or entry_path.stem
        if source is None and not entry_path.is_file():
            raise ResolutionError(entry_id, searched=[entry_path])
        entry_path = entry_path.resolve()
        resolver = self.resolver or self.make_resolver(entry_path)

        graph = DependencyGraph(entry_id)
        self.diagnostics = []
        self._parents = {entry_id: None}
        ignored = set(self.options.ignored_modules)

        queue = deque([(entry_id, entry_path, entry_path.name)])
        while queue:
            module_id, path, relative_path = queue.popleft()
            is_entry = module_id == entry_id
            text = source if is_entry and source is not None else self._read(module_id, path)
            node = self._load(module_id, path, relative_path, text, is_entry)
            graph.add(node)

            for expression in node.requires:
                if not expression.is_literal:
                    self._dynamic(node, expression)
                    continue
                target = expression.value
                if target in self._parents or target in ignored or target in graph.missing:
                    continue
                found = resolver.find(target, from_module=module_id)
                if found is None:
                    self._missing(graph, node, expression, resolver)
                    continue
                self._parents[target] = module_id
                queue.append((target,) + found)

        for cycle in graph.find_cycles():
            self._cycle(graph, cycle)

        debug_log(f"Dependency graph: {len(graph)} module(s), {len(self.diagnostics)} diagnostic(s)")
        return graph

    def _read(self, module_id, path):
        try:
            # newline='' keeps line endings as they are on disk
            with open(path, 'r', encoding=self.options.source_encoding, newline='') as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise ParseError(
                f"Cannot decode source as {self.options.source_encoding}: {e.reason}",
                module_id=module_id,
                path=str(path),
                chain=self.chain(module_id),
            ) from e
        except OSError as e:
            raise ResolutionError(
                module_id,
                requester=self._parents.get(module_id),
                chain=self.chain(module_id),
                searched=[path],
            ) from e

    def _load(self, module_id, path, relative_path, text, is_entry):
        debug_log(f"Parsing '{module_id}' ({path})")
        text = strip_bom(text)
        _, requires = parse(text, module_id=module_id, path=str(path), chain=self.chain(module_id))
        return ModuleNode(
            id=module_id,
            path=path,
            source=text,
            requires=tuple(requires),
            is_entry=is_entry,
            relative_path=relative_path,
        )

    def _dynamic(self, node, expression):
        self.diagnostics.append(Diagnostic(
            kind=DiagnosticKind.DYNAMIC_REQUIRE,
            module_id=node.id,
            line=expression.line,
            column=expression.column,
            message=f"Non-literal require found in '{node.id}' at {expression.line}:{expression.column}",
        ))
        if self.options.expression_handler is not None:
            self.options.expression_handler(node, expression)
        if self.options.on_dynamic_require == DynamicRequirePolicy.ERROR:
            raise DynamicRequireError(
                node.id,
                line=expression.line,
                column=expression.column,
                context=get_line_context(node.source, expression.line),
                chain=self.chain(node.id),
            )

    def _missing(self, graph, node, expression, resolver):
        target = expression.value
        if self.options.on_missing_module == MissingModulePolicy.ERROR:
            raise ResolutionError(
                target,
                requester=node.id,
                chain=self.chain(node.id) + [target],
                searched=resolver.candidates(target),
                line=expression.line,
                column=expression.column,
            )
        graph.missing.append(target)
        self.diagnostics.append(Diagnostic(
            kind=DiagnosticKind.MISSING_MODULE,
            module_id=node.id,
            line=expression.line,
            column=expression.column,
            message=f"Module '{target}' not found; left to the host require",
        ))

    def _cycle(self, graph, cycle):
        closing, target = cycle[-2], cycle[-1]
        location = next(r for r in graph[closing].requires if r.is_literal and r.value == target)
        self.diagnostics.append(Diagnostic(
            kind=DiagnosticKind.CYCLE,
            module_id=closing,
            line=location.line,
            column=location.column,
            message="Circular require: " + " -> ".join(cycle),
        ))
