"""
Module resolution: require ids to files.
"""
import posixpath
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from .console import debug_log


class ModuleResolver:
    """
    Search configuration for Lua modules.

    A module id like 'ui.widgets.button' is turned into 'ui/widgets/button'
    and substituted for '?' in each path template ('?.lua', then
    '?/init.lua' by default). Roots are tried in order, and for each root the
    templates in order; the first existing file wins.
    """

    def __init__(self, search_roots: Sequence = (), path_templates: Sequence[str] = ("?.lua", "?/init.lua"),
                 separator: str = "."):
        self.search_roots: List[Path] = [Path(r) for r in search_roots]
        self.path_templates = list(path_templates)
        self.separator = separator

    def module_relpath(self, module_id: str) -> str:
        """Convert a module id like 'std.io' to 'std/io'."""
        return "/".join(s for s in module_id.split(self.separator) if s)

    def _search(self, module_id: str) -> Iterator[Tuple[Path, str]]:
        rel = self.module_relpath(module_id)
        for root in self.search_roots:
            for template in self.path_templates:
                yield root, posixpath.normpath(template.replace("?", rel))

    def candidates(self, module_id: str) -> List[Path]:
        """All paths tried for module_id, in search order."""
        return [root / relative for root, relative in self._search(module_id)]

    def find(self, module_id: str, from_module: Optional[str] = None) -> Optional[Tuple[Path, str]]:
        """
        Find the first existing file for module_id.

        Returns:
            (absolute path, path relative to the search root that matched, in
            '/' form), or None when no root yields a file.
        """
        suffix = f" (from '{from_module}')" if from_module else ""
        if not self.module_relpath(module_id):
            return None
        for root, relative in self._search(module_id):
            candidate = root / relative
            if candidate.is_file():
                debug_log(f"Resolved '{module_id}' -> {candidate}{suffix}")
                return candidate.resolve(), relative
        debug_log(f"Could not resolve '{module_id}'{suffix}")
        return None

    def resolve(self, module_id: str, from_module: Optional[str] = None) -> Optional[Path]:
        """
        Find the first existing file for module_id.

        Returns None when no root yields a file; whether that is fatal is the
        caller's decision.
        """
        found = self.find(module_id, from_module)
        return found[0] if found else None
