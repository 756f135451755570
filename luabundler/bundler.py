"""
Bundler for Lua modules.

Resolves every statically known `require` reachable from an entry file and
emits a single Lua chunk in which a small runtime prelude serves those
requires from registered module functions.
"""
import os
from pathlib import Path

from .assembler import assemble
from .config import BundleOptions
from .console import debug_log
from .emitter import display_path, wrap
from .graph import GraphBuilder

DEFAULT_ROOT_NAME = "__root"


def build_graph(entry_path, options=None, source=None):
    """
    Build the dependency graph for an entry module.

    Returns:
        (graph, diagnostics)
    """
    builder = GraphBuilder(options or BundleOptions())
    graph = builder.build(entry_path, source=source)
    return graph, builder.diagnostics


def bundle(entry_path, options=None, source=None):
    """
    Bundle an entry module and everything it requires into one Lua chunk.

    Args:
        entry_path: Path to the entry .lua file
        options: BundleOptions; defaults are used when None
        source: Entry source to use instead of the file's contents

    Returns:
        Bundle with the output text, module order, line map and diagnostics.
        Writing the text anywhere is up to the caller.

    Raises:
        ResolutionError, ParseError, DynamicRequireError: Nothing is returned
        when the build fails.
    """
    options = options or BundleOptions()

    # STEP 1: BUILD THE DEPENDENCY GRAPH
    graph, diagnostics = build_graph(entry_path, options, source)

    # STEP 2: WRAP EACH MODULE
    wrapped = [wrap(node, options, display_path(node)) for node in graph]

    # STEP 3: ASSEMBLE
    result = assemble(graph, wrapped, options, diagnostics)
    debug_log(f"Bundled {len(result.modules)} module(s) from {entry_path}")
    return result


def bundle_string(source, options=None, base_dir=None):
    """
    Bundle Lua source that does not live in a file.

    Requires are resolved against base_dir (default: the current directory)
    and the search roots. The entry is named by root_module_name, or
    '__root' when that is unset.
    """
    options = options or BundleOptions()
    name = options.root_module_name or DEFAULT_ROOT_NAME
    base_dir = Path(base_dir) if base_dir is not None else Path(os.getcwd())
    return bundle(base_dir / f"{name}.lua", options, source=source)
