"""
Bundle assembly: prelude, wrapped modules, then the entry call.
"""
import json

from . import __version__
from .config import BundleOptions
from .errors import BundleError
from .models import Bundle, LineMapping
from .runtime import get_prelude
from .strings import quote

BUNDLE_MARKER = "-- Bundled by luabundler "


def bundle_metadata(entry_id, options):
    metadata = {
        "identifiers": options.identifiers.model_dump(by_alias=True),
        "isolate": options.isolate,
        "root": entry_id,
        "version": __version__,
    }
    return BUNDLE_MARKER + json.dumps(metadata, sort_keys=True, ensure_ascii=False)


def assemble(graph, wrapped_modules, options: BundleOptions = None, diagnostics=()) -> Bundle:
    """
    Concatenate the prelude and the wrapped modules into one Lua chunk.

    Modules are emitted in the graph's discovery order, entry first, whatever
    order wrapped_modules comes in. The chunk ends by requiring the entry and
    returning its value.

    Raises:
        BundleError: If a module of the graph has no wrapped source.
    """
    options = options or BundleOptions()
    by_id = {w.module_id: w for w in wrapped_modules}

    parts = []
    line_map = []
    current_line = 1

    def append(text):
        nonlocal current_line
        parts.append(text)
        current_line += text.count('\n')

    if options.include_metadata_comments:
        append(bundle_metadata(graph.entry_id, options) + "\n")
    append(get_prelude(options.identifiers, options.isolate))

    for node in graph:
        wrapped = by_id.get(node.id)
        if wrapped is None:
            raise BundleError("Module has no wrapped source", module_id=node.id)
        line_map.append(LineMapping(
            module_id=wrapped.module_id,
            path=wrapped.path,
            bundle_start=current_line + wrapped.source_offset,
            line_count=wrapped.line_count,
        ))
        append(wrapped.text)

    append(f"return {options.identifiers.run}({quote(graph.entry_id)}, ...)\n")

    return Bundle(
        text="".join(parts),
        entry_id=graph.entry_id,
        modules=[node.id for node in graph],
        line_map=line_map,
        diagnostics=list(diagnostics),
    )
