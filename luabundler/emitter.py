"""
Module wrapping.

Each module's source is placed verbatim inside an anonymous function that is
registered under the module id, so its top-level statements only run when
the module is first required. The function header and closing `end)` sit on
their own lines, so source line N is always wrapper line N + source_offset.
"""
import json

from .config import BundleOptions
from .models import ModuleNode, WrappedModule
from .strings import quote

MODULE_MARKER = "--@module "


def module_key(module_id):
    """The Lua table key a module is registered and required under."""
    return quote(module_id)


def display_path(node: ModuleNode):
    """
    A stable, machine independent path for comments and line maps: the path
    below the search root the module was found in, or its file name.
    """
    return node.relative_path or node.path.name


def prepare_source(source):
    """Comment out a shebang line and make sure the source ends with a newline."""
    if source.startswith('#'):
        source = '--' + source
    if not source.endswith('\n'):
        source += '\n'
    return source


def module_metadata(module_id, path, line_count):
    metadata = {"name": module_id, "path": path, "lines": line_count}
    return MODULE_MARKER + json.dumps(metadata, sort_keys=True, ensure_ascii=False)


def wrap(node: ModuleNode, options: BundleOptions = None, path=None) -> WrappedModule:
    """
    Wrap a module for registration in the bundle.

    Args:
        node: The module to wrap.
        options: Bundle options; identifiers and metadata comments come from here.
        path: Path shown in metadata. Defaults to display_path(node).
    """
    options = options or BundleOptions()
    ids = options.identifiers
    path = path or display_path(node)
    source = prepare_source(node.source)
    line_count = source.count('\n')

    header = []
    if options.include_metadata_comments:
        header.append(module_metadata(node.id, path, line_count))
    # `...` receives the module name, as with a file loaded by require
    header.append(f"{ids.register_fn}({module_key(node.id)}, function(require, _LOADED, {ids.register_fn}, {ids.modules}, ...)")

    return WrappedModule(
        module_id=node.id,
        key=module_key(node.id),
        path=path,
        text="\n".join(header) + "\n" + source + "end)\n",
        source_offset=len(header),
        line_count=line_count,
    )
