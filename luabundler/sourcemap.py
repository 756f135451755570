"""
Reading bundles back: metadata, line lookup and unbundling.

These functions work on bundle text alone (for example a bundle read from
disk) and rely on the metadata comments written when
include_metadata_comments is enabled.
"""
import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ValidationError

from .assembler import BUNDLE_MARKER
from .config import BundleIdentifiers
from .emitter import MODULE_MARKER
from .errors import UnbundleError
from .models import LineMapping, SourceLocation


class BundleMetadata(BaseModel):
    version: str
    root: str
    isolate: bool = False
    identifiers: BundleIdentifiers = BundleIdentifiers()


class UnbundledModules(BaseModel):
    """Module sources recovered from a bundle, in bundle order."""
    root: str
    modules: Dict[str, str]
    paths: Dict[str, str]


def read_metadata(text) -> BundleMetadata:
    """
    Parse the bundle header comment.

    Raises:
        UnbundleError: If the text has no luabundler header.
    """
    first_line = text.split('\n', 1)[0]
    if not first_line.startswith(BUNDLE_MARKER):
        raise UnbundleError(
            "No bundle metadata found",
            line=1,
            suggestion="Bundle with metadata comments enabled (omit --no-metadata)",
        )
    try:
        return BundleMetadata.model_validate(json.loads(first_line[len(BUNDLE_MARKER):]))
    except (ValueError, ValidationError) as e:
        raise UnbundleError(f"Malformed bundle metadata: {e}", line=1)


def line_mappings(text) -> List[LineMapping]:
    """Recover the line map from the module metadata comments."""
    metadata = read_metadata(text)
    register_call = metadata.identifiers.register_fn + "("
    lines = text.split('\n')
    mappings = []
    skip_until = 0
    for index, line in enumerate(lines):
        # Module sources are verbatim and may hold marker-like lines themselves
        if index < skip_until or not line.startswith(MODULE_MARKER):
            continue
        line_number = index + 1
        try:
            info = json.loads(line[len(MODULE_MARKER):])
            mapping = LineMapping(
                module_id=info["name"],
                path=info["path"],
                bundle_start=line_number + 2,
                line_count=info["lines"],
            )
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            raise UnbundleError(f"Malformed module metadata: {e}", line=line_number)
        if index + 1 >= len(lines) or not lines[index + 1].startswith(register_call):
            raise UnbundleError(
                f"Module metadata for '{mapping.module_id}' is not followed by its registration",
                module_id=mapping.module_id,
                line=line_number,
            )
        if mapping.bundle_start - 1 + mapping.line_count > len(lines):
            raise UnbundleError("Module source runs past the end of the bundle",
                                module_id=mapping.module_id, line=line_number)
        mappings.append(mapping)
        skip_until = mapping.bundle_start - 1 + mapping.line_count
    return mappings


def locate(text, bundle_line) -> Optional[SourceLocation]:
    """Map a bundle line (as reported in a Lua error) to its original file and line."""
    for mapping in line_mappings(text):
        if mapping.contains(bundle_line):
            return SourceLocation(
                module_id=mapping.module_id,
                path=mapping.path,
                line=bundle_line - mapping.bundle_start + 1,
            )
    return None


def unbundle(text) -> UnbundledModules:
    """
    Recover each module's source from a bundle.

    Sources come back as they were wrapped: a commented-out shebang is
    restored, and every source ends with a newline.
    """
    metadata = read_metadata(text)
    lines = text.split('\n')
    modules = {}
    paths = {}
    for mapping in line_mappings(text):
        start = mapping.bundle_start - 1
        source = '\n'.join(lines[start:start + mapping.line_count]) + '\n'
        if source.startswith('--#!'):
            source = source[2:]
        modules[mapping.module_id] = source
        paths[mapping.module_id] = mapping.path
    if metadata.root not in modules:
        raise UnbundleError(f"Root module '{metadata.root}' is missing from the bundle")
    return UnbundledModules(root=metadata.root, modules=modules, paths=paths)


def output_path(directory, path) -> Path:
    """
    The file below directory that a module with the recorded path unbundles to.

    Raises:
        UnbundleError: If the path would land outside directory (absolute
        paths, '..' segments or symlinks pointing elsewhere).
    """
    base = Path(directory).resolve()
    target = (base / path).resolve()
    try:
        target.relative_to(base)
    except ValueError:
        raise UnbundleError(
            f"Module path '{path}' points outside the output directory {directory}",
            path=path,
        )
    if target == base:
        raise UnbundleError(f"Module path '{path}' is not a file path", path=path)
    return target
