# Lua Bundler - single-file bundles of Lua modules
"""
Core modules of the Lua bundler:
- grammar / parser: Lark grammar and parser for Lua source
- requires / transformer: require call discovery and classification
- resolver: module ids to files
- graph: dependency graph construction and cycle detection
- emitter / assembler: module wrapping and bundle output
- runtime: the Lua prelude that replaces require inside a bundle
- sourcemap: line lookup and unbundling from bundle metadata
"""

__version__ = "0.1.0"

from .errors import (
    BundleError,
    ConfigError,
    DynamicRequireError,
    ParseError,
    ResolutionError,
    UnbundleError,
)
from .config import BundleOptions, DynamicRequirePolicy, MissingModulePolicy, load_options
from .models import Bundle, Diagnostic, DiagnosticKind, ModuleNode, RequireExpression, RequireKind
from .bundler import bundle, bundle_string
from .sourcemap import locate, unbundle

__all__ = [
    '__version__',
    'BundleError',
    'ConfigError',
    'DynamicRequireError',
    'ParseError',
    'ResolutionError',
    'UnbundleError',
    'BundleOptions',
    'DynamicRequirePolicy',
    'MissingModulePolicy',
    'load_options',
    'Bundle',
    'Diagnostic',
    'DiagnosticKind',
    'ModuleNode',
    'RequireExpression',
    'RequireKind',
    'bundle',
    'bundle_string',
    'locate',
    'unbundle',
]
