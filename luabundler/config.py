"""
Bundler configuration.

Options are a pydantic model so that values coming from a JSON config file
and from the command line are validated the same way.
"""
import json
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError

CONFIG_FILE = "luabundle.json"
USER_CONFIG_FILE = os.path.join("~", ".config", "luabundle", CONFIG_FILE)

_LUA_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_LUA_KEYWORDS = frozenset("""
    and break do else elseif end false for function goto if in local nil not
    or repeat return then true until while
""".split())


class DynamicRequirePolicy(str, Enum):
    WARN = "warn"
    ERROR = "error"
    IGNORE = "ignore"


class MissingModulePolicy(str, Enum):
    ERROR = "error"
    WARN = "warn"


class BundleIdentifiers(BaseModel):
    """Lua names bound by the runtime prelude."""
    require: str = "__bundle_require"
    loaded: str = "__bundle_loaded"
    # BaseModel already has a register attribute
    register_fn: str = Field("__bundle_register", alias="register")
    modules: str = "__bundle_modules"
    run: str = "__bundle_run"

    @field_validator("require", "loaded", "register_fn", "modules", "run")
    @classmethod
    def _valid_lua_name(cls, value):
        if not _LUA_IDENTIFIER.match(value) or value in _LUA_KEYWORDS:
            raise ValueError(f"'{value}' is not a valid Lua identifier")
        return value


class BundleOptions(BaseModel):
    """Options controlling resolution, diagnostics and emitted output."""
    search_roots: List[Path] = []
    path_templates: List[str] = ["?.lua", "?/init.lua"]
    module_separator: str = "."
    include_metadata_comments: bool = True
    on_dynamic_require: DynamicRequirePolicy = DynamicRequirePolicy.WARN
    on_missing_module: MissingModulePolicy = MissingModulePolicy.ERROR
    ignored_modules: List[str] = []
    isolate: bool = False
    root_module_name: Optional[str] = None
    identifiers: BundleIdentifiers = BundleIdentifiers()
    source_encoding: str = "utf-8"
    expression_handler: Optional[Callable[..., Any]] = None

    @field_validator("path_templates")
    @classmethod
    def _templates_have_placeholder(cls, value):
        if not value:
            raise ValueError("at least one path template is required")
        for template in value:
            if "?" not in template:
                raise ValueError(f"path template '{template}' has no '?' placeholder")
        return value

    @field_validator("module_separator")
    @classmethod
    def _separator_not_empty(cls, value):
        if not value:
            raise ValueError("module separator must not be empty")
        return value

    @field_validator("root_module_name")
    @classmethod
    def _root_name_not_empty(cls, value):
        if value is not None and not value.strip():
            raise ValueError("root module name must not be blank")
        return value


def make_options(**values):
    """Build BundleOptions, turning validation failures into ConfigError."""
    try:
        return BundleOptions(**values)
    except ValidationError as e:
        raise ConfigError(str(e))


def find_config_file():
    """Return the first config file found in the cwd or the user config dir."""
    for p in (CONFIG_FILE, os.path.expanduser(USER_CONFIG_FILE)):
        if os.path.exists(p):
            return p
    return None


def load_options(path=None, **overrides):
    """
    Load options from a JSON config file and apply overrides on top.

    Args:
        path: Explicit config file. If None, the default locations are searched
              and a missing file simply means defaults.
        **overrides: Option values taking precedence over the file. None
              values are ignored so CLI flags that were not given don't clobber
              the file.

    Raises:
        ConfigError: If the file cannot be read or holds invalid options.
    """
    values = {}
    if path is None:
        path = find_config_file()
    elif not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                values = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}", path=path)
        if not isinstance(values, dict):
            raise ConfigError("Config file must contain a JSON object", path=path)

    values.update({k: v for k, v in overrides.items() if v is not None})
    return make_options(**values)
