"""
Error types for the Lua bundler.

Every fatal problem is raised as a BundleError subclass. Non-fatal findings
(dynamic requires, cycles, skipped modules) are reported as Diagnostic
models instead, see luabundler.models.
"""


class BundleError(Exception):
    """Base exception for bundling failures with location and hints."""
    def __init__(self, message, module_id=None, path=None, line=None, column=None,
                 context=None, suggestion=None):
        self.message = message
        self.module_id = module_id
        self.path = path
        self.line = line
        self.column = column
        self.context = context  # The offending line
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    def _title(self):
        return "Bundle Error"

    def _format_error(self):
        """Format the error message with location, context and suggestion."""
        lines = [f"\n❌ {self._title()}"]
        if self.module_id is not None:
            lines.append(f" in module '{self.module_id}'")
        if self.path is not None:
            lines.append(f" ({self.path})")
        if self.line:
            lines.append(f" at line {self.line}")
            if self.column:
                lines.append(f", column {self.column}")
        lines.append(":\n")

        lines.append(f"   {self.message}\n")

        if self.context:
            lines.append(f"   > {self.context}\n")

        if self.suggestion:
            lines.append(f"   💡 {self.suggestion}\n")

        return "".join(lines)


class ResolutionError(BundleError):
    """A required module does not exist under any search root."""
    def __init__(self, module_id, requester=None, chain=(), searched=(), line=None, column=None):
        self.requester = requester
        self.chain = list(chain)
        self.searched = [str(p) for p in searched]
        message = f"Module '{module_id}' not found"
        if requester is not None:
            message += f" (required by '{requester}')"
        if self.chain:
            message += "\n   Require chain: " + " -> ".join(self.chain)
        if self.searched:
            message += "\n   Searched:\n" + "\n".join(f"     {p}" for p in self.searched)
        super().__init__(
            message,
            module_id=module_id,
            line=line,
            column=column,
            suggestion="Add a search root with --path or list the module with --ignore",
        )

    def _title(self):
        return "Resolution Error"


class ParseError(BundleError):
    """A module's source is not valid Lua."""
    def __init__(self, message, module_id=None, path=None, line=None, column=None,
                 context=None, chain=()):
        self.chain = list(chain)
        if self.chain:
            message += "\n   Require chain: " + " -> ".join(self.chain)
        super().__init__(
            message,
            module_id=module_id,
            path=path,
            line=line,
            column=column,
            context=context,
            suggestion="Check syntax around this line",
        )

    def _title(self):
        return "Parse Error"


class DynamicRequireError(BundleError):
    """A non-literal require was found while dynamic requires are fatal."""
    def __init__(self, module_id, line=None, column=None, context=None, chain=()):
        self.chain = list(chain)
        message = "Non-literal require cannot be bundled"
        if self.chain:
            message += "\n   Require chain: " + " -> ".join(self.chain)
        super().__init__(
            message,
            module_id=module_id,
            line=line,
            column=column,
            context=context,
            suggestion="Use a string literal argument or set on_dynamic_require to 'warn'",
        )

    def _title(self):
        return "Dynamic Require Error"


class ConfigError(BundleError):
    """Bundler options failed validation."""
    def _title(self):
        return "Configuration Error"


class UnbundleError(BundleError):
    """Bundle text lacks the metadata needed to recover its modules."""
    def _title(self):
        return "Unbundle Error"


def get_line_context(source_code, line_number):
    """Extract the line of code from source by line number (1-based)."""
    if not source_code or line_number is None:
        return None
    source_lines = source_code.split('\n')
    if 0 < line_number <= len(source_lines):
        return source_lines[line_number - 1].strip()
    return None
