# Lua Bundle Runtime
"""
Runtime prelude emitted at the top of every bundle.

The prelude is kept as a real Lua file for editor support and is rendered
with the configured identifiers at bundle time. It owns the only shared state
of a bundle: the table of registered module bodies and the table of loaded
results. Each body runs at most once per name; a name required while its
body is still running yields nil, which is how require cycles terminate.
"""

import os
from string import Template

PRELUDE_FILE = 'prelude.lua'


def read_prelude():
    runtime_dir = os.path.dirname(__file__)
    with open(os.path.join(runtime_dir, PRELUDE_FILE), 'r', encoding='utf-8') as f:
        return f.read()


def get_prelude(identifiers, isolate=False):
    """
    Render the prelude.

    Args:
        identifiers: BundleIdentifiers naming the values the prelude binds.
        isolate: If True, unknown modules raise instead of falling back to the
                 host's require.
    """
    return Template(read_prelude()).substitute(
        require=identifiers.require,
        loaded=identifiers.loaded,
        register=identifiers.register_fn,
        run=identifiers.run,
        modules=identifiers.modules,
        super_require='nil' if isolate else 'require',
    )
