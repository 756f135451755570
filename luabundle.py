import argparse
import os
import sys

from luabundler import BundleError, bundle, load_options, locate, unbundle
from luabundler.bundler import build_graph
from luabundler.console import error, log, set_verbose, warn
from luabundler.models import DiagnosticKind
from luabundler.sourcemap import output_path


def options_from_args(args):
    """Config file values overridden by whatever was given on the command line."""
    return load_options(
        getattr(args, "config", None),
        search_roots=args.path or None,
        ignored_modules=args.ignore or None,
        isolate=True if args.isolate else None,
        include_metadata_comments=False if getattr(args, "no_metadata", False) else None,
        on_dynamic_require=args.on_dynamic_require,
        on_missing_module=args.on_missing_module,
        root_module_name=args.root_name,
    )


def report_diagnostics(diagnostics, options):
    for d in diagnostics:
        if d.kind == DiagnosticKind.DYNAMIC_REQUIRE:
            if options.on_dynamic_require.value == "ignore":
                continue
            warn(f"Non-literal require found in '{d.module_id}' at {d.line}:{d.column}")
        else:
            warn(str(d))


def read_text(filename):
    if filename == "-":
        return sys.stdin.read()
    with open(filename, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text(filename, text):
    if filename == "-":
        sys.stdout.write(text)
        return
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filename, "w", encoding="utf-8", newline="") as f:
        f.write(text)


def cmd_bundle(args):
    options = options_from_args(args)
    result = bundle(args.entry, options)
    report_diagnostics(result.diagnostics, options)
    write_text(args.output, result.text)
    if args.output != "-":
        log(f"Bundled {len(result.modules)} module(s) into {args.output}")


def cmd_unbundle(args):
    modules = unbundle(read_text(args.bundle))
    # Every path is checked before anything is written
    targets = {module_id: output_path(args.output, path) for module_id, path in modules.paths.items()}
    for module_id, source in modules.modules.items():
        target = str(targets[module_id])
        write_text(target, source)
        log(f"  {module_id} -> {target}")
    log(f"Unbundled {len(modules.modules)} module(s) (root: '{modules.root}')")


def cmd_locate(args):
    location = locate(read_text(args.bundle), args.line)
    if location is None:
        error(f"Line {args.line} is not part of any bundled module")
        return 1
    print(location)
    return 0


def cmd_graph(args):
    options = options_from_args(args)
    graph, diagnostics = build_graph(args.entry, options)
    for node in graph:
        marker = " (entry)" if node.is_entry else ""
        print(f"{node.id}{marker}: {node.path}")
        for dependency in graph.dependencies(node.id):
            print(f"    -> {dependency}")
    for module_id in graph.missing:
        print(f"{module_id}: <missing>")
    report_diagnostics(diagnostics, options)


def add_bundle_options(parser):
    parser.add_argument("entry", help="Entry .lua file")
    parser.add_argument("-p", "--path", action="append", help="Additional search root (repeatable)")
    parser.add_argument("--ignore", action="append", help="Module id to leave to the host require (repeatable)")
    parser.add_argument("--isolate", action="store_true", help="Never fall back to the host require")
    parser.add_argument("--on-dynamic-require", choices=["warn", "error", "ignore"], help="Non-literal require policy (default: warn)")
    parser.add_argument("--on-missing-module", choices=["error", "warn"], help="Unresolvable require policy (default: error)")
    parser.add_argument("--root-name", help="Module name of the entry (default: entry file stem)")
    parser.add_argument("--config", help="JSON config file (default: ./luabundle.json if present)")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Bundle Lua modules into a single file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")
    subparsers = parser.add_subparsers(dest="command")

    bundle_parser = subparsers.add_parser("bundle", help="Bundle an entry module and its requires")
    add_bundle_options(bundle_parser)
    bundle_parser.add_argument("-o", "--output", default="-", help="Output file (default: stdout)")
    bundle_parser.add_argument("--no-metadata", action="store_true", help="Omit metadata and line-map comments")

    graph_parser = subparsers.add_parser("graph", help="Print the dependency graph")
    add_bundle_options(graph_parser)

    unbundle_parser = subparsers.add_parser("unbundle", help="Extract modules from a bundle")
    unbundle_parser.add_argument("bundle", help="Bundle file ('-' for stdin)")
    unbundle_parser.add_argument("-o", "--output", default="unbundled", help="Output directory (default: unbundled)")

    locate_parser = subparsers.add_parser("locate", help="Map a bundle line to its source file and line")
    locate_parser.add_argument("bundle", help="Bundle file ('-' for stdin)")
    locate_parser.add_argument("line", type=int, help="Line number in the bundle")

    args = parser.parse_args(argv)
    set_verbose(args.verbose)

    commands = {
        "bundle": cmd_bundle,
        "graph": cmd_graph,
        "unbundle": cmd_unbundle,
        "locate": cmd_locate,
    }
    if args.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[args.command](args) or 0
    except BundleError as e:
        error(f"Bundling failed:{e}")
        return 1
    except OSError as e:
        error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
