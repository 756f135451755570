"""
Unit tests for reading bundles back: locate() and unbundle().
"""
import pytest

from luabundler import BundleOptions, UnbundleError, bundle, locate, unbundle
from luabundler.sourcemap import line_mappings, output_path, read_metadata


@pytest.fixture
def bundled(project):
    root = project({
        'main.lua': '#!/usr/bin/env lua\nlocal util = require("lib.util")\nreturn util.run()\n',
        'lib/util.lua': 'local M = {}\nfunction M.run()\n  return 42\nend\nreturn M\n',
    })
    return bundle(root / 'main.lua')


class TestReadMetadata:

    def test_header(self, bundled):
        metadata = read_metadata(bundled.text)
        assert metadata.root == 'main'
        assert metadata.identifiers.register_fn == '__bundle_register'

    def test_no_header(self):
        with pytest.raises(UnbundleError):
            read_metadata('local x = 1\n')

    def test_line_mappings_match_bundle(self, bundled):
        assert line_mappings(bundled.text) == bundled.line_map


class TestLocate:

    def test_matches_bundle_model(self, bundled):
        for line in range(1, bundled.text.count('\n') + 1):
            assert locate(bundled.text, line) == bundled.locate(line)

    def test_line_in_module(self, bundled):
        util = next(m for m in bundled.line_map if m.module_id == 'lib.util')
        location = locate(bundled.text, util.bundle_start + 2)
        assert (location.path, location.line) == ('lib/util.lua', 3)

    def test_prelude_line(self, bundled):
        assert locate(bundled.text, 2) is None


class TestUnbundle:

    def test_recovers_sources(self, bundled):
        modules = unbundle(bundled.text)
        assert modules.root == 'main'
        assert list(modules.modules) == ['main', 'lib.util']
        assert modules.modules['lib.util'] == 'local M = {}\nfunction M.run()\n  return 42\nend\nreturn M\n'
        assert modules.paths['lib.util'] == 'lib/util.lua'

    def test_restores_shebang(self, bundled):
        assert unbundle(bundled.text).modules['main'].startswith('#!/usr/bin/env lua\n')

    def test_requires_metadata(self, project):
        root = project({'main.lua': 'return 1\n'})
        result = bundle(root / 'main.lua', BundleOptions(include_metadata_comments=False))
        with pytest.raises(UnbundleError):
            unbundle(result.text)

    def test_marker_lines_inside_sources_are_skipped(self, project):
        source = 'local doc = [[\n--@module {"lines": 1, "name": "fake", "path": "fake.lua"}\n]]\nreturn doc\n'
        root = project({'main.lua': source})
        modules = unbundle(bundle(root / 'main.lua').text)
        assert list(modules.modules) == ['main']
        assert modules.modules['main'] == source

    def test_truncated_bundle(self, bundled):
        truncated = '\n'.join(bundled.text.split('\n')[:-8])
        with pytest.raises(UnbundleError):
            unbundle(truncated)

    def test_paths_are_relative_to_their_search_root(self, project):
        root = project({
            'app/main.lua': 'return require("util")\n',
            'lib/util.lua': 'return {}\n',
        })
        result = bundle(root / 'app' / 'main.lua', BundleOptions(search_roots=[root / 'lib']))
        assert unbundle(result.text).paths == {'main': 'main.lua', 'util': 'util.lua'}


class TestOutputPath:

    def test_inside_directory(self, project):
        root = project({})
        assert output_path(root / 'out', 'lib/util.lua') == (root / 'out' / 'lib' / 'util.lua').resolve()

    def test_parent_segments_rejected(self, project):
        root = project({})
        with pytest.raises(UnbundleError):
            output_path(root / 'out', '../util.lua')
        with pytest.raises(UnbundleError):
            output_path(root / 'out', 'lib/../../util.lua')

    def test_absolute_path_rejected(self, project):
        root = project({})
        with pytest.raises(UnbundleError):
            output_path(root / 'out', str(root / 'elsewhere.lua'))

    def test_directory_itself_rejected(self, project):
        root = project({})
        with pytest.raises(UnbundleError):
            output_path(root / 'out', '.')
