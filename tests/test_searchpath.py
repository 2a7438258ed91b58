"""Tests for reading and editing the compiler search path."""

import os

from searchpath import SearchPaths


class TestSearchPaths:
    """Tests for nim.cfg path entries."""

    def test_missing_config_is_empty(self, tmp_path):
        paths = SearchPaths(str(tmp_path))
        assert paths.entries() == []
        assert str(tmp_path / "deps" / "alpha") not in paths

    def test_reads_path_and_nimblepath_settings(self, tmp_path):
        (tmp_path / "vendor" / "alpha").mkdir(parents=True)
        (tmp_path / "pkgs").mkdir()
        (tmp_path / "nim.cfg").write_text(
            '# comment\n'
            '--path="vendor/alpha"\n'
            'p:"$projectdir/missing"\n'
            '--nimblePath:"pkgs"\n'
            '--define:release\n'
        )
        paths = SearchPaths(str(tmp_path))
        root = str(tmp_path)
        assert paths.entries() == [
            ("path", os.path.join(root, "vendor", "alpha")),
            ("p", os.path.join(root, "missing")),
            ("nimblepath", os.path.join(root, "pkgs")),
        ]
        assert paths.directories() == [os.path.join(root, "vendor", "alpha"), os.path.join(root, "pkgs")]
        assert os.path.join(root, "vendor", "alpha") in paths
        assert os.path.join(root, "pkgs", "beta-1.0.0") in paths

    def test_src_directory_counts_as_the_project(self, tmp_path):
        (tmp_path / "nim.cfg").write_text('--path="deps/alpha/src"\n')
        assert str(tmp_path / "deps" / "alpha") in SearchPaths(str(tmp_path))

    def test_add_appends_relative_entries(self, tmp_path):
        (tmp_path / "nim.cfg").write_text("--define:release")
        paths = SearchPaths(str(tmp_path))
        assert paths.add(str(tmp_path / "deps" / "alpha"))
        assert paths.add(str(tmp_path / "deps" / "alpha"))
        text = (tmp_path / "nim.cfg").read_text()
        assert text == '--define:release\n--path="deps/alpha"\n'

    def test_add_outside_project_is_absolute(self, tmp_path):
        project = tmp_path / "app"
        project.mkdir()
        elsewhere = str(tmp_path / "shared" / "alpha")
        SearchPaths(str(project)).add(elsewhere)
        assert (project / "nim.cfg").read_text() == f'--path="{elsewhere}"\n'

    def test_remove(self, tmp_path):
        (tmp_path / "nim.cfg").write_text('--path="deps/alpha"\n--path="deps/beta"\n')
        paths = SearchPaths(str(tmp_path))
        assert paths.remove(str(tmp_path / "deps" / "alpha"))
        assert not paths.remove(str(tmp_path / "deps" / "alpha"))
        assert (tmp_path / "nim.cfg").read_text() == '--path="deps/beta"\n'

    def test_undecodable_bytes_survive_an_edit(self, tmp_path):
        (tmp_path / "nim.cfg").write_bytes(b'# caf\xe9\n--path="deps/beta"\n')
        paths = SearchPaths(str(tmp_path))
        assert str(tmp_path / "deps" / "beta") in paths
        assert paths.add(str(tmp_path / "deps" / "alpha"))
        assert (tmp_path / "nim.cfg").read_bytes() == b'# caf\xe9\n--path="deps/beta"\n--path="deps/alpha"\n'
