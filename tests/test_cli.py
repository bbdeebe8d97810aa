"""Tests for the source-snap command line."""

import json

import pytest

from sourcesnap.cli import main


@pytest.fixture
def project(make_tree, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return make_tree(
        {
            "app/a.ts": "export const a = 1;\n",
            "app/b.js": "module.exports = 2;",
            "app/node_modules/dep/index.js": "dep",
            "app/notes.md": "# notes",
        }
    )


class TestMain:
    """Test main function."""

    def test_txt_run(self, project, capsys):
        out = project / "snap.txt"
        main(["--root", str(project / "app"), "--out", str(out)])
        assert out.read_text(encoding="utf-8") == (
            "// a.ts\nexport const a = 1;\n\n\n// b.js\nmodule.exports = 2;\n"
        )
        stdout = capsys.readouterr().out
        assert "1:0 // a.ts" in stdout
        assert "Code collection completed!" in stdout

    def test_json_run_with_types(self, project):
        out = project / "snap.json"
        main(["--root", str(project / "app"), "--out", str(out), "--format", "json", "--types", "md", "-s"])
        assert json.loads(out.read_text(encoding="utf-8")) == [{"path": "notes.md", "content": "# notes"}]

    def test_silent(self, project, capsys):
        main(["--root", str(project / "app"), "--out", str(project / "snap.txt"), "--silent", "--verbose"])
        assert capsys.readouterr().out == ""

    def test_verbose_summary(self, project, capsys):
        main(["--root", str(project / "app"), "--out", str(project / "snap.txt"), "-v"])
        stdout = capsys.readouterr().out
        assert "Total files: 2" in stdout
        assert ".ts: 1 files, 2 lines" in stdout

    def test_rc_file_is_applied_and_overridden(self, project):
        (project / ".sourcesnaprc").write_text(
            json.dumps({"folderPath": "app", "fileTypes": [".md"], "silent": True})
        )
        out = project / "snap.json"
        main(["--out", str(out), "--format", "json"])
        assert [r["path"] for r in json.loads(out.read_text(encoding="utf-8"))] == ["notes.md"]

        main(["--out", str(out), "--format", "json", "--types", ".js", "--exclude-folders", ""])
        paths = [r["path"] for r in json.loads(out.read_text(encoding="utf-8"))]
        assert paths == ["b.js", "node_modules/dep/index.js"]

    def test_missing_root(self, project, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--root", str(project / "missing")])
        assert exc.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    def test_bad_config(self, project, capsys):
        (project / ".sourcesnaprc").write_text("{broken")
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_bad_depth(self, project):
        with pytest.raises(SystemExit) as exc:
            main(["--root", str(project / "app"), "--max-depth", "-1"])
        assert exc.value.code == 1
