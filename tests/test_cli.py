"""Tests for the command line entry point."""

from segment_editor.cli import main


SOURCE = "class Foo {\n  greet(){return 1;}\n}\n"


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestCli:
    def test_segments(self, tmp_path, capsys):
        path = _write(tmp_path, "foo.js", SOURCE)

        assert main(["segments", path]) == 0
        out = capsys.readouterr().out
        assert "Foo (Definition)" in out
        assert "Foo::greet" in out
        assert "Foo (Closing)" in out

    def test_show(self, tmp_path, capsys):
        path = _write(tmp_path, "foo.js", SOURCE)

        assert main(["show", path, "Foo::greet"]) == 0
        assert capsys.readouterr().out == "  greet(){return 1;}\n"

    def test_show_unknown_segment(self, tmp_path, capsys):
        path = _write(tmp_path, "foo.js", SOURCE)

        assert main(["show", path, "Foo::nope"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_reassemble(self, tmp_path, capsys):
        path = _write(tmp_path, "foo.js", SOURCE)

        assert main(["reassemble", path]) == 0
        assert capsys.readouterr().out == SOURCE

    def test_paste_yes_saves(self, tmp_path, capsys):
        path = _write(tmp_path, "foo.js", SOURCE)
        paste = _write(tmp_path, "paste.js", "greet(){return 9;}\nwave(){}\n")

        assert main(["paste", path, paste, "--yes"]) == 0
        saved = (tmp_path / "foo.js").read_text(encoding="utf-8")
        assert "greet(){return 9;}" in saved
        assert "wave(){}" in saved
        assert "Replaced 1, Added 1, Skipped 0" in capsys.readouterr().err

    def test_paste_dry_run_does_not_save(self, tmp_path, capsys):
        path = _write(tmp_path, "foo.js", SOURCE)
        paste = _write(tmp_path, "paste.js", "wave(){}\n")

        assert main(["paste", path, paste, "--no", "--dry-run"]) == 0
        assert (tmp_path / "foo.js").read_text(encoding="utf-8") == SOURCE
        assert "Skipped 1" in capsys.readouterr().err

    def test_syntax_error_exit_code(self, tmp_path, capsys):
        path = _write(tmp_path, "bad.js", "class Foo {\n")

        assert main(["segments", path]) == 1
        assert "Error:" in capsys.readouterr().err
