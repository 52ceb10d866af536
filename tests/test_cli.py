"""Tests for the command-line interface.

WHY: The CLI is how authors check a chapter before publishing. Its
stdout must be exactly the render (so it can be piped), its stderr must
report every fired and rejected cue, and bad input must end with a
clear "Error: ..." and exit status 1.

HOW: main() is called with explicit argv; chapters are written to
tmp_path; stdout/stderr are captured with capsys.

RULES:
- Never touch files outside tmp_path
"""

import pytest

from cue_reveal.cli import _progress_samples, _resolve_output_path, build_parser, main
from cue_reveal.config import HYPHENATE, SOFT_HYPHEN


@pytest.fixture
def chapter(tmp_path, breeze_text):
    path = tmp_path / "chapter.txt"
    path.write_text(breeze_text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestProgressSamples:
    def test_explicit_samples_win(self):
        assert _progress_samples([0.5, 0.1], 20) == [0.5, 0.1]

    def test_even_sweep(self):
        assert _progress_samples(None, 4) == [0.0, 0.25, 0.5, 0.75, 1.0]

    def test_invalid_steps(self):
        with pytest.raises(ValueError, match="--steps"):
            _progress_samples(None, 0)


class TestResolveOutputPath:
    def test_no_conflict(self, tmp_path):
        assert _resolve_output_path("ch1", "-reveal.html", tmp_path) == tmp_path / "ch1-reveal.html"

    def test_numeric_suffix_on_conflict(self, tmp_path):
        (tmp_path / "ch1-reveal.html").write_text("x")
        (tmp_path / "ch1-reveal-2.html").write_text("x")
        assert _resolve_output_path("ch1", "-reveal.html", tmp_path) == tmp_path / "ch1-reveal-3.html"


class TestBuildParser:
    def test_defaults(self):
        args = build_parser().parse_args(["chapter.txt"])
        assert args.progress is None
        assert args.steps == 20
        assert args.format == "plain_text"
        assert args.rearm is False
        assert args.stats is False
        assert args.hyphenate is HYPHENATE

    def test_repeated_progress(self):
        args = build_parser().parse_args(["c.txt", "--progress", "0.2", "--progress", "0.9", "--rearm"])
        assert args.progress == [0.2, 0.9]
        assert args.rearm is True


# ---------------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------------


class TestMain:
    def test_plain_text_to_stdout(self, chapter, capsys):
        main([str(chapter), "--progress", "0", "--progress", "1"])
        captured = capsys.readouterr()
        assert captured.out == "El viento soplaba. Todo cambió.\n"
        assert "Loaded chapter.txt: 31 visible chars, 1 cues, 1 lines" in captured.err
        assert "[100.0%] fired VFX: breeze" in captured.err
        assert "Played 1 effect(s), rejected 0" in captured.err
        assert "VFX: breeze (duration=5.0, opacity=0.16)" in captured.err

    def test_sweep_fires_once(self, chapter, capsys):
        main([str(chapter), "--steps", "10"])
        err = capsys.readouterr().err
        assert err.count("fired VFX: breeze") == 1

    def test_partial_progress(self, chapter, capsys):
        main([str(chapter), "--progress", "0.3"])
        captured = capsys.readouterr()
        assert captured.out == "El viento\n"
        assert "Played 0 effect(s)" in captured.err

    def test_rejected_cue_reported(self, tmp_path, capsys):
        path = tmp_path / "typo.txt"
        path.write_text("Hola[cue:vfx|bresa] mundo", encoding="utf-8")
        main([str(path), "--progress", "0", "--progress", "1"])
        err = capsys.readouterr().err
        assert "rejected [cue:vfx|bresa]: Unknown vfx effect: 'bresa'" in err
        assert "Played 0 effect(s), rejected 1" in err

    def test_stats(self, tmp_path, capsys):
        path = tmp_path / "stats.txt"
        path.write_text("Hola mundo. ¿Qué tal?\n\nBien[cue:vfx|flash] gracias!", encoding="utf-8")
        main([str(path), "--progress", "1", "--stats"])
        err = capsys.readouterr().err
        assert "6 words, 30 characters (36 with spaces), 2 paragraphs, 3 sentences" in err

    def test_crlf_and_literal_newlines_normalized(self, tmp_path, capsys):
        path = tmp_path / "crlf.txt"
        path.write_bytes(b"uno\r\ndos\\ntres")
        main([str(path), "--progress", "1"])
        assert capsys.readouterr().out == "uno\ndos\ntres\n"

    def test_window(self, tmp_path, capsys, plain_chapter):
        path = tmp_path / "plain.txt"
        path.write_text(plain_chapter, encoding="utf-8")
        main([str(path), "--progress", "1", "--window", "2"])
        assert capsys.readouterr().out == "seis\nsiete\n"

    def test_save_to_output_dir(self, chapter, tmp_path, capsys):
        out_dir = tmp_path / "out"
        out_dir.mkdir()
        main([str(chapter), "--progress", "1", "--format", "html", "--output-dir", str(out_dir)])
        main([str(chapter), "--progress", "1", "--format", "html", "--output-dir", str(out_dir)])
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Saved: chapter-reveal.html" in captured.err
        assert "Saved: chapter-reveal-2.html" in captured.err
        content = (out_dir / "chapter-reveal.html").read_text(encoding="utf-8")
        assert 'class="cue-anchor"' in content

    def test_hyphenation_switch(self, tmp_path, capsys):
        path = tmp_path / "long.txt"
        path.write_text("Una espera extraordinariamente larga.", encoding="utf-8")
        main([str(path), "--progress", "1", "--format", "html", "--hyphenate"])
        assert SOFT_HYPHEN in capsys.readouterr().out
        main([str(path), "--progress", "1", "--format", "html", "--no-hyphenate"])
        assert SOFT_HYPHEN not in capsys.readouterr().out
        main([str(path), "--progress", "1", "--hyphenate"])
        assert capsys.readouterr().out == "Una espera extraordinariamente larga.\n"

    def test_json_format(self, chapter, capsys):
        main([str(chapter), "--progress", "1", "--format", "json_nodes"])
        assert '"target_visible": 31' in capsys.readouterr().out


class TestMainErrors:
    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.txt")])
        assert exc_info.value.code == 1
        assert "Error: File not found" in capsys.readouterr().err

    def test_unknown_format(self, chapter, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(chapter), "--format", "docx"])
        assert exc_info.value.code == 1
        assert "Unknown format 'docx'" in capsys.readouterr().err

    def test_missing_output_dir(self, chapter, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main([str(chapter), "--output-dir", str(tmp_path / "missing")])
        assert "Output directory does not exist" in capsys.readouterr().err

    def test_invalid_steps(self, chapter, capsys):
        with pytest.raises(SystemExit):
            main([str(chapter), "--steps", "0"])
        assert "--steps must be at least 1" in capsys.readouterr().err

    def test_invalid_window(self, chapter, capsys):
        with pytest.raises(SystemExit):
            main([str(chapter), "--window", "0"])
        assert "window_lines must be at least 1" in capsys.readouterr().err

    def test_not_utf8(self, tmp_path, capsys):
        path = tmp_path / "latin1.txt"
        path.write_bytes("canción".encode("latin-1"))
        with pytest.raises(SystemExit):
            main([str(path)])
        assert "Cannot decode latin1.txt as UTF-8" in capsys.readouterr().err
