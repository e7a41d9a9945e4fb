"""
CLI tests for the batch scanner.

- Uses tmp_path to build a small repository.
- LLM review is disabled explicitly so no network is involved.
"""

import json

from codespeed.pipelines.scan import collect_targets, main, render_finding
from codespeed.rules.perf import run_rules


HOT = 'def build():\n    s = ""\n    for i in range(5):\n        s += "x"\n    return s\n'
CLEAN = "def total(values):\n    return sum(values)\n"


def _repo(tmp_path):
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "hot.py").write_text(HOT, encoding="utf-8")
    (tmp_path / "pkg" / "clean.py").write_text(CLEAN, encoding="utf-8")
    (tmp_path / "notes.txt").write_text("for x in y:\n    s += 'a'\n", encoding="utf-8")
    (tmp_path / ".venv").mkdir()
    (tmp_path / ".venv" / "skip.py").write_text(HOT, encoding="utf-8")
    return tmp_path


def test_collect_targets_skips_hidden_and_non_python(tmp_path):
    repo = _repo(tmp_path)
    targets = collect_targets(str(repo), [str(repo / "notes.txt")])
    assert sorted(display for display, _ in targets) == ["pkg/clean.py", "pkg/hot.py"]


def test_text_output_and_jsonl(tmp_path, capsys):
    repo = _repo(tmp_path)
    out_jsonl = tmp_path / "out" / "findings.jsonl"
    rc = main(["--repo_dir", str(repo), "--out_jsonl", str(out_jsonl), "--disable_llm"])
    assert rc == 0

    stdout = capsys.readouterr().out
    assert "pkg/hot.py:4:11: warning [loop.string-concat]" in stdout
    assert "[SCAN] files=2 findings=1" in stdout

    rows = [json.loads(line) for line in out_jsonl.read_text(encoding="utf-8").splitlines()]
    assert len(rows) == 1
    assert rows[0]["file"] == "pkg/hot.py"
    assert rows[0]["ruleId"] == "loop.string-concat"
    assert rows[0]["range"] == {"startLine": 3, "startChar": 10, "endLine": 3, "endChar": 12}


def test_jsonl_stdout_for_single_file(tmp_path, capsys):
    path = tmp_path / "frame.py"
    path.write_text("for idx, row in df.iterrows():\n    pass\n", encoding="utf-8")
    assert main([str(path), "--format", "jsonl", "--disable_llm"]) == 0

    lines = capsys.readouterr().out.splitlines()
    row = json.loads(lines[0])
    assert row["ruleId"] == "pandas.iterrows"
    assert row["needsContext"] is True
    assert lines[-1] == "[SCAN] files=1 findings=1"


def test_render_finding_marks_review_context():
    finding = run_rules("for x in y:\n    if x in [1]:\n        pass\n")[0]
    line = render_finding("a.py", finding)
    assert line.startswith("a.py:2:9: warning [ds.list-membership] ")
    assert line.endswith("(review context)")


def test_unreadable_targets_are_skipped(tmp_path, capsys):
    repo = _repo(tmp_path)
    (repo / "pkg" / "odd.py").mkdir()
    missing = tmp_path / "gone.py"
    assert main(["--repo_dir", str(repo), str(missing), "--disable_llm"]) == 0

    stdout = capsys.readouterr().out
    assert "[SCAN] skipped pkg/odd.py" in stdout
    assert f"[SCAN] skipped {missing}" in stdout
    assert "pkg/hot.py:4:11: warning [loop.string-concat]" in stdout
    assert stdout.splitlines()[-1] == "[SCAN] files=2 findings=1"
