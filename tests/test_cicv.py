import json
import subprocess
from pathlib import Path
from unittest import mock

import pytest

from rustlings.cicv import (
    ExerciseCheckList,
    ExerciseResult,
    ExerciseStatistics,
    cicv_verify,
)
from rustlings.exercise import Exercise, Mode


def _fake_run(args, *a, **kw):
    code = 1 if any("bad" in str(arg) for arg in args) else 0
    return subprocess.CompletedProcess(args, code, b"THIS TEST TOO SHALL PASS", b"")


def _exercise(name, mode=Mode.TEST):
    return Exercise(name, Path(f"exercises/{name}.rs"), mode, "")


def test_empty_report_format():
    report = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=0))
    assert report.to_json() == (
        "{\n"
        '  "exercises": [],\n'
        '  "user_name": null,\n'
        '  "statistics": {\n'
        '    "total_exercations": 0,\n'
        '    "total_succeeds": 0,\n'
        '    "total_failures": 0,\n'
        '    "total_time": 0\n'
        "  }\n"
        "}"
    )


def test_report_key_order_and_round_trip():
    report = ExerciseCheckList(
        exercises=[ExerciseResult("intro1", True)],
        statistics=ExerciseStatistics(1, 1, 0, 3),
    )
    data = json.loads(report.to_json())
    assert list(data) == ["exercises", "user_name", "statistics"]
    assert data["exercises"] == [{"name": "intro1", "result": True}]
    assert data["statistics"]["total_time"] == 3


def test_cicvverify_succeeds(tmp_path):
    output = tmp_path / "check_result.json"
    with mock.patch("subprocess.run", side_effect=_fake_run):
        report = cicv_verify([_exercise("testSuccess")], True, output)
    assert report.statistics.total_succeeds == 1
    assert report.statistics.total_failures == 0
    assert json.loads(output.read_text(encoding="utf-8")) == json.loads(report.to_json())


def test_mixed_results_are_counted(tmp_path, capsys):
    output = tmp_path / "check_result.json"
    exercises = [
        _exercise("good_one"),
        _exercise("bad_one"),
        _exercise("good_two", Mode.COMPILE),
    ]
    with mock.patch("subprocess.run", side_effect=_fake_run):
        report = cicv_verify(exercises, True, output)
    stats = report.statistics
    assert stats.total_exercations == 3
    assert stats.total_succeeds == 2
    assert stats.total_failures == 1
    assert stats.total_time >= 0
    results = {r.name: r.result for r in report.exercises}
    assert results == {"good_one": True, "bad_one": False, "good_two": True}
    out = capsys.readouterr().out
    assert "bad_one执行失败" in out
    assert "good_one执行成功" in out


def test_empty_exercise_list_writes_report(tmp_path):
    output = tmp_path / "check_result.json"
    report = cicv_verify([], True, output)
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["exercises"] == []
    assert data["statistics"]["total_exercations"] == 0
    assert report.exercises == []


def test_missing_output_directory_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        cicv_verify([], True, tmp_path / "missing" / "check_result.json")