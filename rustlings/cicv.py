"""Grade every exercise at once and record the results as JSON."""

from __future__ import annotations

import json
import os
import threading
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path

from rustlings.exercise import Exercise
from rustlings.run import run
from rustlings.verify import VerificationFailed

DEFAULT_OUTPUT = Path(".github/result/check_result.json")
_RULE = "=" * 31


@dataclass
class ExerciseResult:
    """Whether one exercise passed."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals over a grading run."""

    total_exercations: int = 0
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """The full report of a grading run."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(default_factory=ExerciseStatistics)

    def to_json(self) -> str:
        """Serialise the report as indented JSON."""
        data = {
            "exercises": [asdict(result) for result in self.exercises],
            "user_name": self.user_name,
            "statistics": asdict(self.statistics),
        }
        return json.dumps(data, indent=2, ensure_ascii=False)


def _now() -> int:
    return int(time.time())


def cicv_verify(
    exercises: Iterable[Exercise],
    verbose: bool = True,
    output_path: str | os.PathLike = DEFAULT_OUTPUT,
) -> ExerciseCheckList:
    """Run all exercises concurrently, write the report and return it."""
    exercises = list(exercises)
    started = _now()
    total = len(exercises)
    check_list = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()
    rights = 0

    def grade(exercise: Exercise, task_start: int) -> None:
        nonlocal rights
        try:
            run(exercise, verbose)
        except VerificationFailed:
            passed = False
        else:
            passed = True
        with lock:
            if passed:
                rights += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {rights}")
            print(f"当前修改试卷耗时: {_now() - task_start} s")
            check_list.exercises.append(ExerciseResult(exercise.name, passed))
            if passed:
                check_list.statistics.total_succeeds += 1
            else:
                check_list.statistics.total_failures += 1

    with ThreadPoolExecutor() as pool:
        futures = [pool.submit(grade, exercise, _now()) for exercise in exercises]
        for future in futures:
            future.result()

    total_time = _now() - started
    print(f"{_RULE}试卷批改完成,总耗时: {total_time} s; {_RULE}===")
    check_list.statistics.total_time = total_time
    Path(output_path).write_text(check_list.to_json(), encoding="utf-8")
    return check_list