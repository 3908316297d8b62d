import os
import re
import socket
from pathlib import Path

import pytest
from filelock import FileLock

from evoengine import PersistenceError, load_result, load_run_config, rerun, run
from evoengine.environment.problems import Parabola2D
from evoengine.metrics import persistence
from evoengine.metrics.persistence import (
    ANYTIME_FILE,
    create_exclusive_file,
    latest_anytime_result,
    make_filename,
    save_anytime_result,
)


def test_make_filename_layout():
    name = make_filename(prefix="evoResult", ext=".pkl")
    host = re.escape(socket.gethostname())
    pattern = rf"evoResult_\d{{8}}_\d{{6}}_{host}_{os.getpid()}_[a-z]{{6}}_\d{{6}}\.pkl"
    assert re.fullmatch(pattern, name)


def test_create_exclusive_file_leaves_no_lock(tmp_path: Path):
    path = create_exclusive_file(tmp_path / "out", prefix="data", ext=".dat")
    assert path.exists() and path.stat().st_size == 0
    assert not list(path.parent.glob("*.lck"))


def test_create_exclusive_file_gives_up_after_ten_tries(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(persistence, "make_filename", lambda prefix, ext: "taken.dat")
    (tmp_path / "taken.dat").write_text("")
    with pytest.raises(PersistenceError, match="10 tries"):
        create_exclusive_file(tmp_path, prefix="data", ext=".dat")


def test_create_exclusive_file_skips_locked_names(tmp_path: Path, monkeypatch):
    names = iter(["busy.dat", "free.dat"])
    monkeypatch.setattr(persistence, "make_filename", lambda prefix, ext: next(names))
    holder = FileLock(str(tmp_path / "busy.dat.lck"))
    with holder:
        path = create_exclusive_file(tmp_path, prefix="data", ext=".dat")
    assert path.name == "free.dat"
    assert not (tmp_path / "busy.dat").exists()


def test_create_exclusive_file_skips_names_created_concurrently(tmp_path: Path, monkeypatch):
    names = iter(["raced.dat", "free.dat"])
    monkeypatch.setattr(persistence, "make_filename", lambda prefix, ext: next(names))
    touch = Path.touch

    def racing_touch(self, *args, **kwargs):
        if self.name == "raced.dat":
            raise FileExistsError(str(self))
        return touch(self, *args, **kwargs)

    monkeypatch.setattr(Path, "touch", racing_touch)
    path = create_exclusive_file(tmp_path, prefix="data", ext=".dat")
    assert path.name == "free.dat"
    assert not list(tmp_path.glob("*.lck"))


def test_anytime_file_written_for_initial_population(tmp_path: Path):
    run(Parabola2D(), popsize=6, generations=0, replay=4, reporting={"anytime": True, "path": str(tmp_path)})
    anytime = latest_anytime_result(tmp_path)
    assert anytime.generations_run == 0
    assert anytime.stats.shape == (1, 8)


def test_anytime_result_is_replaced_atomically(tmp_path: Path):
    save_anytime_result({"generation": 1}, tmp_path)
    save_anytime_result({"generation": 2}, tmp_path)
    assert load_result(tmp_path / ANYTIME_FILE) == {"generation": 2}
    assert not list(tmp_path.glob("tmp0*"))
    assert latest_anytime_result(tmp_path / "missing") is None


def test_failed_rename_is_a_persistence_error(tmp_path: Path, monkeypatch):
    def broken_replace(src, dst):
        raise OSError("read-only")

    monkeypatch.setattr(persistence.os, "replace", broken_replace)
    with pytest.raises(PersistenceError):
        save_anytime_result({"generation": 1}, tmp_path)


def test_load_result_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_result(tmp_path / "nothing.pkl")


def test_run_writes_batch_log_and_anytime_files(tmp_path: Path):
    result = run(
        Parabola2D(),
        popsize=6,
        generations=3,
        replay=5,
        reporting={"batch": True, "logevals": True, "anytime": True, "path": str(tmp_path)},
    )
    assert result.result_path.name.startswith("evoResult_")
    assert result.log_path.name.startswith("evalLog_")
    assert len(result.eval_log) == 6 * 4
    assert {entry["generation"] for entry in result.eval_log} == {0, 1, 2, 3}

    saved = load_result(result.result_path)
    assert saved.solution.fitness == result.solution.fitness
    assert saved.result_path == result.result_path
    assert len(load_result(result.log_path)) == 24

    anytime = latest_anytime_result(tmp_path)
    assert anytime.generations_run == 3
    assert anytime.solution.fitness == result.solution.fitness


def test_rerun_script_writes_replay_config(tmp_path: Path):
    result = run(Parabola2D(), popsize=6, generations=2, replay=77)
    assert rerun(result, script=True, path=tmp_path) is result
    config = load_run_config(tmp_path / "replay.yaml")
    assert config.replay == 77
    assert config.operators.crossover == "Cross2Gene"
    assert load_result(tmp_path / "replay_result.pkl").solution.fitness == result.solution.fitness
