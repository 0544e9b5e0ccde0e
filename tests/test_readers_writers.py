import io
import random
import threading
import time

import pytest

from syncdemos.readers_writers import AccessReport, Database, main, run


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_read_yields_current_value_and_counts_readers():
    db = Database(value=5)
    with db.read(0) as seen:
        assert seen == 5
        assert db.readcount == 1
        with db.read(1) as again:
            assert again == 5
            assert db.readcount == 2
            assert db.active_readers == [0, 1]
    assert db.readcount == 0


def test_write_stores_value_on_exit():
    db = Database()
    with db.write(3, 42):
        assert db.value == 0
        assert db.active_writers == [3]
        assert db.writecount == 1
    assert db.value == 42
    assert db.writecount == 0
    assert db.active_writers == []


def test_write_failure_keeps_old_value_and_releases():
    db = Database(value=9)
    with pytest.raises(RuntimeError):
        with db.write(0, 1):
            raise RuntimeError("boom")
    assert db.value == 9
    assert db.writecount == 0
    with db.write(1, 2):
        pass
    assert db.value == 2


def test_reader_blocks_writer():
    db = Database()
    entered = threading.Event()

    def writer():
        with db.write(1, 42):
            entered.set()

    with db.read(0):
        thread = threading.Thread(target=writer)
        thread.start()
        assert not entered.wait(0.2)
        assert db.value == 0
    thread.join(2)
    assert entered.is_set()
    assert db.value == 42


def test_writers_exclude_each_other():
    db = Database()
    entered = threading.Event()

    def writer():
        with db.write(1, 8):
            entered.set()

    with db.write(0, 4):
        thread = threading.Thread(target=writer)
        thread.start()
        assert not entered.wait(0.2)
        assert db.active_writers == [0]
    thread.join(2)
    assert entered.is_set()
    assert db.value == 8


def test_waiting_writer_goes_before_new_reader():
    db = Database()
    order = []

    def writer():
        with db.write(1, 7):
            order.append("w")

    def reader():
        with db.read(2) as seen:
            order.append(("r", seen))

    with db.read(0):
        w = threading.Thread(target=writer)
        w.start()
        assert _wait_until(lambda: db.writecount == 1)
        time.sleep(0.1)
        r = threading.Thread(target=reader)
        r.start()
        time.sleep(0.2)
        assert order == []
        assert db.readcount == 1
    w.join(2)
    r.join(2)
    assert order == ["w", ("r", 7)]


def test_unsynchronized_write_overlaps_read():
    db = Database(synchronized=False)
    with db.read(0) as seen:
        with db.write(0, 5):
            assert db.readcount == 1
        assert db.value == 5
        assert seen == 0
    assert db.readcount == 0


def test_run_synchronized_reports_every_access():
    out = io.StringIO()
    report = run(3, 2, rng=random.Random(1), time_scale=0, out=out)
    assert isinstance(report, AccessReport)
    assert sorted(ident for ident, _ in report.reads) == [0, 1, 2]
    assert sorted(ident for ident, _ in report.writes) == [0, 1]
    assert report.alerts == []
    assert report.final_value in {value for _, value in report.writes}
    assert all(0 <= value < 100 for _, value in report.writes)
    text = out.getvalue()
    for ident in range(3):
        assert f"< Leitor {ident} terminou" in text
    for ident in range(2):
        assert f"+ Escritor {ident} terminou" in text


def test_run_readers_only_see_initial_value():
    report = run(4, 0, rng=random.Random(2), time_scale=0, out=io.StringIO())
    assert [value for _, value in report.reads] == [0] * 4
    assert report.writes == []
    assert report.final_value == 0


def test_run_unsynchronized_completes():
    out = io.StringIO()
    report = run(2, 2, synchronized=False, rng=random.Random(3), time_scale=0, out=out)
    assert sorted(ident for ident, _ in report.reads) == [0, 1]
    assert sorted(ident for ident, _ in report.writes) == [0, 1]
    assert report.final_value in {value for _, value in report.writes}
    text = out.getvalue()
    assert "> Leitor 0 tentando acesso" in text
    assert "+ Escritor 1 saindo" in text


@pytest.mark.parametrize(
    "readers, writers, scale",
    [(-1, 0, 1.0), (0, -1, 1.0), (1, 1, -0.5)],
)
def test_run_rejects_bad_arguments(readers, writers, scale):
    with pytest.raises(ValueError):
        run(readers, writers, time_scale=scale, out=io.StringIO())


def test_main_prints_final_message(capsys):
    assert main(["1", "1", "--time-scale", "0"]) == 0
    assert capsys.readouterr().out.endswith("Programa finalizado com sucesso.\n")


def test_main_reports_negative_count(capsys):
    assert main(["-2", "1", "--time-scale", "0"]) == 1
    assert "error:" in capsys.readouterr().err


def test_main_requires_both_counts():
    with pytest.raises(SystemExit):
        main(["1"])