import io
import random

import pytest

from syncdemos.buffer import EMPTY, SharedBuffer, main, run


def test_new_buffer_is_empty():
    buffer = SharedBuffer(3)
    assert buffer.slots == [EMPTY, EMPTY, EMPTY]
    assert buffer.size == 3


def test_buffer_size_must_be_positive():
    with pytest.raises(ValueError):
        SharedBuffer(0)


def test_put_then_take_is_first_in_first_out():
    buffer = SharedBuffer(4)
    buffer.put(5)
    buffer.put(7)
    assert buffer.take() == (0, 5)
    assert buffer.take() == (1, 7)
    assert buffer.slots == [EMPTY] * 4


def test_put_wraps_and_reports_overwritten_value():
    buffer = SharedBuffer(2)
    assert buffer.put(1) == (0, EMPTY)
    assert buffer.put(2) == (1, EMPTY)
    assert buffer.put(3) == (0, 1)
    assert buffer.slots == [3, 2]


def test_take_from_empty_slot_returns_marker():
    buffer = SharedBuffer(2)
    assert buffer.take() == (0, EMPTY)
    assert buffer.read_pos == 1


def test_render_format():
    buffer = SharedBuffer(2)
    buffer.put(42)
    assert buffer.render() == "\t== BUFFER ==\n\ti: 0 | v: 42\n\ti: 1 | v: -1\n"


@pytest.mark.parametrize("size,producers", [(1, 5), (3, 8), (5, 2)])
def test_synchronized_run_consumes_everything_produced(size, producers):
    out = io.StringIO()
    report = run(size, producers, synchronized=True, rng=random.Random(7), time_scale=0, out=out)
    assert sorted(report.consumed) == sorted(value for _, value in report.produced)
    assert sorted(ident for ident, _ in report.produced) == list(range(producers))
    assert report.alerts == []
    assert report.final == [EMPTY] * size
    assert all(0 <= value < 100 for value in report.consumed)


def test_synchronized_run_writes_progress():
    out = io.StringIO()
    run(2, 3, synchronized=True, rng=random.Random(1), time_scale=0, out=out)
    text = out.getvalue()
    assert text.count("vai gravar valor") == 3
    assert text.count("Consumidor retirando valor") == 3
    assert "== ESTADO DO BUFFER ==" in text


def test_unsynchronized_run_accounts_for_every_read():
    report = run(2, 6, synchronized=False, rng=random.Random(3), time_scale=0, out=io.StringIO())
    assert len(report.consumed) == 6
    assert len(report.produced) == 6
    empty_reads = sum("estava vazia" in alert for alert in report.alerts)
    assert empty_reads == report.consumed.count(EMPTY)


def test_run_with_no_producers():
    report = run(3, 0, rng=random.Random(0), time_scale=0, out=io.StringIO())
    assert report.consumed == []
    assert report.final == [EMPTY] * 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"buffer_size": 0, "producers": 1},
        {"buffer_size": 2, "producers": -1},
        {"buffer_size": 2, "producers": 1, "time_scale": -1},
    ],
)
def test_run_rejects_bad_arguments(kwargs):
    with pytest.raises(ValueError):
        run(out=io.StringIO(), **kwargs)


def test_main_runs(capsys):
    assert main(["2", "3", "--time-scale", "0"]) == 0
    assert capsys.readouterr().out.count("vai gravar valor") == 3


def test_main_unsafe_runs(capsys):
    assert main(["2", "2", "--unsafe", "--time-scale", "0"]) == 0
    assert capsys.readouterr().out.count("Consumiu o valor") == 2


def test_main_reports_invalid_size(capsys):
    assert main(["0", "1", "--time-scale", "0"]) == 1
    assert "error" in capsys.readouterr().err


def test_main_requires_arguments():
    with pytest.raises(SystemExit):
        main([])