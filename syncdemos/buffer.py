"""Bounded buffer shared by producer threads and a single consumer thread."""

from __future__ import annotations

import argparse
import random
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import TextIO

EMPTY = -1


class _Console:
    """Serialises lines written by several threads to one stream."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._lock = threading.Lock()

    def say(self, text: str) -> None:
        with self._lock:
            self._out.write(text + "\n")
            self._out.flush()


def _render(slots: list[int], title: str, label: str) -> str:
    rows = "".join(f"\ti: {index} | {label}: {value}\n" for index, value in enumerate(slots))
    return f"\t== {title} ==\n{rows}"


class SharedBuffer:
    """A circular buffer of integers where ``EMPTY`` marks a free slot."""

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError("buffer size must be at least 1")
        self.slots = [EMPTY] * size
        self.write_pos = 0
        self.read_pos = 0

    @property
    def size(self) -> int:
        return len(self.slots)

    def put(self, value: int) -> tuple[int, int]:
        """Store ``value`` at the write position; return that position and what it held."""
        position = self.write_pos
        previous = self.slots[position]
        self.slots[position] = value
        self.write_pos = (position + 1) % self.size
        return position, previous

    def take(self) -> tuple[int, int]:
        """Clear the read position; return that position and the value it held."""
        position = self.read_pos
        value = self.slots[position]
        self.slots[position] = EMPTY
        self.read_pos = (position + 1) % self.size
        return position, value

    def render(self) -> str:
        """Return the buffer contents as a printable table."""
        return _render(self.slots, "BUFFER", "v")


@dataclass
class BufferReport:
    """What happened during one run of the producer/consumer demo."""

    produced: list[tuple[int, int]] = field(default_factory=list)
    consumed: list[int] = field(default_factory=list)
    alerts: list[str] = field(default_factory=list)
    final: list[int] = field(default_factory=list)


class _Demo:
    def __init__(
        self,
        buffer: SharedBuffer,
        producers: int,
        rng: random.Random,
        time_scale: float,
        console: _Console,
    ) -> None:
        self.buffer = buffer
        self.producers = producers
        self.rng = rng
        self.time_scale = time_scale
        self.console = console
        self.report = BufferReport()
        self.mutex = threading.Lock()
        self.full = threading.Semaphore(0)
        self.free = threading.Semaphore(buffer.size)

    def pause(self, seconds: float) -> None:
        delay = seconds * self.time_scale
        if delay > 0:
            time.sleep(delay)

    def short_pause(self) -> None:
        self.pause(self.rng.randrange(1_000_000) / 1_000_000)

    def alert(self, title: str, message: str) -> None:
        header = f"==== {title} ===="
        self.console.say(f"{header}\n{message}\n{'=' * len(header)}")
        self.report.alerts.append(message)

    # Version without any synchronization: races show up as alerts.

    def unsafe_consumer(self) -> None:
        say = self.console.say
        self.short_pause()
        for _ in range(self.producers):
            say("- Consumidor esperando por recurso!")
            say(self.buffer.render())
            say("- Consumidor entrou em ação!")
            say(self.buffer.render())
            say(f"\t- Consumidor vai limpar posição {self.buffer.read_pos}")
            position, value = self.buffer.take()
            say(f"\t- Consumiu o valor: {value}")
            if value == EMPTY:
                self.alert("ALERTA DO CONSUMIDOR", f"Posicao {position} estava vazia")
            self.report.consumed.append(value)

    def unsafe_producer(self, ident: int) -> None:
        say = self.console.say
        self.short_pause()
        say(f"> Produtor {ident} esperando por recurso!")
        say(f"> Produtor {ident} entrou em ação!")
        value = self.rng.randrange(100)
        position = self.buffer.write_pos
        occupant = self.buffer.slots[position]
        if occupant != EMPTY:
            self.alert(
                f"ALERTA DO PRODUTOR {ident}",
                f"Posicao {position} ocupada com o valor {occupant}",
            )
        say(f"\t> Produtor {ident} vai gravar o valor {value} na pos {position}")
        self.buffer.put(value)
        self.report.produced.append((ident, value))

    # Version guarded by a mutex and two counting semaphores.

    def safe_consumer(self) -> None:
        say = self.console.say
        for _ in range(self.producers):
            say("- Consumidor esperando por recurso!")
            self.full.acquire()
            with self.mutex:
                position, value = self.buffer.take()
                say(f"- Consumidor retirando valor da posição {position}: {value}")
                if value == EMPTY:
                    self.alert("ALERTA DO CONSUMIDOR", f"Posição {position} estava vazia")
                self.report.consumed.append(value)
            self.free.release()
            duration = 2 + self.rng.randrange(8)
            say(f"- Consumidor está consumindo o valor {value}... ({duration}s)")
            self.pause(duration)
            with self.mutex:
                state = _render(self.buffer.slots, "ESTADO DO BUFFER", "valor")
            say(state)

    def safe_producer(self, ident: int) -> None:
        say = self.console.say
        duration = 2 + self.rng.randrange(8)
        say(f"> Produtor {ident} está produzindo um valor... ({duration}s)")
        self.pause(duration)
        self.free.acquire()
        with self.mutex:
            value = self.rng.randrange(100)
            position = self.buffer.write_pos
            say(f"> Produtor {ident} vai gravar valor {value} na posição {position}")
            _, previous = self.buffer.put(value)
            if previous != EMPTY:
                self.alert(
                    f"ALERTA DO PRODUTOR {ident}",
                    f"Posição {position} ocupada com valor {previous}",
                )
            self.report.produced.append((ident, value))
        self.full.release()


def run(
    buffer_size: int,
    producers: int,
    synchronized: bool = True,
    rng: random.Random | None = None,
    time_scale: float = 1.0,
    out: TextIO | None = None,
) -> BufferReport:
    """Run one producer thread per item and a consumer that takes them all."""
    if producers < 0:
        raise ValueError("number of producers cannot be negative")
    if time_scale < 0:
        raise ValueError("time scale cannot be negative")
    buffer = SharedBuffer(buffer_size)
    demo = _Demo(
        buffer,
        producers,
        rng if rng is not None else random.Random(),
        time_scale,
        _Console(out if out is not None else sys.stdout),
    )
    consumer_target = demo.safe_consumer if synchronized else demo.unsafe_consumer
    producer_target = demo.safe_producer if synchronized else demo.unsafe_producer

    consumer = threading.Thread(target=consumer_target, name="consumer")
    consumer.start()
    workers = [
        threading.Thread(target=producer_target, args=(ident,), name=f"producer-{ident}")
        for ident in range(producers)
    ]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    consumer.join()

    demo.report.final = list(buffer.slots)
    return demo.report


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point for the producer/consumer demo."""
    parser = argparse.ArgumentParser(
        prog="syncdemos-buffer",
        description="Producers and one consumer sharing a bounded buffer.",
    )
    parser.add_argument("buffer_size", type=int, help="number of slots in the buffer")
    parser.add_argument("producers", type=int, help="number of producer threads")
    parser.add_argument(
        "--unsafe", action="store_true", help="run without any synchronization"
    )
    parser.add_argument(
        "--time-scale", type=float, default=1.0, help="multiplier applied to every delay"
    )
    args = parser.parse_args(argv)
    try:
        run(
            args.buffer_size,
            args.producers,
            synchronized=not args.unsafe,
            time_scale=args.time_scale,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0