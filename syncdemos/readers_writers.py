"""Readers and writers sharing one value, with writers given priority."""

from __future__ import annotations

import argparse
import random
import sys
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, TextIO


class _Console:
    """Serialises lines written by several threads to one stream."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._lock = threading.Lock()

    def say(self, text: str) -> None:
        with self._lock:
            self._out.write(text + "\n")
            self._out.flush()


class Database:
    """A shared value guarded by the writer-priority readers/writers protocol.

    When ``synchronized`` is false, no locking is done at all and readers and
    writers may overlap freely, which lets the races be observed.
    """

    def __init__(self, synchronized: bool = True, value: int = 0) -> None:
        self.synchronized = synchronized
        self.value = value
        self.active_readers: list[int] = []
        self.active_writers: list[int] = []
        self.writecount = 0
        self._readcount_lock = threading.Lock()
        self._writecount_lock = threading.Lock()
        self._queue = threading.Semaphore(1)
        self._resource = threading.Semaphore(1)

    @property
    def readcount(self) -> int:
        """Number of readers currently inside their critical section."""
        return len(self.active_readers)

    @contextmanager
    def read(self, reader: int) -> Iterator[int]:
        """Enter the critical section as ``reader`` and yield the value seen on entry."""
        if not self.synchronized:
            self.active_readers.append(reader)
            try:
                yield self.value
            finally:
                self.active_readers.remove(reader)
            return

        with self._queue:
            with self._readcount_lock:
                self.active_readers.append(reader)
                if len(self.active_readers) == 1:
                    self._resource.acquire()
        try:
            yield self.value
        finally:
            with self._readcount_lock:
                self.active_readers.remove(reader)
                if not self.active_readers:
                    self._resource.release()

    @contextmanager
    def write(self, writer: int, value: int) -> Iterator[None]:
        """Enter the critical section as ``writer``; ``value`` is stored on a clean exit."""
        if not self.synchronized:
            self.active_writers.append(writer)
            try:
                yield
                self.value = value
            finally:
                self.active_writers.remove(writer)
            return

        with self._writecount_lock:
            self.writecount += 1
            if self.writecount == 1:
                self._queue.acquire()
        try:
            with self._resource:
                self.active_writers.append(writer)
                try:
                    yield
                    self.value = value
                finally:
                    self.active_writers.remove(writer)
        finally:
            with self._writecount_lock:
                self.writecount -= 1
                if self.writecount == 0:
                    self._queue.release()


@dataclass
class AccessReport:
    """What happened during one run of the readers/writers demo."""

    reads: list[tuple[int, int]] = field(default_factory=list)
    writes: list[tuple[int, int]] = field(default_factory=list)
    alerts: list[str] = field(default_factory=list)
    final_value: int = 0


class _Demo:
    def __init__(
        self,
        database: Database,
        rng: random.Random,
        time_scale: float,
        console: _Console,
    ) -> None:
        self.db = database
        self.rng = rng
        self.time_scale = time_scale
        self.console = console
        self.report = AccessReport()

    def pause(self, seconds: float) -> None:
        delay = seconds * self.time_scale
        if delay > 0:
            time.sleep(delay)

    def short_pause(self) -> None:
        self.pause(self.rng.randrange(1_000_000) / 1_000_000)

    def timed(self, message: str, limit: int) -> None:
        duration = self.rng.randrange(limit) + 1
        self.console.say(f"\t-> {message} por {duration} segundos...")
        self.pause(duration)

    # Version without any synchronization: races show up as alerts.

    def unsafe_reader(self, ident: int) -> None:
        say = self.console.say
        self.short_pause()
        say(f"> Leitor {ident} tentando acesso")
        with self.db.read(ident) as seen:
            say(f"> Leitor {ident} conseguiu acesso")
            say(f"\t> Leitor {ident} acessando")
            self.short_pause()
            current = self.db.value
            say(
                f"\t> Leitor {ident} - tmp: {seen} - shared: {current}"
                f" - readcount: {self.db.readcount}"
            )
            if seen != current:
                message = f"shared_in: {seen} - shared: {current}"
                say(
                    "\t==== ALERTA DO LEITOR ====\n"
                    "\t> Valor interno diferente do compartilhado\n"
                    f"\t{message}\n"
                    "\t=========================="
                )
                self.report.alerts.append(message)
            self.report.reads.append((ident, seen))
            say(f"< Leitor {ident} liberando acesso")

    def unsafe_writer(self, ident: int) -> None:
        say = self.console.say
        self.short_pause()
        say(f"+ Escritor {ident} tentando acesso")
        value = self.rng.randrange(100)
        with self.db.write(ident, value):
            say(f"\t+ Escritor {ident} conseguiu acesso")
            readers = self.db.readcount
            if readers > 0:
                message = f"Readcount possui valor: {readers}"
                say(
                    "==== ALERTA DO ESCRITOR ====\n"
                    f"{message}\n"
                    "============================"
                )
                self.report.alerts.append(message)
            say(f"\t+ Escritor {ident} gravando o valor {value} em shared")
            self.short_pause()
        self.report.writes.append((ident, value))
        say(f"+ Escritor {ident} saindo")

    # Version guarded by the writer-priority protocol.

    def safe_reader(self, ident: int) -> None:
        say = self.console.say
        self.short_pause()
        self.timed("Pensando nos dados", 10)
        with self.db.read(ident) as seen:
            say(f"> Leitor {ident} lendo")
            self.timed("LENDO o banco de dados", 5)
            self.report.reads.append((ident, seen))
        self.timed("Usando conhecimento adquirido", 15)
        say(f"< Leitor {ident} terminou")

    def safe_writer(self, ident: int) -> None:
        say = self.console.say
        self.short_pause()
        self.timed("Pensando nos dados", 10)
        value = self.rng.randrange(100)
        with self.db.write(ident, value):
            say(f"+ Escritor {ident} escrevendo")
            self.timed("Escrevendo no banco de dados", 10)
            say(f"\t+ Escritor {ident} escreveu valor {value}")
            self.report.writes.append((ident, value))
        say(f"+ Escritor {ident} terminou")


def run(
    readers: int,
    writers: int,
    synchronized: bool = True,
    rng: random.Random | None = None,
    time_scale: float = 1.0,
    out: TextIO | None = None,
) -> AccessReport:
    """Start the reader and writer threads and wait for all of them."""
    if readers < 0:
        raise ValueError("number of readers cannot be negative")
    if writers < 0:
        raise ValueError("number of writers cannot be negative")
    if time_scale < 0:
        raise ValueError("time scale cannot be negative")
    database = Database(synchronized)
    demo = _Demo(
        database,
        rng if rng is not None else random.Random(),
        time_scale,
        _Console(out if out is not None else sys.stdout),
    )
    reader_target = demo.safe_reader if synchronized else demo.unsafe_reader
    writer_target = demo.safe_writer if synchronized else demo.unsafe_writer

    threads = [
        threading.Thread(target=reader_target, args=(ident,), name=f"reader-{ident}")
        for ident in range(readers)
    ]
    threads += [
        threading.Thread(target=writer_target, args=(ident,), name=f"writer-{ident}")
        for ident in range(writers)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    demo.report.final_value = database.value
    return demo.report


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point for the readers/writers demo."""
    parser = argparse.ArgumentParser(
        prog="syncdemos-readers-writers",
        description="Readers and writers sharing one value.",
    )
    parser.add_argument("readers", type=int, help="number of reader threads")
    parser.add_argument("writers", type=int, help="number of writer threads")
    parser.add_argument(
        "--unsafe", action="store_true", help="run without any synchronization"
    )
    parser.add_argument(
        "--time-scale", type=float, default=1.0, help="multiplier applied to every delay"
    )
    args = parser.parse_args(argv)
    try:
        run(
            args.readers,
            args.writers,
            synchronized=not args.unsafe,
            time_scale=args.time_scale,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    if not args.unsafe:
        print("Programa finalizado com sucesso.")
    return 0