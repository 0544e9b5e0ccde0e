"""Dining philosophers sharing chopsticks around a round table."""

from __future__ import annotations

import argparse
import random
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import TextIO

FREE = -1


class _Console:
    """Serialises lines written by several threads to one stream."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._lock = threading.Lock()

    def say(self, text: str) -> None:
        with self._lock:
            self._out.write(text + "\n")
            self._out.flush()


def chopstick_order(philosopher: int, count: int) -> tuple[int, int]:
    """Return the chopsticks in the order a philosopher picks them up.

    Even philosophers start with the left one, odd ones with the right one,
    which breaks the circular wait that causes deadlock.
    """
    if count < 1:
        raise ValueError("there must be at least one philosopher")
    if not 0 <= philosopher < count:
        raise ValueError(f"philosopher {philosopher} is not at a table of {count}")
    left = philosopher
    right = (philosopher + 1) % count
    return (left, right) if philosopher % 2 == 0 else (right, left)


class DiningTable:
    """Chopsticks on the table and who is holding each of them."""

    def __init__(self, count: int, synchronized: bool = True) -> None:
        if count < 1:
            raise ValueError("there must be at least one chopstick")
        self.holders = [FREE] * count
        self.synchronized = synchronized
        self._locks = [threading.Lock() for _ in range(count)] if synchronized else []

    @property
    def count(self) -> int:
        return len(self.holders)

    def pick_up(self, philosopher: int, chopstick: int) -> int:
        """Take a chopstick, waiting for it when synchronized; return its previous holder."""
        if self.synchronized:
            self._locks[chopstick].acquire()
        previous = self.holders[chopstick]
        self.holders[chopstick] = philosopher
        return previous

    def put_down(self, philosopher: int, chopstick: int) -> None:
        """Return a chopstick to the table."""
        if self.synchronized:
            if self.holders[chopstick] != philosopher:
                raise ValueError(
                    f"philosopher {philosopher} does not hold chopstick {chopstick}"
                )
            self.holders[chopstick] = FREE
            self._locks[chopstick].release()
        else:
            self.holders[chopstick] = FREE


@dataclass
class DinnerStats:
    """Meals eaten, peak concurrency and conflicts seen during a dinner."""

    meals: list[int] = field(default_factory=list)
    max_concurrent: int = 0
    alerts: list[str] = field(default_factory=list)


class _Dinner:
    def __init__(
        self,
        count: int,
        cycles: int,
        synchronized: bool,
        rng: random.Random,
        time_scale: float,
        console: _Console,
    ) -> None:
        self.count = count
        self.cycles = cycles
        self.synchronized = synchronized
        self.rng = rng
        self.time_scale = time_scale
        self.console = console
        self.table = DiningTable(count, synchronized)
        self.stats = DinnerStats(meals=[0] * count)
        self.eating = 0
        self.stats_lock = threading.Lock()

    def pause(self, seconds: float) -> None:
        delay = seconds * self.time_scale
        if delay > 0:
            time.sleep(delay)

    def short_pause(self) -> None:
        self.pause(self.rng.randrange(1_000_000) / 1_000_000)

    def take(self, philosopher: int, chopstick: int) -> None:
        previous = self.table.pick_up(philosopher, chopstick)
        if previous != FREE:
            self.console.say(
                f"===== ALERTA DO FILOSOFO {philosopher} =====\n"
                f"===== CHOPSTICK[{chopstick}] EM USO POR {previous} ====="
            )
            self.stats.alerts.append(f"CHOPSTICK[{chopstick}] EM USO POR {previous}")
        if self.synchronized:
            self.console.say(f"Filosofo {philosopher} pegou o hashi {chopstick}")
        else:
            self.console.say(f"+ Filosofo {philosopher} pegou o chopstick[{chopstick}]")

    def release(self, philosopher: int, chopstick: int) -> None:
        self.table.put_down(philosopher, chopstick)
        if self.synchronized:
            self.console.say(f"Filosofo {philosopher} liberou o hashi {chopstick}")
        else:
            self.console.say(f"- Filosofo {philosopher} liberou o chopstick[{chopstick}]")

    def think(self, philosopher: int) -> None:
        if self.synchronized:
            duration = self.rng.randrange(3) + 1
            self.console.say(f"Filosofo {philosopher} está pensando por {duration} segundos")
            self.pause(duration)
        else:
            self.console.say(f"\t> Filosofo {philosopher} pensando")
            self.short_pause()

    def eat(self, philosopher: int) -> None:
        if self.synchronized:
            duration = self.rng.randrange(3) + 1
        else:
            duration = self.rng.randrange(1_000_000) / 1_000_000
            self.console.say(f"\t> Filosofo {philosopher} comendo")
        with self.stats_lock:
            self.eating += 1
            self.stats.max_concurrent = max(self.stats.max_concurrent, self.eating)
            if self.synchronized:
                self.console.say(
                    f"Filosofo {philosopher} começou a comer ({self.eating} comendo agora)"
                )
        self.pause(duration)
        with self.stats_lock:
            self.eating -= 1
            if self.synchronized:
                self.console.say(
                    f"Filosofo {philosopher} terminou de comer ({self.eating} comendo agora)"
                )

    def philosopher(self, ident: int) -> None:
        done = 0
        while self.cycles == -1 or done < self.cycles:
            self.think(ident)
            first, second = chopstick_order(ident, self.count)
            self.take(ident, first)
            self.take(ident, second)
            self.eat(ident)
            self.stats.meals[ident] += 1
            done += 1
            self.release(ident, first)
            self.release(ident, second)

    def print_stats(self) -> None:
        lines = ["\n=== Estatísticas finais ==="]
        lines.extend(
            f"Filosofo {ident} comeu {meals} vezes"
            for ident, meals in enumerate(self.stats.meals)
        )
        lines.append(
            f"Máximo de filósofos comendo simultaneamente: {self.stats.max_concurrent}"
        )
        self.console.say("\n".join(lines))


def run(
    philosophers: int,
    cycles: int = 1,
    synchronized: bool = True,
    rng: random.Random | None = None,
    time_scale: float = 1.0,
    out: TextIO | None = None,
) -> DinnerStats:
    """Seat the philosophers and let each eat ``cycles`` times (forever when -1)."""
    if philosophers < 1:
        raise ValueError("there must be at least one philosopher")
    if synchronized and philosophers < 2:
        raise ValueError("a single philosopher would wait for his own chopstick forever")
    if time_scale < 0:
        raise ValueError("time scale cannot be negative")
    dinner = _Dinner(
        philosophers,
        cycles,
        synchronized,
        rng if rng is not None else random.Random(),
        time_scale,
        _Console(out if out is not None else sys.stdout),
    )
    threads = [
        threading.Thread(target=dinner.philosopher, args=(ident,), name=f"philosopher-{ident}")
        for ident in range(philosophers)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    if synchronized:
        dinner.print_stats()
    return dinner.stats


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point for the dining philosophers demo."""
    parser = argparse.ArgumentParser(
        prog="syncdemos-philosophers",
        description="Philosophers around a table sharing one chopstick with each neighbour.",
    )
    parser.add_argument("philosophers", type=int, help="number of philosophers")
    parser.add_argument(
        "cycles", type=int, nargs="?", help="meals per philosopher (-1 means forever)"
    )
    parser.add_argument(
        "--unsafe", action="store_true", help="run without any synchronization"
    )
    parser.add_argument(
        "--time-scale", type=float, default=1.0, help="multiplier applied to every delay"
    )
    args = parser.parse_args(argv)
    if args.cycles is None:
        if not args.unsafe:
            parser.error("the number of cycles is required")
        args.cycles = 1
    try:
        run(
            args.philosophers,
            args.cycles,
            synchronized=not args.unsafe,
            time_scale=args.time_scale,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0