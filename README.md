# syncdemos

This package runs three classic concurrency problems as small threaded
simulations. Each demo has two modes. In the unsafe mode nothing is
synchronized, so races can happen and are printed as alerts. In the
synchronized mode locks and semaphores keep the races from happening.

The messages the demos print are in Portuguese.

## Install

    pip install .

## Commands

Every command accepts two options:

- `--unsafe` runs the demo without any synchronization.
- `--time-scale FACTOR` multiplies every simulated delay. Use `0` to skip the delays. The default is `1.0`.

A negative count or time scale makes the command print `error: ...` to stderr and exit with status 1.

### Bounded buffer (producer/consumer)

    syncdemos-buffer BUFFER_SIZE NUM_PRODUCERS

Each producer thread writes one random value from 0 to 99 into a circular
buffer. A single consumer thread takes one value per producer. Empty slots hold
`-1`.

An alert is printed when a producer overwrites an occupied slot or when the
consumer reads an empty one. In the synchronized mode a mutex and two counting
semaphores guard the buffer. The consumer also prints the state of the buffer
after each item it takes.

### Dining philosophers

    syncdemos-philosophers NUM_PHILOSOPHERS NUM_CYCLES

Philosophers alternate between thinking and eating. Each one eats
`NUM_CYCLES` times, or forever if `NUM_CYCLES` is `-1`.

A philosopher picks up two chopsticks. Even-numbered philosophers take the left
one first and odd-numbered philosophers take the right one first, which
prevents deadlock.

In the synchronized mode each chopstick is a lock, and the demo needs at least
two philosophers. At the end it prints how many meals each philosopher ate and
the largest number eating at the same time.

With `--unsafe`, `NUM_CYCLES` may be left out and defaults to `1`. An alert is
printed when a philosopher takes a chopstick that someone else holds.

### Readers and writers

    syncdemos-readers-writers NUM_READERS NUM_WRITERS

Readers and writers share one integer value. In the synchronized mode:

- Writers get priority over newly arriving readers.
- Writers run one at a time and never alongside readers.
- Readers never see the value change while they are reading.
- The command ends by printing `Programa finalizado com sucesso.`

In the unsafe mode:

- An alert is printed when a reader sees the value change during its read.
- An alert is printed when a writer enters while readers are active.

## Library use

Each module has a `run(...)` function. Its arguments are:

- the two counts;
- `synchronized` (default `True`);
- `rng`, a `random.Random` instance (default: a fresh one);
- `time_scale` (default `1.0`);
- `out`, the output stream (default: `sys.stdout`).

`run` returns a report object:

- `buffer.run` returns a `BufferReport` with `produced`, `consumed`, `alerts` and `final`.
- `philosophers.run` returns a `DinnerStats` with `meals`, `max_concurrent` and `alerts`.
- `readers_writers.run` returns an `AccessReport` with `reads`, `writes`, `alerts` and `final_value`.

Example:

    import io, random
    from syncdemos import buffer

    report = buffer.run(4, 6, synchronized=True, rng=random.Random(1),
                        time_scale=0, out=io.StringIO())
    print(report.consumed)

The building blocks can also be used on their own:

- `buffer.SharedBuffer(size)` has `put(value)` and `take()`. Each returns a `(position, previous value)` pair. `render()` returns the contents as a table.
- `philosophers.DiningTable(count, synchronized=True)` has `pick_up(philosopher, chopstick)` and `put_down(philosopher, chopstick)`. `pick_up` returns the chopstick's previous holder.
- `philosophers.chopstick_order(philosopher, count)` gives the order in which a philosopher picks up the two chopsticks.
- `readers_writers.Database(synchronized=True, value=0)` has two context managers:
  - `read(reader)` yields the value seen on entry.
  - `write(writer, value)` stores `value` on a clean exit.

## Limits

- The threads are scheduled by the operating system. A seeded `rng` fixes the random values and delays, but not the order in which threads interleave.
- Nothing is kept between runs. A report exists only as the object `run` returns.

## Tests

    pip install .[test]
    pytest