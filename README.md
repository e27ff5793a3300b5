# ztools

Small building blocks for long-running services. They use only the standard library.

## Modules

- `ztools.hashing`
  - `Fnv32Hash().sum(key)` returns the 32-bit FNV-1 hash of a string (UTF-8 encoded) or of bytes.
  - `default_hash()` returns an `Fnv32Hash`.
- `ztools.shardmap`
  - `ShardLockMap(hasher=None, shard_count=None)` is a thread-safe map with string keys.
  - It is split into locked shards. There are 32 shards unless `shard_count` is given.
  - Methods:
    - `get`, `set`, `set_nx` and `mset`.
    - `has`, and `in` through `__contains__`.
    - `remove` and `remove_cb`.
    - `pop`, which raises `KeyError` when the key is missing.
    - `clear`, `count`, `len()` and `is_empty`.
    - `iter_buffered`, which gives `Entry(key, value)` tuples from a snapshot.
    - `items`, `keys` and `iter_cb`.
    - `to_json`, which writes compact JSON with sorted keys.
    - `load_json`, which merges a JSON object into the map.
- `ztools.snowflake`
  - `IDWorker(worker_id)` makes 64-bit IDs. Each ID is built from:
    - a millisecond timestamp,
    - a 10-bit worker id (0–1023),
    - a 12-bit sequence that counts within one millisecond.
  - An out-of-range worker id raises `ValueError`.
  - `next_id()` raises `ClockMovedBackwardsError` if the system clock goes back.
- `ztools.delayfunc`
  - `DelayFunc(func, args)` holds a function and its arguments.
  - `call()` runs the function. An exception raised by the function is logged and not propagated.
- `ztools.timer`
  - `unix_milli()` returns the current time in milliseconds.
  - `Timer` holds a `DelayFunc` due at an absolute time in milliseconds.
  - `Timer.at(delay_func, unix_nano)` and `Timer.after(delay_func, seconds)` create timers.
  - `run()` waits in a daemon thread, then calls the function. It returns the thread.
- `ztools.timewheel`
  - `TimeWheel(name, interval, scales, max_cap)` is a ring of slots. `interval` is given in milliseconds.
  - Wheels can be chained with `add_time_wheel` (hour → minute → second).
  - Methods:
    - `add_timer` and `remove_timer`.
    - `tick()` advances the wheel one slot.
    - `run()` and `stop()` start and stop a background thread that ticks the wheel.
    - `timers_within(seconds)` takes the due timers out of the lowest wheel's current slot.
- `ztools.scheduler`
  - `TimerScheduler()` builds and starts an hour/minute/second wheel set.
  - `create_timer_at(delay_func, unix_nano)` and `create_timer_after(delay_func, seconds)` return timer IDs.
  - `cancel_timer(timer_id)` removes a timer.
  - After `start()`, due `DelayFunc`s are put on the `triggers` queue.
  - `stop()` shuts down the scheduler thread and all the wheels.
  - `new_auto_exec_timer_scheduler()` returns a started scheduler. It calls each due function in its own thread.
- `ztools.rotating`
  - `RotatingWriter(path)` appends bytes or text to a log file. When the file gets no suffix, `.log` is added.
  - Rotation:
    - The file is rotated when the day changes.
    - It is also rotated when it would reach `max_size` (64 MiB by default).
    - A rotated file is renamed with its creation time, zipped next to the log, and the unzipped copy is removed.
  - Zipped backups older than `max_age` days (31 by default) are deleted when the day changes.
  - Setting `console = True` also copies every write to standard error.
  - Buffered data is flushed every 5 seconds, on `flush()` and on `close()`.
  - The writer is a context manager.
  - `zip_to_file(dst, src)` and `zip_path(fileobj, src)` write a deflated zip of a file or directory.

## Install

```
pip install .
```

With the test requirements:

```
pip install ".[test]"
```

## Examples

```python
from ztools.shardmap import ShardLockMap

m = ShardLockMap()
m.set("user", "alice")
m.set_nx("user", "bob")        # False: the key is already there
print(m.get("user"), len(m))   # alice 1
print(m.to_json())             # {"user":"alice"}
```

```python
from ztools.snowflake import IDWorker

worker = IDWorker(1)
print(worker.next_id())
```

```python
from ztools.delayfunc import DelayFunc
from ztools.scheduler import new_auto_exec_timer_scheduler

scheduler = new_auto_exec_timer_scheduler()
timer_id = scheduler.create_timer_after(DelayFunc(print, ["hello", "world"]), 2.0)
# scheduler.cancel_timer(timer_id) would cancel it
scheduler.stop()
```

```python
from ztools.rotating import RotatingWriter

with RotatingWriter("logs/app.log") as writer:
    writer.write(b"service started\n")
```

## What it does not do

This is a library of parts only. It has no network server, no command-line tool and no persistent storage beyond the log files that `RotatingWriter` writes.

## Tests

```
pytest
```