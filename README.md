# rtisan

A small real-time task kernel that runs on an ordinary computer. Each task runs on its own thread. Tasks block on wake counters and are woken by other tasks or by a one-millisecond tick.

## Modules

- `rtisan.circqueue`: `CircQueue(elem_size, num_elem)` is a ring buffer of fixed-size elements.
  - It holds at most `num_elem - 1` elements.
  - Zero-copy access goes through `write_region` / `write_advance` and `read_region` / `read_done`.
  - Copying access goes through `write(data)` and `read(count)`.
  - `write_advance` raises `QueueFullError` when the head would meet the tail.
- `rtisan.heap`: `BumpHeap(size)` hands out offsets into a `bytearray` arena.
  - The allocators are `aligned_alloc`, `malloc` (8-byte rounding) and `calloc`. Memory is never returned.
  - They raise `MemoryError` when the arena is exhausted.
- `rtisan.tasks`: `Scheduler` keeps a table of up to 8 `Task`s.
  - `create_task(priority, func, arg)` starts `func(arg)` on a thread. The priority is recorded but does not order execution.
  - Tasks block with `wait` and are woken with `wake`.
  - `sleep` / `sleep_until` wait on the tick counter, which `tick` advances and `run(ticks)` drives once a millisecond.
  - `Lock` is a mutex usable as a context manager.
- `rtisan.stream`: `Stream` pairs a transmit queue with a receive queue.
  - Tasks call `send` and `receive`, which can block.
  - Drivers drain the transmit side with `get_tx_chunk` or `tx_region` / `tx_done`.
  - Drivers fill the receive side with `do_rx_chunk` or `rx_region` / `rx_done`.
  - Callbacks are registered with `set_tx_callback` / `set_rx_callback`.
- `rtisan.spi`: `SpiPeripheral` queues up to 7 `SpiTransfer`s for a driver.
  - Tasks queue transfers with `do_transfers`.
  - The driver takes them with `transfer_next` and reports each with `transfer_completed`.
  - `make_wakeup_callback(scheduler)` builds a completion callback that wakes the requesting task.
- `rtisan.dio`: pin tags and a simulated GPIO bank.
  - Pin tags are made by `make_tag`, `make_init_tag` and `InitTag.encode` / `InitTag.decode`.
  - `GpioBank` holds per-port register values. It provides `init`, `high`, `low`, `write`, `toggle` and `read`.
- `rtisan.led`: `LedBank(leds, gpio)` lights numbered LEDs. An LED whose initial level is high is treated as active low.
- `rtisan.flash`: `FileFlash(path, size, page_size)` emulates 16-bit-word flash in a file.
  - Its methods are `read`, `program` and `erase_page`.
  - Addresses above `0x08000000` are taken relative to that base.
- `rtisan.tcp`: `TcpStreamBridge` moves bytes between one TCP client and a `Stream`.
  - `attach(scheduler, stream, port)` runs the bridge on its own task.
- `rtisan.usb_descriptors`: builders for USB descriptors as `bytes`.
  - Device, language-id, string and serial-number descriptors.
  - A configuration descriptor for two CDC-ACM ports, each with an interface association descriptor.
- `rtisan.cdc`: `CdcInterface(stream, transmit, receive_packet)` connects one CDC port to a `Stream`.
  - It sends at most 64 bytes per packet.
  - It handles `SET_LINE_CODING` / `GET_LINE_CODING` through `LineCoding`.
- `rtisan.app`: `System` / `build_system(port)` create a scheduler and two byte streams. `main` is the command below.

## Installation

```
pip install .
```

## Running

```
rtisan [--port NUMBER] [--ticks N]
```

The command does three things:

1. It creates two streams.
2. It attaches the second stream to a TCP listener on port 3133, or on the one given by `--port`.
3. It runs the tick loop, forever or for `--ticks` ticks.

Connect with any TCP client, for example `nc localhost 3133`.

## Library use

```python
from rtisan.circqueue import CircQueue

q = CircQueue(1, 8)          # holds up to 7 one-byte elements
q.write(b"hello")
assert q.read(5) == b"hello"
```

```python
from rtisan.usb_descriptors import device_descriptor, string_descriptor

desc = device_descriptor()
name = string_descriptor("RTisan")
```

## What it does not do

- No hardware is touched.
  - GPIO, LEDs and flash are simulated in memory or in a file.
  - There is no USB device stack: `CdcInterface` only calls the `transmit` and `receive_packet` functions you give it.
  - There is no SPI bus driver: `SpiPeripheral` only queues transfers for a driver you supply.
- Task priorities are stored but do not decide which task runs; the operating system schedules the threads.
- The `rtisan` command has no LEDs configured and starts no application task.
- Its first stream is not connected to anything. Only the second is reachable, over TCP.

## Tests

```
pip install .[test]
pytest
```