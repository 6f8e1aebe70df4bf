"""Thread-backed task kernel with circular queues, byte streams, SPI queuing, GPIO and flash models, a TCP stream bridge and USB CDC support."""

__version__ = "0.10.0"