"""CDC-ACM serial interface that moves bytes between USB packets and a stream."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Callable

from rtisan.stream import Stream

CDC_PACKET_SIZE = 64
_LINE_CODING = struct.Struct("<IBBB")


class CdcRequest(enum.IntEnum):
    """Class-specific requests of the communications device class."""

    SEND_ENCAPSULATED_COMMAND = 0x00
    GET_ENCAPSULATED_RESPONSE = 0x01
    SET_COMM_FEATURE = 0x02
    GET_COMM_FEATURE = 0x03
    CLEAR_COMM_FEATURE = 0x04
    SET_LINE_CODING = 0x20
    GET_LINE_CODING = 0x21
    SET_CONTROL_LINE_STATE = 0x22
    SEND_BREAK = 0x23


@dataclass
class LineCoding:
    """Serial line settings as the host sees them."""

    bitrate: int = 115200
    format: int = 0
    parity_type: int = 0
    data_type: int = 8

    def encode(self) -> bytes:
        """Seven-byte wire form: bitrate, stop bits, parity, data bits."""
        try:
            return _LINE_CODING.pack(self.bitrate, self.format,
                                     self.parity_type, self.data_type)
        except struct.error as exc:
            raise ValueError("line coding field out of range") from exc

    @classmethod
    def decode(cls, payload: bytes) -> LineCoding:
        """Parse the seven-byte wire form; extra bytes are ignored."""
        if len(payload) < _LINE_CODING.size:
            raise ValueError("line coding needs seven bytes")
        bitrate, fmt, parity, data = _LINE_CODING.unpack_from(payload)
        return cls(bitrate, fmt, parity, data)


class CdcInterface:
    """Glue between one USB CDC port and a byte stream.

    ``transmit(data)`` starts sending one packet to the host; the USB side
    reports its end through :meth:`tx_done`.  ``receive_packet()`` arms the
    endpoint for one packet from the host, delivered through :meth:`receive`.
    """

    def __init__(self, stream: Stream, transmit: Callable[[bytes], None],
                 receive_packet: Callable[[], None]) -> None:
        self.stream = stream
        self.line_coding = LineCoding()
        self._transmit = transmit
        self._receive_packet = receive_packet
        self.tx_in_progress = False
        self.rx_in_progress = False
        self._tx_num_bytes = 0
        stream.set_tx_callback(lambda _stream, _ctx: self.tx_begin(), self)
        stream.set_rx_callback(lambda _stream, _ctx: self.rx_begin(), self)

    def _start_tx(self, finished: bool) -> None:
        if finished:
            if self._tx_num_bytes:
                self.stream.tx_done(self._tx_num_bytes)
                self._tx_num_bytes = 0
            self.tx_in_progress = False
        elif self.tx_in_progress:
            return
        pending = self.stream.tx_region()
        count = min(len(pending), CDC_PACKET_SIZE)
        if count:
            self.tx_in_progress = True
            self._tx_num_bytes = count
            self._transmit(bytes(pending[:count]))

    def _start_rx(self, finished: bool) -> None:
        if finished:
            self.rx_in_progress = False
        elif self.rx_in_progress:
            return
        if self.stream.rx_available() >= CDC_PACKET_SIZE:
            self.rx_in_progress = True
            self._receive_packet()

    def tx_begin(self) -> None:
        """Start sending queued data unless a packet is already in flight."""
        self._start_tx(False)

    def rx_begin(self) -> None:
        """Arm reception unless already armed or there is no room for a packet."""
        self._start_rx(False)

    def tx_done(self) -> None:
        """The last packet went out: release it and send the next one."""
        self._start_tx(True)

    def control(self, cmd: int, payload: bytes = b"") -> bytes | None:
        """Handle a class request; return reply data for requests that have one."""
        try:
            request = CdcRequest(cmd)
        except ValueError:
            return None
        if request is CdcRequest.SET_LINE_CODING:
            self.line_coding = LineCoding.decode(payload)
        elif request is CdcRequest.GET_LINE_CODING:
            return self.line_coding.encode()
        return None

    def receive(self, data: bytes) -> None:
        """A packet arrived from the host: queue it and re-arm reception."""
        self.stream.do_rx_chunk(data)
        self._start_rx(True)