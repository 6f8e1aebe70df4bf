import pytest

from rtisan.cdc import CDC_PACKET_SIZE, CdcInterface, CdcRequest, LineCoding
from rtisan.stream import Stream
from rtisan.tasks import Scheduler


def make_iface(rx_size=193):
    stream = Stream(Scheduler(), 1, 193, rx_size, True)
    sent = []
    arms = []
    iface = CdcInterface(stream, sent.append, lambda: arms.append(True))
    return stream, iface, sent, arms


def test_default_line_coding_wire_bytes():
    _, iface, _, _ = make_iface()
    assert iface.control(CdcRequest.GET_LINE_CODING) == bytes(
        [0x00, 0xC2, 0x01, 0x00, 0x00, 0x00, 0x08])


def test_set_then_get_line_coding():
    _, iface, _, _ = make_iface()
    payload = LineCoding(9600, 2, 1, 7).encode()
    assert iface.control(CdcRequest.SET_LINE_CODING, payload) is None
    assert iface.control(CdcRequest.GET_LINE_CODING) == payload
    assert iface.line_coding == LineCoding(9600, 2, 1, 7)


def test_line_coding_round_trip():
    coding = LineCoding(57600, 1, 2, 8)
    assert LineCoding.decode(coding.encode()) == coding


def test_short_line_coding_rejected():
    _, iface, _, _ = make_iface()
    with pytest.raises(ValueError):
        iface.control(CdcRequest.SET_LINE_CODING, b"\x00\x01")


def test_unknown_and_ignored_requests():
    _, iface, _, _ = make_iface()
    assert iface.control(0x7F) is None
    assert iface.control(CdcRequest.SET_CONTROL_LINE_STATE) is None
    assert iface.line_coding == LineCoding()


def test_send_is_split_into_packets():
    stream, iface, sent, _ = make_iface()
    data = bytes(range(100))
    assert stream.send(data, block=False) == 100
    assert sent == [data[:CDC_PACKET_SIZE]]
    assert iface.tx_in_progress
    iface.tx_done()
    assert sent == [data[:CDC_PACKET_SIZE], data[CDC_PACKET_SIZE:]]
    iface.tx_done()
    assert len(sent) == 2
    assert not iface.tx_in_progress
    assert len(stream.tx_region()) == 0


def test_no_second_transmit_while_in_flight():
    stream, iface, sent, _ = make_iface()
    stream.send(b"abc", block=False)
    stream.send(b"def", block=False)
    assert sent == [b"abc"]
    iface.tx_done()
    assert sent == [b"abc", b"def"]


def test_receive_arms_and_queues():
    stream, iface, _, arms = make_iface()
    iface.rx_begin()
    assert len(arms) == 1
    iface.rx_begin()
    assert len(arms) == 1
    iface.receive(b"hello")
    assert len(arms) == 2
    assert stream.receive(5, block=False) == b"hello"


def test_reception_not_armed_without_room():
    stream, iface, _, arms = make_iface(rx_size=100)
    iface.rx_begin()
    assert len(arms) == 1
    iface.receive(b"a" * 40)
    assert len(arms) == 1
    assert not iface.rx_in_progress
    assert stream.receive(40, block=False) == b"a" * 40
    assert len(arms) == 2
    assert iface.rx_in_progress