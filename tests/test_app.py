import socket
import threading
import time

import pytest

from rtisan.app import DEFAULT_PORT, System, build_system, main


def test_build_system_streams():
    system = build_system(0)
    assert isinstance(system, System)
    assert system.port == 0
    assert len(system.streams) == 2
    assert system.streams[0].rx_available() == 192
    assert system.streams[1].rx_available() == 256
    assert system.bridge is None


def test_default_port():
    assert System().port == DEFAULT_PORT == 3133


def test_start_counts_ticks_and_listens():
    system = build_system(0)
    try:
        system.start(3)
        assert system.scheduler.systick == 3
        assert system.bridge.port > 0
        assert len(system.scheduler.tasks) == 1
    finally:
        system.bridge.close()


def test_bytes_flow_through_tcp():
    system = build_system(0)
    system.start(0)
    ticker = threading.Thread(target=system.scheduler.run, args=(3000,),
                              daemon=True)
    ticker.start()
    try:
        with socket.create_connection(("127.0.0.1", system.bridge.port),
                                      timeout=5) as client:
            client.sendall(b"hello")
            received = b""
            deadline = time.monotonic() + 5
            while len(received) < 5 and time.monotonic() < deadline:
                received += system.streams[1].receive(5 - len(received),
                                                      block=False)
                time.sleep(0.01)
            assert received == b"hello"

            system.streams[1].send(b"pong", block=False)
            reply = b""
            while len(reply) < 4:
                chunk = client.recv(4 - len(reply))
                if not chunk:
                    break
                reply += chunk
            assert reply == b"pong"
    finally:
        system.bridge.close()


def test_main_runs_for_given_ticks():
    assert main(["--port", "0", "--ticks", "2"]) == 0


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit):
        main(["--port", "notaport"])