"""
Tests for the UDP transport, against a local UDP socket.
"""
import io
import logging
import socket
from unittest.mock import patch

import pytest

from statsd_sync.transport import StatsdTransport, UnsupportedAddressError, resolve_address


def test_resolve_address_takes_first_result():
    family, address = resolve_address('127.0.0.1', 8125)

    assert family == socket.AF_INET
    assert address == ('127.0.0.1', 8125)


def test_resolve_address_with_no_results_raises():
    with patch('statsd_sync.transport.socket.getaddrinfo', return_value=[]):
        with pytest.raises(UnsupportedAddressError, match='unsupported address: nowhere'):
            resolve_address('nowhere', 8125)


def test_each_line_is_one_datagram(udp_server):
    with StatsdTransport(udp_server.host, udp_server.port) as transport:
        assert transport.send('a:1|c')
        assert transport.send('b:2|g')

    assert udp_server.receive(2) == ['a:1|c', 'b:2|g']


def test_debug_mode_echoes_lines(udp_server):
    echo = io.StringIO()
    transport = StatsdTransport(udp_server.host, udp_server.port, debug=True, echo=echo)
    try:
        transport.send('hits:40|c')
    finally:
        transport.close()

    assert udp_server.receive(1) == ['hits:40|c']
    assert echo.getvalue() == 'DEBUG: hits:40|c\n'


def test_send_failure_is_logged_and_not_raised(udp_server, caplog):
    caplog.set_level(logging.ERROR, logger="statsd_sync.transport")
    echo = io.StringIO()
    transport = StatsdTransport(udp_server.host, udp_server.port, debug=True, echo=echo)
    try:
        with patch.object(transport, 'sock') as sock:
            sock.send.side_effect = ConnectionRefusedError('refused')
            assert transport.send('hits:1|c') is False
    finally:
        transport.close()

    assert "Couldn't send message" in caplog.text
    assert "ERROR: Couldn't send message: refused" in echo.getvalue()


def test_normal_mode_failure_returns_false(udp_server):
    transport = StatsdTransport(udp_server.host, udp_server.port)
    try:
        with patch.object(transport, 'sock') as sock:
            sock.sendto.side_effect = OSError('no route')
            assert transport.send('hits:1|c') is False
        # The next send still goes out
        assert transport.send('hits:2|c') is True
    finally:
        transport.close()

    assert udp_server.receive(1) == ['hits:2|c']


def test_close_is_idempotent(udp_server):
    transport = StatsdTransport(udp_server.host, udp_server.port)
    transport.close()
    transport.close()

    assert transport.closed
    with pytest.raises(RuntimeError):
        transport.send('hits:1|c')
