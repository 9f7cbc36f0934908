import socket

import pytest


class UdpServer:
    """Minimal statsd stand-in collecting received datagrams."""

    def __init__(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(('127.0.0.1', 0))
        self.sock.settimeout(2.0)
        self.host, self.port = self.sock.getsockname()

    def receive(self, count: int):
        """Receive exactly `count` datagrams, decoded as text."""
        return [self.sock.recv(65535).decode('utf-8') for _ in range(count)]

    def drain(self, timeout: float = 0.2):
        """Receive whatever arrives until `timeout` seconds pass in silence."""
        lines = []
        self.sock.settimeout(timeout)
        try:
            while True:
                lines.append(self.sock.recv(65535).decode('utf-8'))
        except socket.timeout:
            pass
        finally:
            self.sock.settimeout(2.0)
        return lines

    def close(self):
        self.sock.close()


@pytest.fixture
def udp_server():
    server = UdpServer()
    yield server
    server.close()
