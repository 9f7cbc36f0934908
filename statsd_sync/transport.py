"""
UDP transport to the statsd server.

Every line goes out as its own datagram. Delivery is best effort: a failed
send is logged and dropped, never retried.
"""
import logging
import socket
import sys
from typing import Optional, TextIO, Tuple

logger = logging.getLogger(__name__)


class UnsupportedAddressError(OSError):
    """Raised when the statsd host does not resolve to any address."""


def resolve_address(host: str, port: int) -> Tuple[int, Tuple]:
    """
    Resolve the statsd server address once.

    Args:
        host (str): Server hostname or IP address
        port (int): Server port

    Returns:
        tuple: (address family, socket address) of the first result

    Raises:
        UnsupportedAddressError: If the host resolves to nothing
        socket.gaierror: If resolution itself fails
    """
    addr_infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    if not addr_infos:
        raise UnsupportedAddressError(f"unsupported address: {host}")

    family, _, _, _, address = addr_infos[0]
    logger.debug("Resolved %s:%s to %s", host, port, address)
    return family, address


class StatsdTransport:
    """Owns the datagram socket used to talk to statsd."""

    def __init__(self, host: str, port: int, debug: bool = False, echo: Optional[TextIO] = None):
        """
        Resolve the server and open the socket.

        Args:
            host (str): Server hostname or IP address
            port (int): Server port
            debug (bool): Connect the socket so send errors surface, and echo
                every line to `echo`
            echo (TextIO, optional): Stream for debug output. Defaults to stderr.
        """
        self.debug = debug
        self.echo = echo if echo is not None else sys.stderr
        self.family, self.address = resolve_address(host, port)

        self.sock: Optional[socket.socket] = socket.socket(self.family, socket.SOCK_DGRAM)
        if debug:
            try:
                self.sock.connect(self.address)
            except OSError:
                self.sock.close()
                raise
        logger.info("Sending metrics to %s:%s%s", host, port, " (debug)" if debug else "")

    def send(self, line: str) -> bool:
        """
        Send one line as a single datagram.

        Args:
            line (str): The encoded protocol line

        Returns:
            bool: True if the datagram was handed to the OS, False otherwise
        """
        if self.sock is None:
            raise RuntimeError("Transport is closed")

        msg = line.encode("utf-8")
        if self.debug:
            print(f"DEBUG: {line}", file=self.echo)

        try:
            if self.debug:
                self.sock.send(msg)
            else:
                self.sock.sendto(msg, self.address)
            return True
        except OSError as e:
            logger.error("Couldn't send message %s: %s", line, str(e))
            if self.debug:
                print(f"ERROR: Couldn't send message: {e}", file=self.echo)
            return False

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self.sock is not None:
            self.sock.close()
            self.sock = None
            logger.debug("Closed statsd socket")

    @property
    def closed(self) -> bool:
        return self.sock is None

    def __enter__(self) -> 'StatsdTransport':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
