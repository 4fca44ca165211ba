from __future__ import annotations

import unittest

from socket_serial.address import Role, Transport, parse_address
from socket_serial.errors import (
    AddressError,
    HostnameMissingError,
    PathMissingError,
    PortMissingError,
    ProtocolUnspecifiedError,
    UnsupportedProtocolError,
)


class TestParseAddress(unittest.TestCase):
    def test_tcp_client(self):
        addr = parse_address("tcp://localhost:7000")
        self.assertEqual(addr.transport, Transport.TCP)
        self.assertEqual(addr.role, Role.CLIENT)
        self.assertEqual(addr.host, "localhost")
        self.assertEqual(addr.port, 7000)
        self.assertIsNone(addr.path)

    def test_tcp_server(self):
        addr = parse_address("tcp-server://0.0.0.0:9999")
        self.assertEqual(addr.role, Role.SERVER)
        self.assertTrue(addr.is_server)
        self.assertEqual(addr.endpoint(), "tcp:0.0.0.0:9999")

    def test_ipv6_host(self):
        addr = parse_address("tcp://[::1]:7000")
        self.assertEqual(addr.host, "::1")

    def test_unix(self):
        addr = parse_address("unix:///tmp/x.sock")
        self.assertEqual(addr.transport, Transport.UNIX)
        self.assertEqual(addr.role, Role.CLIENT)
        self.assertEqual(addr.path, "/tmp/x.sock")

        server = parse_address("UNIX-SERVER:///tmp/x.sock")
        self.assertEqual(server.role, Role.SERVER)
        self.assertEqual(server.endpoint(), "unix:/tmp/x.sock")

    def test_missing_protocol(self):
        with self.assertRaises(ProtocolUnspecifiedError):
            parse_address("/tmp/x.sock")

    def test_missing_hostname(self):
        with self.assertRaises(HostnameMissingError):
            parse_address("tcp://:9999")

    def test_missing_port(self):
        with self.assertRaises(PortMissingError):
            parse_address("tcp://localhost")
        with self.assertRaises(PortMissingError):
            parse_address("tcp-server://localhost:abc")
        with self.assertRaises(PortMissingError):
            parse_address("tcp://localhost:70000")

    def test_missing_path(self):
        with self.assertRaises(PathMissingError):
            parse_address("unix-server://")

    def test_unsupported_protocol(self):
        with self.assertRaises(UnsupportedProtocolError) as cm:
            parse_address("udp://localhost:7000")
        self.assertEqual(cm.exception.protocol, "udp")
        self.assertIn("udp", str(cm.exception))

    def test_errors_are_value_errors(self):
        with self.assertRaises(ValueError):
            parse_address("tcp://:1")
        self.assertTrue(issubclass(PathMissingError, AddressError))

    def test_address_is_immutable(self):
        addr = parse_address("tcp://localhost:7000")
        with self.assertRaises(AttributeError):
            addr.port = 1  # type: ignore[misc]
