from __future__ import annotations

import asyncio
import logging
from typing import Optional

import click

from .config import DEFAULT_CONFIG_PATH, get_port_config, load_config
from .errors import SocketSerialError
from .port import OpenOptions, SocketPort, binding


def _build_payload(string: Optional[str], hexstr: Optional[str], encoding: str) -> bytes:
    if string is not None and hexstr is not None:
        raise click.ClickException("Use only one of -s or -x")
    if string is not None:
        try:
            return string.encode(encoding)
        except LookupError:
            raise click.ClickException(f"Unknown encoding: {encoding}")
    if hexstr is not None:
        try:
            return bytes.fromhex(hexstr)
        except ValueError as e:
            raise click.ClickException(f"Invalid hex string: {e}")
    return b""


def _format_payload(data: bytes, encoding: str) -> str:
    try:
        return f"'{data.decode(encoding)}'"
    except (UnicodeDecodeError, LookupError):
        return data.hex(" ")


def _open_options(ctx: click.Context, url: str, baudrate: Optional[int]) -> OpenOptions:
    cfg = ctx.obj["port"]
    try:
        return OpenOptions(path=url, baud_rate=baudrate or cfg.baudrate)
    except ValueError as e:
        raise click.ClickException(str(e))


async def _open_port(options: OpenOptions, open_timeout: Optional[float]) -> SocketPort:
    try:
        return await asyncio.wait_for(binding.open(options), open_timeout)
    except asyncio.TimeoutError:
        raise click.ClickException(f"No connection to {options.path} within {open_timeout:g} seconds")


def _run(coro):
    try:
        return asyncio.run(coro)
    except SocketSerialError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option("--config", "config_path", default=DEFAULT_CONFIG_PATH, show_default=True,
              help="TOML file with [port] defaults")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool) -> None:
    """Talk to a TCP or Unix socket as if it were a serial port.

    URL is tcp://host:port, unix:///path, or the -server variants
    (tcp-server://host:port, unix-server:///path) to wait for a peer.

    Examples:

      # Send a string to a listening TCP peer and print the reply
      socket-serial send tcp://localhost:7000 -s "hello"

      # Wait for a peer on a Unix socket and send hex bytes
      socket-serial send unix-server:///tmp/port.sock -x "01 02 03"
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    ctx.obj = {"port": get_port_config(load_config(config_path))}


@main.command()
@click.argument("url")
@click.option("-s", "string", help="String payload (mutually exclusive with -x)")
@click.option("-x", "hexstr", help="Hex payload, e.g. '01 02 0a' or '01020a'")
@click.option("--encoding", default=None, help="Text encoding for string payloads and replies")
@click.option("-b", "--baudrate", type=int, default=None, help="Baud rate echoed by the port")
@click.option("-t", "--timeout", type=float, default=None, help="Seconds to wait for a reply")
@click.option("-n", "--max-read", type=int, default=None, help="Maximum reply size in bytes")
@click.option("--open-timeout", type=float, default=None,
              help="Seconds to wait for the connection; server URLs wait for a peer. Waits forever if omitted")
@click.pass_context
def send(ctx: click.Context, url: str, string: Optional[str], hexstr: Optional[str],
         encoding: Optional[str], baudrate: Optional[int], timeout: Optional[float],
         max_read: Optional[int], open_timeout: Optional[float]) -> None:
    """Send a payload to URL and print one reply.

    With a -server URL the command first waits for a peer to connect, for at
    most --open-timeout seconds when given.
    """
    cfg = ctx.obj["port"]
    encoding = encoding or cfg.encoding
    timeout = cfg.timeout if timeout is None else timeout
    max_read = max_read or cfg.max_read
    payload = _build_payload(string, hexstr, encoding)
    options = _open_options(ctx, url, baudrate)

    async def _send() -> Optional[bytes]:
        port = await _open_port(options, open_timeout)
        async with port:
            if payload:
                port.write(payload)
                await port.drain()
            click.echo(f"Sent {len(payload)} bytes to {url}")
            buf = bytearray(max_read)
            try:
                result = await asyncio.wait_for(port.read(buf, 0, max_read), timeout)
            except asyncio.TimeoutError:
                return None
            return bytes(buf[:result.bytes_read])

    reply = _run(_send())
    if reply is None:
        click.echo("No response received within timeout")
    elif not reply:
        click.echo("Peer closed the connection")
    else:
        click.echo(f"Received {len(reply)} bytes: {_format_payload(reply, encoding)}")


@main.command()
@click.argument("url")
@click.option("-b", "--baudrate", type=int, default=None, help="Baud rate echoed by the port")
@click.option("--open-timeout", type=float, default=None,
              help="Seconds to wait for the connection; server URLs wait for a peer. Waits forever if omitted")
@click.pass_context
def status(ctx: click.Context, url: str, baudrate: Optional[int], open_timeout: Optional[float]) -> None:
    """Open URL and print its line status.

    With a -server URL the command waits for a peer to connect first.
    """
    options = _open_options(ctx, url, baudrate)

    async def _status():
        port = await _open_port(options, open_timeout)
        async with port:
            return await port.get(), await port.get_baud_rate()

    line, baud = _run(_status())
    click.echo(f"CTS={int(line.cts)} DSR={int(line.dsr)} DCD={int(line.dcd)}")
    click.echo(f"Baud rate: {baud.baud_rate}")
    settings = options.serial_settings()
    click.echo(f"Settings: {settings['bytesize']}{settings['parity']}{settings['stopbits']:g}")


@main.command(name="list")
def list_ports() -> None:
    """List available ports (sockets are never discoverable)."""
    ports = asyncio.run(binding.list())
    if not ports:
        click.echo("No ports available")
    for info in ports:
        click.echo(info.get("path", ""))


if __name__ == "__main__":
    main()
