# streamchat/cli.py
import argparse
import logging
import sys

from streamchat.config import Settings
from streamchat.logging_util import setup_logging
from streamchat.protocol import ProtocolError
from streamchat.session import ClientSession, ServerSession

log = logging.getLogger("streamchat")


def port_number(value: str, minimum: int = 0) -> int:
    try:
        port = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not minimum <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between {minimum} and 65535, got {port}")
    return port


def target_address(value: str):
    """Parse 'host:port' (IPv6 hosts may be bracketed: '[::1]:9000')."""
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not host:
        raise argparse.ArgumentTypeError(f"empty host in {value!r}")
    return host, port_number(port, minimum=1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamchat",
        description="Stream cipher chat with Diffie-Hellman key generation")
    sub = parser.add_subparsers(dest="command", required=True)

    server = sub.add_parser("server", help="Wait for one client on PORT")
    server.add_argument("port", type=port_number, help="Port to listen on (all interfaces)")

    client = sub.add_parser("client", help="Connect to a server at HOST:PORT")
    client.add_argument("addr", type=target_address, help="Server address, HOST:PORT")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"[!] Bad configuration: {e}", file=sys.stderr)
        return 2
    setup_logging(settings.log_level)

    session = None
    try:
        if args.command == "server":
            session = ServerSession(args.port, settings=settings)
        else:
            host, port = args.addr
            session = ClientSession(host, port, settings=settings)
        session.run()
    except (OSError, EOFError, UnicodeError, ProtocolError) as e:
        where = session.state.value if session is not None else "setup"
        log.error("Session aborted during %s: %s", where, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
