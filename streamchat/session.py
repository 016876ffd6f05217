# streamchat/session.py
"""Server and client session drivers.

A session is a fixed linear sequence of states:

    CONNECTING -> KEY_EXCHANGE -> ENCRYPTED_EXCHANGE -> DONE

Each state has exactly one transition method. A transition either completes
and names the next state, or raises; there is no retry and no branching.
The server sends its message first and then reads the reply, the client does
the reverse, and both thread a single keystream through the preview, the
send and the receive.
"""
import abc
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from streamchat.config import KEYSTREAM_PREVIEW_BYTES, Settings
from streamchat.dh import DHParams, KeyExchange, ScalarSupplier, generate_private_exponent
from streamchat.keystream import LCG_A, LCG_C, Keystream, seed_from_secret
from streamchat.protocol import hex_bytes, hex_u64, recv_encrypted, send_encrypted
from streamchat.transcript import Transcript, transcript_path

log = logging.getLogger("streamchat.session")

CHAT_PROMPT = "[CHAT] Type message: "


class State(Enum):
    CONNECTING = "connecting"
    KEY_EXCHANGE = "key_exchange"
    ENCRYPTED_EXCHANGE = "encrypted_exchange"
    DONE = "done"


@dataclass
class SessionResult:
    secret: int
    sent: bytes
    received: bytes
    transcript_sha256: Optional[str] = None


class Session(abc.ABC):
    role = ""
    peer_label = ""

    def __init__(self,
                 settings: Settings = Settings(),
                 params: DHParams = DHParams(),
                 scalar_supplier: ScalarSupplier = generate_private_exponent,
                 prompt: Callable[[str], str] = input,
                 display: Callable[[str], None] = print):
        self.settings = settings
        self.params = params
        self.scalar_supplier = scalar_supplier
        self.prompt = prompt
        self.display = display

        self.state = State.CONNECTING
        self.conn = None
        self.keystream = None
        self.transcript = None
        self.secret = None
        self.sent = b""
        self.received = b""

    def run(self) -> SessionResult:
        transitions = {
            State.CONNECTING: self._connect,
            State.KEY_EXCHANGE: self._key_exchange,
            State.ENCRYPTED_EXCHANGE: self._encrypted_exchange,
        }
        try:
            while self.state is not State.DONE:
                self.state = transitions[self.state]()
        finally:
            self.close()

        digest = None
        if self.transcript is not None:
            digest = self.transcript.compute_hash_hex()
            log.info("[TRANSCRIPT] %s sha256=%s", self.transcript.path, digest)
        return SessionResult(self.secret, self.sent, self.received, digest)

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    # -- transitions -------------------------------------------------------

    @abc.abstractmethod
    def _connect(self) -> State:
        """Open the connection; leaves it in self.conn."""

    @abc.abstractmethod
    def _agree(self, kx: KeyExchange) -> int:
        """Run the role-ordered public value exchange, return the secret."""

    @abc.abstractmethod
    def _encrypted_exchange(self) -> State:
        """Send and receive one message each, in role order."""

    def _key_exchange(self) -> State:
        log.info("[DH] Starting key exchange...")
        kx = KeyExchange(self.params, self.scalar_supplier)
        self.secret = self._agree(kx)

        self.keystream = Keystream.from_secret(self.secret)
        log.info("[STREAM] Generating keystream from secret...")
        log.info("[STREAM] Algorithm: LCG (a=%d, c=%d, m=2^32), seed=%08X",
                 LCG_A, LCG_C, seed_from_secret(self.secret))
        preview = self.keystream.take(KEYSTREAM_PREVIEW_BYTES)
        log.info("[STREAM] Keystream: %s ...", hex_bytes(preview))

        if self.settings.transcript_dir:
            self.transcript = Transcript(transcript_path(self.settings.transcript_dir, self.role))

        log.info("Secure channel established (secret %s)", hex_u64(self.secret))
        return State.ENCRYPTED_EXCHANGE

    # -- helpers -----------------------------------------------------------

    def _send_line(self):
        try:
            line = self.prompt(CHAT_PROMPT).rstrip("\r\n")
        except EOFError:
            # closed stdin sends an empty message
            line = ""
        # undecodable input bytes come back as surrogates; send them as-is
        self.sent = line.encode("utf-8", errors="surrogateescape")
        cipher = send_encrypted(self.conn, self.keystream, self.sent)
        if self.transcript is not None:
            self.transcript.append("sent", cipher)

    def _receive_line(self):
        self.received, cipher = recv_encrypted(self.conn, self.keystream)
        if self.transcript is not None:
            self.transcript.append("received", cipher)
        self.display(f"[{self.peer_label}] {self.received.decode('utf-8', errors='replace')}")


class ServerSession(Session):
    """Responder: binds at construction, accepts a single client."""
    role = "server"
    peer_label = "CLIENT"

    def __init__(self, port: int, **kwargs):
        super().__init__(**kwargs)
        self.listener = socket.create_server(("0.0.0.0", port), backlog=1)
        self.port = self.listener.getsockname()[1]
        log.info("[SERVER] Listening on 0.0.0.0:%d", self.port)

    def _connect(self) -> State:
        try:
            self.conn, addr = self.listener.accept()
        finally:
            self.listener.close()
        self.conn.settimeout(self.settings.read_timeout)
        log.info("[SERVER] Client connected from %s:%d", addr[0], addr[1])
        return State.KEY_EXCHANGE

    def _agree(self, kx: KeyExchange) -> int:
        return kx.respond(self.conn)

    def _encrypted_exchange(self) -> State:
        self._send_line()
        self._receive_line()
        log.info("[SERVER] Round-trip done (server sent, client replied).")
        return State.DONE

    def close(self):
        super().close()
        self.listener.close()


class ClientSession(Session):
    """Initiator: one connection attempt to host:port."""
    role = "client"
    peer_label = "SERVER"

    def __init__(self, host: str, port: int, **kwargs):
        super().__init__(**kwargs)
        self.host = host
        self.port = port

    def _connect(self) -> State:
        log.info("[CLIENT] Connecting to %s:%d...", self.host, self.port)
        self.conn = socket.create_connection((self.host, self.port), timeout=self.settings.read_timeout)
        log.info("[CLIENT] Connected!")
        return State.KEY_EXCHANGE

    def _agree(self, kx: KeyExchange) -> int:
        return kx.initiate(self.conn)

    def _encrypted_exchange(self) -> State:
        self._receive_line()
        self._send_line()
        log.info("[CLIENT] Round-trip done (server received, client replied).")
        return State.DONE
