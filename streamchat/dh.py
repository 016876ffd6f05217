# streamchat/dh.py
import logging
import secrets
from dataclasses import dataclass
from typing import Callable

from streamchat.protocol import ProtocolError, hex_u64, recv_u64, send_u64

log = logging.getLogger("streamchat.dh")

# Fixed demo group (64-bit prime, NOT secure). Both peers hardcode it.
DEFAULT_P = 0xD87FA3E291B4C7F3
DEFAULT_G = 2

ScalarSupplier = Callable[[], int]


@dataclass(frozen=True)
class DHParams:
    p: int = DEFAULT_P
    g: int = DEFAULT_G


def modexp(base: int, exponent: int, modulus: int) -> int:
    """Square-and-multiply base**exponent % modulus."""
    if modulus < 1:
        raise ValueError("modulus must be positive")
    if exponent < 0:
        raise ValueError("exponent must be non-negative")
    result = 1 % modulus
    b = base % modulus
    while exponent > 0:
        if exponent & 1:
            result = (result * b) % modulus
        b = (b * b) % modulus
        exponent >>= 1
    return result


def generate_private_exponent(bits: int = 64) -> int:
    return secrets.randbits(bits)


def fixed_scalars(*values: int) -> ScalarSupplier:
    """Supplier that hands out the given scalars in order (for tests/replays)."""
    it = iter(values)

    def supply() -> int:
        try:
            return next(it)
        except StopIteration:
            raise RuntimeError("SCALARS_EXHAUSTED") from None

    return supply


def compute_public(g: int, p: int, a: int) -> int:
    return modexp(g, a, p)


def compute_shared(peer_public: int, p: int, a: int) -> int:
    return modexp(peer_public, a, p)


class KeyExchange:
    """One side of the DH agreement.

    The responder (server) writes its public value first and then reads the
    peer's; the initiator (client) does the reverse. Each side's read pairs
    with the other side's earlier write, so swapping the order stalls both.
    """

    def __init__(self, params: DHParams = DHParams(), scalar_supplier: ScalarSupplier = generate_private_exponent):
        self.params = params
        self.scalar_supplier = scalar_supplier
        self.private = None

    def generate_private(self) -> int:
        while True:
            k = self.scalar_supplier()
            # k % p == 0 would make every derived value 1
            if k % self.params.p != 0:
                break
            log.debug("[DH] Rejected private scalar %s (multiple of p)", hex_u64(k))
        self.private = k
        return k

    def public_component(self) -> int:
        if self.private is None:
            self.generate_private()
        return compute_public(self.params.g, self.params.p, self.private)

    def derive_shared(self, other_public: int) -> int:
        if self.private is None:
            self.generate_private()
        return compute_shared(other_public, self.params.p, self.private)

    def respond(self, conn) -> int:
        public = self._announce()
        log.info("[NETWORK] Sending our public key (8 bytes)...")
        send_u64(conn, public)
        log.info("[NETWORK] Waiting for their public key (8 bytes)...")
        their_public = recv_u64(conn)
        return self._finish(their_public)

    def initiate(self, conn) -> int:
        public = self._announce()
        log.info("[NETWORK] Waiting for server public key (8 bytes)...")
        their_public = recv_u64(conn)
        log.info("[NETWORK] Sending our public key (8 bytes)...")
        send_u64(conn, public)
        return self._finish(their_public)

    def _announce(self) -> int:
        log.info("[DH] Using hardcoded parameters: p = %s, g = %d", hex_u64(self.params.p), self.params.g)
        public = self.public_component()
        log.debug("[DH] Our private key = %s", hex_u64(self.private))
        log.info("[DH] Our public key = g^private mod p = %s", hex_u64(public))
        return public

    def _finish(self, their_public: int) -> int:
        log.info("[DH] Received their public key = %s", hex_u64(their_public))
        if their_public >= self.params.p:
            raise ProtocolError("DH_FAIL", "peer public value not reduced mod p")
        secret = self.derive_shared(their_public)
        log.debug("[DH] secret = (their_public)^our_private mod p = %s", hex_u64(secret))
        return secret
