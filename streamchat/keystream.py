# streamchat/keystream.py
from Crypto.Util.strxor import strxor

# glibc-style LCG constants, modulus 2^32
LCG_A = 1103515245
LCG_C = 12345
MASK32 = 0xFFFFFFFF


def seed_from_secret(secret: int) -> int:
    return (secret & MASK32) ^ ((secret >> 32) & MASK32)


class Keystream:
    """Byte keystream from a 32-bit LCG.

    Consumed destructively: encrypting and decrypting both advance the same
    state, so a peer must use one instance for its whole session.
    """

    def __init__(self, seed: int):
        self.state = seed & MASK32

    @classmethod
    def from_secret(cls, secret: int) -> "Keystream":
        return cls(seed_from_secret(secret))

    def next_u32(self) -> int:
        self.state = (self.state * LCG_A + LCG_C) & MASK32
        return self.state

    def next_byte(self) -> int:
        return self.next_u32() >> 24

    def take(self, n: int) -> bytes:
        return bytes(self.next_byte() for _ in range(n))

    def xor_bytes(self, data: bytes) -> bytes:
        if not data:
            return b""
        return strxor(bytes(data), self.take(len(data)))


def stream_encrypt(ks: Keystream, plaintext: bytes) -> bytes:
    return ks.xor_bytes(plaintext)


def stream_decrypt(ks: Keystream, ciphertext: bytes) -> bytes:
    return ks.xor_bytes(ciphertext)
