# streamchat/protocol.py
import logging
import struct

from streamchat.keystream import stream_decrypt, stream_encrypt

log = logging.getLogger("streamchat.protocol")

# Wire layout (big-endian):
#   public value      -> [8-byte unsigned]
#   encrypted payload -> [4-byte unsigned length][ciphertext]
U64 = struct.Struct(">Q")
U32 = struct.Struct(">I")
MAX_LENGTH = 0xFFFFFFFF


class ProtocolError(RuntimeError):
    def __init__(self, code: str, detail: str = ""):
        super().__init__(f"{code}: {detail}" if detail else code)
        self.code = code
        self.detail = detail


class PeerClosedError(ConnectionError):
    pass


def hex_u64(v: int) -> str:
    return f"{v:016X}"


def hex_bytes(data: bytes) -> str:
    return " ".join(f"{b:02X}" for b in data)


def encode_u64(v: int) -> bytes:
    if not 0 <= v < 1 << 64:
        raise ProtocolError("BAD_VALUE", f"{v} does not fit in 8 bytes")
    return U64.pack(v)


def decode_u64(data: bytes) -> int:
    return U64.unpack(data)[0]


def encode_payload(ciphertext: bytes) -> bytes:
    if len(ciphertext) > MAX_LENGTH:
        raise ProtocolError("BAD_LENGTH", f"payload of {len(ciphertext)} bytes does not fit a 4-byte length")
    return U32.pack(len(ciphertext)) + ciphertext


def decode_payload_length(header: bytes) -> int:
    return U32.unpack(header)[0]


def recv_exact(conn, n: int) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        chunk = conn.recv(n - len(buf))
        if not chunk:
            raise PeerClosedError(f"peer closed after {len(buf)} of {n} bytes")
        buf.extend(chunk)
    return bytes(buf)


def send_u64(conn, v: int):
    conn.sendall(encode_u64(v))


def recv_u64(conn) -> int:
    return decode_u64(recv_exact(conn, U64.size))


def send_encrypted(conn, ks, plain: bytes) -> bytes:
    log.debug("[ENCRYPT] Plain: %s", hex_bytes(plain))
    cipher = stream_encrypt(ks, plain)
    log.debug("[ENCRYPT] Cipher: %s", hex_bytes(cipher))
    conn.sendall(encode_payload(cipher))
    log.info("[NETWORK] Sent %d bytes", len(cipher))
    return cipher


def recv_encrypted(conn, ks):
    """Read one length-prefixed frame and decrypt it.

    Returns (plaintext, ciphertext).
    """
    length = decode_payload_length(recv_exact(conn, U32.size))
    cipher = recv_exact(conn, length)
    log.info("[NETWORK] Received %d bytes", length)
    log.debug("[DECRYPT] Cipher: %s", hex_bytes(cipher))
    plain = stream_decrypt(ks, cipher)
    log.debug("[DECRYPT] Plain: %s", hex_bytes(plain))
    return plain, cipher
