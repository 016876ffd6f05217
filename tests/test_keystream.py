import random

from streamchat.keystream import Keystream, seed_from_secret, stream_decrypt, stream_encrypt


def test_seed_folds_high_and_low_halves():
    assert seed_from_secret(0x9ABCDEF012345678) == 0x88888888
    assert seed_from_secret(0) == 0
    assert seed_from_secret(0xFFFFFFFF) == 0xFFFFFFFF
    assert seed_from_secret(0xFFFFFFFFFFFFFFFF) == 0


def test_known_sequence_from_zero_seed():
    ks = Keystream(0)
    assert ks.next_u32() == 12345
    assert list(Keystream(0).take(6)) == [0, 211, 167, 214, 13, 194]


def test_same_seed_same_sequence():
    rng = random.Random(99)
    for _ in range(20):
        secret = rng.getrandbits(64)
        a = Keystream.from_secret(secret)
        b = Keystream.from_secret(secret)
        assert a.take(257) == b.take(257)


def test_take_advances_state():
    ks = Keystream(42)
    first = ks.take(8)
    second = ks.take(8)
    fresh = Keystream(42).take(16)
    assert first + second == fresh


def test_xor_roundtrip_with_fresh_generator():
    plaintext = "Hello, stream world! éè".encode("utf-8")
    secret = 0xD87FA3E291B4C7F2
    ciphertext = stream_encrypt(Keystream.from_secret(secret), plaintext)
    assert ciphertext != plaintext
    assert stream_decrypt(Keystream.from_secret(secret), ciphertext) == plaintext


def test_continuous_stream_across_two_messages():
    # one generator per peer, never reset between its send and its receive
    secret = 0x0123456789ABCDEF
    alice = Keystream.from_secret(secret)
    bob = Keystream.from_secret(secret)

    c1 = alice.xor_bytes(b"hello")
    assert bob.xor_bytes(c1) == b"hello"
    c2 = bob.xor_bytes(b"world")
    assert alice.xor_bytes(c2) == b"world"

    reset = Keystream.from_secret(secret)
    assert reset.xor_bytes(c2) != b"world"


def test_empty_message():
    ks = Keystream(7)
    assert ks.xor_bytes(b"") == b""
    assert ks.state == 7
