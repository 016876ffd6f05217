# streamchat/transcript.py
import hashlib
import os

class Transcript:
    """Ciphertext frames of one session, one `seq|direction|len|hex` line each.

    The digest is kept as lines are written, so it always matches the file.
    """

    def __init__(self, path: str):
        self.path = path
        self.seq = 0
        self._digest = hashlib.sha256()
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        # one transcript per session
        open(path, "wb").close()

    def append(self, direction: str, ciphertext: bytes):
        record = f"{self.seq}|{direction}|{len(ciphertext)}|{ciphertext.hex()}\n".encode("ascii")
        with open(self.path, "ab") as f:
            f.write(record)
        self._digest.update(record)
        self.seq += 1

    def compute_hash_hex(self) -> str:
        return self._digest.hexdigest()

def transcript_path(directory: str, role: str) -> str:
    return os.path.join(directory, f"{role}_transcript.log")
