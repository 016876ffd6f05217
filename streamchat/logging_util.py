# streamchat/logging_util.py
import logging
import sys

TRACE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO, stream=None) -> logging.Logger:
    """Attach one stderr handler to the streamchat logger tree.

    Trace lines go to stderr so stdout stays with the chat prompt and the
    decrypted message. Calling it again only changes the level.
    """
    root = logging.getLogger("streamchat")
    root.setLevel(level)
    if not any(getattr(h, "_streamchat", False) for h in root.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(TRACE_FORMAT, datefmt="%H:%M:%S"))
        handler._streamchat = True
        root.addHandler(handler)
        root.propagate = False
    return root
