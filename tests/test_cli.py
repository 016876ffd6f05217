import argparse
import io
import logging
import socket

import pytest

from streamchat import cli
from streamchat.config import DEFAULT_READ_TIMEOUT, Settings
from streamchat.logging_util import setup_logging


def test_target_address():
    assert cli.target_address("127.0.0.1:9000") == ("127.0.0.1", 9000)
    assert cli.target_address("localhost:1") == ("localhost", 1)
    assert cli.target_address("[::1]:9000") == ("::1", 9000)


@pytest.mark.parametrize("value", ["9000", ":9000", "host:", "host:0", "host:70000", "host:abc", "[]:9000"])
def test_target_address_rejects(value):
    with pytest.raises(argparse.ArgumentTypeError):
        cli.target_address(value)


def test_port_number():
    assert cli.port_number("0") == 0
    assert cli.port_number("65535") == 65535
    with pytest.raises(argparse.ArgumentTypeError):
        cli.port_number("65536")
    with pytest.raises(argparse.ArgumentTypeError):
        cli.port_number("-1")


def test_parser_modes():
    parser = cli.build_parser()
    args = parser.parse_args(["server", "9000"])
    assert args.command == "server" and args.port == 9000
    args = parser.parse_args(["client", "127.0.0.1:9000"])
    assert args.command == "client" and args.addr == ("127.0.0.1", 9000)


def test_bad_arguments_exit_before_network(monkeypatch):
    def no_network(*args, **kwargs):
        raise AssertionError("network touched")

    monkeypatch.setattr(socket, "create_connection", no_network)
    monkeypatch.setattr(socket, "create_server", no_network)
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["client", "not-an-address"])
    assert excinfo.value.code == 2
    with pytest.raises(SystemExit):
        cli.main(["server", "http"])
    with pytest.raises(SystemExit):
        cli.main([])


def test_network_failure_exit_status(monkeypatch):
    monkeypatch.setenv("STREAMCHAT_READ_TIMEOUT", "2")
    spare = socket.socket()
    spare.bind(("127.0.0.1", 0))
    port = spare.getsockname()[1]
    spare.close()
    assert cli.main(["client", f"127.0.0.1:{port}"]) == 1


def test_bad_config_exit_status(monkeypatch):
    monkeypatch.setenv("STREAMCHAT_READ_TIMEOUT", "soon")
    assert cli.main(["server", "0"]) == 2


def test_settings_defaults():
    settings = Settings.from_env({})
    assert settings.read_timeout == DEFAULT_READ_TIMEOUT == 120
    assert settings.log_level == logging.INFO
    assert settings.transcript_dir is None


def test_settings_from_environment():
    settings = Settings.from_env({
        "STREAMCHAT_READ_TIMEOUT": "2.5",
        "STREAMCHAT_LOG_LEVEL": "debug",
        "STREAMCHAT_TRANSCRIPT_DIR": "logs",
    })
    assert settings.read_timeout == 2.5
    assert settings.log_level == logging.DEBUG
    assert settings.transcript_dir == "logs"


@pytest.mark.parametrize("env", [
    {"STREAMCHAT_READ_TIMEOUT": "0"},
    {"STREAMCHAT_READ_TIMEOUT": "abc"},
    {"STREAMCHAT_READ_TIMEOUT": "nan"},
    {"STREAMCHAT_READ_TIMEOUT": "inf"},
    {"STREAMCHAT_LOG_LEVEL": "LOUD"},
])
def test_settings_rejects(env):
    with pytest.raises(ValueError):
        Settings.from_env(env)


def test_infinite_timeout_exit_status(monkeypatch):
    monkeypatch.setenv("STREAMCHAT_READ_TIMEOUT", "inf")
    assert cli.main(["client", "127.0.0.1:9"]) == 2


def test_setup_logging_adds_one_handler():
    stream = io.StringIO()
    logger = setup_logging(logging.DEBUG, stream)
    count = len(logger.handlers)
    setup_logging(logging.WARNING, stream)
    assert len(logger.handlers) == count
    assert logger.level == logging.WARNING
    assert logger.propagate is False
