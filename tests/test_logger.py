import socket
import syslog
from unittest import mock

import pytest

from bsdnet.logger import (
    FACILITY_NAMES,
    PRIORITY_NAMES,
    LoggerError,
    chunk_arguments,
    decode,
    format_remote_message,
    main,
    parse_priority,
    parse_source,
)


@pytest.fixture
def receiver():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(5)
    yield sock
    sock.close()


def test_decode_names_case_insensitive():
    assert decode("WARNING", PRIORITY_NAMES) == syslog.LOG_WARNING
    assert decode("Daemon", FACILITY_NAMES) == syslog.LOG_DAEMON


def test_decode_numeric_prefix():
    assert decode("5x", PRIORITY_NAMES) == 5


def test_decode_unknown():
    assert decode("bogus", PRIORITY_NAMES) is None
    assert decode("", PRIORITY_NAMES) is None


def test_parse_priority_facility_and_level():
    assert parse_priority("user.notice") == syslog.LOG_USER | syslog.LOG_NOTICE
    assert parse_priority("local0.info") == syslog.LOG_LOCAL0 | syslog.LOG_INFO
    assert parse_priority("auth.err") == syslog.LOG_AUTH | syslog.LOG_ERR


def test_parse_priority_level_only():
    assert parse_priority("err") == syslog.LOG_ERR
    assert parse_priority("3") == 3


def test_parse_priority_unknown_facility():
    with pytest.raises(LoggerError, match="unknown facility name: nope"):
        parse_priority("nope.info")


def test_parse_priority_unknown_level():
    with pytest.raises(LoggerError, match="unknown priority name: user.nope"):
        parse_priority("user.nope")


def test_chunk_joins_words():
    assert list(chunk_arguments(["hello", "world"])) == ["hello world"]


def test_chunk_splits_when_full():
    assert list(chunk_arguments(["abc", "def", "ghi"], 10)) == ["abc def", "ghi"]


def test_chunk_oversize_argument_alone():
    big = "x" * 12
    assert list(chunk_arguments(["ab", big, "cd"], 10)) == ["ab", big, "cd"]


def test_chunk_preserves_words_and_limits():
    words = [f"word{n}" for n in range(500)]
    chunks = list(chunk_arguments(words))
    assert all(len(chunk) <= 1022 for chunk in chunks)
    assert " ".join(chunks).split(" ") == words


def test_chunk_empty():
    assert list(chunk_arguments([])) == []


@pytest.mark.parametrize(
    "src, expected",
    [
        ("host:514", ("host", "514")),
        (":514", (None, "514")),
        ("host", ("host", None)),
        ("host:", ("host", None)),
        ("[::1]:514", ("::1", "514")),
        ("[]:514", (None, "514")),
        ("[::1]", ("::1", None)),
        ("[]", (None, None)),
        ("", (None, None)),
    ],
)
def test_parse_source(src, expected):
    assert parse_source(src) == expected


def test_parse_source_unclosed_bracket():
    with pytest.raises(LoggerError, match="not found"):
        parse_source("[::1")


def test_format_remote_message():
    line = format_remote_message(13, "Jan  5 12:34:56", "host", "tag", "msg")
    assert line == "<13>Jan  5 12:34:56 host tag: msg"


def test_main_sends_to_remote(receiver):
    port = receiver.getsockname()[1]
    rc = main(["-4", "-h", "127.0.0.1", "-P", str(port), "-H", "myhost", "-t", "tag", "hello", "world"])
    assert rc == 0
    data = receiver.recv(2048).decode()
    assert data.startswith(f"<{syslog.LOG_USER | syslog.LOG_NOTICE}>")
    assert data.endswith(" myhost tag: hello world")


def test_main_remote_priority(receiver):
    port = receiver.getsockname()[1]
    rc = main(["-4", "-h", "127.0.0.1", "-P", str(port), "-p", "local0.info", "-t", "t", "x"])
    assert rc == 0
    assert receiver.recv(2048).decode().startswith(f"<{syslog.LOG_LOCAL0 | syslog.LOG_INFO}>")


def test_main_reads_file_lines(receiver, tmp_path):
    port = receiver.getsockname()[1]
    source = tmp_path / "input.txt"
    source.write_text("line one\nline two\n")
    rc = main(["-4", "-h", "127.0.0.1", "-P", str(port), "-H", "h", "-t", "t", "-f", str(source)])
    assert rc == 0
    first = receiver.recv(2048).decode()
    second = receiver.recv(2048).decode()
    assert first.endswith(" h t: line one\n")
    assert second.endswith(" h t: line two\n")


def test_main_local_syslog():
    with mock.patch("syslog.openlog") as openlog, mock.patch("syslog.syslog") as log:
        rc = main(["-t", "tag", "-p", "local0.info", "a", "b"])
    assert rc == 0
    assert openlog.call_args.kwargs["ident"] == "tag"
    log.assert_called_once_with(syslog.LOG_LOCAL0 | syslog.LOG_INFO, "a b")


def test_main_source_without_host(capsys):
    assert main(["-S", "127.0.0.1:0", "msg"]) == 1
    assert "-h option is missing." in capsys.readouterr().err


def test_main_bad_priority(receiver, capsys):
    port = receiver.getsockname()[1]
    assert main(["-4", "-h", "127.0.0.1", "-P", str(port), "-p", "bad.info", "m"]) == 1
    assert "unknown facility name: bad" in capsys.readouterr().err


def test_main_unknown_option(capsys):
    assert main(["-z"]) == 1
    assert "usage: logger" in capsys.readouterr().err


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "missing.txt"
    assert main(["-f", str(missing)]) == 1
    assert str(missing) in capsys.readouterr().err