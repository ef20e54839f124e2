import socket
import threading
from unittest import mock

import pytest

from bsdnet.talk_net import (
    ControlChannel,
    TalkNetError,
    find_interface,
    format_addr,
    open_stream_socket,
    resolve_daemon_port,
)
from bsdnet.talkproto import AF_INET, Answer, CtlMsg, CtlResponse, RequestType


def _fake_daemon(replies, drop_first=False):
    """Start a UDP daemon; ``replies`` maps a received message to responses."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(5)
    received = []

    def run():
        try:
            while True:
                data, peer = sock.recvfrom(1024)
                msg = CtlMsg.unpack(data)
                received.append(msg)
                if drop_first and len(received) == 1:
                    continue
                for response in replies(msg):
                    sock.sendto(response.pack(), peer)
                return
        except OSError:
            return

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return sock, thread, received


def test_find_interface_loopback():
    assert find_interface("127.0.0.1") == "127.0.0.1"


def test_resolve_daemon_port_uses_service_entry():
    with mock.patch("socket.getservbyname", return_value=518) as getserv:
        assert resolve_daemon_port() == 518
    getserv.assert_called_once_with("ntalk", "udp")


def test_resolve_daemon_port_unregistered():
    with mock.patch("socket.getservbyname", side_effect=OSError("not found")):
        with pytest.raises(TalkNetError, match="ntalk/udp"):
            resolve_daemon_port()


def test_open_stream_socket_binds_ephemeral_port():
    sock = open_stream_socket("127.0.0.1")
    try:
        host, port = sock.getsockname()
        assert host == "127.0.0.1"
        assert port > 0
        assert sock.type == socket.SOCK_STREAM
    finally:
        sock.close()


def test_format_addr_fields():
    text = format_addr((AF_INET, "127.0.0.1", 518))
    assert text.startswith("addr = 7f000001, ")
    assert f"port = {518:o}" in text
    assert text.endswith("zero = " + "0 " * 8)


def test_transact_skips_wrong_type_and_returns_match():
    def replies(msg):
        return [
            CtlResponse(type=RequestType.DELETE, answer=Answer.FAILED, id_num=9),
            CtlResponse(type=msg.type, answer=Answer.SUCCESS, id_num=42),
        ]

    daemon, thread, received = _fake_daemon(replies)
    port = daemon.getsockname()[1]
    msg = CtlMsg(l_name="alice", r_name="bob")
    try:
        with ControlChannel("127.0.0.1", port, wait=1) as channel:
            response = channel.transact("127.0.0.1", msg, RequestType.LOOK_UP)
        thread.join(5)
        assert response.type == RequestType.LOOK_UP
        assert response.answer == Answer.SUCCESS
        assert response.id_num == 42
        assert received[0].type == RequestType.LOOK_UP
        assert received[0].l_name == "alice"
        assert msg.type == RequestType.LEAVE_INVITE
    finally:
        daemon.close()


def test_transact_resends_until_answered():
    def replies(msg):
        return [CtlResponse(type=msg.type, answer=Answer.NOT_HERE, id_num=3)]

    daemon, thread, received = _fake_daemon(replies, drop_first=True)
    port = daemon.getsockname()[1]
    try:
        with ControlChannel("127.0.0.1", port, wait=0.2) as channel:
            response = channel.transact("127.0.0.1", CtlMsg(), RequestType.ANNOUNCE)
        thread.join(5)
        assert len(received) >= 2
        assert response.answer == Answer.NOT_HERE
    finally:
        daemon.close()


def test_channel_close():
    channel = ControlChannel("127.0.0.1", 518)
    assert channel.address[0] == "127.0.0.1"
    channel.close()
    assert channel.closed is True