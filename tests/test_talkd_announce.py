from datetime import datetime

from bsdnet.talkd_announce import announce, build_announcement
from bsdnet.talkproto import Answer, CtlMsg

WHEN = datetime(2024, 3, 5, 9, 7)


def _body_lines(text):
    assert text.startswith("\a\r\n")
    body = text[3:]
    assert body.endswith("\r\n")
    return body[:-2].split("\r\n")


def test_announcement_contents():
    text = build_announcement("hosta", "alice", "hostb", WHEN)
    lines = [line.rstrip() for line in _body_lines(text)]
    assert lines[1] == "Message from Talk_Daemon@hosta at 9:07 on 2024/03/05 ..."
    assert lines[2] == "talk: connection requested by alice@hostb"
    assert lines[3] == "talk: respond with:  talk alice@hostb"
    assert lines[0] == "" and lines[4] == ""


def test_lines_padded_to_common_width():
    text = build_announcement("hosta", "alice", "hostb", WHEN)
    lines = _body_lines(text)
    assert len(lines) == 5
    widths = {len(line) for line in lines}
    assert len(widths) == 1
    assert widths.pop() == max(len(line.rstrip()) for line in lines) + 2


def test_control_characters_escaped():
    text = build_announcement("h", "bob\x01", "r", WHEN)
    assert "requested by bob\\^A@r" in text
    assert "\x01" not in text


def test_backslash_escaped():
    text = build_announcement("h", "a\\b", "r", WHEN)
    assert "talk a\\\\b@r" in text


def test_long_line_truncated():
    text = build_announcement("h", "u", "m" * 400, WHEN)
    assert max(len(line.rstrip()) for line in _body_lines(text)) == 255


def test_missing_tty_refused():
    request = CtlMsg(l_name="alice", r_name="bob", r_tty="no-such-tty-for-talk")
    assert announce(request, "hostb", "hosta") is Answer.PERMISSION_DENIED