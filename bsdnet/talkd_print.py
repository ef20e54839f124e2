"""Debug descriptions of control requests and responses."""

from __future__ import annotations

_TYPES = ("leave_invite", "look_up", "delete", "announce")
_ANSWERS = (
    "success",
    "not_here",
    "failed",
    "machine_unknown",
    "permission_denied",
    "unknown_request",
    "badversion",
    "badaddr",
    "badctladdr",
)


def _lookup(value, names, kind):
    number = int(value)
    if 0 <= number < len(names):
        return names[number]
    return f"{kind} {number}"


def format_request(label, msg):
    """Describe a request in one line."""
    kind = _lookup(msg.type, _TYPES, "type")
    return (
        f"{label}: {kind}: id {msg.id_num}, l_user {msg.l_name}, "
        f"r_user {msg.r_name}, r_tty {msg.r_tty}"
    )


def format_response(label, response):
    """Describe a response in one line."""
    kind = _lookup(response.type, _TYPES, "type")
    answer = _lookup(response.answer, _ANSWERS, "answer")
    return f"{label}: {kind}: {answer}, id {response.id_num}"