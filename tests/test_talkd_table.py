from bsdnet.talkd_table import MAX_ID, InvitationTable
from bsdnet.talkproto import Answer, CtlMsg, RequestType


class _Clock:
    def __init__(self, now=100):
        self.now = now

    def __call__(self):
        return self.now


def _invite(l_name="alice", r_name="bob", pid=11, kind=RequestType.LEAVE_INVITE):
    return CtlMsg(type=kind, l_name=l_name, r_name=r_name, pid=pid)


def test_new_id_counts_from_one():
    table = InvitationTable(clock=_Clock())
    assert [table.new_id() for _ in range(3)] == [1, 2, 3]


def test_new_id_wraps_skipping_zero():
    table = InvitationTable(clock=_Clock())
    ids = [table.new_id() for _ in range(MAX_ID)]
    assert ids[-2] == MAX_ID - 1
    assert ids[-1] == 1
    assert 0 not in ids


def test_insert_assigns_id_and_stores():
    table = InvitationTable(clock=_Clock())
    req = _invite()
    id_num = table.insert(req)
    assert req.id_num == id_num
    assert len(table) == 1
    assert list(table)[0].id_num == id_num


def test_find_request_identical():
    table = InvitationTable(clock=_Clock())
    table.insert(_invite())
    found = table.find_request(_invite())
    assert found is not None and found.l_name == "alice"
    assert table.find_request(_invite(pid=99)) is None
    assert table.find_request(_invite(kind=RequestType.ANNOUNCE)) is None


def test_find_request_returns_stored_object():
    table = InvitationTable(clock=_Clock())
    table.insert(_invite())
    found = table.find_request(_invite())
    found.id_num = 500
    assert list(table)[0].id_num == 500


def test_find_match_complementary():
    table = InvitationTable(clock=_Clock())
    table.insert(_invite(l_name="alice", r_name="bob"))
    looking = CtlMsg(type=RequestType.LOOK_UP, l_name="bob", r_name="alice")
    match = table.find_match(looking)
    assert match is not None and match.l_name == "alice"
    assert table.find_match(CtlMsg(l_name="carol", r_name="alice")) is None


def test_find_match_ignores_announce_entries():
    table = InvitationTable(clock=_Clock())
    table.insert(_invite(kind=RequestType.ANNOUNCE))
    assert table.find_match(CtlMsg(l_name="bob", r_name="alice")) is None


def test_newest_first():
    table = InvitationTable(clock=_Clock())
    first = table.insert(_invite(pid=1))
    second = table.insert(_invite(pid=2))
    assert [m.id_num for m in table] == [second, first]


def test_delete_invite():
    table = InvitationTable(clock=_Clock())
    a = table.insert(_invite(pid=1))
    b = table.insert(_invite(pid=2))
    assert table.delete_invite(a) is Answer.SUCCESS
    assert [m.id_num for m in table] == [b]
    assert table.delete_invite(a) is Answer.NOT_HERE


def test_entry_with_time_far_ahead_is_dropped():
    clock = _Clock(1000)
    table = InvitationTable(clock=clock)
    table.insert(_invite())
    clock.now = 0
    assert table.find_request(_invite()) is None
    assert len(table) == 0