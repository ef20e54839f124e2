# bsdnet

A `logger` command for writing messages to the system log, and the
building blocks of the Unix `talk` chat system: the control protocol
records, the daemon's invitation table and request handling, and the
client's sockets, windows and screen.

## Installation

    pip install .

For the tests:

    pip install ".[test]"
    pytest

## logger

Writes messages to the system log.

    logger [-46Ais] [-f file] [-h host] [-P port] [-p pri] [-t tag]
           [-S addr:port] [message ...]

It can also be run as `python -m bsdnet.logger`.

- Message arguments are joined with spaces. They are sent in chunks that
  fit a 1024-byte buffer. A word too long for the buffer is sent on its own.
- With no message arguments, each line of standard input is logged, or
  each line of the file given with `-f`.
- `-p` takes a priority as `facility.level` or `level`, for example
  `local0.info`. Names are case-insensitive and numbers are accepted.
  The default is `user.notice`.
- `-t` sets the tag. The default is the login name.
- `-i` logs the process id.
- `-s` also writes the message to standard error.
- `-h host` sends each message over UDP to a remote syslog host instead of
  the local log. The line has the form `<pri>timestamp hostname tag: message`.
  - `-P` sets the service or port. The default is `syslog`, and port 514
    is used if that service is unknown.
  - `-H` sets the hostname put in the line.
  - `-S addr:port` binds a source address. `[v6addr]:port` is also
    accepted. `-S` needs `-h`.
  - `-4` and `-6` restrict the address family.
  - `-A` sends to every resolved address rather than stopping at the
    first one that succeeds.
- Errors are reported on standard error, and the exit status is 1.

## Library modules

- `bsdnet.talkproto`: the `CtlMsg` and `CtlResponse` wire records with
  `pack()` and `unpack()`, and the `RequestType` and `Answer` enums.
- `bsdnet.talkd_table`: `InvitationTable`, the pending invitations. It has
  `find_match`, `find_request`, `insert`, `new_id` and `delete_invite`.
  Entries expire after `MAX_LIFE` seconds.
- `bsdnet.talkd_process`: `RequestProcessor.process(msg)` turns a request
  into a `CtlResponse`. `find_user` picks the terminal of a logged-in user.
  Logged-in sessions come from `psutil`.
- `bsdnet.talkd_announce`: `build_announcement` and `announce`, which ring
  a user's terminal.
- `bsdnet.talkd_print`: `format_request` and `format_response` for debug
  lines.
- `bsdnet.talk_names`: `parse_person` splits `user`, `user@host`,
  `host!user` or `host:user`. `get_names` returns a `TalkTarget`.
- `bsdnet.talk_net`: `ControlChannel.transact` sends a request to a daemon
  and repeats it until a matching reply arrives. The module also has
  `find_interface`, `resolve_daemon_port`, `open_stream_socket` and
  `format_addr`.
- `bsdnet.talk_display`: `TalkWindow`, a text window that handles erase,
  word-erase, kill, Ctrl-D and Ctrl-L.
- `bsdnet.talk_screen`: `Screen`, the curses split screen. The module also
  has `check_writeable` and `exchange_edit_chars`.
- `bsdnet.talk_msgs`: `StatusTicker`, which repeats a status message every
  few seconds.
- `bsdnet.bootargs`: `password_enabled` reads a switch from a boot-argument
  string.

## What this package does not do

- There is no `talk` command. The package has no code that looks up or
  leaves invitations for a call, and no loop that carries a conversation
  between the two screens.
- There is no `talkd` daemon. Requests can be processed with
  `RequestProcessor`, but the package has no server that receives control
  datagrams and sends the replies.