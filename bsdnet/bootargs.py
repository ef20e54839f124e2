"""Reading the telnet password switch from the kernel boot arguments."""

from __future__ import annotations

import logging

BOOTARG = "rdar102068001="

log = logging.getLogger("telnetd")


def password_enabled(bootargs):
    """Return True or False if the boot arguments set the switch, else None.

    ``bootargs`` is the boot-argument string, or None when it could not be read.
    An empty value counts as explicitly disabled; only ``yes`` (in any case)
    enables it.
    """
    result = None
    if bootargs is None:
        log.error("Could not get boot-args")
    else:
        start = bootargs.find(BOOTARG)
        if start >= 0:
            value = bootargs[start + len(BOOTARG) :]
            if not value:
                result = False
            else:
                for sep in " \t":
                    value = value.split(sep, 1)[0]
                result = value.lower() == "yes"
    code = -1 if result is None else int(result)
    log.info("password_enabled = %d", code)
    return result