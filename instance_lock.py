#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 11:02:17 +0100 (Mon, 19 Oct 2026)
#
#  https://github.com/harisekhon/nagios-plugins
#
#  License: see accompanying Hari Sekhon LICENSE file
#
#  If you're using my code you're welcome to connect with me on LinkedIn
#  and optionally send me feedback to help steer this or other code I publish
#
#  https://www.linkedin.com/in/harisekhon
#

"""

Single instance guard so that only one invocation of a plugin with an identical set of arguments runs at a time

The lock is a file in the temp directory named after the program and a hash of the normalized argument string.
Ownership is an exclusive flock held on it for the lifetime of the invocation, the file also holds the owner's pid
for reporting. The kernel drops the flock when its owner dies so there are no stale locks to reclaim

"""

import errno
import fcntl
import hashlib
import os
import sys
import tempfile
import traceback
try:
    # pylint: disable=wrong-import-position
    from harisekhon.utils import log, UnknownError
except ImportError as _:
    print(traceback.format_exc(), end='')
    sys.exit(4)

__author__ = 'Hari Sekhon'
__version__ = '0.3'


def normalize_args(args):
    return ' '.join([' '.join(arg.split()) for arg in args if arg.strip()])


class InstanceLock:

    def __init__(self, name, args, lock_dir=None):
        self.argstr = normalize_args(args)
        digest = hashlib.sha1(self.argstr.encode('utf-8')).hexdigest()
        self.path = os.path.join(lock_dir or tempfile.gettempdir(), '{0}.{1}.lock'.format(name, digest))
        self.fd = None

    @property
    def acquired(self):
        return self.fd is not None

    def owner(self):
        """ Returns the pid written in the lock file, None if missing or unreadable """
        try:
            with open(self.path) as lockfile:
                content = lockfile.read().strip()
        except FileNotFoundError:
            return None
        try:
            return int(content)
        except ValueError:
            return None

    def acquire(self):
        log.debug("acquiring lock '%s' for args '%s'", self.path, self.argstr)
        for attempt in range(3):
            try:
                fd = os.open(self.path, os.O_CREAT | os.O_RDWR, 0o644)
            except OSError as _:
                raise UnknownError("failed to open lock file '{0}': {1}".format(self.path, _))
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError as _:
                os.close(fd)
                if _.errno not in (errno.EAGAIN, errno.EACCES):
                    raise UnknownError("failed to lock '{0}': {1}".format(self.path, _))
                raise UnknownError('another instance is already running with the same arguments (pid {0}, lock {1})'
                                   .format(self.owner() or 'unknown', self.path))
            # the previous owner unlinks the file on release, a lock on an unlinked file guards nothing
            try:
                current = os.path.samestat(os.fstat(fd), os.stat(self.path))
            except FileNotFoundError:
                current = False
            if not current:
                log.debug("lock file '%s' was replaced while locking (attempt %s), retrying", self.path, attempt + 1)
                os.close(fd)
                continue
            os.ftruncate(fd, 0)
            os.write(fd, str(os.getpid()).encode('utf-8'))
            self.fd = fd
            log.debug("acquired lock '%s'", self.path)
            return
        raise UnknownError("failed to acquire lock file '{0}'".format(self.path))

    def release(self):
        if self.fd is None:
            return
        # unlink before dropping the flock
        try:
            os.remove(self.path)
        except FileNotFoundError:
            log.debug("lock file '%s' already removed", self.path)
        os.close(self.fd)
        self.fd = None
        log.debug("released lock '%s'", self.path)

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, *args):
        self.release()
