#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 11:40:53 +0100 (Mon, 19 Oct 2026)
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

Baseline Store of DB2 authorization captures for one (instance home, database) pair

Layout under <history_dir>/<instance_home with separators flattened>/<DATABASE>/ :

    <object>.txt    - the latest capture of each tracked object
    history.log     - one JSON record per object per run: timestamp, object, changed, sha256
    .git            - one commit per run, so every previous capture stays retrievable via 'git log -p'
                      while unchanged content is only stored once

Requires the 'git' command in the $PATH, otherwise you can set the path to the git
executable using the environment variable GIT_PYTHON_GIT_EXECUTABLE

There is no locking here, callers must serialize access per store (see instance_lock.py)

"""

import hashlib
import json
import os
import sys
import traceback
from datetime import datetime
import git
try:
    # pylint: disable=wrong-import-position
    from harisekhon.utils import log, plural, UnknownError
except ImportError as _:
    print(traceback.format_exc(), end='')
    sys.exit(4)

__author__ = 'Hari Sekhon'
__version__ = '0.2'


def store_path(history_dir, instance_home, database):
    instance = os.path.abspath(instance_home).strip(os.sep).replace(os.sep, '_') or 'root'
    return os.path.join(os.path.abspath(history_dir), instance, database.upper())


def count_rows(content):
    if content is None:
        return 0
    return len(content.splitlines())


class CaptureChange:

    def __init__(self, name, previous_rows, current_rows):
        self.name = name
        self.previous_rows = previous_rows
        self.current_rows = current_rows

    def __repr__(self):
        return 'CaptureChange({0!r}, {1}, {2})'.format(self.name, self.previous_rows, self.current_rows)


class BaselineStore:

    capture_suffix = '.txt'
    history_file = 'history.log'
    actor = git.Actor('check_db2_diff_db_sec', 'nagios@localhost')

    def __init__(self, history_dir, instance_home, database):
        self.path = store_path(history_dir, instance_home, database)
        self.database = database.upper()
        self._repo = None

    def exists(self):
        return os.path.isdir(os.path.join(self.path, '.git'))

    def initialize(self):
        log.info("initializing baseline store '%s'", self.path)
        try:
            if not os.path.isdir(self.path):
                os.makedirs(self.path)
            self._repo = git.Repo.init(self.path)
            with open(self.history_path, 'a'):
                pass
        except (OSError, git.GitCommandError) as _:
            raise UnknownError("failed to initialize baseline store '{0}': {1}".format(self.path, _))

    @property
    def repo(self):
        if self._repo is None:
            try:
                self._repo = git.Repo(self.path)
            except (git.InvalidGitRepositoryError, git.NoSuchPathError) as _:
                raise UnknownError("baseline store '{0}' is not a valid Git repository: {1}".format(self.path, _))
        return self._repo

    @property
    def history_path(self):
        return os.path.join(self.path, self.history_file)

    def capture_path(self, name):
        return os.path.join(self.path, name + self.capture_suffix)

    def head_tree(self):
        """ Returns the tree of the last commit, None before the first commit """
        try:
            return self.repo.head.commit.tree
        except ValueError:
            return None

    def read(self, name):
        """ Returns the last committed capture of name, None if there isn't one """
        tree = self.head_tree()
        if tree is None:
            return None
        try:
            blob = tree / (name + self.capture_suffix)
        except KeyError:
            return None
        # bytes as committed so that comparisons are byte for byte
        return blob.data_stream.read().decode('utf-8')

    def write(self, name, content):
        with open(self.capture_path(name), 'w', encoding='utf-8', newline='') as capture:
            capture.write(content)

    def commit(self, captures):
        """
        Replaces every capture with the new content, appends one history record per object and commits

        Returns the list of CaptureChange for objects whose content differs from the last committed capture

        Either everything is committed or the store is rolled back to its last commit and UnknownError raised
        """
        timestamp = datetime.now().isoformat()
        changes = []
        records = []
        for name, content in captures.items():
            previous = self.read(name)
            changed = previous is not None and previous != content
            if changed:
                log.info("'%s' authorizations changed (%s => %s rows)", name, count_rows(previous), count_rows(content))
                changes.append(CaptureChange(name, count_rows(previous), count_rows(content)))
            records.append({
                'timestamp': timestamp,
                'object': name,
                'changed': changed,
                'sha256': hashlib.sha256(content.encode('utf-8')).hexdigest()
            })
        message = '{0} {1}: {2} change{3}'.format(timestamp, self.database, len(changes), plural(len(changes)))
        if changes:
            message += ' ({0})'.format(', '.join([change.name for change in changes]))
        history_size = os.path.getsize(self.history_path) if os.path.isfile(self.history_path) else 0
        try:
            for name, content in captures.items():
                self.write(name, content)
            with open(self.history_path, 'a', encoding='utf-8') as history:
                for record in records:
                    history.write(json.dumps(record, sort_keys=True) + '\n')
            self.repo.index.add([name + self.capture_suffix for name in captures] + [self.history_file])
            self.repo.index.commit(message, author=self.actor, committer=self.actor)
        except (OSError, git.GitCommandError) as _:
            self.rollback(list(captures), history_size)
            raise UnknownError("failed to commit to baseline store '{0}': {1}".format(self.path, _))
        log.debug("committed '%s'", message)
        return changes

    def rollback(self, names, history_size):
        """ Discards everything written since the last commit """
        log.warning("rolling back baseline store '%s' to its last commit", self.path)
        try:
            if self.head_tree() is not None:
                self.repo.head.reset(index=True, working_tree=True)
            else:
                self.repo.index.remove([name + self.capture_suffix for name in names] + [self.history_file],
                                       ignore_unmatch=True)
                for name in names:
                    if os.path.isfile(self.capture_path(name)):
                        os.remove(self.capture_path(name))
            with open(self.history_path, 'a', encoding='utf-8') as history:
                history.truncate(history_size)
        except (OSError, git.GitCommandError) as _:
            log.error("failed to roll back baseline store '%s': %s", self.path, _)

    def num_versions(self):
        if self.head_tree() is None:
            return 0
        return sum(1 for _ in self.repo.iter_commits())
