#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 16:40:12 +0100 (Mon, 19 Oct 2026)
#
#  https://github.com/harisekhon/nagios-plugins
#
#  License: see accompanying Hari Sekhon LICENSE file
#

"""

Shared fixtures for the DB2 plugin tests

instance_home is a directory that passes instance validation, its db2profile puts a fake 'db2' command first in
the $PATH which answers from files under the 'catalog' directory so that the shell side of Db2Cli runs for real

"""

import json
import os
import stat
import textwrap
from collections import OrderedDict

import pytest

from harisekhon.utils import UnknownError

from db2_cli import Db2Cli, TRACKED_OBJECTS

FAKE_DB2 = textwrap.dedent("""\
    #!/bin/sh
    data="{data}"
    case "$1" in
        connect)
            if [ "$2" = "reset" ]; then
                exit 0
            fi
            if [ -f "$data/connect_error" ]; then
                cat "$data/connect_error"
                exit 8
            fi
            echo
            echo "   Database Connection Information"
            echo
            echo " Database server        = DB2/LINUXX8664 11.5.8.0"
            echo " Local database alias   = $3"
            exit 0
            ;;
        list)
            cat "$data/db_directory"
            exit 0
            ;;
        -x)
            echo "$2" >> "$data/queries"
            view=$(echo "$2" | sed 's/.* FROM \\([A-Z.]*\\) .*/\\1/')
            if [ -s "$data/$view" ]; then
                cat "$data/$view"
                exit 0
            fi
            exit 1
            ;;
    esac
    echo "DB21034E  The command was processed as an SQL statement because it was not a valid Command Line Processor command."
    exit 4
""")

DB_DIRECTORY = textwrap.dedent("""\

     System Database Directory

     Number of entries in the directory = 1

    Database 1 entry:

     Database alias                       = SAMPLE
     Database name                        = SAMPLE
     Local database directory             = /home/db2inst1
     Database release level               = 15.00
     Comment                              =
     Directory entry type                 = Indirect
     Catalog database partition number    = 0
     Alternate server hostname            =
     Alternate server port number         =

""")


def sample_captures():
    captures = OrderedDict()
    for name, view in TRACKED_OBJECTS.items():
        captures[name] = 'SYSIBM   S DB2INST1   U {0} Y\n'.format(view)
    captures['xsrobject'] = ''
    return captures


def read_history(store):
    """ Returns the history.log records of a BaselineStore """
    if not os.path.isfile(store.history_path):
        return []
    with open(store.history_path, encoding='utf-8') as history:
        return [json.loads(line) for line in history if line.strip()]


class FakeDb2Cli:

    def __init__(self, instance_home, databases=('SAMPLE',), captures=None):
        self.instance_home = str(instance_home)
        self.databases = list(databases)
        self.captures = captures if captures is not None else sample_captures()
        self.connect_error = None
        self.capture_calls = 0

    def validate_instance(self):
        Db2Cli(self.instance_home).validate_instance()

    def list_databases(self):
        return self.databases

    def capture_authorizations(self, database, tracked_objects=None):
        self.capture_calls += 1
        if self.connect_error:
            raise UnknownError("failed to connect to database '{0}': {1}".format(database, self.connect_error))
        return OrderedDict(self.captures)


@pytest.fixture
def catalog_dir(tmp_path):
    catalog = tmp_path / 'catalog'
    catalog.mkdir()
    (catalog / 'db_directory').write_text(DB_DIRECTORY)
    for name, view in TRACKED_OBJECTS.items():
        if name != 'xsrobject':
            (catalog / view).write_text('DB2INST1 U PUBLIC   G {0} N\n'.format(name.upper()))
    return catalog


@pytest.fixture
def instance_home(tmp_path, catalog_dir):
    home = tmp_path / 'home' / 'db2inst1'
    bindir = tmp_path / 'bin'
    (home / 'sqllib').mkdir(parents=True)
    bindir.mkdir()
    db2 = bindir / 'db2'
    db2.write_text(FAKE_DB2.format(data=catalog_dir))
    db2.chmod(db2.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    (home / 'sqllib' / 'db2profile').write_text('PATH="{0}:$PATH"\nexport PATH\n'.format(bindir))
    return home


@pytest.fixture
def history_dir(tmp_path):
    return str(tmp_path / 'history')


@pytest.fixture
def fake_cli(instance_home):
    return FakeDb2Cli(instance_home)


@pytest.fixture(autouse=True)
def no_db2_env(monkeypatch):
    for name in ('DB2_INSTANCE_HOME', 'DB2_DATABASE'):
        monkeypatch.delenv(name, raising=False)
