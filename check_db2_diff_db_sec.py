#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 13:08:44 +0100 (Mon, 19 Oct 2026)
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

Nagios Plugin to detect changes in the security of a DB2 database

Captures the authorizations of 14 catalog views (SYSCAT.COLAUTH, DBAUTH, INDEXAUTH, MODULEAUTH, PACKAGEAUTH,
ROLEAUTH, ROUTINEAUTH, SCHEMAAUTH, SEQUENCEAUTH, TABAUTH, TBSPACEAUTH, VARIABLEAUTH, WORKLOADAUTH, XSROBJECTAUTH)
and compares each against the capture from the previous run, raising Warning listing the categories that changed

The captures are kept in a Git backed history directory per instance and database (see --history-dir), the new
capture always becomes the baseline for the next run. The first run for a database has nothing to compare against

Thresholds apply to the number of changed categories. Defaults raise Warning on any change and never Critical

Perfdata 'Changes' is 0 on the first run, 1 when nothing changed and 1 + the number of changed categories otherwise

Requires the 'db2' and 'git' commands, db2 is loaded from the instance environment <instance_home>/sqllib/db2profile

"""

import os
import sys
import tempfile
import traceback
try:
    # pylint: disable=wrong-import-position
    from harisekhon.utils import log, plural, UnknownError
    from db2_baseline_store import BaselineStore, store_path
    from db2_cli import Db2Cli, TRACKED_OBJECTS
    from db2_nagios_plugin import DB2NagiosPlugin, CheckResult, threshold_status
except ImportError as _:
    print(traceback.format_exc(), end='')
    sys.exit(4)

__author__ = 'Hari Sekhon'
__version__ = '0.3'

DEFAULT_HISTORY_DIR = os.path.join(tempfile.gettempdir(), 'check_db2_diff_db_sec')


class SecurityDiffConfig:

    def __init__(self, instance_home, database, history_dir=None, warning=1, critical=None):
        self.instance_home = instance_home
        self.database = database.upper()
        self.history_dir = history_dir or DEFAULT_HISTORY_DIR
        self.warning = warning
        self.critical = critical


def check_security_diff(config, cli):
    cli.validate_instance()
    databases = cli.list_databases()
    if config.database not in databases:
        raise UnknownError("database '{0}' is not cataloged in instance home '{1}'"
                           .format(config.database, config.instance_home))
    # capture everything before touching the store so a failure leaves the baseline as it was
    captures = cli.capture_authorizations(config.database, TRACKED_OBJECTS)
    store = BaselineStore(config.history_dir, config.instance_home, config.database)
    if not store.exists():
        store.initialize()
    # a store whose first commit failed is still a first run
    first_run = store.num_versions() == 0
    changes = store.commit(captures)
    if first_run:
        return CheckResult('OK', 'database {0}: first execution, nothing to compare'.format(config.database),
                           ['Changes=0'])
    perfdata = ['Changes={0}'.format(1 + len(changes))]
    if not changes:
        return CheckResult('OK', 'database {0}: no changes in security'.format(config.database), perfdata)
    num_changes = len(changes)
    status = threshold_status(num_changes, config.warning, config.critical)
    message = 'database {0}: security changes in {1} categor{2}: {3}'\
              .format(config.database, num_changes, 'y' if num_changes == 1 else 'ies',
                      ', '.join([change.name for change in changes]))
    long_text = ['{0}: {1} => {2} row{3}'.format(change.name, change.previous_rows, change.current_rows,
                                                 plural(change.current_rows))
                 for change in changes]
    log.info('%s', message)
    return CheckResult(status, message, perfdata, long_text)


class CheckDB2DiffDbSec(DB2NagiosPlugin):

    def __init__(self):
        super().__init__()
        self.check_name = 'DB2_Security_Changes'
        self.history_dir = None
        self.msg = 'DB2 security diff msg not defined'

    def add_options(self):
        super().add_options()
        self.add_opt('-H', '--history-dir', default=DEFAULT_HISTORY_DIR,
                     help='Directory under which to keep the captures (default: {0})'.format(DEFAULT_HISTORY_DIR))
        self.add_threshold_opts(default_warning=1, _type=int, units=' on the number of changed categories')

    def process_options(self):
        super().process_options()
        self.history_dir = self.get_opt('history_dir')
        if not self.history_dir:
            self.usage('--history-dir not defined')
        self.process_threshold_opts(positive=True)

    def lock_key(self):
        # invocations sharing a Baseline Store exclude each other whatever their other options
        return [store_path(self.history_dir, self.instance_home, self.database)]

    def check(self):
        config = SecurityDiffConfig(self.instance_home, self.database, self.history_dir,
                                    self.warning_threshold, self.critical_threshold)
        return check_security_diff(config, Db2Cli(self.instance_home))


if __name__ == '__main__':
    CheckDB2DiffDbSec().main()
