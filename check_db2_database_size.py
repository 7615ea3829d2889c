#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 15:14:56 +0100 (Mon, 19 Oct 2026)
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

Nagios Plugin to check the size of a DB2 database against its capacity using GET_DBSIZE_INFO

Thresholds apply to the % of capacity used

The procedure refreshes its cached values when called with a refresh window of -1 (the default 30 minutes),
so the size may lag behind recent growth

"""

import sys
import traceback
import humanize
try:
    # pylint: disable=wrong-import-position
    from harisekhon.utils import UnknownError
    from db2_cli import Db2Cli
    from db2_nagios_plugin import DB2NagiosPlugin, CheckResult, threshold_status, perf_thresholds
except ImportError as _:
    print(traceback.format_exc(), end='')
    sys.exit(4)

__author__ = 'Hari Sekhon'
__version__ = '0.2'


def check_database_size(cli, database, warning=None, critical=None):
    cli.validate_instance()
    info = cli.get_dbsize_info(database)
    size = info['DATABASESIZE']
    capacity = info['DATABASECAPACITY']
    if capacity <= 0:
        raise UnknownError("database capacity not available for database '{0}' (DATABASECAPACITY = {1})"
                           .format(database, capacity))
    used_pc = size * 100.0 / capacity
    status = threshold_status(used_pc, warning, critical)
    message = "database '{0}' size = {1} of {2} capacity, {3:.2f}% used"\
              .format(database, humanize.naturalsize(size), humanize.naturalsize(capacity), used_pc)
    perfdata = ['database_size={0}B'.format(size),
                'database_capacity={0}B'.format(capacity),
                'used={0:.2f}%{1}'.format(used_pc, perf_thresholds(warning, critical))]
    return CheckResult(status, message, perfdata)


class CheckDB2DatabaseSize(DB2NagiosPlugin):

    def __init__(self):
        super().__init__()
        self.check_name = 'DB2_Database_Size'
        self.msg = 'DB2 database size msg not defined'

    def add_options(self):
        super().add_options()
        self.add_threshold_opts(default_warning=80, default_critical=90, units=' on % of capacity used')

    def process_options(self):
        super().process_options()
        self.process_threshold_opts()

    def check(self):
        return check_database_size(Db2Cli(self.instance_home), self.database,
                                   self.warning_threshold, self.critical_threshold)


if __name__ == '__main__':
    CheckDB2DatabaseSize().main()
