#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 15:37:19 +0100 (Mon, 19 Oct 2026)
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

Nagios Plugin to check the transaction log consumption of a DB2 database from the database snapshot

Thresholds apply to the % of the active log space used, a full log stops all write transactions

"""

import re
import sys
import traceback
import humanize
try:
    # pylint: disable=wrong-import-position
    from harisekhon.utils import log, UnknownError
    from db2_cli import Db2Cli
    from db2_nagios_plugin import DB2NagiosPlugin, CheckResult, threshold_status, perf_thresholds
except ImportError as _:
    print(traceback.format_exc(), end='')
    sys.exit(4)

__author__ = 'Hari Sekhon'
__version__ = '0.2'

LOG_USED = 'Log space used by the database (Bytes)'
LOG_AVAILABLE = 'Log space available to the database (Bytes)'


def log_space(snapshot):
    """ Returns (used, available) in bytes from a parsed database snapshot """
    values = []
    for key in (LOG_USED, LOG_AVAILABLE):
        value = snapshot.get(key)
        log.debug("%s = %s", key, value)
        if value is None or not re.match(r'^\d+$', value):
            raise UnknownError("'{0}' missing or non-integer in database snapshot: '{1}'".format(key, value))
        values.append(int(value))
    return tuple(values)


def check_log_consumption(cli, database, warning=None, critical=None):
    cli.validate_instance()
    (used, available) = log_space(cli.get_database_snapshot(database))
    total = used + available
    if total == 0:
        raise UnknownError("no log space reported for database '{0}'".format(database))
    used_pc = used * 100.0 / total
    status = threshold_status(used_pc, warning, critical)
    message = "database '{0}' log space used = {1:.2f}% ({2} of {3})"\
              .format(database, used_pc, humanize.naturalsize(used), humanize.naturalsize(total))
    perfdata = ['log_used_pc={0:.2f}%{1}'.format(used_pc, perf_thresholds(warning, critical)),
                'log_used={0}B'.format(used),
                'log_available={0}B'.format(available)]
    return CheckResult(status, message, perfdata)


class CheckDB2LogConsumption(DB2NagiosPlugin):

    def __init__(self):
        super().__init__()
        self.check_name = 'DB2_Log_Consumption'
        self.msg = 'DB2 log consumption msg not defined'

    def add_options(self):
        super().add_options()
        self.add_threshold_opts(default_warning=80, default_critical=90, units=' on % of log space used')

    def process_options(self):
        super().process_options()
        self.process_threshold_opts()

    def check(self):
        return check_log_consumption(Db2Cli(self.instance_home), self.database,
                                     self.warning_threshold, self.critical_threshold)


if __name__ == '__main__':
    CheckDB2LogConsumption().main()
