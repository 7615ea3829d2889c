#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 14:48:02 +0100 (Mon, 19 Oct 2026)
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

Nagios Plugin to check a connection can be established to a DB2 database

Raises Critical with the SQL message if the connection fails, otherwise thresholds apply to the time taken
to connect in seconds

"""

import sys
import traceback
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


def check_database_connection(cli, database, warning=None, critical=None):
    cli.validate_instance()
    try:
        elapsed = cli.connect(database)
    except UnknownError as _:
        log.info('connection failed: %s', _)
        return CheckResult('CRITICAL', str(_), ['connection_time=0s' + perf_thresholds(warning, critical)])
    status = threshold_status(elapsed, warning, critical)
    message = "connected to database '{0}' in {1:.2f} secs".format(database, elapsed)
    return CheckResult(status, message,
                       ['connection_time={0:.4f}s{1}'.format(elapsed, perf_thresholds(warning, critical))])


class CheckDB2DatabaseConnection(DB2NagiosPlugin):

    def __init__(self):
        super().__init__()
        self.check_name = 'DB2_Database_Connection'
        self.msg = 'DB2 connection msg not defined'

    def add_options(self):
        super().add_options()
        self.add_threshold_opts(default_warning=5, default_critical=10, units=' on connection time in seconds')

    def process_options(self):
        super().process_options()
        self.process_threshold_opts()

    def check(self):
        return check_database_connection(Db2Cli(self.instance_home), self.database,
                                         self.warning_threshold, self.critical_threshold)


if __name__ == '__main__':
    CheckDB2DatabaseConnection().main()
