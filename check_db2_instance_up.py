#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 14:21:37 +0100 (Mon, 19 Oct 2026)
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

Nagios Plugin to check a DB2 instance is up using 'db2pd -'

Raises Critical if db2pd cannot attach to the instance

Optional thresholds are the minimum uptime in seconds to catch recently restarted instances

"""

import sys
import traceback
try:
    # pylint: disable=wrong-import-position
    from harisekhon.utils import sec2human
    from db2_cli import Db2Cli, parse_db2pd_header
    from db2_nagios_plugin import DB2NagiosPlugin, CheckResult, threshold_status, perf_thresholds
except ImportError as _:
    print(traceback.format_exc(), end='')
    sys.exit(4)

__author__ = 'Hari Sekhon'
__version__ = '0.2'


def check_instance_up(cli, warning=None, critical=None):
    cli.validate_instance()
    header = parse_db2pd_header(cli.db2pd('-'))
    if header is None:
        return CheckResult('CRITICAL', "DB2 instance '{0}' is down, db2pd unable to attach".format(cli.instance_home),
                           ['uptime=0s' + perf_thresholds(warning, critical)])
    (member, state, uptime) = header
    status = threshold_status(uptime, warning, critical, lower=True)
    message = "DB2 instance '{0}' member {1} is {2}, up for {3}".format(cli.instance_home, member, state,
                                                                        sec2human(uptime))
    if status != 'OK':
        message += ' (recently restarted?)'
    return CheckResult(status, message, ['uptime={0}s{1}'.format(uptime, perf_thresholds(warning, critical))])


class CheckDB2InstanceUp(DB2NagiosPlugin):

    def __init__(self):
        super().__init__()
        self.check_name = 'DB2_Instance_Up'
        self.database_required = False
        self.msg = 'DB2 instance msg not defined'

    def add_options(self):
        super().add_options()
        self.add_threshold_opts(_type=int, units=' on the minimum uptime in seconds')

    def process_options(self):
        super().process_options()
        self.process_threshold_opts(lower=True)

    def check(self):
        return check_instance_up(Db2Cli(self.instance_home), self.warning_threshold, self.critical_threshold)


if __name__ == '__main__':
    CheckDB2InstanceUp().main()
