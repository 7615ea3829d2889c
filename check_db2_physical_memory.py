#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 16:02:45 +0100 (Mon, 19 Oct 2026)
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

Nagios Plugin to check the memory used by a DB2 instance against its memory limit using 'db2pd -dbptnmem'

Thresholds apply to the % of the instance memory limit currently in use

"""

import sys
import traceback
import humanize
try:
    # pylint: disable=wrong-import-position
    from harisekhon.utils import UnknownError
    from db2_cli import Db2Cli, parse_dbptnmem
    from db2_nagios_plugin import DB2NagiosPlugin, CheckResult, threshold_status, perf_thresholds
except ImportError as _:
    print(traceback.format_exc(), end='')
    sys.exit(4)

__author__ = 'Hari Sekhon'
__version__ = '0.1'


def check_physical_memory(cli, warning=None, critical=None):
    cli.validate_instance()
    memory = parse_dbptnmem(cli.db2pd('-dbptnmem'))
    limit = memory['limit_kb'] * 1024
    usage = memory['usage_kb'] * 1024
    if limit <= 0:
        raise UnknownError('DB2 instance memory limit reported as {0} KB'.format(memory['limit_kb']))
    used_pc = usage * 100.0 / limit
    status = threshold_status(used_pc, warning, critical)
    message = 'DB2 instance memory used = {0:.2f}% ({1} of {2} limit)'\
              .format(used_pc, humanize.naturalsize(usage, binary=True), humanize.naturalsize(limit, binary=True))
    perfdata = ['memory_used_pc={0:.2f}%{1}'.format(used_pc, perf_thresholds(warning, critical)),
                'memory_used={0}B'.format(usage),
                'memory_limit={0}B'.format(limit)]
    if memory['hwm_kb'] is not None:
        perfdata.append('memory_hwm={0}B'.format(memory['hwm_kb'] * 1024))
    return CheckResult(status, message, perfdata)


class CheckDB2PhysicalMemory(DB2NagiosPlugin):

    def __init__(self):
        super().__init__()
        self.check_name = 'DB2_Physical_Memory'
        self.database_required = False
        self.msg = 'DB2 memory msg not defined'

    def add_options(self):
        super().add_options()
        self.add_threshold_opts(default_warning=80, default_critical=90, units=' on % of memory limit used')

    def process_options(self):
        super().process_options()
        self.process_threshold_opts()

    def check(self):
        return check_physical_memory(Db2Cli(self.instance_home), self.warning_threshold, self.critical_threshold)


if __name__ == '__main__':
    CheckDB2PhysicalMemory().main()
