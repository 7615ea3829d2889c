#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 12:25:08 +0100 (Mon, 19 Oct 2026)
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

Base class for the DB2 Nagios Plugins

Adds the options common to all the DB2 checks (instance home, database, Check_MK output, trace to file),
runs the check under the single instance guard and renders the CheckResult the check returns either in
standard Nagios format or as a Check_MK local check line

Subclasses implement check() returning a CheckResult, or raise UnknownError / CriticalError / WarningError

"""

import logging
import os
import re
import sys
import tempfile
import traceback
try:
    # pylint: disable=wrong-import-position
    from harisekhon.utils import log, prog, ERRORS, CriticalError, WarningError, UnknownError, validate_chars
    from harisekhon import NagiosPlugin
    from instance_lock import InstanceLock
except ImportError as _:
    print(traceback.format_exc(), end='')
    sys.exit(4)

__author__ = 'Hari Sekhon'
__version__ = '0.4'

space_regex = re.compile(r'\s+')


class CheckResult:

    def __init__(self, status, message, perfdata=None, long_text=None, long_perfdata=None):
        if status not in ERRORS:
            raise ValueError("invalid status '{0}'".format(status))
        self.status = status
        self.message = message
        self.perfdata = perfdata or []
        self.long_text = long_text or []
        self.long_perfdata = long_perfdata or []

    def __repr__(self):
        return 'CheckResult({0!r}, {1!r}, {2!r})'.format(self.status, self.message, self.perfdata)


def threshold_status(value, warning=None, critical=None, lower=False):
    """
    Returns the Nagios status of value against the thresholds, either of which may be None

    Upper thresholds are breached at or above the threshold, lower thresholds strictly below it
    """
    def breached(threshold):
        if threshold is None:
            return False
        if lower:
            return value < threshold
        return value >= threshold
    if breached(critical):
        return 'CRITICAL'
    if breached(warning):
        return 'WARNING'
    return 'OK'


def perf_thresholds(warning=None, critical=None):
    return ';{0};{1}'.format('' if warning is None else warning, '' if critical is None else critical)


def result_from_exception(exception):
    for exception_class, status in ((CriticalError, 'CRITICAL'),
                                    (WarningError, 'WARNING'),
                                    (UnknownError, 'UNKNOWN')):
        if isinstance(exception, exception_class):
            return CheckResult(status, str(exception))
    raise exception


def run_guarded(lock, check):
    """ Runs check() while holding lock, converting Nagios exceptions into a CheckResult """
    try:
        with lock:
            return check()
    except (CriticalError, WarningError, UnknownError) as _:
        log.debug('check raised %s: %s', type(_).__name__, _)
        return result_from_exception(_)


def format_plain(result):
    output = '{0}: {1}'.format(result.status, result.message)
    if result.perfdata:
        output += ' | ' + ' '.join(result.perfdata)
    if result.long_text or result.long_perfdata:
        output += '\n' + '\n'.join(result.long_text)
        if result.long_perfdata:
            output += ' | ' + ' '.join(result.long_perfdata)
    return output


def format_checkmk(result, name):
    """
    Check MK local check format:

    statuscode name perfdata message

    spaces are only permitted in the message, perfdata items are separated by '|'
    """
    perfdata = '|'.join([space_regex.sub('_', item) for item in result.perfdata])
    if not perfdata:
        perfdata = '-'
    message = ' '.join(result.message.split())
    return '{status} {name} {perfdata} {message}'.format(status=ERRORS[result.status],
                                                         name=space_regex.sub('_', name),
                                                         perfdata=perfdata,
                                                         message=message)


def enable_trace(trace_file):
    """ Sends debug logging to trace_file without making the console any more verbose """
    for handler in log.handlers + logging.getLogger().handlers:
        if handler.level == logging.NOTSET:
            handler.setLevel(log.getEffectiveLevel())
    file_handler = logging.FileHandler(trace_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(process)d %(levelname)s %(message)s'))
    log.addHandler(file_handler)
    log.setLevel(logging.DEBUG)
    log.debug('tracing %s to %s', prog, trace_file)
    return file_handler


class DB2NagiosPlugin(NagiosPlugin):

    def __init__(self):
        super().__init__()
        self.name = 'DB2'
        self.check_name = 'DB2'
        self.database_required = True
        self.timeout_default = 60
        self.instance_home = None
        self.database = None
        self.warning_threshold = None
        self.critical_threshold = None
        self.checkmk = False
        self.trace_file = os.path.join(tempfile.gettempdir(), '{0}.trace'.format(prog))
        self.msg = 'DB2 msg not defined'

    def add_options(self):
        super().add_options()
        self.add_opt('-i', '--instance-home', default=os.getenv('DB2_INSTANCE_HOME', os.getenv('HOME')),
                     help='DB2 instance home directory containing sqllib/db2profile ' + \
                          '($DB2_INSTANCE_HOME, default: $HOME)')
        if self.database_required:
            self.add_opt('-d', '--database', default=os.getenv('DB2_DATABASE'),
                         help='Database name as cataloged in the instance ($DB2_DATABASE)')
        self.add_opt('-K', '--checkmk', action='store_true', help='Output in Check_MK local check format')
        self.add_opt('-T', '--trace', action='store_true',
                     help='Trace debug logging to {0}'.format(self.trace_file))

    def add_threshold_opts(self, default_warning=None, default_critical=None, _type=float, units=''):
        self.add_opt('-w', '--warning', type=_type, default=default_warning, metavar='num',
                     help='Warning threshold{0} (default: {1})'.format(units, default_warning))
        self.add_opt('-c', '--critical', type=_type, default=default_critical, metavar='num',
                     help='Critical threshold{0} (default: {1})'.format(units, default_critical))

    def process_options(self):
        super().process_options()
        self.no_args()
        self.instance_home = self.get_opt('instance_home')
        if not self.instance_home:
            self.usage('--instance-home not defined')
        if self.database_required:
            self.database = self.get_opt('database')
            if not self.database:
                self.usage('--database not defined')
            validate_chars(self.database, 'database', r'A-Za-z0-9@#$_')
            self.database = self.database.upper()
        self.checkmk = self.get_opt('checkmk')

    def process_threshold_opts(self, lower=False, positive=False):
        self.warning_threshold = self.get_opt('warning')
        self.critical_threshold = self.get_opt('critical')
        for name, threshold in (('warning', self.warning_threshold), ('critical', self.critical_threshold)):
            if threshold is None:
                continue
            if threshold < 0 or (positive and threshold == 0):
                self.usage('--{0} must be {1}'.format(name, 'greater than zero' if positive else 'non-negative'))
        if self.warning_threshold is not None and self.critical_threshold is not None:
            if lower and self.warning_threshold <= self.critical_threshold:
                self.usage('--warning must be greater than --critical for a lower bound threshold')
            elif not lower and self.warning_threshold >= self.critical_threshold:
                self.usage('--warning must be less than --critical')

    def service_name(self):
        parts = [self.check_name, os.path.basename(os.path.normpath(self.instance_home))]
        if self.database:
            parts.append(self.database)
        return '-'.join(parts)

    def lock_key(self):
        """ Arguments identifying this invocation for the single instance guard """
        return sys.argv[1:]

    def check(self):
        raise NotImplementedError('check() not implemented in {0}'.format(type(self).__name__))

    def run(self):
        if self.get_opt('trace'):
            enable_trace(self.trace_file)
        result = run_guarded(InstanceLock(prog, self.lock_key()), self.check)
        self.output(result)

    def output(self, result):
        self.msg = result.message
        if self.checkmk:
            print(format_checkmk(result, self.service_name()))
            # Check_MK takes the status from the output line
            sys.exit(0)
        print(format_plain(result))
        sys.exit(ERRORS[result.status])
