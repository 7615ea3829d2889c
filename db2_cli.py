#!/usr/bin/env python
#  coding=utf-8
#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 10:12:41 +0100 (Mon, 19 Oct 2026)
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

Runs the DB2 command line processor and db2pd inside a DB2 instance environment and parses their output

All db2 commands of one call run in the same shell so they share the CLP back end process and therefore
the database connection. The instance environment is loaded from <instance_home>/sqllib/db2profile

Each parse_* function declares the exact output shape it expects and raises UnknownError on anything
else instead of guessing at columns

"""

import os
import re
import shlex
import subprocess
import sys
import time
import traceback
from collections import OrderedDict
try:
    # pylint: disable=wrong-import-position
    from harisekhon.utils import log, UnknownError
except ImportError as _:
    print(traceback.format_exc(), end='')
    sys.exit(4)

__author__ = 'Hari Sekhon'
__version__ = '0.3'

# name => SYSCAT authorization view, in reporting order
TRACKED_OBJECTS = OrderedDict([
    ('columns', 'SYSCAT.COLAUTH'),
    ('database', 'SYSCAT.DBAUTH'),
    ('index', 'SYSCAT.INDEXAUTH'),
    ('module', 'SYSCAT.MODULEAUTH'),
    ('package', 'SYSCAT.PACKAGEAUTH'),
    ('role', 'SYSCAT.ROLEAUTH'),
    ('routine', 'SYSCAT.ROUTINEAUTH'),
    ('schema', 'SYSCAT.SCHEMAAUTH'),
    ('sequence', 'SYSCAT.SEQUENCEAUTH'),
    ('table', 'SYSCAT.TABAUTH'),
    ('tablespace', 'SYSCAT.TBSPACEAUTH'),
    ('variable', 'SYSCAT.VARIABLEAUTH'),
    ('workload', 'SYSCAT.WORKLOADAUTH'),
    ('xsrobject', 'SYSCAT.XSROBJECTAUTH'),
])

MARKER = '@@@'

GRANT_COLUMNS = ['GRANTOR', 'GRANTORTYPE', 'GRANTEE', 'GRANTEETYPE']

# view => columns which together with GRANT_COLUMNS uniquely identify a row
AUTH_KEY_COLUMNS = {
    'SYSCAT.COLAUTH': ['TABSCHEMA', 'TABNAME', 'COLNAME', 'PRIVTYPE', 'GRANTABLE'],
    'SYSCAT.DBAUTH': [],
    'SYSCAT.INDEXAUTH': ['INDSCHEMA', 'INDNAME'],
    'SYSCAT.MODULEAUTH': ['MODULESCHEMA', 'MODULENAME'],
    'SYSCAT.PACKAGEAUTH': ['PKGSCHEMA', 'PKGNAME'],
    'SYSCAT.ROLEAUTH': ['ROLENAME'],
    'SYSCAT.ROUTINEAUTH': ['SCHEMA', 'SPECIFICNAME', 'TYPENAME', 'ROUTINETYPE', 'EXECUTEAUTH'],
    'SYSCAT.SCHEMAAUTH': ['SCHEMANAME'],
    'SYSCAT.SEQUENCEAUTH': ['SEQSCHEMA', 'SEQNAME'],
    'SYSCAT.TABAUTH': ['TABSCHEMA', 'TABNAME'],
    'SYSCAT.TBSPACEAUTH': ['TBSPACE'],
    'SYSCAT.VARIABLEAUTH': ['VARSCHEMA', 'VARNAME'],
    'SYSCAT.WORKLOADAUTH': ['WORKLOADNAME'],
    'SYSCAT.XSROBJECTAUTH': ['OBJECTID'],
}

AUTH_QUERY = 'SELECT * FROM {view} ORDER BY {columns}'

sql_code_regex = re.compile(r'\b(SQL\d{4,5}[NWCI]?)\b')
connect_rc_regex = re.compile(r'^{0} rc=(\d+)$'.format(MARKER), re.M)
section_begin_regex = re.compile(r'^{0} begin (\w+)$'.format(MARKER))
section_end_regex = re.compile(r'^{0} end (\w+) rc=(\d+)$'.format(MARKER))
db_alias_regex = re.compile(r'^\s*Database alias\s+=\s*(\S+)\s*$', re.M)
dbsize_param_regex = re.compile(r'^\s*Parameter Name\s*:\s*(\w+)\s*\n\s*Parameter Value\s*:\s*(\S*)\s*$', re.M)
return_status_regex = re.compile(r'^\s*Return Status\s*=\s*(-?\d+)\s*$', re.M)
snapshot_line_regex = re.compile(r'^\s*(\S.*?)\s*=\s*(.*?)\s*$')
db2pd_header_regex = re.compile(r'^\s*Database (?:Member|Partition) (\d+) -- (.+?) -- Up (\d+) days? (\d+):(\d+):(\d+)',
                                re.M)
db2pd_attach_failure_regex = re.compile(r'Unable to attach to database manager', re.I)
memory_limit_regex = re.compile(r'^\s*Memory Limit:\s+(\d+)\s*KB\s*$', re.M)
memory_usage_regex = re.compile(r'^\s*Current usage:\s+(\d+)\s*KB\s*$', re.M)
memory_hwm_regex = re.compile(r'^\s*HWM usage:\s+(\d+)\s*KB\s*$', re.M)


def auth_query(view):
    """ Returns the query dumping all rows of an authorization view in a total order """
    return AUTH_QUERY.format(view=view, columns=', '.join(GRANT_COLUMNS + AUTH_KEY_COLUMNS[view]))


def sql_codes(output):
    return sql_code_regex.findall(output or '')


def first_error_line(output):
    """ returns the first line carrying an SQL message code, else the first non-blank line """
    lines = [line.strip() for line in (output or '').split('\n') if line.strip()]
    for line in lines:
        if sql_code_regex.search(line):
            return line
    if lines:
        return lines[0]
    return '<no output>'


def parse_db_directory(output):
    """
    Parses 'db2 list db directory' into a list of upper case database aliases

    An empty or missing system database directory (SQL1057W / SQL1031N) is an empty list
    """
    codes = sql_codes(output)
    if 'SQL1057W' in codes or 'SQL1031N' in codes:
        log.info('system database directory is empty')
        return []
    if not re.search(r'^\s*System Database Directory\s*$', output, re.M):
        raise UnknownError("unrecognized output from 'db2 list db directory': {0}".format(first_error_line(output)))
    aliases = [alias.upper() for alias in db_alias_regex.findall(output)]
    log.debug('cataloged databases: %s', aliases)
    return aliases


def split_connect_output(output, database):
    """
    Splits the output of a connected script at the connect section, returning what follows it

    Raises UnknownError if the connection failed or the connect section is missing
    """
    match = connect_rc_regex.search(output)
    if not match:
        raise UnknownError("failed to connect to database '{0}': {1}".format(database, first_error_line(output)))
    returncode = int(match.group(1))
    connect_output = output[:match.start()]
    log.debug('connect returncode: %s', returncode)
    if returncode >= 4:
        raise UnknownError("failed to connect to database '{0}': {1}"
                           .format(database, first_error_line(connect_output.split(MARKER + ' connect', 1)[-1])))
    return output[match.end():].lstrip('\n')


def parse_capture_output(output, names):
    """
    Parses the sectioned output of the authorization queries into OrderedDict name => text

    Each section must look like:

        @@@ begin <name>
        <zero or more rows>
        @@@ end <name> rc=<returncode>

    db2 -x returns 1 for no rows, which is legitimate empty content
    """
    captures = OrderedDict()
    current = None
    rows = []
    for line in output.split('\n'):
        line = line.rstrip()
        match = section_begin_regex.match(line)
        if match:
            if current is not None:
                raise UnknownError("unrecognized capture output, section '{0}' not terminated".format(current))
            current = match.group(1)
            rows = []
            continue
        match = section_end_regex.match(line)
        if match:
            name = match.group(1)
            returncode = int(match.group(2))
            if name != current:
                raise UnknownError("unrecognized capture output, end of section '{0}' without begin".format(name))
            if returncode >= 4:
                raise UnknownError("query for '{0}' authorizations failed: {1}"
                                   .format(name, first_error_line('\n'.join(rows))))
            captures[name] = ''.join(row + '\n' for row in rows if row)
            log.debug("captured %s rows for '%s'", len(captures[name].splitlines()), name)
            current = None
            continue
        if current is not None:
            rows.append(line)
    if current is not None:
        raise UnknownError("unrecognized capture output, section '{0}' not terminated".format(current))
    missing = [name for name in names if name not in captures]
    if missing:
        raise UnknownError('unrecognized capture output, missing sections: {0}'.format(', '.join(missing)))
    return OrderedDict((name, captures[name]) for name in names)


def parse_dbsize_info(output):
    """ Parses the output parameters of 'CALL GET_DBSIZE_INFO' into a dict of name => value """
    status = return_status_regex.search(output)
    if not status:
        raise UnknownError('unrecognized output from GET_DBSIZE_INFO: {0}'.format(first_error_line(output)))
    if int(status.group(1)) != 0:
        raise UnknownError('GET_DBSIZE_INFO returned status {0}'.format(status.group(1)))
    params = dict(dbsize_param_regex.findall(output))
    log.debug('GET_DBSIZE_INFO parameters: %s', params)
    info = {}
    for key in ('DATABASESIZE', 'DATABASECAPACITY'):
        value = params.get(key)
        if value is None or not re.match(r'^-?\d+$', value):
            raise UnknownError("GET_DBSIZE_INFO parameter {0} missing or non-integer: '{1}'".format(key, value))
        info[key] = int(value)
    info['SNAPSHOTTIMESTAMP'] = params.get('SNAPSHOTTIMESTAMP')
    return info


def parse_snapshot(output):
    """ Parses 'key = value' lines of a 'db2 get snapshot' into a dict """
    if 'SQL1611W' in sql_codes(output):
        raise UnknownError('no data was returned by the database system monitor (SQL1611W), is the database active?')
    if not re.search(r'^\s*Database Snapshot\s*$', output, re.M):
        raise UnknownError("unrecognized output from 'db2 get snapshot': {0}".format(first_error_line(output)))
    snapshot = {}
    for line in output.split('\n'):
        match = snapshot_line_regex.match(line)
        if match:
            snapshot[match.group(1)] = match.group(2)
    return snapshot


def parse_db2pd_header(output):
    """
    Parses the banner line of db2pd, returning (member, state, uptime_secs)

    Returns None if db2pd could not attach to the instance ie. the instance is down
    """
    match = db2pd_header_regex.search(output)
    if match:
        (member, state, days, hours, mins, secs) = match.groups()
        uptime = int(days) * 86400 + int(hours) * 3600 + int(mins) * 60 + int(secs)
        return (int(member), state.strip(), uptime)
    if db2pd_attach_failure_regex.search(output):
        return None
    raise UnknownError('unrecognized output from db2pd: {0}'.format(first_error_line(output)))


def parse_dbptnmem(output):
    """ Parses 'db2pd -dbptnmem' into a dict of limit_kb, usage_kb, hwm_kb """
    limit = memory_limit_regex.search(output)
    usage = memory_usage_regex.search(output)
    if not limit or not usage:
        if db2pd_attach_failure_regex.search(output):
            raise UnknownError('db2pd unable to attach to database manager, is the instance started?')
        raise UnknownError("unrecognized output from 'db2pd -dbptnmem': {0}".format(first_error_line(output)))
    hwm = memory_hwm_regex.search(output)
    return {
        'limit_kb': int(limit.group(1)),
        'usage_kb': int(usage.group(1)),
        'hwm_kb': int(hwm.group(1)) if hwm else None
    }


class Db2Cli:

    def __init__(self, instance_home):
        self.instance_home = os.path.abspath(instance_home) if instance_home else instance_home
        self.profile = os.path.join(self.instance_home or '', 'sqllib', 'db2profile')

    def validate_instance(self):
        if not self.instance_home or not os.path.isdir(self.instance_home):
            raise UnknownError("instance home '{0}' is not a directory".format(self.instance_home))
        if not os.path.isfile(self.profile):
            raise UnknownError("instance home '{0}' does not contain a DB2 instance environment ({1} not found)"
                               .format(self.instance_home, self.profile))

    def execute(self, commands):
        script = '\n'.join(['. {0} || exit 127'.format(shlex.quote(self.profile))] + list(commands))
        log.debug('script:\n%s', script)
        try:
            proc = subprocess.Popen(['/bin/sh', '-c', script], stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
        except OSError as _:
            raise UnknownError("OSError: '{0}' when running DB2 commands".format(_))
        (stdout, _) = proc.communicate()
        if isinstance(stdout, bytes):
            stdout = stdout.decode('utf-8', 'replace')
        returncode = proc.wait()
        log.debug('returncode: %s', returncode)
        log.debug('output:\n%s', stdout)
        if returncode == 127:
            raise UnknownError('DB2 command not found or instance environment {0} failed to load: {1}'
                               .format(self.profile, first_error_line(stdout)))
        return (returncode, stdout)

    def run_connected(self, database, commands):
        script = ['echo "{0} connect"'.format(MARKER),
                  'db2 connect to {0}'.format(shlex.quote(database)),
                  'rc=$?',
                  'echo "{0} rc=$rc"'.format(MARKER),
                  '[ $rc -lt 4 ] || exit 0']
        script += list(commands)
        script += ['db2 connect reset > /dev/null 2>&1', 'exit 0']
        (_, output) = self.execute(script)
        return split_connect_output(output, database)

    def list_databases(self):
        (_, output) = self.execute(['db2 list db directory'])
        return parse_db_directory(output)

    def connect(self, database):
        """ Connects and disconnects, returning the elapsed seconds """
        start = time.time()
        self.run_connected(database, [])
        return time.time() - start

    def capture_authorizations(self, database, tracked_objects=None):
        if tracked_objects is None:
            tracked_objects = TRACKED_OBJECTS
        commands = []
        for name, view in tracked_objects.items():
            commands += ['echo "{0} begin {1}"'.format(MARKER, name),
                         'db2 -x {0}'.format(shlex.quote(auth_query(view))),
                         'echo "{0} end {1} rc=$?"'.format(MARKER, name)]
        output = self.run_connected(database, commands)
        return parse_capture_output(output, list(tracked_objects))

    def get_dbsize_info(self, database):
        output = self.run_connected(database, ['db2 "CALL GET_DBSIZE_INFO(?, ?, ?, -1)"'])
        return parse_dbsize_info(output)

    def get_database_snapshot(self, database):
        output = self.run_connected(database, ['db2 get snapshot for database on {0}'.format(shlex.quote(database))])
        return parse_snapshot(output)

    def db2pd(self, *args):
        (_, output) = self.execute([' '.join(['db2pd'] + [shlex.quote(arg) for arg in args])])
        return output
