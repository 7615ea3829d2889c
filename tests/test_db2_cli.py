#  vim:ts=4:sts=4:sw=4:et
#
#  Author: Hari Sekhon
#  Date: 2026-10-19 17:31:09 +0100 (Mon, 19 Oct 2026)
#
#  https://github.com/harisekhon/nagios-plugins
#
#  License: see accompanying Hari Sekhon LICENSE file
#

"""Tests for the db2 / db2pd output parsers and the shell side of Db2Cli."""

import textwrap

import pytest

from harisekhon.utils import UnknownError

from conftest import DB_DIRECTORY
from db2_cli import (
    AUTH_KEY_COLUMNS,
    Db2Cli,
    TRACKED_OBJECTS,
    auth_query,
    first_error_line,
    parse_capture_output,
    parse_db2pd_header,
    parse_db_directory,
    parse_dbptnmem,
    parse_dbsize_info,
    parse_snapshot,
    split_connect_output,
)

DBSIZE_OUTPUT = textwrap.dedent("""\

      Value of output parameters
      --------------------------
      Parameter Name  : SNAPSHOTTIMESTAMP
      Parameter Value : 2026-10-19-10.05.24.640021

      Parameter Name  : DATABASESIZE
      Parameter Value : 211292160

      Parameter Name  : DATABASECAPACITY
      Parameter Value : 66052501504

      Return Status = 0
""")

SNAPSHOT_OUTPUT = textwrap.dedent("""\

                  Database Snapshot

    Database name                              = SAMPLE
    Database path                              = /home/db2inst1/db2inst1/NODE0000/SQL00001/MEMBER0000/
    Input database alias                       = SAMPLE
    Database status                            = Active
    Log space available to the database (Bytes)= 8765432
    Log space used by the database (Bytes)     = 1234568
    Maximum secondary log space used (Bytes)   = 0
""")

DB2PD_UP = textwrap.dedent("""\

    Database Member 0 -- Active -- Up 2 days 03:04:05 -- Date 2026-10-19-10.05.24.640021

""")

DBPTNMEM_OUTPUT = textwrap.dedent("""\

    Database Member 0 -- Active -- Up 0 days 00:05:23 -- Date 2026-10-19-10.05.24.640021

    Database Member Memory Controller Statistics

    Controller Automatic: Y
    Controller License Limit: N
    Controller Limit Enforced: Y

    Memory Limit:         3785896 KB
    Current usage:        593984 KB
    HWM usage:            614592 KB
    Cached memory:        177344 KB
""")


def _sections(*sections):
    lines = []
    for name, rows, returncode in sections:
        lines.append('@@@ begin {0}'.format(name))
        lines.extend(rows)
        lines.append('@@@ end {0} rc={1}'.format(name, returncode))
    return '\n'.join(lines) + '\n'


def test_parse_db_directory():
    assert parse_db_directory(DB_DIRECTORY) == ['SAMPLE']


def test_parse_db_directory_empty():
    assert parse_db_directory('SQL1057W  The system database directory is empty.  SQLSTATE=01606\n') == []


def test_parse_db_directory_unrecognized():
    with pytest.raises(UnknownError, match='SQL1092N'):
        parse_db_directory('junk\nSQL1092N  The requested command or operation was rejected.\n')


def test_split_connect_output_returns_remainder():
    output = '@@@ connect\n\n   Database Connection Information\n@@@ rc=0\n@@@ begin role\n'
    assert split_connect_output(output, 'SAMPLE') == '@@@ begin role\n'


def test_split_connect_output_failure():
    output = '@@@ connect\nSQL1013N  The database alias name or database name "NOPE" could not be found.\n@@@ rc=4\n'
    with pytest.raises(UnknownError, match="failed to connect to database 'NOPE': SQL1013N"):
        split_connect_output(output, 'NOPE')


def test_split_connect_output_missing_section():
    with pytest.raises(UnknownError, match='failed to connect'):
        split_connect_output('sh: 1: db2: not found\n', 'SAMPLE')


def test_parse_capture_output():
    output = _sections(('role', ['DB2INST1 U APPUSER  U DBA_ROLE N   ', ''], 0),
                       ('table', [], 1))
    captures = parse_capture_output(output, ['role', 'table'])
    assert list(captures) == ['role', 'table']
    assert captures['role'] == 'DB2INST1 U APPUSER  U DBA_ROLE N\n'
    assert captures['table'] == ''


def test_parse_capture_output_missing_section():
    with pytest.raises(UnknownError, match='missing sections: table'):
        parse_capture_output(_sections(('role', [], 1)), ['role', 'table'])


def test_parse_capture_output_unterminated_section():
    with pytest.raises(UnknownError, match="section 'role' not terminated"):
        parse_capture_output('@@@ begin role\nDB2INST1 U\n', ['role'])


def test_parse_capture_output_sql_error():
    output = _sections(('module', ['SQL0204N  "SYSCAT.MODULEAUTH" is an undefined name.  SQLSTATE=42704'], 4))
    with pytest.raises(UnknownError, match="query for 'module' authorizations failed: SQL0204N"):
        parse_capture_output(output, ['module'])


def test_parse_dbsize_info():
    info = parse_dbsize_info(DBSIZE_OUTPUT)
    assert info['DATABASESIZE'] == 211292160
    assert info['DATABASECAPACITY'] == 66052501504
    assert info['SNAPSHOTTIMESTAMP'] == '2026-10-19-10.05.24.640021'


def test_parse_dbsize_info_unrecognized():
    with pytest.raises(UnknownError, match='SQL0440N'):
        parse_dbsize_info('SQL0440N  No authorized routine named "GET_DBSIZE_INFO" was found.\n')


def test_parse_dbsize_info_non_integer():
    with pytest.raises(UnknownError, match='DATABASECAPACITY'):
        parse_dbsize_info(DBSIZE_OUTPUT.replace('66052501504', '-'))


def test_parse_snapshot():
    snapshot = parse_snapshot(SNAPSHOT_OUTPUT)
    assert snapshot['Log space available to the database (Bytes)'] == '8765432'
    assert snapshot['Log space used by the database (Bytes)'] == '1234568'
    assert snapshot['Database status'] == 'Active'


def test_parse_snapshot_no_data():
    with pytest.raises(UnknownError, match='SQL1611W'):
        parse_snapshot('SQL1611W  No data was returned by Database System Monitor.\n')


def test_parse_db2pd_header():
    assert parse_db2pd_header(DB2PD_UP) == (0, 'Active', 2 * 86400 + 3 * 3600 + 4 * 60 + 5)


def test_parse_db2pd_header_older_partition_format():
    assert parse_db2pd_header('Database Partition 0 -- Active -- Up 0 days 00:00:31\n') == (0, 'Active', 31)


def test_parse_db2pd_header_instance_down():
    output = 'Unable to attach to database manager on member 0.\nPlease ensure the following are true:\n'
    assert parse_db2pd_header(output) is None


def test_parse_db2pd_header_unrecognized():
    with pytest.raises(UnknownError, match='unrecognized output from db2pd'):
        parse_db2pd_header('db2pd: command not found\n')


def test_parse_dbptnmem():
    assert parse_dbptnmem(DBPTNMEM_OUTPUT) == {'limit_kb': 3785896, 'usage_kb': 593984, 'hwm_kb': 614592}


def test_parse_dbptnmem_unrecognized():
    with pytest.raises(UnknownError, match='dbptnmem'):
        parse_dbptnmem('Database Member 0 -- Active -- Up 0 days 00:05:23\n')


def test_first_error_line():
    assert first_error_line('\n  some banner\n SQL1024N  A database connection does not exist.\n') == \
        'SQL1024N  A database connection does not exist.'
    assert first_error_line('\n  some banner\n') == 'some banner'
    assert first_error_line('') == '<no output>'


def test_db2cli_lists_databases(instance_home):
    assert Db2Cli(str(instance_home)).list_databases() == ['SAMPLE']


def test_db2cli_captures_all_tracked_objects(instance_home):
    captures = Db2Cli(str(instance_home)).capture_authorizations('SAMPLE')
    assert list(captures) == list(TRACKED_OBJECTS)
    assert captures['table'] == 'DB2INST1 U PUBLIC   G TABLE N\n'
    assert captures['xsrobject'] == ''


def test_auth_query_orders_by_whole_key():
    assert auth_query('SYSCAT.COLAUTH') == 'SELECT * FROM SYSCAT.COLAUTH ORDER BY GRANTOR, GRANTORTYPE, GRANTEE, ' \
                                           'GRANTEETYPE, TABSCHEMA, TABNAME, COLNAME, PRIVTYPE, GRANTABLE'
    assert auth_query('SYSCAT.DBAUTH') == 'SELECT * FROM SYSCAT.DBAUTH ORDER BY GRANTOR, GRANTORTYPE, GRANTEE, ' \
                                          'GRANTEETYPE'


@pytest.mark.parametrize('view,columns', [
    ('SYSCAT.COLAUTH', ['COLNAME']),
    ('SYSCAT.ROUTINEAUTH', ['SCHEMA', 'SPECIFICNAME', 'ROUTINETYPE']),
    ('SYSCAT.TABAUTH', ['TABSCHEMA', 'TABNAME']),
])
def test_auth_query_includes_object_columns(view, columns):
    order_by = auth_query(view).split(' ORDER BY ')[1].split(', ')
    for column in columns:
        assert column in order_by


def test_every_tracked_view_has_a_sort_key():
    assert sorted(AUTH_KEY_COLUMNS) == sorted(TRACKED_OBJECTS.values())


def test_db2cli_runs_ordered_queries(instance_home, catalog_dir):
    Db2Cli(str(instance_home)).capture_authorizations('SAMPLE')
    queries = (catalog_dir / 'queries').read_text().splitlines()
    assert queries == [auth_query(view) for view in TRACKED_OBJECTS.values()]


def test_db2cli_connection_failure(instance_home, catalog_dir):
    (catalog_dir / 'connect_error').write_text(
        'SQL30081N  A communication error has been detected. Communication protocol being used: "TCP/IP".\n')
    with pytest.raises(UnknownError, match='SQL30081N'):
        Db2Cli(str(instance_home)).capture_authorizations('SAMPLE')


def test_db2cli_connect_returns_elapsed(instance_home):
    assert Db2Cli(str(instance_home)).connect('SAMPLE') >= 0


def test_db2cli_broken_profile(tmp_path):
    home = tmp_path / 'broken'
    (home / 'sqllib').mkdir(parents=True)
    (home / 'sqllib' / 'db2profile').write_text('return 1\n')
    with pytest.raises(UnknownError, match='failed to load'):
        Db2Cli(str(home)).list_databases()
