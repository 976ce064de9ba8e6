import os
import sqlite3
from contextlib import contextmanager

DEFAULT_DATABASE_PATH = '~/.ed2ksum.sqlite3'

# Order of the columns in the hashes table
COLUMNS = ('hash_date', 'policy', 'ed2k', 'size', 'mtime', 'path')


@contextmanager
def open_database(database_path=None):
    connection = sqlite3.connect(database_path or os.path.expanduser(DEFAULT_DATABASE_PATH))
    # Workaround for https://github.com/ghaering/pysqlite/issues/109
    connection.isolation_level = None
    try:
        cursor = connection.cursor()
        _create_schema(cursor)
        yield cursor
    finally:
        connection.commit()
        connection.close()


def _create_schema(cursor):
    cursor.execute('create table if not exists hashes ('
                   'hash_date datetime,'
                   'policy varchar(3),'
                   'ed2k varchar(32),'
                   'size integer,'
                   'mtime real,'
                   'path text'
                   ')')
    # One cached hash per file and policy
    cursor.execute('create unique index if not exists hashes_path_policy on hashes (path, policy)')


def clear(cursor):
    cursor.execute('delete from hashes')
    cursor.execute('vacuum')


def remove_hashes(cursor, ids):
    cursor.executemany('delete from hashes where rowid=?', ((rowid,) for rowid in ids))


def get_hashes(cursor, policy=None):
    query = 'select rowid, {} from hashes'.format(', '.join(COLUMNS))
    if policy is None:
        rows = cursor.execute(query + ' order by rowid')
    else:
        rows = cursor.execute(query + ' where policy=? order by rowid', (policy,))

    return [dict(zip(('id',) + COLUMNS, row)) for row in rows]


def store_hashes(cursor, file_infos):
    """Insert hashes, replacing any earlier hash of the same path and policy."""
    cursor.executemany(
        'insert or replace into hashes ({}) values ({})'.format(', '.join(COLUMNS), ', '.join('?' * len(COLUMNS))),
        (tuple(file_info[column] for column in COLUMNS) for file_info in file_infos))
