import argparse
import sys
from datetime import datetime

from . import database
from . import exceptions
from .ed2ksum import read_config
from .hashing import BoundaryPolicy


def main():
    args = _parse_args()
    try:
        database_path = read_config()['database']
    except exceptions.Ed2kConfigException as exception:
        print(exception)
        sys.exit(1)

    if args.action == 'list':
        _handle_list(database_path, args.policy)
    elif args.action == 'remove':
        _handle_remove(database_path, args.ids)
    elif args.action == 'clear':
        _handle_clear(database_path)


def _parse_args():
    parser = argparse.ArgumentParser(description='Handle the database of cached ed2k hashes')
    subparsers = parser.add_subparsers(dest='action', required=True)
    list_parser = subparsers.add_parser('list')
    list_parser.add_argument('--policy', choices=[policy.value for policy in BoundaryPolicy],
                             help='Only list hashes computed with this boundary policy')
    subparsers.add_parser('clear')
    remove_parser = subparsers.add_parser('remove')
    remove_parser.add_argument('ids', nargs='+', type=int)

    return parser.parse_args()


def _format_with_unit(number, unit):
    return "{:.1f}{}B".format(number, unit)


def _format_size(number):
    for unit in ['', 'Ki', 'Mi', 'Gi']:
        if abs(number) < 1024:
            return _format_with_unit(number, unit)
        number /= 1024
    return _format_with_unit(number, 'Ti')


def _format_timestamp(hash_date):
    return datetime.fromtimestamp(hash_date).strftime('%Y-%m-%d %H:%M:%S')


def _handle_list(database_path, policy=None):
    with database.open_database(database_path) as cursor:
        file_infos = database.get_hashes(cursor, policy)
        if file_infos:
            _print_list_header()
            for file_info in file_infos:
                print_list_line(file_info)


def _print_list_header():
    print('{id:10}{size:10}{ed2k:34}{policy:8}{hash_date:21}{path}'.format(
        id='Id',
        path='Path',
        size='Size',
        ed2k='ed2k',
        policy='Policy',
        hash_date='Hashed',
    ))
    print('-' * 120)


def print_list_line(file_info):
    print('{id:<10}{size:<10}{ed2k:34}{policy:8}{hash_date:21}{path}'.format(
        id=file_info['id'],
        path=file_info['path'],
        size=_format_size(file_info['size']),
        ed2k=file_info['ed2k'],
        policy=file_info['policy'],
        hash_date=_format_timestamp(file_info['hash_date'])
    ))


def _handle_clear(database_path):
    with database.open_database(database_path) as cursor:
        database.clear(cursor)


def _handle_remove(database_path, ids):
    with database.open_database(database_path) as cursor:
        database.remove_hashes(cursor, ids)


if __name__ == '__main__':
    main()
