import argparse
import os
import signal
import sys
import time
from collections import OrderedDict
from configparser import ConfigParser, Error as ConfigParserError
from queue import Queue
from threading import Event, Thread

from . import database
from . import exceptions
from .hashing import BoundaryPolicy, ed2k_of_path


def main():
    shutdown_event = _setup_shutdown_event()

    args = _parse_args()
    try:
        config = read_config()
    except exceptions.Ed2kConfigException as exception:
        print(exception)
        sys.exit(1)
    policy = _choose_policy(args.policy, config)

    files = _remove_duplicates(_get_paths_to_hash(args.files))
    cached_hashes = _get_cached_hashes(config['database'], policy) if args.cache else {}
    file_info_queue = Queue()

    thread = _start_worker_thread(shutdown_event, args.verbose, policy, cached_hashes, file_info_queue, files)
    file_infos = _print_file_infos(file_info_queue)
    thread.join()

    if args.cache:
        _add_new_hashes_to_db(config['database'], file_infos)

    if shutdown_event.is_set() or any(file_info['ed2k'] is None for file_info in file_infos):
        sys.exit(1)


def _setup_shutdown_event():
    shutdown_event = Event()

    def signal_handler(*_):
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    return shutdown_event


def _parse_args():
    parser = argparse.ArgumentParser(description='Compute the ed2k hash of files')
    policy_group = parser.add_mutually_exclusive_group()
    policy_group.add_argument('--old', action='store_const', const=BoundaryPolicy.OLD, dest='policy',
                              help='Do not hash an empty trailing block for files that are a multiple '
                                   'of the block size')
    policy_group.add_argument('--new', action='store_const', const=BoundaryPolicy.NEW, dest='policy',
                              help='Hash an empty trailing block for files that are a multiple '
                                   'of the block size')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Print progress information')
    parser.add_argument('--no-cache', action='store_false', dest='cache',
                        help='Neither read nor update the hash database')
    parser.add_argument('files', nargs='+', help='The files or directories to hash')

    return parser.parse_args()


def _config_paths():
    xdg_config_home = os.getenv('XDG_CONFIG_HOME', '~/.config')
    return (os.path.expanduser(os.path.join(xdg_config_home, 'ed2ksum/config')),
            os.path.expanduser('~/.ed2ksumrc'))


def read_config():
    config_path, fallback_path = _config_paths()
    if not os.path.exists(config_path):
        config_path = fallback_path

    parser = ConfigParser()
    try:
        parser.read(config_path)
    except ConfigParserError as error:
        raise exceptions.Ed2kConfigException(f'Failed to parse {config_path}: {error}') from error

    policy = parser.get('ed2ksum', 'policy', fallback=None)
    if policy is not None:
        try:
            policy = BoundaryPolicy(policy.strip().lower())
        except ValueError as error:
            raise exceptions.Ed2kConfigException(
                f'Invalid policy "{policy}" in {config_path}, expected "old" or "new"') from error

    database_path = parser.get('ed2ksum', 'database', fallback=None)
    return {
        'policy': policy,
        'database': os.path.expanduser(database_path) if database_path else None
    }


def _choose_policy(args_policy, config):
    policy = args_policy or config['policy']
    if policy is None:
        print("No boundary policy given. Use --old or --new, or set a default in "
              f"{_config_paths()[0]} with the following format:\n"
              "[ed2ksum]\n"
              "# old or new\n"
              "policy=new\n"
              "# This is optional\n"
              "database=~/.ed2ksum.sqlite3")
        sys.exit(1)

    return policy


def _get_paths_to_hash(files):
    files_to_hash = []
    for file_ in files:
        if os.path.isdir(file_):
            for root, _, files_in_dir in os.walk(file_):
                files_to_hash += [os.path.join(root, file_name) for file_name in sorted(files_in_dir)]
        else:
            files_to_hash.append(file_)

    return files_to_hash


def _remove_duplicates(files):
    unique_files = OrderedDict()
    for file_ in files:
        unique_files.setdefault(os.path.abspath(file_), file_)
    return list(unique_files.values())


def _get_cached_hashes(database_path, policy):
    with database.open_database(database_path) as cursor:
        return {
            (file_info['path'], file_info['size'], file_info['mtime']): file_info['ed2k']
            for file_info in database.get_hashes(cursor, policy.value)
        }


def _start_worker_thread(shutdown_event, verbose, policy, cached_hashes, file_info_queue, files):
    thread = Thread(
        target=_process_files,
        args=(time.time(), verbose, policy, cached_hashes, shutdown_event, file_info_queue, files))
    thread.start()

    return thread


def _print_if_verbose_mode(verbose, *args):
    if verbose:
        print(*args)


# pylint: disable=too-many-arguments
def _process_files(hash_date, verbose, policy, cached_hashes, shutdown_event, file_info_queue, files):
    try:
        for file_name in files:
            if shutdown_event.is_set():
                break

            try:
                file_info_queue.put(_process_file(hash_date, verbose, policy, cached_hashes, file_name))
            except IOError as e:
                print(f"Failed to process {file_name}: {e}")
                file_info_queue.put({'file_name': file_name, 'ed2k': None, 'cached': False})
    except Exception as exception:  # pylint: disable=broad-except
        print(f"Received exception {exception} while processing files")
        shutdown_event.set()
    finally:
        file_info_queue.put(None)


def _process_file(hash_date, verbose, policy, cached_hashes, file_name):
    stat = os.stat(file_name)
    path = os.path.abspath(file_name)
    ed2k = cached_hashes.get((path, stat.st_size, stat.st_mtime))

    if ed2k:
        _print_if_verbose_mode(verbose, f"Using cached hash for {os.path.basename(file_name)}")
    else:
        _print_if_verbose_mode(verbose, f"Processing file {os.path.basename(file_name)}")

    return {
        'file_name': file_name,
        'hash_date': hash_date,
        'policy': policy.value,
        'ed2k': ed2k or ed2k_of_path(file_name, policy),
        'size': stat.st_size,
        'mtime': stat.st_mtime,
        'path': path,
        'cached': bool(ed2k)
    }


def _print_file_infos(file_info_queue):
    file_infos = []
    while True:
        file_info = file_info_queue.get()
        if file_info is None:
            break

        file_infos.append(file_info)
        if file_info['ed2k'] is not None:
            print(f"{file_info['file_name']} {file_info['ed2k']}")

    return file_infos


def _add_new_hashes_to_db(database_path, file_infos):
    new_file_infos = [
        file_info for file_info in file_infos if file_info['ed2k'] is not None and not file_info['cached']
    ]

    if new_file_infos:
        with database.open_database(database_path) as cursor:
            database.store_hashes(cursor, new_file_infos)


if __name__ == '__main__':
    main()
