# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


##########################################################################################
# Imports
##########################################################################################

import sys

from argparse import ArgumentParser
from logging import DEBUG, INFO, Logger, StreamHandler, getLogger
from logging.handlers import SysLogHandler
from pathlib import Path
from typing import Any, Callable

from ..board import BoardInfo
from ..config import ClocksConfig, default_config_path
from ..controls import JetsonClocks
from ..errors import JetsonClocksError, ResourceUnavailable, UnsupportedPlatform
from ..state import ClockState, apply_max_performance


##########################################################################################
# Constants
##########################################################################################

_log_prefix = 'jetson_clocks: '

_unavailable = 'n/a'


##########################################################################################
# Internal functions
##########################################################################################

def _setup_logger(use_syslog: bool, verbose: bool) -> Logger:
    lg = getLogger()

    if use_syslog:
        lg.addHandler(SysLogHandler('/dev/log'))
    elif not lg.hasHandlers():
        lg.addHandler(StreamHandler(sys.stderr))

    lg.setLevel(DEBUG if verbose else INFO)

    return lg

def _format(func: Callable[[], Any]) -> str:
    '''
    Format the result of a getter for display.

    Arguments:
        func - the getter

    Components that are unsupported or missing on the board are shown as n/a.
    '''

    try:
        value = func()

    except (UnsupportedPlatform, ResourceUnavailable):
        return _unavailable

    if isinstance(value, list):
        return ' '.join(str(x) for x in value)

    return str(value)

def _state_path(config: ClocksConfig, arg: str) -> Path:
    if arg == '':
        return config.resolved_state_path()

    return Path(arg).expanduser()


##########################################################################################
# Functions
##########################################################################################

def show(clocks: JetsonClocks) -> None:
    '''
    Print the current clock state of the board.

    Arguments:
        clocks - the clock controls of the board
    '''

    board = clocks.board
    family = board.family.value if board.family.value != '' else 'unknown'

    print(f'SOC family:{family}  Machine:{board.machine}', file=sys.stdout)

    for cpu_id in clocks.get_cpu_ids():
        gov = _format(lambda: clocks.get_cpu_governor(cpu_id))
        if gov == _unavailable:
            print(f'cpu{cpu_id}: Offline', file=sys.stdout)

            continue

        min_freq = _format(lambda: clocks.get_cpu_min_freq(cpu_id))
        max_freq = _format(lambda: clocks.get_cpu_max_freq(cpu_id))
        cur_freq = _format(lambda: clocks.get_cpu_cur_freq(cpu_id))

        print(f'cpu{cpu_id}: Governor={gov} MinFreq={min_freq} MaxFreq={max_freq} CurrentFreq={cur_freq}',
              file=sys.stdout)

    print(f'GPU AvailableFreqs={_format(clocks.get_gpu_available_freqs)}', file=sys.stdout)
    print(f'GPU MinFreq={_format(clocks.get_gpu_min_freq)} MaxFreq={_format(clocks.get_gpu_max_freq)} '
          f'CurrentFreq={_format(clocks.get_gpu_cur_freq)}', file=sys.stdout)
    print(f'EMC AvailableFreqs={_format(clocks.get_emc_available_freqs)} CurrentFreq={_format(clocks.get_emc_freq)}',
          file=sys.stdout)
    print(f'FAN Speed={_format(clocks.get_fan_speed)}', file=sys.stdout)


##########################################################################################
# Main
##########################################################################################

def main(args: list[str]) -> int:
    '''
    Main function.

    Arguments:
        args - list of string arguments from the CLI

    Without an action, all clocks are pinned to maximum performance.
    '''

    parser = ArgumentParser(description='Control the power states of a Jetson board.')

    action = parser.add_mutually_exclusive_group()
    action.add_argument('--show', action='store_true', help='Show the current clock state')
    action.add_argument('--store', nargs='?', const='', metavar='FILE', help='Store the clock state to a file')
    action.add_argument('--restore', nargs='?', const='', metavar='FILE', help='Restore the clock state from a file')

    parser.add_argument('-c', '--config', default=default_config_path.as_posix(), help='Path to the config file')
    parser.add_argument('--syslog', action='store_true', help='Log to the system logger')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log every performed write')

    parsed_args = parser.parse_args(args[1:])

    lg = _setup_logger(parsed_args.syslog, parsed_args.verbose)

    try:
        config = ClocksConfig.load(Path(parsed_args.config))

    except Exception as exc:
        print(f'error: failed to read config from path: {parsed_args.config}: {exc}', file=sys.stderr)

        return 1

    board = BoardInfo.probe(config.sysfs_root)
    clocks = JetsonClocks(board, config.sysfs_root, lg)

    if parsed_args.show:
        try:
            show(clocks)

        except JetsonClocksError as exc:
            print(f'error: failed to show clock state: {exc}', file=sys.stderr)

            return 2

    elif parsed_args.store is not None:
        path = _state_path(config, parsed_args.store)

        try:
            ClockState.capture(clocks).to_path(path)

        except (JetsonClocksError, OSError) as exc:
            print(f'error: failed to store clock state to {path}: {exc}', file=sys.stderr)

            return 3

        lg.info(_log_prefix + f'stored clock state to {path}')

    elif parsed_args.restore is not None:
        path = _state_path(config, parsed_args.restore)

        try:
            state = ClockState.from_path(path)

        except Exception as exc:
            print(f'error: failed to read clock state from {path}: {exc}', file=sys.stderr)

            return 4

        try:
            state.apply(clocks)

        except JetsonClocksError as exc:
            print(f'error: failed to restore clock state: {exc}', file=sys.stderr)

            return 5

        lg.info(_log_prefix + f'restored clock state from {path}')

    else:
        try:
            apply_max_performance(clocks, config)

        except JetsonClocksError as exc:
            print(f'error: failed to apply maximum performance: {exc}', file=sys.stderr)

            return 6

    return 0

if __name__ == '__main__':
    sys.exit(main(sys.argv))
