# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


##########################################################################################
# Imports
##########################################################################################

from pathlib import Path
from re import compile as rcompile

from .errors import ParseFailure


##########################################################################################
# Constants
##########################################################################################

_leading_int_re = rcompile(r'^\s*([+-]?[0-9]+)')


##########################################################################################
# Functions
##########################################################################################

def exists(path: Path) -> bool:
    return path.exists()

def writable(path: Path) -> bool:
    '''
    Check if a sysfs path exists and can be opened for writing.

    Arguments:
        path - the path to check

    The node is opened in append mode, so that the check itself
    never truncates or modifies the node.
    '''

    if not path.is_file():
        return False

    try:
        with path.open(mode='a', encoding='utf-8'):
            pass

    except OSError:
        return False

    return True

def read_sysfs(path: Path) -> str:
    '''
    Read from a sysfs path.

    Returns the complete content as a string, or an empty string if
    the read failed.

    Arguments:
        path - the path from which to read
    '''

    try:
        data = path.read_text(encoding='utf-8')

    except (OSError, UnicodeDecodeError):
        data = ''

    return data

def write_sysfs(path: Path, value) -> bool:
    '''
    Write to a sysfs path.

    Returns True if the path was writable and the value was written, and
    False otherwise.

    Arguments:
        path  - the path to which to write
        value - the value to write (converted to a string)
    '''

    if not writable(path):
        return False

    data = str(value)

    try:
        with path.open(mode='w', encoding='utf-8') as f:
            f.write(data)

    except OSError:
        return False

    return True

def list_subdirs(path: Path) -> list[str]:
    '''
    List the immediate child directories of a path.

    Arguments:
        path - the directory to list

    Symlinks and files are skipped. Returns an empty list if the
    path cannot be opened as a directory.
    '''

    try:
        entries = list(path.iterdir())

    except OSError:
        return []

    return sorted(e.name for e in entries if not e.is_symlink() and e.is_dir())

def parse_int(text: str, path: Path) -> int:
    '''
    Parse the leading integer of a sysfs value.

    Arguments:
        text - content of the sysfs node
        path - the sysfs node (used for error reporting)
    '''

    match = _leading_int_re.match(text)
    if match is None:
        raise ParseFailure(path, text)

    return int(match.group(1))

def parse_int_list(text: str, path: Path) -> list[int]:
    '''
    Parse a whitespace-delimited list of integers.

    Arguments:
        text - content of the sysfs node
        path - the sysfs node (used for error reporting)
    '''

    values = []

    for token in text.split():
        try:
            values.append(int(token))

        except ValueError:
            raise ParseFailure(path, text)

    return values

def parse_words(text: str) -> list[str]:
    return text.split()
