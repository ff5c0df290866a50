# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


from __future__ import annotations


##########################################################################################
# Imports
##########################################################################################

from pathlib import Path
from typing import Any, Sequence


##########################################################################################
# Class definitions
##########################################################################################

class JetsonClocksError(RuntimeError):
    '''
    Base class for all errors raised by the clock controls.
    '''

class PrivilegeDenied(JetsonClocksError):
    '''
    Raised when an operation is attempted without root permissions.
    '''

    def __init__(self, operation: str):
        super().__init__(f'cannot {operation} without root permissions')

        self.operation = operation

class UnsupportedPlatform(JetsonClocksError):
    '''
    Raised when the SoC family is unknown or has no mapping for a control.
    '''

class ResourceUnavailable(JetsonClocksError):
    '''
    Raised when a control file is missing or not writable.

    path - the offending control file
    '''

    def __init__(self, message: str, path: Path = None):
        super().__init__(message)

        self.path = path

class ValueNotAvailable(JetsonClocksError):
    '''
    Raised when a requested value is not advertised by the board.

    value   - the rejected value
    options - the values the board accepts
    '''

    def __init__(self, what: str, value: Any, options: Sequence[Any], message: str = None):
        if message is None:
            legal = ', '.join(str(x) for x in options)
            message = f'{value} is not an available {what} (available: {legal})'

        super().__init__(message)

        self.value = value
        self.options = list(options)

    @staticmethod
    def out_of_range(what: str, value: Any, low: Any, high: Any) -> ValueNotAvailable:
        '''
        Create an error for a value outside of an inclusive range.

        Arguments:
            what  - description of the rejected value
            value - the rejected value
            low   - lower bound of the range
            high  - upper bound of the range
        '''

        message = f'{what} {value} is not in the acceptable range [{low}, {high}]'

        return ValueNotAvailable(what, value, (low, high), message)

class ParseFailure(JetsonClocksError):
    '''
    Raised when a control file does not hold the expected content.

    path - the control file that failed to parse
    '''

    def __init__(self, path: Path, content: str):
        super().__init__(f'failed to parse content of {path}: {content!r}')

        self.path = path
        self.content = content
