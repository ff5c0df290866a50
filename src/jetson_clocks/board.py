# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


from __future__ import annotations


##########################################################################################
# Imports
##########################################################################################

from dataclasses import dataclass
from enum import Enum, unique
from os import geteuid
from pathlib import Path

from .errors import UnsupportedPlatform
from .sysfs_helper import read_sysfs


##########################################################################################
# Constants
##########################################################################################

'''
Primary identification of the SoC, exported by the soc0 device.
'''
_soc_family = 'sys/devices/soc0/family'
_soc_machine = 'sys/devices/soc0/machine'

'''
Device-tree fallbacks, used when the soc0 device is not available.
'''
_dt_compatible = 'proc/device-tree/compatible'
_dt_model = 'proc/device-tree/model'

'''
Compatible strings in the order in which they are matched.
'''
_compatible_strings = (
    'nvidia,tegra210',
    'nvidia,tegra186',
    'nvidia,tegra194',
)


##########################################################################################
# Enumerator definitions
##########################################################################################

@unique
class SocFamily(Enum):
    '''
    Enumerator for the SoC family.

    Tegra186 - Jetson TX2 series
    Tegra194 - Jetson AGX Xavier series
    Tegra210 - Jetson Nano and TX1
    Unknown  - anything else
    '''

    Tegra186 = 'tegra186'
    Tegra194 = 'tegra194'
    Tegra210 = 'tegra210'
    Unknown  = ''

    @staticmethod
    def from_string(raw_data: str) -> SocFamily:
        '''
        Parse a SoC family from its tag.

        Arguments:
            raw_data - the tag, e.g. 'tegra194'

        Returns SocFamily.Unknown on invalid input.
        '''

        tag = raw_data.strip().lower()
        if tag == '':
            return SocFamily.Unknown

        for family in SocFamily:
            if family.value == tag:
                return family

        return SocFamily.Unknown


##########################################################################################
# Internal functions
##########################################################################################

def _strip_value(data: str) -> str:
    '''
    Strip trailing newlines and NUL terminators from an identification value.
    '''

    return data.rstrip('\n\x00')


##########################################################################################
# Functions
##########################################################################################

def running_as_root() -> bool:
    return geteuid() == 0

def soc_family(root: Path = Path('/')) -> SocFamily:
    '''
    Determine the SoC family of the board.

    Arguments:
        root - root of the filesystem to probe

    Never fails: returns SocFamily.Unknown if no identification
    source is present or none matches.
    '''

    family_path = root / _soc_family
    if family_path.is_file():
        return SocFamily.from_string(read_sysfs(family_path))

    compatible_path = root / _dt_compatible
    if not compatible_path.is_file():
        return SocFamily.Unknown

    compatible = read_sysfs(compatible_path)

    for entry in _compatible_strings:
        if entry in compatible:
            return SocFamily.from_string(entry.split(',', maxsplit=1)[1])

    return SocFamily.Unknown

def machine_model(root: Path = Path('/')) -> str:
    '''
    Determine the machine model of the board.

    Arguments:
        root - root of the filesystem to probe

    Returns an empty string if the model cannot be found.
    '''

    if (root / _soc_family).is_file():
        model_path = root / _soc_machine
    else:
        model_path = root / _dt_model

    if not model_path.is_file():
        return ''

    return _strip_value(read_sysfs(model_path))


##########################################################################################
# Dataclass definitions
##########################################################################################

@dataclass(frozen=True)
class BoardInfo:
    '''
    Dataclass encoding the identity of the board.

    family  - the SoC family
    machine - the machine model string
    '''

    family: SocFamily
    machine: str

    @staticmethod
    def probe(root: Path = Path('/')) -> BoardInfo:
        '''
        Create a board info by probing the identification files.

        Arguments:
            root - root of the filesystem to probe
        '''

        return BoardInfo(soc_family(root), machine_model(root))

    def require_family(self) -> SocFamily:
        '''
        Get the SoC family, failing if it is unknown.
        '''

        if self.family == SocFamily.Unknown:
            raise UnsupportedPlatform('SoC family cannot be determined')

        return self.family
