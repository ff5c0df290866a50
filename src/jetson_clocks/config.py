# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


from __future__ import annotations


##########################################################################################
# Imports
##########################################################################################

from dataclasses import dataclass
from json import loads as jloads
from pathlib import Path


##########################################################################################
# Constants
##########################################################################################

'''
Path to config file for the clock controls.
'''
default_config_path = Path('/etc/jetson-clocks.conf')

'''
Path to the file the clock state is stored to (expanded per user).
'''
default_state_path = Path('~/.jetson_clocks.conf')

_default_fan_speed = 255


##########################################################################################
# Dataclass definitions
##########################################################################################

@dataclass(frozen=True)
class ClocksConfig:
    '''
    Dataclass encoding the clock controls configuration.

    sysfs_root   - root of the filesystem the control files live in
    state_path   - default path for storing/restoring the clock state
    fan_speed    - fan PWM speed applied for maximum performance
    cpu_governor - CPU governor applied for maximum performance (None keeps the current one)
    '''

    sysfs_root: Path = Path('/')
    state_path: Path = default_state_path
    fan_speed: int = _default_fan_speed
    cpu_governor: str = None

    @staticmethod
    def from_path(path: Path) -> ClocksConfig:
        '''
        Create a clock controls config from a config path.

        Arguments:
            path - path from where we read the config

        Missing entries take their default value.
        '''

        if not path.is_file():
            raise RuntimeError(f'config path is not a file: {path}')

        config_raw = path.read_text(encoding='utf-8')
        config_data = jloads(config_raw)

        if not isinstance(config_data, dict):
            raise RuntimeError(f'invalid config type: {type(config_data)}')

        for entry in ('sysfs-root', 'state-path', 'cpu-governor'):
            value = config_data.get(entry)
            if not isinstance(value, str) and value is not None:
                raise RuntimeError(f'invalid string value for {entry}: {value}')

        sysfs_root = config_data.get('sysfs-root')
        state_path = config_data.get('state-path')

        fan_speed = config_data.get('fan-speed', _default_fan_speed)
        if not isinstance(fan_speed, int) or isinstance(fan_speed, bool) or fan_speed < 0 or fan_speed > 255:
            raise RuntimeError(f'invalid fan speed value: {fan_speed}')

        return ClocksConfig(
            Path(sysfs_root) if sysfs_root is not None else Path('/'),
            Path(state_path) if state_path is not None else default_state_path,
            fan_speed,
            config_data.get('cpu-governor'),
        )

    @staticmethod
    def load(path: Path = default_config_path) -> ClocksConfig:
        '''
        Load the config, falling back to the defaults if there is no config file.

        Arguments:
            path - path from where we read the config
        '''

        if not path.exists():
            return ClocksConfig()

        return ClocksConfig.from_path(path)

    def resolved_state_path(self) -> Path:
        return self.state_path.expanduser()
