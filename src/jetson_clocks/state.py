# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


from __future__ import annotations


##########################################################################################
# Imports
##########################################################################################

from dataclasses import dataclass, field
from json import dumps as jdumps, loads as jloads
from logging import Logger
from pathlib import Path
from typing import Any, Callable, Optional

from .board import SocFamily
from .config import ClocksConfig
from .controls import JetsonClocks
from .errors import ResourceUnavailable, UnsupportedPlatform


##########################################################################################
# Constants
##########################################################################################

_log_prefix = 'jetson_clocks: '

_entries = (
    'soc-family',
    'cpus',
    'gpu-min-freq',
    'gpu-max-freq',
    'emc-freq',
    'fan-speed',
)


##########################################################################################
# Internal functions
##########################################################################################

def _optional(lg: Logger, what: str, func: Callable[[], Any]) -> Any:
    '''
    Run an operation on an optional board component.

    Arguments:
        lg   - logger used to report a skipped component
        what - description of the component
        func - the operation to run

    Returns None if the component is unsupported or missing on the board.
    '''

    try:
        return func()

    except (UnsupportedPlatform, ResourceUnavailable) as exc:
        lg.warning(_log_prefix + f'skipping {what}: {exc}')

    return None

def _optional_int(config_data: dict, entry: str) -> Optional[int]:
    value = config_data[entry]

    if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
        raise RuntimeError(f'invalid integer value for {entry}: {value}')

    return value

def _set_cpu_range(clocks: JetsonClocks, cpu_id: int, min_freq: int, max_freq: int) -> None:
    '''
    Set the frequency range of a CPU.

    The order of the writes keeps min <= max at every step.
    '''

    if min_freq > clocks.get_cpu_max_freq(cpu_id):
        clocks.set_cpu_max_freq(cpu_id, max_freq)
        clocks.set_cpu_min_freq(cpu_id, min_freq)
    else:
        clocks.set_cpu_min_freq(cpu_id, min_freq)
        clocks.set_cpu_max_freq(cpu_id, max_freq)


##########################################################################################
# Dataclass definitions
##########################################################################################

@dataclass(frozen=True)
class CpuState:
    '''
    Dataclass encoding the frequency scaling state of a CPU.

    governor - the clock governor
    min_freq - the minimum scaling frequency
    max_freq - the maximum scaling frequency
    '''

    governor: str
    min_freq: int
    max_freq: int

    def to_json(self) -> dict:
        return {
            'governor': self.governor,
            'min-freq': self.min_freq,
            'max-freq': self.max_freq,
        }

    @staticmethod
    def from_json(raw_data: Any) -> CpuState:
        '''
        Parse a CPU state from raw JSON data.

        Arguments:
            raw_data - the raw input data
        '''

        if not isinstance(raw_data, dict):
            raise RuntimeError(f'invalid CPU state type: {type(raw_data)}')

        for entry in ('governor', 'min-freq', 'max-freq'):
            if not entry in raw_data:
                raise RuntimeError(f'CPU state entry missing: {entry}')

        governor = raw_data['governor']
        if not isinstance(governor, str):
            raise RuntimeError(f'invalid governor value: {governor}')

        min_freq = raw_data['min-freq']
        max_freq = raw_data['max-freq']

        for freq in (min_freq, max_freq):
            if not isinstance(freq, int) or isinstance(freq, bool):
                raise RuntimeError(f'invalid frequency value: {freq}')

        return CpuState(governor, min_freq, max_freq)

@dataclass(frozen=True)
class ClockState:
    '''
    Dataclass encoding a snapshot of the board's clock state.

    family       - the SoC family the snapshot was taken on
    cpus         - per-CPU state, keyed by CPU identifier
    gpu_min_freq - the GPU minimum frequency
    gpu_max_freq - the GPU maximum frequency
    emc_freq     - the EMC frequency
    fan_speed    - the fan PWM speed

    Components that are not available on the board are None.
    '''

    family: SocFamily
    cpus: dict = field(default_factory=dict)
    gpu_min_freq: int = None
    gpu_max_freq: int = None
    emc_freq: int = None
    fan_speed: int = None

    @staticmethod
    def capture(clocks: JetsonClocks) -> ClockState:
        '''
        Take a snapshot of the current clock state.

        Arguments:
            clocks - the clock controls of the board
        '''

        lg = clocks.lg
        cpus = dict()

        for cpu_id in clocks.get_cpu_ids():
            def _cpu_state(cpu_id=cpu_id) -> CpuState:
                return CpuState(
                    clocks.get_cpu_governor(cpu_id),
                    clocks.get_cpu_min_freq(cpu_id),
                    clocks.get_cpu_max_freq(cpu_id),
                )

            state = _optional(lg, f'cpu{cpu_id}', _cpu_state)
            if state is not None:
                cpus[cpu_id] = state

        gpu_min_freq = _optional(lg, 'gpu min freq', clocks.get_gpu_min_freq)
        gpu_max_freq = _optional(lg, 'gpu max freq', clocks.get_gpu_max_freq)

        if gpu_min_freq is None or gpu_max_freq is None:
            gpu_min_freq, gpu_max_freq = None, None

        return ClockState(
            clocks.board.family,
            cpus,
            gpu_min_freq,
            gpu_max_freq,
            _optional(lg, 'emc freq', clocks.get_emc_freq),
            _optional(lg, 'fan speed', clocks.get_fan_speed),
        )

    def apply(self, clocks: JetsonClocks) -> None:
        '''
        Write the clock state back to the board.

        Arguments:
            clocks - the clock controls of the board
        '''

        if self.family != clocks.board.family:
            raise UnsupportedPlatform(f'state was stored on SoC family {self.family.value!r}, '
                                      f'board is {clocks.board.family.value!r}')

        for cpu_id, cpu in self.cpus.items():
            clocks.set_cpu_governor(cpu_id, cpu.governor)
            _set_cpu_range(clocks, cpu_id, cpu.min_freq, cpu.max_freq)

        if self.gpu_min_freq is not None and self.gpu_max_freq is not None:
            clocks.set_gpu_freq_range(self.gpu_min_freq, self.gpu_max_freq)

        if self.emc_freq is not None:
            clocks.set_emc_freq(self.emc_freq)

        if self.fan_speed is not None:
            clocks.set_fan_speed(self.fan_speed)

    def to_path(self, path: Path) -> None:
        '''
        Store the clock state to a path.

        Arguments:
            path - path to which we write the state
        '''

        state_data = {
            'soc-family': self.family.value,
            'cpus': {str(k): v.to_json() for k, v in self.cpus.items()},
            'gpu-min-freq': self.gpu_min_freq,
            'gpu-max-freq': self.gpu_max_freq,
            'emc-freq': self.emc_freq,
            'fan-speed': self.fan_speed,
        }

        path.write_text(jdumps(state_data, indent=2) + '\n', encoding='utf-8')

    @staticmethod
    def from_path(path: Path) -> ClockState:
        '''
        Create a clock state from a state path.

        Arguments:
            path - path from where we read the state
        '''

        if not path.is_file():
            raise RuntimeError(f'state path is not a file: {path}')

        state_raw = path.read_text(encoding='utf-8')
        state_data = jloads(state_raw)

        if not isinstance(state_data, dict):
            raise RuntimeError(f'invalid state type: {type(state_data)}')

        for entry in _entries:
            if not entry in state_data:
                raise RuntimeError(f'state entry missing: {entry}')

        family_tag = state_data['soc-family']
        if not isinstance(family_tag, str):
            raise RuntimeError(f'invalid SoC family value: {family_tag}')

        cpus_data = state_data['cpus']
        if not isinstance(cpus_data, dict):
            raise RuntimeError(f'invalid CPUs type: {type(cpus_data)}')

        cpus = dict()

        for key, value in cpus_data.items():
            try:
                cpu_id = int(key)

            except ValueError:
                raise RuntimeError(f'invalid CPU identifier: {key}')

            cpus[cpu_id] = CpuState.from_json(value)

        return ClockState(
            SocFamily.from_string(family_tag),
            cpus,
            _optional_int(state_data, 'gpu-min-freq'),
            _optional_int(state_data, 'gpu-max-freq'),
            _optional_int(state_data, 'emc-freq'),
            _optional_int(state_data, 'fan-speed'),
        )


##########################################################################################
# Functions
##########################################################################################

def apply_max_performance(clocks: JetsonClocks, config: ClocksConfig) -> None:
    '''
    Pin every clock of the board to its maximum.

    Arguments:
        clocks - the clock controls of the board
        config - clock controls configuration

    CPUs are pinned to their highest available frequency, the GPU range is
    collapsed to its highest frequency, the EMC runs at its maximum and the
    fan at the configured speed. Offline CPUs, as well as GPU, EMC and fan,
    are skipped if the board does not provide them.
    '''

    lg = clocks.lg

    for cpu_id in clocks.get_cpu_ids():
        available = _optional(lg, f'cpu{cpu_id}', lambda: clocks.get_cpu_available_freqs(cpu_id))
        if available is None:
            continue

        if config.cpu_governor is not None:
            clocks.set_cpu_governor(cpu_id, config.cpu_governor)

        if len(available) == 0:
            lg.warning(_log_prefix + f'cpu{cpu_id} advertises no frequencies')

            continue

        _set_cpu_range(clocks, cpu_id, available[-1], available[-1])

    gpu_freqs = _optional(lg, 'gpu', clocks.get_gpu_available_freqs)
    if gpu_freqs:
        clocks.set_gpu_freq_range(gpu_freqs[-1], gpu_freqs[-1])

    emc_freqs = _optional(lg, 'emc', clocks.get_emc_available_freqs)
    if emc_freqs is not None:
        clocks.set_emc_freq(emc_freqs[-1])

    _optional(lg, 'fan', lambda: clocks.set_fan_speed(config.fan_speed))
