# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


##########################################################################################
# Imports
##########################################################################################

from logging import Logger, getLogger
from pathlib import Path
from re import compile as rcompile
from typing import Callable

from .board import BoardInfo, SocFamily, running_as_root
from .errors import PrivilegeDenied, ResourceUnavailable, UnsupportedPlatform, ValueNotAvailable
from .paths import Control, cpu_base, cpu_path, resolve
from .sysfs_helper import (
    exists,
    list_subdirs,
    parse_int,
    parse_int_list,
    parse_words,
    read_sysfs,
    writable,
    write_sysfs,
)


##########################################################################################
# Constants
##########################################################################################

_log_prefix = 'jetson_clocks: '

_cpu_re = rcompile('^cpu([0-9]+)$')

'''
The fan of this machine is hardwired on.
'''
_always_on_fan_machine = 'jetson-tk1'

fan_speed_min = 0
fan_speed_max = 255


##########################################################################################
# Class definitions
##########################################################################################

class JetsonClocks:
    '''
    Read/write access to the power-management controls of a Jetson board.

    All operations require root permissions and raise a JetsonClocksError
    subclass on failure. Multi-file writes are not atomic: a failure leaves
    the files written before it applied.
    '''

    def __init__(self, board: BoardInfo, root: Path = Path('/'), lg: Logger = None,
                 is_privileged: Callable[[], bool] = None):
        '''
        Constructor.

        Arguments:
            board         - identity of the board, probed once per session
            root          - root of the filesystem the control files live in
            lg            - logger for the performed writes
            is_privileged - predicate checking for root permissions (default: effective uid is 0)
        '''

        self.board = board
        self.root = root
        self.lg = lg if lg is not None else getLogger(__name__)
        self.is_privileged = is_privileged if is_privileged is not None else running_as_root

    def _require_root(self, operation: str) -> None:
        if not self.is_privileged():
            raise PrivilegeDenied(operation)

    def _resolve(self, control: Control) -> tuple:
        return resolve(control, self.board.require_family(), self.root)

    def _read_int(self, path: Path, what: str) -> int:
        if not path.is_file():
            raise ResourceUnavailable(f'cannot get {what} because {path} does not exist', path)

        return parse_int(read_sysfs(path), path)

    def _read_int_list(self, path: Path, what: str) -> list[int]:
        if not path.is_file():
            raise ResourceUnavailable(f'cannot get {what} because {path} does not exist', path)

        return sorted(parse_int_list(read_sysfs(path), path))

    def _read_text(self, path: Path, what: str) -> str:
        if not path.is_file():
            raise ResourceUnavailable(f'cannot get {what} because {path} does not exist', path)

        return read_sysfs(path)

    def _write(self, path: Path, value, what: str) -> None:
        if not write_sysfs(path, value):
            raise ResourceUnavailable(f'cannot set {what} because {path} is not writable', path)

        self.lg.debug(_log_prefix + f'wrote {value} to {path}')

    def _write_aux(self, path: Path, value) -> None:
        '''
        Write an auxiliary control file.

        Arguments:
            path  - the auxiliary control file
            value - the value to write

        Auxiliary files that do not exist on the board are skipped.
        '''

        if not exists(path):
            self.lg.debug(_log_prefix + f'skipping missing auxiliary control {path}')

            return

        self._write(path, value, 'auxiliary control')

    def _cpu_ids(self) -> list[int]:
        ids = []

        for name in list_subdirs(cpu_base(self.root)):
            match = _cpu_re.match(name)
            if match is None:
                continue

            ids.append(int(match.group(1)))

        return sorted(ids)

    def _check_cpu(self, cpu_id: int) -> None:
        ids = self._cpu_ids()

        if cpu_id not in ids:
            raise ValueNotAvailable('CPU', cpu_id, ids)

    def _disable_throttling(self) -> None:
        '''
        Disable QoS throttling and the cluster idle-states.

        Applied unconditionally before every CPU frequency or governor change.
        '''

        qos_enable, = resolve(Control.QosEnable, self.board.family, self.root)
        self._write_aux(qos_enable, 0)

        if self.board.family == SocFamily.Tegra186:
            for path in resolve(Control.ClusterIdle, self.board.family, self.root):
                self._write_aux(path, 0)

    def _fan_path(self) -> Path:
        for path in resolve(Control.FanPwm, self.board.family, self.root):
            if writable(path):
                return path

        raise ResourceUnavailable('fan speed file not found')

    def _is_fan_always_on(self) -> bool:
        return self.board.machine == _always_on_fan_machine

    ######################################################################################
    # Fan
    ######################################################################################

    def set_fan_speed(self, speed: int) -> None:
        '''
        Set the fan PWM speed.

        Arguments:
            speed - the PWM value, in the range [0, 255]
        '''

        self._require_root('set fan speed')

        if self._is_fan_always_on():
            self.lg.debug(_log_prefix + f'fan of {self.board.machine} is always on')

            return

        if speed < fan_speed_min or speed > fan_speed_max:
            raise ValueNotAvailable.out_of_range('fan speed', speed, fan_speed_min, fan_speed_max)

        self._write(self._fan_path(), speed, 'fan speed')

    def get_fan_speed(self) -> int:
        self._require_root('read fan speed')

        if self._is_fan_always_on():
            return fan_speed_max

        return self._read_int(self._fan_path(), 'fan speed')

    ######################################################################################
    # GPU
    ######################################################################################

    def get_gpu_available_freqs(self) -> list[int]:
        '''
        Get all available GPU clock frequencies, sorted ascending.
        '''

        self._require_root('read gpu available freqs')

        path, = self._resolve(Control.GpuAvailableFreqs)

        return self._read_int_list(path, 'gpu available freqs')

    def set_gpu_freq_range(self, min_freq: int, max_freq: int) -> None:
        '''
        Set the GPU minimum and maximum frequencies.

        Arguments:
            min_freq - the minimum frequency, must be available
            max_freq - the maximum frequency, must be available

        Rail-gating is disabled afterwards, so that the range stays in effect.
        '''

        self._require_root('set gpu freq range')

        available = self.get_gpu_available_freqs()

        if min_freq not in available:
            raise ValueNotAvailable('gpu minimum frequency', min_freq, available)

        if max_freq not in available:
            raise ValueNotAvailable('gpu maximum frequency', max_freq, available)

        if min_freq > max_freq:
            raise ValueNotAvailable.out_of_range('gpu minimum frequency', min_freq, available[0], max_freq)

        min_path, = self._resolve(Control.GpuMinFreq)
        max_path, = self._resolve(Control.GpuMaxFreq)
        rail_gate, = self._resolve(Control.GpuRailGate)

        self._write(min_path, min_freq, 'gpu minimum frequency')
        self._write(max_path, max_freq, 'gpu maximum frequency')
        self._write(rail_gate, 0, 'gpu rail-gate')

    def get_gpu_cur_freq(self) -> int:
        self._require_root('get gpu current freq')

        path, = self._resolve(Control.GpuCurFreq)

        return self._read_int(path, 'gpu current freq')

    def get_gpu_min_freq(self) -> int:
        self._require_root('get gpu min freq')

        path, = self._resolve(Control.GpuMinFreqStatus)

        return self._read_int(path, 'gpu min freq')

    def get_gpu_max_freq(self) -> int:
        self._require_root('get gpu max freq')

        path, = self._resolve(Control.GpuMaxFreqStatus)

        return self._read_int(path, 'gpu max freq')

    def get_gpu_current_usage(self) -> int:
        '''
        Get the current GPU load, in units of 0.1%.
        '''

        self._require_root('get gpu usage')

        path, = self._resolve(Control.GpuLoad)

        return self._read_int(path, 'gpu usage')

    ######################################################################################
    # EMC
    ######################################################################################

    def emc_max_freq_path(self) -> Path:
        '''
        Get the file that holds the effective maximum EMC frequency.

        On families with an iso-cap, the cap file takes precedence if the cap
        is positive and below the nominal maximum.
        '''

        self._require_root('read emc max freq')

        max_path, = self._resolve(Control.EmcMaxRate)

        try:
            iso_cap, = self._resolve(Control.EmcIsoCap)

        except UnsupportedPlatform:
            return max_path

        if not iso_cap.is_file():
            self.lg.debug(_log_prefix + f'no emc iso-cap at {iso_cap}')

            return max_path

        cap = self._read_int(iso_cap, 'emc iso-cap')
        nominal = self._read_int(max_path, 'emc max freq')

        if cap > 0 and cap < nominal:
            return iso_cap

        return max_path

    def get_emc_available_freqs(self) -> list[int]:
        '''
        Get the allowed EMC clock frequencies.

        Returns the range as [min, max].
        '''

        self._require_root('read emc available freqs')

        min_path, = self._resolve(Control.EmcMinRate)

        min_freq = self._read_int(min_path, 'emc min freq')
        max_freq = self._read_int(self.emc_max_freq_path(), 'emc max freq')

        return [min_freq, max_freq]

    def get_emc_freq(self) -> int:
        self._require_root('read emc freq')

        path, = self._resolve(Control.EmcRate)

        return self._read_int(path, 'emc freq')

    def set_emc_freq(self, freq: int) -> None:
        '''
        Set the EMC clock frequency and lock it.

        Arguments:
            freq - the frequency, within the available range
        '''

        self._require_root('set emc freq')

        min_freq, max_freq = self.get_emc_available_freqs()

        if freq < min_freq or freq > max_freq:
            raise ValueNotAvailable.out_of_range('emc frequency', freq, min_freq, max_freq)

        rate, = self._resolve(Control.EmcRate)
        override, = self._resolve(Control.EmcOverride)

        self._write(rate, freq, 'emc freq')
        self._write(override, 1, 'emc override')

    ######################################################################################
    # CPU
    ######################################################################################

    def get_cpu_ids(self) -> list[int]:
        '''
        Get the ids of all CPUs, sorted ascending.
        '''

        self._require_root('look up cpu ids')

        return self._cpu_ids()

    def get_cpu_available_freqs(self, cpu_id: int) -> list[int]:
        self._require_root('look up cpu available freqs')
        self._check_cpu(cpu_id)

        path = cpu_path(cpu_id, 'scaling_available_frequencies', self.root)

        return self._read_int_list(path, 'cpu available freqs')

    def get_cpu_available_governors(self, cpu_id: int) -> list[str]:
        self._require_root('look up cpu available governors')
        self._check_cpu(cpu_id)

        path = cpu_path(cpu_id, 'scaling_available_governors', self.root)

        return parse_words(self._read_text(path, 'cpu available governors'))

    def get_cpu_governor(self, cpu_id: int) -> str:
        self._require_root('get cpu governor')
        self._check_cpu(cpu_id)

        path = cpu_path(cpu_id, 'scaling_governor', self.root)

        return self._read_text(path, 'cpu governor').strip()

    def get_cpu_min_freq(self, cpu_id: int) -> int:
        self._require_root('get cpu min freq')
        self._check_cpu(cpu_id)

        return self._read_int(cpu_path(cpu_id, 'scaling_min_freq', self.root), 'cpu min freq')

    def get_cpu_max_freq(self, cpu_id: int) -> int:
        self._require_root('get cpu max freq')
        self._check_cpu(cpu_id)

        return self._read_int(cpu_path(cpu_id, 'scaling_max_freq', self.root), 'cpu max freq')

    def get_cpu_cur_freq(self, cpu_id: int) -> int:
        self._require_root('get cpu current freq')
        self._check_cpu(cpu_id)

        return self._read_int(cpu_path(cpu_id, 'scaling_cur_freq', self.root), 'cpu current freq')

    def _set_cpu_value(self, cpu_id: int, leaf: str, value, what: str, available: list) -> None:
        path = cpu_path(cpu_id, leaf, self.root)
        if not writable(path):
            raise ResourceUnavailable(f'cannot set cpu{cpu_id} {what} because {path} is not writable', path)

        if value not in available:
            raise ValueNotAvailable(what, value, available)

        self._disable_throttling()
        self._write(path, value, f'cpu{cpu_id} {what}')

    def set_cpu_governor(self, cpu_id: int, governor: str) -> None:
        '''
        Set the clock governor of a CPU.

        Arguments:
            cpu_id   - the CPU identifier
            governor - the governor, must be available
        '''

        self._require_root('set cpu governor')

        available = self.get_cpu_available_governors(cpu_id)

        self._set_cpu_value(cpu_id, 'scaling_governor', governor, 'governor', available)

    def set_cpu_min_freq(self, cpu_id: int, min_freq: int) -> None:
        self._require_root('set cpu min freq')

        available = self.get_cpu_available_freqs(cpu_id)

        self._set_cpu_value(cpu_id, 'scaling_min_freq', min_freq, 'min. freq', available)

    def set_cpu_max_freq(self, cpu_id: int, max_freq: int) -> None:
        self._require_root('set cpu max freq')

        available = self.get_cpu_available_freqs(cpu_id)

        self._set_cpu_value(cpu_id, 'scaling_max_freq', max_freq, 'max. freq', available)
