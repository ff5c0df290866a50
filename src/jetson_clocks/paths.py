# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


##########################################################################################
# Imports
##########################################################################################

from enum import Enum, unique
from pathlib import Path

from .board import SocFamily
from .errors import UnsupportedPlatform


##########################################################################################
# Enumerator definitions
##########################################################################################

@unique
class Control(Enum):
    '''
    Enumerator for the control files resolved through the path table.
    '''

    GpuAvailableFreqs = 'gpu available frequencies'
    GpuMinFreq        = 'gpu minimum frequency'
    GpuMaxFreq        = 'gpu maximum frequency'
    GpuMinFreqStatus  = 'gpu minimum frequency readback'
    GpuMaxFreqStatus  = 'gpu maximum frequency readback'
    GpuCurFreq        = 'gpu current frequency'
    GpuRailGate       = 'gpu rail-gate'
    GpuLoad           = 'gpu load'
    EmcMinRate        = 'emc minimum rate'
    EmcMaxRate        = 'emc maximum rate'
    EmcIsoCap         = 'emc iso-cap'
    EmcRate           = 'emc rate'
    EmcOverride       = 'emc override'
    ClusterIdle       = 'cluster idle-state enable'
    QosEnable         = 'qos enable'
    FanPwm            = 'fan pwm'


##########################################################################################
# Constants
##########################################################################################

_gp10b = '/sys/devices/17000000.gp10b/devfreq/17000000.gp10b'
_gv11b = '/sys/devices/17000000.gv11b/devfreq/17000000.gv11b'
_gm20b = '/sys/devices/57000000.gpu/devfreq/57000000.gpu'

_bpmp_emc = '/sys/kernel/debug/bpmp/debug/clk/emc'
_bwmgr = '/sys/kernel/debug/tegra_bwmgr'
_override_emc = '/sys/kernel/debug/clk/override.emc'
_emc_iso_cap = '/sys/kernel/nvpmodel_emc_cap/emc_iso_cap'

_t186 = SocFamily.Tegra186
_t194 = SocFamily.Tegra194
_t210 = SocFamily.Tegra210

_all_families = (_t186, _t194, _t210)

'''
Family-independent control files.
'''
_common_table = {
    Control.QosEnable: ('/sys/module/qos/parameters/enable',),
    Control.FanPwm: (
        '/sys/kernel/debug/tegra_fan/target_pwm',
        '/sys/devices/pwm-fan/target_pwm',
    ),
}

'''
Family-dependent control files.

GPU readback of the current/min/max frequency is only known for tegra194.
'''
_family_table = {
    (Control.GpuAvailableFreqs, _t186): (f'{_gp10b}/available_frequencies',),
    (Control.GpuAvailableFreqs, _t194): (f'{_gv11b}/available_frequencies',),
    (Control.GpuAvailableFreqs, _t210): (f'{_gm20b}/available_frequencies',),

    (Control.GpuMinFreq, _t186): (f'{_gp10b}/min_freq',),
    (Control.GpuMinFreq, _t194): (f'{_gv11b}/min_freq',),
    (Control.GpuMinFreq, _t210): (f'{_gm20b}/min_freq',),

    (Control.GpuMaxFreq, _t186): (f'{_gp10b}/max_freq',),
    (Control.GpuMaxFreq, _t194): (f'{_gv11b}/max_freq',),
    (Control.GpuMaxFreq, _t210): (f'{_gm20b}/max_freq',),

    (Control.GpuMinFreqStatus, _t194): (f'{_gv11b}/min_freq',),
    (Control.GpuMaxFreqStatus, _t194): (f'{_gv11b}/max_freq',),
    (Control.GpuCurFreq, _t194): (f'{_gv11b}/cur_freq',),

    (Control.GpuRailGate, _t186): (f'{_gp10b}/device/railgate_enable',),
    (Control.GpuRailGate, _t194): (f'{_gv11b}/device/railgate_enable',),
    (Control.GpuRailGate, _t210): (f'{_gm20b}/device/railgate_enable',),

    (Control.GpuLoad, _t210): ('/sys/devices/gpu.0/load',),

    (Control.EmcMinRate, _t186): (f'{_bpmp_emc}/min_rate',),
    (Control.EmcMinRate, _t194): (f'{_bpmp_emc}/min_rate',),
    (Control.EmcMinRate, _t210): (f'{_bwmgr}/emc_min_rate',),

    (Control.EmcMaxRate, _t186): (f'{_bpmp_emc}/max_rate',),
    (Control.EmcMaxRate, _t194): (f'{_bpmp_emc}/max_rate',),
    (Control.EmcMaxRate, _t210): (f'{_bwmgr}/emc_max_rate',),

    (Control.EmcIsoCap, _t186): (_emc_iso_cap,),
    (Control.EmcIsoCap, _t194): (_emc_iso_cap,),

    (Control.EmcRate, _t186): (f'{_bpmp_emc}/rate',),
    (Control.EmcRate, _t194): (f'{_bpmp_emc}/rate',),
    (Control.EmcRate, _t210): (f'{_override_emc}/clk_update_rate',),

    (Control.EmcOverride, _t186): (f'{_bpmp_emc}/mrq_rate_locked',),
    (Control.EmcOverride, _t194): (f'{_bpmp_emc}/mrq_rate_locked',),
    (Control.EmcOverride, _t210): (f'{_override_emc}/clk_state',),

    (Control.ClusterIdle, _t186): (
        '/sys/kernel/debug/tegra_cpufreq/M_CLUSTER/cc3/enable',
        '/sys/kernel/debug/tegra_cpufreq/B_CLUSTER/cc3/enable',
    ),
}

'''
Base directory of the per-CPU nodes, and the cpufreq leaf template.
'''
_cpu_base = '/sys/devices/system/cpu'
_cpu_leaf_template = 'cpu{0}/cpufreq/{1}'

'''
Leaves of the per-CPU frequency scaling nodes.
'''
cpu_leaves = (
    'scaling_available_frequencies',
    'scaling_available_governors',
    'scaling_governor',
    'scaling_min_freq',
    'scaling_max_freq',
    'scaling_cur_freq',
)


##########################################################################################
# Internal functions
##########################################################################################

def _anchor(root: Path, path: str) -> Path:
    return root / path.lstrip('/')


##########################################################################################
# Functions
##########################################################################################

def supported_families(control: Control) -> tuple:
    '''
    Get the SoC families that have a mapping for a control.

    Arguments:
        control - the requested control
    '''

    if control in _common_table:
        return _all_families

    return tuple(f for f in _all_families if (control, f) in _family_table)

def resolve(control: Control, family: SocFamily, root: Path = Path('/')) -> tuple:
    '''
    Resolve the control file paths of a control.

    Arguments:
        control - the requested control
        family  - the SoC family of the board
        root    - root of the filesystem the paths are anchored to

    Returns a non-empty tuple of paths. Multiple paths either all need to
    be written (cluster idle-state) or are alternatives tried in order (fan).
    Family-independent controls resolve for any family, including Unknown.
    '''

    paths = _common_table.get(control)

    if paths is None:
        if family not in _all_families:
            raise UnsupportedPlatform(f'cannot resolve {control.value} with unsupported SoC family {family.value!r}')

        paths = _family_table.get((control, family))

    if paths is None:
        supported = ', '.join(f.value for f in supported_families(control))
        raise UnsupportedPlatform(f'{control.value} is not supported on SoC family {family.value} (supported: {supported})')

    return tuple(_anchor(root, p) for p in paths)

def cpu_base(root: Path = Path('/')) -> Path:
    return _anchor(root, _cpu_base)

def cpu_path(cpu_id: int, leaf: str, root: Path = Path('/')) -> Path:
    '''
    Get the path of a per-CPU frequency scaling node.

    Arguments:
        cpu_id - the CPU identifier
        leaf   - the cpufreq leaf, one of cpu_leaves
        root   - root of the filesystem the path is anchored to
    '''

    if leaf not in cpu_leaves:
        raise ValueError(f'invalid cpufreq leaf: {leaf}')

    return cpu_base(root) / _cpu_leaf_template.format(cpu_id, leaf)
