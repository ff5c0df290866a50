# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


##########################################################################################
# Imports
##########################################################################################

from pathlib import Path

import pytest

from jetson_clocks.board import BoardInfo
from jetson_clocks.controls import JetsonClocks


##########################################################################################
# Constants
##########################################################################################

_gv11b = 'sys/devices/17000000.gv11b/devfreq/17000000.gv11b'
_gp10b = 'sys/devices/17000000.gp10b/devfreq/17000000.gp10b'
_gm20b = 'sys/devices/57000000.gpu/devfreq/57000000.gpu'
_bpmp_emc = 'sys/kernel/debug/bpmp/debug/clk/emc'
_cpu_base = 'sys/devices/system/cpu'


##########################################################################################
# Functions
##########################################################################################

def write_node(root: Path, path: str, content: str) -> Path:
    node = root / path.lstrip('/')
    node.parent.mkdir(parents=True, exist_ok=True)
    node.write_text(content, encoding='utf-8')

    return node

def read_node(root: Path, path: str) -> str:
    return (root / path.lstrip('/')).read_text(encoding='utf-8')

def snapshot(root: Path) -> dict:
    '''
    Capture the content of every file below a root.
    '''

    return {p: p.read_text(encoding='utf-8') for p in root.rglob('*') if p.is_file()}

def add_cpu(root: Path, cpu_id: int, freqs: str = '300 2000 1000\n',
            governors: str = 'interactive\npowersave\nperformance\n') -> None:
    base = f'{_cpu_base}/cpu{cpu_id}/cpufreq'

    write_node(root, f'{base}/scaling_available_frequencies', freqs)
    write_node(root, f'{base}/scaling_available_governors', governors)
    write_node(root, f'{base}/scaling_governor', 'interactive\n')
    write_node(root, f'{base}/scaling_min_freq', '300\n')
    write_node(root, f'{base}/scaling_max_freq', '2000\n')
    write_node(root, f'{base}/scaling_cur_freq', '1000\n')

def build_tegra194(root: Path) -> Path:
    write_node(root, 'proc/device-tree/compatible', 'nvidia,p2972-0000\x00nvidia,tegra194\x00')
    write_node(root, 'proc/device-tree/model', 'Jetson-AGX\x00')

    write_node(root, f'{_gv11b}/available_frequencies', '100 900 500\n')
    write_node(root, f'{_gv11b}/min_freq', '100\n')
    write_node(root, f'{_gv11b}/max_freq', '900\n')
    write_node(root, f'{_gv11b}/cur_freq', '500\n')
    write_node(root, f'{_gv11b}/device/railgate_enable', '1\n')

    write_node(root, f'{_bpmp_emc}/min_rate', '200\n')
    write_node(root, f'{_bpmp_emc}/max_rate', '900\n')
    write_node(root, f'{_bpmp_emc}/rate', '600\n')
    write_node(root, f'{_bpmp_emc}/mrq_rate_locked', '0\n')
    write_node(root, 'sys/kernel/nvpmodel_emc_cap/emc_iso_cap', '0\n')

    write_node(root, 'sys/module/qos/parameters/enable', '1\n')
    write_node(root, 'sys/devices/pwm-fan/target_pwm', '0\n')

    add_cpu(root, 0)
    add_cpu(root, 1)
    (root / _cpu_base / 'cpufreq').mkdir()
    (root / _cpu_base / 'cpuidle').mkdir()

    return root

def build_tegra186(root: Path) -> Path:
    write_node(root, 'sys/devices/soc0/family', 'tegra186\n')
    write_node(root, 'sys/devices/soc0/machine', 'quill\n')

    write_node(root, f'{_gp10b}/available_frequencies', '114750000 1300500000 624750000\n')
    write_node(root, f'{_gp10b}/min_freq', '114750000\n')
    write_node(root, f'{_gp10b}/max_freq', '1300500000\n')
    write_node(root, f'{_gp10b}/device/railgate_enable', '1\n')

    write_node(root, f'{_bpmp_emc}/min_rate', '40800000\n')
    write_node(root, f'{_bpmp_emc}/max_rate', '1866000000\n')
    write_node(root, f'{_bpmp_emc}/rate', '1600000000\n')
    write_node(root, f'{_bpmp_emc}/mrq_rate_locked', '0\n')

    write_node(root, 'sys/module/qos/parameters/enable', '1\n')
    write_node(root, 'sys/kernel/debug/tegra_cpufreq/M_CLUSTER/cc3/enable', '1\n')
    write_node(root, 'sys/kernel/debug/tegra_cpufreq/B_CLUSTER/cc3/enable', '1\n')
    write_node(root, 'sys/kernel/debug/tegra_fan/target_pwm', '77\n')

    add_cpu(root, 0)

    return root

def build_tegra210(root: Path) -> Path:
    write_node(root, 'proc/device-tree/compatible', 'nvidia,p3450-0000\x00nvidia,jetson-nano\x00nvidia,tegra210\x00')
    write_node(root, 'proc/device-tree/model', 'NVIDIA Jetson Nano Developer Kit\x00')

    write_node(root, f'{_gm20b}/available_frequencies', '76800000 921600000 460800000\n')
    write_node(root, f'{_gm20b}/min_freq', '76800000\n')
    write_node(root, f'{_gm20b}/max_freq', '921600000\n')
    write_node(root, f'{_gm20b}/device/railgate_enable', '1\n')
    write_node(root, 'sys/devices/gpu.0/load', '237\n')

    write_node(root, 'sys/kernel/debug/tegra_bwmgr/emc_min_rate', '204000000\n')
    write_node(root, 'sys/kernel/debug/tegra_bwmgr/emc_max_rate', '1600000000\n')
    write_node(root, 'sys/kernel/debug/clk/override.emc/clk_update_rate', '1600000000\n')
    write_node(root, 'sys/kernel/debug/clk/override.emc/clk_state', '0\n')

    write_node(root, 'sys/devices/pwm-fan/target_pwm', '0\n')

    add_cpu(root, 0)
    add_cpu(root, 1)
    add_cpu(root, 2)
    add_cpu(root, 3)

    return root

def make_clocks(root: Path, privileged: bool = True) -> JetsonClocks:
    return JetsonClocks(BoardInfo.probe(root), root, is_privileged=lambda: privileged)


##########################################################################################
# Fixtures
##########################################################################################

@pytest.fixture
def t194(tmp_path: Path) -> Path:
    return build_tegra194(tmp_path)

@pytest.fixture
def t186(tmp_path: Path) -> Path:
    return build_tegra186(tmp_path)

@pytest.fixture
def t210(tmp_path: Path) -> Path:
    return build_tegra210(tmp_path)
