# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


from json import dumps as jdumps
from pathlib import Path

import pytest

from jetson_clocks.scripts.clocks_ctl import main

from conftest import build_tegra194, build_tegra186, read_node, write_node


_app = 'jetson_clocks_ctl'


def _config(tmp_path: Path, root: Path, **extra) -> str:
    config_data = {'sysfs-root': root.as_posix(), 'state-path': (tmp_path / 'state.json').as_posix()}
    config_data.update(extra)

    path = tmp_path / 'jetson-clocks.conf'
    path.write_text(jdumps(config_data), encoding='utf-8')

    return path.as_posix()

@pytest.fixture
def privileged(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('jetson_clocks.controls.running_as_root', lambda: True)

@pytest.fixture
def unprivileged(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('jetson_clocks.controls.running_as_root', lambda: False)


def test_show(tmp_path: Path, privileged: None, capsys: pytest.CaptureFixture) -> None:
    root = build_tegra194(tmp_path / 'root')

    assert main([_app, '-c', _config(tmp_path, root), '--show']) == 0

    out = capsys.readouterr().out
    assert 'SOC family:tegra194  Machine:Jetson-AGX' in out
    assert 'cpu0: Governor=interactive MinFreq=300 MaxFreq=2000 CurrentFreq=1000' in out
    assert 'GPU AvailableFreqs=100 500 900' in out
    assert 'GPU MinFreq=100 MaxFreq=900 CurrentFreq=500' in out
    assert 'EMC AvailableFreqs=200 900 CurrentFreq=600' in out
    assert 'FAN Speed=0' in out

def test_show_unsupported_components(tmp_path: Path, privileged: None, capsys: pytest.CaptureFixture) -> None:
    root = build_tegra186(tmp_path / 'root')
    (root / 'sys/devices/system/cpu/cpu1').mkdir()

    assert main([_app, '-c', _config(tmp_path, root), '--show']) == 0

    out = capsys.readouterr().out
    assert 'GPU MinFreq=n/a MaxFreq=n/a CurrentFreq=n/a' in out
    assert 'cpu1: Offline' in out

def test_show_unprivileged(tmp_path: Path, unprivileged: None, capsys: pytest.CaptureFixture) -> None:
    root = build_tegra194(tmp_path / 'root')

    assert main([_app, '-c', _config(tmp_path, root), '--show']) == 2
    assert 'root permissions' in capsys.readouterr().err

def test_max_performance(tmp_path: Path, privileged: None) -> None:
    root = build_tegra194(tmp_path / 'root')

    assert main([_app, '-c', _config(tmp_path, root, **{'fan-speed': 200})]) == 0

    assert read_node(root, 'sys/devices/system/cpu/cpu1/cpufreq/scaling_min_freq') == '2000'
    assert read_node(root, 'sys/kernel/debug/bpmp/debug/clk/emc/rate') == '900'
    assert read_node(root, 'sys/devices/pwm-fan/target_pwm') == '200'

def test_max_performance_unsupported_governor(tmp_path: Path, privileged: None, capsys: pytest.CaptureFixture) -> None:
    root = build_tegra194(tmp_path / 'root')

    assert main([_app, '-c', _config(tmp_path, root, **{'cpu-governor': 'turbo'})]) == 6
    assert 'turbo is not an available governor' in capsys.readouterr().err

def test_store_and_restore(tmp_path: Path, privileged: None) -> None:
    root = build_tegra194(tmp_path / 'root')
    config = _config(tmp_path, root)

    assert main([_app, '-c', config, '--store']) == 0
    assert (tmp_path / 'state.json').is_file()

    assert main([_app, '-c', config]) == 0
    assert read_node(root, 'sys/devices/system/cpu/cpu0/cpufreq/scaling_min_freq') == '2000'

    assert main([_app, '-c', config, '--restore']) == 0
    assert read_node(root, 'sys/devices/system/cpu/cpu0/cpufreq/scaling_min_freq') == '300'
    assert read_node(root, 'sys/devices/pwm-fan/target_pwm') == '0'

def test_store_to_explicit_file(tmp_path: Path, privileged: None) -> None:
    root = build_tegra194(tmp_path / 'root')
    path = tmp_path / 'explicit.json'

    assert main([_app, '-c', _config(tmp_path, root), '--store', path.as_posix()]) == 0
    assert path.is_file()
    assert not (tmp_path / 'state.json').exists()

def test_restore_missing_file(tmp_path: Path, privileged: None, capsys: pytest.CaptureFixture) -> None:
    root = build_tegra194(tmp_path / 'root')

    assert main([_app, '-c', _config(tmp_path, root), '--restore']) == 4
    assert 'failed to read clock state' in capsys.readouterr().err

def test_invalid_config(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    path = write_node(tmp_path, 'jetson-clocks.conf', '{"fan-speed": -1}')

    assert main([_app, '-c', path.as_posix(), '--show']) == 1
    assert 'failed to read config' in capsys.readouterr().err
