# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


from sys import argv as sys_argv

def jetson_clocks_cli() -> int:
    from .clocks_ctl import main as cli_main
    return cli_main(sys_argv)
