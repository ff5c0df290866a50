# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-2.0


from .board import BoardInfo, SocFamily, machine_model, running_as_root, soc_family
from .controls import JetsonClocks
from .errors import (
    JetsonClocksError,
    ParseFailure,
    PrivilegeDenied,
    ResourceUnavailable,
    UnsupportedPlatform,
    ValueNotAvailable,
)
