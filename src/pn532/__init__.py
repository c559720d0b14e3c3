# -----------------------------------------------------------------------------
# Copyright 2009, 2017 Stephen Tiedemann <stephen.tiedemann@gmail.com>
#
# Licensed under the EUPL, Version 1.1 or - as soon they
# will be approved by the European Commission - subsequent
# versions of the EUPL (the "Licence");
# You may not use this work except in compliance with the
# Licence.
# You may obtain a copy of the Licence at:
#
# https://joinup.ec.europa.eu/software/page/eupl
#
# Unless required by applicable law or agreed to in
# writing, software distributed under the Licence is
# distributed on an "AS IS" basis,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either
# express or implied.
# See the Licence for the specific language governing
# permissions and limitations under the Licence.
# -----------------------------------------------------------------------------
from . import error                                                # noqa: F401
from . import frame                                                # noqa: F401
from . import transport                                            # noqa: F401
from .gpio import GpioPin                                          # noqa: F401
from .chipset import Chipset                                       # noqa: F401
from .device import Device, connect                                # noqa: F401

import logging
logging.getLogger(__name__).addHandler(logging.NullHandler())
logging.getLogger(__name__).setLevel(logging.INFO)

# METADATA ####################################################################

__version__ = "0.3.0"

__title__ = "pypn532"
__description__ = "Python driver for the NXP PN532 contactless interface chip."

__author__ = "The pypn532 developers"

__license__ = "EUPL"
__copyright__ = "Copyright (c) 2026 The pypn532 developers"

###############################################################################
