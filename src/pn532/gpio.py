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
"""The PN532 exposes ten general purpose pins through the ReadGPIO and
WriteGPIO commands. ReadGPIO returns three port bytes (P3, P7 and the
interface selection pins I0/I1), each pin maps to one bit. ::

  port 0: P3[0] = P30 ... P3[5] = P35
  port 1: P7[1] = P71, P7[2] = P72
  port 2:  I[0] = I0,   I[1] = I1

WriteGPIO takes only the P3 and P7 bytes. Bit 7 of each byte is the
validation bit, the chip applies the other bits of a port only if it
is set and then drives all pins of that port. The I0 and I1 pins can
be read but never written.

"""
from enum import Enum

VALIDATION_BIT = 0x80

# ports that WriteGPIO can drive
OUTPUT_PORTS = (0, 1)


class GpioPin(Enum):
    P30 = (0, 0)
    P31 = (0, 1)
    P32 = (0, 2)
    P33 = (0, 3)
    P34 = (0, 4)
    P35 = (0, 5)
    P71 = (1, 1)
    P72 = (1, 2)
    I0 = (2, 0)
    I1 = (2, 1)

    @property
    def port(self):
        return self.value[0]

    @property
    def offset(self):
        return self.value[1]

    @property
    def writable(self):
        return self.port in OUTPUT_PORTS

    @classmethod
    def get(cls, pin):
        """Return the :class:`GpioPin` for *pin*, which may already be a
        member or a pin name like ``"p30"`` or ``"I1"``.

        """
        if isinstance(pin, cls):
            return pin
        try:
            return cls[str(pin).upper()]
        except KeyError:
            raise ValueError("unknown gpio pin %r" % pin)


def pin_state(status, pin):
    """Return the level of *pin* within the 3-byte *status* vector."""
    pin = GpioPin.get(pin)
    return bool(status[pin.port] >> pin.offset & 1)


def port_value(status, pin, state):
    """Return the byte to write for the port of *pin* so that *pin* gets
    *state* and all other pins of that port keep their level from
    *status*. The validation bit is set.

    """
    pin = GpioPin.get(pin)
    value = status[pin.port]
    if state:
        value = value | (1 << pin.offset)
    else:
        value = value & ~(1 << pin.offset)
    return VALIDATION_BIT | value & 0xFF


def port_vector(p3, p7):
    """Return the two WriteGPIO parameter bytes for full port values
    *p3* and *p7*. A non-zero value gets the validation bit, a zero or
    :const:`None` value leaves the port untouched.

    """
    for value in (p3, p7):
        if value is not None and not 0 <= value <= 0xFF:
            raise ValueError("port value %r not in 0..255" % value)
    return bytearray([VALIDATION_BIT | p3 if p3 else 0x00,
                      VALIDATION_BIT | p7 if p7 else 0x00])
