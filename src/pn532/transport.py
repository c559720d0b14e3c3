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
#
# Transport layer for host to PN532 communication.
#
import os
import re
import abc
import time
import errno
from binascii import hexlify

try:
    import serial
    import serial.tools.list_ports
except ImportError:  # pragma: no cover
    raise ImportError("missing serial module, try 'pip install pyserial'")

try:
    import termios
except ImportError:  # pragma: no cover
    assert os.name != 'posix'

import logging
log = logging.getLogger(__name__)

PATH = re.compile(r'^([a-z]+)(?::|)([a-zA-Z0-9-]+|)(?::|)([a-zA-Z0-9]+|)$')

# The PN532 expects the least significant bit first on SPI, most host
# controllers can only do msb first.
BITREV = bytearray(int("{:08b}".format(i)[::-1], 2) for i in range(256))


def reverse_bits(data):
    return bytearray(BITREV[octet] for octet in data)


class Transport(abc.ABC):
    """The byte level interface that the :class:`~pn532.chipset.Chipset`
    requires from a host bus. Implementations take care of bus
    specific framing like SPI direction bytes, bit order and chip
    select, the chipset sees only the PN532 frame bytes.

    Errors are raised as :exc:`IOError` and are passed on by the
    chipset without interpretation.

    """
    TYPE = None

    @abc.abstractmethod
    def write(self, data):
        """Send the bytes *data* to the chip."""

    @abc.abstractmethod
    def read(self, length):
        """Receive *length* bytes from the chip and return them as a
        bytearray. The chip must have signalled readiness.

        """

    @abc.abstractmethod
    def transfer(self, data):
        """Send *data* and return as many bytes received at the same
        time (or right after, for a half-duplex line).

        """

    @abc.abstractmethod
    def ready(self):
        """Return True if the chip has data available for reading."""

    @abc.abstractmethod
    def wake_up(self):
        """Send the bus specific signal that wakes the chip from power
        down mode.

        """

    def close(self):
        pass


class SPI(Transport):
    TYPE = "SPI"

    DATAWRITE = 0x01
    STATREAD = 0x02
    DATAREAD = 0x03
    READY = 0x01

    def __init__(self, bus=0, device=0, speed_hz=1000000):
        self.spi = None
        self.open(bus, device, speed_hz)

    def open(self, bus, device, speed_hz=1000000):
        import spidev
        self.close()
        spi = spidev.SpiDev()
        try:
            spi.open(bus, device)
        except IOError as error:
            log.debug("spidev%d.%d: %s", bus, device, error)
            raise IOError(errno.ENODEV, os.strerror(errno.ENODEV))
        spi.mode = 0b00
        spi.max_speed_hz = speed_hz
        self.spi, self.bus, self.device = spi, bus, device

    @property
    def port(self):
        return "spi:{0}:{1}".format(self.bus, self.device) if self.spi else ''

    def _xfer(self, data):
        if self.spi is None:
            raise IOError(errno.EBADF, os.strerror(errno.EBADF))
        return reverse_bits(self.spi.xfer2(list(reverse_bits(data))))

    def write(self, data):
        log.log(logging.DEBUG-1, ">>> %s", hexlify(data).decode())
        self._xfer(bytearray([self.DATAWRITE]) + data)

    def read(self, length):
        data = self._xfer(bytearray([self.DATAREAD]) + bytearray(length))[1:]
        log.log(logging.DEBUG-1, "<<< %s", hexlify(data).decode())
        return data

    def transfer(self, data):
        return self._xfer(data)

    def ready(self):
        status = self._xfer(bytearray([self.STATREAD, 0x00]))
        return status[1] == self.READY

    def wake_up(self):
        # A chip select cycle wakes the chip, it then needs some time
        # before it accepts the next command.
        time.sleep(1)
        self._xfer(b'\x00')
        time.sleep(1)

    def close(self):
        if self.spi is not None:
            self.spi.close()
            self.spi = None


class TTY(Transport):
    """PN532 high speed uart (HSU) interface."""
    TYPE = "TTY"

    WAKEUP = bytearray.fromhex("5555000000")

    @classmethod
    def find(cls, path):
        """Return a list of serial devices that match *path* and a flag
        that tells if *path* did only name a group of devices. Return
        :const:`None` if *path* is not a serial device path. ::

          TTY.find("tty:USB0") -> (["/dev/ttyUSB0"], False)
          TTY.find("tty:AMA") -> (["/dev/ttyAMA0", "/dev/ttyAMA1"], True)

        """
        if not (path.startswith("tty") or path.startswith("com")):
            return

        match = PATH.match(path)

        if match and match.group(1) == "tty":
            name = match.group(2)
            if re.match(r'^(S|ACM|AMA|USB)\d+$', name):
                TTYS, glob = re.compile(r'^tty{}$'.format(name)), False
            elif re.match(r'^(S|ACM|AMA|USB)$', name):
                TTYS, glob = re.compile(r'^tty{}\d+$'.format(name)), True
            elif re.match(r'^.+$', name):
                TTYS, glob = re.compile(r'^{}$'.format(name)), False
            else:
                TTYS, glob = re.compile(r'^tty(S|ACM|AMA|USB)\d+$'), True

            ttys = [fn for fn in os.listdir('/dev') if TTYS.match(fn)]
            ttys.sort(key=lambda item: (len(item), item))
            log.debug('check: ' + ' '.join('/dev/' + tty for tty in ttys))

            # Keep only tty nodes that exist as a terminal device and
            # are accessible. A path that named exactly one device
            # gets the IOError.
            found = []
            for tty in ttys:
                try:
                    termios.tcgetattr(open('/dev/%s' % tty))
                    found.append('/dev/%s' % tty)
                except termios.error:
                    pass
                except IOError as error:
                    log.debug(error)
                    if not glob:
                        raise error
            log.debug('avail: %s', ' '.join(found))
            return found, glob

        if match and match.group(1) == "com":
            if re.match(r'^COM\d+$', match.group(2)):
                return [match.group(2)], False
            if re.match(r'^\d+$', match.group(2)):
                return ["COM" + match.group(2)], False
            if re.match(r'^$', match.group(2)):
                ports = [p[0] for p in serial.tools.list_ports.comports()]
                log.debug('serial ports: %s', ' '.join(ports))
                return ports, True
            log.error("invalid port in 'com' path: %r", match.group(2))

    def __init__(self, port=None, baudrate=115200):
        self.tty = None
        self.open(port, baudrate)

    def open(self, port, baudrate=115200):
        self.close()
        try:
            self.tty = serial.Serial(port, baudrate, timeout=0.05)
        except serial.SerialException as error:
            log.debug(error)
            raise IOError(errno.ENODEV, os.strerror(errno.ENODEV))

    @property
    def port(self):
        return self.tty.port if self.tty else ''

    @property
    def baudrate(self):
        return self.tty.baudrate if self.tty else 0

    @baudrate.setter
    def baudrate(self, value):
        if self.tty:
            self.tty.baudrate = value

    def write(self, data):
        if self.tty is not None:
            log.log(logging.DEBUG-1, ">>> %s", hexlify(data).decode())
            self.tty.reset_input_buffer()
            try:
                self.tty.write(bytes(data))
            except serial.SerialTimeoutException:
                raise IOError(errno.EIO, os.strerror(errno.EIO))

    def read(self, length):
        if self.tty is not None:
            data = bytearray(self.tty.read(length))
            if len(data) == 0:
                raise IOError(errno.ETIMEDOUT, os.strerror(errno.ETIMEDOUT))
            log.log(logging.DEBUG-1, "<<< %s", hexlify(data).decode())
            return data

    def transfer(self, data):
        self.write(data)
        return self.read(len(data))

    def ready(self):
        return self.tty is not None and self.tty.in_waiting > 0

    def wake_up(self):
        if self.tty is not None:
            self.tty.write(bytes(self.WAKEUP))

    def close(self):
        if self.tty is not None:
            self.tty.reset_output_buffer()
            self.tty.close()
            self.tty = None
