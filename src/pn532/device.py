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
"""Application level access to a PN532. A :class:`Device` decodes the
chip responses into UIDs, card blocks and pin states. The :func:`connect`
function opens a device from a path string ::

  import pn532.device
  device = pn532.device.connect("spi:0:0")
  uid = device.read_passive_target(timeout=0.5)
  if uid is not None:
      key = b'\\xFF\\xFF\\xFF\\xFF\\xFF\\xFF'
      if device.mifare_classic_authenticate_block(uid, 4, 0x60, key):
          print(device.mifare_classic_read_block(4))

Methods that talk to the chip return :const:`None` if the chip did not
answer within the timeout, and raise the exceptions defined in
:mod:`pn532.error` for protocol and chip errors.

Single pin writes read the current port state and write it back with
one bit changed. Two threads writing pins at the same time would lose
updates, a device must not be shared between threads without a lock.

"""
from . import transport
from . import error
from . import gpio
from .chipset import Chipset
from .gpio import GpioPin

import time
from collections import namedtuple

import logging
log = logging.getLogger(__name__)

MIFARE_ISO14443A = 0x00

# Mifare commands
MIFARE_CMD_AUTH_A = 0x60
MIFARE_CMD_AUTH_B = 0x61
MIFARE_CMD_READ = 0x30
MIFARE_CMD_WRITE = 0xA0
MIFARE_CMD_TRANSFER = 0xB0
MIFARE_CMD_DECREMENT = 0xC0
MIFARE_CMD_INCREMENT = 0xC1
MIFARE_CMD_STORE = 0xC2
MIFARE_ULTRALIGHT_CMD_WRITE = 0xA2

FirmwareVersion = namedtuple("FirmwareVersion", "ic ver rev support")

Target = namedtuple("Target", "tg sens_res sel_res uid")


class Device(object):
    def __init__(self, chipset, logger=log):
        assert isinstance(chipset, Chipset)
        self.chipset = chipset
        self.log = logger
        self._chipset_name = "PN532"
        self._path = ''

    def __str__(self):
        return "{0} at {1}".format(self.chipset_name, self.path)

    @property
    def chipset_name(self):
        return self._chipset_name

    @property
    def path(self):
        return self._path

    def close(self):
        # Cancel most recent command in case we've been interrupted
        # before the response, give the chip 10 ms to think about it,
        # then set the chip to sleep mode with some wakeup sources.
        try:
            self.chipset.send_ack()
            time.sleep(0.01)
            self.chipset.power_down(wakeup_enable=("I2C", "SPI", "HSU"))
        finally:
            self.chipset.close()
            self.chipset = None

    @property
    def firmware_version(self):
        """The chip's :class:`FirmwareVersion`. Raises
        :exc:`~pn532.error.DeviceNotDetected` if the chip does not answer.

        """
        data = self.chipset.get_firmware_version()
        if data is None:
            raise error.DeviceNotDetected()
        if len(data) < 4:
            raise error.TruncatedFrame("insufficient firmware version data")
        return FirmwareVersion(*data[0:4])

    def sam_configuration(self):
        """Configure the chip for normal mode, the SAM is not used."""
        return self.chipset.sam_configuration("normal", 0x14, True)

    def list_passive_target(self, card_baud=MIFARE_ISO14443A, timeout=1.0):
        """Poll for one passive Type A target and return a :class:`Target`
        or :const:`None` if no card was found within *timeout* seconds.

        """
        data = self.chipset.in_list_passive_target(1, card_baud,
                                                   timeout=timeout)
        if data is None or len(data) == 0 or data[0] == 0:
            return None
        if data[0] != 1:
            raise error.MultipleTargetsDetected(
                "%d targets answered a single target poll" % data[0])
        if len(data) < 6:
            raise error.TruncatedFrame("insufficient target data")
        if data[5] > 7:
            raise error.UidTooLong(
                "found card with unexpectedly long UID of %d bytes" % data[5])
        uid = data[6:6+data[5]]
        if len(uid) != data[5]:
            raise error.TruncatedFrame("insufficient target uid data")
        self.log.debug("found target with uid %s", bytes(uid).hex())
        return Target(data[1], data[2:4], data[4], uid)

    def read_passive_target(self, card_baud=MIFARE_ISO14443A, timeout=1.0):
        """Wait up to *timeout* seconds for a card and return its UID as
        a bytearray, or :const:`None` if no card was found.

        """
        target = self.list_passive_target(card_baud, timeout)
        return target.uid if target is not None else None

    def mifare_classic_authenticate_block(self, uid, block_number,
                                          key_number, key):
        """Authenticate *block_number* of the card with *uid* using the
        6 byte *key*, *key_number* is either :const:`MIFARE_CMD_AUTH_A`
        or :const:`MIFARE_CMD_AUTH_B`. Returns True when authenticated,
        a failed authentication raises :exc:`~pn532.error.ChipsetError`
        with :attr:`~pn532.error.ErrorCode.MIFARE_AUTH`.

        """
        assert key_number in (MIFARE_CMD_AUTH_A, MIFARE_CMD_AUTH_B)
        assert len(key) == 6, "key must be 6 bytes"
        data = (bytearray([key_number, block_number & 0xFF]) +
                bytearray(key) + bytearray(uid))
        data = self.chipset.in_data_exchange(1, data, 0)
        return None if data is None else True

    def mifare_classic_read_block(self, block_number):
        """Return the 16 byte block *block_number* from the card."""
        data = bytearray([MIFARE_CMD_READ, block_number & 0xFF])
        return self.chipset.in_data_exchange(1, data, 16)

    def mifare_classic_write_block(self, block_number, data):
        """Write the 16 bytes *data* to *block_number* on the card."""
        assert data is not None and len(data) == 16, "data must be 16 bytes"
        data = bytearray([MIFARE_CMD_WRITE, block_number & 0xFF]) + data
        data = self.chipset.in_data_exchange(1, data, 0)
        return None if data is None else True

    def ntag2xx_write_block(self, block_number, data):
        """Write the 4 bytes *data* to page *block_number* of an NTAG2xx
        or Mifare Ultralight card.

        """
        assert data is not None and len(data) == 4, "data must be 4 bytes"
        data = (bytearray([MIFARE_ULTRALIGHT_CMD_WRITE, block_number & 0xFF])
                + data)
        data = self.chipset.in_data_exchange(1, data, 0)
        return None if data is None else True

    def ntag2xx_read_block(self, block_number):
        """Return the 4 bytes of page *block_number* of an NTAG2xx or
        Mifare Ultralight card. The card answers a read with four pages,
        only the first is returned.

        """
        data = self.mifare_classic_read_block(block_number)
        return data[0:4] if data is not None else None

    def read_gpio(self, pin=None):
        """Return the state of *pin* as a bool, or the 3 port bytes P3, P7
        and I as a bytearray if *pin* is :const:`None`. A pin is a
        :class:`~pn532.gpio.GpioPin` or a pin name like ``"p32"``.

        """
        status = self.chipset.read_gpio()
        if status is None:
            return None
        if len(status) < 3:
            raise error.TruncatedFrame("insufficient gpio status data")
        if pin is None:
            return status
        return gpio.pin_state(status, pin)

    def write_gpio(self, pin=None, state=None, p3=None, p7=None):
        """Set output pins of the chip.

        If *p3* or *p7* are given they are written as complete port
        values and *pin* is ignored. The chip drives all pins of a port
        that is written, to change one pin the others must be supplied
        with their current level. A zero or missing port value leaves
        that port unchanged.

        Otherwise *pin* is set to *state*. The current port state is
        read first and written back with only that pin changed. The
        input pins I0 and I1 can not be written, the call does nothing
        and returns False.

        """
        if p3 is not None or p7 is not None:
            return self.chipset.write_gpio(*gpio.port_vector(p3, p7))

        pin = GpioPin.get(pin)
        if not pin.writable:
            self.log.debug("%s is an input pin and can not be set", pin.name)
            return False

        status = self.read_gpio()
        if status is None:
            return None

        params = bytearray(2)
        params[pin.port] = gpio.port_value(status, pin, state)
        return self.chipset.write_gpio(*params)

    def init_as_target(self, mode, mifare_params, felica_params, nfcid3t,
                       general_bytes=None, historical_bytes=None,
                       timeout=1.0):
        """Configure the chip as a target and wait *timeout* seconds to be
        activated by an initiator. Returns the activated mode byte and
        the first initiator command as a tuple.

        """
        return self.chipset.tg_init_as_target(
            mode, mifare_params, felica_params, nfcid3t,
            general_bytes, historical_bytes, timeout)


def init(transport):
    """Wake the chip behind *transport*, verify that it answers and
    configure it for reader operation. Returns a :class:`Device`.

    """
    transport.wake_up()

    chipset = Chipset(transport, logger=log)
    device = Device(chipset, logger=log)

    ic, ver, rev, support = device.firmware_version
    device._chipset_name = "PN5{0:02x}v{1}.{2}".format(ic, ver, rev)
    log.debug("chipset is a {0}".format(device._chipset_name))

    if device.sam_configuration() is None:
        raise error.DeviceNotDetected("no answer to SAM configuration")

    return device


def connect(path):
    """Connect to a PN532 identified by *path* and return an initialized
    :class:`Device`, or :const:`None` if no device was found. ::

      spi                 SPI bus 0, chip select 0
      spi:1:0             SPI bus 1, chip select 0
      tty:USB0            serial device /dev/ttyUSB0
      tty:AMA             first PN532 on any /dev/ttyAMA<n>
      com:COM3            Windows serial port

    """
    assert isinstance(path, str) and len(path) > 0

    if path.split(':')[0] == "spi":
        args = path.split(':')[1:]
        try:
            bus, dev = [int(arg) if arg else 0
                        for arg in (args + ['', ''])[0:2]]
        except ValueError:
            log.error("invalid spi path %r", path)
            return None
        spi = transport.SPI(bus, dev)
        try:
            device = init(spi)
        except (IOError, error.Error):
            spi.close()
            raise
        device._path = spi.port
        return device

    found = transport.TTY.find(path)
    if found is not None:
        devices, globbed = found
        for dev in devices:
            log.debug("trying pn532 on {0}".format(dev))
            tty = None
            try:
                tty = transport.TTY(dev)
                device = init(tty)
                device._path = dev
                return device
            except (IOError, error.Error) as exc:
                log.debug(exc)
                if tty is not None:
                    tty.close()
                if not globbed:
                    raise

    return None
