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
"""The command engine for the NXP PN532. A :class:`Chipset` owns one
:class:`~pn532.transport.Transport` and runs every host command
through the same exchange:

1. write the command frame,
2. wait until the chip signals readiness,
3. read and verify the ACK frame,
4. wait until the chip signals readiness again,
5. read the response frame and verify that it answers the command.

When the chip does not become ready within the command timeout the
exchange ends without error and :meth:`Chipset.command` returns
:const:`None`. All other problems raise an exception, see
:mod:`pn532.error`.

The chipset methods are not thread-safe. A single thread must own the
chipset and its transport, other threads must use an external lock.

"""
from . import frame
from . import error

import time
from binascii import hexlify

import logging
log = logging.getLogger(__name__)


class Chipset(object):
    CMD = {
        # Miscellaneous
        0x00: "Diagnose",
        0x02: "GetFirmwareVersion",
        0x04: "GetGeneralStatus",
        0x06: "ReadRegister",
        0x08: "WriteRegister",
        0x0C: "ReadGPIO",
        0x0E: "WriteGPIO",
        0x10: "SetSerialBaudrate",
        0x12: "SetParameters",
        0x14: "SAMConfiguration",
        0x16: "PowerDown",
        # RF communication
        0x32: "RFConfiguration",
        0x58: "RFRegulationTest",
        # Initiator
        0x56: "InJumpForDEP",
        0x46: "InJumpForPSL",
        0x4A: "InListPassiveTarget",
        0x50: "InATR",
        0x4E: "InPSL",
        0x40: "InDataExchange",
        0x42: "InCommunicateThru",
        0x44: "InDeselect",
        0x52: "InRelease",
        0x54: "InSelect",
        0x60: "InAutoPoll",
        # Target
        0x8C: "TgInitAsTarget",
        0x92: "TgSetGeneralBytes",
        0x86: "TgGetData",
        0x8E: "TgSetData",
        0x94: "TgSetMetaData",
        0x88: "TgGetInitiatorCommand",
        0x90: "TgResponseToInitiator",
        0x8A: "TgGetTargetStatus",
    }

    ACK = frame.ACK

    # seconds between two readiness checks
    poll_interval = 0.01

    # largest response data that fits a normal information frame
    response_data_max_size = 254 - 2

    in_list_passive_target_max_target = 2
    in_list_passive_target_brty_range = (0, 1, 2, 3, 4)

    power_down_wakeup_src = ("INT0", "INT1", "rfu", "RF",
                             "HSU", "SPI", "GPIO", "I2C")

    def __init__(self, transport, logger=log):
        self.transport = transport
        self.log = logger

    def close(self):
        self.transport.close()
        self.transport = None

    def chipset_error(self, status):
        exc = error.from_status(status)
        self.log.debug(exc)
        raise exc

    def check_status(self, data, mask=0xFF):
        # Most commands answer with a status byte first, only some of
        # its bits carry the error code.
        if len(data) < 1:
            self.log.error("missing status byte")
            raise error.TruncatedFrame("missing status byte")
        if data[0] & mask != 0:
            self.chipset_error(data[0] & mask)

    def command(self, cmd_code, cmd_data=b'', response_length=0, timeout=1.0):
        """Send a host command and return the chip response. The chip
        command is selected by the 8-bit integer *cmd_code*, parameters
        are supplied with *cmd_data* as a bytearray or byte string. Up
        to *response_length* data bytes are expected in the response
        frame, fewer are accepted. The readiness wait before the ACK
        and before the response may each take up to *timeout* seconds.
        If the response frame is correct and answers *cmd_code* the
        data bytes that follow the response code are returned as a
        bytearray.

        **Exceptions**

        * :exc:`~exceptions.IOError` raised by the transport. If the
          command frame could not be written the chip is sent a wake
          up signal before the error is raised.

        * :exc:`~pn532.error.MissingAck` if the chip did not
          acknowledge the command frame.

        * :exc:`~pn532.error.ProtocolError` subclasses for response
          frame format and checksum errors, an error frame, or a
          response code that is not *cmd_code* + 1.

        The return value is :const:`None` if the chip did not become
        ready in time.

        """
        assert timeout is not None and timeout >= 0
        cmd_data = bytearray(cmd_data)
        self.log.debug("{0} {1} {2:.3f}".format(
            self.CMD.get(cmd_code, "Command 0x%02X" % cmd_code),
            hexlify(cmd_data).decode(), timeout))

        data = bytearray([frame.HOST_TO_PN532, cmd_code]) + cmd_data
        cmd_frame = frame.encode_frame(data)

        try:
            self.write_frame(cmd_frame)
        except IOError as exc:
            self.log.error("input/output error while sending command")
            self.wake_up()
            raise exc

        if not self.wait_ready(timeout):
            self.log.debug("no ack within %.3f seconds", timeout)
            return None

        ack = bytes(self.transport.read(len(self.ACK)) or b'')
        if ack != self.ACK:
            self.log.error("missing ack frame")
            raise error.MissingAck(
                "expected ack frame, received %r" % hexlify(ack).decode())

        if not self.wait_ready(timeout):
            self.log.debug("no response within %.3f seconds", timeout)
            return None

        data = self.read_frame(response_length + 2)

        if len(data) == 1 and data[0] == 0x7F:
            self.log.error("received error frame")
            raise error.ErrorFrame("invalid command syntax")

        if len(data) < 2 or data[0] != frame.PN532_TO_HOST:
            self.log.error("invalid frame identifier")
            raise error.UnexpectedCommandEcho("invalid frame identifier")

        if data[1] != (cmd_code + 1) & 0xFF:
            self.log.error("unexpected response code")
            raise error.UnexpectedCommandEcho(
                "response code 0x%02X does not answer command 0x%02X"
                % (data[1], cmd_code))

        return data[2:]

    def write_frame(self, cmd_frame):
        """Write a command *cmd_frame* to the chipset."""
        self.transport.write(cmd_frame)

    def read_frame(self, length):
        """Read a response frame with up to *length* payload bytes and
        return the payload.

        """
        raw = self.transport.read(length + frame.FRAME_OVERHEAD)
        try:
            return frame.decode_frame(bytearray(raw or b''), length)
        except error.ProtocolError as exc:
            self.log.error(exc)
            raise

    def wait_ready(self, timeout):
        """Poll the chip status until it is ready or *timeout* seconds
        have passed. Return True if the chip became ready.

        """
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.transport.ready():
                return True
            time.sleep(self.poll_interval)
        return False

    def wake_up(self):
        # Best effort, the caller is already handling an error.
        try:
            self.transport.wake_up()
        except IOError as exc:
            self.log.debug("wake up failed: %s", exc)

    def send_ack(self):
        # Send an ACK frame, usually to terminate most recent command.
        self.transport.write(self.ACK)

    def get_firmware_version(self):
        """Send a GetFirmwareVersion command and return the four response
        data bytes IC, Ver, Rev and Support.

        """
        return self.command(0x02, b'', 4, timeout=0.5)

    def get_general_status(self):
        """Send a GetGeneralStatus command and return the response data
        bytes.

        """
        data = self.command(0x04, b'', 12, timeout=0.1)
        if data is not None and len(data) < 3:
            self.log.error("insufficient general status data")
            raise error.TruncatedFrame("insufficient general status data")
        return data

    def set_parameters(self, flags):
        """Send a SetParameters command with the 8-bit *flags* integer."""
        return self.command(0x12, bytearray([flags]), timeout=0.1)

    def rf_configuration(self, cfg_item, cfg_data):
        """Send an RFConfiguration command."""
        return self.command(0x32, bytearray([cfg_item]) + bytearray(cfg_data),
                            timeout=0.1)

    def sam_configuration(self, mode="normal", timeout=0x14, irq=True):
        """Send a SAMConfiguration command. The *mode* is one of
        ``normal``, ``virtual``, ``wired`` or ``dual``. The *timeout*
        is in units of 50 ms and only used in virtual card mode. With
        *irq* the chip drives the P70_IRQ pin.

        """
        mode = ("normal", "virtual", "wired", "dual").index(mode) + 1
        return self.command(0x14, bytearray([mode, timeout, int(irq)]),
                            timeout=0.1)

    def power_down(self, wakeup_enable, generate_irq=False):
        wakeup_set = 0
        for i, src in enumerate(self.power_down_wakeup_src):
            if src in wakeup_enable:
                wakeup_set |= 1 << i
        cmd_data = bytearray([wakeup_set, int(generate_irq)])
        data = self.command(0x16, cmd_data, 1, timeout=0.1)
        if data is None:
            return None
        self.check_status(data)
        return True

    def in_list_passive_target(self, max_tg, brty, initiator_data=b'',
                               timeout=1.0):
        """Send an InListPassiveTarget command and return the response
        data, starting with the number of targets found.

        """
        assert 1 <= max_tg <= self.in_list_passive_target_max_target
        assert brty in self.in_list_passive_target_brty_range
        data = bytearray([max_tg, brty]) + bytearray(initiator_data)
        return self.command(0x4A, data, 19, timeout)

    def in_data_exchange(self, tg, data, response_length, timeout=1.0):
        """Send *data* to the target number *tg* and return the target's
        answer without the status byte. The status byte error bits are
        checked.

        """
        data = bytearray([tg]) + bytearray(data)
        data = self.command(0x40, data, response_length + 1, timeout)
        if data is None:
            return None
        self.check_status(data, mask=0x3F)
        return data[1:]

    def in_release(self, tg=0):
        data = self.command(0x52, bytearray([tg]), 1, timeout=0.1)
        if data is None:
            return None
        self.check_status(data)
        return True

    def read_gpio(self):
        """Send a ReadGPIO command and return the P3, P7 and I port
        bytes.

        """
        return self.command(0x0C, b'', 3, timeout=0.1)

    def write_gpio(self, p3, p7):
        """Send a WriteGPIO command with the port bytes *p3* and *p7*
        as they are. Return True when the command was answered.

        """
        data = self.command(0x0E, bytearray([p3, p7]), timeout=0.1)
        return None if data is None else True

    def tg_init_as_target(self, mode, mifare_params, felica_params, nfcid3t,
                          general_bytes=None, historical_bytes=None,
                          timeout=1.0):
        """Send a TgInitAsTarget command and return the activated mode
        byte and the first command received from the initiator. The
        general and historical bytes are sent as length prefixed
        blocks, absent blocks as a zero length byte.

        """
        assert type(mode) is int and mode & 0b11111000 == 0
        assert len(mifare_params) == 6
        assert len(felica_params) == 18
        assert len(nfcid3t) == 10

        def block(data):
            data = bytearray(data) if data else bytearray()
            assert len(data) < 256
            return bytearray([len(data)]) + data

        data = (bytearray([mode]) + bytearray(mifare_params) +
                bytearray(felica_params) + bytearray(nfcid3t) +
                block(general_bytes) + block(historical_bytes))
        data = self.command(0x8C, data, 64, timeout)
        if data is None:
            return None
        if len(data) < 1:
            raise error.TruncatedFrame("missing TgInitAsTarget mode")
        return data[0], data[1:]

    def tg_get_data(self, timeout):
        data = self.command(0x86, b'', self.response_data_max_size, timeout)
        if data is None:
            return None
        self.check_status(data, mask=0x3F)
        return data[1:]

    def tg_set_data(self, data, timeout):
        data = self.command(0x8E, data, 1, timeout)
        if data is None:
            return None
        self.check_status(data)
        return True
