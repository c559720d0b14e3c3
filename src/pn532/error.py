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
"""Exceptions raised by the PN532 driver.

Failures fall into three groups. A :exc:`ProtocolError` means that the
host and the chip did not agree on the framing or sequence of a
command exchange, for example a checksum mismatch or a missing ACK
frame. A :exc:`ChipsetError` carries a non-zero status byte reported by
the chip itself, for example a Mifare authentication failure. Errors
from the bus transport are plain :exc:`IOError` and pass through the
driver unchanged.

- Error

  - ProtocolError

    - InvalidPayloadSize
    - MalformedPreamble
    - LengthChecksumMismatch
    - PayloadChecksumMismatch
    - TruncatedFrame
    - MissingAck
    - UnexpectedCommandEcho
    - ErrorFrame
    - MultipleTargetsDetected
    - UidTooLong

  - DeviceNotDetected
  - ChipsetError

    - UnknownErrorCode

A response that does not arrive before the command timeout is not an
exception, the driver methods return :const:`None` instead.

"""
import os
import errno
from enum import IntEnum


class ErrorCode(IntEnum):
    TIMEOUT = 0x01
    CRC = 0x02
    PARITY = 0x03
    COLLISION_BITCOUNT = 0x04
    MIFARE_FRAMING = 0x05
    COLLISION_BITCOLLISION = 0x06
    NOBUFS = 0x07
    RFNOBUFS = 0x09
    ACTIVE_TOOSLOW = 0x0A
    RFPROTO = 0x0B
    TOOHOT = 0x0D
    INTERNAL_NOBUFS = 0x0E
    INVAL = 0x10
    DEP_INVALID_COMMAND = 0x12
    DEP_BADDATA = 0x13
    MIFARE_AUTH = 0x14
    NOSECURE = 0x18
    I2CBUSY = 0x19
    UIDCHECKSUM = 0x23
    DEPSTATE = 0x25
    HCIINVAL = 0x26
    CONTEXT = 0x27
    RELEASED = 0x29
    CARDSWAPPED = 0x2A
    NOCARD = 0x2B
    MISMATCH = 0x2C
    OVERCURRENT = 0x2D
    NONAD = 0x2E


ERR = {
    ErrorCode.TIMEOUT: "Time out, the Target has not answered",
    ErrorCode.CRC: "Checksum error during RF communication",
    ErrorCode.PARITY: "Parity error during RF communication",
    ErrorCode.COLLISION_BITCOUNT: "Erroneous bit count in anticollision",
    ErrorCode.MIFARE_FRAMING: "Framing error during Mifare operation",
    ErrorCode.COLLISION_BITCOLLISION:
    "Abnormal bit collision in 106 kbps anticollision",
    ErrorCode.NOBUFS: "Insufficient communication buffer size",
    ErrorCode.RFNOBUFS: "RF buffer overflow detected by CIU",
    ErrorCode.ACTIVE_TOOSLOW:
    "RF field not activated in time by active mode peer",
    ErrorCode.RFPROTO: "Protocol error during RF communication",
    ErrorCode.TOOHOT: "Overheated - antenna drivers deactivated",
    ErrorCode.INTERNAL_NOBUFS: "Internal buffer overflow",
    ErrorCode.INVAL: "Invalid command parameter",
    ErrorCode.DEP_INVALID_COMMAND: "Unsupported command from Initiator",
    ErrorCode.DEP_BADDATA: "Format error during RF communication",
    ErrorCode.MIFARE_AUTH: "Mifare authentication error",
    ErrorCode.NOSECURE: "Target or Initiator does not support NFC Secure",
    ErrorCode.I2CBUSY: "I2C bus line is busy, a TDA transaction is ongoing",
    ErrorCode.UIDCHECKSUM: "ISO/IEC14443-3 UID check byte is wrong",
    ErrorCode.DEPSTATE: "Command invalid in current DEP state",
    ErrorCode.HCIINVAL: "Operation not allowed in this configuration",
    ErrorCode.CONTEXT: "Command is not acceptable in the current context",
    ErrorCode.RELEASED: "Released by Initiator while operating as Target",
    ErrorCode.CARDSWAPPED:
    "ISO/IEC14443-3B, the ID of the card does not match",
    ErrorCode.NOCARD:
    "ISO/IEC14443-3B, card previously activated has disappeared",
    ErrorCode.MISMATCH:
    "NFCID3i and NFCID3t mismatch in DEP 212/424 kbps passive",
    ErrorCode.OVERCURRENT: "An over-current event has been detected",
    ErrorCode.NONAD: "NAD missing in DEP frame",
}


class Error(Exception):
    """Base class for all exceptions of the :mod:`pn532` package."""


class ProtocolError(Error, IOError):
    """Host to chip communication did not follow the PN532 frame
    protocol. A protocol error is also an :exc:`IOError` with errno
    :const:`errno.EIO` so that it can be handled together with bus
    errors where the distinction does not matter.

    """
    def __init__(self, message):
        super(ProtocolError, self).__init__(errno.EIO, message)

    def __str__(self):
        return self.strerror


class InvalidPayloadSize(ProtocolError):
    """A command frame payload must be 2 to 254 bytes long."""


class MalformedPreamble(ProtocolError):
    """The response frame does not start with 00 FF."""


class LengthChecksumMismatch(ProtocolError):
    """The response frame length checksum does not match the length."""


class PayloadChecksumMismatch(ProtocolError):
    """The response frame data checksum does not match the data."""


class TruncatedFrame(ProtocolError):
    """The response frame ends before the announced number of bytes."""


class MissingAck(ProtocolError):
    """The chip did not acknowledge the command frame."""


class UnexpectedCommandEcho(ProtocolError):
    """The response frame is not the answer to the command sent."""


class ErrorFrame(ProtocolError):
    """The chip answered with an application level error frame, the
    command was syntactically wrong.

    """


class MultipleTargetsDetected(ProtocolError):
    """More than one card answered a single target poll."""


class UidTooLong(ProtocolError):
    """A card reported a UID longer than 7 bytes."""


class DeviceNotDetected(Error, IOError):
    """No PN532 answered the firmware version query."""

    def __init__(self, message="failed to detect the PN532"):
        super(DeviceNotDetected, self).__init__(errno.ENODEV, message)

    def __str__(self):
        return "{0}: {1}".format(os.strerror(errno.ENODEV), self.strerror)


class ChipsetError(Error):
    """The chip reported a non-zero status byte. The status byte is
    available as :attr:`errno` and the textual description as
    :attr:`strerr`.

    """
    def __init__(self, errno, strerr):
        super(ChipsetError, self).__init__(errno, strerr)
        self.errno, self.strerr = errno, strerr

    def __str__(self):
        return "Error 0x{0:02X}: {1}".format(self.errno, self.strerr)

    @property
    def code(self):
        """The :class:`ErrorCode` member for :attr:`errno`."""
        return ErrorCode(self.errno)


class UnknownErrorCode(ChipsetError):
    """The chip reported a status byte that is not documented."""

    def __init__(self, errno):
        super(UnknownErrorCode, self).__init__(errno, "Unknown error code")

    @property
    def code(self):
        return None


def from_status(status):
    """Return the exception that corresponds to the chip *status*
    byte. The caller raises it. ::

      if data[0] != 0:
          raise from_status(data[0])

    """
    try:
        code = ErrorCode(status)
    except ValueError:
        return UnknownErrorCode(status)
    return ChipsetError(status, ERR[code])
