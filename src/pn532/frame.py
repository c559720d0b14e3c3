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
"""Encoding and decoding of PN532 normal information frames. ::

  00 00 FF LEN LCS TFI PD0 ... PDn DCS 00

The frame identifier TFI is the first payload byte, D4 for frames from
host to chip and D5 for frames from chip to host. The functions in
this module only deal with bytes, they do not perform any I/O.

"""
from .error import InvalidPayloadSize, MalformedPreamble, TruncatedFrame
from .error import LengthChecksumMismatch, PayloadChecksumMismatch

PREAMBLE = 0x00
STARTCODE1 = 0x00
STARTCODE2 = 0xFF
POSTAMBLE = 0x00

HOST_TO_PN532 = 0xD4
PN532_TO_HOST = 0xD5

SOF = bytes(bytearray([PREAMBLE, STARTCODE1, STARTCODE2]))
ACK = bytes(bytearray.fromhex('0000FF00FF00'))
NAK = bytes(bytearray.fromhex('0000FFFF0000'))

# preamble, start code, length, length checksum, checksum and postamble
FRAME_OVERHEAD = 7


def checksum(data):
    """Return the byte that brings the sum of *data* to zero modulo 256."""
    return (256 - sum(data)) & 0xFF


def encode_frame(payload):
    """Return the frame that carries *payload*. The payload must be more
    than one and less than 255 bytes, otherwise
    :exc:`~pn532.error.InvalidPayloadSize` is raised. ::

      encode_frame(b'\\xD4\\x02') == bytes.fromhex('0000ff02fed4022a00')

    """
    if payload is None or not 1 < len(payload) < 255:
        size = len(payload) if payload is not None else 0
        raise InvalidPayloadSize("payload size %d not in 2..254" % size)

    length = len(payload)
    head = SOF + bytearray([length, checksum([length])])
    tail = bytearray([checksum(payload), POSTAMBLE])
    return bytes(head + bytearray(payload) + tail)


def decode_frame(raw, expected_max_len):
    """Return the payload of the frame found in *raw*. Leading zero
    bytes are skipped until the 0xFF start code. The length and data
    checksums must be correct. The *expected_max_len* is the payload
    size that *raw* was sized for by the caller, the frame may carry
    less.

    """
    offset = 0
    while offset < len(raw) and raw[offset] == 0x00:
        offset += 1
    if offset >= len(raw) or raw[offset] != STARTCODE2:
        raise MalformedPreamble("frame preamble does not contain 00 FF")
    offset += 1

    if offset + 2 > len(raw):
        raise TruncatedFrame("frame contains no length field")
    length = raw[offset]
    if (length + raw[offset+1]) & 0xFF != 0:
        raise LengthChecksumMismatch("frame length checksum error")
    offset += 2

    if offset + length + 1 > len(raw):
        raise TruncatedFrame(
            "frame length %d exceeds the %d byte buffer read for %d bytes"
            % (length, len(raw), expected_max_len))
    if sum(raw[offset:offset+length+1]) & 0xFF != 0:
        raise PayloadChecksumMismatch("frame data checksum error")

    return bytearray(raw[offset:offset+length])
