# -*- coding: latin-1 -*-
import pn532.chipset
import pn532.error
from pn532.error import ErrorCode

import errno
import itertools
import pytest
from mock import call

from base_pn532 import HEX, CMD, RSP, ACK, NAK, ERR
from base_pn532 import transport  # noqa: F401

import logging
logging.basicConfig(level=logging.DEBUG-1)
logging_level = logging.getLogger().getEffectiveLevel()
logging.getLogger("pn532").setLevel(logging_level)


@pytest.fixture()
def chipset(transport):  # noqa: F811
    return pn532.chipset.Chipset(transport)


@pytest.fixture(autouse=True)
def no_sleep(mocker):
    return mocker.patch('pn532.chipset.time.sleep')


class TestCommand(object):
    def test_command_with_standard_frame(self, chipset):
        transport = chipset.transport
        transport.read.side_effect = [
            ACK(), RSP('01 343536'),
        ]
        assert chipset.command(0, b'123', 3, 1.0) == b'456'
        assert transport.write.mock_calls == [call(CMD('00 313233'))]
        assert transport.read.mock_calls == [call(6), call(3 + 2 + 7)]

    def test_command_frame_bytes(self, chipset):
        transport = chipset.transport
        transport.read.side_effect = [ACK(), RSP('03 32010607')]
        assert chipset.command(0x02, b'', 4, 0.5) == HEX('32010607')
        assert transport.write.mock_calls == [call(HEX('0000ff02fed4022a00'))]

    def test_response_shorter_than_expected(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('4B 00')]
        assert chipset.command(0x4A, b'\x01\x00', 19, 1.0) == HEX('00')

    def test_command_returns_none_without_ack(self, chipset):
        transport = chipset.transport
        transport.ready.return_value = False
        assert chipset.command(0, b'123', 3, 0.05) is None
        assert transport.write.mock_calls == [call(CMD('00 313233'))]
        assert transport.read.mock_calls == []

    def test_command_returns_none_without_response(self, chipset):
        transport = chipset.transport
        transport.ready.side_effect = itertools.chain(
            [True], itertools.repeat(False))
        transport.read.side_effect = [ACK()]
        assert chipset.command(0, b'123', 3, 0.05) is None
        assert transport.read.mock_calls == [call(6)]

    def test_command_with_zero_timeout(self, chipset):
        assert chipset.command(0, b'123', 3, 0) is None
        assert chipset.transport.read.mock_calls == []

    @pytest.mark.parametrize("index", range(6))
    def test_command_missing_ack(self, chipset, index):
        ack = ACK()
        ack[index] ^= 0x01
        chipset.transport.read.side_effect = [ack, RSP('01 343536')]
        with pytest.raises(pn532.error.MissingAck):
            chipset.command(0, b'123', 3, 1.0)
        assert chipset.transport.read.mock_calls == [call(6)]

    @pytest.mark.parametrize("ack", [NAK(), HEX(''), HEX('0000ff00ff')])
    def test_command_nak_or_short_ack(self, chipset, ack):
        chipset.transport.read.side_effect = [ack]
        with pytest.raises(pn532.error.MissingAck):
            chipset.command(0, b'123', 3, 1.0)

    def test_command_error_frame(self, chipset):
        chipset.transport.read.side_effect = [ACK(), ERR()]
        with pytest.raises(pn532.error.ErrorFrame):
            chipset.command(0, b'123', 3, 1.0)

    @pytest.mark.parametrize("response", [
        HEX('0000ff 05fb d502343536 8a 00'),
        HEX('0000ff 05fb d601343536 8a 00'),
        HEX('0000ff 01ff d5 2b 00'),
    ])
    def test_command_unexpected_echo(self, chipset, response):
        chipset.transport.read.side_effect = [ACK(), response]
        with pytest.raises(pn532.error.UnexpectedCommandEcho):
            chipset.command(0, b'123', 3, 1.0)

    @pytest.mark.parametrize("response, exception", [
        (HEX('0000ff 05fb d501343536 8a 00'),
         pn532.error.PayloadChecksumMismatch),
        (HEX('0000ff 04fb d501343536 8b 00'),
         pn532.error.LengthChecksumMismatch),
        (HEX('000000 05fb d501343536 8b 00'),
         pn532.error.MalformedPreamble),
        (HEX('0000ff 05fb d50134'),
         pn532.error.TruncatedFrame),
    ])
    def test_command_frame_errors(self, chipset, response, exception):
        chipset.transport.read.side_effect = [ACK(), response]
        with pytest.raises(exception):
            chipset.command(0, b'123', 3, 1.0)

    def test_command_invalid_payload_size(self, chipset):
        with pytest.raises(pn532.error.InvalidPayloadSize):
            chipset.command(0x40, bytearray(253), 0, 1.0)
        assert chipset.transport.write.mock_calls == []

    def test_command_write_error_sends_wake_up(self, chipset):
        transport = chipset.transport
        transport.write.side_effect = IOError(errno.EIO, "bus error")
        with pytest.raises(IOError) as excinfo:
            chipset.command(0, b'123', 3, 1.0)
        assert excinfo.value is transport.write.side_effect
        assert transport.wake_up.mock_calls == [call()]
        assert transport.read.mock_calls == []

    def test_command_write_error_with_failed_wake_up(self, chipset):
        transport = chipset.transport
        transport.write.side_effect = IOError(errno.EIO, "bus error")
        transport.wake_up.side_effect = IOError(errno.ENODEV, "gone")
        with pytest.raises(IOError) as excinfo:
            chipset.command(0, b'123', 3, 1.0)
        assert excinfo.value.errno == errno.EIO

    def test_command_read_error_is_not_handled(self, chipset):
        transport = chipset.transport
        transport.read.side_effect = [ACK(), IOError(errno.ETIMEDOUT, "")]
        with pytest.raises(IOError) as excinfo:
            chipset.command(0, b'123', 3, 1.0)
        assert excinfo.value.errno == errno.ETIMEDOUT
        assert transport.wake_up.mock_calls == []

    def test_wait_ready_polls_at_interval(self, chipset, no_sleep):
        chipset.transport.ready.side_effect = [False, False, True]
        assert chipset.wait_ready(1.0) is True
        assert no_sleep.mock_calls == [call(0.01), call(0.01)]

    def test_wait_ready_uses_monotonic_clock(self, chipset, mocker):
        monotonic = mocker.patch('pn532.chipset.time.monotonic')
        monotonic.side_effect = [100.0, 100.0, 100.02, 100.06]
        chipset.transport.ready.return_value = False
        assert chipset.wait_ready(0.05) is False
        assert monotonic.call_count == 4
        assert chipset.transport.ready.call_count == 2

    def test_send_ack(self, chipset):
        chipset.send_ack()
        assert chipset.transport.write.mock_calls == [call(ACK())]

    def test_close(self, chipset):
        transport = chipset.transport
        chipset.close()
        assert transport.close.mock_calls == [call()]
        assert chipset.transport is None


class TestCommands(object):
    def test_get_firmware_version(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('03 32010607')]
        assert chipset.get_firmware_version() == HEX('32010607')
        assert chipset.transport.read.mock_calls == [call(6), call(13)]

    def test_get_general_status(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('05 000000')]
        assert chipset.get_general_status() == HEX('000000')
        assert chipset.transport.write.mock_calls == [call(CMD('04'))]

    def test_get_general_status_too_short(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('05 00')]
        with pytest.raises(pn532.error.TruncatedFrame):
            chipset.get_general_status()

    def test_set_parameters(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('13')]
        assert chipset.set_parameters(0b00010100) == b''
        assert chipset.transport.write.mock_calls == [call(CMD('12 14'))]

    def test_rf_configuration(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('33')]
        assert chipset.rf_configuration(0x05, b'\xff\x01\x02') == b''
        assert chipset.transport.write.mock_calls == [
            call(CMD('32 05 ff0102'))]

    @pytest.mark.parametrize("mode, timeout, irq, command", [
        ("normal", 0x14, True, CMD('14 011401')),
        ("virtual", 0x00, False, CMD('14 020000')),
        ("wired", 0x01, True, CMD('14 030101')),
        ("dual", 0xFF, False, CMD('14 04ff00')),
    ])
    def test_sam_configuration(self, chipset, mode, timeout, irq, command):
        chipset.transport.read.side_effect = [ACK(), RSP('15')]
        assert chipset.sam_configuration(mode, timeout, irq) == b''
        assert chipset.transport.write.mock_calls == [call(command)]

    @pytest.mark.parametrize("wakeup_enable, generate_irq, command", [
        (("INT0",), False, CMD('16 0100')),
        (("I2C", "SPI", "HSU"), False, CMD('16 b000')),
        (("RF", "GPIO"), True, CMD('16 4801')),
    ])
    def test_power_down(self, chipset, wakeup_enable, generate_irq, command):
        chipset.transport.read.side_effect = [ACK(), RSP('17 00')]
        assert chipset.power_down(wakeup_enable, generate_irq) is True
        assert chipset.transport.write.mock_calls == [call(command)]

    def test_power_down_status_error(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('17 27')]
        with pytest.raises(pn532.error.ChipsetError) as excinfo:
            chipset.power_down(("SPI",))
        assert excinfo.value.code == ErrorCode.CONTEXT

    def test_in_list_passive_target(self, chipset):
        chipset.transport.read.side_effect = [
            ACK(), RSP('4B 01 01 0044 00 07 04c4d6a2f64d80')]
        assert chipset.in_list_passive_target(1, 0) == \
            HEX('01 01 0044 00 07 04c4d6a2f64d80')
        assert chipset.transport.write.mock_calls == [call(CMD('4A 0100'))]
        assert chipset.transport.read.mock_calls == [call(6), call(28)]

    @pytest.mark.parametrize("max_tg, brty", [(0, 0), (3, 0), (1, 5)])
    def test_in_list_passive_target_arguments(self, chipset, max_tg, brty):
        with pytest.raises(AssertionError):
            chipset.in_list_passive_target(max_tg, brty)

    def test_in_data_exchange(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('41 00 0102')]
        assert chipset.in_data_exchange(1, b'\x30\x04', 2) == HEX('0102')
        assert chipset.transport.write.mock_calls == [call(CMD('40 013004'))]
        assert chipset.transport.read.mock_calls == [call(6), call(12)]

    def test_in_data_exchange_with_more_information(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('41 40 0102')]
        assert chipset.in_data_exchange(1, b'\x30\x04', 2) == HEX('0102')

    @pytest.mark.parametrize("status, code", [
        ('14', ErrorCode.MIFARE_AUTH), ('01', ErrorCode.TIMEOUT),
        ('41', ErrorCode.TIMEOUT), ('a7', ErrorCode.CONTEXT),
    ])
    def test_in_data_exchange_status_error(self, chipset, status, code):
        chipset.transport.read.side_effect = [ACK(), RSP('41' + status)]
        with pytest.raises(pn532.error.ChipsetError) as excinfo:
            chipset.in_data_exchange(1, b'\x30\x04', 16)
        assert excinfo.value.code == code

    def test_in_data_exchange_unknown_status(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('41 15')]
        with pytest.raises(pn532.error.UnknownErrorCode) as excinfo:
            chipset.in_data_exchange(1, b'\x30\x04', 16)
        assert excinfo.value.errno == 0x15

    def test_in_data_exchange_missing_status(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('41')]
        with pytest.raises(pn532.error.TruncatedFrame):
            chipset.in_data_exchange(1, b'\x30\x04', 16)

    def test_in_data_exchange_timeout(self, chipset):
        chipset.transport.ready.return_value = False
        assert chipset.in_data_exchange(1, b'\x30\x04', 16, 0.01) is None

    def test_in_release(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('53 00')]
        assert chipset.in_release(1) is True
        assert chipset.transport.write.mock_calls == [call(CMD('52 01'))]

    def test_read_gpio(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('0D 2a0403')]
        assert chipset.read_gpio() == HEX('2a0403')
        assert chipset.transport.write.mock_calls == [call(CMD('0C'))]

    def test_write_gpio(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('0F')]
        assert chipset.write_gpio(0x81, 0x00) is True
        assert chipset.transport.write.mock_calls == [call(CMD('0E 8100'))]

    def test_tg_init_as_target(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('8D 01 0203')]
        mifare = HEX('010203040506')
        felica = HEX('010203040506070809101112131415161718')
        nfcid3 = HEX('01020304050607080910')
        gbytes = HEX('313233')
        args = (0x03, mifare, felica, nfcid3, gbytes)
        assert chipset.tg_init_as_target(*args, timeout=0.5) == \
            (0x01, HEX('0203'))
        assert chipset.transport.write.mock_calls == [call(CMD(
            '8C 03 010203040506 010203040506070809101112131415161718'
            '01020304050607080910 03313233 00'))]
        assert chipset.transport.read.mock_calls == [call(6), call(73)]

    def test_tg_init_as_target_with_historical_bytes(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('8D 05 e0')]
        mifare = bytearray(6)
        felica = bytearray(18)
        nfcid3 = bytearray(10)
        args = (0x04, mifare, felica, nfcid3, None, b'\x80')
        assert chipset.tg_init_as_target(*args) == (0x05, HEX('e0'))
        assert chipset.transport.write.mock_calls == [call(CMD(
            '8C 04 000000000000 000000000000000000000000000000000000'
            '00000000000000000000 00 0180'))]

    def test_tg_init_as_target_arguments(self, chipset):
        with pytest.raises(AssertionError):
            chipset.tg_init_as_target(0x08, bytearray(6), bytearray(18),
                                      bytearray(10))
        with pytest.raises(AssertionError):
            chipset.tg_init_as_target(0x00, bytearray(5), bytearray(18),
                                      bytearray(10))

    def test_tg_get_data(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('87 00 313233')]
        assert chipset.tg_get_data(1.0) == HEX('313233')
        assert chipset.transport.write.mock_calls == [call(CMD('86'))]

    def test_tg_get_data_released(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('87 29')]
        with pytest.raises(pn532.error.ChipsetError) as excinfo:
            chipset.tg_get_data(1.0)
        assert excinfo.value.code == ErrorCode.RELEASED

    def test_tg_set_data(self, chipset):
        chipset.transport.read.side_effect = [ACK(), RSP('8F 00')]
        assert chipset.tg_set_data(b'123', 1.0) is True
        assert chipset.transport.write.mock_calls == [call(CMD('8E 313233'))]
