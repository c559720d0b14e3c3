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
import pn532
import pn532.device
import pn532.error

import sys
import time
import logging
import platform
import argparse

log = logging.getLogger(__name__)

description = """

Connect to a PN532 contactless interface chip and report its firmware
version. Optionally print the GPIO port states and wait for a card to
print its UID. The device path is either 'spi[:bus[:device]]' for the
SPI interface or 'tty:<name>' for the high speed uart interface, for
example 'spi:0:0' or 'tty:USB0'.

"""


def main(args):
    print("This is the %s version of pypn532 run in Python %s\non %s" %
          (pn532.__version__, platform.python_version(), platform.platform()))

    logging.basicConfig()
    log_levels = (logging.WARN, logging.INFO, logging.DEBUG, logging.DEBUG-1)
    log_level = log_levels[min(args.verbose, len(log_levels) - 1)]
    logging.getLogger('pn532').setLevel(log_level)

    try:
        device = pn532.device.connect(args.path)
    except IOError as error:
        print("Sorry, but I couldn't open %s: %s" % (args.path, error))
        return 1

    if device is None:
        print("Sorry, but I couldn't find a PN532 at %s" % args.path)
        return 1

    try:
        print("** found %s" % device)
        version = device.firmware_version
        print("-- firmware version %d.%d, support flags 0x%02X" %
              (version.ver, version.rev, version.support))

        if args.gpio:
            status = device.read_gpio()
            if status is None:
                print("-- no answer to the gpio read")
            else:
                print("-- gpio P3=0x%02X P7=0x%02X I=0x%02X" % tuple(status))

        if args.poll is not None:
            print("-- waiting %.1f seconds for a card" % args.poll)
            deadline = time.monotonic() + args.poll
            while time.monotonic() < deadline:
                uid = device.read_passive_target(timeout=0.5)
                if uid is not None:
                    print("** found card with uid %s" % bytes(uid).hex())
                    break
            else:
                print("-- no card found")
    except pn532.error.Error as error:
        print("Sorry, but the PN532 reported an error: %s" % error)
        return 1
    finally:
        try:
            device.close()
        except (IOError, pn532.error.Error) as error:
            log.warning("failed to close %s: %s", device, error)

    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=description)
    parser.add_argument(
        "path", help="device path, for example 'spi:0:0' or 'tty:USB0'")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="increase the log level, use up to three times")
    parser.add_argument(
        "--poll", type=float, metavar="SECONDS",
        help="wait up to SECONDS for a card and print its uid")
    parser.add_argument(
        "--gpio", action="store_true",
        help="print the state of the gpio ports")
    sys.exit(main(parser.parse_args()))
