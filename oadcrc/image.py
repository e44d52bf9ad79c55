# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
OAD image header parsing, CRC verification and patching.

The image starts with a 16 byte little endian header:

    crc        u16   CRC-16 over bytes [4, len), LSB first
    crc_shadow u16   0xffff until the boot loader validates the image
    version    u16   user defined image version
    length     u16   image length in 4-byte words
    uid        4s    user defined image identification
    reserved   4s
"""

import logging
import os.path
import struct
from collections import namedtuple
from enum import Enum

import click
from intelhex import IntelHex, IntelHexError

from .crc import crc16_buypass

IMAGE_HEADER_SIZE = 16
IMAGE_HEADER_FORMAT = '<HHHH4s4s'
CRC_OFFSET = 4
WORD_SIZE = 4
INTEL_HEX_EXT = "hex"

ImageHeader = namedtuple('ImageHeader', ['crc', 'crc_shadow', 'version',
                                         'length', 'uid', 'reserved'])

LengthResult = Enum('LengthResult',
                    ['OK', 'FILE_SMALLER_THAN_HEADER', 'MISMATCH'])

VerifyResult = Enum('VerifyResult', ['OK', 'CRC_MISMATCH', 'LENGTH_MISMATCH'])

Mode = Enum('Mode', ['VERIFY_ONLY', 'VERIFY_AND_PATCH'])


class ImageError(click.ClickException):
    exit_code = 7


class InputUnreadableError(ImageError):
    exit_code = 3


class TooSmallError(ImageError):
    exit_code = 4


class OutputUnwritableError(ImageError):
    exit_code = 5


def parse_header(buf):
    if len(buf) < IMAGE_HEADER_SIZE:
        raise TooSmallError("File size too small!")
    crc, crc_shadow, version, length, uid, reserved = struct.unpack_from(
        IMAGE_HEADER_FORMAT, buf, 0)
    return ImageHeader(crc, crc_shadow, version, length, uid, reserved)


def check_length(header, image_size):
    """Compare the header length field against the actual image size.

    Only advisory, the outcome never stops the CRC computation.
    """
    words = image_size // WORD_SIZE
    if header.length == words:
        return LengthResult.OK
    elif header.length > words:
        return LengthResult.FILE_SMALLER_THAN_HEADER
    return LengthResult.MISMATCH


def compute_and_compare(buf):
    """Return the (computed, stored) CRC pair of an image buffer.

    The stored CRC is read from the raw bytes rather than from the parsed
    header.
    """
    computed = crc16_buypass(memoryview(buf)[CRC_OFFSET:])
    stored = buf[1] << 8 | buf[0]
    return computed, stored


def classify(computed, stored, length, image_size):
    if computed != stored:
        return VerifyResult.CRC_MISMATCH
    elif image_size // WORD_SIZE != length:
        return VerifyResult.LENGTH_MISMATCH
    return VerifyResult.OK


def patch(buf, crc):
    """Return a copy of buf with crc written LSB first at offset 0.

    The shadow field and the rest of the image are left untouched.
    """
    patched = bytearray(buf)
    patched[0] = crc & 0xff
    patched[1] = crc >> 8 & 0xff
    return patched


class Image:

    def __init__(self, mode=Mode.VERIFY_ONLY):
        self.mode = mode
        self.payload = bytes()
        self.patched = None
        self.base_addr = None
        self.header = None
        self.length_result = None
        self.crc = None
        self.stored_crc = None
        self.result = None

    def __repr__(self):
        return "<Image mode={}, base_addr={}, size=0x{:x}, crc={}, \
                stored_crc={}, result={}>".format(
                    self.mode.name,
                    self.base_addr if self.base_addr is not None else "N/A",
                    len(self.payload),
                    "N/A" if self.crc is None else hex(self.crc),
                    "N/A" if self.stored_crc is None
                    else hex(self.stored_crc),
                    self.result.name if self.result else "N/A")

    @property
    def image_size(self):
        return len(self.payload)

    def load(self, path):
        """Load an image from a given file"""
        ext = os.path.splitext(path)[1][1:].lower()
        try:
            if ext == INTEL_HEX_EXT:
                ih = IntelHex(path)
                self.payload = bytes(ih.tobinarray())
                self.base_addr = ih.minaddr()
            else:
                with open(path, 'rb') as f:
                    size = os.fstat(f.fileno()).st_size
                    self.payload = f.read()
                if len(self.payload) != size:
                    raise InputUnreadableError(
                        "Could not read file '{}'.".format(path))
        except (OSError, UnicodeDecodeError, IntelHexError) as e:
            logging.debug("Reading %s failed: %s", path, e)
            raise InputUnreadableError(
                "Could not open input file '{}'.".format(path))
        logging.debug("Loaded %d bytes from %s", len(self.payload), path)
        self.header = parse_header(self.payload)

    def check(self):
        """Check the loaded image.

        In verify-only mode the image is classified and the result returned.
        In patch mode the computed CRC is written into a copy of the image
        instead and None is returned; the length outcome is left to the
        caller.
        """
        self.length_result = check_length(self.header, self.image_size)
        self.crc, self.stored_crc = compute_and_compare(self.payload)
        logging.debug("CRC over 0x%x..0x%x: stored 0x%04x, computed 0x%04x",
                      CRC_OFFSET, self.image_size, self.stored_crc, self.crc)
        if self.mode == Mode.VERIFY_AND_PATCH:
            self.patched = patch(self.payload, self.crc)
            return None
        self.result = classify(self.crc, self.stored_crc, self.header.length,
                               self.image_size)
        return self.result

    def save(self, path, hex_addr=None):
        """Save the patched image to a given file"""
        if self.patched is None:
            raise click.UsageError("Image was not patched")
        ext = os.path.splitext(path)[1][1:].lower()
        if ext == INTEL_HEX_EXT:
            # input was in binary format, but HEX needs to know the base addr
            if self.base_addr is None and hex_addr is None:
                raise click.UsageError("No address exists in input file "
                                       "neither was it provided by user")
            h = IntelHex()
            if hex_addr is not None:
                self.base_addr = hex_addr
            h.frombytes(bytes=self.patched, offset=self.base_addr)
            try:
                h.tofile(path, 'hex')
            except OSError as e:
                logging.debug("Writing %s failed: %s", path, e)
                raise OutputUnwritableError(
                    "Could not open output file '{}'.".format(path))
        else:
            try:
                with open(path, 'wb') as f:
                    written = f.write(self.patched)
            except OSError as e:
                logging.debug("Writing %s failed: %s", path, e)
                raise OutputUnwritableError(
                    "Could not write output file '{}'.".format(path))
            if written != len(self.patched):
                raise OutputUnwritableError(
                    "Could not write output file '{}'.".format(path))
        logging.debug("Saved %d bytes to %s", len(self.patched), path)

    @staticmethod
    def verify(imgfile):
        img = Image(Mode.VERIFY_ONLY)
        img.load(imgfile)
        return img.check(), img.header
