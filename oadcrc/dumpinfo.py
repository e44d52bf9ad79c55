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
Print and save the header and CRC status of an OAD image.
"""
import os.path

import yaml

from oadcrc import image

LENGTH_WARNINGS = {
    image.LengthResult.FILE_SMALLER_THAN_HEADER:
        "Warning: File smaller than header len.",
    image.LengthResult.MISMATCH:
        "Warning: File size and header len do not match.",
}
RESULT_MESSAGES = {
    image.VerifyResult.OK: "OK.",
    image.VerifyResult.CRC_MISMATCH: "Fail: crc do not match.",
    image.VerifyResult.LENGTH_MISMATCH: "Fail: len do not match.",
}


def parse_uid(uid):
    """Render the uid as a 4 character tag, '.' for unprintable bytes."""
    return "".join(chr(c) if 0x20 <= c < 0x7f else "." for c in uid)


def hex_bytes(data):
    return " ".join("{:02X}".format(c) for c in data)


def print_header(header):
    print("Image Header")
    print("  crc0: {:04X}".format(header.crc))
    print("  crc1: {:04X}".format(header.crc_shadow))
    print("  ver : {:04X}".format(header.version))
    print("  len : {:04X}".format(header.length))
    print("  uid : {} '{}'".format(hex_bytes(header.uid),
                                   parse_uid(header.uid)))
    print("  res : {}".format(hex_bytes(header.reserved)))


def print_length_warning(length_result):
    if length_result in LENGTH_WARNINGS:
        print(LENGTH_WARNINGS[length_result])


def print_crc(image_size, stored, computed):
    print("File length: {:04X} words.".format(image_size // image.WORD_SIZE))
    print("  old CRC-16: {:04X}".format(stored))
    print("  new CRC-16: {:04X}".format(computed))


def print_result(result):
    print(RESULT_MESSAGES[result])


def print_report(img):
    """Print everything known about a checked image."""
    print_header(img.header)
    print_length_warning(img.length_result)
    print_crc(img.image_size, img.stored_crc, img.crc)


def dump_imginfo(imgfile, outfile=None, silent=False):
    """Parse an OAD image and print/save the available information."""
    img = image.Image(image.Mode.VERIFY_ONLY)
    img.load(imgfile)
    result = img.check()
    header = img.header

    if outfile is not None:
        imgdata = {
            "header": {
                "crc": header.crc,
                "crc_shadow": header.crc_shadow,
                "version": header.version,
                "length": header.length,
                "uid": header.uid.hex(),
                "reserved": header.reserved.hex(),
            },
            "image_size": img.image_size,
            "length_check": img.length_result.name,
            "crc": {
                "stored": img.stored_crc,
                "computed": img.crc,
            },
            "result": result.name,
        }
        with open(outfile, "w") as outf:
            # sort_keys - from pyyaml 5.1
            yaml.dump(imgdata, outf, sort_keys=False)

    if silent:
        return result

    print("Printing content of OAD image:", os.path.basename(imgfile), "\n")
    print_report(img)
    print_result(result)
    return result
