#! /usr/bin/env python3
#
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

import logging
import sys

import click

from oadcrc import image, oadcrc_version
from oadcrc.dumpinfo import dump_imginfo, print_report, print_result

MIN_PYTHON_VERSION = (3, 6)
if sys.version_info < MIN_PYTHON_VERSION:
    sys.exit("Python %s.%s or newer is required by oadcrc."
             % MIN_PYTHON_VERSION)

# Exit codes of a failed verification. Errors raised while reading or
# writing images carry their own exit codes, see image.ImageError.
VERIFY_EXIT_CODES = {
    image.VerifyResult.OK: 0,
    image.VerifyResult.CRC_MISMATCH: 1,
    image.VerifyResult.LENGTH_MISMATCH: 6,
}

CHECK_USAGE = """Usage: {} input.bin [output.bin]

Calculates and patches the CRC-16 for TI CC254x Firmware image.
With no output file it prints only the old and new CRC.
Typically the CRC is stored in the first 2 bytes following a 2 byte shadow.
CRC calculation starts with offset 4 and 2 bytes get written at offset 0.
"""


def process_image(infile, outfile=None, hex_addr=None):
    """Verify infile, or patch its CRC into outfile when one is given."""
    mode = (image.Mode.VERIFY_AND_PATCH if outfile is not None
            else image.Mode.VERIFY_ONLY)
    img = image.Image(mode)
    img.load(infile)
    result = img.check()
    print_report(img)

    if mode == image.Mode.VERIFY_AND_PATCH:
        img.save(outfile, hex_addr)
        return

    print_result(result)
    if result != image.VerifyResult.OK:
        sys.exit(VERIFY_EXIT_CODES[result])


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return int(value, 0)
        except ValueError:
            self.fail('%s is not a valid integer. Please use code literals '
                      'prefixed with 0b/0B, 0o/0O, or 0x/0X as necessary.'
                      % value, param, ctx)


@click.argument('files', nargs=-1)
@click.command(help='''Verify the CRC-16 of an OAD image, or patch it into
               OUTFILE when one is given\n
               Takes INFILE [OUTFILE]; any other number of files prints the
               usage text''',
               context_settings=dict(help_option_names=['-h', '--help']))
@click.pass_context
def check(ctx, files):
    if len(files) not in (1, 2):
        print(CHECK_USAGE.format(ctx.command_path))
        return
    process_image(*files)


@click.argument('imgfile')
@click.command(help='Check that the CRC-16 and length of an image match '
                    'its header')
def verify(imgfile):
    process_image(imgfile)


@click.argument('outfile')
@click.argument('infile')
@click.option('-x', '--hex-addr', type=BasedIntParamType(), required=False,
              help='Adjust address in hex output file.')
@click.command(help='''Write INFILE to OUTFILE with the computed CRC-16
               patched in at offset 0\n
               INFILE and OUTFILE are parsed as Intel HEX if the params have
               .hex extension, otherwise binary format is used''')
def patch(hex_addr, infile, outfile):
    process_image(infile, outfile, hex_addr)


@click.argument('imgfile')
@click.option('-o', '--outfile', metavar='filename', required=False,
              help='Save image information to outfile in YAML format')
@click.option('-s', '--silent', default=False, is_flag=True,
              help='Do not print image information to output')
@click.command(help='Print header and CRC information of an image')
def dumpinfo(imgfile, outfile, silent):
    dump_imginfo(imgfile, outfile, silent)
    if not silent:
        print("dumpinfo has run successfully")


class AliasesGroup(click.Group):

    _aliases = {
        "crc16": "check",
    }

    def list_commands(self, ctx):
        cmds = [k for k in self.commands]
        aliases = [k for k in self._aliases]
        return sorted(cmds + aliases)

    def get_command(self, ctx, cmd_name):
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv
        if cmd_name in self._aliases:
            return click.Group.get_command(self, ctx, self._aliases[cmd_name])
        return None


@click.command(help='Print oadcrc version information')
def version():
    print(oadcrc_version)


@click.option('-v', '--verbose', default=False, is_flag=True,
              help='Print debug messages')
@click.command(cls=AliasesGroup,
               context_settings=dict(help_option_names=['-h', '--help']))
def oadcrc(verbose):
    if verbose:
        logging.basicConfig(format='%(levelname)5s: %(message)s',
                            level=logging.DEBUG, stream=sys.stdout)


oadcrc.add_command(check)
oadcrc.add_command(verify)
oadcrc.add_command(patch)
oadcrc.add_command(dumpinfo)
oadcrc.add_command(version)


if __name__ == '__main__':
    oadcrc()
