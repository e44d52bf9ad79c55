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
CRC-16/BUYPASS

Polynomial 0x8005, initial value 0x0000, MSB first, no reflection and no
final XOR. This is the CRC the CC254x OAD boot loader checks, it is not
CRC-16/ARC (reflected) nor CRC-16/CCITT (poly 0x1021).
"""

CRC16_POLY = 0x8005
CRC16_INIT = 0x0000


def crc16_buypass(data, crc=CRC16_INIT):
    """Compute the CRC-16/BUYPASS of data.

    Pass the result of a previous call as crc to continue over another
    chunk.
    """
    for byte in bytes(data):
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ CRC16_POLY) & 0xffff
            else:
                crc = (crc << 1) & 0xffff
    return crc
