from dataclasses import dataclass
from typing import Dict, List, Optional

from huffman import UnknownSymbol


@dataclass
class EncodedData:
    codes: Dict[int, int]  # the table the payload was packed with
    data: bytes
    padding: int  # unused low bits in the last byte, 0..7

    @property
    def total_bits(self) -> int:
        return len(self.data) * 8 - self.padding


def code_bits(code: int, length: Optional[int] = None) -> List[int]:
    """
    Bits written for one table entry, most significant first

    Without a length the bits are rebuilt by shifting the code right until it
    reaches zero, which drops leading zeros; code 0 becomes a single 0 bit.
    With a length exactly that many bits are produced.
    """
    if length is not None:
        return [(code >> i) & 1 for i in range(length - 1, -1, -1)]

    if code == 0:
        return [0]
    stack = []
    while code != 0:
        stack.append(code & 1)
        code >>= 1
    stack.reverse()
    return stack


def _lookup(codes, lengths, symbol):
    if symbol not in codes:
        raise UnknownSymbol(symbol)
    if lengths is None:
        return codes[symbol], None
    if symbol not in lengths:
        raise UnknownSymbol(symbol)
    return codes[symbol], lengths[symbol]


def encode(codes: Dict[int, int], data: bytes, lengths: Optional[Dict[int, int]] = None) -> EncodedData:
    """
    Pack data into bytes using the code table

    Bits fill each byte from bit 7 down to bit 0. Raises UnknownSymbol on the
    first byte missing from the table; nothing is returned in that case.
    Pass lengths (symbol -> code length) to keep leading zero bits.
    """
    out = bytearray()
    acc = 0
    bit_position = 7

    for b in data:
        code, length = _lookup(codes, lengths, b)
        for bit in code_bits(code, length):
            acc |= bit << bit_position
            bit_position -= 1
            if bit_position == -1:
                out.append(acc)
                acc = 0
                bit_position = 7

    padding = 0
    if bit_position < 7: # flush the partially filled byte
        out.append(acc)
        padding = bit_position + 1

    return EncodedData(codes=codes, data=bytes(out), padding=padding)


def packed_bit_count(codes: Dict[int, int], data: bytes, lengths: Optional[Dict[int, int]] = None) -> int:
    total = 0
    for b in data:
        code, length = _lookup(codes, lengths, b)
        total += len(code_bits(code, length))
    return total


def expected_padding(total_bits: int) -> int:
    return (8 - total_bits % 8) % 8
