import heapq
import sys
from typing import Dict, List, Optional, Tuple

SYMBOL_COUNT = 256 # one byte per symbol
MAX_CODE_BITS = 32 # numeric codes are stored as unsigned 32-bit values


class HuffmanError(ValueError):
    pass

class InvalidInput(HuffmanError): # frequency table missing or alphabet too small
    pass

class MalformedTree(HuffmanError): # tree path could not be turned into a numeric code
    pass

class UnknownSymbol(HuffmanError): # input byte has no entry in the code table
    def __init__(self, symbol):
        super().__init__(f"symbol {symbol} not found in code table")
        self.symbol = symbol


class HuffmanNode: # Node for Huffman tree
    __slots__ = ("symbol", "frequency", "left", "right")

    def __init__(self, symbol, frequency, left=None, right=None):
        self.symbol = symbol    # byte or None for internal nodes
        self.frequency = frequency # leaf count, or sum of both children
        self.left = left
        self.right = right

    def is_leaf(self) -> bool:
        return self.symbol is not None

    def __repr__(self):
        if self.is_leaf():
            return f"HuffmanNode(symbol={self.symbol}, frequency={self.frequency})"
        return f"HuffmanNode(frequency={self.frequency})"


def frequency_table(data: bytes) -> Dict[int, int]:
    ft: Dict[int, int] = {}
    for b in data:
        ft[b] = ft.get(b, 0) + 1
    return ft


def _check_frequencies(frequency_table):
    if frequency_table is None or len(frequency_table) < 2:
        raise InvalidInput("frequency table must contain at least 2 distinct symbols")
    for symbol, frequency in frequency_table.items():
        if not 0 <= symbol < SYMBOL_COUNT:
            raise InvalidInput(f"symbol {symbol!r} is not a byte value")
        if frequency < 0:
            raise InvalidInput(f"symbol {symbol} has negative frequency {frequency}")


def build_huffman_tree(frequency_table: Dict[int, int]) -> HuffmanNode:
    """
    Build a Huffman tree from a symbol -> frequency mapping

    Ties on weight are broken so that leaves come before internal nodes,
    leaves in ascending symbol order, internal nodes in the order they were
    merged. The same table always gives the same tree.
    """
    _check_frequencies(frequency_table)

    # queue entries: (weight, 0 for leaf / 1 for internal, symbol or merge number, node)
    priority_queue: List[Tuple[int, int, int, HuffmanNode]] = [
        (frequency, 0, symbol, HuffmanNode(symbol, frequency))
        for symbol, frequency in sorted(frequency_table.items())
    ]
    heapq.heapify(priority_queue)

    merges = 0
    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue)[3]
        right = heapq.heappop(priority_queue)[3]
        total = left.frequency + right.frequency
        merged_node = HuffmanNode(None, total, left, right) # internal node with combined frequency
        heapq.heappush(priority_queue, (total, 1, merges, merged_node))
        merges += 1

    return priority_queue[0][3] # root of the tree


def _walk_paths(root: HuffmanNode):
    """
    Yield (leaf, path) for every leaf, left subtree first

    Uses an explicit stack, depth is bounded by the alphabet size.
    """
    if root is None:
        raise MalformedTree("tree is empty")
    if root.is_leaf():
        raise MalformedTree(f"root is a leaf (symbol {root.symbol}), no code can be assigned")

    stack = [(root, "")]
    while stack:
        node, path = stack.pop()
        if node.is_leaf():
            yield node, path
            continue
        if node.left is None or node.right is None:
            raise MalformedTree(f"internal node at path {path!r} is missing a child")
        stack.append((node.right, path + "1"))
        stack.append((node.left, path + "0"))


def generate_huffman_codes(root: HuffmanNode) -> Dict[int, int]:
    """
    Map each symbol to its numeric code

    The code is the leaf path ('0' left, '1' right) read as a binary number.
    The path length is not kept, so "010" and "10" both become 2; use
    huffman_code_lengths() alongside when the exact bits matter.
    """
    codes: Dict[int, int] = {}
    for leaf, path in _walk_paths(root):
        try:
            value = int(path, 2)
        except ValueError as exc:
            raise MalformedTree(f"cannot parse path {path!r} for symbol {leaf.symbol}") from exc
        if value >> MAX_CODE_BITS:
            raise MalformedTree(
                f"code for symbol {leaf.symbol} does not fit in {MAX_CODE_BITS} bits (path length {len(path)})"
            )
        codes[leaf.symbol] = value
    return codes


def huffman_code_lengths(root: HuffmanNode) -> Dict[int, int]:
    return {leaf.symbol: len(path) for leaf, path in _walk_paths(root)}


def huffman_code_strings(root: HuffmanNode) -> Dict[int, str]:
    return {leaf.symbol: path for leaf, path in _walk_paths(root)}


# Diagnostics

def _symbol_label(symbol) -> str:
    if symbol is None:
        return "*"
    if 32 <= symbol < 127:
        return chr(symbol)
    return f"0x{symbol:02x}"


def print_huffman_tree(root: Optional[HuffmanNode], name: str, file=None) -> None:
    """
    Print the tree node first, then left subtree, then right subtree,
    one tab of indentation per level
    """
    out = file if file is not None else sys.stdout
    print(f"Tree name: {name}", file=out)

    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if node is None:
            continue
        tabs = "\t" * depth
        print(f"{tabs}frequency = {node.frequency}\tcharacter = {_symbol_label(node.symbol)}", file=out)
        stack.append((node.right, depth + 1))
        stack.append((node.left, depth + 1))


def compare_huffman_trees(a: Optional[HuffmanNode], b: Optional[HuffmanNode]) -> bool:
    # same shape, same leaf symbols at the same positions, same weight everywhere
    stack = [(a, b)]
    while stack:
        x, y = stack.pop()
        if x is None and y is None:
            continue
        if x is None or y is None:
            return False
        if x.symbol != y.symbol or x.frequency != y.frequency:
            return False
        stack.append((x.left, y.left))
        stack.append((x.right, y.right))
    return True


def tree_depth(root: Optional[HuffmanNode]) -> int:
    if root is None:
        return 0
    deepest = 0
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        for child in (node.left, node.right):
            if child is not None:
                stack.append((child, depth + 1))
    return deepest
