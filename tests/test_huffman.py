import io
import random

import pytest

import huffman as huff
from huffman import HuffmanNode

A, B, C, D = (ord(c) for c in "ABCD")


def seed_frequencies():
    return {A: 3, B: 2, C: 1, D: 1}


def fibonacci_frequencies(n):
    freqs = {}
    a, b = 1, 1
    for sym in range(n):
        freqs[sym] = a
        a, b = b, a + b
    return freqs


def random_frequencies(rng, n_symbols):
    symbols = rng.sample(range(256), n_symbols)
    return {s: rng.randint(0, 50) for s in symbols}


def check_weights(node):
    if node.is_leaf():
        assert node.left is None and node.right is None
        return
    assert node.frequency == node.left.frequency + node.right.frequency
    check_weights(node.left)
    check_weights(node.right)


def test_build_seed_tree():
    root = huff.build_huffman_tree(seed_frequencies())
    expected = HuffmanNode(None, 7,
        HuffmanNode(A, 3),
        HuffmanNode(None, 4,
            HuffmanNode(B, 2),
            HuffmanNode(None, 2, HuffmanNode(C, 1), HuffmanNode(D, 1)),
        ),
    )
    if not huff.compare_huffman_trees(root, expected):
        out = io.StringIO()
        huff.print_huffman_tree(root, "actual", file=out)
        huff.print_huffman_tree(expected, "expected", file=out)
        pytest.fail("trees are not equal\n" + out.getvalue())


def test_seed_code_table():
    root = huff.build_huffman_tree(seed_frequencies())
    assert huff.generate_huffman_codes(root) == {A: 0, B: 2, C: 6, D: 7}
    assert huff.huffman_code_lengths(root) == {A: 1, B: 2, C: 3, D: 3}
    assert huff.huffman_code_strings(root) == {A: "0", B: "10", C: "110", D: "111"}


def test_two_symbols_single_merge():
    root = huff.build_huffman_tree({200: 5, 7: 9})
    assert root.frequency == 14
    assert root.left.symbol == 200 and root.right.symbol == 7
    assert huff.generate_huffman_codes(root) == {200: 0, 7: 1}


def test_equal_weight_leaves_sorted_by_symbol():
    root = huff.build_huffman_tree({D: 1, C: 1, B: 1, A: 1})
    assert huff.huffman_code_strings(root) == {A: "00", B: "01", C: "10", D: "11"}


def test_leaf_before_internal_on_tie():
    # C and D merge into weight 2, which ties with leaf B
    root = huff.build_huffman_tree({B: 2, C: 1, D: 1})
    assert root.left.symbol == B
    assert not root.right.is_leaf()


@pytest.mark.parametrize("freqs", [{}, {A: 1}, None])
def test_build_rejects_small_alphabet(freqs):
    with pytest.raises(huff.InvalidInput):
        huff.build_huffman_tree(freqs)


@pytest.mark.parametrize("freqs", [{A: 1, 256: 1}, {A: 1, -1: 2}, {A: 1, B: -3}])
def test_build_rejects_bad_entries(freqs):
    with pytest.raises(huff.InvalidInput):
        huff.build_huffman_tree(freqs)


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        huff.build_huffman_tree({})


def test_zero_frequencies_allowed():
    root = huff.build_huffman_tree({A: 0, B: 0, C: 0})
    assert root.frequency == 0
    assert sorted(huff.generate_huffman_codes(root)) == [A, B, C]


def test_deterministic_across_insertion_order():
    rng = random.Random(7)
    for _ in range(20):
        freqs = random_frequencies(rng, rng.randint(2, 256))
        items = list(freqs.items())
        rng.shuffle(items)
        t1 = huff.build_huffman_tree(freqs)
        t2 = huff.build_huffman_tree(dict(items))
        assert huff.compare_huffman_trees(t1, t2)
        assert huff.generate_huffman_codes(t1) == huff.generate_huffman_codes(t2)


def test_weight_invariant():
    rng = random.Random(11)
    for _ in range(20):
        freqs = random_frequencies(rng, rng.randint(2, 256))
        root = huff.build_huffman_tree(freqs)
        check_weights(root)
        assert root.frequency == sum(freqs.values())


def test_codes_are_prefix_free():
    rng = random.Random(3)
    for _ in range(10):
        freqs = random_frequencies(rng, rng.randint(2, 128))
        paths = huff.huffman_code_strings(huff.build_huffman_tree(freqs))
        assert set(paths) == set(freqs)
        words = sorted(paths.values())
        # in sorted order a prefix sits directly before some word it prefixes
        for shorter, longer in zip(words, words[1:]):
            assert not longer.startswith(shorter)


def test_numeric_code_matches_path():
    rng = random.Random(5)
    freqs = random_frequencies(rng, 64)
    root = huff.build_huffman_tree(freqs)
    codes = huff.generate_huffman_codes(root)
    for sym, path in huff.huffman_code_strings(root).items():
        assert codes[sym] == int(path, 2)


def test_depth_bounded_by_alphabet():
    root = huff.build_huffman_tree(fibonacci_frequencies(20))
    assert huff.tree_depth(root) == 19
    rng = random.Random(1)
    freqs = random_frequencies(rng, 256)
    assert huff.tree_depth(huff.build_huffman_tree(freqs)) <= 255


def test_code_fits_32_bits():
    root = huff.build_huffman_tree(fibonacci_frequencies(33))
    codes = huff.generate_huffman_codes(root)
    assert max(codes.values()) == 2 ** 32 - 1


def test_code_over_32_bits_is_malformed():
    root = huff.build_huffman_tree(fibonacci_frequencies(34))
    assert max(huff.huffman_code_lengths(root).values()) == 33
    with pytest.raises(huff.MalformedTree):
        huff.generate_huffman_codes(root)


def test_leaf_root_is_malformed():
    with pytest.raises(huff.MalformedTree):
        huff.generate_huffman_codes(HuffmanNode(A, 4))


def test_missing_child_is_malformed():
    broken = HuffmanNode(None, 3, HuffmanNode(A, 1), HuffmanNode(None, 2, HuffmanNode(B, 2), None))
    with pytest.raises(huff.MalformedTree):
        huff.generate_huffman_codes(broken)


def test_compare_detects_differences():
    t = huff.build_huffman_tree(seed_frequencies())
    assert huff.compare_huffman_trees(None, None)
    assert not huff.compare_huffman_trees(t, None)
    assert not huff.compare_huffman_trees(t, huff.build_huffman_tree({A: 3, B: 2, C: 1, D: 2}))
    assert not huff.compare_huffman_trees(t, huff.build_huffman_tree({A: 3, B: 2, C: 1, 0x45: 1}))


def test_print_tree_preorder():
    out = io.StringIO()
    huff.print_huffman_tree(huff.build_huffman_tree(seed_frequencies()), "seed", file=out)
    assert out.getvalue().splitlines() == [
        "Tree name: seed",
        "frequency = 7\tcharacter = *",
        "\tfrequency = 3\tcharacter = A",
        "\tfrequency = 4\tcharacter = *",
        "\t\tfrequency = 2\tcharacter = B",
        "\t\tfrequency = 2\tcharacter = *",
        "\t\t\tfrequency = 1\tcharacter = C",
        "\t\t\tfrequency = 1\tcharacter = D",
    ]


def test_print_tree_defaults_to_stdout(capsys):
    huff.print_huffman_tree(huff.build_huffman_tree({0: 1, 10: 1}), "ctrl")
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Tree name: ctrl"
    assert lines[1:] == ["frequency = 2\tcharacter = *", "\tfrequency = 1\tcharacter = 0x00",
                         "\tfrequency = 1\tcharacter = 0x0a"]


def test_frequency_table():
    assert huff.frequency_table(b"ABBCCC") == {A: 1, B: 2, C: 3}
    assert huff.frequency_table(b"") == {}
