import random
from collections import Counter

import pytest

from core.pairing.partitioner import (
    PAIR_COLORS,
    PAIR_NUMBER_MAX,
    PAIR_NUMBER_MIN,
    make_pair,
    rotate,
    shuffle_users,
)


def _users(n):
    return [f"u{i}" for i in range(n)]


def test_four_users_make_two_duos():
    pairs = rotate(["A", "B", "C", "D"], random.Random(1))

    assert len(pairs) == 2
    assert all(len(p.users) == 2 for p in pairs)
    assert not any(p.is_triple for p in pairs)
    assert sorted(u for p in pairs for u in p.users) == ["A", "B", "C", "D"]


def test_five_users_make_one_triple_and_one_duo():
    pairs = rotate(["A", "B", "C", "D", "E"], random.Random(2))

    sizes = sorted(len(p.users) for p in pairs)
    assert sizes == [2, 3]
    triple = next(p for p in pairs if p.is_triple)
    duo = next(p for p in pairs if not p.is_triple)
    assert set(triple.users) | set(duo.users) == {"A", "B", "C", "D", "E"}
    assert not set(triple.users) & set(duo.users)


@pytest.mark.parametrize("n", range(2, 14))
@pytest.mark.parametrize("seed", [0, 1, 7, 42])
def test_partition_covers_input_with_legal_group_sizes(n, seed):
    users = _users(n)
    pairs = rotate(users, random.Random(seed))

    flat = [u for p in pairs for u in p.users]
    assert sorted(flat) == sorted(users)
    assert len(flat) == len(set(flat))

    sizes = Counter(len(p.users) for p in pairs)
    expected = Counter({2: (n - 3) // 2, 3: 1}) if n % 2 else Counter({2: n // 2})
    # унарный плюс убирает нулевые счётчики
    assert +sizes == +expected
    assert sum(p.is_triple for p in pairs) == n % 2


def test_structure_is_stable_across_calls_while_content_varies():
    users = _users(9)
    rng = random.Random(3)

    outputs = [rotate(users, rng) for _ in range(20)]

    for pairs in outputs:
        assert sorted(len(p.users) for p in pairs) == [2, 2, 2, 3]
    assert len({tuple(tuple(p.users) for p in pairs) for pairs in outputs}) > 1


def test_same_seed_gives_same_partition():
    users = _users(7)
    first = rotate(users, random.Random(99))
    second = rotate(users, random.Random(99))
    assert first == second


def test_empty_input_gives_no_pairs():
    assert rotate([], random.Random(0)) == []


def test_single_user_gives_degenerate_single_pair():
    pairs = rotate(["solo"], random.Random(0))

    assert len(pairs) == 1
    assert pairs[0].users == ["solo"]
    assert pairs[0].is_triple is False


def test_three_users_make_one_triple():
    pairs = rotate(["A", "B", "C"], random.Random(0))

    assert len(pairs) == 1
    assert pairs[0].is_triple
    assert sorted(pairs[0].users) == ["A", "B", "C"]


def test_duplicates_are_ignored():
    pairs = rotate(["A", "B", "A", "C", "D", "B"], random.Random(5))
    assert sorted(u for p in pairs for u in p.users) == ["A", "B", "C", "D"]


def test_pair_ids_are_positional_and_unique():
    pairs = rotate(_users(11), random.Random(4))

    assert [p.id for p in pairs] == [f"pair-{i}" for i in range(len(pairs))]
    # тройка всегда последней
    assert pairs[-1].is_triple


def test_color_and_number_are_within_bounds():
    rng = random.Random(11)
    for _ in range(200):
        pair = make_pair(0, ["A", "B"], rng)
        assert pair.color in PAIR_COLORS
        assert PAIR_NUMBER_MIN <= pair.number <= PAIR_NUMBER_MAX


def test_palette_has_at_least_eight_colors():
    assert len(set(PAIR_COLORS)) >= 8


def test_shuffle_keeps_every_user_once():
    shuffled = shuffle_users(_users(30), random.Random(8))
    assert sorted(shuffled) == sorted(_users(30))
