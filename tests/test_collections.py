# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# dupinspect/tests/test_collections.py

import random
from datetime import timedelta

import pytest

from dupinspect.collections.backup import BackupChain, Collections, group_backup_sets
from dupinspect.collections.file_naming import parse_filename
from dupinspect.errors import BrokenChain

from conftest import T0, T1, T2, T3, set_names


def three_snapshot_names():
    return set_names(T0) + set_names(T1, start=T0) + set_names(T2, start=T1)


class TestGrouping:
    def test_files_of_one_set(self):
        sets = group_backup_sets(parse_filename(n) for n in set_names(T0, volumes=3))
        assert len(sets) == 1
        backup_set = sets[0]
        assert backup_set.is_full
        assert backup_set.volume_numbers == [1, 2, 3]
        assert backup_set.manifest is not None
        assert backup_set.signature is not None
        assert backup_set.is_complete

    def test_missing_signature_is_incomplete(self):
        sets = group_backup_sets(parse_filename(n) for n in set_names(T0, signature=False))
        assert not sets[0].is_complete
        assert sets[0].missing_parts() == ["signature"]

    def test_duplicate_volume_keeps_one(self):
        names = set_names(T0) + ["duplicity-full.20150101T000000Z.vol1.difftar"]
        sets = group_backup_sets(parse_filename(n) for n in names)
        assert len(sets[0].volumes) == 1
        assert sets[0].volume(1).name == "duplicity-full.20150101T000000Z.vol1.difftar"

    def test_complete_file_wins_over_partial(self):
        names = [
            "duplicity-full.20150101T000000Z.manifest.part",
            "duplicity-full.20150101T000000Z.manifest",
        ]
        sets = group_backup_sets(parse_filename(n) for n in names)
        assert not sets[0].manifest.partial


class TestChains:
    """Linking sets into chains."""

    def test_three_snapshots(self):
        collections = Collections.from_names(three_snapshot_names())
        assert len(collections.chains) == 1
        assert collections.orphans == ()
        chain = collections.primary_chain
        assert len(chain) == 3
        assert chain.snapshot_times() == [T0, T1, T2]
        assert chain.full_set.is_full
        assert [s.start_time for s in chain.incremental_sets] == [T0, T1]
        assert chain.is_complete
        assert collections.num_snapshots == 3

    def test_continuity(self):
        names = three_snapshot_names() + set_names(T3) + set_names(T3 + timedelta(hours=1), start=T3)
        collections = Collections.from_names(names)
        for chain in collections.chains:
            for previous, current in zip(chain.sets, chain.sets[1:]):
                assert current.start_time == previous.end_time

    def test_order_independence(self):
        names = three_snapshot_names() + set_names(T3) + ["notes.txt"]
        expected = Collections.from_names(names)
        rng = random.Random(17)
        for _ in range(5):
            shuffled = list(names)
            rng.shuffle(shuffled)
            assert Collections.from_names(shuffled) == expected

    def test_unattached_increment_is_orphan(self):
        names = three_snapshot_names() + set_names(T3 + timedelta(days=1), start=T3)
        collections = Collections.from_names(names)
        assert len(collections.primary_chain) == 3
        assert len(collections.orphans) == 1
        orphan = collections.orphans[0]
        assert orphan.backup_set.start_time == T3
        assert orphan.reason.startswith("no chain ends at")

    def test_increment_without_full(self):
        collections = Collections.from_names(set_names(T1, start=T0))
        assert collections.chains == ()
        assert len(collections.orphans) == 1

    def test_longest_competing_increment_wins(self):
        names = set_names(T0) + set_names(T1, start=T0) + set_names(T2, start=T0)
        collections = Collections.from_names(names)
        chain = collections.primary_chain
        assert chain.snapshot_times() == [T0, T2]
        assert len(collections.orphans) == 1
        assert collections.orphans[0].backup_set.end_time == T1
        assert collections.orphans[0].reason.startswith("superseded")

    def test_backwards_range_is_orphan(self):
        names = set_names(T0) + set_names(T0, start=T1)
        collections = Collections.from_names(names)
        assert len(collections.primary_chain) == 1
        assert collections.orphans[0].reason == "time range does not move forward"

    def test_several_chains(self):
        names = set_names(T0) + set_names(T1, start=T0) + set_names(T2) + set_names(T3, start=T2)
        collections = Collections.from_names(names)
        assert [c.start_time for c in collections.chains] == [T0, T2]
        assert collections.primary_chain.start_time == T2

    def test_prefixes_do_not_mix(self):
        names = set_names(T0, prefix="alpha") + set_names(T1, start=T0, prefix="beta")
        collections = Collections.from_names(names)
        assert len(collections.primary_chain) == 1
        assert collections.orphans[0].backup_set.prefix == "beta"

    def test_prefix_filter(self):
        names = set_names(T0, prefix="alpha") + set_names(T1, prefix="beta")
        collections = Collections.from_names(names, prefix="beta")
        assert [c.prefix for c in collections.chains] == ["beta"]
        assert len(collections.skipped_names) == len(set_names(T0, prefix="alpha"))

    def test_unrelated_files_are_skipped(self):
        collections = Collections.from_names(set_names(T0) + ["README", ".DS_Store"])
        assert collections.skipped_names == (".DS_Store", "README")
        assert len(collections.primary_chain) == 1


class TestChainInvariants:
    def test_gap_raises(self):
        sets = group_backup_sets(parse_filename(n) for n in set_names(T0) + set_names(T2, start=T1))
        with pytest.raises(BrokenChain):
            BackupChain(tuple(sets))

    def test_must_start_with_full(self):
        sets = group_backup_sets(parse_filename(n) for n in set_names(T1, start=T0))
        with pytest.raises(BrokenChain):
            BackupChain(tuple(sets))

    def test_empty(self):
        with pytest.raises(BrokenChain):
            BackupChain(())


class TestMarkIncomplete:
    def test_set_stays_in_chain(self):
        collections = Collections.from_names(three_snapshot_names())
        target = collections.primary_chain[1]
        updated = collections.mark_incomplete(target, "manifest unusable")
        chain = updated.primary_chain
        assert len(chain) == 3
        assert chain[1].issues == ("manifest unusable",)
        assert not chain[1].is_complete
        assert chain[1].end_time == T1
        assert updated.incomplete_sets() == [chain[1]]
        # the original is untouched
        assert collections.primary_chain[1].issues == ()
