"""
Tests for the script pool index (build_pool / filter_pool).
"""

import logging

from board_toolkit.core.models.scripts import Script
from board_toolkit.distribution.pool import build_pool, filter_pool


class TestBuildPool:

    def test_build_when_empty_then_empty_pool(self):
        pool = build_pool([])
        assert pool.is_empty
        assert pool.scripts == ()

    def test_build_when_one_center_then_groups_institutions(self, sample_scripts):
        pool = build_pool(sample_scripts)
        assert list(pool.centers) == ["c1"]
        center = pool.centers["c1"]
        assert list(center.institutions) == ["m1", "m2"]
        assert center.institutions["m1"].total == 6
        assert center.institutions["m2"].total == 4
        assert pool.script_count == len(sample_scripts) == 10

    def test_build_when_grouped_then_keeps_fetch_order_within_group(self, sample_scripts):
        group = build_pool(sample_scripts).centers["c1"].institutions["m1"]
        assert [s.roll_number for s in group.scripts] == [104, 101, 106, 102, 105, 103]

    def test_build_when_labels_present_then_first_seen_labels_used(self, script_factory):
        first = script_factory("a", 1)
        later = Script(
            examinee_id="b", roll_number=2, institution_id="m1", exam_center_id="c1",
            institution_name="Renamed", exam_center_name="Renamed Center",
        )
        pool = build_pool([first, later])
        assert pool.centers["c1"].name == "Center c1"
        assert pool.centers["c1"].institutions["m1"].name == "Institution m1"
        assert pool.centers["c1"].institutions["m1"].code == "M1"

    def test_build_when_two_centers_then_first_seen_center_order(self, two_center_scripts):
        pool = build_pool(list(reversed(two_center_scripts)))
        assert list(pool.centers) == ["c2", "c1"]

    def test_build_when_every_script_then_exactly_one_group(self, two_center_scripts):
        pool = build_pool(two_center_scripts)
        grouped = [s.examinee_id for _, group in pool.institutions() for s in group.scripts]
        assert sorted(grouped) == sorted(s.examinee_id for s in two_center_scripts)

    def test_build_when_duplicate_examinee_then_warns(self, script_factory, caplog):
        with caplog.at_level(logging.WARNING):
            build_pool([script_factory("a", 1), script_factory("a", 2)])
        assert "Duplicate examinee a" in caplog.text

    def test_build_when_institution_spans_centers_then_warns(self, script_factory, caplog):
        scripts = [script_factory("a", 1, "m1", "c1"), script_factory("b", 2, "m1", "c2")]
        with caplog.at_level(logging.WARNING):
            pool = build_pool(scripts)
        assert "appears in exam centers" in caplog.text
        assert pool.centers["c2"].institutions["m1"].total == 1


class TestFilterPool:

    def test_filter_when_no_institution_then_same_pool(self, sample_scripts):
        pool = build_pool(sample_scripts)
        assert filter_pool(pool, "") is pool
        assert filter_pool(pool, None) is pool

    def test_filter_when_institution_then_only_its_subtree(self, sample_scripts):
        narrowed = filter_pool(build_pool(sample_scripts), "m2")
        assert list(narrowed.centers["c1"].institutions) == ["m2"]
        assert narrowed.script_count == 4

    def test_filter_when_unknown_institution_then_empty(self, sample_scripts):
        assert filter_pool(build_pool(sample_scripts), "zzz").is_empty
