"""Tests for Discogs format classification."""

import pytest

from vinylshelf.formats import (
    describe_vinyl,
    is_cd_format,
    is_lp_33,
    is_vinyl_45,
    media_classifier,
)


def vinyl(*descriptions, name="Vinyl"):
    return {"formats": [{"name": name, "qty": "1", "descriptions": list(descriptions)}]}


class TestLp33:
    def test_lp_tag_passes_both_modes(self):
        basic = vinyl("LP")
        assert is_lp_33(basic)
        assert is_lp_33(basic, strict=True)

    def test_album_tag_counts_as_lp(self):
        assert is_lp_33(vinyl("Album"), strict=True)

    def test_untagged_12_inch_33_passes_lenient_only(self):
        basic = vinyl('12"', "33 1/3 RPM")
        assert is_lp_33(basic)
        assert not is_lp_33(basic, strict=True)

    def test_strict_with_explicit_speed(self):
        assert is_lp_33(vinyl("LP", "Album", "33 ⅓ RPM"), strict=True)
        assert is_lp_33(vinyl("LP", "33.RPM"), strict=True)

    def test_strict_rejects_lp_at_45(self):
        basic = vinyl("LP", "45 RPM")
        assert is_lp_33(basic)
        assert not is_lp_33(basic, strict=True)

    def test_lenient_needs_12_inch_without_tag(self):
        assert not is_lp_33(vinyl("33 ⅓ RPM"))
        assert is_lp_33(vinyl("12in", "33 RPM"))

    def test_any_descriptor_containing_12_counts_as_size(self):
        # literal rule: "Remastered 2012" carries a 12
        assert is_lp_33(vinyl("Remastered 2012", "33 RPM"))

    def test_descriptors_are_trimmed_and_case_folded(self):
        assert is_lp_33(vinyl("  lp  "), strict=True)
        assert is_lp_33({"formats": [{"name": " VINYL ", "descriptions": ["Album"]}]})

    def test_non_vinyl_formats_never_qualify(self):
        assert not is_lp_33(vinyl("LP", name="CD"))
        assert not is_lp_33({"formats": []})
        assert not is_lp_33({})

    def test_one_qualifying_vinyl_format_is_enough(self):
        basic = {"formats": [
            {"name": "Vinyl", "descriptions": ['7"', "45 RPM"]},
            {"name": "Vinyl", "descriptions": ["LP"]},
        ]}
        assert is_lp_33(basic, strict=True)

    @pytest.mark.parametrize("basic", [
        {"formats": None},
        {"formats": ["Vinyl"]},
        {"formats": [{"name": None, "descriptions": ["LP"]}]},
        {"formats": [{"name": "Vinyl", "descriptions": None}]},
        {"formats": [{"name": "Vinyl", "descriptions": [None, 33, "LP"]}]},
        {"formats": [{"name": 5, "descriptions": ["LP"]}]},
        {"formats": 7},
        {"formats": [{"name": "Vinyl", "descriptions": "LP"}]},
        ["not", "a", "dict"],
    ])
    def test_malformed_input_never_raises(self, basic):
        is_lp_33(basic)
        is_lp_33(basic, strict=True)
        is_vinyl_45(basic)
        is_cd_format(basic)
        describe_vinyl(basic)


class TestOtherMedia:
    def test_seven_inch_single(self):
        assert is_vinyl_45(vinyl('7"', "45 RPM", "Single"))

    def test_twelve_inch_45_is_not_a_single(self):
        assert not is_vinyl_45(vinyl('12"', "45 RPM", "Maxi-Single"))

    def test_cd_and_cdr(self):
        assert is_cd_format(vinyl("Album", name="CD"))
        assert is_cd_format(vinyl(name="CDr"))
        assert not is_cd_format(vinyl("LP"))

    def test_media_classifier(self):
        assert media_classifier("lp")(vinyl("LP"))
        assert not media_classifier("lp", strict=True)(vinyl('12"', "33 RPM"))
        assert media_classifier("45")(vinyl('7"', "45 RPM"))
        assert media_classifier("cd")(vinyl(name="CD"))
        with pytest.raises(ValueError):
            media_classifier("cassette")

    def test_describe_vinyl(self):
        assert describe_vinyl(vinyl("LP", "Album")) == "LP, Album"
        assert describe_vinyl(vinyl(name="CD")) is None
