import pytest

from upload_converter.policy import choose_quality, clamp_quality, decide, output_strategy
from upload_shared.config import OptimizerConfig
from upload_shared.types import Classification


def _c(mime, has_alpha=None, webp_ext=False, eligible=True):
    return Classification(
        eligible=eligible,
        resolved_type=mime,
        is_webp_ext=webp_ext,
        has_alpha=has_alpha,
    )


CONFIG = OptimizerConfig()


@pytest.mark.parametrize("classification,expected", [
    (_c("image/jpeg"), 85),
    (_c("image/heic"), 85),
    (_c("image/heif"), 85),
    (_c("image/webp", webp_ext=True), 85),
    (_c("image/png", has_alpha=False), 85),
    (_c("image/png", has_alpha=True), 90),
    (_c("image/png", has_alpha=None), 90),
    (_c("image/gif"), 90),
])
def test_choose_quality(classification, expected):
    assert choose_quality(classification, CONFIG) == expected


def test_alpha_quality_never_below_photo_quality():
    jpeg = decide(_c("image/jpeg"), config=CONFIG)
    for alpha_source in (_c("image/png", has_alpha=True), _c("image/gif")):
        assert decide(alpha_source, config=CONFIG).quality >= jpeg.quality


@pytest.mark.parametrize("value,expected", [(-5, 0), (0, 0), (85, 85), (100, 100), (150, 100)])
def test_clamp_quality(value, expected):
    assert clamp_quality(value) == expected


class TestDecide:

    def test_ineligible_is_skipped(self):
        decision = decide(_c("application/pdf", eligible=False))
        assert not decision.convert

    def test_new_name_for_other_types(self):
        decision = decide(_c("image/jpeg"), rotation=-90)
        assert decision.convert
        assert decision.rotation == -90
        assert decision.output_strategy == "new_unique_name"
        assert not decision.in_place

    def test_in_place_for_webp_extension(self):
        assert decide(_c("image/png", has_alpha=True, webp_ext=True)).in_place
        assert output_strategy(_c("image/webp", webp_ext=True)) == "in_place"

    def test_override_is_clamped(self):
        decision = decide(_c("image/jpeg"), quality_override=lambda q, c: q + 200)
        assert decision.quality == 100

    def test_override_sees_classification(self):
        seen = []

        def override(quality, classification):
            seen.append((quality, classification.resolved_type))
            return 60

        assert decide(_c("image/gif"), quality_override=override).quality == 60
        assert seen == [(90, "image/gif")]

    def test_invalid_override_keeps_policy_quality(self):
        decision = decide(_c("image/jpeg"), quality_override=lambda q, c: "best")
        assert decision.quality == 85

    def test_config_qualities_are_clamped(self):
        config = OptimizerConfig(photo_quality=120)
        assert decide(_c("image/jpeg"), config=config).quality == 100
