import pytest

from compress_resize.image_engine.planner import fits, plan


@pytest.mark.parametrize("size", [(1, 1), (640, 480), (480, 640), (4032, 3024), (7, 5000)])
def test_unconstrained_returns_original(size):
    assert plan(*size, 0, 0) == size
    assert plan(*size, None, None) == size
    assert plan(*size) == size


def test_width_limit_preserves_aspect_ratio():
    assert plan(1000, 500, 200, 0) == (200, 100)


def test_height_limit_preserves_aspect_ratio():
    assert plan(500, 1000, 0, 200) == (100, 200)


def test_never_upscales():
    assert plan(300, 200, 1000, 1000) == (300, 200)
    assert plan(300, 200, 1000, 0) == (300, 200)
    assert plan(300, 200, 0, 1000) == (300, 200)


def test_height_correction_runs_after_width_correction():
    # Portrait source: width fix leaves height 1600 > 500, so height is fixed next
    # and width shrinks again.
    assert plan(1000, 2000, 800, 500) == (250, 500)


def test_height_correction_applies_when_width_already_fits():
    assert plan(600, 900, 800, 300) == (200, 300)


def test_results_are_rounded_to_whole_pixels():
    w, h = plan(1000, 333, 100, 0)
    assert (w, h) == (100, 33)
    assert isinstance(w, int) and isinstance(h, int)


def test_half_pixels_round_up():
    # Python round() would give 2 for both 2.5 cases
    assert plan(8, 4, 5, 0) == (5, 3)
    assert plan(4, 8, 0, 5) == (3, 5)


def test_both_limits_respected_for_typical_ratios():
    for size in [(4000, 3000), (3000, 4000), (1920, 1080), (1080, 1920)]:
        w, h = plan(*size, 800, 800)
        assert fits(w, h, 800, 800)


def test_extreme_ratio_rounding_can_leave_zero_height():
    # Documented behaviour of the sequential algorithm: the planner does not
    # clamp, a 1px-tall panorama scaled to 100px wide rounds to 0px tall.
    assert plan(5000, 1, 100, 0) == (100, 0)


def test_fits():
    assert fits(100, 100, 0, 0)
    assert fits(100, 100, 100, 100)
    assert not fits(101, 100, 100, 0)
    assert not fits(100, 101, 0, 100)
