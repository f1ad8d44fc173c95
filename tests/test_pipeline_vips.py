import pytest

pytest.importorskip("pyvips")

from compress_resize.errors import DecodeError, SourceTooLargeError
from compress_resize.data_url import to_data_url
from compress_resize.image_engine.decoder import decode_source
from compress_resize.image_engine.metrics import metrics
from compress_resize.image_engine.pipeline import run, run_base64
from compress_resize.image_engine.search import MAX_ITERATIONS
from compress_resize.settings_manager import CompressionSettings


@pytest.fixture
def jpeg_source(encode_array, noise_rgb) -> bytes:
    return encode_array(noise_rgb, ".jpg", Q=95)


def test_quality_mode_resizes_and_keeps_mime(jpeg_source):
    result = run(jpeg_source, "image/jpeg", CompressionSettings(max_width=160))
    assert result.mime_type == "image/jpeg"
    assert (result.width, result.height) == (160, 120)
    assert result.quality == 0.8
    assert result.attempts == 1
    decoded = decode_source(result.data)
    assert (decoded.width, decoded.height) == (160, 120)


def test_unconstrained_keeps_original_size(jpeg_source):
    result = run(jpeg_source, "image/jpeg")
    assert (result.width, result.height) == (320, 240)


def test_generous_target_needs_one_encode(jpeg_source):
    config = CompressionSettings(mode="targetSize", target_size_kb=10_000)
    result = run(jpeg_source, "image/jpeg", config)
    assert result.attempts == 1
    assert result.quality == 0.9
    assert result.size_kb <= 10_000


def test_tight_target_is_best_effort(jpeg_source):
    config = CompressionSettings(mode="targetSize", target_size_kb=0.5)
    result = run(jpeg_source, "image/jpeg", config)
    # Unreachable target: no error, bounded work, some output
    assert result.data
    assert 1 <= result.attempts <= MAX_ITERATIONS
    assert metrics.count("search.target_missed") == 1


def test_target_size_shrinks_output(jpeg_source):
    baseline = run(jpeg_source, "image/jpeg", CompressionSettings(quality=90))
    target = baseline.size_kb / 2
    result = run(jpeg_source, "image/jpeg", CompressionSettings(mode="targetSize", target_size_kb=target))
    assert result.size_kb < baseline.size_kb
    assert result.quality < 0.9


def test_output_format_override(jpeg_source):
    result = run(jpeg_source, "image/jpeg", CompressionSettings(output_mime_type="image/png", max_height=60))
    assert result.mime_type == "image/png"
    assert result.data.startswith(b"\x89PNG")
    assert (result.width, result.height) == (80, 60)


def test_missing_mime_defaults_to_jpeg(encode_array, noise_rgb):
    png = encode_array(noise_rgb, ".png")
    result = run(png, None, CompressionSettings(max_width=64))
    assert result.mime_type == "image/jpeg"


def test_run_base64_reads_mime_from_data_url(encode_array, noise_rgb):
    png = encode_array(noise_rgb, ".png")
    result = run_base64(to_data_url(png, "image/png"), config=CompressionSettings(max_width=32))
    assert result.mime_type == "image/png"
    assert result.data_url.startswith("data:image/png;base64,")


def test_source_size_limit(jpeg_source):
    with pytest.raises(SourceTooLargeError) as excinfo:
        run(jpeg_source, "image/jpeg", CompressionSettings(max_source_bytes=100))
    assert isinstance(excinfo.value, DecodeError)
    assert excinfo.value.limit == 100


def test_garbage_source_raises_decode_error():
    with pytest.raises(DecodeError):
        run(b"garbage", "image/jpeg")
