from pathlib import Path

import pytest

pytest.importorskip("pyvips")

from compress_resize.data_url import parse_data_url
from compress_resize.image_engine.decoder import decode_source
from compress_resize.main import run


@pytest.fixture
def png_file(tmp_path: Path, encode_array, noise_rgb) -> Path:
    path = tmp_path / "photo.png"
    path.write_bytes(encode_array(noise_rgb, ".png"))
    return path


def test_cli_writes_resized_image(png_file: Path, capsys):
    out = png_file.with_name("out.png")
    assert run([str(png_file), "--max-width", "40", "-o", str(out)]) == 0
    image = decode_source(out.read_bytes())
    assert (image.width, image.height) == (40, 30)
    assert "40x30 image/png" in capsys.readouterr().out


def test_cli_default_output_name_and_data_url(png_file: Path):
    assert run([str(png_file), "--format", "image/jpeg", "--data-url", "--mode", "targetSize"]) == 0
    out = png_file.with_name("photo.compressed.txt")
    mime, data = parse_data_url(out.read_text(encoding="ascii"))
    assert mime == "image/jpeg"
    assert data.startswith(b"\xff\xd8")


def test_cli_reads_settings_file(png_file: Path, tmp_path: Path):
    settings = tmp_path / "settings.json"
    settings.write_text('{"maxHeight": 24}', encoding="utf-8")
    out = tmp_path / "out.png"
    assert run([str(png_file), "--settings", str(settings), "-o", str(out)]) == 0
    image = decode_source(out.read_bytes())
    assert image.height == 24


def test_cli_reports_decode_errors(tmp_path: Path):
    bogus = tmp_path / "bogus.jpg"
    bogus.write_bytes(b"nope")
    assert run([str(bogus)]) == 1


def test_cli_missing_file(tmp_path: Path):
    assert run([str(tmp_path / "missing.png")]) == 1


def test_cli_usage_error():
    assert run(["--quality", "high"]) == 2


def test_cli_runs_repeatedly_under_captured_output(png_file: Path, tmp_path: Path, capsys):
    first = tmp_path / "first.png"
    assert run([str(png_file), "--max-width", "20", "-o", str(first)]) == 0
    capsys.readouterr()
    assert run([str(tmp_path / "missing.png")]) == 1
    assert "missing.png" in capsys.readouterr().err
    second = tmp_path / "second.png"
    assert run([str(png_file), "--max-width", "10", "-o", str(second)]) == 0
    assert decode_source(second.read_bytes()).width == 10


def test_cli_missing_settings_file_is_an_error(png_file: Path, tmp_path: Path):
    out = tmp_path / "out.png"
    assert run([str(png_file), "--settings", str(tmp_path / "typo.json"), "-o", str(out)]) == 1
    assert not out.exists()


def test_cli_corrupt_settings_file_is_an_error(png_file: Path, tmp_path: Path):
    settings = tmp_path / "settings.json"
    settings.write_text("{not json", encoding="utf-8")
    out = tmp_path / "out.png"
    assert run([str(png_file), "--settings", str(settings), "-o", str(out)]) == 1
    assert not out.exists()
