"""Unit tests for riffwave.cli module."""

import json
from pathlib import Path

import numpy as np
import pytest

from riffwave.cli.commands import app
from riffwave.format import open_wav, open_wav_writer
from riffwave.types import BWAV_DESCRIPTION, BWAV_ORIGINATOR, BroadcastMetadata


def make_wav(path: Path, bits: int = 16, metadata: dict[str, str] | None = None) -> Path:
    ramp = (np.arange(1000, dtype=np.int32) - 500) << 20
    with open_wav_writer(path, 44100, 2, bits, metadata) as writer:
        writer.write([ramp, -ramp])
    return path


class TestCliInfo:
    """Test the info command."""

    def test_info_valid_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = make_wav(tmp_path / "a.wav", metadata={BWAV_DESCRIPTION: "Kick"})

        assert app(["info", str(path)]) == 0

        captured = capsys.readouterr()
        assert "44100 Hz" in captured.out
        assert "16-bit PCM" in captured.out
        assert "Kick" in captured.out

    def test_info_json(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = make_wav(tmp_path / "a.wav", bits=24)

        assert app(["info", str(path), "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["usable"] is True
        assert data["channels"] == 2
        assert data["bits_per_sample"] == 24
        assert data["frames"] == 1000

    def test_info_nonexistent_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert app(["info", str(tmp_path / "missing.wav")]) == 1
        assert "Error" in capsys.readouterr().out

    def test_info_invalid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "junk.wav"
        path.write_bytes(b"this is not audio")
        assert app(["info", str(path)]) == 1

    def test_info_unsupported_format(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = make_wav(tmp_path / "a.wav")
        data = bytearray(path.read_bytes())
        # Format code 2 (ADPCM) in the fmt chunk
        data[20:22] = (2).to_bytes(2, "little")
        path.write_bytes(bytes(data))

        assert app(["info", str(path)]) == 1
        assert "decodable" in capsys.readouterr().out


class TestCliChunks:
    """Test the chunks command."""

    def test_chunks_json(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = make_wav(tmp_path / "a.wav", metadata={BWAV_ORIGINATOR: "me"})

        assert app(["chunks", str(path), "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert [c["id"] for c in data] == ["fmt ", "bext", "data"]
        assert data[-1]["size"] == 4000

    def test_chunks_table(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = make_wav(tmp_path / "a.wav")
        assert app(["chunks", str(path)]) == 0
        assert "data" in capsys.readouterr().out

    def test_chunks_missing_file(self, tmp_path: Path) -> None:
        assert app(["chunks", str(tmp_path / "missing.wav")]) == 1


class TestCliSetBext:
    """Test the set-bext command."""

    def test_rewrites_file_without_bext(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = make_wav(tmp_path / "a.wav")

        assert app(["set-bext", str(path), "--description", "Snare", "--date", "2024-02-29"]) == 0
        assert "Rewrote" in capsys.readouterr().out

        with open_wav(path) as reader:
            meta = BroadcastMetadata.from_values(reader.metadata)
            assert reader.frame_count == 1000
        assert meta.description == "Snare"
        assert meta.origination_date == "2024-02-29"

    def test_updates_existing_bext_in_place(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        original = BroadcastMetadata(description="Old", originator="Desk 1").to_values()
        path = make_wav(tmp_path / "a.wav", metadata=original)
        size = path.stat().st_size

        assert app(["set-bext", str(path), "--description", "New"]) == 0
        assert "in place" in capsys.readouterr().out
        assert path.stat().st_size == size

        with open_wav(path) as reader:
            meta = BroadcastMetadata.from_values(reader.metadata)
        assert meta.description == "New"
        assert meta.originator == "Desk 1"

    def test_invalid_date(self, tmp_path: Path) -> None:
        path = make_wav(tmp_path / "a.wav")
        with pytest.raises(SystemExit) as e:
            app(["set-bext", str(path), "--date", "29/02/2024"])
        assert e.value.code == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        assert app(["set-bext", str(tmp_path / "missing.wav"), "--description", "x"]) == 1


class TestCliConvert:
    """Test the convert command."""

    @pytest.mark.parametrize("bits", [8, 24, 32])
    def test_convert_bit_depth(self, tmp_path: Path, bits: int) -> None:
        source = make_wav(tmp_path / "in.wav", metadata={BWAV_DESCRIPTION: "Pad"})
        output = tmp_path / "out" / "converted.wav"

        assert app(["convert", str(source), str(output), "--bits", str(bits)]) == 0

        with open_wav(source) as src, open_wav(output) as out:
            assert out.bits_per_sample == bits
            assert out.frame_count == src.frame_count
            assert out.metadata[BWAV_DESCRIPTION] == "Pad"
            src_left, _ = src.read_samples(0, src.frame_count)
            out_left, _ = out.read_samples(0, out.frame_count)

        drop = 32 - min(bits, 16)
        np.testing.assert_array_equal(out_left >> drop, src_left >> drop)

    def test_convert_invalid_bits(self, tmp_path: Path) -> None:
        source = make_wav(tmp_path / "in.wav")
        with pytest.raises(SystemExit) as e:
            app(["convert", str(source), str(tmp_path / "out.wav"), "--bits", "12"])
        assert e.value.code == 1

    def test_convert_float_requires_32_bits(self, tmp_path: Path) -> None:
        source = tmp_path / "float.wav"
        with open_wav_writer(source, 48000, 1, 32, floating_point=True) as writer:
            writer.write([np.zeros(10, dtype=np.float32)])

        assert app(["convert", str(source), str(tmp_path / "out.wav"), "--bits", "16"]) == 1
        assert app(["convert", str(source), str(tmp_path / "out.wav"), "--bits", "32"]) == 0

    def test_convert_missing_source(self, tmp_path: Path) -> None:
        assert app(["convert", str(tmp_path / "none.wav"), str(tmp_path / "out.wav")]) == 1
