"""Tests for byte-order-mark encoding detection."""

from unittest.mock import patch

import pytest

from unicode_csv.character.encoding import (
    PROBE_SIZE,
    UTF_8_BOM,
    UTF_16BE_BOM,
    UTF_16LE_BOM,
    BOMDetector,
    DetectionResult,
    Encoding,
    EncodingDetector,
    detect_encoding,
)


def _write(tmp_path, data: bytes, name: str = "sample.csv"):
    path = tmp_path / name
    path.write_bytes(data)
    return path


class TestEncoding:
    """Test the Encoding enum."""

    def test_bom_constants(self):
        """Test the hex byte order marks."""
        assert UTF_16BE_BOM == "FEFF"
        assert UTF_16LE_BOM == "FFFE"
        assert UTF_8_BOM == "EFBBBF"

    def test_bom_per_encoding(self):
        """Test each encoding reports its mark."""
        assert Encoding.UTF16_BE.bom == "FEFF"
        assert Encoding.UTF16_LE.bom == "FFFE"
        assert Encoding.UTF8.bom == "EFBBBF"
        assert Encoding.SYSTEM_DEFAULT.bom is None

    def test_is_unicode(self):
        """Test only marked encodings count as unicode."""
        assert Encoding.UTF16_BE.is_unicode
        assert Encoding.UTF16_LE.is_unicode
        assert Encoding.UTF8.is_unicode
        assert not Encoding.SYSTEM_DEFAULT.is_unicode

    def test_codec_names_do_not_consume_bom(self):
        """Test unicode encodings map to explicit-endian codecs."""
        assert Encoding.UTF16_LE.codec_name("cp1252") == "utf-16-le"
        assert Encoding.UTF16_BE.codec_name("cp1252") == "utf-16-be"
        assert Encoding.UTF8.codec_name("cp1252") == "utf-8"

    def test_system_default_uses_configured_codec(self):
        """Test the system default resolves to the given codec."""
        assert Encoding.SYSTEM_DEFAULT.codec_name("cp1252") == "cp1252"


class TestBOMDetector:
    """Test progressive hex matching."""

    def test_utf8_bom(self):
        """Test UTF-8 BOM detection."""
        assert BOMDetector().match(b"\xef\xbb\xbf") == Encoding.UTF8

    def test_utf16_le_bom(self):
        """Test UTF-16 LE BOM detection."""
        assert BOMDetector().match(b"\xff\xfeA") == Encoding.UTF16_LE

    def test_utf16_be_bom(self):
        """Test UTF-16 BE BOM detection."""
        assert BOMDetector().match(b"\xfe\xff\x00") == Encoding.UTF16_BE

    def test_two_byte_bom_matches_before_third_byte(self):
        """Test the third byte is irrelevant once a UTF-16 mark matched."""
        detector = BOMDetector()
        for third in (0x00, 0x41, 0xBF, 0xFF):
            assert detector.match(bytes([0xFF, 0xFE, third])) == Encoding.UTF16_LE

    def test_short_probe_is_never_a_match(self):
        """Test probes shorter than three bytes are unmarked."""
        detector = BOMDetector()
        assert detector.match(b"") == Encoding.SYSTEM_DEFAULT
        assert detector.match(b"\xff") == Encoding.SYSTEM_DEFAULT
        assert detector.match(b"\xff\xfe") == Encoding.SYSTEM_DEFAULT
        assert detector.match(b"\xef\xbb") == Encoding.SYSTEM_DEFAULT

    @pytest.mark.parametrize("probe", [
        b"abc",
        b"\xef\xbb\x00",
        b"\xfe\xfe\xff",
        b"\x00\xff\xfe",
        b"\xbb\xbf\xef",
    ])
    def test_non_bom_probes(self, probe):
        """Test near misses stay unmarked."""
        assert BOMDetector().match(probe) == Encoding.SYSTEM_DEFAULT


class TestEncodingDetector:
    """Test file-level detection."""

    def test_probe_size(self):
        """Test detection looks at three bytes."""
        assert PROBE_SIZE == 3

    @pytest.mark.parametrize("data", [b"", b"\xff", b"\xff\xfe", b"\xfe\xff", b"\xef\xbb"])
    def test_short_files_are_system_default(self, tmp_path, data):
        """Test 0, 1 and 2 byte files are unmarked."""
        path = _write(tmp_path, data)

        assert detect_encoding(path) == Encoding.SYSTEM_DEFAULT

    def test_utf8_file(self, tmp_path):
        """Test a UTF-8 BOM file regardless of content."""
        path = _write(tmp_path, b"\xef\xbb\xbf" + "name\tprice\ncafé\t2\n".encode("utf-8"))

        assert detect_encoding(path) == Encoding.UTF8

    def test_utf16_le_file(self, tmp_path):
        """Test a UTF-16 LE file written with its BOM."""
        path = _write(tmp_path, "\ufeffA\tB".encode("utf-16-le"))

        assert detect_encoding(path) == Encoding.UTF16_LE

    def test_utf16_be_file(self, tmp_path):
        """Test a UTF-16 BE file written with its BOM."""
        path = _write(tmp_path, "\ufeffA\tB".encode("utf-16-be"))

        assert detect_encoding(path) == Encoding.UTF16_BE

    def test_plain_file(self, tmp_path):
        """Test an unmarked file."""
        path = _write(tmp_path, b"a,b,c\n1,2,3\n")

        assert detect_encoding(path) == Encoding.SYSTEM_DEFAULT

    def test_reads_only_the_probe(self, tmp_path):
        """Test the detector never asks for more than three bytes."""
        path = _write(tmp_path, b"\xef\xbb\xbf" + b"x" * 1000)
        reads = []
        real_open = open

        class RecordingStream:
            def __init__(self, stream):
                self.stream = stream

            def __enter__(self):
                return self

            def __exit__(self, *exc_info):
                self.stream.close()

            def read(self, size=-1):
                reads.append(size)
                return self.stream.read(size)

        def tracking_open(*args, **kwargs):
            return RecordingStream(real_open(*args, **kwargs))

        with patch("builtins.open", tracking_open):
            assert EncodingDetector().detect(path) == Encoding.UTF8

        assert reads == [PROBE_SIZE]

    def test_missing_file_never_raises(self, tmp_path):
        """Test a missing file is reported as unmarked."""
        assert detect_encoding(tmp_path / "missing.csv") == Encoding.SYSTEM_DEFAULT

    def test_directory_never_raises(self, tmp_path):
        """Test a directory is reported as unmarked."""
        assert detect_encoding(tmp_path) == Encoding.SYSTEM_DEFAULT

    def test_read_error_never_raises(self, tmp_path):
        """Test an I/O error while opening is swallowed."""
        path = _write(tmp_path, b"\xff\xfeA\x00")

        with patch("builtins.open", side_effect=PermissionError("locked")):
            result = EncodingDetector().detect_with_details(path)

        assert result.encoding == Encoding.SYSTEM_DEFAULT
        assert result.error == "locked"

    def test_detect_with_details_reports_probe(self, tmp_path):
        """Test the probed hex is reported."""
        path = _write(tmp_path, b"\xfe\xff\x00A")

        result = EncodingDetector().detect_with_details(path)

        assert result == DetectionResult(Encoding.UTF16_BE, "FEFF00", None)

    def test_detect_prefix(self):
        """Test classification of an in-memory prefix."""
        detector = EncodingDetector()

        assert detector.detect_prefix(b"\xef\xbb\xbfrest of file") == Encoding.UTF8
        assert detector.detect_prefix(b"plain") == Encoding.SYSTEM_DEFAULT
