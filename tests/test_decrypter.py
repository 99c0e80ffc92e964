"""Tests for the fake header protocol, XOR transform and header restoration."""

import json

import pytest

from rpgm import (
    Decrypter, EmptyFileError, FileExtension, Format, InvalidHeaderError,
    Key, UnsupportedFileTypeError
)

from .samples import TEST_KEY, make_png, make_ogg, make_m4a

FAKE_HEADER = bytes.fromhex("5250474d56000000" "000301" "0000000000")


class TestFakeHeader:
    def test_default_bytes(self):
        assert Decrypter().build_fake_header() == FAKE_HEADER

    @pytest.mark.parametrize("options", [
        {},
        {'header_len': 8},
        {'signature': "0102030405060708", 'version': "aabbcc"},
        {'remain': "zz00000000"},
    ])
    def test_built_header_verifies(self, options):
        decrypter = Decrypter(**options)
        assert decrypter.verify_fake_header(decrypter.build_fake_header())

    def test_unparsable_pairs_decode_to_zero(self):
        decrypter = Decrypter(remain="zz00000000")
        assert decrypter.build_fake_header()[11] == 0

    def test_truncated_to_header_len(self):
        assert Decrypter(header_len=8).build_fake_header() == FAKE_HEADER[:8]

    def test_verify_rejects_short_or_wrong(self):
        decrypter = Decrypter()
        assert not decrypter.verify_fake_header(FAKE_HEADER[:15])
        assert not decrypter.verify_fake_header(b'\x00' + FAKE_HEADER[1:])
        assert decrypter.verify_fake_header(FAKE_HEADER + b'trailing data')

    def test_fields_too_short_for_header_len(self):
        with pytest.raises(ValueError):
            Decrypter(header_len=20)
        with pytest.raises(ValueError):
            Decrypter(header_len=0)


class TestSettings:
    def test_defaults(self):
        decrypter = Decrypter()
        assert decrypter.key is None
        assert decrypter.get_header_len() == 16
        assert not decrypter.ignore_fake_header

    def test_read_only_except_flag(self, decrypter):
        with pytest.raises(AttributeError):
            decrypter.header_len = 8
        decrypter.ignore_fake_header = True
        assert decrypter.ignore_fake_header

    def test_with_key_copies(self, decrypter):
        other = decrypter.with_key(Key.new("ff"))
        assert other.key == Key.new("ff")
        assert decrypter.key == Key.new(TEST_KEY)
        assert other.build_fake_header() == decrypter.build_fake_header()


class TestEncryptDecrypt:
    def test_hello_world(self):
        decrypter = Decrypter(Key.new("deadbeef"))
        encrypted = decrypter.encrypt(b"Hello, World!")
        assert encrypted[:16] == FAKE_HEADER
        assert decrypter.decrypt(encrypted) == b"Hello, World!"

    @pytest.mark.parametrize("data", [
        b"x",
        b"0123456789abcdef",
        bytes(range(256)) * 4,
    ])
    def test_round_trip(self, decrypter, data):
        assert decrypter.decrypt(decrypter.encrypt(data)) == data

    def test_only_prefix_is_xored(self, decrypter):
        data = bytes(64)
        encrypted = decrypter.encrypt(data)
        assert encrypted[16:32] == Key.new(TEST_KEY).as_bytes()
        assert encrypted[32:] == bytes(48)

    def test_short_key_xors_key_length(self):
        encrypted = Decrypter(Key.new("ff")).encrypt(bytes(4))
        assert encrypted[16:] == b'\xff\x00\x00\x00'

    def test_long_key_stops_at_header_len(self):
        encrypted = Decrypter(Key.new("ff" * 32)).encrypt(bytes(20))
        assert encrypted[16:] == b'\xff' * 16 + bytes(4)

    def test_no_key_only_strips_header(self):
        assert Decrypter().decrypt(FAKE_HEADER + b"payload") == b"payload"
        assert Decrypter().encrypt(b"payload") == FAKE_HEADER + b"payload"

    def test_empty(self, decrypter):
        with pytest.raises(EmptyFileError):
            decrypter.decrypt(b"")
        with pytest.raises(EmptyFileError):
            decrypter.encrypt(b"")

    def test_shorter_than_header(self, decrypter):
        with pytest.raises(InvalidHeaderError):
            decrypter.decrypt(FAKE_HEADER[:10])

    def test_wrong_header(self, decrypter, png_bytes):
        with pytest.raises(InvalidHeaderError):
            decrypter.decrypt(png_bytes)

    def test_ignore_fake_header(self, decrypter, png_bytes):
        decrypter.ignore_fake_header = True
        result = decrypter.decrypt(b'garbage-header!!' + png_bytes)
        assert len(result) == len(png_bytes)
        assert decrypter.decrypt(b'short') == b''


class TestRestoreHeader:
    def test_valid_png_unchanged(self, decrypter, png_bytes):
        assert decrypter.restore_header(png_bytes, FileExtension.PNG) == png_bytes

    def test_valid_ogg_and_m4a_unchanged(self, decrypter):
        assert decrypter.restore_header(make_ogg(), FileExtension.OGG_) == make_ogg()
        assert decrypter.restore_header(make_m4a(), Format.M4A) == make_m4a()

    def test_replaces_fake_header_png(self, png_bytes):
        # Fake header in front of a payload that lost its true header
        damaged = FAKE_HEADER + png_bytes[16:]
        restored = Decrypter().restore_header(damaged, FileExtension.RPGMVP)
        assert restored == png_bytes

    def test_prepends_when_no_fake_header(self, png_bytes):
        restored = Decrypter().restore_header(png_bytes[16:], FileExtension.PNG)
        assert restored == png_bytes

    def test_ogg_header_is_28_bytes(self):
        restored = Decrypter().restore_header(b'\x01\x02', FileExtension.OGG)
        assert restored == b'OggS' + bytes(24) + b'\x01\x02'

    def test_m4a_header(self):
        restored = Decrypter().restore_header(b'\xaa', FileExtension.RPGMVM)
        assert restored == bytes.fromhex("00000020667479704d34412000000000") + b'\xaa'

    def test_header_length_overrides(self):
        decrypter = Decrypter(png_header_len=8, ogg_header_len=4)
        assert decrypter.restore_header(b'\x00', Format.PNG) == b'\x89PNG\r\n\x1a\n\x00'
        assert decrypter.restore_header(b'\x00', Format.OGG) == b'OggS\x00'

    def test_empty(self, decrypter):
        with pytest.raises(EmptyFileError):
            decrypter.restore_header(b"", FileExtension.PNG)

    def test_unsupported_type(self, decrypter):
        with pytest.raises(UnsupportedFileTypeError):
            decrypter.restore_header(b"data", "jpg")

    def test_full_pipeline(self, decrypter, encrypted_png, png_bytes):
        decrypted = decrypter.decrypt(encrypted_png)
        assert decrypter.restore_header(decrypted, FileExtension.PNG_) == png_bytes

    def test_encrypted_file_needs_decrypt_first(self, encrypted_png, png_bytes):
        # Restoring alone keeps the payload's XORed prefix behind the new header
        restored = Decrypter().restore_header(encrypted_png, FileExtension.PNG_)
        assert restored[:16] == png_bytes[:16]
        assert restored[16:] == encrypted_png[16:]
        assert restored != png_bytes

    def test_keyless_encrypt_decrypt_restore(self, png_bytes):
        decrypter = Decrypter()
        decrypted = decrypter.decrypt(decrypter.encrypt(png_bytes))
        assert decrypter.restore_header(decrypted, FileExtension.RPGMVP) == png_bytes

    def test_wrong_key_header_rebuilt(self, encrypted_png, png_bytes):
        decrypter = Decrypter(Key.new("ff" * 16))
        decrypted = decrypter.decrypt(encrypted_png)
        assert decrypted[16:] == png_bytes[16:]
        assert decrypter.restore_header(decrypted[16:], FileExtension.PNG_) == png_bytes


class TestDetectKey:
    def test_from_encrypted_png(self, encrypted_png):
        assert Decrypter.detect_key_from_file(encrypted_png) == Key.new(TEST_KEY)

    def test_from_system_json(self):
        data = json.dumps({
            "gameTitle": "A game with a long enough title",
            "encryptionKey": TEST_KEY,
        }).encode('utf-8')
        assert Decrypter.detect_key_from_file(data) == Key.new(TEST_KEY)

    def test_from_rpg_core(self):
        data = f'function Decrypter() {{}}\nthis._encryptionKey = "{TEST_KEY}";\n'.encode()
        assert Decrypter.detect_key_from_file(data) == Key.new(TEST_KEY)

    def test_binary_without_fake_header(self):
        assert Decrypter.detect_key_from_file(b'\xff\xfe' * 40) is None

    @pytest.mark.parametrize("data", [
        FAKE_HEADER,
        FAKE_HEADER + b'\x01\x02\x03',
        FAKE_HEADER[:10],
        b'',
    ])
    def test_short_input_returns_none(self, data):
        assert Decrypter.detect_key_from_file(data) is None

    def test_uses_default_header_len_only(self, png_bytes):
        # Assets written with a shorter fake header are not recognised
        encrypted = Decrypter(Key.new(TEST_KEY), header_len=8).encrypt(png_bytes)
        assert Decrypter.detect_key_from_file(encrypted) is None

    def test_from_file(self, encrypted_png, png_bytes):
        decrypter = Decrypter.from_file(encrypted_png)
        assert decrypter.decrypt(encrypted_png) == png_bytes
        assert Decrypter.from_file(b'\xff') is None


def test_formatting_helpers():
    assert Decrypter.byte_to_hex(10) == "0a"
    assert Decrypter.check_hex_chars("00aAfF")
    assert not Decrypter.check_hex_chars("0g")
    assert Decrypter.helper_show_bits(5) == "00000101"
