import json

import pytest
from cryptography.hazmat.primitives import serialization
from py_vapid import Vapid

from src.notificator.core.errors import KeyFileCorrupt, KeyFileError, KeyFileMissing
from src.notificator.services.vapid_keys import (
    VapidKeyPair,
    b64url_decode,
    b64url_encode,
    generate_vapid_keys,
    load_key_file,
    load_or_create_keys,
    private_key_from,
    save_key_file,
)


class TestGenerate:
    def test_key_sizes(self):
        keys = generate_vapid_keys()

        public_raw = b64url_decode(keys.public_key)
        private_raw = b64url_decode(keys.private_key)
        assert len(public_raw) == 65
        assert public_raw[0] == 0x04
        assert len(private_raw) == 32

    def test_keys_are_unpadded_base64url(self):
        keys = generate_vapid_keys()

        for value in (keys.public_key, keys.private_key):
            assert "=" not in value
            assert "+" not in value
            assert "/" not in value

    def test_each_call_makes_a_new_pair(self):
        assert generate_vapid_keys() != generate_vapid_keys()


class TestLoadOrCreate:
    def test_creates_file_when_absent(self, tmp_path):
        path = tmp_path / "keys" / "vapid_keys.json"

        keys = load_or_create_keys(str(path))

        assert json.loads(path.read_text()) == {
            "publicKey": keys.public_key,
            "privateKey": keys.private_key,
        }

    def test_reuses_existing_file(self, tmp_path):
        path = str(tmp_path / "vapid_keys.json")

        first = load_or_create_keys(path)
        second = load_or_create_keys(path)

        assert first == second

    def test_missing_file_on_plain_load(self, tmp_path):
        with pytest.raises(KeyFileMissing):
            load_key_file(str(tmp_path / "nope.json"))

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            "[]",
            '{"publicKey": "abc"}',
            '{"publicKey": 1, "privateKey": 2}',
            '{"publicKey": "AAAA", "privateKey": "AAAA"}',
        ],
    )
    def test_corrupt_file_is_fatal(self, tmp_path, content):
        path = tmp_path / "vapid_keys.json"
        path.write_text(content)

        with pytest.raises(KeyFileCorrupt):
            load_or_create_keys(str(path))

        assert path.read_text() == content

    def test_mismatched_pair_is_corrupt(self, tmp_path):
        path = tmp_path / "vapid_keys.json"
        first, second = generate_vapid_keys(), generate_vapid_keys()
        save_key_file(
            str(path), VapidKeyPair(public_key=first.public_key, private_key=second.private_key)
        )

        with pytest.raises(KeyFileCorrupt):
            load_key_file(str(path))

    def test_write_failure_is_fatal(self, tmp_path, monkeypatch):
        def failing_fsync(fd):
            raise OSError("disk full")

        monkeypatch.setattr("src.notificator.services.vapid_keys.os.fsync", failing_fsync)

        with pytest.raises(KeyFileError) as excinfo:
            load_or_create_keys(str(tmp_path / "vapid_keys.json"))

        assert not isinstance(excinfo.value, KeyFileCorrupt)


def test_private_key_round_trip():
    keys = generate_vapid_keys()

    private_key = private_key_from(keys)

    value = private_key.private_numbers().private_value.to_bytes(32, "big")
    assert value == b64url_decode(keys.private_key)


def test_stored_private_key_loads_into_vapid():
    keys = generate_vapid_keys()

    vapid = Vapid.from_raw(keys.private_key.encode("ascii"))

    public_raw = vapid.public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    assert b64url_encode(public_raw) == keys.public_key
