"""
Tests for the JSON stores backing the ZiVPN config and user registry.
"""
import os
import json
import logging
import tempfile

import pytest

from zivpn_api.errors import ConfigUnreadable, RegistryUnreadable, WriteFailed
from zivpn_api.store import AuthConfigFile, UserRecord, UserRegistryFile

logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger('store_test')

SERVER_CONFIG = {
    "listen": ":5667",
    "cert": "/etc/zivpn/zivpn.crt",
    "key": "/etc/zivpn/zivpn.key",
    "obfs": "zivpn",
    "auth": {"mode": "passwords", "config": ["zi", "alpha"]},
}


def _write_json(path, data):
    with open(path, 'w') as f:
        json.dump(data, f)


def test_auth_config_passthrough():
    """Fields other than auth.config survive a load/save cycle"""
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "config.json")
        _write_json(path, dict(SERVER_CONFIG, extra_field={"nested": [1, 2]}))

        store = AuthConfigFile(path)
        config = store.load()
        assert config.passwords == ["zi", "alpha"]

        config.add_password("beta")
        store.save(config)

        with open(path) as f:
            saved = json.load(f)
        assert saved["listen"] == ":5667"
        assert saved["cert"] == "/etc/zivpn/zivpn.crt"
        assert saved["key"] == "/etc/zivpn/zivpn.key"
        assert saved["obfs"] == "zivpn"
        assert saved["auth"]["mode"] == "passwords"
        assert saved["auth"]["config"] == ["zi", "alpha", "beta"]
        assert saved["extra_field"] == {"nested": [1, 2]}


def test_auth_config_remove_all_matches():
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "config.json")
        _write_json(path, dict(SERVER_CONFIG, auth={"mode": "passwords",
                                                    "config": ["a", "b", "a", "c"]}))
        config = AuthConfigFile(path).load()

        assert config.remove_password("a") == 2
        assert config.passwords == ["b", "c"]
        assert config.remove_password("missing") == 0


def test_auth_config_without_password_list():
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "config.json")
        _write_json(path, {"listen": ":5667", "auth": {"mode": "passwords", "config": None}})
        config = AuthConfigFile(path).load()

        assert config.passwords == []
        config.add_password("first")
        assert config.to_dict()["auth"] == {"mode": "passwords", "config": ["first"]}


@pytest.mark.parametrize("content", [None, "{not json", "[1, 2, 3]"])
def test_auth_config_unreadable(content):
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "config.json")
        if content is not None:
            with open(path, 'w') as f:
                f.write(content)

        with pytest.raises(ConfigUnreadable):
            AuthConfigFile(path).load()


@pytest.mark.parametrize("content", [None, "", "  \n", "null", "[]"])
def test_registry_absent_or_empty(content):
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "users.json")
        if content is not None:
            with open(path, 'w') as f:
                f.write(content)

        assert UserRegistryFile(path).load() == []


@pytest.mark.parametrize("content", ["[{\"password\": ", "{\"password\": \"x\"}", "[\"x\"]"])
def test_registry_corrupt(content):
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "users.json")
        with open(path, 'w') as f:
            f.write(content)

        with pytest.raises(RegistryUnreadable):
            UserRegistryFile(path).load()

        # The corrupt file is left as it was
        with open(path) as f:
            assert f.read() == content


def test_registry_round_trip():
    records = [
        UserRecord(password=f"user{i}", expired=f"2024-03-{i + 1:02d}", status="active", ip_limit=i)
        for i in range(5)
    ]
    records[2].status = "suspended"

    with tempfile.TemporaryDirectory() as tmp:
        store = UserRegistryFile(os.path.join(tmp, "users.json"))
        store.save(records)
        loaded = store.load()

    logger.info(f"Loaded {len(loaded)} records")
    assert len(loaded) == len(records)
    for original, copy in zip(records, loaded):
        assert (copy.password, copy.expired, copy.status, copy.ip_limit) == \
            (original.password, original.expired, original.status, original.ip_limit)


def test_registry_reads_records_without_ip_limit():
    """Records written before ip_limit was stored default to 0 and keep unknown keys"""
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "users.json")
        _write_json(path, [{"password": "old", "expired": "2024-01-31", "status": "active",
                            "note": "imported"}])
        store = UserRegistryFile(path)
        users = store.load()

        assert users[0].ip_limit == 0
        store.save(users)
        with open(path) as f:
            saved = json.load(f)
        assert saved == [{"password": "old", "expired": "2024-01-31", "status": "active",
                          "ip_limit": 0, "note": "imported"}]


def test_save_keeps_backup():
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "users.json")
        store = UserRegistryFile(path)
        store.save([UserRecord("first", "2024-01-01")])
        store.save([UserRecord("second", "2024-01-02")])

        with open(f"{path}.bak") as f:
            backup = json.load(f)
        assert [u["password"] for u in backup] == ["first"]


def test_save_failure_raises_write_failed():
    with tempfile.TemporaryDirectory() as tmp:
        store = UserRegistryFile(os.path.join(tmp, "missing-dir", "users.json"))

        with pytest.raises(WriteFailed):
            store.save([UserRecord("x", "2024-01-01")])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
