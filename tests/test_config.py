"""Tests for cosigner_config: YAML loading into CosignerConfig."""

import pytest

from cosigner_config import DEFAULT_CONFIG_PATH, get_active_config
from cosigner_config.loader import compute_checksum, parse_config
from cosigner_kernel.domain.addresses import NULL_ADDRESS
from tests.fakes import COSIGNER, DELEGATE, OWNER, TOKEN

BASE = {
    "cosigner_address": COSIGNER.lower(),
    "owner_address": OWNER.lower(),
    "settlement_token": TOKEN.lower(),
}


class TestGetActiveConfig:
    """Single entrypoint for runtime configuration."""

    def test_packaged_defaults_load(self):
        config = get_active_config()

        assert DEFAULT_CONFIG_PATH.exists()
        assert config.database_url.startswith("sqlite")
        assert config.delegates == ()
        assert len(config.checksum) == 64

    def test_custom_file(self, tmp_path):
        path = tmp_path / "cosigner.yaml"
        path.write_text(
            f"cosigner_address: '{COSIGNER}'\n"
            f"owner_address: '{OWNER}'\n"
            f"settlement_token: '{TOKEN}'\n"
            "database_url: 'sqlite://'\n"
            "url: 'https://cosigner.example'\n"
            "log_level: debug\n"
            f"delegates:\n  - '{DELEGATE.lower()}'\n"
        )

        config = get_active_config(path)

        assert config.cosigner_address == COSIGNER
        assert config.url == "https://cosigner.example"
        assert config.log_level == "DEBUG"
        assert config.delegates == (DELEGATE,)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_trace_logged(self, captured_logs):
        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "COSIGNER_CONFIG_TRACE"]
        assert traces[0]["checksum"] == config.checksum


class TestParseConfig:
    """Validation of parsed mappings."""

    def test_addresses_checksummed(self):
        config = parse_config(dict(BASE))

        assert config.owner_address == OWNER
        assert config.settlement_token == TOKEN
        assert config.log_level == "INFO"

    @pytest.mark.parametrize("key", ["cosigner_address", "owner_address", "settlement_token"])
    def test_required_keys(self, key):
        data = dict(BASE)
        del data[key]

        with pytest.raises(KeyError):
            parse_config(data)

    def test_invalid_address(self):
        with pytest.raises(ValueError):
            parse_config({**BASE, "owner_address": "0x1234"})

    def test_null_owner_rejected(self):
        with pytest.raises(ValueError):
            parse_config({**BASE, "owner_address": NULL_ADDRESS})

    def test_unknown_log_level(self):
        with pytest.raises(ValueError):
            parse_config({**BASE, "log_level": "chatty"})

    def test_checksum_is_deterministic(self):
        assert compute_checksum(dict(BASE)) == compute_checksum(dict(reversed(BASE.items())))
        assert parse_config(dict(BASE)).checksum != parse_config({**BASE, "url": "x"}).checksum
