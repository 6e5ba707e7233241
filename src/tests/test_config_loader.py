"""Tests for the configuration loader module."""

import json

import pytest

from tor_auth.config.loader import ConfigLoader, load_config
from tor_auth.config.schema import ConfigurationError, TorAuthConfig


def write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


class TestConfigLoader:
    """Test ConfigLoader functionality."""

    def test_nothing_configured(self):
        """Neither listen nor ingress supplied."""
        loader = ConfigLoader()

        with pytest.raises(ConfigurationError, match="Listen endpoint is not configured"):
            loader.load_config()

    def test_missing_ingress(self):
        loader = ConfigLoader(overrides={"listen": "8081"})

        with pytest.raises(ConfigurationError, match="Ingress endpoint is not configured"):
            loader.load_config()

    def test_load_yaml_config(self, tmp_path):
        config_file = write(
            tmp_path,
            "tor-auth.yaml",
            """
listen: "0.0.0.0:8081"
ingress: "203.0.113.9:443"
client_header: X-Forwarded-For

resolver:
  nameservers:
    - "192.0.2.53"
    - "198.51.100.53:5353"
  timeout: 2.5
  retries: 1

logging:
  level: DEBUG
  format: json
""",
        )

        config = ConfigLoader(config_file).load_config()

        assert isinstance(config, TorAuthConfig)
        assert config.listen.address == "0.0.0.0"
        assert config.listen.port == 8081
        assert config.ingress.address == "203.0.113.9"
        assert config.ingress.port == 443
        assert config.client_header == "X-Forwarded-For"
        assert config.resolver.nameservers == ["192.0.2.53", "198.51.100.53:5353"]
        assert config.resolver.timeout == 2.5
        assert config.resolver.retries == 1
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"

    def test_load_json_config(self, tmp_path):
        config_file = write(
            tmp_path,
            "tor-auth.json",
            json.dumps(
                {
                    "listen": {"path": "/run/tor-auth.sock"},
                    "ingress": {"address": "203.0.113.9", "port": 8443},
                }
            ),
        )

        config = ConfigLoader(config_file).load_config()

        assert config.listen.is_unix
        assert config.listen.path == "/run/tor-auth.sock"
        assert config.ingress.port == 8443

    def test_yaml_integer_endpoints(self, tmp_path):
        config_file = write(tmp_path, "tor-auth.yml", "listen: 8081\ningress: 443\n")

        config = ConfigLoader(config_file).load_config()

        assert config.listen.port == 8081
        assert config.ingress.port == 443
        assert config.ingress.address is None

    def test_extensionless_file(self, tmp_path):
        config_file = write(tmp_path, "tor-auth", "listen: '8081'\ningress: '443'\n")

        config = ConfigLoader(config_file).load_config()

        assert config.listen.port == 8081

    def test_file_not_found(self):
        loader = ConfigLoader("/non/existent/file.yaml")

        with pytest.raises(ConfigurationError, match="not found"):
            loader.load_config()

    def test_invalid_yaml_file(self, tmp_path):
        config_file = write(tmp_path, "bad.yaml", "invalid: yaml: content: [")

        with pytest.raises(ConfigurationError, match="Unable to parse"):
            ConfigLoader(config_file).load_config()

    def test_invalid_json_file(self, tmp_path):
        config_file = write(tmp_path, "bad.json", '{"invalid": json, "content":')

        with pytest.raises(ConfigurationError, match="Unable to parse"):
            ConfigLoader(config_file).load_config()

    def test_directory_path(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Unable to read"):
            ConfigLoader(str(tmp_path)).load_config()

    def test_non_utf8_file(self, tmp_path):
        config_file = tmp_path / "latin1.yaml"
        config_file.write_bytes(b"listen: \xff\xfe\n")

        with pytest.raises(ConfigurationError, match="Unable to read"):
            ConfigLoader(str(config_file)).load_config()

    def test_non_mapping_file(self, tmp_path):
        config_file = write(tmp_path, "list.yaml", "- listen\n- ingress\n")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            ConfigLoader(config_file).load_config()

    def test_unknown_section_key(self, tmp_path):
        config_file = write(
            tmp_path,
            "tor-auth.yaml",
            "listen: 8081\ningress: 443\nresolver:\n  cache: true\n",
        )

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            ConfigLoader(config_file).load_config()

    def test_environment_variable_overrides(self, tmp_path, monkeypatch):
        config_file = write(
            tmp_path,
            "tor-auth.yaml",
            "listen: 8081\ningress: 443\nresolver:\n  timeout: 5\n",
        )
        monkeypatch.setenv("TOR_AUTH_LISTEN", "/run/tor-auth.sock")
        monkeypatch.setenv("TOR_AUTH_INGRESS", "203.0.113.9:443")
        monkeypatch.setenv("TOR_AUTH_CLIENT_HEADER", "X-Client-IP")
        monkeypatch.setenv("TOR_AUTH_RESOLVER_TIMEOUT", "1.5")
        monkeypatch.setenv("TOR_AUTH_RESOLVER_NAMESERVERS", "192.0.2.53, 192.0.2.54")
        monkeypatch.setenv("TOR_AUTH_LOGGING_LEVEL", "WARNING")

        config = ConfigLoader(config_file).load_config()

        assert config.listen.path == "/run/tor-auth.sock"
        assert config.ingress.address == "203.0.113.9"
        assert config.client_header == "X-Client-IP"
        assert config.resolver.timeout == 1.5
        assert config.resolver.nameservers == ["192.0.2.53", "192.0.2.54"]
        assert config.logging.level == "WARNING"

    def test_environment_value_conversion(self, monkeypatch):
        monkeypatch.setenv("TOR_AUTH_LISTEN", "1")
        monkeypatch.setenv("TOR_AUTH_INGRESS", "1")
        monkeypatch.setenv("TOR_AUTH_RESOLVER_RETRIES", "2")

        config = ConfigLoader().load_config()

        assert config.listen.port == 1
        assert config.ingress.port == 1
        assert config.resolver.retries == 2
        assert isinstance(config.resolver.retries, int)

    def test_overrides_win(self, tmp_path, monkeypatch):
        config_file = write(tmp_path, "tor-auth.yaml", "listen: 8081\ningress: 443\n")
        monkeypatch.setenv("TOR_AUTH_INGRESS", "8443")

        config = ConfigLoader(
            config_file,
            overrides={
                "listen": "9000",
                "ingress": None,
                "logging": {"level": "ERROR"},
            },
        ).load_config()

        assert config.listen.port == 9000
        assert config.ingress.port == 8443
        assert config.logging.level == "ERROR"

    def test_config_merge_keeps_defaults(self, tmp_path):
        config_file = write(
            tmp_path,
            "tor-auth.yaml",
            "listen: 8081\ningress: 443\nresolver:\n  retries: 2\n",
        )

        config = ConfigLoader(config_file).load_config()

        assert config.resolver.retries == 2
        assert config.resolver.timeout == 5.0
        assert config.discovery.name == "myip.opendns.com"
        assert config.logging.format == "console"

    def test_get_config(self):
        loader = ConfigLoader(overrides={"listen": "8081", "ingress": "443"})

        assert loader.get_config() is None

        config = loader.load_config()
        assert loader.get_config() == config

    def test_convenience_function(self):
        config = load_config(overrides={"listen": "8081", "ingress": "443"})

        assert isinstance(config, TorAuthConfig)
        assert config.listen.address == "127.0.0.1"
