"""Tests for configuration loading and models."""

import tomllib

import pytest
from pydantic import SecretStr, ValidationError

from visionproxy.config import (
    RemoteConfig,
    ServerConfig,
    UploadConfig,
    VisionProxyConfig,
    get_default_config,
    load_config,
)
from visionproxy.config.models import DEFAULT_SPACE_URL
from visionproxy.config.paths import get_config_path, get_visionproxy_home


class TestRemoteConfig:
    """Tests for RemoteConfig model."""

    def test_defaults(self):
        config = RemoteConfig()
        assert config.space_url == DEFAULT_SPACE_URL
        assert config.hf_token is None
        assert config.token() is None
        assert config.endpoints.text == "/process_image_text"
        assert config.endpoints.box == "/process_image_box"
        assert config.endpoints.tracker == "/process_image_tracker_wrapper"
        assert config.endpoints.video == "/process_video_text"

    def test_strips_trailing_slash(self):
        config = RemoteConfig(space_url="https://a-b.hf.space/ ")
        assert config.space_url == "https://a-b.hf.space"
        assert config.host == "a-b.hf.space"

    def test_rejects_empty_space_url(self):
        with pytest.raises(ValidationError):
            RemoteConfig(space_url="  ")

    def test_blank_token_is_none(self):
        config = RemoteConfig(hf_token=SecretStr("   "))
        assert config.token() is None

    def test_token_value(self):
        config = RemoteConfig(hf_token=SecretStr("hf_secret"))
        assert config.token() == "hf_secret"
        assert "hf_secret" not in repr(config)

    def test_display_name_falls_back_to_url(self):
        assert RemoteConfig().display_name == DEFAULT_SPACE_URL
        assert RemoteConfig(space_name="me/sam").display_name == "me/sam"


class TestUploadConfig:
    def test_defaults(self):
        config = UploadConfig()
        assert config.temp_dir is None
        assert config.max_upload_bytes == 50 * 1024 * 1024
        assert "image/webp" in config.allowed_image_types


class TestServerConfig:
    def test_defaults(self):
        config = ServerConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8080


class TestLoadConfig:
    """Tests for load_config."""

    def test_loads_file(self, config_file):
        config = load_config(config_file)
        assert config.remote.space_url == "https://someone-segmenter.hf.space"
        assert config.remote.space_name == "someone/segmenter"
        assert config.remote.max_video_frames == 120
        assert config.remote.endpoints.text == "/detect_text"
        assert config.remote.endpoints.box == "/process_image_box"
        assert config.server.port == 9000

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("not valid toml [[[")
        with pytest.raises(tomllib.TOMLDecodeError):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text('[server]\nport = "not a port"\n')
        with pytest.raises(ValidationError):
            load_config(path)

    def test_defaults_without_file(self):
        config = load_config()
        assert config == VisionProxyConfig()

    def test_finds_config_in_current_directory(self, tmp_path):
        (tmp_path / "config.toml").write_text("[server]\nport = 7000\n")
        assert load_config().server.port == 7000

    def test_finds_config_in_home(self):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("[server]\nport = 7001\n")
        assert load_config().server.port == 7001

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("HF_TOKEN", "hf_from_env")
        assert load_config().remote.token() == "hf_from_env"

    def test_file_token_wins_over_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "c.toml"
        path.write_text('[remote]\nhf_token = "hf_from_file"\n')
        monkeypatch.setenv("HF_TOKEN", "hf_from_env")
        assert load_config(path).remote.token() == "hf_from_file"

    def test_space_url_from_environment(self, config_file, monkeypatch):
        monkeypatch.setenv("VISIONPROXY_SPACE_URL", "https://other.hf.space/")
        assert load_config(config_file).remote.space_url == "https://other.hf.space"

    def test_hf_space_url_fallback(self, monkeypatch):
        monkeypatch.setenv("HF_SPACE_URL", "https://fallback.hf.space")
        assert load_config().remote.space_url == "https://fallback.hf.space"

    def test_visionproxy_space_url_preferred(self, monkeypatch):
        monkeypatch.setenv("HF_SPACE_URL", "https://fallback.hf.space")
        monkeypatch.setenv("VISIONPROXY_SPACE_URL", "https://primary.hf.space")
        assert load_config().remote.space_url == "https://primary.hf.space"

    def test_get_default_config(self):
        assert get_default_config().remote.space_url == DEFAULT_SPACE_URL


class TestPaths:
    def test_home_from_environment(self, tmp_path):
        assert get_visionproxy_home() == (tmp_path / "home").resolve()

    def test_config_path(self, tmp_path):
        assert get_config_path() == (tmp_path / "home").resolve() / "config.toml"
