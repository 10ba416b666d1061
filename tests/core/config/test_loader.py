import pytest
import yaml

from skystats.core.base.exceptions import ConfigurationError
from skystats.core.config.loader import (
    JSONConfigLoader,
    YAMLConfigLoader,
    get_config_loader,
    load_config,
    save_config,
)
from skystats.core.config.settings import StatisticsConfig


def write_file(path, content):
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def json_loader():
    return JSONConfigLoader()


@pytest.fixture
def yaml_loader():
    return YAMLConfigLoader()


class TestJSONConfigLoader:
    def test_load(self, json_loader, tmp_path):
        path = write_file(tmp_path / "cfg.json", '{"mirror_dist": 2.0, "num_threads": 4}')
        assert json_loader.load(path) == {"mirror_dist": 2.0, "num_threads": 4}

    def test_invalid_json(self, json_loader, tmp_path):
        path = write_file(tmp_path / "cfg.json", "{'mirror_dist': 2.0}")
        with pytest.raises(ConfigurationError):
            json_loader.load(path)

    def test_not_an_object(self, json_loader, tmp_path):
        path = write_file(tmp_path / "cfg.json", "[1, 2]")
        with pytest.raises(ConfigurationError):
            json_loader.load(path)

    def test_missing_file(self, json_loader, tmp_path):
        with pytest.raises(ConfigurationError):
            json_loader.load(tmp_path / "missing.json")

    def test_save_converts_paths(self, json_loader, tmp_path):
        path = tmp_path / "nested" / "cfg.json"
        json_loader.save({"log_file": tmp_path / "a.log"}, path)
        assert json_loader.load(path) == {"log_file": str(tmp_path / "a.log")}

    def test_properties(self, json_loader):
        assert json_loader.supported_extensions == [".json"]
        assert json_loader.format_name == "JSON"


class TestYAMLConfigLoader:
    def test_load(self, yaml_loader, tmp_path):
        path = write_file(tmp_path / "cfg.yaml", "clip_param: 0.1\nlog_level: DEBUG\n")
        assert yaml_loader.load(path) == {"clip_param": 0.1, "log_level": "DEBUG"}

    def test_empty_file(self, yaml_loader, tmp_path):
        assert yaml_loader.load(write_file(tmp_path / "cfg.yml", "")) == {}

    def test_invalid_yaml(self, yaml_loader, tmp_path):
        path = write_file(tmp_path / "cfg.yaml", "a: [1, 2\n")
        with pytest.raises(ConfigurationError):
            yaml_loader.load(path)

    def test_not_a_mapping(self, yaml_loader, tmp_path):
        with pytest.raises(ConfigurationError):
            yaml_loader.load(write_file(tmp_path / "cfg.yaml", "- 1\n- 2\n"))

    def test_save(self, yaml_loader, tmp_path):
        path = tmp_path / "cfg.yaml"
        yaml_loader.save({"b": 1, "a": 2}, path)
        assert yaml.safe_load(path.read_text()) == {"a": 2, "b": 1}

    def test_save_needs_a_dict(self, yaml_loader, tmp_path):
        with pytest.raises(ConfigurationError):
            yaml_loader.save([1, 2], tmp_path / "cfg.yaml")


class TestHelpers:
    @pytest.mark.parametrize("name, loader", [
        ("a.json", JSONConfigLoader),
        ("a.yaml", YAMLConfigLoader),
        ("a.YML", YAMLConfigLoader),
    ])
    def test_get_config_loader(self, name, loader):
        assert isinstance(get_config_loader(name), loader)

    def test_unsupported_format(self):
        with pytest.raises(ConfigurationError):
            get_config_loader("a.toml")

    def test_load_config_section(self, tmp_path):
        path = write_file(tmp_path / "cfg.yaml",
                          "statistics:\n  mirror_dist: 2.5\n  clip_param: 3\n")
        cfg = load_config(path)
        assert cfg.mirror_dist == 2.5
        assert cfg.clip_param == 3

    def test_load_config_unknown_key(self, tmp_path):
        path = write_file(tmp_path / "cfg.json", '{"healpix_nside": 4096}')
        with pytest.raises(ConfigurationError) as excinfo:
            load_config(path)
        assert excinfo.value.get_detail("config_file") == str(path)

    @pytest.mark.parametrize("name", ["cfg.json", "cfg.yaml"])
    def test_save_and_load(self, tmp_path, name):
        cfg = StatisticsConfig(clip_multiplier=2.0, num_threads=2,
                               log_file=tmp_path / "run.log")
        save_config(cfg, tmp_path / name)
        assert load_config(tmp_path / name) == cfg
