"""Tests for config loading and validation."""

import pytest
import yaml

from manualqa.config import MODEL_PATH_ENV, GenerationConfig, QAConfig, load_config


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch):
    monkeypatch.delenv(MODEL_PATH_ENV, raising=False)


def test_defaults():
    config = QAConfig()
    assert config.backend == "mlx"
    assert config.generation == GenerationConfig(max_tokens=512, top_k=40, temperature=0.8)
    assert config.shutdown_timeout_s == 5.0
    assert config.log_level == "info"


def test_missing_file_created_with_defaults(tmp_path):
    path = tmp_path / "sub" / "config.yaml"
    config = load_config(str(path))

    assert path.exists()
    assert config == QAConfig()
    written = yaml.safe_load(path.read_text())
    assert written["generation"]["max_tokens"] == 512
    # The written file round-trips to the same config.
    assert load_config(str(path)) == config


def test_load_existing(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.dump(
            {
                "model_path": "/opt/models/gemma.gguf",
                "backend": "llama_cpp",
                "generation": {"max_tokens": 256, "top_k": 20},
                "log_level": "debug",
            }
        )
    )
    config = load_config(str(path))
    assert config.model_path == "/opt/models/gemma.gguf"
    assert config.backend == "llama_cpp"
    assert config.generation == GenerationConfig(max_tokens=256, top_k=20)
    assert config.log_level == "debug"


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(str(path)) == QAConfig()


def test_env_overrides_model_path(tmp_path, monkeypatch):
    monkeypatch.setenv(MODEL_PATH_ENV, "/data/local/tmp/llm/model.task")
    config = load_config(str(tmp_path / "config.yaml"))
    assert config.model_path == "/data/local/tmp/llm/model.task"


@pytest.mark.parametrize(
    "data, message",
    [
        ({"backend": "tpu"}, "Unknown backend"),
        ({"colour": "red"}, "Unknown config keys"),
        ({"generation": {"max_tokens": 0}}, "max_tokens"),
        ({"generation": {"top_k": -1}}, "top_k"),
        ({"shutdown_timeout_s": -1}, "shutdown_timeout_s"),
        ({"generation": {"beams": 4}}, "beams"),
    ],
)
def test_invalid_config(tmp_path, data, message):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    with pytest.raises(ValueError, match=message):
        load_config(str(path))


def test_resolved_model_path_expands_user():
    config = QAConfig(model_path="~/models/x")
    assert "~" not in str(config.resolved_model_path)
