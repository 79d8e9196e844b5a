from pathlib import Path

import pytest

from applypatch.settings import (
    DEFAULT_REFUSE_MESSAGE,
    DEFAULT_WARN_MESSAGE,
    Config,
    Mode,
    config_path,
    load_config,
    save_config,
)


def test_config_path_precedence(tmp_path: Path):
    env = {
        "APPLY_PATCH_CONFIG": str(tmp_path / "explicit.json"),
        "XDG_CONFIG_HOME": str(tmp_path / "xdg"),
        "HOME": str(tmp_path / "home"),
    }
    assert config_path(env) == tmp_path / "explicit.json"
    del env["APPLY_PATCH_CONFIG"]
    assert config_path(env) == tmp_path / "xdg" / ".apply_patch" / "config.json"
    del env["XDG_CONFIG_HOME"]
    assert config_path(env) == tmp_path / "home" / ".apply_patch" / "config.json"
    del env["HOME"]
    assert config_path(env) is None


def test_config_path_reads_process_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("APPLY_PATCH_CONFIG", str(tmp_path / "c.json"))
    assert config_path() == tmp_path / "c.json"


def test_missing_file_gives_defaults(tmp_path: Path):
    cfg = load_config(tmp_path / "nope.json")
    assert cfg == Config()
    assert cfg.mode == Mode.apply
    assert cfg.effective_refuse_message == DEFAULT_REFUSE_MESSAGE
    assert cfg.effective_warn_message == DEFAULT_WARN_MESSAGE


@pytest.mark.parametrize("payload", ["{not json", '{"mode": "sometimes"}', "[]"])
def test_invalid_file_gives_defaults(tmp_path: Path, payload: str):
    path = tmp_path / "config.json"
    path.write_text(payload, encoding="utf-8")
    assert load_config(path) == Config()


def test_save_and_load_round_trip(tmp_path: Path):
    path = tmp_path / "nested" / "config.json"
    cfg = Config(mode=Mode.warn, warn_message="WARN_CUSTOM")
    save_config(path, cfg)
    assert load_config(path) == cfg
    assert not (tmp_path / "nested" / "config.json.tmp").exists()
    assert load_config(path).effective_warn_message == "WARN_CUSTOM"


def test_partial_file_fills_defaults(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text('{"mode": "refuse"}', encoding="utf-8")
    cfg = load_config(path)
    assert cfg.mode == Mode.refuse
    assert cfg.refuse_message is None


def test_default_banners():
    assert DEFAULT_REFUSE_MESSAGE.startswith("NOTE TO LLM:")
    assert "nothing was changed" in DEFAULT_REFUSE_MESSAGE
    assert DEFAULT_WARN_MESSAGE.startswith("NOTE TO LLM:")
