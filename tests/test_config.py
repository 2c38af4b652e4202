"""
Tests for settings, store selection and the YAML curriculum loader.
"""

import os
from pathlib import Path

import pytest

from ispeaktu import config
from ispeaktu.classroom.store import SQLiteStore
from ispeaktu.config import Settings, build_store
from ispeaktu.utils.curriculum_loader import load_curriculum_data, load_curriculum_file

ENV_KEYS = [
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "ISPEAKTU_DB_PATH",
    "ISPEAKTU_CACHE_PATH",
    "ISPEAKTU_TEACHER_CODE",
    "ISPEAKTU_LOG_LEVEL",
]

SAMPLE_CURRICULUM = Path(__file__).parent.parent / "data" / "sample_curriculum.yaml"


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return tmp_path / "missing.env"


class TestSettings:
    """Test reading settings from the environment."""

    def test_defaults(self, clean_env):
        settings = Settings.from_env(clean_env)
        assert settings.supabase_url is None
        assert not settings.has_supabase
        assert settings.db_path == Path("data/ispeaktu.db")
        assert settings.teacher_code is None
        assert settings.log_level == "INFO"

    def test_from_environment(self, clean_env, monkeypatch, tmp_path):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("ISPEAKTU_DB_PATH", str(tmp_path / "x.db"))
        monkeypatch.setenv("ISPEAKTU_TEACHER_CODE", "code")
        monkeypatch.setenv("ISPEAKTU_LOG_LEVEL", "debug")
        settings = Settings.from_env(clean_env)
        assert settings.has_supabase
        assert settings.db_path == tmp_path / "x.db"
        assert settings.teacher_code == "code"
        assert settings.log_level == "DEBUG"

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("ISPEAKTU_TEACHER_CODE=from-file\n", encoding="utf-8")
        try:
            settings = Settings.from_env(env_file)
        finally:
            os.environ.pop("ISPEAKTU_TEACHER_CODE", None)
        assert settings.teacher_code == "from-file"

    def test_env_file_does_not_override(self, clean_env, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("ISPEAKTU_TEACHER_CODE=from-file\n", encoding="utf-8")
        monkeypatch.setenv("ISPEAKTU_TEACHER_CODE", "from-env")
        assert Settings.from_env(env_file).teacher_code == "from-env"

    def test_empty_teacher_code_is_unset(self, clean_env, monkeypatch):
        monkeypatch.setenv("ISPEAKTU_TEACHER_CODE", "")
        assert Settings.from_env(clean_env).teacher_code is None


class TestBuildStore:
    """Test store selection."""

    def test_sqlite_without_supabase(self, tmp_path):
        store = build_store(Settings(db_path=tmp_path / "s.db"))
        assert isinstance(store, SQLiteStore)

    def test_supabase_when_configured(self, monkeypatch):
        created = []
        monkeypatch.setattr(config, "create_supabase_store", lambda url, key: created.append((url, key)) or "store")
        store = build_store(Settings(supabase_url="https://example.supabase.co", supabase_anon_key="anon"))
        assert store == "store"
        assert created == [("https://example.supabase.co", "anon")]


class TestCurriculumLoader:
    """Test YAML curriculum loading."""

    def test_sample_curriculum(self):
        materials = load_curriculum_file(SAMPLE_CURRICULUM)
        assert [m.id for m in materials] == ["grammar", "vocab"]
        grammar = materials[0]
        assert len(grammar.lessons) == 12
        q2 = grammar.lessons[0].questions[1]
        assert q2.correct_option == "drink"
        assert q2.feedback_text == "Plural subjects take the base form."

    def test_list_document(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("- id: m1\n  name: One\n", encoding="utf-8")
        assert load_curriculum_data(path) == [{"id": "m1", "name": "One"}]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_curriculum_data(tmp_path / "nope.yaml")

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("just a string\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_curriculum_data(path)
