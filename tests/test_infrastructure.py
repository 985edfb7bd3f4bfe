"""
Tests for the ambient infrastructure: configuration, logging and errors.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from vitebridge.domain.scaffolding import Scaffolding
from vitebridge.infrastructure.config import (
    DEFAULT_MANIFEST,
    DEFAULT_VITE_URL,
    ApplicationConfig,
    ServerConfig,
    ViteConfig,
    get_settings,
    reset_settings,
)
from vitebridge.infrastructure.exceptions import (
    ChunkNotFoundError,
    ConfigurationError,
    DuplicateTemplateError,
    ManifestOpenError,
    ViteError,
    log_error_details,
)
from vitebridge.infrastructure.filesystem import DirectoryFS, MemoryFS
from vitebridge.infrastructure.logging import (
    LogContext,
    StructuredFormatter,
    clear_context,
    context_filter,
    get_logger,
    log_operation,
    set_context,
    setup_logging,
)


class TestViteConfig:
    """Validation of the Vite integration settings."""

    def test_defaults(self):
        config = ViteConfig()

        assert config.fs is None
        assert config.is_dev is False
        assert config.url == DEFAULT_VITE_URL
        assert config.manifest == DEFAULT_MANIFEST
        assert config.template is Scaffolding.REACT
        assert config.dev_entry == "src/main.tsx"

    def test_trailing_slashes_are_stripped(self):
        config = ViteConfig(url="http://localhost:5174/", assets_url_prefix="/static/")

        assert config.url == "http://localhost:5174"
        assert config.assets_url_prefix == "/static"

    def test_empty_values_fall_back_to_defaults(self):
        config = ViteConfig(url="", manifest="")

        assert config.url == DEFAULT_VITE_URL
        assert config.manifest == DEFAULT_MANIFEST

    @pytest.mark.parametrize("manifest", ["/etc/manifest.json", "../manifest.json", "a/../../manifest.json"])
    def test_manifest_must_stay_inside_fs(self, manifest: str):
        with pytest.raises(ValidationError):
            ViteConfig(manifest=manifest)

    @pytest.mark.parametrize("value", ["react-ts", "REACT_TS", "React-TS"])
    def test_template_names_and_values(self, value: str):
        assert ViteConfig(template=value).template is Scaffolding.REACT_TS

    def test_unknown_template(self):
        with pytest.raises(ValidationError):
            ViteConfig(template="angular")

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("VITE_IS_DEV", "true")
        monkeypatch.setenv("VITE_URL", "http://vite.internal:5173/")
        monkeypatch.setenv("VITE_ENTRY", "src/admin.tsx")
        monkeypatch.setenv("VITE_TEMPLATE", "svelte")

        config = ViteConfig()

        assert config.is_dev is True
        assert config.url == "http://vite.internal:5173"
        assert config.entry == "src/admin.tsx"
        assert config.template is Scaffolding.SVELTE

    def test_with_filesystems(self, tmp_path: Path):
        (tmp_path / "public").mkdir()
        config = ViteConfig(assets_dir=str(tmp_path), public_dir=str(tmp_path / "public"))

        resolved = config.with_filesystems()

        assert isinstance(resolved.fs, DirectoryFS)
        assert isinstance(resolved.public_fs, DirectoryFS)
        assert config.fs is None

    def test_with_filesystems_keeps_given_fs(self):
        fs = MemoryFS()
        config = ViteConfig(fs=fs)

        assert config.with_filesystems().fs is fs


class TestSettings:
    """Settings container and its cache."""

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()

    def test_reset_settings(self):
        first = get_settings()
        reset_settings()

        assert get_settings() is not first

    def test_production_logs_warnings(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        reset_settings()

        settings = get_settings()

        assert settings.is_production()
        assert settings.logging.level == "WARNING"

    def test_environment_info(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("VITE_IS_DEV", "1")
        monkeypatch.setenv("VITE_TEMPLATE", "vue")
        reset_settings()

        info = get_settings().get_environment_info()

        assert info["vite_mode"] == "development"
        assert info["vite_template"] == "vue"

    def test_debug_not_allowed_in_production(self):
        with pytest.raises(ValidationError):
            ApplicationConfig(environment="production", debug=True)

    def test_server_port_range(self):
        assert ServerConfig().port == 8000
        with pytest.raises(ValidationError):
            ServerConfig(port=0)


class TestErrors:
    """Error messages and structured details."""

    def test_chunk_not_found(self):
        error = ChunkNotFoundError("src/admin.tsx")

        assert str(error) == "ChunkNotFoundError: vite: unable to find chunk for entry point 'src/admin.tsx'"
        assert "src/admin.tsx" in error.user_message
        assert error.details == {"entry": "src/admin.tsx"}

    def test_configuration_error(self):
        error = ConfigurationError("fs is nil", config_key="fs")

        assert error.message == "vite: fs is nil"
        assert error.config_key == "fs"
        assert isinstance(error, ViteError)

    def test_manifest_error_keeps_path(self):
        error = ManifestOpenError(".vite/manifest.json", "no such file")

        assert error.path == ".vite/manifest.json"
        assert "Run the Vite build" in error.user_message

    def test_log_error_details(self):
        details = log_error_details(DuplicateTemplateError("/about"), {"path": "/about"})

        assert details["error_type"] == "DuplicateTemplateError"
        assert details["context"] == {"path": "/about"}
        assert details["error_details"] == {"template": "/about"}

    def test_log_error_details_for_plain_exceptions(self):
        details = log_error_details(ValueError("boom"))

        assert details == {"error_type": "ValueError", "error_message": "boom", "context": {}}


class TestLogging:
    """Logging configuration and context propagation."""

    @pytest.fixture(autouse=True)
    def _restore_logging(self):
        yield
        clear_context()
        setup_logging(level="WARNING", structured=False, enable_console=False)

    def test_logger_names(self):
        assert get_logger("test_module").name == "vitebridge.test_module"
        assert get_logger("vitebridge.web.handler").name == "vitebridge.web.handler"

    def test_log_file_is_created(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "vite.log"

        setup_logging(level="DEBUG", log_file=str(log_file), structured=True, enable_console=False)
        get_logger("test").info("Manifest loaded")
        for handler in logging.getLogger("vitebridge").handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert record["message"] == "Manifest loaded"
        assert record["logger"] == "vitebridge.test"

    def test_structured_formatter_includes_context(self):
        record = logging.LogRecord("vitebridge.x", logging.INFO, __file__, 1, "served %s", ("/",), None)
        record.request_path = "/"

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["message"] == "served /"
        assert entry["level"] == "INFO"
        assert entry["request_path"] == "/"

    def test_log_context_restores_previous(self):
        clear_context()
        set_context(mode="production")

        with LogContext(request_path="/about"):
            assert context_filter.context == {"mode": "production", "request_path": "/about"}

        assert context_filter.context == {"mode": "production"}

    def test_log_context_is_isolated_between_threads(self):
        a_entered = threading.Event()
        b_entered = threading.Event()
        a_exited = threading.Event()
        seen: dict[str, list[dict[str, object]]] = {"a": [], "b": []}

        def request_a():
            with LogContext(request_path="/a"):
                a_entered.set()
                b_entered.wait(timeout=5)
                seen["a"].append(context_filter.context)
            seen["a"].append(context_filter.context)
            a_exited.set()

        def request_b():
            a_entered.wait(timeout=5)
            with LogContext(request_path="/b"):
                b_entered.set()
                a_exited.wait(timeout=5)
                seen["b"].append(context_filter.context)
            seen["b"].append(context_filter.context)

        threads = [threading.Thread(target=request_a), threading.Thread(target=request_b)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert seen["a"] == [{"request_path": "/a"}, {}]
        assert seen["b"] == [{"request_path": "/b"}, {}]

    def test_context_filter_stamps_records(self):
        record = logging.LogRecord("vitebridge.x", logging.INFO, __file__, 1, "served", (), None)

        with LogContext(request_path="/about"):
            context_filter.filter(record)

        assert record.request_path == "/about"

    def test_log_operation_logs_and_reraises(self):
        logger = MagicMock()

        @log_operation("explode", logger=logger)
        def explode():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            explode()

        logger.error.assert_called_once()
        assert "explode" in logger.error.call_args.args[0]

    def test_log_operation_returns_result(self):
        logger = MagicMock()

        @log_operation("answer", logger=logger)
        def answer():
            return 42

        assert answer() == 42
        logger.info.assert_called_once()
