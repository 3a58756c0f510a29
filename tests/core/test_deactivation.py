"""Tests for deactivation lookups."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from structlog.testing import capture_logs

from trigger_spine.core.deactivation import (
    DeactivationLookup,
    EnvDeactivationLookup,
    FailOpenLookup,
    SqlDeactivationLookup,
    StaticDeactivationLookup,
    build_lookup,
)
from trigger_spine.core.orm import create_tables, dispose_engines, get_db_engine
from trigger_spine.core.settings import TriggerSpineSettings


class BrokenLookup:
    def __init__(self):
        self.calls = 0

    def is_deactivated(self, entity_type: str) -> bool:
        self.calls += 1
        raise ConnectionError("configuration store unreachable")


@pytest.fixture
def sql_lookup():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_tables(engine)
    return SqlDeactivationLookup(engine)


class TestStaticLookup:
    def test_absent_means_active(self):
        assert StaticDeactivationLookup().is_deactivated("Account") is False

    def test_set_and_clear(self):
        lookup = StaticDeactivationLookup()
        lookup.set("Account")
        assert lookup.is_deactivated("Account")
        lookup.clear("Account")
        assert not lookup.is_deactivated("Account")

    def test_explicit_active_record(self):
        lookup = StaticDeactivationLookup({"Account": False, "Contact": True})
        assert not lookup.is_deactivated("Account")
        assert lookup.is_deactivated("Contact")

    def test_satisfies_protocol(self):
        assert isinstance(StaticDeactivationLookup(), DeactivationLookup)


class TestEnvLookup:
    def test_env_name(self):
        assert EnvDeactivationLookup().env_name("Account") == "TRIGGER_SPINE_DEACTIVATE_ACCOUNT"

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", " on "])
    def test_truthy_values(self, value):
        lookup = EnvDeactivationLookup(environ={"TRIGGER_SPINE_DEACTIVATE_ACCOUNT": value})
        assert lookup.is_deactivated("Account")

    @pytest.mark.parametrize("value", ["0", "false", "no", ""])
    def test_falsy_values(self, value):
        lookup = EnvDeactivationLookup(environ={"TRIGGER_SPINE_DEACTIVATE_ACCOUNT": value})
        assert not lookup.is_deactivated("Account")

    def test_missing_variable_is_active(self):
        assert not EnvDeactivationLookup(environ={}).is_deactivated("Account")

    def test_reads_process_environment_live(self, monkeypatch):
        lookup = EnvDeactivationLookup()
        assert not lookup.is_deactivated("Contact")
        monkeypatch.setenv("TRIGGER_SPINE_DEACTIVATE_CONTACT", "true")
        assert lookup.is_deactivated("Contact")

    def test_custom_prefix(self):
        lookup = EnvDeactivationLookup(prefix="APP_OFF_", environ={"APP_OFF_LEAD": "yes"})
        assert lookup.is_deactivated("Lead")


class TestSqlLookup:
    def test_absent_row_is_active(self, sql_lookup):
        assert sql_lookup.is_deactivated("Account") is False

    def test_set_inactive(self, sql_lookup):
        sql_lookup.set_inactive("Account", description="data migration")
        assert sql_lookup.is_deactivated("Account") is True

    def test_reactivate_keeps_row(self, sql_lookup):
        sql_lookup.set_inactive("Account")
        sql_lookup.set_inactive("Account", False)
        assert sql_lookup.is_deactivated("Account") is False
        assert len(sql_lookup.list_records()) == 1

    def test_delete(self, sql_lookup):
        sql_lookup.set_inactive("Account")
        assert sql_lookup.delete("Account") is True
        assert sql_lookup.delete("Account") is False
        assert not sql_lookup.is_deactivated("Account")

    def test_list_records(self, sql_lookup):
        sql_lookup.set_inactive("Contact")
        sql_lookup.set_inactive("Account", description="migration")
        records = sql_lookup.list_records()
        assert [r["entity_type"] for r in records] == ["Account", "Contact"]
        assert records[0]["description"] == "migration"
        assert records[0]["is_inactive"] is True
        assert records[0]["updated_at"] is not None

    def test_missing_table_fails_open_when_wrapped(self):
        engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        lookup = FailOpenLookup(SqlDeactivationLookup(engine))
        assert lookup.is_deactivated("Account") is False


class TestFailOpenLookup:
    def test_failure_reads_as_active(self):
        inner = BrokenLookup()
        assert FailOpenLookup(inner).is_deactivated("Account") is False
        assert inner.calls == 1

    def test_failure_is_logged(self):
        with capture_logs() as logs:
            FailOpenLookup(BrokenLookup()).is_deactivated("Account")

        failures = [e for e in logs if e["event"] == "deactivation_lookup_failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "warning"
        assert failures[0]["category"] == "LOOKUP"
        assert failures[0]["context"] == {"entity_type": "Account"}
        assert "unreachable" in failures[0]["cause"]

    def test_passes_through_answer(self):
        lookup = FailOpenLookup(StaticDeactivationLookup({"Account": True}))
        assert lookup.is_deactivated("Account") is True
        assert lookup.is_deactivated("Contact") is False


class TestBuildLookup:
    def test_memory_backend(self):
        lookup = build_lookup(TriggerSpineSettings())
        assert isinstance(lookup, StaticDeactivationLookup)

    def test_env_backend(self):
        lookup = build_lookup(TriggerSpineSettings(deactivation_backend="env", deactivation_env_prefix="X_"))
        assert isinstance(lookup, EnvDeactivationLookup)
        assert lookup.prefix == "X_"

    def test_database_backend(self, tmp_path):
        settings = TriggerSpineSettings(
            deactivation_backend="database",
            database_url=f"sqlite:///{tmp_path / 'settings.db'}",
        )
        lookup = build_lookup(settings)
        assert isinstance(lookup, SqlDeactivationLookup)

    def test_database_backend_defers_engine_creation(self):
        settings = TriggerSpineSettings(deactivation_backend="database", database_url="notadialect://x")

        lookup = build_lookup(settings)

        assert lookup.database_url == "notadialect://x"

    def test_unusable_database_url_fails_open(self):
        settings = TriggerSpineSettings(deactivation_backend="database", database_url="notadialect://x")
        lookup = FailOpenLookup(build_lookup(settings))

        with capture_logs() as logs:
            assert lookup.is_deactivated("Account") is False

        assert [e["event"] for e in logs] == ["deactivation_lookup_failed"]

    def test_same_url_shares_engine(self, tmp_path):
        settings = TriggerSpineSettings(
            deactivation_backend="database",
            database_url=f"sqlite:///{tmp_path / 'settings.db'}",
        )
        assert build_lookup(settings).engine is build_lookup(settings).engine


class TestSharedEngines:
    def test_lookup_needs_engine_or_url(self):
        with pytest.raises(ValueError):
            SqlDeactivationLookup()

    def test_explicit_engine_used_as_is(self):
        engine = create_engine("sqlite://")
        assert SqlDeactivationLookup(engine).engine is engine

    def test_engines_cached_per_url_and_echo(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'settings.db'}"
        assert get_db_engine(url) is get_db_engine(url)
        assert get_db_engine(url) is not get_db_engine(url, echo=True)

    def test_dispose_engines_forgets_cache(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'settings.db'}"
        first = get_db_engine(url)

        dispose_engines()

        assert get_db_engine(url) is not first
