"""
Tests for logspine.framework.parser module.

Tests cover:
- End to end parsing of requested fields only
- Wildcard and type-wildcard consumers
- Configuration errors raised before any parse call
- Compile-once behaviour and plan invalidation
- Introspection (needed, useful, missing, possible paths)
- Record handling (record class, method targets, existing records)
"""

import pytest
from structlog.testing import capture_logs

from logspine import Parser
from logspine.core.errors import (
    CannotChangeDissectorsAfterCompilationError,
    ConfigError,
    InvalidFieldIdentifierError,
    InvalidFieldMethodSignatureError,
    MissingDissectorsError,
    ParserNotUsableError,
)
from logspine.core.settings import LogSpineSettings
from logspine.testing import KeyValueDissector, TargetCollector, make_parser


class AccessRecord:
    def __init__(self):
        self.values = {}

    def set_value(self, name, value):
        self.values[name] = value

    def set_a(self, value):
        self.values["a"] = value


def build(settings, *dissectors, root_type="LINE", record_class=None):
    parser = Parser(root_type, record_class=record_class, settings=settings)
    for dissector in dissectors:
        parser.add_dissector(dissector)
    return parser


# =============================================================================
# Parsing
# =============================================================================


class TestParse:
    """Requested fields are delivered, everything else is skipped."""

    def test_selective_splitter(self, settings, line_splitter):
        parser, collected = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)

        parser.parse("a=1;b=2")

        assert collected.values == [("a", "1")]
        assert line_splitter.calls == ["rootinputline"]

    def test_non_selective_splitter_delivers_only_bound_fields(self, settings):
        greedy = KeyValueDissector("LINE", "STRING", keys=["a", "b"], selective=False)
        parser, collected = make_parser("LINE", [greedy], ["STRING:a"], settings=settings)

        parser.parse("a=1;b=2")

        assert collected.values == [("a", "1")]

    def test_wildcard_producer(self, settings, foo_splitter, wildcard_splitter):
        parser, collected = make_parser(
            "LINE",
            [foo_splitter, wildcard_splitter],
            ["U:foo.bar", "U:foo.baz"],
            settings=settings,
        )

        parser.parse("foo=bar:1,baz:2,qux:3")

        assert sorted(collected.values) == [("foo.bar", "1"), ("foo.baz", "2")]
        assert len(parser.plan.phases_for("T:foo")) == 1

    def test_wildcard_consumer(self, settings, foo_splitter, wildcard_splitter):
        parser, collected = make_parser(
            "LINE", [foo_splitter, wildcard_splitter], ["U:foo.*"], settings=settings
        )

        parser.parse("foo=bar:1,baz:2")

        assert collected.as_dict() == {"foo.bar": "1", "foo.baz": "2"}

    def test_type_wildcard_consumer(self, settings, line_splitter):
        parser, collected = make_parser(
            "LINE", [line_splitter], ["STRING:*", "STRING:b"], settings=settings
        )

        parser.parse("a=1;b=2")

        # STRING:* is only served by values something else caused to exist.
        assert collected.values == [("b", "2"), ("b", "2")]

    def test_root_value_request(self, settings):
        parser, collected = make_parser("LINE", [], ["LINE:rootinputline"], settings=settings)

        parser.parse("raw line")

        assert collected.values == [("rootinputline", "raw line")]

    def test_chained_parse_is_repeatable(self, settings, foo_splitter, wildcard_splitter):
        parser, collected = make_parser(
            "LINE", [foo_splitter, wildcard_splitter], ["U:foo.bar"], settings=settings
        )

        for number in range(3):
            parser.parse(f"foo=bar:{number}")

        assert collected.values == [("foo.bar", "0"), ("foo.bar", "1"), ("foo.bar", "2")]
        assert wildcard_splitter.calls == ["foo", "foo", "foo"]

    def test_custom_root_name(self, line_splitter):
        settings = LogSpineSettings(_env_file=None, root_name="line")
        parser, collected = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)

        parser.parse("a=1")

        assert parser.root_identifier == "LINE:line"
        assert collected.values == [("a", "1")]


# =============================================================================
# Records
# =============================================================================


class TestRecords:
    def test_record_class_is_instantiated_per_parse(self, settings, line_splitter):
        parser = build(settings, line_splitter, record_class=AccessRecord)
        parser.add_target("set_value", ["STRING:a", "STRING:b"])

        first = parser.parse("a=1;b=2")
        second = parser.parse("a=3")

        assert isinstance(first, AccessRecord)
        assert first is not second
        assert first.values == {"a": "1", "b": "2"}
        assert second.values == {"a": "3"}

    def test_existing_record(self, settings, line_splitter):
        parser = build(settings, line_splitter, record_class=AccessRecord)
        parser.add_target("set_a", "STRING:a")
        record = AccessRecord()

        assert parser.parse("a=1", record=record) is record
        assert record.values == {"a": "1"}

    def test_no_record(self, settings, line_splitter):
        parser, _ = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)
        assert parser.parse("a=1") is None

    def test_parse_parsable(self, settings, line_splitter):
        parser, collected = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)
        parsable = parser.create_parsable(record="mine")
        parsable.set_root_dissection("LINE", "a=7")

        result = parser.parse_parsable(parsable)

        assert result is parsable
        assert result.record == "mine"
        assert result.get_value("STRING", "a") == "7"
        assert collected.values == [("a", "7")]


# =============================================================================
# Configuration
# =============================================================================


class TestConfiguration:
    def test_dissector_after_compile_is_rejected(self, settings, line_splitter, foo_splitter):
        parser, collected = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)
        plan = parser.compile()

        with pytest.raises(CannotChangeDissectorsAfterCompilationError):
            parser.add_dissector(foo_splitter)
        with pytest.raises(CannotChangeDissectorsAfterCompilationError):
            parser.drop_dissector(type(line_splitter))

        assert parser.plan is plan
        parser.parse("a=1")
        assert collected.values == [("a", "1")]

    def test_three_parameter_target_is_rejected(self, settings, line_splitter):
        parser = build(settings, line_splitter)

        with pytest.raises(InvalidFieldMethodSignatureError):
            parser.add_target(lambda a, b, c: None, ["STRING:a", "STRING:b"])

        assert parser.get_needed() == set()

    @pytest.mark.parametrize("bad_field", ["a", ":a", "STRING:"])
    def test_field_without_type_or_path_is_rejected(self, settings, line_splitter, bad_field):
        parser = build(settings, line_splitter)

        with pytest.raises(InvalidFieldIdentifierError):
            parser.add_target(lambda value: None, ["STRING:a", bad_field])

        assert parser.get_needed() == set()
        assert parser.plan is None

    def test_parser_usable_after_rejected_field(self, settings, line_splitter):
        parser = build(settings, line_splitter)
        collected = TargetCollector()
        with pytest.raises(InvalidFieldIdentifierError):
            parser.add_target(collected, "a")

        parser.add_target(collected, "STRING:a")
        parser.parse("a=1")

        assert collected.values == [("a", "1")]

    def test_method_target_without_record_class(self, settings, line_splitter):
        parser = build(settings, line_splitter)
        with pytest.raises(ConfigError):
            parser.add_target("set_a", "STRING:a")

    def test_no_root_type(self, settings):
        parser = Parser(settings=settings)
        parser.add_target(lambda value: None, "STRING:a")

        with pytest.raises(ConfigError, match="no root type"):
            parser.compile()
        with pytest.raises(ConfigError, match="no root type"):
            parser.get_possible_paths()

    def test_drop_dissector_before_compile(self, settings, line_splitter, foo_splitter):
        parser = build(settings, line_splitter, foo_splitter)
        parser.add_target(lambda value: None, "T:foo")

        parser.drop_dissector(foo_splitter.kind)

        with pytest.raises(MissingDissectorsError):
            parser.compile()

    def test_chaining(self, settings, line_splitter):
        parser = Parser("LINE", settings=settings)
        assert parser.add_dissector(line_splitter).add_target(lambda value: None, "STRING:a") is parser


class TestCompileLifecycle:
    def test_compile_is_idempotent(self, settings, line_splitter):
        parser, _ = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)

        plan = parser.compile()

        assert parser.compile() is plan
        assert parser.usable
        assert len(line_splitter.resets) == 1

    def test_lazy_compile_on_first_parse(self, settings, line_splitter):
        parser, _ = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)
        assert parser.plan is None

        parser.parse("a=1")

        assert parser.plan is not None

    def test_failed_compile(self, settings, line_splitter):
        parser, _ = make_parser("LINE", [line_splitter], ["STRING:a", "STRING:zz"], settings=settings)

        with pytest.raises(MissingDissectorsError) as exc_info:
            parser.compile()
        assert exc_info.value.missing == ["STRING:zz"]
        assert not parser.usable

        with pytest.raises(ParserNotUsableError):
            parser.compile()
        with pytest.raises(ParserNotUsableError):
            parser.parse("a=1")
        assert line_splitter.calls == []

    def test_new_target_invalidates_plan(self, settings, line_splitter, foo_splitter):
        parser, collected = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)
        first = parser.compile()

        parser.add_target(collected, "T:foo")
        assert parser.plan is None
        parser.add_dissector(foo_splitter)

        second = parser.compile()
        assert second is not first
        parser.parse("a=1;foo=2")
        assert collected.values == [("a", "1"), ("foo", "2")]

    def test_set_root_type_invalidates_plan(self, settings):
        splitter = KeyValueDissector("OTHER", "STRING", keys=["a"])
        parser, collected = make_parser("LINE", [splitter], ["STRING:a"], settings=settings)

        with pytest.raises(MissingDissectorsError):
            parser.compile()

        parser.set_root_type("OTHER")
        assert parser.plan is None
        assert parser.root_identifier == "OTHER:rootinputline"

        parser.parse("a=1")
        assert collected.values == [("a", "1")]

    def test_reset_before_every_parse(self, settings, line_splitter):
        parser, _ = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)

        parser.parse("a=1")
        parser.parse("a=2")

        # Once after compile, then once per parse.
        assert len(line_splitter.resets) == 3

    def test_reset_only_after_compile(self, line_splitter):
        settings = LogSpineSettings(_env_file=None, reset_each_parse=False)
        parser, _ = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)

        parser.parse("a=1")
        parser.parse("a=2")

        assert len(line_splitter.resets) == 1


# =============================================================================
# Introspection
# =============================================================================


class TestIntrospection:
    def test_get_needed(self, settings, line_splitter):
        parser, _ = make_parser("LINE", [line_splitter], ["STRING:a", "STRING:b"], settings=settings)
        assert parser.get_needed() == {"STRING:a", "STRING:b"}

    def test_useful_intermediate_fields(self, settings, foo_splitter, wildcard_splitter):
        parser, _ = make_parser("LINE", [foo_splitter, wildcard_splitter], ["U:foo.bar"], settings=settings)
        assert parser.get_useful_intermediate_fields() is None

        parser.compile()

        assert parser.get_useful_intermediate_fields() == {"rootinputline", "foo"}

    def test_missing_fields(self, settings, line_splitter):
        parser, _ = make_parser(
            "LINE", [line_splitter], ["STRING:a", "STRING:zz", "STRING:a.*", "IP:*"], settings=settings
        )

        assert parser.get_missing_fields() == {"STRING:zz"}
        # Asking again reports from the stored (unusable) plan.
        assert parser.get_missing_fields() == {"STRING:zz"}

    def test_nothing_missing(self, settings, line_splitter):
        parser, _ = make_parser("LINE", [line_splitter], ["STRING:a"], settings=settings)
        assert parser.get_missing_fields() == set()
        assert parser.usable

    def test_possible_paths_do_not_compile(self, settings, foo_splitter, wildcard_splitter, line_splitter):
        parser = build(settings, foo_splitter, wildcard_splitter)

        assert parser.get_possible_paths() == ["T:foo", "U:foo.*"]
        assert parser.plan is None

        parser.add_dissector(line_splitter)
        assert "STRING:a" in parser.get_possible_paths()

    def test_possible_paths_depth(self, settings):
        recursive = KeyValueDissector("T", "T", keys=["x"])
        parser = build(settings, recursive, root_type="T")

        assert parser.get_possible_paths(max_depth=2) == ["T:x", "T:x.x"]
        assert len(parser.get_possible_paths()) == settings.max_path_depth

    def test_repr(self, settings):
        parser = Parser("LINE", settings=settings)
        parser.add_target(TargetCollector(), "STRING:a")
        assert repr(parser) == "Parser(root_type='LINE', targets=1, open)"


class TestLogging:
    def test_set_root_type_rebinds_every_component(self, settings):
        splitter = KeyValueDissector("OTHER", "STRING", keys=["a"])

        with capture_logs() as logs:
            parser = Parser("LINE", settings=settings)
            parser.set_root_type("OTHER")
            parser.add_dissector(splitter)
            parser.add_target(lambda value: None, "STRING:a")
            parser.parse("a=1")

        events = {log["event"]: log for log in logs}
        for event in ("registry.registered", "plan_compiler.compiled", "engine.done"):
            assert events[event]["root_type"] == "OTHER"
