"""Tests for message template rendering."""

import pytest

from check_database.check.render import (
    ResultRenderer,
    build_variables,
    format_float,
    format_value,
    normalize_template,
)
from check_database.check.threshold import Level, ThresholdResult
from check_database.config.models import Database, Parameter, Query
from check_database.core.exceptions import TemplateRenderError


def make_variables(result: float = 5.0, level: Level = Level.WARNING) -> dict:
    query = Query(query="SELECT 1", params=[Parameter(name="a")], desc="demo").bind({"a": "foo"})
    db = Database(type="postgres", hostname="pg1", port=5432, database="app")
    threshold = ThresholdResult(result=result, warn=10.0, critical=1.0, level=level)
    return build_variables("main", db, "demo", query, threshold)


class TestNormalizeTemplate:
    def test_leading_dot(self):
        assert normalize_template("{{.Result}}") == "{{ Result}}"

    def test_leading_dot_with_space_and_trim(self):
        assert normalize_template("{{- .Limit.Warn }}") == "{{- Limit.Warn }}"

    def test_if_block(self):
        assert normalize_template("{% if .Level %}x{% endif %}") == "{% if Level %}x{% endif %}"

    def test_plain_jinja_untouched(self):
        assert normalize_template("{{ Result }} {{ 0.5 }}") == "{{ Result }} {{ 0.5 }}"


class TestFormatValue:
    def test_integral_float(self):
        assert format_value(5.0) == "5"
        assert format_value(100.0) == "100"
        assert format_value(-42.0) == "-42"

    def test_fractional_float(self):
        assert format_value(2.5) == "2.5"
        assert format_value(0.1) == "0.1"
        assert format_value(0.0001) == "0.0001"

    def test_large_values_use_exponent(self):
        assert format_float(999999.0) == "999999"
        assert format_float(1234567.0) == "1.234567e+06"
        assert format_float(1e6) == "1e+06"
        assert format_float(-2.5e21) == "-2.5e+21"

    def test_small_values_use_exponent(self):
        assert format_float(0.00001) == "1e-05"
        assert format_float(1.5e-7) == "1.5e-07"

    def test_special_values(self):
        assert format_float(0.0) == "0"
        assert format_float(float("inf")) == "+Inf"
        assert format_float(float("-inf")) == "-Inf"
        assert format_float(float("nan")) == "NaN"

    def test_other_types_untouched(self):
        assert format_value("x") == "x"
        assert format_value(3) == 3


class TestResultRenderer:
    def test_result_and_level_name(self):
        renderer = ResultRenderer("{{.Result}} is {{.LevelName}}")
        assert renderer.render(make_variables()) == "5 is warning"

    def test_fractional_result(self):
        renderer = ResultRenderer("{{ Result }}")
        assert renderer.render(make_variables(result=2.75)) == "2.75"

    def test_all_variables(self):
        renderer = ResultRenderer(
            "{{ QueryName }}@{{ DBName }} {{ DB.hostname }} {{ Level }} "
            "{{ Limit.Warn }}/{{ Limit.Critical }} a={{ Query.params[0].value }}"
        )
        assert renderer.render(make_variables()) == "demo@main pg1 1 10/1 a=foo"

    def test_record_field_names(self):
        renderer = ResultRenderer(
            "{{.DB.Hostname}}:{{.DB.Port}}/{{.DB.Database}} {{.Query.Doc}} "
            "{{ .Query.Parameters[0].Name }}={{ .Query.Parameters[0].Value }}"
        )
        assert renderer.render(make_variables()) == "pg1:5432/app demo a=foo"

    def test_large_result_in_message(self):
        renderer = ResultRenderer("{{.Result}}")
        assert renderer.render(make_variables(result=1234567.0)) == "1.234567e+06"

    def test_syntax_error_at_compile(self):
        with pytest.raises(TemplateRenderError, match="could not parse template of query 'q'"):
            ResultRenderer("{{ Result ", name="q")

    def test_unknown_variable_at_render(self):
        renderer = ResultRenderer("{{ Missing }}", name="q")
        with pytest.raises(TemplateRenderError, match="could not render template of query 'q'"):
            renderer.render(make_variables())

    def test_unknown_field_at_render(self):
        renderer = ResultRenderer("{{ DB.nope }}")
        with pytest.raises(TemplateRenderError):
            renderer.render(make_variables())

    def test_empty_template(self):
        assert ResultRenderer("").render(make_variables()) == ""
