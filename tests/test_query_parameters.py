"""
Tests for QueryParameters and rule parsing.

Tests cover:
- Raw rule forms parsed into typed rules
- Immutability of the descriptor
- Malformed operators, arities and operand shapes
- exists / not_exists keys
- order_by, limit and columns normalization
"""

from datetime import date, datetime
from types import MappingProxyType

import pytest

from repokit.criteria import (
    Between,
    Comparison,
    DateEquals,
    In,
    IsNull,
    Like,
    NotNull,
    Operator,
    QueryParameters,
    RelationExists,
    parse_rule,
)
from shared.utils.exceptions import MalformedCriteriaError, ValidationError


class TestParseRule:
    """Tests for parse_rule()"""

    def test_bare_value_is_equality(self):
        """A value that is not a list means '='."""
        assert parse_rule("active") == Comparison(Operator.EQ, "active")

    def test_bare_none_is_equality_with_none(self):
        rule = parse_rule(None)
        assert rule == Comparison(Operator.EQ, None)

    @pytest.mark.parametrize("token", ["=", "!=", ">", ">=", "<", "<="])
    def test_comparison_operators(self, token):
        rule = parse_rule([token, 100])
        assert isinstance(rule, Comparison)
        assert rule.operator == Operator(token)
        assert rule.value == 100

    def test_operator_token_is_case_insensitive(self):
        assert parse_rule(["LIKE", "elaz"]) == Like("elaz")

    def test_tuple_form_is_accepted(self):
        assert parse_rule(("between", (1, 5))) == Between(1, 5)

    def test_like_wraps_operand(self):
        assert parse_rule(["like", "furkan"]).pattern == "%furkan%"

    def test_like_keeps_caller_wildcards(self):
        assert parse_rule(["like", "fur%"]).pattern == "fur%"

    def test_date_accepts_iso_string(self):
        rule = parse_rule(["date", "2025-08-10"])
        assert isinstance(rule, DateEquals)
        assert rule.day == date(2025, 8, 10)

    def test_date_accepts_datetime(self):
        rule = parse_rule(["date", datetime(2025, 8, 10, 23, 59)])
        assert rule.day == date(2025, 8, 10)

    def test_in_converts_values_to_tuple(self):
        assert parse_rule(["in", [1, 2, 3]]) == In((1, 2, 3))

    def test_null_and_not_null_take_no_operand(self):
        assert parse_rule(["null"]) == IsNull()
        assert parse_rule(["not_null"]) == NotNull()

    def test_typed_rule_returned_unchanged(self):
        rule = Between(50, 90)
        assert parse_rule(rule) is rule

    def test_unknown_operator(self):
        with pytest.raises(MalformedCriteriaError) as exc_info:
            parse_rule(["~=", 1], path="name")
        assert exc_info.value.path == "name"
        assert "Unknown operator" in exc_info.value.detail

    def test_empty_rule(self):
        with pytest.raises(MalformedCriteriaError):
            parse_rule([])

    def test_missing_operand(self):
        with pytest.raises(MalformedCriteriaError):
            parse_rule([">"])

    def test_extra_operand(self):
        with pytest.raises(MalformedCriteriaError):
            parse_rule(["null", True])

    def test_between_needs_two_bounds(self):
        with pytest.raises(MalformedCriteriaError) as exc_info:
            parse_rule(["between", [1, 2, 3]], path="score")
        assert exc_info.value.path == "score"

    def test_between_rejects_scalar(self):
        with pytest.raises(MalformedCriteriaError):
            parse_rule(["between", 5])

    def test_in_rejects_string(self):
        with pytest.raises(MalformedCriteriaError):
            parse_rule(["in", "abc"])

    @pytest.mark.parametrize("operand", [None, True, 1.5, ["a"], {"a": 1}])
    def test_like_rejects_non_text_operand(self, operand):
        with pytest.raises(MalformedCriteriaError) as exc_info:
            parse_rule(["like", operand], path="name")
        assert exc_info.value.path == "name"

    def test_like_accepts_integer_operand(self):
        assert parse_rule(["like", 42]).pattern == "%42%"

    @pytest.mark.parametrize("operand", [[1, 2], (1, 2), {1, 2}, {"a": 1}])
    def test_comparison_rejects_collection_operand(self, operand):
        with pytest.raises(MalformedCriteriaError) as exc_info:
            parse_rule(["=", operand], path="age")
        assert exc_info.value.path == "age"

    def test_bare_collection_is_not_equality(self):
        with pytest.raises(MalformedCriteriaError):
            QueryParameters(filters={"age": {25, 30}})

    def test_between_rejects_collection_bounds(self):
        with pytest.raises(MalformedCriteriaError):
            parse_rule(["between", [[1], 5]])

    def test_date_rejects_garbage(self):
        with pytest.raises(MalformedCriteriaError):
            parse_rule(["date", "yesterday"])

    def test_exists_is_not_a_column_operator(self):
        with pytest.raises(MalformedCriteriaError):
            parse_rule(["exists", "orders"])

    def test_malformed_criteria_is_a_validation_error(self):
        """Callers catching ValidationError also see criteria problems."""
        with pytest.raises(ValidationError) as exc_info:
            parse_rule(["nope", 1])
        assert exc_info.value.status_code == 400


class TestQueryParameters:
    """Tests for QueryParameters construction."""

    def test_defaults(self):
        criteria = QueryParameters()
        assert dict(criteria.filters) == {}
        assert dict(criteria.relation_filters) == {}
        assert criteria.relations == ()
        assert dict(criteria.order_by) == {}
        assert criteria.limit is None
        assert criteria.columns == ("*",)
        assert criteria.selects_all_columns

    def test_filters_are_parsed_and_read_only(self):
        criteria = QueryParameters(filters={"status": "active", "price": [">", 100]})

        assert isinstance(criteria.filters, MappingProxyType)
        assert criteria.filters["status"] == Comparison(Operator.EQ, "active")
        assert criteria.filters["price"] == Comparison(Operator.GT, 100)
        with pytest.raises(TypeError):
            criteria.filters["status"] = "inactive"

    def test_frozen(self):
        criteria = QueryParameters(limit=5)
        with pytest.raises(AttributeError):
            criteria.limit = 10

    def test_caller_mapping_changes_do_not_leak(self):
        filters = {"status": "active"}
        criteria = QueryParameters(filters=filters)
        filters["price"] = [">", 1]
        assert "price" not in criteria.filters

    def test_filter_order_is_preserved(self):
        criteria = QueryParameters(filters={"b": 1, "a": 2, "c": 3})
        assert list(criteria.filters) == ["b", "a", "c"]

    def test_exists_keys(self):
        criteria = QueryParameters(filters={"exists": ["orders", "profile"], "not_exists": "bans"})

        assert criteria.filters["exists"] == RelationExists(("orders", "profile"))
        assert criteria.filters["not_exists"] == RelationExists(("bans",), negated=True)
        assert criteria.filters["not_exists"].operator == Operator.NOT_EXISTS

    def test_exists_rejects_empty_list(self):
        with pytest.raises(MalformedCriteriaError) as exc_info:
            QueryParameters(filters={"exists": []})
        assert exc_info.value.path == "exists"

    def test_relation_filters_are_parsed(self):
        criteria = QueryParameters(
            relation_filters={"profile.categories": {"name": "Books", "priority": [">=", 2]}}
        )
        rules = criteria.relation_filters["profile.categories"]
        assert rules["name"] == Comparison(Operator.EQ, "Books")
        assert rules["priority"] == Comparison(Operator.GTE, 2)

    def test_relation_filters_reject_dotted_column(self):
        with pytest.raises(MalformedCriteriaError) as exc_info:
            QueryParameters(relation_filters={"profile": {"categories.name": "Books"}})
        assert exc_info.value.path == "profile.categories.name"

    def test_relation_filters_need_mapping(self):
        with pytest.raises(MalformedCriteriaError):
            QueryParameters(relation_filters={"profile": ["city", "Elazig"]})

    def test_empty_path_segment(self):
        with pytest.raises(MalformedCriteriaError):
            QueryParameters(filters={"profile..city": "x"})

    def test_order_by_direction_is_normalized(self):
        criteria = QueryParameters(order_by={"price": "DESC", "name": " Asc "})
        assert dict(criteria.order_by) == {"price": "desc", "name": "asc"}

    def test_order_by_rejects_unknown_direction(self):
        with pytest.raises(MalformedCriteriaError) as exc_info:
            QueryParameters(order_by={"price": "sideways"})
        assert exc_info.value.path == "price"

    @pytest.mark.parametrize("limit", [-1, 2.5, "10", True])
    def test_limit_must_be_non_negative_int(self, limit):
        with pytest.raises(MalformedCriteriaError):
            QueryParameters(limit=limit)

    def test_limit_zero_is_allowed(self):
        assert QueryParameters(limit=0).limit == 0

    def test_relations_and_columns_become_tuples(self):
        criteria = QueryParameters(relations=["profile", "orders", "profile"], columns=["id", "name"])
        assert criteria.relations == ("profile", "orders")
        assert criteria.columns == ("id", "name")
        assert not criteria.selects_all_columns

    def test_empty_columns_mean_all(self):
        assert QueryParameters(columns=[]).columns == ("*",)

    def test_replace_keeps_parsed_rules(self):
        criteria = QueryParameters(filters={"exists": "orders", "price": ["between", [1, 9]]})
        changed = criteria.replace(limit=3)

        assert changed.limit == 3
        assert changed.filters == criteria.filters
        assert criteria.limit is None
