"""
Unit tests for query building.

Tests verify that:
1. Each filtered field yields exactly one top-level AND clause
2. Equality values on one field are ORed, comparisons are ANDed
3. Literals are escaped (quoted strings, bare numbers/booleans)
4. Field selections always include the identifier field
5. Bad input fails before any network call
"""

import pytest

from openfema_client.api.errors import InvalidQueryError, UnknownDatasetError
from openfema_client.data.query_builder import (
    QueryBuilder,
    format_literal,
    parse_predicate,
    split_filter_arg,
)


def _top_level_clauses(expression: str):
    """Split on ' and ' only outside parentheses."""
    clauses, depth, current = [], 0, ""
    tokens = expression.split(" ")
    for token in tokens:
        depth += token.count("(") - token.count(")")
        if token == "and" and depth == 0:
            clauses.append(current.strip())
            current = ""
        else:
            current += " " + token
    clauses.append(current.strip())
    return clauses


class TestDatasetResolution:
    def test_dataset_matched_case_insensitively(self, catalog):
        descriptor = QueryBuilder(catalog).build("fimanfipclaims")
        assert descriptor.dataset_id == "FimaNfipClaims"
        assert descriptor.version == 2
        assert descriptor.path == "v2/FimaNfipClaims"

    def test_unknown_dataset_raises(self, catalog):
        with pytest.raises(UnknownDatasetError) as exc_info:
            QueryBuilder(catalog).build("FimaNfipClaimz")
        assert "FimaNfipClaims" in exc_info.value.suggestions


class TestFilterExpression:
    def test_scenario_county_and_year_range(self, catalog):
        expression = QueryBuilder(catalog).build_filter(
            {"countyCode": "= 01001", "yearOfLoss": [">= 2010", "<= 2020"]},
            catalog.field_types("FimaNfipClaims"),
        )
        assert expression == (
            "countyCode eq '01001' and (yearOfLoss ge 2010 and yearOfLoss le 2020)"
        )

    def test_one_top_level_clause_per_field(self, catalog):
        spec = {
            "state": ["VA", "MD", "DC"],
            "yearOfLoss": [">= 2010", "<= 2020", "!= 2015"],
            "countyCode": "01001",
        }
        expression = QueryBuilder(catalog).build_filter(spec)
        clauses = _top_level_clauses(expression)
        assert len(clauses) == 3
        assert clauses[0] == "(state eq 'VA' or state eq 'MD' or state eq 'DC')"
        assert clauses[1] == "(yearOfLoss ge 2010 and yearOfLoss le 2020 and yearOfLoss ne 2015)"

    def test_equalities_or_joined_inside_and_group(self, catalog):
        expression = QueryBuilder(catalog).build_filter({"yearOfLoss": ["2010", "2011", "< 2030"]})
        assert expression == "((yearOfLoss eq 2010 or yearOfLoss eq 2011) and yearOfLoss lt 2030)"

    def test_empty_spec_gives_no_filter(self, catalog):
        assert QueryBuilder(catalog).build_filter({}) is None
        assert QueryBuilder(catalog).build_filter(None) is None

    def test_invalid_field_name_rejected(self, catalog):
        with pytest.raises(InvalidQueryError):
            QueryBuilder(catalog).build_filter({"state or 1 eq 1": "VA"})

    def test_empty_predicate_list_rejected(self, catalog):
        with pytest.raises(InvalidQueryError):
            QueryBuilder(catalog).build_filter({"state": []})

    def test_operator_without_value_rejected(self, catalog):
        with pytest.raises(InvalidQueryError):
            QueryBuilder(catalog).build_filter({"yearOfLoss": ">="})


class TestLiterals:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2010", "2010"),
            ("-3.5", "-3.5"),
            ("01001", "'01001'"),
            ("VA", "'VA'"),
            ("O'Hare", "'O''Hare'"),
            ("'quoted'", "'quoted'"),
            ("TRUE", "true"),
            (True, "true"),
            (42, "42"),
            (None, "null"),
        ],
    )
    def test_format_literal(self, raw, expected):
        assert format_literal(raw) == expected

    def test_string_typed_field_keeps_numbers_quoted(self):
        assert format_literal("20001", "string") == "'20001'"

    def test_date_typed_field_is_quoted(self):
        assert format_literal("2020-01-01", "date") == "'2020-01-01'"

    @pytest.mark.parametrize(
        "raw,operator,literal",
        [
            (">= 2010", "ge", "2010"),
            ("<=2020", "le", "2020"),
            ("!= VA", "ne", "'VA'"),
            ("<> VA", "ne", "'VA'"),
            ("== 5", "eq", "5"),
            ("> 1", "gt", "1"),
            ("< 1", "lt", "1"),
            ("ge 2010", "ge", "2010"),
            ("ne 'VA'", "ne", "'VA'"),
            ("VA", "eq", "'VA'"),
            ("Le Mars", "eq", "'Le Mars'"),
            ("Eq Street", "eq", "'Eq Street'"),
        ],
    )
    def test_parse_predicate(self, raw, operator, literal):
        predicate = parse_predicate(raw)
        assert predicate.operator == operator
        assert predicate.literal == literal

    def test_city_starting_with_operator_word_stays_equality(self, catalog):
        expression = QueryBuilder(catalog).build_filter({"reportedCity": "Le Mars"})
        assert expression == "reportedCity eq 'Le Mars'"


class TestSelection:
    def test_identifier_added_when_missing(self, catalog):
        descriptor = QueryBuilder(catalog).build(
            "FimaNfipClaims", selected_fields=["countyCode", "yearOfLoss", "countyCode"]
        )
        assert descriptor.selected_fields == ("countyCode", "yearOfLoss", "id")

    def test_identifier_not_duplicated(self, catalog):
        descriptor = QueryBuilder(catalog).build("FimaNfipClaims", selected_fields=["id", "state"])
        assert descriptor.selected_fields == ("id", "state")

    def test_all_selects_everything(self, catalog):
        assert QueryBuilder(catalog).build("FimaNfipClaims", selected_fields="all").selected_fields is None
        assert QueryBuilder(catalog).build("FimaNfipClaims").selected_fields is None

    def test_comma_separated_string(self, catalog):
        descriptor = QueryBuilder(catalog).build("FimaNfipClaims", selected_fields="state, yearOfLoss")
        assert descriptor.selected_fields == ("state", "yearOfLoss", "id")


class TestDescriptorParams:
    def test_to_params(self, catalog):
        descriptor = QueryBuilder(catalog).build(
            "FimaNfipClaims",
            selected_fields=["state"],
            filter_spec={"state": "VA"},
            page_size=1000,
            offset=2000,
        )
        assert descriptor.to_params() == {
            "$top": 1000,
            "$skip": 2000,
            "$inlinecount": "allpages",
            "$filter": "state eq 'VA'",
            "$select": "state,id",
        }

    def test_at_page_keeps_offset_aligned(self, catalog):
        base = QueryBuilder(catalog).build("FimaNfipClaims", page_size=250)
        page = base.at_page(3, limit=100)
        assert page.offset == 750
        assert page.top == 100
        assert page.offset % page.page_size == 0
        assert base.offset == 0

    def test_misaligned_offset_rejected(self, catalog):
        with pytest.raises(ValueError):
            QueryBuilder(catalog).build("FimaNfipClaims", page_size=1000, offset=10)


def test_split_filter_arg_groups_by_field():
    spec = split_filter_arg(["yearOfLoss=>= 2010", "yearOfLoss=<= 2020", "countyCode== 01001"])
    assert spec == {"yearOfLoss": [">= 2010", "<= 2020"], "countyCode": ["= 01001"]}
