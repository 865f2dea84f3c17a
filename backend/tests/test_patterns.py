"""
Tests for rule pattern compilation.
"""

from careroute.models.config import RouteRule
from careroute.routing.patterns import RuleMatcher, compile_pattern


class TestCompilePattern:
    def test_prefix_wildcard(self):
        pattern = compile_pattern("healthcare.*")
        assert pattern.fullmatch("healthcare.risk_analysis")
        assert not pattern.fullmatch("other.topic")

    def test_star_matches_everything(self):
        pattern = compile_pattern("*")
        for topic in ["", "planner.risk", "anything at all"]:
            assert pattern.fullmatch(topic)

    def test_star_spans_newlines(self):
        assert compile_pattern("*").fullmatch("line1\nline2")
        assert compile_pattern("notes.*").fullmatch("notes.first visit\nsecond visit")

    def test_case_insensitive(self):
        assert compile_pattern("Planner.*").fullmatch("PLANNER.Risk")

    def test_dot_is_literal(self):
        pattern = compile_pattern("healthcare.*")
        assert not pattern.fullmatch("healthcareXrisk")

    def test_anchored_both_ends(self):
        pattern = compile_pattern("planner")
        assert pattern.fullmatch("planner")
        assert not pattern.fullmatch("planner.extra")
        assert not pattern.fullmatch("the planner")

    def test_metacharacters_escaped(self):
        pattern = compile_pattern("a+b(c)|[d]?")
        assert pattern.fullmatch("a+b(c)|[d]?")
        assert not pattern.fullmatch("aab")
        assert not pattern.fullmatch("[d]")

    def test_wildcard_in_middle(self):
        pattern = compile_pattern("planner.*.urgent")
        assert pattern.fullmatch("planner.falls.urgent")
        assert not pattern.fullmatch("planner.falls.routine")


class TestRuleMatcher:
    def test_first_match_in_declaration_order(self):
        rules = [
            RouteRule(name="specific", match="planner.risk_*", provider="anthropic", model="a"),
            RouteRule(name="broad", match="planner.*", provider="openai", model="b"),
        ]
        matcher = RuleMatcher(rules)
        assert matcher.first_match("planner.risk_analysis").name == "specific"
        assert matcher.first_match("planner.recommendations").name == "broad"
        assert matcher.first_match("reviewer.check") is None

    def test_patterns_compiled_once(self):
        matcher = RuleMatcher([RouteRule(name="r", match="x.*", provider="p", model="m")])
        assert matcher.patterns() == {"r": r"^x\..*$"}
        assert len(matcher) == 1
