import pytest

from lltutor.grammar.parser import parse_grammar_source, parse_production


def test_production_symbols_split_per_character():
    pt = parse_production("A -> a B+")
    assert pt.left == "A"
    assert pt.right == ["a", "B", "+"]


def test_whitespace_is_ignored_on_the_right_side():
    assert parse_production("A->aB").right == parse_production("A ->  a   B ").right


@pytest.mark.parametrize("text", ["A ->", "A -> ε", "A->   ε  "])
def test_epsilon_production_has_empty_right_side(text):
    assert parse_production(text).right == []


def test_arrow_characters_may_appear_on_the_right():
    assert parse_production("P -> n->V").right == ["n", "-", ">", "V"]


def test_missing_arrow():
    with pytest.raises(SyntaxError, match="form A->"):
        parse_production("A a")


def test_left_side_must_be_single_symbol():
    with pytest.raises(SyntaxError, match="single nonterminal"):
        parse_production("AB -> c")


def test_left_side_must_be_nonterminal():
    with pytest.raises(SyntaxError, match="must be a nonterminal") as ei:
        parse_production("a -> b", line=4)
    assert "at 4:1" in str(ei.value)


def test_disallowed_symbol_has_caret():
    with pytest.raises(SyntaxError) as ei:
        parse_production("A -> a§")
    msg = str(ei.value)
    assert '"§" is not allowed' in msg
    assert msg.splitlines()[-1] == "      ^"


def test_empty_text():
    with pytest.raises(SyntaxError, match="Please enter a production"):
        parse_production("   ")


def test_grammar_source_skips_comments_and_blank_lines():
    src = parse_grammar_source("// head\n\nA -> a\n  // indented\n%start A\nA ->\n")
    assert [p.line for p in src.productions] == [3, 6]
    assert src.start == "A"
    assert src.start_line == 5


def test_duplicate_start_directive():
    with pytest.raises(SyntaxError, match="Duplicate %start"):
        parse_grammar_source("%start A\n%start B\nA -> a\n")


def test_start_directive_needs_nonterminal():
    with pytest.raises(SyntaxError, match="start symbol must be a nonterminal"):
        parse_grammar_source("%start a\nA -> a\n")


def test_grammar_without_productions():
    with pytest.raises(SyntaxError, match="no productions"):
        parse_grammar_source("// nothing\n\n")
