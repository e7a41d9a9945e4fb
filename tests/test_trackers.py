"""
Tests for the per-line scan state: loop scope by indentation, literal bindings,
and single-line finding ranges.
"""

from codespeed.rules.common import BindingTracker, ScopeTracker, build_range, indent_width


def _inside(lines):
    scope = ScopeTracker()
    return [scope.feed(line) for line in lines]


def test_indent_width_counts_leading_whitespace():
    assert indent_width("    x = 1") == 4
    assert indent_width("\tx") == 1
    assert indent_width("x") == 0
    assert indent_width("") == 0


def test_loop_header_is_not_inside_its_own_loop():
    assert _inside(["for x in xs:", "    y = 1", "z = 2"]) == [False, True, False]


def test_while_loops_open_a_scope():
    assert _inside(["while True:", "    step()"]) == [False, True]


def test_nested_loops_are_boolean_not_depth():
    lines = [
        "for a in b:",
        "    for c in d:",
        "        e()",
        "    f()",
        "g()",
    ]
    assert _inside(lines) == [False, True, True, True, False]


def test_dedent_to_header_column_closes_loop():
    lines = [
        "def f():",
        "    for i in range(3):",
        "        work(i)",
        "    done()",
    ]
    assert _inside(lines) == [False, False, True, False]


def test_keywords_need_trailing_space_and_exact_case():
    assert _inside(["format(x)", "    y"]) == [False, False]
    assert _inside(["For x in y:", "    z"]) == [False, False]
    assert _inside(["whilex:", "    z"]) == [False, False]


def test_empty_line_closes_open_loops():
    assert _inside(["for x in y:", "", "    z"]) == [False, False, False]


def test_binding_tracker_records_list_and_tuple_literals():
    b = BindingTracker()
    b.feed("allowed = [1, 2, 3]")
    b.feed("    pair = (")
    assert b.kinds == {"allowed": "list", "pair": "tuple"}


def test_binding_tracker_overwrites_but_never_forgets():
    b = BindingTracker()
    b.feed("items = [1]")
    b.feed("items = (1, 2)")
    assert b.kinds["items"] == "tuple"
    b.feed("items = compute()")
    assert b.kinds["items"] == "tuple"


def test_binding_tracker_ignores_comparisons():
    b = BindingTracker()
    b.feed("if x == [1]:")
    b.feed("x.y = [1]")
    assert b.kinds == {}


def test_build_range_on_first_token_occurrence():
    r = build_range(3, "        s += 'x' += ''", "+=")
    assert (r.start_line, r.start_char, r.end_line, r.end_char) == (3, 10, 3, 12)


def test_build_range_missing_token_falls_back_to_column_zero():
    r = build_range(0, "abc", " in ")
    assert (r.start_char, r.end_char) == (0, 4)
