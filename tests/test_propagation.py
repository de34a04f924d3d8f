import pytest

from lltutor.analysis.builders import build_first_graph, first_seeds
from lltutor.analysis.equivalence import DiscrepancyKind
from lltutor.analysis.nullable import NullabilitySolver
from lltutor.analysis.propagation import NodeStatus, PropagationEngine
from lltutor.errors import InvariantViolation, UserMistake


@pytest.fixture
def engine(scenario):
    NullabilitySolver(scenario).solve()
    g = build_first_graph(scenario)
    return PropagationEngine(g, first_seeds(g))


def _gid(engine, name):
    return engine.graph.find_node(name).id


def test_initial_statuses(engine):
    assert engine.status(_gid(engine, "SCC({a})")) == NodeStatus.READY
    assert engine.status(_gid(engine, "SCC(ε)")) == NodeStatus.READY
    assert engine.status(_gid(engine, "SCC(a)")) == NodeStatus.PENDING
    assert engine.computed(_gid(engine, "SCC({a})")) == {"a"}


def test_manual_activation_sequence(engine):
    for name in ["SCC({a})", "SCC(a)", "SCC(ε)", "SCC(A)", "SCC(S')"]:
        gid = _gid(engine, name)
        assert engine.status(gid) == NodeStatus.READY
        engine.activate(gid)
    assert engine.computed(_gid(engine, "SCC(A)")) == {"a"}
    assert engine.computed(_gid(engine, "SCC(S')")) == {"a"}
    assert engine.check().ok


def test_partial_incoming(engine):
    a_id = _gid(engine, "SCC(A)")
    engine.activate(_gid(engine, "SCC(ε)"))
    assert engine.has_partial_incoming(a_id)
    assert engine.status(a_id) == NodeStatus.PENDING


def test_activation_grows_and_deactivation_shrinks(engine):
    lit, term = _gid(engine, "SCC({a})"), _gid(engine, "SCC(a)")
    before = engine.computed(term)
    engine.activate(lit)
    grown = engine.computed(term)
    assert before <= grown and grown == {"a"}
    engine.deactivate(lit)
    assert engine.computed(term) <= grown
    assert engine.computed(term) == frozenset()
    assert engine.status(term) == NodeStatus.PENDING


def test_guards_leave_state_untouched(engine):
    lit, term = _gid(engine, "SCC({a})"), _gid(engine, "SCC(a)")
    with pytest.raises(UserMistake):
        engine.deactivate(lit)
    engine.activate(lit)
    with pytest.raises(UserMistake, match="already active"):
        engine.activate(lit)
    engine.activate(term)
    snap = engine.snapshot()
    with pytest.raises(UserMistake, match="while SCC\\(a\\) is active"):
        engine.deactivate(lit)
    assert engine.snapshot() == snap
    with pytest.raises(InvariantViolation):
        engine.activate("nope")


def test_solve_is_idempotent(engine):
    first = engine.solve()
    assert len(first) == len(engine.graph.groups())
    snap = engine.snapshot()
    assert engine.solve() == []
    assert engine.snapshot() == snap
    assert engine.all_active


def test_check_requires_every_group_active(engine):
    engine.activate(_gid(engine, "SCC({a})"))
    res = engine.check()
    assert not res.ok
    assert res.discrepancy.kind == DiscrepancyKind.INACTIVE_NODE
    assert "buttons to be clicked" in res.message


def test_stale_snapshot_is_reported(engine):
    engine.solve()
    a_id, start_id = _gid(engine, "SCC(A)"), _gid(engine, "SCC(S')")
    engine.states[start_id].incoming[a_id] = frozenset()
    res = engine.check()
    assert res.discrepancy.kind == DiscrepancyKind.STALE_SET
    assert res.discrepancy.name == "SCC(S')"
    engine.solve()
    assert engine.check().ok


def test_solve_repairs_premature_activation(engine):
    a_id, start_id = _gid(engine, "SCC(A)"), _gid(engine, "SCC(S')")
    engine.activate(a_id)
    engine.activate(start_id)
    assert engine.computed(start_id) == frozenset()
    done = engine.solve()
    assert a_id not in done and start_id not in done
    assert engine.computed(a_id) == {"a"}
    assert engine.computed(start_id) == {"a"}
    assert engine.check().ok
    assert engine.solve() == []


def test_successors_and_predecessors(engine):
    a_id = _gid(engine, "SCC(A)")
    preds = {engine.graph.node(p).symbol_name for p in engine.predecessors(a_id)}
    assert preds == {"SCC(a)", "SCC(ε)"}
    assert [engine.graph.node(s).symbol_name for s in engine.successors(a_id)] == ["SCC(S')"]
    assert engine.predecessors(_gid(engine, "SCC({a})")) == []
    with pytest.raises(InvariantViolation):
        engine.predecessors("nope")


def test_finish_locks_the_phase(engine):
    with pytest.raises(UserMistake):
        engine.finish()
    engine.solve()
    engine.finish()
    assert engine.finished
    with pytest.raises(UserMistake, match="already finished"):
        engine.deactivate(_gid(engine, "SCC(S')"))
    assert engine.solve() == []


def test_reset(engine):
    engine.solve()
    engine.reset()
    assert not any(st.active for st in engine.states.values())
    assert engine.computed(_gid(engine, "SCC(A)")) == frozenset()


def test_initially_active(scenario):
    NullabilitySolver(scenario).solve()
    g = build_first_graph(scenario)
    eps = g.find_node("SCC(ε)").id
    e = PropagationEngine(g, first_seeds(g), initially_active=[eps])
    assert e.status(eps) == NodeStatus.ACTIVE
    assert e.has_partial_incoming(g.find_node("SCC(A)").id)
