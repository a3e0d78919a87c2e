"""Tests for rule construction."""

import pytest

from rulegen.primitives import cube, cube_mesh
from rulegen.rule import FunctionProducer, Invocation, Producer, Rule
from rulegen.transforms import Tf, TransformSet, replicate


class CountingProducer:
    def __init__(self):
        self.calls = 0

    def expand(self):
        self.calls += 1
        return cube()


class TestRule:
    def test_empty(self):
        assert len(Rule()) == 0
        assert len(Rule.empty()) == 0

    def test_push_one_entry_per_branch(self):
        rule = Rule().push(replicate(4, Tf.translate(x=1)), cube_mesh())
        assert len(rule) == 4
        assert all(inv.child is cube_mesh() for inv in rule.invocations)

    def test_push_shares_child(self):
        child = cube()
        rule = Rule().push(replicate(10, Tf.translate(y=1)), child)
        assert {id(inv.child) for inv in rule.invocations} == {id(child)}

    def test_push_empty_set_is_untransformed(self):
        rule = Rule().push(TransformSet(), cube_mesh())
        assert rule.invocations == (Invocation(None, cube_mesh()),)

    def test_push_single_argument(self):
        rule = Rule().push(cube_mesh())
        assert rule.invocations[0].transform is None

    def test_push_returns_new_rule(self):
        base = Rule()
        pushed = base.push(cube_mesh())
        assert len(base) == 0
        assert len(pushed) == 1

    def test_push_keeps_order(self):
        a, b = Tf.translate(x=1), Tf.translate(x=2)
        rule = Rule().push(a, cube_mesh()).push(b, cube_mesh())
        assert [inv.transform for inv in rule.invocations] == [a, b]

    def test_push_list_composes(self):
        rule = Rule().push([Tf.translate(x=1), Tf.scale(2)], cube_mesh())
        assert len(rule) == 1

    def test_of(self):
        rule = Rule.of((Tf.translate(x=1), cube_mesh()), (None, cube()))
        assert len(rule) == 2
        assert rule.invocations[1].transform is None

    def test_of_matches_chained_push(self):
        pairs = [(Tf.translate(x=i), cube_mesh()) for i in range(5)]
        pairs.append((TransformSet(), cube()))
        chained = Rule()
        for transforms, child in pairs:
            chained = chained.push(transforms, child)
        assert Rule.of(*pairs).invocations == chained.invocations

    def test_of_from_generator(self):
        rule = Rule.of(*((replicate(2, Tf.translate(z=1)), cube_mesh()) for _ in range(500)))
        assert len(rule) == 1000
        assert all(inv.child is cube_mesh() for inv in rule.invocations)

    def test_transformed_wraps(self):
        inner = cube()
        outer = inner.transformed(replicate(2, Tf.translate(x=1)))
        assert len(outer) == 2
        assert outer.invocations[0].child is inner

    def test_rule_is_producer(self):
        rule = cube()
        assert isinstance(rule, Producer)
        assert rule.expand() is rule

    def test_construction_never_expands(self):
        producer = CountingProducer()
        Rule().push(replicate(5, Tf.translate(x=1)), producer)
        assert producer.calls == 0

    def test_callable_wrapped(self):
        rule = Rule().push(cube)
        child = rule.invocations[0].child
        assert isinstance(child, FunctionProducer)
        assert child.expand().invocations[0].child is cube_mesh()

    def test_function_producer_checks_result(self):
        with pytest.raises(TypeError, match="expected Rule"):
            FunctionProducer(lambda: 42).expand()

    def test_rejects_bad_child(self):
        with pytest.raises(TypeError, match="Cannot invoke"):
            Rule().push(Tf.translate(x=1), 42)

    def test_rejects_bad_transform(self):
        with pytest.raises(TypeError, match="transform argument"):
            Rule().push("up", cube_mesh())
