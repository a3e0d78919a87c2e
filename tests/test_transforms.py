"""Tests for the transform algebra and transform set combinators."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from rulegen.color import BASE_COLOR, ColorDelta, ColorOverride, Hsv
from rulegen.transforms import Tf, Transform, TransformSet, compose, cross, replicate, seq


def _sample_transforms():
    return [
        Tf.translate(1, 2, 3),
        Tf.rotate_x(30),
        Tf.scale_by(2, 0.5, 1),
        Tf.rotate_z(-45),
        Tf.hue(40),
        Tf.color(Hsv(100.0, 0.5, 0.5)),
    ]


class TestTransform:
    def test_identity_leaves_points(self):
        point = np.array([1.5, -2.0, 3.0])
        assert_allclose(Transform.identity().apply_to(point), point)

    def test_translate(self):
        assert_allclose(Tf.translate(1, 2, 3).apply_to([0, 0, 0]), [1, 2, 3])

    def test_translate_keyword_axes(self):
        assert_allclose(Tf.translate(y=1.1).apply_to([1, 1, 1]), [1, 2.1, 1])

    def test_scale(self):
        assert_allclose(Tf.scale(2).apply_to([1, -1, 0.5]), [2, -2, 1])

    def test_scale_about_frame_origin(self):
        moved_then_scaled = compose(Tf.scale(2), Tf.translate(x=1))
        assert_allclose(moved_then_scaled.apply_to([0, 0, 0]), [2, 0, 0])

    def test_rotate_z_quarter_turn(self):
        assert_allclose(Tf.rotate_z(90).apply_to([1, 0, 0]), [0, 1, 0], atol=1e-12)

    def test_rotate_y_quarter_turn(self):
        assert_allclose(Tf.rotate_y(90).apply_to([0, 0, 1]), [1, 0, 0], atol=1e-12)

    def test_rotate_x_quarter_turn(self):
        assert_allclose(Tf.rotate_x(90).apply_to([0, 1, 0]), [0, 0, 1], atol=1e-12)

    def test_rotation_inverse(self):
        point = np.array([0.3, -1.2, 2.5])
        for rotate in (Tf.rotate_x, Tf.rotate_y, Tf.rotate_z):
            round_trip = compose(rotate(37.5), rotate(-37.5))
            assert_allclose(round_trip.apply_to(point), point, atol=1e-12)

    def test_apply_to_many(self):
        points = np.array([[0, 0, 0], [1, 1, 1]])
        result = Tf.translate(z=1).apply_to(points)
        assert result.shape == (2, 3)
        assert_allclose(result, [[0, 0, 1], [1, 1, 2]])

    def test_spatial_is_read_only(self):
        t = Tf.translate(1, 0, 0)
        with pytest.raises(ValueError):
            t.spatial[0, 3] = 5.0

    def test_constructor_copies_matrix(self):
        m = np.eye(4)
        t = Transform(spatial=m)
        m[0, 3] = 9.0
        assert t.spatial[0, 3] == 0.0

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError, match="4x4"):
            Transform(spatial=np.eye(3))

    def test_spatial_constructors_have_neutral_color(self):
        assert Tf.rotate_y(10).color_op == ColorDelta()

    def test_color_constructors_have_identity_spatial(self):
        assert_allclose(Tf.hue(10).spatial, np.eye(4))
        assert_allclose(Tf.color("ff0000").spatial, np.eye(4))

    def test_color_from_hex(self):
        assert Tf.color("ff0000").color_op == ColorOverride(Hsv(0.0, 1.0, 1.0))

    def test_normals_under_non_uniform_scale(self):
        t = Tf.scale_by(1, 2, 1)
        n = t.apply_to_normals(np.array([[1.0, 1.0, 0.0]]))
        expected = np.array([1.0, 0.5, 0.0]) / np.linalg.norm([1.0, 0.5, 0.0])
        assert_allclose(n[0], expected)

    def test_normals_ignore_translation(self):
        n = Tf.translate(5, 5, 5).apply_to_normals(np.array([[0.0, 0.0, 1.0]]))
        assert_allclose(n, [[0, 0, 1]])

    def test_resolved_color_default_base(self):
        assert Transform.identity().resolved_color() == BASE_COLOR


class TestCompose:
    def test_associative(self):
        ts = _sample_transforms()
        for a, b, c in zip(ts, ts[1:], ts[2:]):
            left = compose(compose(a, b), c)
            right = compose(a, compose(b, c))
            assert_allclose(left.spatial, right.spatial, atol=1e-12)
            assert left.color_op == right.color_op

    def test_not_commutative(self):
        a, b = Tf.translate(x=1), Tf.rotate_z(90)
        assert not np.allclose(compose(a, b).spatial, compose(b, a).spatial)

    def test_inner_applies_first(self):
        t = compose(Tf.translate(x=1), Tf.scale(2))
        assert_allclose(t.apply_to([1, 0, 0]), [3, 0, 0])

    def test_matmul_operator(self):
        a, b = Tf.translate(y=2), Tf.rotate_x(30)
        assert_allclose((a @ b).spatial, compose(a, b).spatial)

    def test_identity_is_neutral(self):
        t = Tf.translate(1, 2, 3)
        assert_allclose(compose(Transform.identity(), t).spatial, t.spatial)
        assert_allclose(compose(t, Transform.identity()).spatial, t.spatial)

    def test_override_precedence(self):
        outer = Tf.color(Hsv(0.0, 1.0, 1.0))
        inner = Tf.color(Hsv(240.0, 1.0, 1.0))
        assert compose(outer, inner).resolved_color() == Hsv(240.0, 1.0, 1.0)
        assert compose(Tf.hue(30), inner).resolved_color() == Hsv(240.0, 1.0, 1.0)

    def test_delta_below_override(self):
        t = compose(Tf.color(Hsv(100.0, 1.0, 1.0)), Tf.hue(20))
        assert t.resolved_color() == Hsv(120.0, 1.0, 1.0)


class TestTransformSet:
    def test_of_none_is_empty(self):
        assert len(TransformSet.of(None)) == 0

    def test_of_transform(self):
        t = Tf.translate(x=1)
        assert TransformSet.of(t).branches == (t,)

    def test_of_set_is_same(self):
        s = replicate(2, Tf.translate(x=1))
        assert TransformSet.of(s) is s

    def test_of_list_composes(self):
        s = TransformSet.of([Tf.translate(x=1), Tf.scale(2)])
        assert len(s) == 1
        assert_allclose(s[0].apply_to([1, 0, 0]), [3, 0, 0])

    def test_of_rejects_other(self):
        with pytest.raises(TypeError, match="transform argument"):
            TransformSet.of(3)


class TestReplicate:
    def test_offsets_one_to_n(self):
        s = replicate(3, Tf.translate(y=1))
        ys = [t.apply_to([0, 0, 0])[1] for t in s]
        assert_allclose(ys, [1, 2, 3])

    def test_no_identity_branch(self):
        s = replicate(1, Tf.translate(x=2))
        assert_allclose(s[0].apply_to([0, 0, 0]), [2, 0, 0])

    def test_zero_is_empty(self):
        assert len(replicate(0, Tf.translate(x=1))) == 0

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            replicate(-1, Tf.translate(x=1))

    def test_multi_branch_source_is_source_major(self):
        s = replicate(2, TransformSet((Tf.translate(x=1), Tf.translate(y=1))))
        assert len(s) == 4
        points = [tuple(t.apply_to([0, 0, 0])) for t in s]
        assert points == [(1, 0, 0), (2, 0, 0), (0, 1, 0), (0, 2, 0)]

    def test_colour_accumulates(self):
        s = replicate(3, Tf.hue(10))
        assert [t.color_op.hue for t in s] == [10, 20, 30]


class TestCrossAndSeq:
    def test_cross_size_and_order(self):
        a = TransformSet((Tf.translate(x=1), Tf.translate(x=2)))
        b = TransformSet((Tf.translate(y=1), Tf.translate(y=2), Tf.translate(y=3)))
        product = cross(a, b)
        assert len(product) == 6
        points = [tuple(t.apply_to([0, 0, 0])) for t in product]
        assert points[:3] == [(1, 1, 0), (1, 2, 0), (1, 3, 0)]
        assert points[3] == (2, 1, 0)

    def test_mul_operator(self):
        a = replicate(2, Tf.translate(x=1))
        assert len(a * replicate(3, Tf.translate(y=1))) == 6

    def test_torus_product_distinct(self):
        ring = replicate(36, [Tf.rotate_z(10), Tf.translate(y=0.1)])
        sweep = replicate(36, [Tf.rotate_y(10), Tf.translate(z=1.2)])
        product = sweep * ring
        assert len(product) == 1296
        matrices = {tuple(np.round(t.spatial, 9).ravel()) for t in product}
        assert len(matrices) == 1296

    def test_seq_of_singles_is_composition(self):
        s = seq(Tf.translate(x=1), Tf.scale(2), Tf.translate(y=1))
        expected = compose(compose(Tf.translate(x=1), Tf.scale(2)), Tf.translate(y=1))
        assert len(s) == 1
        assert_allclose(s[0].spatial, expected.spatial)

    def test_seq_first_stage_varies_slowest(self):
        s = seq(replicate(2, Tf.translate(x=1)), replicate(2, Tf.translate(y=1)))
        points = [tuple(t.apply_to([0, 0, 0])) for t in s]
        assert points == [(1, 1, 0), (1, 2, 0), (2, 1, 0), (2, 2, 0)]

    def test_seq_skips_none_stages(self):
        s = seq(None, Tf.translate(x=1), None)
        assert len(s) == 1
        assert_allclose(s[0].apply_to([0, 0, 0]), [1, 0, 0])

    def test_seq_empty_stage_empties_sequence(self):
        assert len(seq(Tf.translate(x=1), replicate(0, Tf.translate(y=1)))) == 0
        assert len(seq(TransformSet(), replicate(3, Tf.translate(y=1)))) == 0

    def test_seq_empty_is_identity(self):
        s = seq()
        assert len(s) == 1
        assert_allclose(s[0].spatial, np.eye(4))
