"""Tests for the SO(3) exp/log helpers."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from sim3lie.core.math.precision import DOUBLE, SINGLE
from sim3lie.core.math.so3 import exp_and_theta, log_and_theta, skew_symmetric, vee

EPS = DOUBLE.epsilon


class TestSkew:
    """Test hat/vee on rotation vectors."""

    def test_skew_symmetric(self):
        """Test skew-symmetric matrix construction."""
        v = np.array([1.0, 2.0, 3.0])
        S = skew_symmetric(v)

        expected = np.array([[0, -3, 2], [3, 0, -1], [-2, 1, 0]])

        np.testing.assert_allclose(S, expected)

        # Check anti-symmetry
        np.testing.assert_allclose(S, -S.T)

    def test_cross_product(self):
        """Test skew(a) @ b equals the cross product."""
        a = np.array([0.3, -1.2, 2.0])
        b = np.array([1.5, 0.4, -0.7])

        np.testing.assert_allclose(skew_symmetric(a) @ b, np.cross(a, b), atol=1e-15)

    def test_vee_inverts_skew(self):
        """Test vee(skew(v)) == v."""
        v = np.array([0.1, -0.2, 0.3])

        np.testing.assert_array_equal(vee(skew_symmetric(v)), v)

    def test_keeps_precision(self):
        """Test float32 input stays float32."""
        S = skew_symmetric(np.array([1, 2, 3], dtype=np.float32))

        assert S.dtype == np.float32
        assert vee(S).dtype == np.float32

    def test_invalid_shapes(self):
        """Test error handling for invalid input shapes."""
        with pytest.raises(ValueError):
            skew_symmetric(np.zeros(4))
        with pytest.raises(ValueError):
            vee(np.zeros((4, 4)))


class TestExpLog:
    """Test the quaternion exponential and logarithm."""

    def test_exp_identity(self):
        """Test exp at zero is the identity quaternion."""
        q, theta = exp_and_theta(np.zeros(3), EPS)

        np.testing.assert_array_equal(q, [0, 0, 0, 1])
        assert theta == 0.0

    @pytest.mark.parametrize("omega", [
        [0.1, 0.2, 0.3],
        [1.0, -2.0, 0.5],
        [0.0, 0.0, 3.0],
    ])
    def test_exp_matches_scipy(self, omega):
        """Test exp against scipy rotation vectors."""
        omega = np.array(omega)
        q, theta = exp_and_theta(omega, EPS)

        expected = Rotation.from_rotvec(omega).as_quat()
        if expected[3] < 0:
            expected = -expected
        np.testing.assert_allclose(q, expected, atol=1e-12)
        assert theta == pytest.approx(np.linalg.norm(omega))

    def test_exp_small_angle(self):
        """Test the Taylor branch below epsilon."""
        omega = np.array([3e-11, -4e-11, 0.0])
        q, theta = exp_and_theta(omega, EPS)

        np.testing.assert_allclose(q[:3], 0.5 * omega, rtol=1e-12)
        assert q[3] == pytest.approx(1.0)
        assert theta == pytest.approx(5e-11)

    @pytest.mark.parametrize("omega", [
        [0.1, 0.2, 0.3],
        [1.0, -2.0, 0.5],
        [1e-11, 2e-11, 0.0],
        [0.0, 3.0, 0.0],
    ])
    def test_round_trip(self, omega):
        """Test log(exp(omega)) == omega for angles below pi."""
        omega = np.array(omega)
        q, _ = exp_and_theta(omega, EPS)
        recovered, theta = log_and_theta(q, EPS)

        np.testing.assert_allclose(recovered, omega, atol=1e-12)
        assert theta == pytest.approx(np.linalg.norm(omega), abs=1e-12)

    def test_log_negated_quaternion(self):
        """Test q and -q give the same rotation vector."""
        q, _ = exp_and_theta(np.array([0.4, -0.3, 1.2]), EPS)

        omega, theta = log_and_theta(q, EPS)
        omega_neg, theta_neg = log_and_theta(-q, EPS)

        np.testing.assert_allclose(omega_neg, omega, atol=1e-12)
        assert theta_neg == pytest.approx(theta)
        assert theta_neg >= 0

    def test_log_half_turn(self):
        """Test the w = 0 branch gives a rotation of pi."""
        omega, theta = log_and_theta(np.array([1.0, 0.0, 0.0, 0.0]), EPS)

        np.testing.assert_allclose(omega, [np.pi, 0, 0], atol=1e-12)
        assert theta == pytest.approx(np.pi)

    def test_log_half_turn_negated(self):
        """Test -q at w = -0.0 gives the same rotation vector as q."""
        q = np.array([1.0, 0.0, 0.0, 0.0])

        omega, _ = log_and_theta(q, EPS)
        omega_neg, theta_neg = log_and_theta(-q, EPS)

        np.testing.assert_allclose(omega_neg, omega, atol=1e-12)
        assert theta_neg == pytest.approx(np.pi)

    def test_single_precision(self):
        """Test float32 input stays float32."""
        omega = np.array([0.1, 0.2, 0.3], dtype=np.float32)
        q, _ = exp_and_theta(omega, SINGLE.epsilon)
        recovered, _ = log_and_theta(q, SINGLE.epsilon)

        assert q.dtype == np.float32
        assert recovered.dtype == np.float32
        np.testing.assert_allclose(recovered, omega, atol=1e-6)

    def test_invalid_shapes(self):
        """Test error handling for invalid input shapes."""
        with pytest.raises(ValueError):
            exp_and_theta(np.zeros(4), EPS)
        with pytest.raises(ValueError):
            log_and_theta(np.zeros(3), EPS)
