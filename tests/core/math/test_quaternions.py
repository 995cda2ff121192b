"""Tests for quaternion operations."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from sim3lie.core.math.quaternions import (
    quat_conjugate,
    quat_from_matrix,
    quat_multiply,
    quat_norm,
    quat_normalize,
    quat_to_matrix,
)


class TestQuaternions:
    """Test quaternion operations."""

    def test_quat_normalize(self):
        """Test quaternion normalization."""
        q = np.array([2.0, 3.0, 4.0, 5.0])
        q_norm = quat_normalize(q)

        assert abs(np.linalg.norm(q_norm) - 1.0) < 1e-10

    def test_quat_normalize_zero(self):
        """Test quaternion normalization with zero quaternion."""
        q = np.zeros(4)
        with pytest.raises(ValueError):
            quat_normalize(q)

    def test_quat_norm(self):
        """Test the norm of a scaled quaternion."""
        assert quat_norm(np.array([0.0, 0.0, 0.0, 3.0])) == 3.0
        assert quat_norm(np.array([1.0, 1.0, 1.0, 1.0])) == 2.0

    def test_quat_to_matrix_identity(self):
        """Test quaternion to matrix for identity rotation."""
        q = np.array([0.0, 0.0, 0.0, 1.0])
        R = quat_to_matrix(q)

        np.testing.assert_allclose(R, np.eye(3), atol=1e-10)

    def test_quat_to_matrix_90deg_x(self):
        """Test quaternion to matrix for 90 degree rotation around X."""
        q = np.array([np.sqrt(2) / 2, 0.0, 0.0, np.sqrt(2) / 2])
        R = quat_to_matrix(q)

        expected = np.array([[1, 0, 0], [0, 0, -1], [0, 1, 0]])
        np.testing.assert_allclose(R, expected, atol=1e-10)

    def test_quat_to_matrix_ignores_scale(self):
        """Test a scaled quaternion gives the same rotation."""
        q = quat_normalize(np.array([1.0, 2.0, 3.0, 4.0]))

        np.testing.assert_allclose(quat_to_matrix(5.0 * q), quat_to_matrix(q), atol=1e-12)

    def test_quat_to_matrix_matches_scipy(self):
        """Test against scipy's scalar-last convention."""
        q = quat_normalize(np.array([0.3, -0.2, 0.6, 0.7]))

        expected = Rotation.from_quat(q).as_matrix()
        np.testing.assert_allclose(quat_to_matrix(q), expected, atol=1e-12)

    def test_quat_to_matrix_properties(self):
        """Test quaternion to matrix produces valid rotation matrix."""
        q = quat_normalize(np.array([1, 2, 3, 4]))
        R = quat_to_matrix(q)

        assert abs(np.linalg.det(R) - 1.0) < 1e-10
        np.testing.assert_allclose(R @ R.T, np.eye(3), atol=1e-10)

    def test_matrix_round_trip(self):
        """Test matrix to quaternion to matrix conversion."""
        R = Rotation.from_rotvec([0.4, -1.1, 2.0]).as_matrix()
        q = quat_from_matrix(R)

        assert abs(quat_norm(q) - 1.0) < 1e-12
        np.testing.assert_allclose(quat_to_matrix(q), R, atol=1e-12)

    def test_quat_from_matrix_single_precision(self):
        """Test float32 matrices give float32 quaternions."""
        R = np.eye(3, dtype=np.float32)
        q = quat_from_matrix(R)

        assert q.dtype == np.float32
        np.testing.assert_allclose(np.abs(q), [0, 0, 0, 1], atol=1e-7)

    def test_quat_multiply_identity(self):
        """Test quaternion multiplication with identity."""
        q = np.array([0.5, 0.5, 0.5, 0.5])
        q_id = np.array([0.0, 0.0, 0.0, 1.0])

        result = quat_multiply(q, q_id)
        np.testing.assert_allclose(result, q, atol=1e-10)

        result = quat_multiply(q_id, q)
        np.testing.assert_allclose(result, q, atol=1e-10)

    def test_quat_multiply_inverse(self):
        """Test quaternion multiplication with conjugate."""
        q = quat_normalize(np.array([1, 2, 3, 4]))
        q_conj = quat_conjugate(q)

        result = quat_multiply(q, q_conj)
        expected = np.array([0.0, 0.0, 0.0, 1.0])
        np.testing.assert_allclose(result, expected, atol=1e-10)

    def test_quat_multiply_composes_rotations(self):
        """Test the product matches matrix composition."""
        q1 = quat_normalize(np.array([0.1, 0.2, 0.3, 0.9]))
        q2 = quat_normalize(np.array([-0.5, 0.4, 0.1, 0.6]))

        R = quat_to_matrix(quat_multiply(q1, q2))
        np.testing.assert_allclose(R, quat_to_matrix(q1) @ quat_to_matrix(q2), atol=1e-12)

    def test_quat_multiply_scales(self):
        """Test norms multiply."""
        q1 = 2.0 * quat_normalize(np.array([0.1, 0.2, 0.3, 0.9]))
        q2 = 3.0 * quat_normalize(np.array([-0.5, 0.4, 0.1, 0.6]))

        assert quat_norm(quat_multiply(q1, q2)) == pytest.approx(6.0)

    def test_quat_conjugate(self):
        """Test quaternion conjugate."""
        q = np.array([1, 2, 3, 4])
        q_conj = quat_conjugate(q)

        expected = np.array([-1, -2, -3, 4])
        np.testing.assert_allclose(q_conj, expected)

    def test_invalid_input_shapes(self):
        """Test error handling for invalid input shapes."""
        with pytest.raises(ValueError):
            quat_normalize(np.array([1, 2, 3]))  # Wrong size

        with pytest.raises(ValueError):
            quat_multiply(np.array([1, 2, 3]), np.array([0, 0, 0, 1]))

        with pytest.raises(ValueError):
            quat_to_matrix(np.array([1, 2, 3]))  # Wrong quaternion size

        with pytest.raises(ValueError):
            quat_from_matrix(np.eye(4))
