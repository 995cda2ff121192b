"""Coefficient kernels for the Sim(3) exponential and logarithm.

With Omega = skew(omega), theta = |omega| and sigma the log-scale,

    W    = A * Omega + B * Omega^2 + C * I
    Winv = a * Omega + b * Omega^2 + c * I

where W is the integral over t in [0, 1] of exp(t * (Omega + sigma * I)),
the matrix that maps the translational velocity to the translation of
exp(). Winv is its inverse, used by log().

The coefficients are rational and trigonometric functions of theta and
sigma with removable singularities at theta = 0 and sigma = 0. Each
singular regime has its own limit formula:

    (i)   sigma ~ 0, theta ~ 0   limits only
    (ii)  sigma ~ 0              pure rotation, SO(3) formulas
    (iii) theta ~ 0              pure scale, no trigonometry
    (iv)  general case

calc_w tests sigma against epsilon while calc_w_inv tests sigma^2 against
epsilon, so its pure-rotation regime extends to |sigma| < sqrt(epsilon).
Over that band Winv keeps its first-order sigma terms
(c = 1 - sigma/2 + sigma^2/12, a = -1/2 + sigma * da/dsigma), leaving an
error of order sigma^2 = epsilon. Thresholds come from the precision of
Omega.

scale - 1 is always evaluated as expm1(sigma) and 1 - cos(theta) as
2 sin^2(theta / 2) to avoid cancellation next to the regime boundaries.
"""

import numpy as np

from .precision import traits_for


def _check_omega(Omega: np.ndarray) -> None:
    if Omega.shape != (3, 3):
        raise ValueError(f"Omega must be 3x3 matrix, got shape {Omega.shape}")


def calc_w(theta, sigma, scale, Omega: np.ndarray) -> np.ndarray:
    """Left Jacobian of the combined rotation and scale flow.

    Args:
        theta: Rotation angle |omega|
        sigma: Log of the scale
        scale: exp(sigma), as stored in the rotation-scale element
        Omega: skew(omega), its dtype selects the precision

    Returns:
        3x3 matrix W with translation = W @ upsilon
    """
    _check_omega(Omega)
    traits = traits_for(Omega.dtype)
    eps = traits.epsilon
    theta, sigma, scale = traits.scalar(theta), traits.scalar(sigma), traits.scalar(scale)

    one = traits.scalar(1)
    half = traits.scalar(0.5)
    Omega2 = Omega @ Omega

    if abs(sigma) < eps:
        C = one
        if abs(theta) < eps:
            A = half
            B = traits.scalar(1.0 / 6.0)
        else:
            theta_sq = theta * theta
            sin_half = np.sin(half * theta)
            A = traits.scalar(2) * sin_half * sin_half / theta_sq
            B = (theta - np.sin(theta)) / (theta_sq * theta)
    else:
        scale_m1 = np.expm1(sigma)
        C = scale_m1 / sigma
        if abs(theta) < eps:
            sigma_sq = sigma * sigma
            A = (sigma * scale - scale_m1) / sigma_sq
            B = (half * sigma_sq * scale - sigma * scale + scale_m1) / (sigma_sq * sigma)
        else:
            theta_sq = theta * theta
            a = scale * np.sin(theta)
            b = scale * np.cos(theta)
            c = theta_sq + sigma * sigma
            A = (a * sigma + (one - b) * theta) / (theta * c)
            B = (C - ((b - one) * sigma + a * theta) / c) / theta_sq

    return A * Omega + B * Omega2 + C * np.eye(3, dtype=Omega.dtype)


def calc_w_inv(theta, sigma, scale, Omega: np.ndarray) -> np.ndarray:
    """Closed-form inverse of calc_w.

    Args:
        theta: Rotation angle |omega|
        sigma: Log of the scale
        scale: exp(sigma), as stored in the rotation-scale element
        Omega: skew(omega), its dtype selects the precision

    Returns:
        3x3 matrix Winv with upsilon = Winv @ translation
    """
    _check_omega(Omega)
    traits = traits_for(Omega.dtype)
    eps = traits.epsilon
    theta, sigma, scale = traits.scalar(theta), traits.scalar(sigma), traits.scalar(scale)

    one = traits.scalar(1)
    two = traits.scalar(2)
    half = traits.scalar(0.5)
    Omega2 = Omega @ Omega
    theta_sq = theta * theta
    sin_theta = np.sin(theta)
    sin_half = np.sin(half * theta)
    one_minus_cos = two * sin_half * sin_half

    if abs(sigma * sigma) < eps:
        # b has no first-order sigma term
        c = one - half * sigma + sigma * sigma / traits.scalar(12)
        if abs(theta_sq) < eps:
            a = -half + sigma / traits.scalar(6)
            b = traits.scalar(1.0 / 12.0)
        else:
            da_dsigma = (theta - sin_theta) / (two * theta * one_minus_cos)
            a = -half + sigma * da_dsigma
            # (theta sin + 2 cos - 2) / (2 theta^2 (cos - 1))
            b = (one - theta * sin_theta / (two * one_minus_cos)) / theta_sq
    else:
        scale_m1 = np.expm1(sigma)
        c = sigma / scale_m1
        if abs(theta_sq) < eps:
            a = (scale_m1 - sigma * scale) / (scale_m1 * scale_m1)
            b = (scale * (sigma * (scale + one) - two * scale_m1)
                 / (two * scale_m1 * scale_m1 * scale_m1))
        else:
            # s^2 - 2 s cos + 1
            rot_scale = scale_m1 * scale_m1 + two * scale * one_minus_cos
            a = ((theta * (scale_m1 - scale * one_minus_cos) - sigma * scale * sin_theta)
                 / (theta * rot_scale))
            b = (-scale
                 * (theta * sin_theta * scale_m1 - sigma * (scale + one) * one_minus_cos)
                 / (theta_sq * scale_m1 * rot_scale))

    return a * Omega + b * Omega2 + c * np.eye(3, dtype=Omega.dtype)
