"""TensorFlow kernels that iterate the Leja polynomial over batches of points."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

from .polynomial import RenormalizedPolynomial

_POINTS = tf.TensorSpec(shape=[None], dtype=tf.complex128)
_SCALAR = tf.TensorSpec(shape=[], dtype=tf.float64)
_COUNT = tf.TensorSpec(shape=[], dtype=tf.int32)


def _rescale(zs: tf.Tensor, factor: tf.Tensor) -> tf.Tensor:
    return tf.complex(tf.math.real(zs) * factor, tf.math.imag(zs) * factor)


def _polynomial(zs: tf.Tensor, lejas: tf.Tensor, cap_e: tf.Tensor, constant: tf.Tensor) -> tf.Tensor:
    """Apply every factor ``(z - leja)`` and divide by ``cap_e`` after each one."""

    n = tf.shape(lejas)[0]
    i = tf.constant(0, dtype=tf.int32)

    def cond(i: tf.Tensor, acc: tf.Tensor) -> tf.Tensor:
        return tf.less(i, n)

    def body(i: tf.Tensor, acc: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor]:
        acc = acc * (zs - lejas[i])
        acc = tf.complex(tf.math.real(acc) / cap_e, tf.math.imag(acc) / cap_e)
        return i + 1, acc

    _, acc = tf.while_loop(cond, body, (i, zs))
    return _rescale(acc, constant)


def _diverged(zs: tf.Tensor, radius: tf.Tensor) -> tf.Tensor:
    az = tf.abs(zs)
    return tf.logical_or(az > radius, tf.math.is_nan(az))


@tf.function(input_signature=(_POINTS, _POINTS, _SCALAR, _SCALAR))
def _evaluate(zs: tf.Tensor, lejas: tf.Tensor, cap_e: tf.Tensor, constant: tf.Tensor) -> tf.Tensor:
    return _polynomial(zs, lejas, cap_e, constant)


@tf.function(input_signature=(_POINTS, _POINTS, _SCALAR, _SCALAR, _COUNT, _SCALAR))
def _escape_run(
    zs: tf.Tensor,
    lejas: tf.Tensor,
    cap_e: tf.Tensor,
    constant: tf.Tensor,
    max_iterations: tf.Tensor,
    radius: tf.Tensor,
) -> tf.Tensor:
    """Flag the points whose orbit leaves the escape radius or turns NaN."""

    i = tf.constant(0, dtype=tf.int32)
    active = tf.ones_like(zs, dtype=tf.bool)
    escaped = tf.zeros_like(zs, dtype=tf.bool)

    def cond(i: tf.Tensor, zs: tf.Tensor, active: tf.Tensor, escaped: tf.Tensor) -> tf.Tensor:
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zs, active, escaped):
        zs = tf.where(active, _polynomial(zs, lejas, cap_e, constant), zs)
        escaped_now = tf.logical_and(active, _diverged(zs, radius))
        escaped = tf.logical_or(escaped, escaped_now)
        active = tf.logical_and(active, tf.logical_not(escaped_now))
        return i + 1, zs, active, escaped

    _, _, _, escaped = tf.while_loop(cond, body, (i, zs, active, escaped))
    return escaped


@tf.function(input_signature=(_POINTS, _POINTS, _SCALAR, _SCALAR, _COUNT, _SCALAR))
def _distance_run(
    zs: tf.Tensor,
    lejas: tf.Tensor,
    cap_e: tf.Tensor,
    constant: tf.Tensor,
    max_iterations: tf.Tensor,
    radius: tf.Tensor,
) -> tf.Tensor:
    """Return ``|z| ln|z| / |dz|`` after iterating with the derivative ``dz <- 2 z dz``."""

    i = tf.constant(0, dtype=tf.int32)
    dz = tf.ones_like(zs)
    two = tf.constant(2, dtype=zs.dtype)
    active = tf.abs(zs) < radius

    def cond(i: tf.Tensor, zs: tf.Tensor, dz: tf.Tensor, active: tf.Tensor) -> tf.Tensor:
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zs, dz, active):
        dz = tf.where(active, two * zs * dz, dz)
        zs = tf.where(active, _polynomial(zs, lejas, cap_e, constant), zs)
        active = tf.logical_and(active, tf.logical_not(_diverged(zs, radius)))
        return i + 1, zs, dz, active

    _, zs, dz, _ = tf.while_loop(cond, body, (i, zs, dz, active))
    az = tf.abs(zs)
    return az * tf.math.log(az) / tf.abs(dz)


def _arguments(polynomial: RenormalizedPolynomial, zs: np.ndarray) -> tuple[tf.Tensor, ...]:
    return (
        tf.convert_to_tensor(np.asarray(zs, dtype=np.complex128).reshape(-1)),
        tf.convert_to_tensor(polynomial.points, dtype=tf.complex128),
        tf.constant(polynomial.cap_e, dtype=tf.float64),
        tf.constant(polynomial.constant, dtype=tf.float64),
    )


def evaluate(polynomial: RenormalizedPolynomial, zs: np.ndarray, *, device: Optional[str] = None) -> np.ndarray:
    """Evaluate ``polynomial`` at every value of ``zs`` on ``device``."""

    shape = np.shape(zs)
    with tf.device(device if device is not None else "/CPU:0"):
        result = _evaluate(*_arguments(polynomial, zs))
    return result.numpy().reshape(shape)


def escape_mask(
    polynomial: RenormalizedPolynomial,
    zs: np.ndarray,
    max_iterations: int,
    escape_radius: float,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    shape = np.shape(zs)
    with tf.device(device if device is not None else "/CPU:0"):
        escaped = _escape_run(
            *_arguments(polynomial, zs),
            tf.constant(max_iterations, dtype=tf.int32),
            tf.constant(escape_radius, dtype=tf.float64),
        )
    return escaped.numpy().reshape(shape)


def distance_estimates(
    polynomial: RenormalizedPolynomial,
    zs: np.ndarray,
    max_iterations: int,
    escape_radius: float,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    shape = np.shape(zs)
    with tf.device(device if device is not None else "/CPU:0"):
        distances = _distance_run(
            *_arguments(polynomial, zs),
            tf.constant(max_iterations, dtype=tf.int32),
            tf.constant(escape_radius, dtype=tf.float64),
        )
    return distances.numpy().reshape(shape)
