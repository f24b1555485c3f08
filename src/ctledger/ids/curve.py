"""alt_bn128 point codec: y^2 = x^3 + 3 over the 254-bit base field.

Collection ids are affine x-coordinates with the parity of y folded into
bit 254 (the field is smaller than 2^254, so that bit is otherwise unused).
The point at infinity is represented by ``None`` and encodes to zero.
"""

from __future__ import annotations

from ctledger.errors import InvalidCollectionId

P = 21888242871839275222246405745257275088696311157297823662689037894645226208583
B = 3

ODD_TOGGLE = 1 << 254
_SEED_ODD_BIT = 1 << 255
_SQRT_EXP = (P + 1) // 4  # P % 4 == 3

# Every seed in practice finds a residue within a few steps; a search this long
# means the field constants are wrong.
_MAX_ENCODE_STEPS = 1 << 16

Point = tuple[int, int]


def _rhs(x: int) -> int:
    return (x * x * x + B) % P


def sqrt_mod(a: int) -> int | None:
    """Principal square root of a mod P, or None if a is not a residue."""
    y = pow(a, _SQRT_EXP, P)
    return y if y * y % P == a % P else None


def is_on_curve(point: Point | None) -> bool:
    if point is None:
        return True
    x, y = point
    return 0 <= x < P and 0 <= y < P and y * y % P == _rhs(x)


def _with_parity(y: int, odd: bool) -> int:
    if (y & 1) != odd:
        return (P - y) % P
    return y


def encode(seed: int) -> Point:
    """Map a 256-bit seed to a curve point.

    Bit 255 of the seed selects the parity of y. x starts at ``seed mod P`` and
    is incremented before each residue test until x^3 + 3 is a square.
    """
    if seed < 0 or seed >> 256:
        raise ValueError("seed must be a 256-bit value")
    odd = bool(seed & _SEED_ODD_BIT)
    x = seed % P
    for _ in range(_MAX_ENCODE_STEPS):
        x = (x + 1) % P
        y = sqrt_mod(_rhs(x))
        if y is not None:
            return x, _with_parity(y, odd)
    raise RuntimeError(f"no curve point found near seed {seed:#x}")


def pack(point: Point | None) -> int:
    """Fold a point into its 256-bit identifier."""
    if point is None:
        return 0
    x, y = point
    return x ^ ODD_TOGGLE if y & 1 else x


def decode(encoded: int) -> Point | None:
    """Inverse of ``pack``. Zero decodes to the point at infinity."""
    if encoded == 0:
        return None
    if encoded < 0 or encoded >> 255:
        raise InvalidCollectionId(f"collection id out of range: {encoded:#x}")
    odd = bool(encoded & ODD_TOGGLE)
    x = encoded & (ODD_TOGGLE - 1)
    if x >= P:
        raise InvalidCollectionId(f"collection id x-coordinate exceeds field: {encoded:#x}")
    y = sqrt_mod(_rhs(x))
    if y is None:
        raise InvalidCollectionId(f"collection id is not on the curve: {encoded:#x}")
    return x, _with_parity(y, odd)


# Jacobian coordinates (X, Y, Z) with x = X/Z^2, y = Y/Z^3; Z == 0 is infinity.
Jacobian = tuple[int, int, int]

INFINITY: Jacobian = (1, 1, 0)


def _double(p: Jacobian) -> Jacobian:
    # dbl-2009-l, a = 0
    x1, y1, z1 = p
    if z1 == 0 or y1 == 0:
        return INFINITY
    a = x1 * x1 % P
    b = y1 * y1 % P
    c = b * b % P
    d = 2 * ((x1 + b) * (x1 + b) - a - c) % P
    e = 3 * a % P
    f = e * e % P
    x3 = (f - 2 * d) % P
    y3 = (e * (d - x3) - 8 * c) % P
    z3 = 2 * y1 * z1 % P
    return x3, y3, z3


def add_affine(p: Jacobian, q: Point | None) -> Jacobian:
    """Jacobian + affine (madd-2007-bl), handling identity, doubling and inverses."""
    if q is None:
        return p
    x2, y2 = q
    x1, y1, z1 = p
    if z1 == 0:
        return x2, y2, 1
    z1z1 = z1 * z1 % P
    u2 = x2 * z1z1 % P
    s2 = y2 * z1 * z1z1 % P
    h = (u2 - x1) % P
    r = 2 * (s2 - y1) % P
    if h == 0:
        if r == 0:
            return _double(p)
        return INFINITY
    hh = h * h % P
    i = 4 * hh % P
    j = h * i % P
    v = x1 * i % P
    x3 = (r * r - j - 2 * v) % P
    y3 = (r * (v - x3) - 2 * y1 * j) % P
    z3 = ((z1 + h) * (z1 + h) - z1z1 - hh) % P
    return x3, y3, z3


def to_affine(p: Jacobian) -> Point | None:
    x, y, z = p
    if z == 0:
        return None
    inv_z = pow(z, -1, P)
    inv_zz = inv_z * inv_z % P
    return x * inv_zz % P, y * inv_zz * inv_z % P


def add(p: Point | None, q: Point | None) -> Point | None:
    """Affine point addition."""
    if p is None:
        return q
    return to_affine(add_affine((p[0], p[1], 1), q))


def negate(p: Point | None) -> Point | None:
    if p is None:
        return None
    return p[0], (P - p[1]) % P
