"""
This module defines the Point class, which represents points on the twisted
Edwards curve edwards25519. It includes methods for point arithmetic such as
addition, multiplication, and negation, as well as the RFC 8032 32-byte
encoding and decoding of points used by Ed25519.

The Point class provides the operations required by the threshold protocol:
point addition (the Edwards addition law is complete, so doubling and the
identity need no special cases), scalar multiplication, and checks for the
identity element.
"""

from __future__ import annotations
from .constants import P, Q, D, SQRT_M1, G_x, G_y


class Point:
    """Class representing an edwards25519 curve point in affine coordinates."""

    def __init__(self, x: int = 0, y: int = 1):
        """
        Initialize a point on the curve.

        Parameters:
        x (int, optional): The x-coordinate of the point. Defaults to 0.
        y (int, optional): The y-coordinate of the point. Defaults to 1.

        The defaults describe the identity element (0, 1) of the Edwards group.
        """

        self.x = x
        self.y = y

    @classmethod
    def deserialize(cls, data: bytes, check_subgroup: bool = True) -> Point:
        """
        Decode a point from its RFC 8032 32-byte encoding.

        Parameters:
        data (bytes): 32 bytes holding the little-endian y-coordinate, with the
            sign of x in the most significant bit.
        check_subgroup (bool, optional): Reject points that are not in the
            prime-order subgroup generated by G. Defaults to True.

        Returns:
        Point: The decoded point.

        Raises:
        ValueError: If the input has the wrong length, is not a canonical
        encoding, does not describe a point on the curve, or (when requested)
        lies outside the prime-order subgroup.
        """
        if len(data) != 32:
            raise ValueError("Input must be exactly 32 bytes long.")

        encoded = int.from_bytes(data, "little")
        sign = encoded >> 255
        y = encoded & ((1 << 255) - 1)
        if y >= P:
            raise ValueError("Non-canonical y-coordinate.")

        # x^2 = (y^2 - 1) / (d * y^2 + 1)
        u = (y * y - 1) % P
        v = (D * y * y + 1) % P
        x = (u * pow(v, 3, P) * pow(u * pow(v, 7, P), (P - 5) // 8, P)) % P
        vx2 = (v * x * x) % P
        if vx2 == (P - u) % P:
            x = (x * SQRT_M1) % P
        elif vx2 != u:
            raise ValueError("Encoding does not describe a point on the curve.")
        if x == 0 and sign == 1:
            raise ValueError("Non-canonical encoding of x = 0.")
        if x % 2 != sign:
            x = P - x

        point = cls(x, y)
        if check_subgroup and not point._multiply(Q).is_zero():
            raise ValueError("Point is not in the prime-order subgroup.")

        return point

    def serialize(self) -> bytes:
        """
        Encode the point in its RFC 8032 32-byte form.

        Returns:
        bytes: The little-endian y-coordinate with the low bit of x stored in
        the most significant bit.
        """
        return (self.y | ((self.x & 1) << 255)).to_bytes(32, "little")

    def is_zero(self) -> bool:
        """
        Check if the point is the identity element of the group.

        Returns:
        bool: True if the point is (0, 1), False otherwise.
        """
        return self.x == 0 and self.y == 1

    def __eq__(self, other: object) -> bool:
        """
        Determine if this point is equal to another point by comparing their coordinates.

        Parameters:
        other (object): The object to compare with.

        Returns:
        bool: True if both points have the same coordinates, False otherwise.
        """
        if not isinstance(other, Point):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __neg__(self) -> Point:
        """
        Negate the point: -(x, y) = (-x, y) on a twisted Edwards curve.
        """
        return self.__class__((P - self.x) % P, self.y)

    def __add__(self, other: Point) -> Point:
        """
        Add two points using the complete twisted Edwards addition law.

        Parameters:
        other (Point): Another point to add to this point.

        Returns:
        Point: The sum of the two points as a new Point object.

        Raises:
        ValueError: If other is not a Point.
        """
        if not isinstance(other, Point):
            raise ValueError("The other object must be an instance of Point")

        x1, y1, x2, y2 = self.x, self.y, other.x, other.y
        t = (D * x1 * x2 * y1 * y2) % P
        sum_x = ((x1 * y2 + y1 * x2) * pow(1 + t, P - 2, P)) % P
        # a = -1, so y3 = (y1*y2 - a*x1*x2) / (1 - t)
        sum_y = ((y1 * y2 + x1 * x2) * pow(1 - t, P - 2, P)) % P

        return self.__class__(sum_x, sum_y)

    def __sub__(self, other: Point) -> Point:
        """
        Subtract one point from another.

        Raises:
        ValueError: If other is not a Point.
        """
        if not isinstance(other, Point):
            raise ValueError("The other object must be an instance of Point")

        return self + -other

    def __rmul__(self, scalar: int) -> Point:
        """
        Multiply this point by an integer scalar using the double-and-add
        method, reduced modulo the subgroup order.

        Parameters:
        scalar (int): The scalar to multiply this point by.

        Returns:
        Point: The result of the scalar multiplication.

        Raises:
        ValueError: If the scalar is not an integer.
        """
        if not isinstance(scalar, int):
            raise ValueError("The scalar must be an integer")

        # Reduce scalar by the group order to ensure operation within the finite group
        return self._multiply(scalar % Q)

    def _multiply(self, scalar: int) -> Point:
        """Double-and-add scalar multiplication without reducing the scalar."""
        p = self
        r = self.__class__()

        while scalar:
            if scalar & 1:
                r = r + p
            p = p + p
            scalar >>= 1

        return r

    def __str__(self) -> str:
        if self.is_zero():
            return "0"
        return f"X: 0x{self.x:x}\nY: 0x{self.y:x}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(x={self.x}, y={self.y})"


# The generator point G
G: Point = Point(G_x, G_y)
