"""
These constants define the twisted Edwards curve edwards25519, the curve
underlying Ed25519 signatures. The curve -x^2 + y^2 = 1 + d*x^2*y^2 is defined
over a finite field of prime order P, with a base point G of prime order Q,
specified by its coordinates G_x and G_y as given in RFC 8032.
"""

# edwards25519 constants for elliptic curve cryptography

# The prime modulus of the field
P: int = 2**255 - 19

# The order of the prime-order subgroup generated by G
Q: int = 2**252 + 27742317777372353535851937790883648493

# The curve constant d = -121665/121666
D: int = 37095705934669439343138083508754565189542113879843219016388785533085940283555

# A square root of -1 in the field, used when recovering x from y
SQRT_M1: int = pow(2, (P - 1) // 4, P)

# X-coordinate of the generator point G
G_x: int = 15112221349535400772501151409588531511454012693041857206046113283949847762202

# Y-coordinate of the generator point G (4/5 mod P)
G_y: int = 46316835694926478169428394003475163141307993866256225615783033603165251855960
