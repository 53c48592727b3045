"""
This module defines the public Participant record and the private
Coefficients of the distributed key generation. A participant draws a random
polynomial of degree t - 1, commits to each coefficient, and proves knowledge
of the constant term so that nobody can join the group with a commitment whose
secret they do not know.

The Participant is safe to broadcast. The Coefficients must stay with the
process that generated them until the secret shares have been derived from
them, after which they are destroyed.
"""

from __future__ import annotations
from dataclasses import dataclass
from hashlib import sha512
import logging
import secrets
from typing import Optional, Tuple
from .constants import Q
from .errors import InvalidProof, StateConsumedError
from .parameters import Parameters
from .point import Point, G

logger = logging.getLogger(__name__)


class Coefficients:
    """The secret polynomial coefficients (a_i_0, ..., a_i_(t - 1)) of a participant."""

    def __init__(self, coefficients: Tuple[int, ...]):
        if not coefficients:
            raise ValueError("At least one coefficient is required.")
        self._coefficients: Optional[Tuple[int, ...]] = tuple(
            coefficient % Q for coefficient in coefficients
        )

    @classmethod
    def generate(cls, threshold: int) -> Coefficients:
        """Generate random polynomial coefficients."""
        # (a_i_0, . . ., a_i_(t - 1)) ⭠ $ ℤ_q
        return cls(tuple(secrets.randbits(512) % Q for _ in range(threshold)))

    @property
    def destroyed(self) -> bool:
        return self._coefficients is None

    def _values(self) -> Tuple[int, ...]:
        if self._coefficients is None:
            raise StateConsumedError("Coefficients have already been destroyed.")
        return self._coefficients

    def __len__(self) -> int:
        return len(self._values())

    def secret(self) -> int:
        """Return the constant term a_i_0."""
        return self._values()[0]

    def commitments(self) -> Tuple[Point, ...]:
        # C_i = ⟨𝜙_i_0, ..., 𝜙_i_(t - 1)⟩
        # 𝜙_i_j = g^a_i_j, 0 ≤ j ≤ t - 1
        return tuple(coefficient * G for coefficient in self._values())

    def evaluate(self, x: int) -> int:
        """
        Evaluate the polynomial at a given point x using Horner's method.

        Parameters:
        x (int): The point at which the polynomial is evaluated.

        Returns:
        int: The value of the polynomial at x, reduced modulo Q.

        Raises:
        ValueError: If x is not an integer.
        StateConsumedError: If the coefficients have been destroyed.
        """
        if not isinstance(x, int):
            raise ValueError("The value of x must be an integer.")

        y = 0
        for coefficient in reversed(self._values()):
            y = (y * x + coefficient) % Q
        return y

    def destroy(self) -> None:
        """Drop the secret coefficients. Any later use raises StateConsumedError."""
        self._coefficients = None

    def __repr__(self) -> str:
        state = "destroyed" if self.destroyed else f"t={len(self._coefficients)}"
        return f"{self.__class__.__name__}(<{state}>)"


@dataclass(frozen=True)
class Participant:
    """
    The broadcastable identity of a key generation participant.

    Attributes:
    index (int): The participant's index, starting from 1.
    commitments (Tuple[Point, ...]): Commitments to each polynomial coefficient.
    proof_of_secret_key (Tuple[int, int]): The (challenge, response) Schnorr
        proof of knowledge of the constant term.
    """

    CONTEXT = b"FROST-ED25519-DKG"

    index: int
    commitments: Tuple[Point, ...]
    proof_of_secret_key: Tuple[int, int]

    def public_key(self) -> Point:
        """Return the commitment to the constant term, g^a_i_0."""
        if not self.commitments:
            raise ValueError("Participant has no commitments.")
        return self.commitments[0]

    @classmethod
    def proof_challenge(
        cls, index: int, secret_commitment: Point, nonce_commitment: Point
    ) -> int:
        """
        Compute the challenge binding a proof of knowledge to an index.

        Returns:
        int: c_i = H(i, 𝚽, g^a_i_0, R_i) reduced modulo Q.
        """
        challenge_hash = sha512()
        challenge_hash.update(index.to_bytes(4, "little"))
        challenge_hash.update(cls.CONTEXT)
        challenge_hash.update(secret_commitment.serialize())
        challenge_hash.update(nonce_commitment.serialize())
        return int.from_bytes(challenge_hash.digest(), "little") % Q

    @classmethod
    def prove(cls, index: int, coefficients: Coefficients) -> Tuple[int, int]:
        """
        Compute the participant's proof of knowledge for the first coefficient.
        """
        # k ⭠ ℤ_q
        nonce = secrets.randbits(512) % Q
        # R_i = g^k
        nonce_commitment = nonce * G
        secret = coefficients.secret()
        challenge = cls.proof_challenge(index, secret * G, nonce_commitment)
        # μ_i = k + a_i_0 * c_i
        response = (nonce + secret * challenge) % Q
        return (challenge, response)

    def verify_proof(self) -> bool:
        """
        Verify the proof of knowledge of this participant's secret.

        Returns:
        bool: True if the proof is valid, False otherwise.
        """
        if not isinstance(self.index, int) or not 0 <= self.index < 2**32:
            return False
        if len(self.proof_of_secret_key) != 2:
            return False
        challenge, response = self.proof_of_secret_key
        if not isinstance(challenge, int) or not isinstance(response, int):
            return False
        if not self.commitments:
            return False

        secret_commitment = self.public_key()
        # R_l ≟ g^μ_l * 𝜙_l_0^-c_l
        nonce_commitment = (response * G) - (challenge * secret_commitment)
        return challenge == self.proof_challenge(
            self.index, secret_commitment, nonce_commitment
        )


def create_participant(
    parameters: Parameters, index: int
) -> Tuple[Participant, Coefficients]:
    """
    Create a participant for a key generation among parameters.n members.

    Parameters:
    parameters (Parameters): The (t, n) configuration of the group.
    index (int): The participant's index, 1 <= index <= n.

    Returns:
    Tuple[Participant, Coefficients]: The public record to broadcast and the
    secret coefficients to keep for the first round.

    Raises:
    ValueError: If the index is out of range.
    """
    parameters.validate_index(index)

    coefficients = Coefficients.generate(parameters.t)
    participant = Participant(
        index=index,
        commitments=coefficients.commitments(),
        proof_of_secret_key=Participant.prove(index, coefficients),
    )
    logger.debug("Created participant %d for t=%d, n=%d", index, parameters.t, parameters.n)
    return participant, coefficients


def verify_participant(participant: Participant) -> None:
    """
    Check a peer's proof of knowledge of its secret key.

    Raises:
    InvalidProof: If the proof does not verify.
    """
    if not participant.verify_proof():
        logger.warning("Participant %d supplied an invalid proof of knowledge", participant.index)
        raise InvalidProof(participant.index)
