"""
Precomputation of the single-use nonce commitments used when signing.

Each CommitmentShare holds a hiding nonce d and a binding nonce e together
with their commitments D = g^d and E = g^e. The commitments are published
ahead of a signing session; the nonces never leave the signer. A share is
consumed by exactly one partial signature, after which its nonces are wiped.
Signing twice with the same nonces reveals the signing key.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import secrets
from typing import List, Optional, Tuple
from .constants import Q
from .errors import NoUnusedCommitmentShares, StateConsumedError
from .point import Point, G

logger = logging.getLogger(__name__)


class NoncePair:
    """A secret nonce and its public commitment."""

    def __init__(self, nonce: Optional[int] = None):
        if nonce is None:
            nonce = secrets.randbits(512) % Q
        self.nonce: Optional[int] = nonce
        self.commitment = nonce * G

    def wipe(self) -> None:
        self.nonce = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(commitment={self.commitment!r})"


class CommitmentShare:
    """A (hiding, binding) nonce pair at a fixed position of its list."""

    def __init__(self, position: int, hiding: NoncePair, binding: NoncePair):
        self.position = position
        self.hiding = hiding
        self.binding = binding
        self.consumed = False

    def commit(self) -> Tuple[Point, Point]:
        # (D_i_j, E_i_j) = (g^d_i_j, g^e_i_j)
        return (self.hiding.commitment, self.binding.commitment)

    def consume(self) -> Tuple[int, int]:
        """
        Hand out the nonces (d, e) exactly once and wipe them.

        Raises:
        StateConsumedError: If the share was already consumed.
        """
        if self.consumed:
            raise StateConsumedError(
                f"Commitment share at position {self.position} was already consumed."
            )
        nonces = (self.hiding.nonce, self.binding.nonce)
        self.consumed = True
        self.hiding.wipe()
        self.binding.wipe()
        return nonces

    def __repr__(self) -> str:
        state = "consumed" if self.consumed else "unused"
        return f"{self.__class__.__name__}(position={self.position}, {state})"


@dataclass(frozen=True)
class PublicCommitmentShareList:
    """The published halves of a participant's commitment shares."""

    participant_index: int
    commitments: Tuple[Tuple[Point, Point], ...]


class SecretCommitmentShareList:
    """The secret halves of a participant's commitment shares."""

    def __init__(self, participant_index: int, shares: List[CommitmentShare]):
        self.participant_index = participant_index
        self.shares = shares

    def remaining(self) -> int:
        """Return the number of shares that have not been consumed."""
        return sum(1 for share in self.shares if not share.consumed)

    def consume(self, commitment: Tuple[Point, Point]) -> Tuple[int, int]:
        """
        Consume the unused share matching a published commitment.

        Parameters:
        commitment (Tuple[Point, Point]): The (D, E) pair published for the
            signing session.

        Returns:
        Tuple[int, int]: The hiding and binding nonces (d, e).

        Raises:
        NoUnusedCommitmentShares: If no unused share matches the commitment,
        including when the matching share was already consumed.
        """
        for share in self.shares:
            if not share.consumed and share.commit() == tuple(commitment):
                logger.debug(
                    "Participant %d consumed commitment share %d",
                    self.participant_index,
                    share.position,
                )
                return share.consume()

        raise NoUnusedCommitmentShares(self.participant_index)

    def destroy(self) -> None:
        """Wipe every remaining nonce."""
        for share in self.shares:
            if not share.consumed:
                share.consume()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(participant_index={self.participant_index}, "
            f"remaining={self.remaining()})"
        )


def generate_commitment_share_lists(
    participant_index: int, count: int = 1
) -> Tuple[PublicCommitmentShareList, SecretCommitmentShareList]:
    """
    Generate count single-use commitment shares for a participant.

    Parameters:
    participant_index (int): The index of the participant generating the shares.
    count (int, optional): The number of shares to generate. Defaults to 1.

    Returns:
    Tuple[PublicCommitmentShareList, SecretCommitmentShareList]: The public
    commitments to publish and the secret nonces to keep.

    Raises:
    ValueError: If count is not a positive integer.
    """
    if not isinstance(count, int) or count < 1:
        raise ValueError("count must be a positive integer.")

    # (d_i_j, e_i_j) ⭠ $ ℤ*_q x ℤ*_q
    shares = [
        CommitmentShare(position, NoncePair(), NoncePair()) for position in range(count)
    ]
    public = PublicCommitmentShareList(
        participant_index, tuple(share.commit() for share in shares)
    )
    return public, SecretCommitmentShareList(participant_index, shares)
