"""
This module implements the two-round Pedersen distributed key generation.

Round one: every participant broadcasts its Participant record. Each peer's
proof of knowledge is checked before anything secret leaves the process, then
the caller's polynomial is evaluated once per peer index to produce the
outgoing secret shares.

Round two: every participant checks the shares it received against the
senders' public commitments. Once every share is accepted the participant can
finish, summing its shares into its signing key and the peers' constant-term
commitments into the group key.

The states are single use. RoundOne.to_round_two consumes the RoundOne it is
called on and RoundTwo.finish consumes the RoundTwo, so a state can never be
driven forward twice.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, List, Optional, Tuple
from .constants import Q
from .errors import (
    IncompleteShares,
    MisbehavingParticipants,
    ShareVerificationFailed,
    StateConsumedError,
)
from .parameters import Parameters
from .participant import Coefficients, Participant
from .point import Point, G

logger = logging.getLogger(__name__)


def derive_public_verification_share(
    coefficient_commitments: Tuple[Point, ...], index: int
) -> Point:
    """
    Compute g^f(index) from the commitments to the coefficients of f.

    Parameters:
    coefficient_commitments (Tuple[Point, ...]): The commitments 𝜙_0..𝜙_(t - 1).
    index (int): The point at which the committed polynomial is evaluated.

    Returns:
    Point: ∏ 𝜙_k^index^k, 0 ≤ k ≤ t - 1.
    """
    expected = Point()
    for k, commitment in enumerate(coefficient_commitments):
        expected += pow(index, k, Q) * commitment
    return expected


@dataclass(frozen=True)
class SecretShare:
    """An evaluation f_sender(receiver) of the sender's secret polynomial."""

    sender_index: int
    receiver_index: int
    value: int = field(repr=False)

    def verify(self, commitments: Tuple[Point, ...]) -> bool:
        """
        Check the share against the sender's coefficient commitments.

        Returns:
        bool: True if g^f_l(i) ≟ ∏ 𝜙_l_k^i^k mod q, 0 ≤ k ≤ t - 1.
        """
        if not isinstance(self.value, int):
            return False
        expected = derive_public_verification_share(commitments, self.receiver_index)
        return (self.value * G) == expected


@dataclass(frozen=True)
class GroupKey:
    """The public key of the whole group, Y = ∏ 𝜙_j_0, 1 ≤ j ≤ n."""

    point: Point

    def to_bytes(self) -> bytes:
        return self.point.serialize()

    @classmethod
    def from_bytes(cls, data: bytes) -> GroupKey:
        return cls(Point.deserialize(data))

    def to_ed25519(self) -> bytes:
        """
        Encode the group key as an Ed25519 public key.

        Group elements already use the RFC 8032 encoding, so this is the same
        32 bytes as to_bytes().
        """
        return self.to_bytes()

    def hex(self) -> str:
        return self.to_bytes().hex()


@dataclass(frozen=True)
class IndividualPublicKey:
    """A participant's public verification share Y_i = g^s_i."""

    index: int
    share: Point

    def verify(self, parameters: Parameters, participants: Iterable[Participant]) -> bool:
        """
        Check this key against the commitments of every participant.

        Parameters:
        parameters (Parameters): The (t, n) configuration of the group.
        participants (Iterable[Participant]): All n Participant records,
            including the one belonging to this key's owner.

        Returns:
        bool: True if Y_i equals ∑_j ∏_k 𝜙_j_k^i^k.
        """
        participants = tuple(participants)
        if len(participants) != parameters.n:
            return False

        expected = Point()
        for participant in participants:
            expected += derive_public_verification_share(
                participant.commitments, self.index
            )
        return expected == self.share


@dataclass(frozen=True)
class IndividualSecretKey:
    """A participant's long-lived signing share s_i."""

    index: int
    key: int = field(repr=False)

    def to_public(self) -> IndividualPublicKey:
        # Y_i = g^s_i
        return IndividualPublicKey(self.index, self.key * G)


class _KeyGenerationState:
    """Shared bookkeeping for the single-use round states."""

    def __init__(
        self,
        parameters: Parameters,
        index: int,
        peers: Dict[int, Participant],
        my_commitment: Point,
    ):
        self.parameters = parameters
        self.index = index
        self.peers = peers
        self.my_commitment = my_commitment
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _consume(self) -> None:
        if self._consumed:
            raise StateConsumedError(
                f"{self.__class__.__name__} state of participant {self.index} was already consumed."
            )
        self._consumed = True

    def destroy(self) -> None:
        self._consumed = True


class RoundOne(_KeyGenerationState):
    """State after every peer passed admission and the outgoing shares exist."""

    def __init__(
        self,
        parameters: Parameters,
        index: int,
        peers: Dict[int, Participant],
        my_commitment: Point,
        my_secret_share: int,
        their_secret_shares: Tuple[SecretShare, ...],
    ):
        super().__init__(parameters, index, peers, my_commitment)
        self._my_secret_share: Optional[int] = my_secret_share
        self._their_secret_shares = their_secret_shares

    @classmethod
    def begin(
        cls,
        parameters: Parameters,
        index: int,
        coefficients: Coefficients,
        peers: Iterable[Participant],
    ) -> Tuple[RoundOne, Tuple[SecretShare, ...]]:
        """
        Admit the peers and derive the outgoing secret shares.

        Parameters:
        parameters (Parameters): The (t, n) configuration of the group.
        index (int): The caller's own participant index.
        coefficients (Coefficients): The caller's secret polynomial. It is
            destroyed once the shares have been derived.
        peers (Iterable[Participant]): The other participants' records. The
            caller's own record may be included and is skipped.

        Returns:
        Tuple[RoundOne, Tuple[SecretShare, ...]]: The new state and one share
        per peer, ordered by receiver index.

        Raises:
        ValueError: If the index is out of range, the coefficients do not
        match the threshold, or a peer index appears twice.
        MisbehavingParticipants: If any peer fails admission. Every offender
        is listed and the coefficients are left intact for a retry.
        """
        parameters.validate_index(index)
        if len(coefficients) != parameters.t:
            raise ValueError(
                "The number of coefficients must match the threshold."
            )

        admitted: Dict[int, Participant] = {}
        misbehaving: List[int] = []
        seen = set()
        for peer in peers:
            if peer.index in seen:
                raise ValueError(f"Participant {peer.index} was supplied more than once.")
            seen.add(peer.index)
            if peer.index == index:
                continue
            if (
                not isinstance(peer.index, int)
                or not 1 <= peer.index <= parameters.n
                or len(peer.commitments) != parameters.t
                or not peer.verify_proof()
            ):
                misbehaving.append(peer.index)
                continue
            admitted[peer.index] = peer

        if misbehaving:
            logger.warning(
                "Participant %d rejected misbehaving peers %s", index, sorted(misbehaving)
            )
            raise MisbehavingParticipants(misbehaving)

        # (l, f_i(l)), l ≠ i
        their_secret_shares = tuple(
            SecretShare(index, peer_index, coefficients.evaluate(peer_index))
            for peer_index in sorted(admitted)
        )
        # (i, f_i(i))
        my_secret_share = coefficients.evaluate(index)
        my_commitment = coefficients.secret() * G
        coefficients.destroy()

        logger.debug(
            "Participant %d entered round one with peers %s", index, sorted(admitted)
        )
        state = cls(
            parameters,
            index,
            admitted,
            my_commitment,
            my_secret_share,
            their_secret_shares,
        )
        return state, their_secret_shares

    def their_secret_shares(self) -> Tuple[SecretShare, ...]:
        """Return the shares this participant must send to its peers."""
        if self._consumed:
            raise StateConsumedError("RoundOne state was already consumed.")
        return self._their_secret_shares

    def to_round_two(self, my_secret_shares: Iterable[SecretShare]) -> RoundTwo:
        """
        Verify the shares received from the peers and move to round two.

        Parameters:
        my_secret_shares (Iterable[SecretShare]): The shares addressed to this
            participant, one from each peer.

        Returns:
        RoundTwo: The next state. This RoundOne is consumed.

        Raises:
        ShareVerificationFailed: Listing every sender whose share is addressed
        to someone else, comes from an unknown sender, repeats a sender, or
        does not match the sender's commitments.
        StateConsumedError: If this state was already consumed.
        """
        self._consume()

        received: Dict[int, int] = {}
        failed = set()
        for share in my_secret_shares:
            sender = share.sender_index
            peer = self.peers.get(sender)
            if (
                peer is None
                or share.receiver_index != self.index
                or sender in received
                or not share.verify(peer.commitments)
            ):
                failed.add(sender)
                continue
            received[sender] = share.value % Q

        my_secret_share = self._my_secret_share
        self._my_secret_share = None
        self._their_secret_shares = ()

        if failed:
            logger.warning(
                "Participant %d received invalid shares from %s", self.index, sorted(failed)
            )
            raise ShareVerificationFailed(failed)

        received[self.index] = my_secret_share
        logger.debug(
            "Participant %d entered round two with %d shares", self.index, len(received)
        )
        return RoundTwo(
            self.parameters, self.index, self.peers, self.my_commitment, received
        )

    def destroy(self) -> None:
        super().destroy()
        self._my_secret_share = None
        self._their_secret_shares = ()


class RoundTwo(_KeyGenerationState):
    """State holding every verified share addressed to this participant."""

    def __init__(
        self,
        parameters: Parameters,
        index: int,
        peers: Dict[int, Participant],
        my_commitment: Point,
        my_secret_shares: Dict[int, int],
    ):
        super().__init__(parameters, index, peers, my_commitment)
        self._my_secret_shares = my_secret_shares

    def finish(
        self, my_commitment: Optional[Point] = None
    ) -> Tuple[GroupKey, IndividualSecretKey]:
        """
        Derive the group key and this participant's signing key.

        Parameters:
        my_commitment (Optional[Point]): The caller's own commitment g^a_i_0.
            When given it must match the commitment derived in round one.

        Returns:
        Tuple[GroupKey, IndividualSecretKey]: The group key and s_i = ∑ f_l(i).

        Raises:
        IncompleteShares: If a share from any of the n - 1 peers is missing.
        ValueError: If my_commitment does not belong to this participant.
        StateConsumedError: If this state was already consumed.
        """
        self._consume()
        shares = self._my_secret_shares
        self._my_secret_shares = {}

        expected = self.parameters.n - 1
        received = len(shares) - 1
        if received < expected:
            raise IncompleteShares(expected, received)
        if my_commitment is not None and my_commitment != self.my_commitment:
            raise ValueError("Commitment does not belong to this participant.")

        # s_i = ∑ f_l(i), 1 ≤ l ≤ n
        secret_key = sum(shares.values()) % Q

        # Y = ∏ 𝜙_j_0, 1 ≤ j ≤ n
        group_key = self.my_commitment
        for peer_index in sorted(self.peers):
            group_key += self.peers[peer_index].public_key()

        logger.debug("Participant %d finished key generation", self.index)
        return GroupKey(group_key), IndividualSecretKey(self.index, secret_key)

    def destroy(self) -> None:
        super().destroy()
        self._my_secret_shares = {}


def begin_round_one(
    parameters: Parameters,
    index: int,
    coefficients: Coefficients,
    peers: Iterable[Participant],
) -> Tuple[RoundOne, Tuple[SecretShare, ...]]:
    """Start the key generation; see RoundOne.begin."""
    return RoundOne.begin(parameters, index, coefficients, peers)


def advance_to_round_two(
    state: RoundOne, my_secret_shares: Iterable[SecretShare]
) -> RoundTwo:
    """Verify the received shares; see RoundOne.to_round_two."""
    if not isinstance(state, RoundOne):
        raise TypeError("advance_to_round_two requires a RoundOne state.")
    return state.to_round_two(my_secret_shares)


def finish_keygen(
    state: RoundTwo, my_commitment: Optional[Point] = None
) -> Tuple[GroupKey, IndividualSecretKey]:
    """Finish the key generation; see RoundTwo.finish."""
    if not isinstance(state, RoundTwo):
        raise TypeError("finish_keygen requires a RoundTwo state.")
    return state.finish(my_commitment)
