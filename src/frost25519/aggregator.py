"""
This module implements FROST threshold signing over edwards25519 and the
SignatureAggregator that combines the signers' contributions.

A signing session runs as follows. Every signer publishes one commitment
share (D_i, E_i). The aggregator registers each signer's commitment and
public key, fixes the signer set with finalize(), and hands (message, signers)
to the signers. Each signer answers with a PartialThresholdSignature, and the
aggregator checks every one of them against the signer's public key before
summing them into a ThresholdSignature.

The result is an ordinary Ed25519 signature (R, z) under the group key:
verifiers need no knowledge that the key was generated in a distributed way.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from hashlib import sha512
import logging
from typing import Dict, Iterable, List, Tuple, Union
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from .constants import Q
from .errors import (
    InsufficientSigners,
    MissingPartialSignature,
    PartialSignatureInvalid,
    ProtocolMisuseError,
    SignatureInvalid,
    StateConsumedError,
)
from .keygen import GroupKey, IndividualPublicKey, IndividualSecretKey
from .parameters import Parameters
from .point import Point, G
from .precomputation import SecretCommitmentShareList

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signer:
    """A signer of a session and the commitment share it published for it."""

    participant_index: int
    published_commitment_share: Tuple[Point, Point]


@dataclass(frozen=True)
class PartialThresholdSignature:
    """One signer's response z_i."""

    index: int
    response: int


@dataclass(frozen=True)
class ThresholdSignature:
    """The aggregated signature σ = (R, z)."""

    group_commitment: Point
    response: int = field(repr=False)

    def to_bytes(self) -> bytes:
        return self.group_commitment.serialize() + self.response.to_bytes(32, "little")

    def to_ed25519(self) -> bytes:
        """Return the 64-byte Ed25519 encoding R || z."""
        return self.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> ThresholdSignature:
        """
        Decode a 64-byte R || z signature.

        Raises:
        ValueError: If the length is wrong, R is not a valid point, or z is
        not reduced modulo Q.
        """
        if len(data) != 64:
            raise ValueError("A signature must be exactly 64 bytes long.")
        response = int.from_bytes(data[32:], "little")
        if response >= Q:
            raise ValueError("Signature response is not reduced modulo Q.")
        return cls(Point.deserialize(data[:32]), response)

    def hex(self) -> str:
        return self.to_bytes().hex()

    def verify(self, group_key: GroupKey, message: bytes) -> None:
        """
        Verify the signature with the curve arithmetic of this package.

        Raises:
        SignatureInvalid: If g^z ≠ R * Y^c.
        """
        challenge = SignatureAggregator.challenge_hash(
            self.group_commitment, group_key.point, message
        )
        # R ≟ g^z * Y^-c
        if self.group_commitment != (self.response * G) - (challenge * group_key.point):
            raise SignatureInvalid("in-house verification")


def calculate_lagrange_coefficient(index: int, participant_indexes: Iterable[int]) -> int:
    """
    Calculate the Lagrange coefficient of index at x = 0 relative to the signer set.

    Parameters:
    index (int): The index whose coefficient is computed.
    participant_indexes (Iterable[int]): Every index in the signer set. It may
        include index itself.

    Returns:
    int: λ_i = ∏ p_j / (p_j - p_i), j ≠ i, reduced modulo Q.

    Raises:
    ValueError: If duplicate indices are found or index is not in the set.
    """
    participant_indexes = tuple(participant_indexes)
    if len(participant_indexes) != len(set(participant_indexes)):
        raise ValueError("Participant indexes must be unique.")
    if index not in participant_indexes:
        raise ValueError(f"Participant {index} is not in the signer set.")

    numerator = 1
    denominator = 1
    for other in participant_indexes:
        if other == index:
            continue
        numerator = numerator * other
        denominator = denominator * (other - index)
    return (numerator * pow(denominator, Q - 2, Q)) % Q


def _normalize_signers(signers: Iterable[Signer]) -> Tuple[Signer, ...]:
    """Sort the signers by index and drop exact duplicates."""
    by_index: Dict[int, Signer] = {}
    for signer in signers:
        existing = by_index.get(signer.participant_index)
        if existing is not None and existing != signer:
            raise ProtocolMisuseError(
                f"Signer {signer.participant_index} was registered with conflicting commitments."
            )
        by_index[signer.participant_index] = signer
    return tuple(by_index[index] for index in sorted(by_index))


class SignatureAggregator:
    """
    Initial state of a signing session: signers are still being registered.

    Parameters:
    parameters (Parameters): The (t, n) configuration of the group.
    group_key (GroupKey): The key the signature must verify under.
    message (bytes): The message being signed.
    """

    CONTEXT = b"FROST-ED25519-BINDING"

    def __init__(self, parameters: Parameters, group_key: GroupKey, message: bytes):
        # Y
        self.parameters = parameters
        self.group_key = group_key
        # m
        self.message = bytes(message)
        self._signers: Dict[int, Signer] = {}
        self._public_keys: Dict[int, IndividualPublicKey] = {}
        self._partial_signatures: Dict[int, PartialThresholdSignature] = {}
        self._consumed = False

    def _check_live(self) -> None:
        if self._consumed:
            raise StateConsumedError("SignatureAggregator was already finalized.")

    def include_signer(
        self,
        index: int,
        commitment: Tuple[Point, Point],
        public_key: IndividualPublicKey,
    ) -> None:
        """
        Register a signer's published commitment share and public key.

        Registering the same data again is harmless. Registering different
        data under an index already in use is a contract violation.

        Raises:
        ValueError: If the index is out of range or does not match the key.
        ProtocolMisuseError: If the index is registered with different data.
        """
        self._check_live()
        self.parameters.validate_index(index)
        if public_key.index != index:
            raise ValueError(
                f"Public key of participant {public_key.index} registered for index {index}."
            )

        signer = Signer(index, tuple(commitment))
        existing = self._signers.get(index)
        if existing is not None and (
            existing != signer or self._public_keys[index] != public_key
        ):
            raise ProtocolMisuseError(
                f"Signer {index} was registered with conflicting data."
            )
        self._signers[index] = signer
        self._public_keys[index] = public_key

    def get_signers(self) -> List[Signer]:
        """Return the registered signers ordered by index."""
        return [self._signers[index] for index in sorted(self._signers)]

    def get_remaining_signers(self) -> List[Signer]:
        """Return the signers that have not supplied a partial signature yet."""
        return [
            signer
            for signer in self.get_signers()
            if signer.participant_index not in self._partial_signatures
        ]

    def include_partial_signature(self, partial_signature: PartialThresholdSignature) -> None:
        self._check_live()
        _store_partial_signature(self._partial_signatures, partial_signature)

    def finalize(self) -> FinalizedAggregator:
        """
        Fix the signer set and derive the per-signer binding factors.

        Returns:
        FinalizedAggregator: The next state. This aggregator is consumed.

        Raises:
        InsufficientSigners: If fewer than t signers are registered. The
        aggregator stays usable so more signers can be included.
        """
        self._check_live()
        signers = tuple(self.get_signers())
        if len(signers) < self.parameters.t:
            raise InsufficientSigners(self.parameters.t, len(signers))

        self._consumed = True
        logger.debug(
            "Finalized signer set %s", [signer.participant_index for signer in signers]
        )
        return FinalizedAggregator(
            self.parameters,
            self.group_key,
            self.message,
            signers,
            dict(self._public_keys),
            dict(self._partial_signatures),
        )

    @classmethod
    def binding_factor(
        cls, index: int, message: bytes, signers: Tuple[Signer, ...]
    ) -> int:
        """
        Compute the binding factor of a signer.

        Parameters:
        index (int): The index of the signer.
        message (bytes): The message being signed.
        signers (Tuple[Signer, ...]): The ordered signer set.

        Returns:
        int: ρ_l = H_1(l, m, B), l ∈ S, reduced modulo Q.
        """
        if index < 1:
            raise ValueError("Participant index must start from 1.")

        binding_value = sha512()
        binding_value.update(cls.CONTEXT)
        # l
        binding_value.update(index.to_bytes(4, "little"))
        # m
        binding_value.update(len(message).to_bytes(8, "little"))
        binding_value.update(message)
        # B = ⟨(j, D_j, E_j)⟩_j∈S
        for signer in signers:
            hiding, binding = signer.published_commitment_share
            binding_value.update(signer.participant_index.to_bytes(4, "little"))
            binding_value.update(hiding.serialize())
            binding_value.update(binding.serialize())

        return int.from_bytes(binding_value.digest(), "little") % Q

    @classmethod
    def group_commitment(
        cls, message: bytes, signers: Tuple[Signer, ...]
    ) -> Tuple[Point, Dict[int, int]]:
        """
        Calculate the group commitment and the binding factors it was built from.

        Returns:
        Tuple[Point, Dict[int, int]]: R = ∏ D_l * (E_l)^ρ_l, l ∈ S, and ρ_l by index.
        """
        # R
        group_commitment = Point()
        binding_factors: Dict[int, int] = {}
        for signer in signers:
            binding_factor = cls.binding_factor(signer.participant_index, message, signers)
            # D_l, E_l
            hiding, binding = signer.published_commitment_share
            group_commitment += hiding + (binding_factor * binding)
            binding_factors[signer.participant_index] = binding_factor

        return group_commitment, binding_factors

    @classmethod
    def challenge_hash(cls, nonce_commitment: Point, public_key: Point, message: bytes) -> int:
        """
        Compute the Ed25519 challenge binding the nonce commitment, public key,
        and message.

        Returns:
        int: c = SHA-512(R || Y || m) read little-endian, reduced modulo Q.
        """
        # c = H_2(R, Y, m)
        challenge_hash = sha512()
        challenge_hash.update(nonce_commitment.serialize())
        challenge_hash.update(public_key.serialize())
        challenge_hash.update(message)
        return int.from_bytes(challenge_hash.digest(), "little") % Q


def _store_partial_signature(
    partial_signatures: Dict[int, PartialThresholdSignature],
    partial_signature: PartialThresholdSignature,
) -> None:
    existing = partial_signatures.get(partial_signature.index)
    if existing is not None and existing != partial_signature:
        raise ProtocolMisuseError(
            f"Signer {partial_signature.index} supplied conflicting partial signatures."
        )
    partial_signatures[partial_signature.index] = partial_signature


class FinalizedAggregator:
    """Finalized state of a signing session: the signer set is fixed."""

    def __init__(
        self,
        parameters: Parameters,
        group_key: GroupKey,
        message: bytes,
        signers: Tuple[Signer, ...],
        public_keys: Dict[int, IndividualPublicKey],
        partial_signatures: Dict[int, PartialThresholdSignature],
    ):
        self.parameters = parameters
        self.group_key = group_key
        self.message = message
        self.signers = signers
        self.public_keys = public_keys
        self._partial_signatures = partial_signatures
        self.group_commitment, self.binding_factors = SignatureAggregator.group_commitment(
            message, signers
        )
        self.challenge = SignatureAggregator.challenge_hash(
            self.group_commitment, group_key.point, message
        )
        self._consumed = False

    def signing_inputs(self) -> Tuple[bytes, Tuple[Signer, ...]]:
        """
        Returns the signing inputs to be used by the signers.

        Returns:
        Tuple[bytes, Tuple[Signer, ...]]: The message and the ordered signer set.
        """
        # (m, B)
        return (self.message, self.signers)

    def get_remaining_signers(self) -> List[Signer]:
        return [
            signer
            for signer in self.signers
            if signer.participant_index not in self._partial_signatures
        ]

    def aggregate(
        self, partial_signatures: Iterable[PartialThresholdSignature] = ()
    ) -> ThresholdSignature:
        """
        Check every partial signature and combine them into the final signature.

        Parameters:
        partial_signatures (Iterable[PartialThresholdSignature], optional):
            Partial signatures not yet included before finalization.

        Returns:
        ThresholdSignature: σ = (R, z), z = ∑ z_i, i ∈ S.

        Raises:
        ValueError: If a partial signature comes from outside the signer set.
        MissingPartialSignature: If a signer has not contributed. The
        aggregator stays usable so the missing signatures can be added.
        PartialSignatureInvalid: Listing every signer whose response does not
        verify against its public key.
        StateConsumedError: If this aggregator already produced a signature.
        """
        if self._consumed:
            raise StateConsumedError("FinalizedAggregator was already aggregated.")

        signer_indexes = tuple(signer.participant_index for signer in self.signers)
        for partial_signature in partial_signatures:
            if partial_signature.index not in signer_indexes:
                raise ValueError(
                    f"Participant {partial_signature.index} is not in the signer set."
                )
            _store_partial_signature(self._partial_signatures, partial_signature)

        missing = [signer.participant_index for signer in self.get_remaining_signers()]
        if missing:
            raise MissingPartialSignature(missing)

        self._consumed = True
        invalid = []
        z = 0
        for signer in self.signers:
            index = signer.participant_index
            response = self._partial_signatures[index].response
            hiding, binding = signer.published_commitment_share
            lagrange_coefficient = calculate_lagrange_coefficient(index, signer_indexes)
            # g^z_i ≟ D_i * E_i^ρ_i * Y_i^(c * λ_i)
            expected = (
                hiding
                + (self.binding_factors[index] * binding)
                + ((self.challenge * lagrange_coefficient) * self.public_keys[index].share)
            )
            if not isinstance(response, int) or response * G != expected:
                invalid.append(index)
                continue
            z = (z + response) % Q

        if invalid:
            logger.warning("Rejected partial signatures from signers %s", invalid)
            raise PartialSignatureInvalid(invalid)

        logger.debug("Aggregated signature from signers %s", list(signer_indexes))
        # σ = (R, z)
        return ThresholdSignature(self.group_commitment, z)


def compute_partial_signature(
    secret_key: IndividualSecretKey,
    group_key: GroupKey,
    message: bytes,
    commitment_shares: SecretCommitmentShareList,
    signers: Iterable[Signer],
) -> PartialThresholdSignature:
    """
    Generate a signature contribution for this participant.

    Parameters:
    secret_key (IndividualSecretKey): The signer's share s_i.
    group_key (GroupKey): The group key Y.
    message (bytes): The message being signed.
    commitment_shares (SecretCommitmentShareList): The signer's nonces. The
        share matching the commitment published in signers is consumed.
    signers (Iterable[Signer]): The signer set of the session, including this signer.

    Returns:
    PartialThresholdSignature: z_i = d_i + (e_i * ρ_i) + λ_i * s_i * c.

    Raises:
    ValueError: If this signer is not part of the signer set.
    NoUnusedCommitmentShares: If the published commitment share is unknown
    or already consumed.
    """
    signers = _normalize_signers(signers)
    index = secret_key.index
    own = [signer for signer in signers if signer.participant_index == index]
    if not own:
        raise ValueError(f"Participant {index} is not in the signer set.")
    if commitment_shares.participant_index != index:
        raise ValueError("Commitment shares belong to a different participant.")

    message = bytes(message)
    # R
    group_commitment, binding_factors = SignatureAggregator.group_commitment(message, signers)
    # c = H_2(R, Y, m)
    challenge = SignatureAggregator.challenge_hash(group_commitment, group_key.point, message)
    # λ_i
    lagrange_coefficient = calculate_lagrange_coefficient(
        index, (signer.participant_index for signer in signers)
    )

    # d_i, e_i
    hiding_nonce, binding_nonce = commitment_shares.consume(
        own[0].published_commitment_share
    )

    # z_i = d_i + (e_i * ρ_i) + λ_i * s_i * c
    response = (
        hiding_nonce
        + (binding_nonce * binding_factors[index])
        + lagrange_coefficient * secret_key.key * challenge
    ) % Q
    return PartialThresholdSignature(index, response)


def verify_signature(
    group_key: Union[GroupKey, bytes],
    message: bytes,
    signature: Union[ThresholdSignature, bytes],
) -> None:
    """
    Verify a threshold signature as a plain Ed25519 signature.

    Parameters:
    group_key (Union[GroupKey, bytes]): The group key or its 32-byte encoding.
    message (bytes): The signed message.
    signature (Union[ThresholdSignature, bytes]): The signature or its
        64-byte encoding.

    Raises:
    SignatureInvalid: If the Ed25519 verification fails.
    """
    if isinstance(group_key, GroupKey):
        group_key = group_key.to_ed25519()
    if isinstance(signature, ThresholdSignature):
        signature = signature.to_ed25519()

    try:
        public_key = Ed25519PublicKey.from_public_bytes(bytes(group_key))
        public_key.verify(bytes(signature), bytes(message))
    except (InvalidSignature, ValueError) as e:
        raise SignatureInvalid("Ed25519 verification") from e
