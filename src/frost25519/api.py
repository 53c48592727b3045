"""
Handle-based facade over the protocol for callers that cannot keep Python
objects alive between calls.

Secret in-flight state never crosses this surface. Coefficients, key
generation rounds, secret commitment share lists and aggregators are parked
in a HandleRegistry and referred to by integer handles. Everything public
(participants, shares addressed to peers, keys, signatures) is returned
directly.

A handle passed to a consuming operation (begin_round_one,
advance_to_round_two, finish_keygen, finalize_signers, aggregate_signatures)
is invalid once that operation succeeds. Operations that fail with a
retryable FrostError leave their input handle live; aggregate_signatures
failing with PartialSignatureInvalid invalidates its handle.
"""

from typing import Iterable, List, Optional, Tuple, Union
from .aggregator import (
    FinalizedAggregator,
    PartialThresholdSignature,
    SignatureAggregator,
    Signer,
    ThresholdSignature,
    compute_partial_signature as _compute_partial_signature,
    verify_signature as _verify_signature,
)
from .errors import PartialSignatureInvalid
from .handles import HandleRegistry, default_registry
from .keygen import (
    GroupKey,
    IndividualPublicKey,
    IndividualSecretKey,
    RoundOne,
    RoundTwo,
    SecretShare,
)
from .parameters import Parameters
from .participant import (
    Coefficients,
    Participant,
    create_participant as _create_participant,
    verify_participant,
)
from .point import Point
from .precomputation import (
    PublicCommitmentShareList,
    SecretCommitmentShareList,
    generate_commitment_share_lists,
)

__all__ = [
    "create_participant",
    "verify_participant",
    "begin_round_one",
    "advance_to_round_two",
    "finish_keygen",
    "generate_commitment_shares",
    "create_aggregator",
    "include_signer",
    "compute_partial_signature",
    "finalize_signers",
    "aggregate_signatures",
    "verify_signature",
    "group_key_to_ed25519",
    "release",
]


def _registry(registry: Optional[HandleRegistry]) -> HandleRegistry:
    return default_registry if registry is None else registry


def _resolve(registry: HandleRegistry, handle: int, kind: type):
    obj = registry.resolve(handle)
    if not isinstance(obj, kind):
        raise TypeError(
            f"Handle {handle} refers to {type(obj).__name__}, expected {kind.__name__}."
        )
    return obj


def create_participant(
    index: int, n: int, t: int, registry: Optional[HandleRegistry] = None
) -> Tuple[Participant, int]:
    """Create a participant; the coefficients stay behind the returned handle."""
    participant, coefficients = _create_participant(Parameters(n, t), index)
    return participant, _registry(registry).register(coefficients)


def begin_round_one(
    me: Participant,
    coefficients_handle: int,
    participants: Iterable[Participant],
    n: int,
    t: int,
    registry: Optional[HandleRegistry] = None,
) -> Tuple[Tuple[SecretShare, ...], int]:
    """
    Admit the peers and derive the shares to send them.

    Returns:
    Tuple[Tuple[SecretShare, ...], int]: The shares for the peers and the
    handle of the RoundOne state. The coefficients handle is released.
    """
    registry = _registry(registry)
    coefficients = _resolve(registry, coefficients_handle, Coefficients)
    state, their_secret_shares = RoundOne.begin(
        Parameters(n, t), me.index, coefficients, participants
    )
    registry.release(coefficients_handle)
    return their_secret_shares, registry.register(state)


def advance_to_round_two(
    state_handle: int,
    my_secret_shares: Iterable[SecretShare],
    registry: Optional[HandleRegistry] = None,
) -> int:
    """Verify the received shares; returns the handle of the RoundTwo state."""
    registry = _registry(registry)
    state = _resolve(registry, state_handle, RoundOne)
    registry.take(state_handle)
    return registry.register(state.to_round_two(my_secret_shares))


def finish_keygen(
    state_handle: int,
    me: Optional[Participant] = None,
    registry: Optional[HandleRegistry] = None,
) -> Tuple[GroupKey, IndividualPublicKey, IndividualSecretKey]:
    """Finish the key generation, returning the group key and this participant's keys."""
    registry = _registry(registry)
    state = _resolve(registry, state_handle, RoundTwo)
    registry.take(state_handle)
    my_commitment = me.public_key() if me is not None else None
    group_key, secret_key = state.finish(my_commitment)
    return group_key, secret_key.to_public(), secret_key


def generate_commitment_shares(
    index: int, count: int = 1, registry: Optional[HandleRegistry] = None
) -> Tuple[PublicCommitmentShareList, int]:
    """Generate nonce commitments; the secret halves stay behind the returned handle."""
    public, secret = generate_commitment_share_lists(index, count)
    return public, _registry(registry).register(secret)


def create_aggregator(
    n: int,
    t: int,
    group_key: GroupKey,
    message: bytes,
    commitments: Iterable[Tuple[Point, Point]] = (),
    public_keys: Iterable[IndividualPublicKey] = (),
    registry: Optional[HandleRegistry] = None,
) -> Tuple[int, List[Signer]]:
    """
    Start a signing session, registering signers pairwise from commitments and public keys.

    Returns:
    Tuple[int, List[Signer]]: The aggregator handle and the ordered signer set.
    """
    aggregator = SignatureAggregator(Parameters(n, t), group_key, message)
    commitments = tuple(commitments)
    public_keys = tuple(public_keys)
    if len(commitments) != len(public_keys):
        raise ValueError("Every commitment needs exactly one public key.")
    for commitment, public_key in zip(commitments, public_keys):
        aggregator.include_signer(public_key.index, commitment, public_key)
    return _registry(registry).register(aggregator), aggregator.get_signers()


def include_signer(
    aggregator_handle: int,
    index: int,
    commitment: Tuple[Point, Point],
    public_key: IndividualPublicKey,
    registry: Optional[HandleRegistry] = None,
) -> List[Signer]:
    """Register one more signer; returns the ordered signer set."""
    aggregator = _resolve(_registry(registry), aggregator_handle, SignatureAggregator)
    aggregator.include_signer(index, commitment, public_key)
    return aggregator.get_signers()


def compute_partial_signature(
    secret_key: IndividualSecretKey,
    group_key: GroupKey,
    message: bytes,
    commitment_shares_handle: int,
    signers: Iterable[Signer],
    registry: Optional[HandleRegistry] = None,
) -> PartialThresholdSignature:
    """
    Sign with one of the commitment shares behind the handle.

    The handle stays live so the remaining shares can be used later; release
    it once the list is exhausted.
    """
    commitment_shares = _resolve(
        _registry(registry), commitment_shares_handle, SecretCommitmentShareList
    )
    return _compute_partial_signature(
        secret_key, group_key, message, commitment_shares, signers
    )


def finalize_signers(
    aggregator_handle: int, registry: Optional[HandleRegistry] = None
) -> int:
    """Fix the signer set; returns the handle of the finalized aggregator."""
    registry = _registry(registry)
    aggregator = _resolve(registry, aggregator_handle, SignatureAggregator)
    finalized = aggregator.finalize()
    registry.take(aggregator_handle)
    return registry.register(finalized)


def aggregate_signatures(
    finalized_handle: int,
    partial_signatures: Iterable[PartialThresholdSignature],
    registry: Optional[HandleRegistry] = None,
) -> bytes:
    """Combine the partial signatures; returns the 64-byte Ed25519 signature."""
    registry = _registry(registry)
    finalized = _resolve(registry, finalized_handle, FinalizedAggregator)
    try:
        signature = finalized.aggregate(partial_signatures)
    except PartialSignatureInvalid:
        registry.take(finalized_handle)
        raise
    registry.take(finalized_handle)
    return signature.to_ed25519()


def verify_signature(
    group_key: Union[GroupKey, bytes],
    message: bytes,
    signature: Union[ThresholdSignature, bytes],
) -> None:
    """Verify a signature with Ed25519; raises SignatureInvalid on failure."""
    _verify_signature(group_key, message, signature)


def group_key_to_ed25519(group_key: Union[GroupKey, bytes]) -> bytes:
    """Return the 32-byte Ed25519 public key of a group key."""
    if not isinstance(group_key, GroupKey):
        group_key = GroupKey.from_bytes(bytes(group_key))
    return group_key.to_ed25519()


def release(handle: int, registry: Optional[HandleRegistry] = None) -> None:
    """Destroy the object behind a handle. Releasing twice raises HandleError."""
    _registry(registry).release(handle)
