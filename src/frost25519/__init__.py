"""
Copyright (c) 2021-2024 Jesse Posner

Distributed under the MIT software license, see the accompanying file LICENSE
or http://www.opensource.org/licenses/mit-license.php.

This code is currently a work in progress. It's not secure nor stable.  IT IS
EXTREMELY DANGEROUS AND RECKLESS TO USE THIS MODULE IN PRODUCTION!

This package implements FROST threshold Schnorr signatures over edwards25519,
producing signatures that verify as ordinary Ed25519 signatures under the
group key.

Modules:
- point: Defines the Point class for handling points on edwards25519.
- participant: The broadcastable Participant record, its secret Coefficients,
  and the proof of knowledge that admits it to a key generation.
- keygen: The two-round distributed key generation (RoundOne, RoundTwo).
- precomputation: Single-use nonce commitment shares for signing.
- aggregator: Partial signing and the SignatureAggregator that combines
  partial signatures into one signature.
- handles: A registry of opaque handles for state that must outlive a call.
- api: A handle-based facade over the whole protocol.
- constants: Holds the curve constants P, Q, and G.
"""

from .point import Point, P, Q, G
from .parameters import Parameters
from .errors import (
    FrostError,
    InvalidProof,
    MisbehavingParticipants,
    ShareVerificationFailed,
    IncompleteShares,
    InsufficientSigners,
    NoUnusedCommitmentShares,
    MissingPartialSignature,
    PartialSignatureInvalid,
    SignatureInvalid,
    ProtocolMisuseError,
    StateConsumedError,
    HandleError,
)
from .participant import Participant, Coefficients, create_participant, verify_participant
from .keygen import (
    SecretShare,
    GroupKey,
    IndividualPublicKey,
    IndividualSecretKey,
    RoundOne,
    RoundTwo,
    begin_round_one,
    advance_to_round_two,
    finish_keygen,
)
from .precomputation import (
    CommitmentShare,
    PublicCommitmentShareList,
    SecretCommitmentShareList,
    generate_commitment_share_lists,
)
from .aggregator import (
    Signer,
    PartialThresholdSignature,
    ThresholdSignature,
    SignatureAggregator,
    FinalizedAggregator,
    calculate_lagrange_coefficient,
    compute_partial_signature,
    verify_signature,
)
from .handles import HandleRegistry
