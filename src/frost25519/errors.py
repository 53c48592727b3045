"""
Error taxonomy for the threshold signing protocol.

Protocol failures (a peer misbehaved, a quorum was not met, a signature does
not verify) derive from FrostError and carry a stable code plus the indices of
the participants involved, so a caller can exclude them and retry.

Contract violations (driving a state machine past a consumed state, touching a
released handle) derive from ProtocolMisuseError instead. They indicate a bug
in the calling code and are deliberately kept outside the FrostError hierarchy.
"""

from typing import Iterable, Optional, Tuple

__all__ = [
    "FrostError",
    "InvalidProof",
    "MisbehavingParticipants",
    "ShareVerificationFailed",
    "IncompleteShares",
    "InsufficientSigners",
    "NoUnusedCommitmentShares",
    "MissingPartialSignature",
    "PartialSignatureInvalid",
    "SignatureInvalid",
    "ProtocolMisuseError",
    "StateConsumedError",
    "HandleError",
]


class FrostError(Exception):
    """Base class for all protocol failures."""

    def __init__(self, code: str, message: str, context: Optional[str] = None):
        self.code = code
        self.message = message
        self.context = context

        full_msg = f"[{code}] {message}"
        if context:
            full_msg += f" Context: {context}"

        super().__init__(full_msg)


def _sorted_indices(indices: Iterable[int]) -> Tuple[int, ...]:
    return tuple(sorted(set(indices)))


# Key generation errors (E0xx)
class InvalidProof(FrostError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(
            "FROST_E001",
            f"Proof of knowledge of the secret key of participant {index} does not verify.",
        )


class MisbehavingParticipants(FrostError):
    def __init__(self, indices: Iterable[int]):
        self.indices = _sorted_indices(indices)
        super().__init__(
            "FROST_E002",
            f"Participants {list(self.indices)} failed admission to the key generation.",
        )


class ShareVerificationFailed(FrostError):
    def __init__(self, indices: Iterable[int]):
        self.indices = _sorted_indices(indices)
        super().__init__(
            "FROST_E003",
            f"Secret shares from participants {list(self.indices)} do not match their commitments.",
        )

    @property
    def index(self) -> int:
        """The lowest offending sender index."""
        return self.indices[0]


# Quorum errors (E1xx)
class IncompleteShares(FrostError):
    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            "FROST_E100",
            f"Expected {expected} secret shares from other participants, received {received}.",
        )


class InsufficientSigners(FrostError):
    def __init__(self, required: int, present: int):
        self.required = required
        self.present = present
        super().__init__(
            "FROST_E101",
            f"At least {required} signers are required, {present} registered.",
        )


# Signing errors (E2xx)
class NoUnusedCommitmentShares(FrostError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(
            "FROST_E200",
            f"Participant {index} has no unused commitment share for this signing session.",
        )


class MissingPartialSignature(FrostError):
    def __init__(self, indices: Iterable[int]):
        self.indices = _sorted_indices(indices)
        super().__init__(
            "FROST_E201",
            f"Signers {list(self.indices)} did not supply a partial signature.",
        )

    @property
    def index(self) -> int:
        """The lowest signer index without a partial signature."""
        return self.indices[0]


class PartialSignatureInvalid(FrostError):
    def __init__(self, indices: Iterable[int]):
        self.indices = _sorted_indices(indices)
        super().__init__(
            "FROST_E202",
            f"Partial signatures from signers {list(self.indices)} do not verify.",
        )


class SignatureInvalid(FrostError):
    def __init__(self, context: Optional[str] = None):
        super().__init__(
            "FROST_E203", "Threshold signature verification failed.", context
        )


class ProtocolMisuseError(RuntimeError):
    """The caller broke the ownership or ordering contract of the protocol."""


class StateConsumedError(ProtocolMisuseError):
    """A single-use protocol object was used after being consumed or destroyed."""


class HandleError(ProtocolMisuseError):
    """An opaque handle was unknown, already taken, or already released."""
