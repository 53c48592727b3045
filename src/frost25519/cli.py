import argparse
import logging
import sys

from .aggregator import (
    SignatureAggregator,
    ThresholdSignature,
    compute_partial_signature,
    verify_signature,
)
from .errors import FrostError
from .keygen import GroupKey, RoundOne
from .parameters import Parameters
from .participant import create_participant
from .precomputation import generate_commitment_share_lists


def simulate(args):
    """Run a key generation and one signing session inside this process."""
    parameters = Parameters(args.participants, args.threshold)
    signer_indexes = sorted({int(i) for i in args.signers.split(",")})
    for index in signer_indexes:
        parameters.validate_index(index)
    message = args.message.encode()

    created = [create_participant(parameters, i) for i in range(1, parameters.n + 1)]
    participants = [participant for participant, _ in created]

    states = {}
    outgoing = []
    for participant, coefficients in created:
        state, shares = RoundOne.begin(
            parameters, participant.index, coefficients, participants
        )
        states[participant.index] = state
        outgoing.extend(shares)

    keys = {}
    group_key = None
    for index, state in states.items():
        incoming = [share for share in outgoing if share.receiver_index == index]
        group_key, keys[index] = state.to_round_two(incoming).finish()
    print("Group key: ", group_key.hex())

    aggregator = SignatureAggregator(parameters, group_key, message)
    nonces = {}
    for index in signer_indexes:
        public, nonces[index] = generate_commitment_share_lists(index)
        aggregator.include_signer(index, public.commitments[0], keys[index].to_public())
    finalized = aggregator.finalize()

    message, signers = finalized.signing_inputs()
    partial_signatures = [
        compute_partial_signature(keys[index], group_key, message, nonces[index], signers)
        for index in signer_indexes
    ]
    signature = finalized.aggregate(partial_signatures)
    verify_signature(group_key, message, signature)
    print("Signature: ", signature.hex())


def verify(args):
    """Verify an Ed25519 signature against a group key."""
    group_key = GroupKey.from_bytes(bytes.fromhex(args.group_key))
    signature = ThresholdSignature.from_bytes(bytes.fromhex(args.signature))
    verify_signature(group_key, args.message.encode(), signature)
    print("Signature is valid.")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="frost25519")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers()

    parser_simulate = subparsers.add_parser(
        'simulate', help='Run a local key generation and signing session.'
    )
    parser_simulate.add_argument('--participants', type=int, default=3, help='Number of participants.')
    parser_simulate.add_argument('--threshold', type=int, default=2, help='Signing threshold.')
    parser_simulate.add_argument('--signers', type=str, default='1,2', help='Comma separated signer indexes.')
    parser_simulate.add_argument('--message', type=str, required=True, help='Message to sign.')
    parser_simulate.set_defaults(func=simulate)

    parser_verify = subparsers.add_parser('verify', help='Verify a message')
    parser_verify.add_argument('--group-key', type=str, required=True, help='Hex encoded group key.')
    parser_verify.add_argument('--message', type=str, required=True, help='Message to verify.')
    parser_verify.add_argument('--signature', type=str, required=True, help='Hex encoded signature.')
    parser_verify.set_defaults(func=verify)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 0
    try:
        args.func(args)
    except (FrostError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
