import unittest

from dataclasses import replace
from frost25519 import (
    HandleError,
    HandleRegistry,
    MisbehavingParticipants,
    MissingPartialSignature,
    NoUnusedCommitmentShares,
    PartialSignatureInvalid,
    SignatureInvalid,
    api,
    Q,
)


class Tests(unittest.TestCase):
    def setUp(self):
        self.registry = HandleRegistry()
        self.n = 3
        self.t = 2

    def keygen(self):
        created = [
            api.create_participant(i, self.n, self.t, registry=self.registry)
            for i in range(1, self.n + 1)
        ]
        participants = [participant for participant, _ in created]
        for participant in participants:
            api.verify_participant(participant)

        handles = {}
        outgoing = []
        for participant, coefficients_handle in created:
            shares, handles[participant.index] = api.begin_round_one(
                participant, coefficients_handle, participants, self.n, self.t,
                registry=self.registry,
            )
            outgoing.extend(shares)

        keys = {}
        for participant in participants:
            index = participant.index
            incoming = [share for share in outgoing if share.receiver_index == index]
            handle = api.advance_to_round_two(handles[index], incoming, registry=self.registry)
            keys[index] = api.finish_keygen(handle, participant, registry=self.registry)
            with self.assertRaises(HandleError):
                self.registry.resolve(handle)

        self.assertEqual(len(self.registry), 0)
        group_keys = {group_key.to_bytes() for group_key, _, _ in keys.values()}
        self.assertEqual(len(group_keys), 1)
        return keys

    def sign(self, keys, signer_indexes, message):
        group_key = keys[1][0]
        commitments = []
        public_keys = []
        nonce_handles = {}
        for index in signer_indexes:
            public, nonce_handles[index] = api.generate_commitment_shares(
                index, registry=self.registry
            )
            commitments.append(public.commitments[0])
            public_keys.append(keys[index][1])

        aggregator_handle, signers = api.create_aggregator(
            self.n, self.t, group_key, message, commitments, public_keys,
            registry=self.registry,
        )
        self.assertEqual([s.participant_index for s in signers], sorted(signer_indexes))

        partial_signatures = [
            api.compute_partial_signature(
                keys[index][2], group_key, message, nonce_handles[index], signers,
                registry=self.registry,
            )
            for index in signer_indexes
        ]
        finalized_handle = api.finalize_signers(aggregator_handle, registry=self.registry)
        signature = api.aggregate_signatures(
            finalized_handle, partial_signatures, registry=self.registry
        )
        return signature, nonce_handles

    def test_full_protocol(self):
        keys = self.keygen()
        group_key = keys[1][0]

        signature, nonce_handles = self.sign(keys, (1, 2), b"hello")
        self.assertEqual(len(signature), 64)
        ed25519_key = api.group_key_to_ed25519(group_key.to_bytes())
        api.verify_signature(ed25519_key, b"hello", signature)
        with self.assertRaises(SignatureInvalid):
            api.verify_signature(ed25519_key, b"hullo", signature)

        for handle in nonce_handles.values():
            api.release(handle, registry=self.registry)
            with self.assertRaises(HandleError):
                api.release(handle, registry=self.registry)
        self.assertEqual(len(self.registry), 0)

    def test_nonce_handle_exhausted(self):
        keys = self.keygen()
        group_key = keys[1][0]
        _, nonce_handles = self.sign(keys, (1, 3), b"hello")

        aggregator_handle, signers = api.create_aggregator(
            self.n, self.t, group_key, b"again", registry=self.registry
        )
        self.assertEqual(signers, [])
        secret_list = self.registry.resolve(nonce_handles[1])
        public_commitment = secret_list.shares[0].commit()
        signers = api.include_signer(
            aggregator_handle, 1, public_commitment, keys[1][1], registry=self.registry
        )
        with self.assertRaises(NoUnusedCommitmentShares):
            api.compute_partial_signature(
                keys[1][2], group_key, b"again", nonce_handles[1], signers,
                registry=self.registry,
            )

    def test_failed_admission_keeps_coefficients(self):
        me, coefficients_handle = api.create_participant(1, 2, 2, registry=self.registry)
        peer, _ = api.create_participant(2, 2, 2, registry=self.registry)
        challenge, response = peer.proof_of_secret_key
        cheater = replace(peer, proof_of_secret_key=(challenge, (response + 1) % Q))

        with self.assertRaises(MisbehavingParticipants):
            api.begin_round_one(me, coefficients_handle, [me, cheater], 2, 2, registry=self.registry)
        self.assertIn(coefficients_handle, self.registry)

        shares, state_handle = api.begin_round_one(
            me, coefficients_handle, [me, peer], 2, 2, registry=self.registry
        )
        self.assertEqual(len(shares), 1)
        self.assertNotIn(coefficients_handle, self.registry)
        self.assertIn(state_handle, self.registry)

    def signing_session(self, keys, signer_indexes, message):
        group_key = keys[1][0]
        commitments = []
        nonce_handles = {}
        for index in signer_indexes:
            public, nonce_handles[index] = api.generate_commitment_shares(
                index, registry=self.registry
            )
            commitments.append(public.commitments[0])

        aggregator_handle, signers = api.create_aggregator(
            self.n, self.t, group_key, message, commitments,
            [keys[index][1] for index in signer_indexes],
            registry=self.registry,
        )
        partial_signatures = [
            api.compute_partial_signature(
                keys[index][2], group_key, message, nonce_handles[index], signers,
                registry=self.registry,
            )
            for index in signer_indexes
        ]
        finalized_handle = api.finalize_signers(aggregator_handle, registry=self.registry)
        return finalized_handle, partial_signatures

    def test_invalid_partial_signature_invalidates_handle(self):
        keys = self.keygen()
        finalized_handle, partial_signatures = self.signing_session(keys, (1, 2), b"hello")
        forged = replace(
            partial_signatures[1], response=(partial_signatures[1].response + 1) % Q
        )

        with self.assertRaises(PartialSignatureInvalid) as context:
            api.aggregate_signatures(
                finalized_handle, [partial_signatures[0], forged], registry=self.registry
            )
        self.assertEqual(context.exception.indices, (2,))
        self.assertNotIn(finalized_handle, self.registry)
        with self.assertRaises(HandleError):
            api.release(finalized_handle, registry=self.registry)

    def test_missing_partial_signature_keeps_handle(self):
        keys = self.keygen()
        finalized_handle, partial_signatures = self.signing_session(keys, (1, 3), b"hello")

        with self.assertRaises(MissingPartialSignature):
            api.aggregate_signatures(
                finalized_handle, partial_signatures[:1], registry=self.registry
            )
        self.assertIn(finalized_handle, self.registry)

        signature = api.aggregate_signatures(
            finalized_handle, partial_signatures[1:], registry=self.registry
        )
        api.verify_signature(keys[1][0], b"hello", signature)
        self.assertNotIn(finalized_handle, self.registry)

    def test_wrong_handle_kind(self):
        _, coefficients_handle = api.create_participant(1, 2, 2, registry=self.registry)
        with self.assertRaises(TypeError):
            api.finalize_signers(coefficients_handle, registry=self.registry)


if __name__ == "__main__":
    unittest.main()
