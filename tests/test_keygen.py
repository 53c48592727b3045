import unittest

from dataclasses import replace
from frost25519 import (
    GroupKey,
    IncompleteShares,
    MisbehavingParticipants,
    Parameters,
    RoundOne,
    SecretShare,
    ShareVerificationFailed,
    StateConsumedError,
    advance_to_round_two,
    calculate_lagrange_coefficient,
    create_participant,
    finish_keygen,
    Q,
    G,
)
from ceremony import run_keygen


class Tests(unittest.TestCase):
    def setUp(self):
        self.parameters = Parameters(n=3, t=2)
        created = [create_participant(self.parameters, i) for i in (1, 2, 3)]
        self.participants = [participant for participant, _ in created]
        self.coefficients = [coefficients for _, coefficients in created]
        self.p1, self.p2, self.p3 = self.participants

    def begin(self, i, peers=None):
        if peers is None:
            peers = self.participants
        return RoundOne.begin(self.parameters, i, self.coefficients[i - 1], peers)

    def test_keygen(self):
        participants, group_key, secret_keys = run_keygen(self.parameters)

        # Y = ∏ 𝜙_j_0
        expected = sum((p.public_key() for p in participants[1:]), participants[0].public_key())
        self.assertEqual(group_key.point, expected)

        for secret_key in secret_keys.values():
            self.assertTrue(secret_key.to_public().verify(self.parameters, participants))

        # Any two shares reconstruct the group secret
        for pair in ((1, 2), (1, 3), (2, 3)):
            secret = sum(
                calculate_lagrange_coefficient(i, pair) * secret_keys[i].key for i in pair
            ) % Q
            self.assertEqual(secret * G, group_key.point)

        # A single share does not
        self.assertNotEqual(secret_keys[1].key * G, group_key.point)

    def test_outgoing_shares(self):
        state, shares = self.begin(1)
        self.assertEqual([share.receiver_index for share in shares], [2, 3])
        self.assertTrue(all(share.sender_index == 1 for share in shares))
        self.assertEqual(state.their_secret_shares(), shares)
        for share in shares:
            self.assertTrue(share.verify(self.p1.commitments))

    def test_coefficients_destroyed_after_begin(self):
        self.begin(1)
        self.assertTrue(self.coefficients[0].destroyed)
        with self.assertRaises(StateConsumedError):
            self.begin(1)

    def test_peers_without_self(self):
        state, shares = self.begin(1, peers=[self.p2, self.p3])
        self.assertEqual(len(shares), 2)
        self.assertEqual(sorted(state.peers), [2, 3])

    def test_duplicate_peer(self):
        with self.assertRaises(ValueError):
            self.begin(1, peers=[self.p2, self.p2, self.p3])

    def test_misbehaving_participants_all_reported(self):
        challenge, response = self.p2.proof_of_secret_key
        bad_proof = replace(self.p2, proof_of_secret_key=(challenge, (response + 1) % Q))
        short_commitments = replace(self.p3, commitments=self.p3.commitments[:1])

        with self.assertRaises(MisbehavingParticipants) as context:
            self.begin(1, peers=[self.p1, bad_proof, short_commitments])
        self.assertEqual(context.exception.indices, (2, 3))

        # The coefficients survive so the caller can retry without the offenders
        self.assertFalse(self.coefficients[0].destroyed)

    def test_proof_for_wrong_index_rejected(self):
        relabelled = replace(self.p2, index=3)
        with self.assertRaises(MisbehavingParticipants) as context:
            self.begin(1, peers=[self.p1, relabelled])
        self.assertEqual(context.exception.indices, (3,))

    def test_share_verification_failed(self):
        s1, shares1 = self.begin(1)
        _, shares2 = self.begin(2)
        _, shares3 = self.begin(3)

        bad = replace(shares2[0], value=(shares2[0].value + 1) % Q)
        self.assertEqual(bad.receiver_index, 1)
        with self.assertRaises(ShareVerificationFailed) as context:
            s1.to_round_two([bad, shares3[0]])
        self.assertEqual(context.exception.indices, (2,))
        self.assertEqual(context.exception.index, 2)

    def test_share_inconsistent_with_commitments(self):
        s1, _ = self.begin(1)
        _, shares2 = self.begin(2)
        _, shares3 = self.begin(3)

        # p3 hands out a share of a different polynomial than it committed to
        other, other_coefficients = create_participant(self.parameters, 3)
        forged = SecretShare(3, 1, other_coefficients.evaluate(1))
        with self.assertRaises(ShareVerificationFailed) as context:
            s1.to_round_two([shares2[0], forged])
        self.assertEqual(context.exception.indices, (3,))

    def test_share_for_other_receiver(self):
        s1, _ = self.begin(1)
        _, shares2 = self.begin(2)
        _, shares3 = self.begin(3)

        # shares3[1] is addressed to participant 2
        with self.assertRaises(ShareVerificationFailed) as context:
            s1.to_round_two([shares2[0], shares3[1]])
        self.assertEqual(context.exception.indices, (3,))

    def test_all_bad_senders_reported(self):
        s1, _ = self.begin(1)
        _, shares2 = self.begin(2)
        _, shares3 = self.begin(3)
        bad2 = replace(shares2[0], value=0)
        bad3 = replace(shares3[0], value=1)
        with self.assertRaises(ShareVerificationFailed) as context:
            s1.to_round_two([bad2, bad3])
        self.assertEqual(context.exception.indices, (2, 3))

    def test_incomplete_shares(self):
        s1, _ = self.begin(1)
        _, shares2 = self.begin(2)
        self.begin(3)

        s1_two = advance_to_round_two(s1, [shares2[0]])
        with self.assertRaises(IncompleteShares) as context:
            finish_keygen(s1_two)
        self.assertEqual(context.exception.expected, 2)
        self.assertEqual(context.exception.received, 1)

    def test_states_are_single_use(self):
        s1, _ = self.begin(1)
        _, shares2 = self.begin(2)
        _, shares3 = self.begin(3)

        s1_two = s1.to_round_two([shares2[0], shares3[0]])
        with self.assertRaises(StateConsumedError):
            s1.to_round_two([shares2[0], shares3[0]])
        with self.assertRaises(StateConsumedError):
            s1.their_secret_shares()

        group_key, secret_key = s1_two.finish(self.p1.public_key())
        self.assertIsInstance(group_key, GroupKey)
        self.assertEqual(secret_key.index, 1)
        with self.assertRaises(StateConsumedError):
            s1_two.finish()

    def test_wrong_state_type(self):
        s1, _ = self.begin(1)
        with self.assertRaises(TypeError):
            finish_keygen(s1)

    def test_finish_rejects_foreign_commitment(self):
        s1, _ = self.begin(1)
        _, shares2 = self.begin(2)
        _, shares3 = self.begin(3)
        s1_two = s1.to_round_two([shares2[0], shares3[0]])
        with self.assertRaises(ValueError):
            s1_two.finish(self.p2.public_key())

    def test_single_participant(self):
        parameters = Parameters(n=1, t=1)
        participant, coefficients = create_participant(parameters, 1)
        secret = coefficients.secret()
        state, shares = RoundOne.begin(parameters, 1, coefficients, [participant])
        self.assertEqual(shares, ())
        group_key, secret_key = state.to_round_two([]).finish()
        self.assertEqual(secret_key.key, secret)
        self.assertEqual(group_key.point, secret * G)

    def test_group_key_bytes(self):
        _, group_key, _ = run_keygen(Parameters(n=2, t=2))
        encoded = group_key.to_bytes()
        self.assertEqual(len(encoded), 32)
        self.assertEqual(GroupKey.from_bytes(encoded), group_key)
        self.assertEqual(group_key.to_ed25519(), encoded)


if __name__ == "__main__":
    unittest.main()
