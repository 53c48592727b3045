import unittest

from dataclasses import replace
from frost25519 import (
    Coefficients,
    InvalidProof,
    Parameters,
    Participant,
    StateConsumedError,
    create_participant,
    verify_participant,
    Q,
    G,
)


class Tests(unittest.TestCase):
    def setUp(self):
        self.parameters = Parameters(n=3, t=2)
        self.p1, self.c1 = create_participant(self.parameters, 1)

    def test_parameters(self):
        with self.assertRaises(ValueError):
            Parameters(n=2, t=3)
        with self.assertRaises(ValueError):
            Parameters(n=3, t=0)
        with self.assertRaises(ValueError):
            Parameters(n="3", t=2)

    def test_index_range(self):
        with self.assertRaises(ValueError):
            create_participant(self.parameters, 0)
        with self.assertRaises(ValueError):
            create_participant(self.parameters, 4)

    def test_commitments(self):
        self.assertEqual(self.p1.index, 1)
        self.assertEqual(len(self.p1.commitments), 2)
        self.assertEqual(len(self.c1), 2)
        self.assertEqual(self.p1.commitments, self.c1.commitments())
        self.assertEqual(self.p1.public_key(), self.c1.secret() * G)

    def test_proof_of_knowledge(self):
        self.assertTrue(self.p1.verify_proof())
        verify_participant(self.p1)

    def test_proof_bound_to_index(self):
        relabelled = replace(self.p1, index=2)
        self.assertFalse(relabelled.verify_proof())
        with self.assertRaises(InvalidProof) as context:
            verify_participant(relabelled)
        self.assertEqual(context.exception.index, 2)

    def test_index_outside_encoding_range(self):
        for index in (-1, 2**32):
            with self.subTest(index=index):
                relabelled = replace(self.p1, index=index)
                self.assertFalse(relabelled.verify_proof())
                with self.assertRaises(InvalidProof):
                    verify_participant(relabelled)

    def test_tampered_proof(self):
        challenge, response = self.p1.proof_of_secret_key
        tampered = replace(self.p1, proof_of_secret_key=(challenge, (response + 1) % Q))
        with self.assertRaises(InvalidProof):
            verify_participant(tampered)

    def test_proof_for_other_commitment(self):
        p2, _ = create_participant(self.parameters, 1)
        stolen = replace(p2, proof_of_secret_key=self.p1.proof_of_secret_key)
        self.assertFalse(stolen.verify_proof())

    def test_evaluate(self):
        coefficients = Coefficients((5, 3, 2))
        # 5 + 3x + 2x^2
        self.assertEqual(coefficients.evaluate(0), 5)
        self.assertEqual(coefficients.evaluate(2), 19)
        self.assertEqual(coefficients.evaluate(Q), 5)

    def test_destroy(self):
        self.c1.destroy()
        self.assertTrue(self.c1.destroyed)
        with self.assertRaises(StateConsumedError):
            self.c1.evaluate(1)
        with self.assertRaises(StateConsumedError):
            self.c1.secret()
        with self.assertRaises(StateConsumedError):
            Participant.prove(1, self.c1)


if __name__ == "__main__":
    unittest.main()
