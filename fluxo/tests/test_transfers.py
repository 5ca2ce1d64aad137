# tests/test_transfers.py
import unittest

from fluxo.core.balance import balance_for
from fluxo.core.errors import InvalidTransfer
from fluxo.core.models import Establishment, TransactionStatus, TransactionType
from fluxo.core.transfers import build_transfer


class TestBuildTransfer(unittest.TestCase):
    def setUp(self):
        self.hotel = Establishment("1", "Hotel Centro")
        self.cantina = Establishment("2", "Cantina")

    def test_pair_of_transactions(self):
        outgoing, incoming = build_transfer(self.hotel, self.cantina, 300, "Troco", "fin@rede.com", "2025-07-07")

        self.assertEqual(outgoing.establishment_id, "1")
        self.assertEqual(outgoing.type, TransactionType.SAIDA)
        self.assertEqual(outgoing.description, "Transferência para Cantina - Troco")

        self.assertEqual(incoming.establishment_id, "2")
        self.assertEqual(incoming.type, TransactionType.ENTRADA)
        self.assertEqual(incoming.description, "Recebido de Hotel Centro - Troco")

        for t in (outgoing, incoming):
            self.assertEqual(t.amount, 300)
            self.assertEqual(t.date, "2025-07-07")
            self.assertEqual(t.status, TransactionStatus.APROVADO)
            self.assertEqual(t.user, "fin@rede.com")
        self.assertNotEqual(outgoing.id, incoming.id)

    def test_network_balance_is_unchanged(self):
        pair = build_transfer(self.hotel, self.cantina, 120.5, "Reforço de caixa", "x@rede.com")
        self.assertEqual(balance_for(pair, ["1", "2"]), 0)
        self.assertEqual(balance_for(pair, ["1"]), -120.5)

    def test_same_establishment(self):
        with self.assertRaises(InvalidTransfer):
            build_transfer(self.hotel, self.hotel, 10, "Teste", "x@rede.com")

    def test_observation_is_required(self):
        with self.assertRaises(InvalidTransfer):
            build_transfer(self.hotel, self.cantina, 10, "   ", "x@rede.com")

    def test_amount_must_be_positive(self):
        with self.assertRaises(InvalidTransfer):
            build_transfer(self.hotel, self.cantina, 0, "Teste", "x@rede.com")


if __name__ == "__main__":
    unittest.main()
