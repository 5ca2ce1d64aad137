# tests/test_models.py
import unittest

from fluxo.core.models import (
    AppSettings, AuthorizedUser, Establishment, Role, Transaction, TransactionStatus, TransactionType,
)


class TestEnums(unittest.TestCase):
    def test_transaction_type_parse(self):
        self.assertEqual(TransactionType.parse("Entrada"), TransactionType.ENTRADA)
        self.assertEqual(TransactionType.parse("entrada "), TransactionType.ENTRADA)
        self.assertEqual(TransactionType.parse("Saída"), TransactionType.SAIDA)
        # Qualquer outro valor reduz o saldo
        self.assertEqual(TransactionType.parse("Estorno"), TransactionType.SAIDA)

    def test_status_parse(self):
        self.assertEqual(TransactionStatus.parse("aprovado"), TransactionStatus.APROVADO)
        self.assertEqual(TransactionStatus.parse("Rejeitado"), TransactionStatus.REJEITADO)
        self.assertEqual(TransactionStatus.parse("???"), TransactionStatus.PENDENTE)

    def test_role_parse(self):
        self.assertEqual(Role.parse("Admin"), Role.ADMIN)
        self.assertEqual(Role.parse("financeiro"), Role.FINANCEIRO)
        self.assertEqual(Role.parse("Operador"), Role.FINANCEIRO)
        self.assertEqual(Role.parse("Gerente"), Role.CONVIDADO)
        self.assertEqual(Role.parse(None), Role.CONVIDADO)


class TestTransaction(unittest.TestCase):
    def test_from_dict_normalizes_fields(self):
        t = Transaction.from_dict({
            "id": 7,
            "date": "05/03/2024",
            "establishmentId": 1,
            "type": "Entrada",
            "amount": "150,25",
            "description": "Diária",
            "status": "Aprovado",
            "observations": "",
            "isEdited": "TRUE",
        })
        self.assertEqual(t.id, "7")
        self.assertEqual(t.date, "2024-03-05")
        self.assertEqual(t.establishment_id, "1")
        self.assertEqual(t.amount, 150.25)
        self.assertIsNone(t.observations)
        self.assertTrue(t.is_edited)
        self.assertFalse(t.is_synced)

    def test_is_edited_only_for_exact_true_values(self):
        self.assertFalse(Transaction.from_dict({"isEdited": "FALSE"}).is_edited)
        self.assertFalse(Transaction.from_dict({"isEdited": "yes"}).is_edited)
        self.assertTrue(Transaction.from_dict({"isEdited": True}).is_edited)

    def test_signed_amount(self):
        entrada = Transaction.create("1", TransactionType.ENTRADA, 100, "Venda")
        saida = Transaction.create("1", TransactionType.SAIDA, 40, "Gás")
        self.assertEqual(entrada.signed_amount, 100)
        self.assertEqual(saida.signed_amount, -40)

    def test_create_defaults(self):
        t = Transaction.create("1", "Saída", 10, "Gelo", user="fin@rede.com", date="2024-03-05T08:00:00Z")
        self.assertTrue(t.id)
        self.assertEqual(t.date, "2024-03-05")
        self.assertEqual(t.type, TransactionType.SAIDA)
        self.assertEqual(t.status, TransactionStatus.APROVADO)
        self.assertFalse(t.is_synced)
        self.assertFalse(t.is_edited)

    def test_create_rejects_negative_amount(self):
        with self.assertRaises(ValueError):
            Transaction.create("1", TransactionType.SAIDA, -5, "Erro")

    def test_to_dict_uses_wire_keys(self):
        t = Transaction.create("1", TransactionType.ENTRADA, 10, "Venda")
        data = t.to_dict()
        self.assertEqual(data["establishmentId"], "1")
        self.assertEqual(data["type"], "Entrada")
        self.assertEqual(data["observations"], "")
        self.assertEqual(Transaction.from_dict(data), t)


class TestOtherModels(unittest.TestCase):
    def test_establishment_wire_keys(self):
        e = Establishment.from_dict({"id": 3, "name": "Pousada", "responsibleEmail": "g@rede.com"})
        self.assertEqual(e, Establishment("3", "Pousada", "g@rede.com"))
        self.assertEqual(e.to_dict()["responsibleEmail"], "g@rede.com")

    def test_authorized_user(self):
        user = AuthorizedUser.from_dict({"email": "a@x.com", "role": "Operador"})
        self.assertEqual(user.role, Role.FINANCEIRO)
        self.assertEqual(user.to_dict(), {"email": "a@x.com", "role": "Financeiro"})

    def test_settings_partial_over_defaults(self):
        settings = AppSettings.from_dict({"showAI": "FALSE", "leftGroupIds": [1, 2]})
        self.assertFalse(settings.show_ai)
        self.assertTrue(settings.show_notes)
        self.assertTrue(settings.show_chart)
        self.assertFalse(settings.push_notifications)
        self.assertEqual(settings.left_group_ids, ("1", "2"))
        self.assertEqual(settings.ready_descriptions, ())

    def test_settings_to_dict_keys(self):
        data = AppSettings().to_dict()
        self.assertEqual(
            set(data),
            {"readyDescriptions", "leftGroupIds", "rightGroupIds", "showNotes", "showAI", "showChart",
             "pushNotifications", "weeklyEmailSummary"},
        )
        self.assertEqual(AppSettings.from_dict(data), AppSettings())


if __name__ == "__main__":
    unittest.main()
